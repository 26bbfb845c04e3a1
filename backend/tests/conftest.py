import os
# Override DATABASE_URL before any app imports to avoid PostgreSQL driver requirement
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
# Keep external integrations disabled by default for unit/API tests. Individual
# tests can opt-in by monkeypatching settings.
os.environ["MVP_DISABLE_CELERY"] = "true"
os.environ["SCORING_SERVICE_URL"] = ""
os.environ["NOTIFICATIONS_WEBHOOK_URL"] = ""
os.environ["LIVE_BACKEND"] = "true"

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from fastapi_users.jwt import generate_jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from matildus.components.notifications import events as domain_events
from matildus.components.ranking.stack import stack_registry
from matildus.components.scoring.client import ScoreResult, get_scorer
from matildus.main import app
from matildus.models.listing import Listing, ListingStatus, ListingType
from matildus.models.match import Match, MatchStatus
from matildus.models.organization import ORG_ROLE_OWNER, Organization, OrgMembership
from matildus.models.talent import TalentProfile, VisibilityScope
from matildus.models.user import ACCOUNT_TYPE_EMPLOYER, ACCOUNT_TYPE_TALENT, User
from matildus.platform.config import settings
from matildus.platform.database import Base, get_db
from matildus.platform.middleware import _rate_limit_store

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Enable foreign key support for SQLite
@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    stack_registry.clear()
    db = TestingSessionLocal()
    yield db
    db.close()
    stack_registry.clear()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)
    # Clear in-memory rate limit state between tests to prevent 429 bleed-through
    _rate_limit_store.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    _rate_limit_store.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def racing_sessions(db):
    """Session factory for tests that race writers across threads.

    SQLite upgrades a deferred read lock to a write lock mid-transaction and
    fails fast when two connections try it at once. Taking the write lock at
    BEGIN makes competing sessions wait their turn like row locks would.
    """
    racing_engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False, "timeout": 30})

    @event.listens_for(racing_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(racing_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    yield sessionmaker(autocommit=False, autoflush=False, bind=racing_engine)
    racing_engine.dispose()


@pytest.fixture
def captured_events():
    """Collect every domain event emitted during the test."""
    received = []
    listener = domain_events.subscribe(received.append)
    yield received
    domain_events.unsubscribe(listener)


class FakeScorer:
    """Deterministic stand-in for the external scoring service."""

    def __init__(self, scores=None, fail=False):
        self.scores = dict(scores or {})
        self.fail = fail
        self.calls = []

    def _score(self, subject_id, item_ids):
        self.calls.append((subject_id, list(item_ids)))
        if self.fail:
            raise RuntimeError("scoring service unavailable")
        return [
            ScoreResult(id=item_id, score=self.scores[item_id], reasons=["fit"])
            for item_id in item_ids
            if item_id in self.scores
        ]

    def score_listings_for_candidate(self, candidate_id, listing_ids):
        return self._score(candidate_id, listing_ids)

    def score_candidates_for_listing(self, listing_id, candidate_ids):
        return self._score(listing_id, candidate_ids)


@pytest.fixture
def fake_scorer(client):
    scorer = FakeScorer()
    app.dependency_overrides[get_scorer] = lambda: scorer
    yield scorer
    app.dependency_overrides.pop(get_scorer, None)


# ---------------------------------------------------------------------------
# Factory helpers: ORM-backed entities for service and API tests
# ---------------------------------------------------------------------------

_counter = 0

def _unique_id() -> str:
    global _counter
    _counter += 1
    return f"{_counter}-{uuid.uuid4().hex[:8]}"


def make_talent(db, *, full_name="Test Talent", location="Vemdalen", role_key="barista", visibility=VisibilityScope.PUBLIC.value, with_profile=True):
    user = User(
        email=f"talent-{_unique_id()}@test.com",
        hashed_password="not-a-real-hash",
        full_name=full_name,
        account_type=ACCOUNT_TYPE_TALENT,
        is_active=True,
        is_verified=True,
    )
    db.add(user)
    db.flush()
    if with_profile:
        db.add(TalentProfile(user_id=user.id, location=location, role_key=role_key, visibility_scope=visibility))
    db.commit()
    db.refresh(user)
    return user


def make_employer(db, *, org_name=None, location="Vemdalen", org=None):
    """Create an employer account. Founds a new org unless ``org`` is given."""
    user = User(
        email=f"employer-{_unique_id()}@test.com",
        hashed_password="not-a-real-hash",
        full_name="Test Employer",
        account_type=ACCOUNT_TYPE_EMPLOYER,
        is_active=True,
        is_verified=True,
    )
    db.add(user)
    db.flush()
    if org is None:
        name = org_name or f"Org {_unique_id()}"
        org = Organization(name=name, slug=name.lower().replace(" ", "-"), location=location)
        db.add(org)
        db.flush()
    db.add(OrgMembership(organization_id=org.id, user_id=user.id, role=ORG_ROLE_OWNER))
    db.commit()
    db.refresh(user)
    db.refresh(org)
    return user, org


def make_listing(db, org, *, title="Barista", role_key="barista", location="Vemdalen", status=ListingStatus.PUBLISHED.value, listing_type=ListingType.JOB.value, **extra):
    listing = Listing(
        organization_id=org.id,
        title=title,
        role_key=role_key,
        location=location,
        listing_type=listing_type,
        status=status,
        start_date=extra.pop("start_date", date.today() + timedelta(days=30)),
        **extra,
    )
    db.add(listing)
    db.commit()
    db.refresh(listing)
    return listing


def make_match(db, listing, talent, *, status=MatchStatus.MATCHED.value):
    match = Match(
        organization_id=listing.organization_id,
        listing_id=listing.id,
        talent_user_id=talent.id,
        status=status,
    )
    db.add(match)
    db.commit()
    db.refresh(match)
    return match


def shift_window(days_ahead=10, hours=8, start_hour=8):
    start = datetime.combine(date.today() + timedelta(days=days_ahead), datetime.min.time(), tzinfo=timezone.utc)
    start = start + timedelta(hours=start_hour)
    return start, start + timedelta(hours=hours)


def token_headers(user):
    """Bearer headers for ``user`` without going through the login endpoint."""
    token = generate_jwt(
        {"sub": str(user.id), "aud": ["fastapi-users:auth"]},
        settings.SECRET_KEY,
        settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"Authorization": f"Bearer {token}"}


def register_user(client, email=None, password="TestPass123!", full_name="Test User", organization_name=None, account_type=None, location=None):
    """Register a user via the API. Returns the response."""
    email = email or f"user-{_unique_id()}@test.com"
    payload = {
        "email": email,
        "password": password,
        "full_name": full_name,
    }
    if organization_name is not None:
        payload["organization_name"] = organization_name
    if account_type is not None:
        payload["account_type"] = account_type
    if location is not None:
        payload["location"] = location
    return client.post("/api/v1/auth/register", json=payload)


def login_user(client, email, password="TestPass123!"):
    """Log in a user via the API (FastAPI-Users JWT). Returns the response."""
    return client.post(
        "/api/v1/auth/jwt/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
