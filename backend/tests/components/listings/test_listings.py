"""Listing creation and lifecycle for employer organizations."""

from datetime import date, timedelta

import pytest

from matildus.components.listings import service as listings
from matildus.models.listing import ListingStatus, ListingType
from matildus.platform.errors import FORBIDDEN, INVALID_STATUS, NOT_FOUND, VALIDATION, MarketplaceError
from matildus.platform.session_context import LIVE_SESSION, build_session_context
from tests.conftest import make_employer, shift_window

JOB = {"title": "Line cook", "role_key": " Cook ", "location": "Vemdalen", "start_date": date.today() + timedelta(days=20)}


def test_create_draft_normalizes_role(db):
    employer, org = make_employer(db)
    listing = listings.create_listing(db, employer, org.id, JOB, LIVE_SESSION)
    assert listing.status == ListingStatus.DRAFT.value
    assert listing.role_key == "cook"
    assert listing.listing_type == ListingType.JOB.value
    assert listing.created_by == employer.id


def test_create_published_in_demo_session(db):
    employer, org = make_employer(db)
    ctx = build_session_context("demo-7", live_backend=False)
    listing = listings.create_listing(db, employer, org.id, JOB, ctx, publish=True)
    assert listing.status == ListingStatus.PUBLISHED.value
    assert listing.demo_session_id == "demo-7"


@pytest.mark.parametrize(
    "override, field",
    [
        ({"title": "  "}, "title"),
        ({"role_key": ""}, "role_key"),
        ({"listing_type": "gig"}, "listing_type"),
        ({"end_date": date.today()}, "end_date"),
        ({"listing_type": ListingType.SHIFT_COVER.value}, "shift_start"),
    ],
)
def test_invalid_terms(db, override, field):
    employer, org = make_employer(db)
    with pytest.raises(MarketplaceError) as exc:
        listings.create_listing(db, employer, org.id, {**JOB, **override}, LIVE_SESSION)
    assert exc.value.reason == VALIDATION
    assert exc.value.context["field"] == field


def test_shift_cover_window_must_be_ordered(db):
    employer, org = make_employer(db)
    start, end = shift_window()
    data = {**JOB, "listing_type": ListingType.SHIFT_COVER.value, "shift_start": end, "shift_end": start}
    with pytest.raises(MarketplaceError) as exc:
        listings.create_listing(db, employer, org.id, data, LIVE_SESSION)
    assert exc.value.context["field"] == "shift_end"
    data.update(shift_start=start, shift_end=end)
    assert listings.create_listing(db, employer, org.id, data, LIVE_SESSION).listing_type == "shift_cover"


def test_outsider_cannot_create(db):
    _, org = make_employer(db)
    outsider, _ = make_employer(db)
    with pytest.raises(MarketplaceError) as exc:
        listings.create_listing(db, outsider, org.id, JOB, LIVE_SESSION)
    assert exc.value.reason == FORBIDDEN


def test_publish_then_close(db):
    employer, org = make_employer(db)
    listing = listings.create_listing(db, employer, org.id, JOB, LIVE_SESSION)
    assert listings.publish_listing(db, employer, listing.id).status == ListingStatus.PUBLISHED.value
    with pytest.raises(MarketplaceError) as exc:
        listings.publish_listing(db, employer, listing.id)
    assert exc.value.reason == INVALID_STATUS
    assert listings.close_listing(db, employer, listing.id).status == ListingStatus.CLOSED.value
    with pytest.raises(MarketplaceError) as exc:
        listings.close_listing(db, employer, listing.id)
    assert exc.value.reason == INVALID_STATUS


def test_mark_matching_only_from_published(db):
    employer, org = make_employer(db)
    listing = listings.create_listing(db, employer, org.id, JOB, LIVE_SESSION)
    assert listings.mark_matching(db, listing.id) is False
    listings.publish_listing(db, employer, listing.id)
    assert listings.mark_matching(db, listing.id) is True
    db.commit()
    db.refresh(listing)
    assert listing.status == ListingStatus.MATCHING.value


def test_org_listing_filter(db):
    employer, org = make_employer(db)
    draft = listings.create_listing(db, employer, org.id, JOB, LIVE_SESSION)
    live = listings.create_listing(db, employer, org.id, JOB, LIVE_SESSION, publish=True)
    assert {l.id for l in listings.list_org_listings(db, employer, org.id)} == {draft.id, live.id}
    assert [l.id for l in listings.list_org_listings(db, employer, org.id, status="published")] == [live.id]


def test_unknown_listing(db):
    with pytest.raises(MarketplaceError) as exc:
        listings.get_listing(db, 987654)
    assert exc.value.reason == NOT_FOUND
