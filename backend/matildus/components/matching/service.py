"""Directional swipes and mutual-interest match creation."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.listing import FEED_VISIBLE_STATUSES, Listing
from ...models.match import MATCH_STATUS_ORDER, Match, MatchStatus
from ...models.swipe import EmployerTalentSwipe, SwipeDirection, TalentJobSwipe
from ...models.user import User
from ...platform.errors import forbidden, invalid_status, not_found, validation
from ...platform.session_context import SessionContext
from ...shared.utils import commit_or_rollback
from ..identity.membership import is_org_member, require_org_member, require_talent, require_talent_user
from ..listings.service import get_listing, mark_matching
from ..notifications.events import MATCH_CREATED, emit_event

logger = logging.getLogger(__name__)


def _normalize_direction(direction: str) -> str:
    value = (direction or "").strip().lower()
    if value not in {d.value for d in SwipeDirection}:
        raise validation("Swipe direction must be 'yes' or 'no'.", field="direction")
    return value


def find_match(db: Session, listing_id: int, talent_user_id: int) -> Optional[Match]:
    return (
        db.query(Match)
        .filter(Match.listing_id == listing_id, Match.talent_user_id == talent_user_id)
        .first()
    )


def ensure_match(db: Session, listing: Listing, talent_user_id: int, ctx: SessionContext) -> Tuple[Match, bool]:
    """Create the (listing, talent) match exactly once.

    Pending work must already be committed: on a unique-key race the session
    is rolled back and the winner's row is returned. The boolean is True only
    for the caller whose insert created the match.
    """
    existing = find_match(db, listing.id, talent_user_id)
    if existing is not None:
        return existing, False
    match = Match(
        organization_id=listing.organization_id,
        listing_id=listing.id,
        talent_user_id=talent_user_id,
        status=MatchStatus.MATCHED.value,
        demo_session_id=ctx.write_tag,
    )
    db.add(match)
    try:
        mark_matching(db, listing.id)
        commit_or_rollback(db, action="create_match")
    except IntegrityError:
        db.rollback()
        existing = find_match(db, listing.id, talent_user_id)
        if existing is None:
            raise
        logger.info("Match already created concurrently listing_id=%s talent_id=%s", listing.id, talent_user_id)
        return existing, False
    db.refresh(match)
    logger.info("Match created match_id=%s listing_id=%s talent_id=%s", match.id, listing.id, talent_user_id)
    emit_event(
        MATCH_CREATED,
        match_id=match.id,
        listing_id=listing.id,
        organization_id=listing.organization_id,
        talent_user_id=talent_user_id,
    )
    return match, True


def _upsert_swipe(db: Session, model: Type, keys: Dict[str, Any], values: Dict[str, Any], *, action: str):
    row = db.query(model).filter_by(**keys).first()
    if row is None:
        row = model(**keys, **values)
        db.add(row)
    else:
        for key, value in values.items():
            setattr(row, key, value)
    try:
        commit_or_rollback(db, action=action)
    except IntegrityError:
        # The other insert won; last write still decides the direction.
        row = db.query(model).filter_by(**keys).first()
        for key, value in values.items():
            setattr(row, key, value)
        commit_or_rollback(db, action=action)
    db.refresh(row)
    return row


def _swipe_result(listing_id: int, talent_user_id: int, direction: str, match: Optional[Match], created: bool) -> Dict[str, Any]:
    return {
        "listing_id": listing_id,
        "talent_user_id": talent_user_id,
        "direction": direction,
        "match": match,
        "match_created": created,
    }


def swipe_on_listing(
    db: Session, user: User, listing_id: int, direction: str, ctx: SessionContext
) -> Dict[str, Any]:
    """Talent-side swipe. A yes completes a match if the employer already said yes."""
    require_talent(user)
    direction = _normalize_direction(direction)
    listing = get_listing(db, listing_id)

    match = find_match(db, listing.id, user.id)
    if match is not None:
        # Swipes are frozen once the pair has matched.
        return _swipe_result(listing.id, user.id, direction, match, False)
    if listing.status not in FEED_VISIBLE_STATUSES:
        raise invalid_status("This job is no longer open.", status=listing.status)

    _upsert_swipe(
        db,
        TalentJobSwipe,
        {"talent_user_id": user.id, "listing_id": listing.id},
        {"direction": direction, "demo_session_id": ctx.write_tag},
        action="talent_swipe",
    )
    logger.info("Talent swipe talent_id=%s listing_id=%s direction=%s", user.id, listing.id, direction)
    if direction != SwipeDirection.YES.value:
        return _swipe_result(listing.id, user.id, direction, None, False)

    employer_yes = (
        db.query(EmployerTalentSwipe.id)
        .filter(
            EmployerTalentSwipe.listing_id == listing.id,
            EmployerTalentSwipe.talent_user_id == user.id,
            EmployerTalentSwipe.direction == SwipeDirection.YES.value,
        )
        .first()
    )
    if employer_yes is None:
        return _swipe_result(listing.id, user.id, direction, None, False)
    match, created = ensure_match(db, listing, user.id, ctx)
    return _swipe_result(listing.id, user.id, direction, match, created)


def swipe_on_candidate(
    db: Session,
    user: User,
    listing_id: int,
    talent_user_id: int,
    direction: str,
    ctx: SessionContext,
) -> Dict[str, Any]:
    """Employer-side swipe on a candidate for one listing."""
    direction = _normalize_direction(direction)
    listing = get_listing(db, listing_id)
    require_org_member(db, listing.organization_id, user)
    require_talent_user(db, talent_user_id)

    match = find_match(db, listing.id, talent_user_id)
    if match is not None:
        return _swipe_result(listing.id, talent_user_id, direction, match, False)
    if listing.status not in FEED_VISIBLE_STATUSES:
        raise invalid_status("This job is no longer open.", status=listing.status)

    _upsert_swipe(
        db,
        EmployerTalentSwipe,
        {
            "organization_id": listing.organization_id,
            "listing_id": listing.id,
            "talent_user_id": talent_user_id,
        },
        {"direction": direction, "swiper_user_id": user.id, "demo_session_id": ctx.write_tag},
        action="employer_swipe",
    )
    logger.info(
        "Employer swipe org_id=%s listing_id=%s talent_id=%s direction=%s",
        listing.organization_id,
        listing.id,
        talent_user_id,
        direction,
    )
    if direction != SwipeDirection.YES.value:
        return _swipe_result(listing.id, talent_user_id, direction, None, False)

    talent_yes = (
        db.query(TalentJobSwipe.id)
        .filter(
            TalentJobSwipe.listing_id == listing.id,
            TalentJobSwipe.talent_user_id == talent_user_id,
            TalentJobSwipe.direction == SwipeDirection.YES.value,
        )
        .first()
    )
    if talent_yes is None:
        return _swipe_result(listing.id, talent_user_id, direction, None, False)
    match, created = ensure_match(db, listing, talent_user_id, ctx)
    return _swipe_result(listing.id, talent_user_id, direction, match, created)


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

def get_match(db: Session, match_id: int) -> Match:
    match = db.query(Match).filter(Match.id == match_id).first()
    if not match:
        raise not_found("Match not found.")
    return match


def _require_participant(db: Session, match: Match, user: User) -> None:
    if match.talent_user_id == user.id:
        return
    if is_org_member(db, match.organization_id, user.id):
        return
    raise forbidden("You are not part of this match.")


def get_match_for_user(db: Session, user: User, match_id: int) -> Match:
    match = get_match(db, match_id)
    _require_participant(db, match, user)
    return match


def list_my_matches(db: Session, user: User) -> List[Match]:
    return (
        db.query(Match)
        .filter(Match.talent_user_id == user.id)
        .order_by(Match.created_at.desc(), Match.id.desc())
        .all()
    )


def list_org_matches(db: Session, user: User, organization_id: int, listing_id: Optional[int] = None) -> List[Match]:
    require_org_member(db, organization_id, user)
    query = db.query(Match).filter(Match.organization_id == organization_id)
    if listing_id is not None:
        query = query.filter(Match.listing_id == listing_id)
    return query.order_by(Match.created_at.desc(), Match.id.desc()).all()


def advance_match_status(db: Session, user: User, match_id: int, to_status: str) -> Match:
    """Forward-only progression matched -> chatting -> completed."""
    match = get_match_for_user(db, user, match_id)
    if to_status not in MATCH_STATUS_ORDER:
        raise validation(f"Unknown match status '{to_status}'.", field="status")
    current = match.status
    if MATCH_STATUS_ORDER.index(to_status) <= MATCH_STATUS_ORDER.index(current):
        raise invalid_status(f"Match is already {current}.", status=current)

    updated = (
        db.query(Match)
        .filter(Match.id == match.id, Match.status == current)
        .update({Match.status: to_status}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(match)
        raise invalid_status(f"Match changed to {match.status} meanwhile.", status=match.status)
    commit_or_rollback(db, action="advance_match")
    db.refresh(match)
    logger.info("Match advanced match_id=%s status=%s", match.id, match.status)
    return match
