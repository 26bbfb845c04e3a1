"""Swipe feeds presented through per-user ranked stacks."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ...models.candidate_job import JobDismissal
from ...models.listing import Listing
from ...models.match import Match
from ...models.swipe import EmployerTalentSwipe, SwipeDirection, TalentJobSwipe
from ...models.talent import TalentProfile
from ...models.user import User
from ...platform.config import settings
from ...platform.session_context import SessionContext
from ..identity.membership import require_org_member, require_talent
from ..listings.service import feed_listings_query, get_listing
from ..ranking.stack import RankedStack, StackRegistry, build_context_key, stack_registry
from ..scoring.client import score_best_effort

logger = logging.getLogger(__name__)

TALENT_FEED = "talent"


def candidate_feed_name(listing_id: int) -> str:
    return f"candidates:{listing_id}"


def _talent_feed_ids(db: Session, user: User, filters: Dict[str, Any]) -> List[int]:
    swiped = db.query(TalentJobSwipe.listing_id).filter(TalentJobSwipe.talent_user_id == user.id)
    dismissed = db.query(JobDismissal.listing_id).filter(JobDismissal.candidate_id == user.id)
    matched = db.query(Match.listing_id).filter(Match.talent_user_id == user.id)
    rows = (
        feed_listings_query(db, **filters)
        .with_entities(Listing.id)
        .filter(
            ~Listing.id.in_(swiped),
            ~Listing.id.in_(dismissed),
            ~Listing.id.in_(matched),
        )
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .all()
    )
    return [row[0] for row in rows]


def _candidate_feed_ids(db: Session, listing: Listing) -> List[int]:
    already_swiped = db.query(EmployerTalentSwipe.talent_user_id).filter(
        EmployerTalentSwipe.organization_id == listing.organization_id,
        EmployerTalentSwipe.listing_id == listing.id,
    )
    matched = db.query(Match.talent_user_id).filter(Match.listing_id == listing.id)
    rows = (
        db.query(TalentJobSwipe.talent_user_id)
        .filter(
            TalentJobSwipe.listing_id == listing.id,
            TalentJobSwipe.direction == SwipeDirection.YES.value,
            ~TalentJobSwipe.talent_user_id.in_(already_swiped),
            ~TalentJobSwipe.talent_user_id.in_(matched),
        )
        .order_by(TalentJobSwipe.created_at.asc(), TalentJobSwipe.id.asc())
        .all()
    )
    return [row[0] for row in rows]


def _present(
    registry: StackRegistry,
    owner: int,
    feed: str,
    context_key: str,
    item_ids: List[int],
    score_call,
    score_subject: int,
    limit: int,
) -> Dict[str, Any]:
    _, built = registry.get_or_build(owner, feed, context_key, item_ids)
    if built:
        logger.info("Ranked stack built owner=%s feed=%s size=%s", owner, feed, len(item_ids))
    unscored = registry.unscored_ids(owner, feed, context_key)
    if unscored:
        scores = score_best_effort(score_call, score_subject, unscored)
        if scores:
            registry.apply_scores(owner, feed, context_key, scores)
    page = registry.present(owner, feed, context_key, limit)
    if page is None:
        # Replaced by a concurrent request with other filters.
        transient = RankedStack(context_key, item_ids)
        page = {"locked": False, "remaining": len(transient), "cards": transient.presented(limit)}
    return {"context_key": context_key, **page}


def talent_feed(
    db: Session,
    user: User,
    ctx: SessionContext,
    scorer,
    *,
    location: Optional[str] = None,
    role_key: Optional[str] = None,
    listing_type: Optional[str] = None,
    registry: StackRegistry = stack_registry,
) -> Dict[str, Any]:
    require_talent(user)
    filters = {"location": location, "role_key": role_key, "listing_type": listing_type}
    context_key = build_context_key(filters, ctx.mode)
    ids = _talent_feed_ids(db, user, filters)
    page = _present(
        registry,
        user.id,
        TALENT_FEED,
        context_key,
        ids,
        scorer.score_listings_for_candidate,
        user.id,
        settings.FEED_STACK_SIZE,
    )
    card_ids = [card["id"] for card in page["cards"]]
    listings = {row.id: row for row in db.query(Listing).filter(Listing.id.in_(card_ids))} if card_ids else {}
    page["cards"] = [{**card, "listing": listings[card["id"]]} for card in page["cards"] if card["id"] in listings]
    return page


def candidate_feed(
    db: Session,
    user: User,
    listing_id: int,
    ctx: SessionContext,
    scorer,
    *,
    registry: StackRegistry = stack_registry,
) -> Dict[str, Any]:
    listing = get_listing(db, listing_id)
    require_org_member(db, listing.organization_id, user)
    context_key = build_context_key({"listing_id": listing.id}, ctx.mode)
    ids = _candidate_feed_ids(db, listing)
    page = _present(
        registry,
        user.id,
        candidate_feed_name(listing.id),
        context_key,
        ids,
        scorer.score_candidates_for_listing,
        listing.id,
        settings.FEED_STACK_SIZE,
    )
    card_ids = [card["id"] for card in page["cards"]]
    users = {row.id: row for row in db.query(User).filter(User.id.in_(card_ids))} if card_ids else {}
    profiles = (
        {row.user_id: row for row in db.query(TalentProfile).filter(TalentProfile.user_id.in_(card_ids))}
        if card_ids
        else {}
    )
    page["cards"] = [
        {
            **card,
            "talent_user_id": card["id"],
            "full_name": users[card["id"]].full_name,
            "location": getattr(profiles.get(card["id"]), "location", None),
            "role_key": getattr(profiles.get(card["id"]), "role_key", None),
        }
        for card in page["cards"]
        if card["id"] in users
    ]
    return page


def record_swipe_outcome(owner: int, feed: str, item_id: int, *, succeeded: bool, registry: StackRegistry = stack_registry) -> None:
    """Drop the swiped card, or discard the whole stack when the swipe failed."""
    if succeeded:
        registry.remove_item(owner, feed, item_id)
    else:
        registry.invalidate(owner, feed)
        logger.info("Ranked stack invalidated after failed swipe owner=%s feed=%s", owner, feed)
