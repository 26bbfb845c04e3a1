"""Listing creation and status changes for employer organizations."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ...models.listing import FEED_VISIBLE_STATUSES, Listing, ListingStatus, ListingType
from ...models.user import User
from ...platform.errors import invalid_status, not_found, validation
from ...platform.session_context import SessionContext
from ...shared.utils import commit_or_rollback, ensure_utc, same_location
from ..identity.membership import require_org_member

logger = logging.getLogger(__name__)

LISTING_FIELDS = (
    "title",
    "role_key",
    "listing_type",
    "location",
    "description",
    "start_date",
    "end_date",
    "shift_start",
    "shift_end",
    "housing_offered",
    "required_badges",
)


def _validate_listing_terms(data: Dict[str, Any]) -> None:
    listing_type = data.get("listing_type") or ListingType.JOB.value
    if listing_type not in {t.value for t in ListingType}:
        raise validation(f"Unknown listing type '{listing_type}'.", field="listing_type")
    if not (data.get("title") or "").strip():
        raise validation("Title is required.", field="title")
    if not (data.get("role_key") or "").strip():
        raise validation("Role is required.", field="role_key")
    if listing_type == ListingType.SHIFT_COVER.value:
        if not data.get("shift_start") or not data.get("shift_end"):
            raise validation("Shift cover listings need a shift start and end.", field="shift_start")
        if ensure_utc(data["shift_end"]) <= ensure_utc(data["shift_start"]):
            raise validation("Shift end must be after shift start.", field="shift_end")
    start, end = data.get("start_date"), data.get("end_date")
    if start and end and end < start:
        raise validation("End date must not be before start date.", field="end_date")


def get_listing(db: Session, listing_id: int) -> Listing:
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise not_found("Job not found.")
    return listing


def create_listing(
    db: Session,
    user: User,
    organization_id: int,
    data: Dict[str, Any],
    ctx: SessionContext,
    *,
    publish: bool = False,
) -> Listing:
    require_org_member(db, organization_id, user)
    _validate_listing_terms(data)
    listing = Listing(
        organization_id=organization_id,
        created_by=user.id,
        status=(ListingStatus.PUBLISHED if publish else ListingStatus.DRAFT).value,
        demo_session_id=ctx.write_tag,
        **{key: data.get(key) for key in LISTING_FIELDS if key in data},
    )
    listing.role_key = (listing.role_key or "").strip().lower()
    if not listing.listing_type:
        listing.listing_type = ListingType.JOB.value
    db.add(listing)
    commit_or_rollback(db, action="create_listing")
    db.refresh(listing)
    logger.info("Listing created listing_id=%s org_id=%s status=%s", listing.id, organization_id, listing.status)
    return listing


def _transition(db: Session, listing: Listing, *, allowed_from: tuple, to_status: str, action: str) -> Listing:
    updated = (
        db.query(Listing)
        .filter(Listing.id == listing.id, Listing.status.in_(allowed_from))
        .update({Listing.status: to_status}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(listing)
        raise invalid_status(f"Cannot {action} a listing that is {listing.status}.", status=listing.status)
    commit_or_rollback(db, action=f"{action}_listing")
    db.refresh(listing)
    logger.info("Listing %s listing_id=%s status=%s", action, listing.id, listing.status)
    return listing


def publish_listing(db: Session, user: User, listing_id: int) -> Listing:
    listing = get_listing(db, listing_id)
    require_org_member(db, listing.organization_id, user)
    return _transition(
        db, listing, allowed_from=(ListingStatus.DRAFT.value,), to_status=ListingStatus.PUBLISHED.value, action="publish"
    )


def close_listing(db: Session, user: User, listing_id: int) -> Listing:
    listing = get_listing(db, listing_id)
    require_org_member(db, listing.organization_id, user)
    return _transition(
        db,
        listing,
        allowed_from=(ListingStatus.DRAFT.value, ListingStatus.PUBLISHED.value, ListingStatus.MATCHING.value),
        to_status=ListingStatus.CLOSED.value,
        action="close",
    )


def mark_matching(db: Session, listing_id: int) -> bool:
    """published -> matching after the first match. Caller owns the commit."""
    return bool(
        db.query(Listing)
        .filter(Listing.id == listing_id, Listing.status == ListingStatus.PUBLISHED.value)
        .update({Listing.status: ListingStatus.MATCHING.value}, synchronize_session=False)
    )


def list_org_listings(db: Session, user: User, organization_id: int, status: Optional[str] = None) -> List[Listing]:
    require_org_member(db, organization_id, user)
    query = db.query(Listing).filter(Listing.organization_id == organization_id)
    if status:
        query = query.filter(Listing.status == status)
    return query.order_by(Listing.created_at.desc(), Listing.id.desc()).all()


def feed_listings_query(
    db: Session,
    *,
    location: Optional[str] = None,
    role_key: Optional[str] = None,
    listing_type: Optional[str] = None,
):
    query = db.query(Listing).filter(Listing.status.in_(FEED_VISIBLE_STATUSES))
    if location:
        query = query.filter(same_location(Listing.location, location))
    if role_key:
        query = query.filter(Listing.role_key == role_key.strip().lower())
    if listing_type:
        query = query.filter(Listing.listing_type == listing_type)
    return query
