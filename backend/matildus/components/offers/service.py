"""Formal offers: draft -> sent -> accepted | declined | withdrawn | expired.

SEND and RESPOND are single conditional updates on ``status``. While an offer
is sent or accepted it holds ``active_slot``, a unique key over
(org, talent, listing-or-match), so the database itself refuses a second
active offer for the same slot.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.listing import Listing, ListingType
from ...models.booking import BookingSource
from ...models.match import Match
from ...models.offer import ACTIVE_OFFER_STATUSES, Offer, OfferStatus, offer_slot_key
from ...models.user import User
from ...platform.errors import conflict, forbidden, invalid_status, not_found, validation
from ...platform.session_context import SessionContext
from ...shared.utils import commit_or_rollback, day_window, ensure_utc, utcnow
from ..identity.membership import is_org_member, require_org_member, require_talent_user
from ..matching.service import ensure_match
from ..notifications.events import OFFER_RESPONDED, OFFER_SENT, emit_event
from ..scheduling.service import add_booking, overlapping_booking

logger = logging.getLogger(__name__)

OFFER_TERM_FIELDS = (
    "message",
    "location",
    "role_title",
    "start_date",
    "end_date",
    "shift_start",
    "shift_end",
    "hours_per_week",
    "hourly_rate",
    "currency",
    "housing_included",
    "housing_note",
    "expires_at",
)

CONFLICT_MESSAGE = "An offer is already active for this match."


def _apply_terms(offer: Offer, data: Dict[str, Any]) -> None:
    for key in OFFER_TERM_FIELDS:
        if key in data and data[key] is not None:
            setattr(offer, key, data[key])
    if offer.expires_at is not None:
        offer.expires_at = ensure_utc(offer.expires_at)


def validate_terms(offer: Offer) -> None:
    """Required payload per listing type, checked before an offer leaves draft."""
    if offer.listing_type == ListingType.SHIFT_COVER.value:
        if offer.shift_start is None or offer.shift_end is None:
            raise validation("Shift cover offers need a shift start and end.", field="shift_start")
        if ensure_utc(offer.shift_end) <= ensure_utc(offer.shift_start):
            raise validation("Shift end must be after shift start.", field="shift_end")
    else:
        if not (offer.role_title or "").strip():
            raise validation("Add a role title before sending the offer.", field="role_title")
        if offer.start_date is None:
            raise validation("Add a start date before sending the offer.", field="start_date")
        if offer.end_date is not None and offer.end_date < offer.start_date:
            raise validation("End date must not be before start date.", field="end_date")
    if offer.hourly_rate is not None and offer.hourly_rate < 0:
        raise validation("Hourly rate cannot be negative.", field="hourly_rate")
    if offer.hours_per_week is not None and offer.hours_per_week <= 0:
        raise validation("Hours per week must be positive.", field="hours_per_week")


def booking_window(offer: Offer) -> Optional[tuple[datetime, datetime]]:
    if offer.shift_start is not None and offer.shift_end is not None:
        return ensure_utc(offer.shift_start), ensure_utc(offer.shift_end)
    if offer.start_date is not None:
        return day_window(offer.start_date, offer.end_date)
    return None


def get_offer(db: Session, offer_id: int) -> Offer:
    offer = db.query(Offer).filter(Offer.id == offer_id).first()
    if not offer:
        raise not_found("Offer not found.")
    return offer


def find_blocking_offer(db: Session, slot: str, *, exclude_id: Optional[int] = None) -> Optional[Offer]:
    query = db.query(Offer).filter(Offer.active_slot == slot, Offer.status.in_(ACTIVE_OFFER_STATUSES))
    if exclude_id is not None:
        query = query.filter(Offer.id != exclude_id)
    return query.first()


def _slot_for(offer: Offer) -> str:
    return offer_slot_key(offer.organization_id, offer.talent_user_id, offer.match_id, offer.listing_id)


# ---------------------------------------------------------------------------
# Employer side
# ---------------------------------------------------------------------------

def create_draft(
    db: Session,
    user: User,
    organization_id: int,
    talent_user_id: int,
    data: Dict[str, Any],
    ctx: SessionContext,
    *,
    match_id: Optional[int] = None,
    listing_id: Optional[int] = None,
) -> Offer:
    require_org_member(db, organization_id, user)
    require_talent_user(db, talent_user_id)

    listing: Optional[Listing] = None
    if match_id is not None:
        match = db.query(Match).filter(Match.id == match_id).first()
        if not match:
            raise not_found("Match not found.")
        if match.organization_id != organization_id:
            raise forbidden("This match belongs to another organization.")
        if match.talent_user_id != talent_user_id:
            raise validation("The match is with a different candidate.", field="talent_user_id")
        listing_id = match.listing_id
    if listing_id is not None:
        listing = db.query(Listing).filter(Listing.id == listing_id).first()
        if not listing:
            raise not_found("Job not found.")
        if listing.organization_id != organization_id:
            raise forbidden("This job belongs to another organization.")
        if match_id is None:
            existing_match = (
                db.query(Match.id)
                .filter(Match.listing_id == listing.id, Match.talent_user_id == talent_user_id)
                .first()
            )
            match_id = existing_match[0] if existing_match else None

    listing_type = data.get("listing_type") or (listing.listing_type if listing else ListingType.JOB.value)
    if listing_type not in {t.value for t in ListingType}:
        raise validation(f"Unknown listing type '{listing_type}'.", field="listing_type")

    offer = Offer(
        organization_id=organization_id,
        talent_user_id=talent_user_id,
        match_id=match_id,
        listing_id=listing_id,
        listing_type=listing_type,
        status=OfferStatus.DRAFT.value,
        created_by=user.id,
        demo_session_id=ctx.write_tag,
    )
    if listing is not None:
        offer.location = listing.location
        offer.role_title = listing.title
        offer.housing_included = bool(listing.housing_offered)
        offer.start_date = listing.start_date
        offer.end_date = listing.end_date
        if listing_type == ListingType.SHIFT_COVER.value:
            offer.shift_start = listing.shift_start
            offer.shift_end = listing.shift_end
    _apply_terms(offer, data)
    db.add(offer)
    commit_or_rollback(db, action="create_offer")
    db.refresh(offer)
    logger.info(
        "Offer draft created offer_id=%s org_id=%s talent_id=%s match_id=%s",
        offer.id,
        organization_id,
        talent_user_id,
        match_id,
    )
    return offer


def _require_offer_org_member(db: Session, offer: Offer, user: User) -> None:
    if not is_org_member(db, offer.organization_id, user.id):
        raise forbidden("You are not a member of the organization that made this offer.")


def update_draft(db: Session, user: User, offer_id: int, data: Dict[str, Any]) -> Offer:
    offer = get_offer(db, offer_id)
    _require_offer_org_member(db, offer, user)
    if offer.status != OfferStatus.DRAFT.value:
        raise invalid_status(f"Only drafts can be edited (offer is {offer.status}).", status=offer.status)
    _apply_terms(offer, data)
    commit_or_rollback(db, action="update_offer")
    db.refresh(offer)
    return offer


def check_conflict(db: Session, user: User, offer_id: int) -> Dict[str, Any]:
    """Dry run of the SEND conflict check."""
    offer = get_offer(db, offer_id)
    _require_offer_org_member(db, offer, user)
    blocking = find_blocking_offer(db, _slot_for(offer), exclude_id=offer.id)
    return {
        "offer_id": offer.id,
        "conflict": blocking is not None,
        "existing_offer_id": blocking.id if blocking else None,
        "existing_status": blocking.status if blocking else None,
    }


def send_offer(db: Session, user: User, offer_id: int) -> Offer:
    """SEND: draft -> sent, refused with ``conflict`` if the slot is taken."""
    offer = get_offer(db, offer_id)
    _require_offer_org_member(db, offer, user)
    if offer.status != OfferStatus.DRAFT.value:
        raise invalid_status(f"Only drafts can be sent (offer is {offer.status}).", status=offer.status)
    validate_terms(offer)
    if offer.expires_at is not None and ensure_utc(offer.expires_at) <= utcnow():
        raise validation("The expiry time is already in the past.", field="expires_at")

    slot = _slot_for(offer)
    try:
        updated = (
            db.query(Offer)
            .filter(Offer.id == offer.id, Offer.status == OfferStatus.DRAFT.value)
            .update(
                {Offer.status: OfferStatus.SENT.value, Offer.active_slot: slot, Offer.sent_at: utcnow()},
                synchronize_session=False,
            )
        )
        if updated == 0:
            db.rollback()
            db.refresh(offer)
            raise invalid_status(f"Only drafts can be sent (offer is {offer.status}).", status=offer.status)
        commit_or_rollback(db, action="send_offer")
    except IntegrityError:
        db.rollback()
        blocking = find_blocking_offer(db, slot, exclude_id=offer.id)
        logger.warning(
            "Offer send refused offer_id=%s slot=%s blocking_offer_id=%s",
            offer.id,
            slot,
            blocking.id if blocking else None,
        )
        raise conflict(CONFLICT_MESSAGE, existing_offer_id=blocking.id if blocking else None)
    db.refresh(offer)
    logger.info("Offer sent offer_id=%s talent_id=%s", offer.id, offer.talent_user_id)
    emit_event(
        OFFER_SENT,
        offer_id=offer.id,
        organization_id=offer.organization_id,
        talent_user_id=offer.talent_user_id,
        match_id=offer.match_id,
    )
    return offer


def withdraw_offer(db: Session, user: User, offer_id: int) -> Offer:
    """WITHDRAW: draft|sent -> withdrawn. Frees the slot."""
    offer = get_offer(db, offer_id)
    _require_offer_org_member(db, offer, user)
    updated = (
        db.query(Offer)
        .filter(Offer.id == offer.id, Offer.status.in_((OfferStatus.DRAFT.value, OfferStatus.SENT.value)))
        .update(
            {Offer.status: OfferStatus.WITHDRAWN.value, Offer.active_slot: None, Offer.responded_at: utcnow()},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(offer)
        raise invalid_status(f"This offer can no longer be withdrawn (it is {offer.status}).", status=offer.status)
    commit_or_rollback(db, action="withdraw_offer")
    db.refresh(offer)
    logger.info("Offer withdrawn offer_id=%s", offer.id)
    return offer


# ---------------------------------------------------------------------------
# Candidate side
# ---------------------------------------------------------------------------

def _expire_if_overdue(db: Session, offer: Offer) -> None:
    if offer.expires_at is None or ensure_utc(offer.expires_at) > utcnow():
        return
    (
        db.query(Offer)
        .filter(Offer.id == offer.id, Offer.status == OfferStatus.SENT.value)
        .update({Offer.status: OfferStatus.EXPIRED.value, Offer.active_slot: None}, synchronize_session=False)
    )
    commit_or_rollback(db, action="expire_offer")
    logger.info("Offer expired on response offer_id=%s", offer.id)
    raise invalid_status("This offer has expired.", status=OfferStatus.EXPIRED.value)


def respond_offer(db: Session, user: User, offer_id: int, accept: bool, ctx: SessionContext) -> Offer:
    """RESPOND: sent -> accepted | declined, by the addressed candidate only."""
    offer = get_offer(db, offer_id)
    if offer.talent_user_id != user.id:
        raise forbidden("This offer is addressed to someone else.")
    if offer.status != OfferStatus.SENT.value:
        raise invalid_status(f"This offer is {offer.status} and can no longer be answered.", status=offer.status)
    _expire_if_overdue(db, offer)

    now = utcnow()
    values: Dict[Any, Any] = {Offer.responded_at: now}
    if accept:
        values[Offer.status] = OfferStatus.ACCEPTED.value
    else:
        values[Offer.status] = OfferStatus.DECLINED.value
        values[Offer.active_slot] = None
    updated = (
        db.query(Offer)
        .filter(
            Offer.id == offer.id,
            Offer.talent_user_id == user.id,
            Offer.status == OfferStatus.SENT.value,
        )
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(offer)
        raise invalid_status(f"This offer is {offer.status} and can no longer be answered.", status=offer.status)

    if accept:
        window = booking_window(offer)
        if window is not None:
            clash = overlapping_booking(db, user.id, *window)
            if clash is not None:
                db.rollback()
                raise conflict("You are already booked during this offer's dates.", existing_booking_id=clash.id)
            booking = add_booking(
                db,
                organization_id=offer.organization_id,
                talent_user_id=user.id,
                start=window[0],
                end=window[1],
                source=BookingSource.OFFER.value,
                created_by=user.id,
                ctx=ctx,
            )
            db.query(Offer).filter(Offer.id == offer.id).update(
                {Offer.booking_id: booking.id}, synchronize_session=False
            )
    commit_or_rollback(db, action="respond_offer")
    db.refresh(offer)
    logger.info("Offer %s offer_id=%s booking_id=%s", offer.status, offer.id, offer.booking_id)

    if accept and offer.listing_id is not None and offer.match_id is None:
        listing = db.query(Listing).filter(Listing.id == offer.listing_id).first()
        if listing is not None:
            match, _ = ensure_match(db, listing, user.id, ctx)
            db.query(Offer).filter(Offer.id == offer.id).update({Offer.match_id: match.id}, synchronize_session=False)
            commit_or_rollback(db, action="link_offer_match")
            db.refresh(offer)

    emit_event(
        OFFER_RESPONDED,
        offer_id=offer.id,
        organization_id=offer.organization_id,
        talent_user_id=offer.talent_user_id,
        status=offer.status,
        booking_id=offer.booking_id,
    )
    return offer


# ---------------------------------------------------------------------------
# Reads and sweeps
# ---------------------------------------------------------------------------

def get_offer_for_user(db: Session, user: User, offer_id: int) -> Offer:
    offer = get_offer(db, offer_id)
    if offer.talent_user_id == user.id and offer.status != OfferStatus.DRAFT.value:
        return offer
    if is_org_member(db, offer.organization_id, user.id):
        return offer
    raise not_found("Offer not found.")


def list_received_offers(db: Session, user: User, status: Optional[str] = None) -> List[Offer]:
    query = db.query(Offer).filter(Offer.talent_user_id == user.id, Offer.status != OfferStatus.DRAFT.value)
    if status:
        query = query.filter(Offer.status == status)
    return query.order_by(Offer.sent_at.desc(), Offer.id.desc()).all()


def list_org_offers(db: Session, user: User, organization_id: int, status: Optional[str] = None) -> List[Offer]:
    require_org_member(db, organization_id, user)
    query = db.query(Offer).filter(Offer.organization_id == organization_id)
    if status:
        query = query.filter(Offer.status == status)
    return query.order_by(Offer.created_at.desc(), Offer.id.desc()).all()


def expire_overdue_offers(db: Session, now: Optional[datetime] = None) -> int:
    """Passive sent -> expired for offers past ``expires_at``."""
    cutoff = now or utcnow()
    expired = (
        db.query(Offer)
        .filter(
            Offer.status == OfferStatus.SENT.value,
            Offer.expires_at.isnot(None),
            Offer.expires_at <= cutoff,
        )
        .update({Offer.status: OfferStatus.EXPIRED.value, Offer.active_slot: None}, synchronize_session=False)
    )
    commit_or_rollback(db, action="expire_offers")
    if expired:
        logger.info("Expired %s overdue offers", expired)
    return expired
