"""Borrow allocation: broadcast a staffing shortfall to a scoped pool.

The pool is decided by the request's scope, fixed at creation:

* ``internal``: talents already matched with the requesting org
* ``circle``: talents matched with trusted partner orgs (optionally one named
  circle) whose visibility is ``circle_only`` or ``public``
* ``local``: ``public`` talents in the request's location

Accepting is the contended step. It is one transaction of conditional updates:
request open -> filled, then offer pending -> accepted. Whoever loses the first
update sees zero affected rows and gets ``conflict``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ...models.booking import BookingSource
from ...models.borrow import BorrowOffer, BorrowOfferStatus, BorrowRequest, BorrowRequestStatus, BorrowScope
from ...models.circle import Circle
from ...models.match import Match
from ...models.talent import TalentProfile, VisibilityScope
from ...models.user import User
from ...platform.errors import conflict, forbidden, invalid_status, not_found, validation
from ...platform.session_context import SessionContext
from ...shared.utils import commit_or_rollback, same_location, utcnow
from ..circles.service import circle_member_org_ids, trusted_partner_ids
from ..identity.membership import require_org_member
from ..notifications.events import BORROW_OFFER_RECEIVED, BORROW_REQUEST_FILLED, emit_event
from ..scheduling.service import add_booking, overlapping_booking, unavailable_talent_ids, validate_window

logger = logging.getLogger(__name__)

CIRCLE_VISIBLE_SCOPES = (VisibilityScope.CIRCLE_ONLY.value, VisibilityScope.PUBLIC.value)


# ---------------------------------------------------------------------------
# Pool resolution
# ---------------------------------------------------------------------------

def _matched_talent_ids(db: Session, organization_ids: List[int]) -> List[int]:
    if not organization_ids:
        return []
    rows = db.query(Match.talent_user_id).filter(Match.organization_id.in_(organization_ids)).distinct().all()
    return [row[0] for row in rows]


def _with_visibility(db: Session, talent_ids: List[int], allowed: tuple) -> List[int]:
    """Keep talents whose profile visibility is in ``allowed``.

    A talent without a profile has the default visibility (public).
    """
    if not talent_ids:
        return []
    profiles = dict(
        db.query(TalentProfile.user_id, TalentProfile.visibility_scope)
        .filter(TalentProfile.user_id.in_(talent_ids))
        .all()
    )
    return [
        talent_id
        for talent_id in talent_ids
        if profiles.get(talent_id, VisibilityScope.PUBLIC.value) in allowed
    ]


def eligible_talent_ids(
    db: Session,
    *,
    organization_id: int,
    scope: str,
    location: str,
    start: datetime,
    end: datetime,
    circle_id: Optional[int] = None,
) -> List[int]:
    if scope == BorrowScope.INTERNAL.value:
        candidates = _matched_talent_ids(db, [organization_id])
    elif scope == BorrowScope.CIRCLE.value:
        partners = trusted_partner_ids(db, organization_id)
        if circle_id is not None:
            members = set(circle_member_org_ids(db, circle_id))
            partners = [org_id for org_id in partners if org_id in members]
        candidates = _with_visibility(db, _matched_talent_ids(db, partners), CIRCLE_VISIBLE_SCOPES)
    elif scope == BorrowScope.LOCAL.value:
        rows = (
            db.query(TalentProfile.user_id)
            .filter(
                same_location(TalentProfile.location, location),
                TalentProfile.visibility_scope == VisibilityScope.PUBLIC.value,
            )
            .all()
        )
        candidates = [row[0] for row in rows]
    else:
        raise validation(f"Unknown borrow scope '{scope}'.", field="scope")

    busy = unavailable_talent_ids(db, candidates, start, end)
    return sorted(set(candidates) - busy)


def resolve_pool(db: Session, request: BorrowRequest) -> List[int]:
    """Eligible talents for ``request`` under its own (immutable) scope."""
    return eligible_talent_ids(
        db,
        organization_id=request.organization_id,
        scope=request.scope,
        location=request.location,
        start=request.start_ts,
        end=request.end_ts,
        circle_id=request.circle_id,
    )


def pool_counts(
    db: Session,
    user: User,
    organization_id: int,
    *,
    location: str,
    start: datetime,
    end: datetime,
    circle_id: Optional[int] = None,
) -> Dict[str, int]:
    """How many talents each scope would reach for a prospective request."""
    require_org_member(db, organization_id, user)
    start, end = validate_window(start, end)
    return {
        scope.value: len(
            eligible_talent_ids(
                db,
                organization_id=organization_id,
                scope=scope.value,
                location=location,
                start=start,
                end=end,
                circle_id=circle_id if scope == BorrowScope.CIRCLE else None,
            )
        )
        for scope in BorrowScope
    }


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

def get_request(db: Session, request_id: int) -> BorrowRequest:
    request = db.query(BorrowRequest).filter(BorrowRequest.id == request_id).first()
    if not request:
        raise not_found("Borrow request not found.")
    return request


def create_request(db: Session, user: User, organization_id: int, data: Dict[str, Any], ctx: SessionContext) -> BorrowRequest:
    require_org_member(db, organization_id, user)
    location = (data.get("location") or "").strip()
    role_key = (data.get("role_key") or "").strip().lower()
    if not location:
        raise validation("Location is required.", field="location")
    if not role_key:
        raise validation("Role is required.", field="role_key")
    start, end = validate_window(data.get("start_ts"), data.get("end_ts"))
    scope = data.get("scope") or BorrowScope.LOCAL.value
    if scope not in {s.value for s in BorrowScope}:
        raise validation(f"Unknown borrow scope '{scope}'.", field="scope")

    circle_id = data.get("circle_id")
    if circle_id is not None:
        if scope != BorrowScope.CIRCLE.value:
            raise validation("A circle can only be chosen for circle-scoped requests.", field="circle_id")
        circle = db.query(Circle).filter(Circle.id == circle_id).first()
        if not circle:
            raise not_found("Circle not found.")
        if circle.owner_org_id != organization_id:
            raise forbidden("This circle belongs to another organization.")

    request = BorrowRequest(
        organization_id=organization_id,
        created_by=user.id,
        location=location,
        role_key=role_key,
        start_ts=start,
        end_ts=end,
        message=data.get("message"),
        scope=scope,
        circle_id=circle_id,
        status=BorrowRequestStatus.OPEN.value,
        demo_session_id=ctx.write_tag,
    )
    db.add(request)
    commit_or_rollback(db, action="create_borrow_request")
    db.refresh(request)
    logger.info(
        "Borrow request created request_id=%s org_id=%s scope=%s circle_id=%s",
        request.id,
        organization_id,
        scope,
        circle_id,
    )
    return request


def fan_out(db: Session, user: User, request_id: int, ctx: SessionContext) -> Dict[str, Any]:
    """One pending offer per eligible talent; re-running never duplicates."""
    request = get_request(db, request_id)
    require_org_member(db, request.organization_id, user)
    if request.status != BorrowRequestStatus.OPEN.value:
        raise invalid_status(f"This request is {request.status}.", status=request.status)

    pool = resolve_pool(db, request)
    created: List[BorrowOffer] = []
    for attempt in range(2):
        already = {
            row[0]
            for row in db.query(BorrowOffer.talent_user_id).filter(BorrowOffer.borrow_request_id == request.id)
        }
        created = [
            BorrowOffer(
                borrow_request_id=request.id,
                talent_user_id=talent_id,
                status=BorrowOfferStatus.PENDING.value,
                demo_session_id=ctx.write_tag,
            )
            for talent_id in pool
            if talent_id not in already
        ]
        db.add_all(created)
        try:
            commit_or_rollback(db, action="borrow_fan_out")
            break
        except IntegrityError:
            # A parallel fan-out inserted some of the same talents.
            if attempt:
                raise
            logger.info("Borrow fan-out retry after concurrent insert request_id=%s", request.id)

    for offer in created:
        db.refresh(offer)
        emit_event(
            BORROW_OFFER_RECEIVED,
            borrow_offer_id=offer.id,
            borrow_request_id=request.id,
            talent_user_id=offer.talent_user_id,
            organization_id=request.organization_id,
        )
    total = db.query(func.count(BorrowOffer.id)).filter(BorrowOffer.borrow_request_id == request.id).scalar() or 0
    logger.info(
        "Borrow fan-out request_id=%s pool=%s created=%s total=%s", request.id, len(pool), len(created), total
    )
    return {"request_id": request.id, "pool_size": len(pool), "created": created, "total_offers": total}


def close_request(db: Session, user: User, request_id: int) -> BorrowRequest:
    """CLOSE: open -> closed without an acceptance."""
    request = get_request(db, request_id)
    require_org_member(db, request.organization_id, user)
    now = utcnow()
    updated = (
        db.query(BorrowRequest)
        .filter(BorrowRequest.id == request.id, BorrowRequest.status == BorrowRequestStatus.OPEN.value)
        .update(
            {BorrowRequest.status: BorrowRequestStatus.CLOSED.value, BorrowRequest.closed_at: now},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(request)
        raise invalid_status(f"This request is already {request.status}.", status=request.status)
    _close_pending_offers(db, [request.id], now)
    commit_or_rollback(db, action="close_borrow_request")
    db.refresh(request)
    logger.info("Borrow request closed request_id=%s", request.id)
    return request


def _close_pending_offers(db: Session, request_ids: List[int], now: datetime) -> int:
    return (
        db.query(BorrowOffer)
        .filter(
            BorrowOffer.borrow_request_id.in_(request_ids),
            BorrowOffer.status == BorrowOfferStatus.PENDING.value,
        )
        .update(
            {BorrowOffer.status: BorrowOfferStatus.CLOSED.value, BorrowOffer.responded_at: now},
            synchronize_session=False,
        )
    )


def expire_requests(db: Session, now: Optional[datetime] = None) -> int:
    """Close open requests whose window has ended, with their pending offers."""
    cutoff = now or utcnow()
    ids = [
        row[0]
        for row in db.query(BorrowRequest.id).filter(
            BorrowRequest.status == BorrowRequestStatus.OPEN.value,
            BorrowRequest.end_ts <= cutoff,
        )
    ]
    if not ids:
        return 0
    closed = (
        db.query(BorrowRequest)
        .filter(BorrowRequest.id.in_(ids), BorrowRequest.status == BorrowRequestStatus.OPEN.value)
        .update(
            {BorrowRequest.status: BorrowRequestStatus.CLOSED.value, BorrowRequest.closed_at: cutoff},
            synchronize_session=False,
        )
    )
    _close_pending_offers(db, ids, cutoff)
    commit_or_rollback(db, action="expire_borrow_requests")
    logger.info("Closed %s expired borrow requests", closed)
    return closed


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------

def get_borrow_offer(db: Session, offer_id: int) -> BorrowOffer:
    offer = db.query(BorrowOffer).filter(BorrowOffer.id == offer_id).first()
    if not offer:
        raise not_found("Borrow offer not found.")
    return offer


def accept_borrow_offer(db: Session, user: User, offer_id: int, ctx: SessionContext) -> BorrowOffer:
    """ACCEPT: the first accepted offer fills the request; siblings close."""
    offer = get_borrow_offer(db, offer_id)
    if offer.talent_user_id != user.id:
        raise forbidden("This shift was offered to someone else.")
    request = offer.request
    now = utcnow()

    filled = (
        db.query(BorrowRequest)
        .filter(BorrowRequest.id == request.id, BorrowRequest.status == BorrowRequestStatus.OPEN.value)
        .update(
            {
                BorrowRequest.status: BorrowRequestStatus.FILLED.value,
                BorrowRequest.filled_by_offer_id: offer.id,
                BorrowRequest.closed_at: now,
            },
            synchronize_session=False,
        )
    )
    if filled == 0:
        db.rollback()
        db.refresh(request)
        if request.status == BorrowRequestStatus.FILLED.value:
            logger.warning("Borrow accept lost the race offer_id=%s request_id=%s", offer.id, request.id)
            raise conflict("Someone else already took this shift.", filled_by_offer_id=request.filled_by_offer_id)
        raise invalid_status(f"This request is {request.status}.", status=request.status)

    accepted = (
        db.query(BorrowOffer)
        .filter(BorrowOffer.id == offer.id, BorrowOffer.status == BorrowOfferStatus.PENDING.value)
        .update(
            {
                BorrowOffer.status: BorrowOfferStatus.ACCEPTED.value,
                BorrowOffer.accepted_request_id: request.id,
                BorrowOffer.responded_at: now,
            },
            synchronize_session=False,
        )
    )
    if accepted == 0:
        db.rollback()
        db.refresh(offer)
        raise invalid_status(f"This offer is already {offer.status}.", status=offer.status)

    clash = overlapping_booking(db, user.id, request.start_ts, request.end_ts)
    if clash is not None:
        db.rollback()
        raise conflict("You are already booked during this shift.", existing_booking_id=clash.id)

    db.query(BorrowOffer).filter(
        BorrowOffer.borrow_request_id == request.id,
        BorrowOffer.id != offer.id,
        BorrowOffer.status == BorrowOfferStatus.PENDING.value,
    ).update(
        {BorrowOffer.status: BorrowOfferStatus.CLOSED.value, BorrowOffer.responded_at: now},
        synchronize_session=False,
    )
    booking = add_booking(
        db,
        organization_id=request.organization_id,
        talent_user_id=user.id,
        start=request.start_ts,
        end=request.end_ts,
        source=BookingSource.BORROW.value,
        created_by=user.id,
        ctx=ctx,
    )
    db.query(BorrowOffer).filter(BorrowOffer.id == offer.id).update(
        {BorrowOffer.booking_id: booking.id}, synchronize_session=False
    )
    try:
        commit_or_rollback(db, action="accept_borrow_offer")
    except IntegrityError:
        logger.warning("Borrow accept refused by unique acceptance offer_id=%s", offer.id)
        raise conflict("Someone else already took this shift.")
    db.refresh(offer)
    db.refresh(request)
    logger.info(
        "Borrow offer accepted offer_id=%s request_id=%s booking_id=%s", offer.id, request.id, booking.id
    )
    emit_event(
        BORROW_REQUEST_FILLED,
        borrow_request_id=request.id,
        borrow_offer_id=offer.id,
        organization_id=request.organization_id,
        talent_user_id=user.id,
        booking_id=booking.id,
    )
    return offer


def decline_borrow_offer(db: Session, user: User, offer_id: int) -> BorrowOffer:
    """DECLINE: pending -> declined. The request and siblings are untouched."""
    offer = get_borrow_offer(db, offer_id)
    if offer.talent_user_id != user.id:
        raise forbidden("This shift was offered to someone else.")
    updated = (
        db.query(BorrowOffer)
        .filter(BorrowOffer.id == offer.id, BorrowOffer.status == BorrowOfferStatus.PENDING.value)
        .update(
            {BorrowOffer.status: BorrowOfferStatus.DECLINED.value, BorrowOffer.responded_at: utcnow()},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(offer)
        raise invalid_status(f"This offer is already {offer.status}.", status=offer.status)
    commit_or_rollback(db, action="decline_borrow_offer")
    db.refresh(offer)
    logger.info("Borrow offer declined offer_id=%s", offer.id)
    return offer


def list_org_requests(db: Session, user: User, organization_id: int, status: Optional[str] = None) -> List[BorrowRequest]:
    require_org_member(db, organization_id, user)
    query = (
        db.query(BorrowRequest)
        .options(selectinload(BorrowRequest.offers))
        .filter(BorrowRequest.organization_id == organization_id)
    )
    if status:
        query = query.filter(BorrowRequest.status == status)
    return query.order_by(BorrowRequest.start_ts.asc(), BorrowRequest.id.asc()).all()


def get_request_for_user(db: Session, user: User, request_id: int) -> BorrowRequest:
    request = get_request(db, request_id)
    require_org_member(db, request.organization_id, user)
    return request


def list_my_borrow_offers(db: Session, user: User, *, pending_only: bool = True) -> List[BorrowOffer]:
    query = (
        db.query(BorrowOffer)
        .join(BorrowRequest, BorrowRequest.id == BorrowOffer.borrow_request_id)
        .options(selectinload(BorrowOffer.request))
        .filter(BorrowOffer.talent_user_id == user.id)
    )
    if pending_only:
        query = query.filter(
            BorrowOffer.status == BorrowOfferStatus.PENDING.value,
            BorrowRequest.status == BorrowRequestStatus.OPEN.value,
        )
    return query.order_by(BorrowRequest.start_ts.asc(), BorrowOffer.id.asc()).all()
