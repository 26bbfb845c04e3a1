"""Bookings, talent availability and released shifts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ...models.booking import BookingSource, BookingStatus, ReleaseOffer, ReleaseOfferStatus, ShiftBooking
from ...models.talent import BusyBlock, TalentProfile, VisibilityScope
from ...models.user import User
from ...platform.errors import conflict, forbidden, invalid_status, not_found, validation
from ...platform.session_context import SessionContext
from ...shared.utils import commit_or_rollback, ensure_utc, utcnow
from ..circles.service import is_trusted, trusted_partner_ids
from ..identity.membership import is_org_member, require_org_member, require_talent, require_talent_user
from ..notifications.events import RELEASE_OFFER_TAKEN, emit_event

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("location", "role_key", "skills", "housing_needed", "visibility_scope", "available_for_extra_hours")


def validate_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Check the window and return it normalized to UTC."""
    if start is None or end is None:
        raise validation("A start and end time are required.", field="start_ts")
    if ensure_utc(end) <= ensure_utc(start):
        raise validation("End time must be after start time.", field="end_ts")
    return ensure_utc(start), ensure_utc(end)


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

def overlapping_booking(
    db: Session, talent_user_id: int, start: datetime, end: datetime
) -> Optional[ShiftBooking]:
    return (
        db.query(ShiftBooking)
        .filter(
            ShiftBooking.talent_user_id == talent_user_id,
            ShiftBooking.status == BookingStatus.ACTIVE.value,
            ShiftBooking.start_ts < end,
            ShiftBooking.end_ts > start,
        )
        .order_by(ShiftBooking.start_ts.asc())
        .first()
    )


def unavailable_talent_ids(db: Session, talent_ids: Iterable[int], start: datetime, end: datetime) -> Set[int]:
    """Talents with an active booking or busy block overlapping [start, end)."""
    ids = list(set(talent_ids))
    if not ids:
        return set()
    booked = db.query(ShiftBooking.talent_user_id).filter(
        ShiftBooking.talent_user_id.in_(ids),
        ShiftBooking.status == BookingStatus.ACTIVE.value,
        ShiftBooking.start_ts < end,
        ShiftBooking.end_ts > start,
    )
    blocked = db.query(BusyBlock.talent_user_id).filter(
        BusyBlock.talent_user_id.in_(ids),
        BusyBlock.start_ts < end,
        BusyBlock.end_ts > start,
    )
    return {row[0] for row in booked.all()} | {row[0] for row in blocked.all()}


def add_booking(
    db: Session,
    *,
    organization_id: int,
    talent_user_id: int,
    start: datetime,
    end: datetime,
    source: str,
    created_by: Optional[int],
    ctx: SessionContext,
) -> ShiftBooking:
    """Stage a booking in the caller's transaction (no commit)."""
    booking = ShiftBooking(
        organization_id=organization_id,
        talent_user_id=talent_user_id,
        start_ts=start,
        end_ts=end,
        status=BookingStatus.ACTIVE.value,
        source=source,
        created_by=created_by,
        demo_session_id=ctx.write_tag,
    )
    db.add(booking)
    db.flush()
    return booking


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------

def create_direct_booking(
    db: Session,
    user: User,
    organization_id: int,
    talent_user_id: int,
    start: datetime,
    end: datetime,
    ctx: SessionContext,
) -> ShiftBooking:
    require_org_member(db, organization_id, user)
    require_talent_user(db, talent_user_id)
    start, end = validate_window(start, end)
    clash = overlapping_booking(db, talent_user_id, start, end)
    if clash is not None:
        logger.warning("Booking refused talent_id=%s overlaps booking_id=%s", talent_user_id, clash.id)
        raise conflict("This person is already booked during that time.", existing_booking_id=clash.id)
    if talent_user_id in unavailable_talent_ids(db, [talent_user_id], start, end):
        raise conflict("This person has marked that time as unavailable.")
    booking = add_booking(
        db,
        organization_id=organization_id,
        talent_user_id=talent_user_id,
        start=start,
        end=end,
        source=BookingSource.DIRECT.value,
        created_by=user.id,
        ctx=ctx,
    )
    commit_or_rollback(db, action="create_booking")
    db.refresh(booking)
    logger.info("Booking created booking_id=%s org_id=%s talent_id=%s", booking.id, organization_id, talent_user_id)
    return booking


def get_booking(db: Session, booking_id: int) -> ShiftBooking:
    booking = db.query(ShiftBooking).filter(ShiftBooking.id == booking_id).first()
    if not booking:
        raise not_found("Booking not found.")
    return booking


def cancel_booking(db: Session, user: User, booking_id: int) -> ShiftBooking:
    booking = get_booking(db, booking_id)
    require_org_member(db, booking.organization_id, user)
    updated = (
        db.query(ShiftBooking)
        .filter(ShiftBooking.id == booking.id, ShiftBooking.status == BookingStatus.ACTIVE.value)
        .update({ShiftBooking.status: BookingStatus.CANCELLED.value}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(booking)
        raise invalid_status(f"This booking is already {booking.status}.", status=booking.status)
    commit_or_rollback(db, action="cancel_booking")
    db.refresh(booking)
    logger.info("Booking cancelled booking_id=%s", booking.id)
    return booking


def list_org_bookings(
    db: Session,
    user: User,
    organization_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    include_inactive: bool = False,
) -> List[ShiftBooking]:
    require_org_member(db, organization_id, user)
    query = db.query(ShiftBooking).filter(ShiftBooking.organization_id == organization_id)
    if not include_inactive:
        query = query.filter(ShiftBooking.status == BookingStatus.ACTIVE.value)
    if end is not None:
        query = query.filter(ShiftBooking.start_ts < end)
    if start is not None:
        query = query.filter(ShiftBooking.end_ts > start)
    return query.order_by(ShiftBooking.start_ts.asc(), ShiftBooking.id.asc()).all()


def list_my_bookings(db: Session, user: User) -> List[ShiftBooking]:
    return (
        db.query(ShiftBooking)
        .filter(ShiftBooking.talent_user_id == user.id, ShiftBooking.status == BookingStatus.ACTIVE.value)
        .order_by(ShiftBooking.start_ts.asc(), ShiftBooking.id.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# Talent profile and busy blocks
# ---------------------------------------------------------------------------

def get_or_create_profile(db: Session, user: User) -> TalentProfile:
    require_talent(user)
    profile = db.query(TalentProfile).filter(TalentProfile.user_id == user.id).first()
    if profile is None:
        profile = TalentProfile(user_id=user.id, visibility_scope=VisibilityScope.PUBLIC.value)
        db.add(profile)
        commit_or_rollback(db, action="create_talent_profile")
        db.refresh(profile)
    return profile


def update_profile(db: Session, user: User, data: Dict[str, Any]) -> TalentProfile:
    profile = get_or_create_profile(db, user)
    visibility = data.get("visibility_scope")
    if visibility is not None and visibility not in {scope.value for scope in VisibilityScope}:
        raise validation(f"Unknown visibility '{visibility}'.", field="visibility_scope")
    for key in PROFILE_FIELDS:
        if key in data and data[key] is not None:
            setattr(profile, key, data[key])
    if profile.role_key:
        profile.role_key = profile.role_key.strip().lower()
    commit_or_rollback(db, action="update_talent_profile")
    db.refresh(profile)
    logger.info("Talent profile updated user_id=%s visibility=%s", user.id, profile.visibility_scope)
    return profile


def add_busy_block(db: Session, user: User, start: datetime, end: datetime, reason: Optional[str] = None) -> BusyBlock:
    require_talent(user)
    start, end = validate_window(start, end)
    block = BusyBlock(talent_user_id=user.id, start_ts=start, end_ts=end, reason=reason)
    db.add(block)
    commit_or_rollback(db, action="add_busy_block")
    db.refresh(block)
    return block


def list_busy_blocks(db: Session, user: User) -> List[BusyBlock]:
    return (
        db.query(BusyBlock)
        .filter(BusyBlock.talent_user_id == user.id)
        .order_by(BusyBlock.start_ts.asc())
        .all()
    )


def delete_busy_block(db: Session, user: User, block_id: int) -> None:
    block = db.query(BusyBlock).filter(BusyBlock.id == block_id).first()
    if not block:
        raise not_found("Busy block not found.")
    if block.talent_user_id != user.id:
        raise forbidden("You can only remove your own busy blocks.")
    db.delete(block)
    commit_or_rollback(db, action="delete_busy_block")


# ---------------------------------------------------------------------------
# Release offers
# ---------------------------------------------------------------------------

def get_release_offer(db: Session, release_id: int) -> ReleaseOffer:
    release = db.query(ReleaseOffer).filter(ReleaseOffer.id == release_id).first()
    if not release:
        raise not_found("Released shift not found.")
    return release


def create_release_offer(db: Session, user: User, booking_id: int) -> ReleaseOffer:
    booking = get_booking(db, booking_id)
    require_org_member(db, booking.organization_id, user)
    if booking.status != BookingStatus.ACTIVE.value:
        raise invalid_status(f"Only active bookings can be released (booking is {booking.status}).")
    existing = (
        db.query(ReleaseOffer)
        .filter(ReleaseOffer.booking_id == booking.id, ReleaseOffer.status == ReleaseOfferStatus.OPEN.value)
        .first()
    )
    if existing is not None:
        raise conflict("This shift is already released to partners.", existing_release_id=existing.id)
    release = ReleaseOffer(
        booking_id=booking.id,
        from_org_id=booking.organization_id,
        status=ReleaseOfferStatus.OPEN.value,
    )
    db.add(release)
    commit_or_rollback(db, action="create_release_offer")
    db.refresh(release)
    logger.info("Shift released release_id=%s booking_id=%s", release.id, booking.id)
    return release


def take_release_offer(
    db: Session, user: User, release_id: int, organization_id: int, ctx: SessionContext
) -> ReleaseOffer:
    """open -> taken, atomically. The original booking moves to the taking org."""
    release = get_release_offer(db, release_id)
    require_org_member(db, organization_id, user)
    if organization_id == release.from_org_id:
        raise validation("You cannot take your own released shift.", field="organization_id")
    if not is_trusted(db, release.from_org_id, organization_id):
        raise forbidden("Only trusted partners can take this shift.")

    now = utcnow()
    updated = (
        db.query(ReleaseOffer)
        .filter(ReleaseOffer.id == release.id, ReleaseOffer.status == ReleaseOfferStatus.OPEN.value)
        .update(
            {
                ReleaseOffer.status: ReleaseOfferStatus.TAKEN.value,
                ReleaseOffer.taken_by_org_id: organization_id,
                ReleaseOffer.resolved_at: now,
            },
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(release)
        if release.status == ReleaseOfferStatus.TAKEN.value:
            raise conflict("Another partner already took this shift.")
        raise invalid_status(f"This released shift is {release.status}.", status=release.status)

    original = db.query(ShiftBooking).filter(ShiftBooking.id == release.booking_id).first()
    released = (
        db.query(ShiftBooking)
        .filter(ShiftBooking.id == release.booking_id, ShiftBooking.status == BookingStatus.ACTIVE.value)
        .update({ShiftBooking.status: BookingStatus.RELEASED.value}, synchronize_session=False)
    )
    if released == 0:
        db.rollback()
        raise invalid_status("The original booking is no longer active.")
    new_booking = add_booking(
        db,
        organization_id=organization_id,
        talent_user_id=original.talent_user_id,
        start=original.start_ts,
        end=original.end_ts,
        source=BookingSource.RELEASE.value,
        created_by=user.id,
        ctx=ctx,
    )
    db.query(ReleaseOffer).filter(ReleaseOffer.id == release.id).update(
        {ReleaseOffer.new_booking_id: new_booking.id}, synchronize_session=False
    )
    commit_or_rollback(db, action="take_release_offer")
    db.refresh(release)
    logger.info("Released shift taken release_id=%s by_org=%s booking_id=%s", release.id, organization_id, new_booking.id)
    emit_event(
        RELEASE_OFFER_TAKEN,
        release_id=release.id,
        from_org_id=release.from_org_id,
        taken_by_org_id=organization_id,
        booking_id=new_booking.id,
    )
    return release


def cancel_release_offer(db: Session, user: User, release_id: int) -> ReleaseOffer:
    release = get_release_offer(db, release_id)
    if not is_org_member(db, release.from_org_id, user.id):
        raise forbidden("Only the releasing organization can cancel this shift release.")
    updated = (
        db.query(ReleaseOffer)
        .filter(ReleaseOffer.id == release.id, ReleaseOffer.status == ReleaseOfferStatus.OPEN.value)
        .update(
            {ReleaseOffer.status: ReleaseOfferStatus.CANCELLED.value, ReleaseOffer.resolved_at: utcnow()},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(release)
        raise invalid_status(f"This released shift is already {release.status}.", status=release.status)
    commit_or_rollback(db, action="cancel_release_offer")
    db.refresh(release)
    return release


def list_available_release_offers(db: Session, user: User, organization_id: int) -> List[ReleaseOffer]:
    """Open releases from the org's trusted partners."""
    require_org_member(db, organization_id, user)
    partners = trusted_partner_ids(db, organization_id)
    if not partners:
        return []
    return (
        db.query(ReleaseOffer)
        .filter(ReleaseOffer.from_org_id.in_(partners), ReleaseOffer.status == ReleaseOfferStatus.OPEN.value)
        .order_by(ReleaseOffer.created_at.desc(), ReleaseOffer.id.desc())
        .all()
    )


def list_org_release_offers(db: Session, user: User, organization_id: int) -> List[ReleaseOffer]:
    require_org_member(db, organization_id, user)
    return (
        db.query(ReleaseOffer)
        .filter(ReleaseOffer.from_org_id == organization_id)
        .order_by(ReleaseOffer.created_at.desc(), ReleaseOffer.id.desc())
        .all()
    )
