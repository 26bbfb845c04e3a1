"""Direct bookings, talent availability and shifts released to trusted partners."""

from datetime import timedelta

import pytest

from matildus.components.notifications.events import RELEASE_OFFER_TAKEN
from matildus.components.scheduling import service as scheduling
from matildus.models.booking import BookingSource, BookingStatus, ReleaseOfferStatus, ShiftBooking
from matildus.models.circle import CircleLink, CircleLinkStatus
from matildus.platform.errors import CONFLICT, FORBIDDEN, INVALID_STATUS, VALIDATION, MarketplaceError
from matildus.platform.session_context import LIVE_SESSION, build_session_context
from tests.conftest import make_employer, make_talent, shift_window


@pytest.fixture
def staffed(db):
    employer, org = make_employer(db)
    talent = make_talent(db)
    return employer, org, talent


def _book(db, employer, org, talent, **window):
    start, end = shift_window(**window)
    return scheduling.create_direct_booking(db, employer, org.id, talent.id, start, end, LIVE_SESSION)


# ===== Bookings =====


def test_direct_booking(db, staffed):
    employer, org, talent = staffed
    booking = _book(db, employer, org, talent)
    assert booking.status == BookingStatus.ACTIVE.value
    assert booking.source == BookingSource.DIRECT.value
    assert booking.created_by == employer.id
    assert booking.demo_session_id is None
    assert [b.id for b in scheduling.list_my_bookings(db, talent)] == [booking.id]


def test_demo_booking_is_tagged(db, staffed):
    employer, org, talent = staffed
    start, end = shift_window()
    ctx = build_session_context("demo-42", live_backend=False)
    booking = scheduling.create_direct_booking(db, employer, org.id, talent.id, start, end, ctx)
    assert booking.demo_session_id == ctx.write_tag


def test_overlapping_booking_conflicts(db, staffed):
    employer, org, talent = staffed
    first = _book(db, employer, org, talent, start_hour=8, hours=8)
    other_employer, other_org = make_employer(db)
    with pytest.raises(MarketplaceError) as exc:
        _book(db, other_employer, other_org, talent, start_hour=12, hours=4)
    assert exc.value.reason == CONFLICT
    assert exc.value.context["existing_booking_id"] == first.id


def test_back_to_back_shifts_do_not_overlap(db, staffed):
    employer, org, talent = staffed
    _book(db, employer, org, talent, start_hour=6, hours=6)
    second = _book(db, employer, org, talent, start_hour=12, hours=6)
    assert second.status == BookingStatus.ACTIVE.value


def test_busy_block_refuses_booking(db, staffed):
    employer, org, talent = staffed
    start, end = shift_window()
    scheduling.add_busy_block(db, talent, start + timedelta(hours=2), end + timedelta(hours=2), reason="exam")
    with pytest.raises(MarketplaceError) as exc:
        scheduling.create_direct_booking(db, employer, org.id, talent.id, start, end, LIVE_SESSION)
    assert exc.value.reason == CONFLICT


def test_reversed_window_is_invalid(db, staffed):
    employer, org, talent = staffed
    start, end = shift_window()
    with pytest.raises(MarketplaceError) as exc:
        scheduling.create_direct_booking(db, employer, org.id, talent.id, end, start, LIVE_SESSION)
    assert exc.value.reason == VALIDATION
    assert exc.value.context["field"] == "end_ts"


def test_booking_requires_membership(db, staffed):
    _, org, talent = staffed
    outsider, _ = make_employer(db)
    start, end = shift_window()
    with pytest.raises(MarketplaceError) as exc:
        scheduling.create_direct_booking(db, outsider, org.id, talent.id, start, end, LIVE_SESSION)
    assert exc.value.reason == FORBIDDEN


def test_cancel_frees_the_window(db, staffed):
    employer, org, talent = staffed
    booking = _book(db, employer, org, talent)
    cancelled = scheduling.cancel_booking(db, employer, booking.id)
    assert cancelled.status == BookingStatus.CANCELLED.value
    with pytest.raises(MarketplaceError) as exc:
        scheduling.cancel_booking(db, employer, booking.id)
    assert exc.value.reason == INVALID_STATUS
    assert _book(db, employer, org, talent).status == BookingStatus.ACTIVE.value
    assert len(scheduling.list_org_bookings(db, employer, org.id)) == 1
    assert len(scheduling.list_org_bookings(db, employer, org.id, include_inactive=True)) == 2


# ===== Profile and busy blocks =====


def test_profile_update_normalizes_role(db):
    talent = make_talent(db, with_profile=False)
    profile = scheduling.update_profile(db, talent, {"role_key": "  Barista ", "visibility_scope": "circle_only"})
    assert profile.role_key == "barista"
    assert profile.visibility_scope == "circle_only"


def test_profile_rejects_unknown_visibility(db):
    talent = make_talent(db)
    with pytest.raises(MarketplaceError) as exc:
        scheduling.update_profile(db, talent, {"visibility_scope": "friends"})
    assert exc.value.reason == VALIDATION


def test_employers_have_no_talent_profile(db):
    employer, _ = make_employer(db)
    with pytest.raises(MarketplaceError) as exc:
        scheduling.get_or_create_profile(db, employer)
    assert exc.value.reason == FORBIDDEN


def test_busy_blocks_belong_to_their_talent(db):
    talent = make_talent(db)
    other = make_talent(db)
    start, end = shift_window()
    block = scheduling.add_busy_block(db, talent, start, end)
    assert [b.id for b in scheduling.list_busy_blocks(db, talent)] == [block.id]
    with pytest.raises(MarketplaceError) as exc:
        scheduling.delete_busy_block(db, other, block.id)
    assert exc.value.reason == FORBIDDEN
    scheduling.delete_busy_block(db, talent, block.id)
    assert scheduling.list_busy_blocks(db, talent) == []


# ===== Released shifts =====


@pytest.fixture
def released(db, staffed):
    employer, org, talent = staffed
    partner_employer, partner = make_employer(db)
    db.add(CircleLink(from_org_id=org.id, to_org_id=partner.id, status=CircleLinkStatus.ACCEPTED.value))
    db.commit()
    booking = _book(db, employer, org, talent)
    release = scheduling.create_release_offer(db, employer, booking.id)
    return employer, org, partner_employer, partner, booking, release


def test_release_is_visible_to_partners(db, released):
    employer, org, partner_employer, partner, _, release = released
    assert [r.id for r in scheduling.list_available_release_offers(db, partner_employer, partner.id)] == [release.id]
    assert [r.id for r in scheduling.list_org_release_offers(db, employer, org.id)] == [release.id]
    stranger, stranger_org = make_employer(db)
    assert scheduling.list_available_release_offers(db, stranger, stranger_org.id) == []


def test_release_twice_conflicts(db, released):
    employer, _, _, _, booking, release = released
    with pytest.raises(MarketplaceError) as exc:
        scheduling.create_release_offer(db, employer, booking.id)
    assert exc.value.reason == CONFLICT
    assert exc.value.context["existing_release_id"] == release.id


def test_partner_takes_release(db, released, captured_events):
    _, _, partner_employer, partner, booking, release = released
    taken = scheduling.take_release_offer(db, partner_employer, release.id, partner.id, LIVE_SESSION)
    assert taken.status == ReleaseOfferStatus.TAKEN.value
    assert taken.taken_by_org_id == partner.id
    db.expire_all()
    assert db.get(ShiftBooking, booking.id).status == BookingStatus.RELEASED.value
    new_booking = db.get(ShiftBooking, taken.new_booking_id)
    assert new_booking.organization_id == partner.id
    assert new_booking.talent_user_id == booking.talent_user_id
    assert new_booking.source == BookingSource.RELEASE.value
    assert captured_events[-1].name == RELEASE_OFFER_TAKEN
    # The released booking no longer holds the window; only the new one does.
    clash = scheduling.overlapping_booking(db, booking.talent_user_id, new_booking.start_ts, new_booking.end_ts)
    assert clash.id == new_booking.id


def test_second_taker_conflicts(db, released):
    employer, org, partner_employer, partner, _, release = released
    late_employer, late_org = make_employer(db)
    db.add(CircleLink(from_org_id=late_org.id, to_org_id=org.id, status=CircleLinkStatus.ACCEPTED.value))
    db.commit()
    scheduling.take_release_offer(db, partner_employer, release.id, partner.id, LIVE_SESSION)
    with pytest.raises(MarketplaceError) as exc:
        scheduling.take_release_offer(db, late_employer, release.id, late_org.id, LIVE_SESSION)
    assert exc.value.reason == CONFLICT


def test_untrusted_org_cannot_take(db, released):
    _, _, _, _, _, release = released
    stranger, stranger_org = make_employer(db)
    with pytest.raises(MarketplaceError) as exc:
        scheduling.take_release_offer(db, stranger, release.id, stranger_org.id, LIVE_SESSION)
    assert exc.value.reason == FORBIDDEN


def test_own_org_cannot_take(db, released):
    employer, org, _, _, _, release = released
    with pytest.raises(MarketplaceError) as exc:
        scheduling.take_release_offer(db, employer, release.id, org.id, LIVE_SESSION)
    assert exc.value.reason == VALIDATION


def test_cancelled_release_cannot_be_taken(db, released):
    employer, _, partner_employer, partner, booking, release = released
    assert scheduling.cancel_release_offer(db, employer, release.id).status == ReleaseOfferStatus.CANCELLED.value
    with pytest.raises(MarketplaceError) as exc:
        scheduling.take_release_offer(db, partner_employer, release.id, partner.id, LIVE_SESSION)
    assert exc.value.reason == INVALID_STATUS
    db.expire_all()
    assert db.get(ShiftBooking, booking.id).status == BookingStatus.ACTIVE.value


def test_only_releasing_org_cancels(db, released):
    _, _, partner_employer, _, _, release = released
    with pytest.raises(MarketplaceError) as exc:
        scheduling.cancel_release_offer(db, partner_employer, release.id)
    assert exc.value.reason == FORBIDDEN
