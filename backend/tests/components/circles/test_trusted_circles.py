"""Trusted circles: invites, symmetric trust and named circles of partners."""

import pytest

from matildus.components.circles import service as circles
from matildus.components.notifications.events import CIRCLE_INVITED
from matildus.models.circle import CircleLinkStatus
from matildus.platform.errors import CONFLICT, FORBIDDEN, INVALID_STATUS, NOT_FOUND, VALIDATION, MarketplaceError
from tests.conftest import make_employer


@pytest.fixture
def two_orgs(db):
    a_user, org_a = make_employer(db, org_name="Skistar Cafe")
    b_user, org_b = make_employer(db, org_name="Fjallgarden")
    return a_user, org_a, b_user, org_b


def test_invite_then_accept_is_symmetric(db, two_orgs, captured_events):
    a_user, org_a, b_user, org_b = two_orgs
    link = circles.invite(db, a_user, org_a.id, org_b.id)
    assert link.status == CircleLinkStatus.PENDING.value
    assert not circles.is_trusted(db, org_a.id, org_b.id)
    assert captured_events[-1].name == CIRCLE_INVITED

    circles.accept_invite(db, b_user, link.id)
    assert circles.is_trusted(db, org_a.id, org_b.id)
    assert circles.is_trusted(db, org_b.id, org_a.id)
    assert circles.trusted_partner_ids(db, org_a.id) == [org_b.id]
    assert [o.id for o in circles.list_partners(db, b_user, org_b.id)] == [org_a.id]


def test_only_invited_org_can_accept(db, two_orgs):
    a_user, org_a, _, org_b = two_orgs
    link = circles.invite(db, a_user, org_a.id, org_b.id)
    with pytest.raises(MarketplaceError) as exc:
        circles.accept_invite(db, a_user, link.id)
    assert exc.value.reason == FORBIDDEN


def test_declined_invite_grants_no_trust(db, two_orgs):
    a_user, org_a, b_user, org_b = two_orgs
    link = circles.invite(db, a_user, org_a.id, org_b.id)
    circles.decline_invite(db, b_user, link.id)
    assert not circles.is_trusted(db, org_a.id, org_b.id)
    with pytest.raises(MarketplaceError) as exc:
        circles.accept_invite(db, b_user, link.id)
    assert exc.value.reason == INVALID_STATUS
    # A fresh invite is allowed after a decline.
    again = circles.invite(db, b_user, org_b.id, org_a.id)
    assert again.status == CircleLinkStatus.PENDING.value


def test_duplicate_invite_in_either_direction_conflicts(db, two_orgs):
    a_user, org_a, b_user, org_b = two_orgs
    link = circles.invite(db, a_user, org_a.id, org_b.id)
    with pytest.raises(MarketplaceError) as exc:
        circles.invite(db, b_user, org_b.id, org_a.id)
    assert exc.value.reason == CONFLICT
    assert exc.value.context["existing_link_id"] == link.id


def test_cannot_invite_self(db, two_orgs):
    a_user, org_a, _, _ = two_orgs
    with pytest.raises(MarketplaceError) as exc:
        circles.invite(db, a_user, org_a.id, org_a.id)
    assert exc.value.reason == VALIDATION


def test_invite_needs_membership(db, two_orgs):
    a_user, _, _, org_b = two_orgs
    _, org_c = make_employer(db)
    with pytest.raises(MarketplaceError) as exc:
        circles.invite(db, a_user, org_c.id, org_b.id)
    assert exc.value.reason == FORBIDDEN


def test_incoming_and_outgoing_invites(db, two_orgs):
    a_user, org_a, b_user, org_b = two_orgs
    link = circles.invite(db, a_user, org_a.id, org_b.id)
    assert [l.id for l in circles.list_invites(db, b_user, org_b.id)] == [link.id]
    assert circles.list_invites(db, a_user, org_a.id) == []
    assert [l.id for l in circles.list_invites(db, a_user, org_a.id, incoming=False)] == [link.id]


def test_named_circle_only_holds_partners(db, two_orgs):
    a_user, org_a, b_user, org_b = two_orgs
    _, org_c = make_employer(db)
    circles.accept_invite(db, b_user, circles.invite(db, a_user, org_a.id, org_b.id).id)

    circle = circles.create_circle(db, a_user, org_a.id, "Valley partners")
    membership = circles.add_circle_member(db, a_user, circle.id, org_b.id)
    assert circles.add_circle_member(db, a_user, circle.id, org_b.id).id == membership.id

    with pytest.raises(MarketplaceError) as exc:
        circles.add_circle_member(db, a_user, circle.id, org_c.id)
    assert exc.value.reason == VALIDATION

    listed = circles.list_circles(db, a_user, org_a.id)
    assert listed == [{"id": circle.id, "name": "Valley partners", "owner_org_id": org_a.id, "member_count": 1}]
    assert [o.id for o in circles.list_circle_members(db, a_user, circle.id)] == [org_b.id]

    circles.remove_circle_member(db, a_user, circle.id, org_b.id)
    assert circles.circle_member_org_ids(db, circle.id) == []
    with pytest.raises(MarketplaceError) as exc:
        circles.remove_circle_member(db, a_user, circle.id, org_b.id)
    assert exc.value.reason == NOT_FOUND


def test_circle_names_unique_per_owner(db, two_orgs):
    a_user, org_a, b_user, org_b = two_orgs
    circles.create_circle(db, a_user, org_a.id, "Core")
    with pytest.raises(MarketplaceError) as exc:
        circles.create_circle(db, a_user, org_a.id, "Core")
    assert exc.value.reason == CONFLICT
    assert circles.create_circle(db, b_user, org_b.id, "Core").name == "Core"


def test_only_owner_manages_circle(db, two_orgs):
    a_user, org_a, b_user, _ = two_orgs
    circle = circles.create_circle(db, a_user, org_a.id, "Private")
    with pytest.raises(MarketplaceError) as exc:
        circles.list_circle_members(db, b_user, circle.id)
    assert exc.value.reason == FORBIDDEN
