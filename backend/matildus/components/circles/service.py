"""Trust between organizations: pairwise circle links and named circles."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.circle import Circle, CircleLink, CircleLinkStatus, CircleMembership
from ...models.organization import Organization
from ...models.user import User
from ...platform.errors import conflict, forbidden, invalid_status, not_found, validation
from ...shared.utils import commit_or_rollback, utcnow
from ..identity.membership import get_organization, is_org_member, require_org_member
from ..notifications.events import CIRCLE_INVITED, emit_event

logger = logging.getLogger(__name__)


def _pair_filter(org_a: int, org_b: int):
    return or_(
        and_(CircleLink.from_org_id == org_a, CircleLink.to_org_id == org_b),
        and_(CircleLink.from_org_id == org_b, CircleLink.to_org_id == org_a),
    )


# ---------------------------------------------------------------------------
# Pairwise links
# ---------------------------------------------------------------------------

def is_trusted(db: Session, org_a: int, org_b: int) -> bool:
    """True iff an accepted link exists between the two orgs in either direction."""
    if org_a == org_b:
        return False
    return (
        db.query(CircleLink.id)
        .filter(_pair_filter(org_a, org_b), CircleLink.status == CircleLinkStatus.ACCEPTED.value)
        .first()
        is not None
    )


def trusted_partner_ids(db: Session, organization_id: int) -> List[int]:
    rows = (
        db.query(CircleLink.from_org_id, CircleLink.to_org_id)
        .filter(
            or_(CircleLink.from_org_id == organization_id, CircleLink.to_org_id == organization_id),
            CircleLink.status == CircleLinkStatus.ACCEPTED.value,
        )
        .all()
    )
    partners = {to_id if from_id == organization_id else from_id for from_id, to_id in rows}
    partners.discard(organization_id)
    return sorted(partners)


def invite(db: Session, user: User, from_org_id: int, to_org_id: int) -> CircleLink:
    require_org_member(db, from_org_id, user)
    if from_org_id == to_org_id:
        raise validation("An organization cannot invite itself.", field="to_org_id")
    get_organization(db, to_org_id)

    existing = (
        db.query(CircleLink)
        .filter(
            _pair_filter(from_org_id, to_org_id),
            CircleLink.status.in_((CircleLinkStatus.PENDING.value, CircleLinkStatus.ACCEPTED.value)),
        )
        .order_by(CircleLink.id.desc())
        .first()
    )
    if existing is not None:
        if existing.status == CircleLinkStatus.ACCEPTED.value:
            raise conflict("You are already trusted partners.", existing_link_id=existing.id)
        raise conflict("An invite between these organizations is already pending.", existing_link_id=existing.id)

    link = CircleLink(
        from_org_id=from_org_id,
        to_org_id=to_org_id,
        created_by=user.id,
        status=CircleLinkStatus.PENDING.value,
    )
    db.add(link)
    commit_or_rollback(db, action="circle_invite")
    db.refresh(link)
    logger.info("Circle invite link_id=%s from_org=%s to_org=%s", link.id, from_org_id, to_org_id)
    emit_event(CIRCLE_INVITED, link_id=link.id, from_org_id=from_org_id, to_org_id=to_org_id)
    return link


def get_link(db: Session, link_id: int) -> CircleLink:
    link = db.query(CircleLink).filter(CircleLink.id == link_id).first()
    if not link:
        raise not_found("Invite not found.")
    return link


def _respond(db: Session, user: User, link_id: int, to_status: str) -> CircleLink:
    link = get_link(db, link_id)
    if not is_org_member(db, link.to_org_id, user.id):
        raise forbidden("Only the invited organization can respond to this invite.")
    updated = (
        db.query(CircleLink)
        .filter(CircleLink.id == link.id, CircleLink.status == CircleLinkStatus.PENDING.value)
        .update({CircleLink.status: to_status, CircleLink.responded_at: utcnow()}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(link)
        raise invalid_status(f"This invite is already {link.status}.", status=link.status)
    commit_or_rollback(db, action="circle_respond")
    db.refresh(link)
    logger.info("Circle invite link_id=%s %s", link.id, link.status)
    return link


def accept_invite(db: Session, user: User, link_id: int) -> CircleLink:
    return _respond(db, user, link_id, CircleLinkStatus.ACCEPTED.value)


def decline_invite(db: Session, user: User, link_id: int) -> CircleLink:
    return _respond(db, user, link_id, CircleLinkStatus.DECLINED.value)


def list_invites(
    db: Session,
    user: User,
    organization_id: int,
    *,
    incoming: bool = True,
    status: Optional[str] = CircleLinkStatus.PENDING.value,
) -> List[CircleLink]:
    require_org_member(db, organization_id, user)
    column = CircleLink.to_org_id if incoming else CircleLink.from_org_id
    query = db.query(CircleLink).filter(column == organization_id)
    if status:
        query = query.filter(CircleLink.status == status)
    return query.order_by(CircleLink.created_at.desc(), CircleLink.id.desc()).all()


def list_partners(db: Session, user: User, organization_id: int) -> List[Organization]:
    require_org_member(db, organization_id, user)
    ids = trusted_partner_ids(db, organization_id)
    if not ids:
        return []
    return db.query(Organization).filter(Organization.id.in_(ids)).order_by(Organization.name.asc()).all()


# ---------------------------------------------------------------------------
# Named circles
# ---------------------------------------------------------------------------

def get_circle(db: Session, circle_id: int) -> Circle:
    circle = db.query(Circle).filter(Circle.id == circle_id).first()
    if not circle:
        raise not_found("Circle not found.")
    return circle


def _require_owned_circle(db: Session, user: User, circle_id: int) -> Circle:
    circle = get_circle(db, circle_id)
    require_org_member(db, circle.owner_org_id, user)
    return circle


def create_circle(db: Session, user: User, organization_id: int, name: str) -> Circle:
    require_org_member(db, organization_id, user)
    cleaned = (name or "").strip()
    if not cleaned:
        raise validation("Circle name is required.", field="name")
    circle = Circle(owner_org_id=organization_id, name=cleaned)
    db.add(circle)
    try:
        commit_or_rollback(db, action="create_circle")
    except IntegrityError:
        existing = (
            db.query(Circle).filter(Circle.owner_org_id == organization_id, Circle.name == cleaned).first()
        )
        raise conflict("A circle with this name already exists.", existing_circle_id=getattr(existing, "id", None))
    db.refresh(circle)
    logger.info("Circle created circle_id=%s owner_org=%s", circle.id, organization_id)
    return circle


def list_circles(db: Session, user: User, organization_id: int) -> List[Dict[str, Any]]:
    require_org_member(db, organization_id, user)
    rows = (
        db.query(Circle, func.count(CircleMembership.id))
        .outerjoin(CircleMembership, CircleMembership.circle_id == Circle.id)
        .filter(Circle.owner_org_id == organization_id)
        .group_by(Circle.id)
        .order_by(Circle.name.asc())
        .all()
    )
    return [
        {"id": circle.id, "name": circle.name, "owner_org_id": circle.owner_org_id, "member_count": count}
        for circle, count in rows
    ]


def add_circle_member(db: Session, user: User, circle_id: int, member_org_id: int) -> CircleMembership:
    circle = _require_owned_circle(db, user, circle_id)
    get_organization(db, member_org_id)
    if not is_trusted(db, circle.owner_org_id, member_org_id):
        raise validation("Only trusted partners can be added to a circle.", field="organization_id")
    existing = (
        db.query(CircleMembership)
        .filter(CircleMembership.circle_id == circle.id, CircleMembership.organization_id == member_org_id)
        .first()
    )
    if existing is not None:
        return existing
    membership = CircleMembership(circle_id=circle.id, organization_id=member_org_id)
    db.add(membership)
    try:
        commit_or_rollback(db, action="add_circle_member")
    except IntegrityError:
        return (
            db.query(CircleMembership)
            .filter(CircleMembership.circle_id == circle.id, CircleMembership.organization_id == member_org_id)
            .one()
        )
    db.refresh(membership)
    logger.info("Circle member added circle_id=%s org_id=%s", circle.id, member_org_id)
    return membership


def remove_circle_member(db: Session, user: User, circle_id: int, member_org_id: int) -> None:
    circle = _require_owned_circle(db, user, circle_id)
    deleted = (
        db.query(CircleMembership)
        .filter(CircleMembership.circle_id == circle.id, CircleMembership.organization_id == member_org_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise not_found("This organization is not in the circle.")
    commit_or_rollback(db, action="remove_circle_member")
    logger.info("Circle member removed circle_id=%s org_id=%s", circle.id, member_org_id)


def circle_member_org_ids(db: Session, circle_id: int) -> List[int]:
    return [
        row[0]
        for row in db.query(CircleMembership.organization_id).filter(CircleMembership.circle_id == circle_id).all()
    ]


def list_circle_members(db: Session, user: User, circle_id: int) -> List[Organization]:
    circle = _require_owned_circle(db, user, circle_id)
    ids = circle_member_org_ids(db, circle.id)
    if not ids:
        return []
    return db.query(Organization).filter(Organization.id.in_(ids)).order_by(Organization.name.asc()).all()
