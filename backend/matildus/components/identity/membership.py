"""Organization membership lookups used to authorize employer-side actions."""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ...models.organization import Organization, OrgMembership
from ...models.user import ACCOUNT_TYPE_TALENT, User
from ...platform.errors import forbidden, not_found


def list_my_orgs(db: Session, user: User) -> List[Dict[str, Any]]:
    rows = (
        db.query(OrgMembership, Organization)
        .join(Organization, Organization.id == OrgMembership.organization_id)
        .filter(OrgMembership.user_id == user.id)
        .order_by(Organization.name.asc())
        .all()
    )
    return [
        {"id": org.id, "name": org.name, "role": membership.role, "location": org.location}
        for membership, org in rows
    ]


def is_org_member(db: Session, organization_id: int, user_id: int) -> bool:
    return (
        db.query(OrgMembership.id)
        .filter(
            OrgMembership.organization_id == organization_id,
            OrgMembership.user_id == user_id,
        )
        .first()
        is not None
    )


def get_organization(db: Session, organization_id: int) -> Organization:
    org = db.query(Organization).filter(Organization.id == organization_id).first()
    if not org:
        raise not_found("Organization not found.")
    return org


def require_org_member(db: Session, organization_id: int, user: User) -> Organization:
    """Return the organization if ``user`` belongs to it, else raise ``forbidden``."""
    org = get_organization(db, organization_id)
    if not is_org_member(db, organization_id, user.id):
        raise forbidden("You are not a member of this organization.")
    return org


def require_talent(user: User) -> None:
    if (user.account_type or ACCOUNT_TYPE_TALENT) != ACCOUNT_TYPE_TALENT:
        raise forbidden("Only talent accounts can perform this action.")


def require_talent_user(db: Session, talent_user_id: int) -> User:
    talent = db.query(User).filter(User.id == talent_user_id).first()
    if not talent or talent.account_type != ACCOUNT_TYPE_TALENT:
        raise not_found("Candidate not found.")
    return talent
