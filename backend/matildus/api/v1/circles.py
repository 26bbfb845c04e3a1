from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...components.circles import service as circles
from ...components.identity.membership import require_org_member
from ...deps import get_current_user
from ...models.user import User
from ...platform.database import get_db
from ...schemas.circle import (
    CircleCreate,
    CircleInviteCreate,
    CircleLinkResponse,
    CircleMemberAdd,
    CircleMembershipResponse,
    CircleResponse,
    TrustResponse,
)
from ...schemas.organization import OrgResponse

router = APIRouter(tags=["Circles"])


@router.post("/orgs/{org_id}/circle-invites", response_model=CircleLinkResponse, status_code=status.HTTP_201_CREATED)
def invite_partner(
    org_id: int,
    data: CircleInviteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.invite(db, current_user, org_id, data.to_org_id)


@router.get("/orgs/{org_id}/circle-invites", response_model=List[CircleLinkResponse])
def list_invites(
    org_id: int,
    direction: Literal["incoming", "outgoing"] = "incoming",
    status: Optional[str] = "pending",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.list_invites(db, current_user, org_id, incoming=direction == "incoming", status=status or None)


@router.post("/circle-invites/{link_id}/accept", response_model=CircleLinkResponse)
def accept_invite(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.accept_invite(db, current_user, link_id)


@router.post("/circle-invites/{link_id}/decline", response_model=CircleLinkResponse)
def decline_invite(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.decline_invite(db, current_user, link_id)


@router.get("/orgs/{org_id}/partners", response_model=List[OrgResponse])
def list_partners(
    org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.list_partners(db, current_user, org_id)


@router.get("/orgs/{org_id}/trusted/{other_org_id}", response_model=TrustResponse)
def is_trusted(
    org_id: int,
    other_org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_org_member(db, org_id, current_user)
    return {"org_id": org_id, "other_org_id": other_org_id, "trusted": circles.is_trusted(db, org_id, other_org_id)}


@router.post("/orgs/{org_id}/circles", response_model=CircleResponse, status_code=status.HTTP_201_CREATED)
def create_circle(
    org_id: int,
    data: CircleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    circle = circles.create_circle(db, current_user, org_id, data.name)
    return {"id": circle.id, "name": circle.name, "owner_org_id": circle.owner_org_id, "member_count": 0}


@router.get("/orgs/{org_id}/circles", response_model=List[CircleResponse])
def list_circles(
    org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.list_circles(db, current_user, org_id)


@router.get("/circles/{circle_id}/members", response_model=List[OrgResponse])
def list_circle_members(
    circle_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.list_circle_members(db, current_user, circle_id)


@router.post("/circles/{circle_id}/members", response_model=CircleMembershipResponse, status_code=status.HTTP_201_CREATED)
def add_circle_member(
    circle_id: int,
    data: CircleMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return circles.add_circle_member(db, current_user, circle_id, data.organization_id)


@router.delete("/circles/{circle_id}/members/{member_org_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_circle_member(
    circle_id: int,
    member_org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    circles.remove_circle_member(db, current_user, circle_id, member_org_id)
