from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CircleInviteCreate(BaseModel):
    to_org_id: int


class CircleLinkResponse(BaseModel):
    id: int
    from_org_id: int
    to_org_id: int
    status: str
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TrustResponse(BaseModel):
    org_id: int
    other_org_id: int
    trusted: bool


class CircleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class CircleResponse(BaseModel):
    id: int
    name: str
    owner_org_id: int
    member_count: int = 0


class CircleMemberAdd(BaseModel):
    organization_id: int


class CircleMembershipResponse(BaseModel):
    id: int
    circle_id: int
    organization_id: int

    model_config = {"from_attributes": True}
