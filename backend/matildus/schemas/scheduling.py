from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


class BookingCreate(BaseModel):
    talent_user_id: int
    start_ts: datetime
    end_ts: datetime


class BookingResponse(BaseModel):
    id: int
    organization_id: int
    talent_user_id: int
    start_ts: datetime
    end_ts: datetime
    status: str
    source: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TalentProfileUpdate(BaseModel):
    location: Optional[str] = None
    role_key: Optional[str] = None
    skills: Optional[List[str]] = None
    housing_needed: Optional[bool] = None
    visibility_scope: Optional[Literal["off", "circle_only", "public"]] = None
    available_for_extra_hours: Optional[bool] = None


class TalentProfileResponse(BaseModel):
    user_id: int
    location: Optional[str] = None
    role_key: Optional[str] = None
    skills: Optional[List[str]] = None
    housing_needed: bool = False
    visibility_scope: str
    available_for_extra_hours: bool = False

    model_config = {"from_attributes": True}


class BusyBlockCreate(BaseModel):
    start_ts: datetime
    end_ts: datetime
    reason: Optional[str] = None


class BusyBlockResponse(BaseModel):
    id: int
    start_ts: datetime
    end_ts: datetime
    reason: Optional[str] = None

    model_config = {"from_attributes": True}


class ReleaseTake(BaseModel):
    organization_id: int


class ReleaseOfferResponse(BaseModel):
    id: int
    booking_id: int
    from_org_id: int
    status: str
    taken_by_org_id: Optional[int] = None
    new_booking_id: Optional[int] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
