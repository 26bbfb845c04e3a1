from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ListingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    role_key: str = Field(..., min_length=1, max_length=100)
    listing_type: Literal["job", "shift_cover"] = "job"
    location: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    housing_offered: bool = False
    required_badges: Optional[List[str]] = None
    publish: bool = False


class ListingResponse(BaseModel):
    id: int
    organization_id: int
    title: str
    role_key: str
    listing_type: str
    location: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    housing_offered: bool = False
    required_badges: Optional[List[str]] = None
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
