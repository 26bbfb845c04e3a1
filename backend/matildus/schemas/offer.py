from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class OfferTerms(BaseModel):
    message: Optional[str] = None
    location: Optional[str] = None
    role_title: Optional[str] = Field(default=None, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    hours_per_week: Optional[float] = None
    hourly_rate: Optional[float] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    housing_included: Optional[bool] = None
    housing_note: Optional[str] = None
    expires_at: Optional[datetime] = None


class OfferCreate(OfferTerms):
    organization_id: int
    talent_user_id: int
    match_id: Optional[int] = None
    listing_id: Optional[int] = None
    listing_type: Optional[Literal["job", "shift_cover"]] = None


class OfferUpdate(OfferTerms):
    pass


class OfferRespond(BaseModel):
    accept: bool


class OfferResponse(BaseModel):
    id: int
    organization_id: int
    talent_user_id: int
    match_id: Optional[int] = None
    listing_id: Optional[int] = None
    listing_type: str
    status: str
    message: Optional[str] = None
    location: Optional[str] = None
    role_title: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    hours_per_week: Optional[float] = None
    hourly_rate: Optional[float] = None
    currency: str = "SEK"
    housing_included: bool = False
    housing_note: Optional[str] = None
    booking_id: Optional[int] = None
    sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OfferConflictResponse(BaseModel):
    offer_id: int
    conflict: bool
    existing_offer_id: Optional[int] = None
    existing_status: Optional[str] = None
