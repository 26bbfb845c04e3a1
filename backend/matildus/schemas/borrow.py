from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class BorrowRequestCreate(BaseModel):
    location: str = Field(..., min_length=1)
    role_key: str = Field(..., min_length=1)
    start_ts: datetime
    end_ts: datetime
    scope: Literal["internal", "circle", "local"] = "local"
    circle_id: Optional[int] = None
    message: Optional[str] = None
    fan_out: bool = True


class BorrowOfferResponse(BaseModel):
    id: int
    borrow_request_id: int
    talent_user_id: int
    status: str
    booking_id: Optional[int] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BorrowRequestResponse(BaseModel):
    id: int
    organization_id: int
    location: str
    role_key: str
    start_ts: datetime
    end_ts: datetime
    scope: str
    circle_id: Optional[int] = None
    message: Optional[str] = None
    status: str
    filled_by_offer_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    offers: List[BorrowOfferResponse] = []

    model_config = {"from_attributes": True}


class BorrowRequestSummary(BaseModel):
    id: int
    organization_id: int
    location: str
    role_key: str
    start_ts: datetime
    end_ts: datetime
    message: Optional[str] = None
    status: str

    model_config = {"from_attributes": True}


class IncomingBorrowOffer(BorrowOfferResponse):
    request: BorrowRequestSummary


class FanOutResponse(BaseModel):
    request_id: int
    pool_size: int
    created: List[BorrowOfferResponse]
    total_offers: int


class PoolCountsResponse(BaseModel):
    internal: int
    circle: int
    local: int
