from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...components.borrow import service as borrow
from ...deps import get_current_user, get_session_context
from ...models.user import User
from ...platform.database import get_db
from ...platform.session_context import SessionContext
from ...schemas.borrow import (
    BorrowOfferResponse,
    BorrowRequestCreate,
    BorrowRequestResponse,
    FanOutResponse,
    IncomingBorrowOffer,
    PoolCountsResponse,
)

router = APIRouter(tags=["Borrow"])


@router.post("/orgs/{org_id}/borrow-requests", response_model=BorrowRequestResponse, status_code=status.HTTP_201_CREATED)
def create_borrow_request(
    org_id: int,
    data: BorrowRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    request = borrow.create_request(db, current_user, org_id, data.model_dump(exclude={"fan_out"}), ctx)
    if data.fan_out:
        borrow.fan_out(db, current_user, request.id, ctx)
        db.refresh(request)
    return request


@router.get("/orgs/{org_id}/borrow-requests", response_model=List[BorrowRequestResponse])
def list_borrow_requests(
    org_id: int,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return borrow.list_org_requests(db, current_user, org_id, status=status)


@router.get("/orgs/{org_id}/borrow-pool-counts", response_model=PoolCountsResponse)
def borrow_pool_counts(
    org_id: int,
    location: str,
    start_ts: datetime,
    end_ts: datetime,
    circle_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return borrow.pool_counts(
        db, current_user, org_id, location=location, start=start_ts, end=end_ts, circle_id=circle_id
    )


@router.get("/borrow-requests/{request_id}", response_model=BorrowRequestResponse)
def get_borrow_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return borrow.get_request_for_user(db, current_user, request_id)


@router.post("/borrow-requests/{request_id}/fan-out", response_model=FanOutResponse)
def fan_out_borrow_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return borrow.fan_out(db, current_user, request_id, ctx)


@router.post("/borrow-requests/{request_id}/close", response_model=BorrowRequestResponse)
def close_borrow_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return borrow.close_request(db, current_user, request_id)


@router.get("/borrow-offers/me", response_model=List[IncomingBorrowOffer])
def my_borrow_offers(
    pending_only: bool = True,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return borrow.list_my_borrow_offers(db, current_user, pending_only=pending_only)


@router.post("/borrow-offers/{offer_id}/accept", response_model=BorrowOfferResponse)
def accept_borrow_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return borrow.accept_borrow_offer(db, current_user, offer_id, ctx)


@router.post("/borrow-offers/{offer_id}/decline", response_model=BorrowOfferResponse)
def decline_borrow_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return borrow.decline_borrow_offer(db, current_user, offer_id)
