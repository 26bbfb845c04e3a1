from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...components.scheduling import service as scheduling
from ...deps import get_current_user, get_session_context
from ...models.user import User
from ...platform.database import get_db
from ...platform.session_context import SessionContext
from ...schemas.scheduling import (
    BookingCreate,
    BookingResponse,
    BusyBlockCreate,
    BusyBlockResponse,
    ReleaseOfferResponse,
    ReleaseTake,
    TalentProfileResponse,
    TalentProfileUpdate,
)

router = APIRouter(tags=["Scheduling"])


@router.post("/orgs/{org_id}/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    org_id: int,
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return scheduling.create_direct_booking(
        db, current_user, org_id, data.talent_user_id, data.start_ts, data.end_ts, ctx
    )


@router.get("/orgs/{org_id}/bookings", response_model=List[BookingResponse])
def list_org_bookings(
    org_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.list_org_bookings(db, current_user, org_id, start=start, end=end)


@router.get("/bookings/me", response_model=List[BookingResponse])
def my_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.list_my_bookings(db, current_user)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.cancel_booking(db, current_user, booking_id)


@router.post("/bookings/{booking_id}/release", response_model=ReleaseOfferResponse, status_code=status.HTTP_201_CREATED)
def release_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.create_release_offer(db, current_user, booking_id)


@router.get("/orgs/{org_id}/release-offers", response_model=List[ReleaseOfferResponse])
def org_release_offers(
    org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.list_org_release_offers(db, current_user, org_id)


@router.get("/orgs/{org_id}/release-offers/available", response_model=List[ReleaseOfferResponse])
def available_release_offers(
    org_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.list_available_release_offers(db, current_user, org_id)


@router.post("/release-offers/{release_id}/take", response_model=ReleaseOfferResponse)
def take_release_offer(
    release_id: int,
    data: ReleaseTake,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return scheduling.take_release_offer(db, current_user, release_id, data.organization_id, ctx)


@router.post("/release-offers/{release_id}/cancel", response_model=ReleaseOfferResponse)
def cancel_release_offer(
    release_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.cancel_release_offer(db, current_user, release_id)


@router.get("/talent/profile", response_model=TalentProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.get_or_create_profile(db, current_user)


@router.patch("/talent/profile", response_model=TalentProfileResponse)
def update_profile(
    data: TalentProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.update_profile(db, current_user, data.model_dump(exclude_none=True))


@router.get("/talent/busy-blocks", response_model=List[BusyBlockResponse])
def list_busy_blocks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.list_busy_blocks(db, current_user)


@router.post("/talent/busy-blocks", response_model=BusyBlockResponse, status_code=status.HTTP_201_CREATED)
def add_busy_block(
    data: BusyBlockCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return scheduling.add_busy_block(db, current_user, data.start_ts, data.end_ts, data.reason)


@router.delete("/talent/busy-blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_busy_block(
    block_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scheduling.delete_busy_block(db, current_user, block_id)
