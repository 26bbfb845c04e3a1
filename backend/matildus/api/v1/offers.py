from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...components.offers import service as offers
from ...deps import get_current_user, get_session_context
from ...models.user import User
from ...platform.database import get_db
from ...platform.session_context import SessionContext
from ...schemas.offer import OfferConflictResponse, OfferCreate, OfferRespond, OfferResponse, OfferUpdate

router = APIRouter(tags=["Offers"])


@router.post("/offers", response_model=OfferResponse, status_code=status.HTTP_201_CREATED)
def create_offer(
    data: OfferCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    terms = data.model_dump(exclude={"organization_id", "talent_user_id", "match_id", "listing_id"}, exclude_none=True)
    return offers.create_draft(
        db,
        current_user,
        data.organization_id,
        data.talent_user_id,
        terms,
        ctx,
        match_id=data.match_id,
        listing_id=data.listing_id,
    )


@router.get("/offers/received", response_model=List[OfferResponse])
def received_offers(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.list_received_offers(db, current_user, status=status)


@router.get("/orgs/{org_id}/offers", response_model=List[OfferResponse])
def org_offers(
    org_id: int,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.list_org_offers(db, current_user, org_id, status=status)


@router.get("/offers/{offer_id}", response_model=OfferResponse)
def get_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.get_offer_for_user(db, current_user, offer_id)


@router.patch("/offers/{offer_id}", response_model=OfferResponse)
def update_offer(
    offer_id: int,
    data: OfferUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.update_draft(db, current_user, offer_id, data.model_dump(exclude_none=True))


@router.get("/offers/{offer_id}/conflict", response_model=OfferConflictResponse)
def check_offer_conflict(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.check_conflict(db, current_user, offer_id)


@router.post("/offers/{offer_id}/send", response_model=OfferResponse)
def send_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.send_offer(db, current_user, offer_id)


@router.post("/offers/{offer_id}/respond", response_model=OfferResponse)
def respond_offer(
    offer_id: int,
    data: OfferRespond,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return offers.respond_offer(db, current_user, offer_id, data.accept, ctx)


@router.post("/offers/{offer_id}/withdraw", response_model=OfferResponse)
def withdraw_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return offers.withdraw_offer(db, current_user, offer_id)
