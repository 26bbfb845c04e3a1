from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...components.candidate_jobs import service as candidate_jobs
from ...components.listings import service as listings
from ...deps import get_current_user, get_session_context
from ...models.user import User
from ...platform.database import get_db
from ...platform.session_context import SessionContext
from ...schemas.candidate_job import ApplicationResponse
from ...schemas.listing import ListingCreate, ListingResponse

router = APIRouter(tags=["Listings"])


@router.post("/orgs/{org_id}/listings", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
def create_listing(
    org_id: int,
    data: ListingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    payload = data.model_dump(exclude={"publish"}, exclude_none=True)
    return listings.create_listing(db, current_user, org_id, payload, ctx, publish=data.publish)


@router.get("/orgs/{org_id}/listings", response_model=List[ListingResponse])
def list_org_listings(
    org_id: int,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return listings.list_org_listings(db, current_user, org_id, status=status)


@router.get("/listings/{listing_id}", response_model=ListingResponse)
def get_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return listings.get_listing(db, listing_id)


@router.post("/listings/{listing_id}/publish", response_model=ListingResponse)
def publish_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return listings.publish_listing(db, current_user, listing_id)


@router.post("/listings/{listing_id}/close", response_model=ListingResponse)
def close_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return listings.close_listing(db, current_user, listing_id)


@router.get("/listings/{listing_id}/applications", response_model=List[ApplicationResponse])
def list_listing_applications(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return candidate_jobs.list_listing_applications(db, current_user, listing_id)
