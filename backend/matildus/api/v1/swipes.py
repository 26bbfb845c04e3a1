from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.feeds import service as feeds
from ...components.matching import service as matching
from ...deps import get_current_user, get_scorer, get_session_context
from ...models.user import User
from ...platform.database import get_db
from ...platform.errors import MarketplaceError
from ...platform.session_context import SessionContext
from ...schemas.swipe import (
    CandidateFeedResponse,
    EmployerSwipeRequest,
    JobFeedResponse,
    SwipeResponse,
    TalentSwipeRequest,
)

router = APIRouter(tags=["Swipes"])


@router.get("/feed/jobs", response_model=JobFeedResponse)
def job_feed(
    location: Optional[str] = None,
    role_key: Optional[str] = None,
    listing_type: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
    scorer=Depends(get_scorer),
):
    return feeds.talent_feed(
        db, current_user, ctx, scorer, location=location, role_key=role_key, listing_type=listing_type
    )


@router.post("/swipes/jobs", response_model=SwipeResponse)
def swipe_job(
    data: TalentSwipeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    try:
        result = matching.swipe_on_listing(db, current_user, data.listing_id, data.direction, ctx)
    except MarketplaceError:
        feeds.record_swipe_outcome(current_user.id, feeds.TALENT_FEED, data.listing_id, succeeded=False)
        raise
    feeds.record_swipe_outcome(current_user.id, feeds.TALENT_FEED, data.listing_id, succeeded=True)
    return result


@router.get("/feed/listings/{listing_id}/candidates", response_model=CandidateFeedResponse)
def candidate_feed(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
    scorer=Depends(get_scorer),
):
    return feeds.candidate_feed(db, current_user, listing_id, ctx, scorer)


@router.post("/swipes/listings/{listing_id}/candidates", response_model=SwipeResponse)
def swipe_candidate(
    listing_id: int,
    data: EmployerSwipeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    feed_name = feeds.candidate_feed_name(listing_id)
    try:
        result = matching.swipe_on_candidate(db, current_user, listing_id, data.talent_user_id, data.direction, ctx)
    except MarketplaceError:
        feeds.record_swipe_outcome(current_user.id, feed_name, data.talent_user_id, succeeded=False)
        raise
    feeds.record_swipe_outcome(current_user.id, feed_name, data.talent_user_id, succeeded=True)
    return result
