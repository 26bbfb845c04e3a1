from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.matching import service as matching
from ...deps import get_current_user
from ...models.user import User
from ...platform.database import get_db
from ...schemas.match import MatchResponse, MatchStatusUpdate

router = APIRouter(tags=["Matches"])


@router.get("/matches/me", response_model=List[MatchResponse])
def my_matches(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return matching.list_my_matches(db, current_user)


@router.get("/orgs/{org_id}/matches", response_model=List[MatchResponse])
def org_matches(
    org_id: int,
    listing_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return matching.list_org_matches(db, current_user, org_id, listing_id=listing_id)


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return matching.get_match_for_user(db, current_user, match_id)


@router.patch("/matches/{match_id}/status", response_model=MatchResponse)
def advance_match(
    match_id: int,
    data: MatchStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return matching.advance_match_status(db, current_user, match_id, data.status)
