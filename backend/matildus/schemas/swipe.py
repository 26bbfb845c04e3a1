from typing import List, Literal, Optional

from pydantic import BaseModel

from .listing import ListingResponse
from .match import MatchResponse


class TalentSwipeRequest(BaseModel):
    listing_id: int
    direction: Literal["yes", "no"]


class EmployerSwipeRequest(BaseModel):
    talent_user_id: int
    direction: Literal["yes", "no"]


class SwipeResponse(BaseModel):
    listing_id: int
    talent_user_id: int
    direction: str
    match: Optional[MatchResponse] = None
    match_created: bool = False


class FeedCard(BaseModel):
    id: int
    score: Optional[float] = None
    reasons: List[str] = []


class JobCard(FeedCard):
    listing: ListingResponse


class CandidateCard(FeedCard):
    talent_user_id: int
    full_name: Optional[str] = None
    location: Optional[str] = None
    role_key: Optional[str] = None


class JobFeedResponse(BaseModel):
    context_key: str
    locked: bool
    remaining: int
    cards: List[JobCard]


class CandidateFeedResponse(BaseModel):
    context_key: str
    locked: bool
    remaining: int
    cards: List[CandidateCard]
