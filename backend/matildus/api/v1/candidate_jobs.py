from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.candidate_jobs import service as candidate_jobs
from ...deps import get_current_user, get_session_context
from ...models.user import User
from ...platform.database import get_db
from ...platform.session_context import SessionContext
from ...schemas.candidate_job import ApplicationRequest, ApplicationResponse, CandidateJobStateResponse
from ...schemas.listing import ListingResponse

router = APIRouter(prefix="/candidate-jobs", tags=["Candidate jobs"])


@router.get("/saved", response_model=List[ListingResponse])
def list_saved(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return candidate_jobs.list_saved_jobs(db, current_user)


@router.get("/applications", response_model=List[ApplicationResponse])
def list_applications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return candidate_jobs.list_my_applications(db, current_user)


@router.get("/{listing_id}/state", response_model=CandidateJobStateResponse)
def get_state(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return candidate_jobs.get_state(db, current_user.id, listing_id)


@router.post("/{listing_id}/save", response_model=CandidateJobStateResponse)
def save(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return candidate_jobs.save_job(db, current_user, listing_id, ctx)


@router.delete("/{listing_id}/save", response_model=CandidateJobStateResponse)
def unsave(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return candidate_jobs.unsave_job(db, current_user, listing_id)


@router.post("/{listing_id}/dismiss", response_model=CandidateJobStateResponse)
def dismiss(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return candidate_jobs.dismiss_job(db, current_user, listing_id, ctx)


@router.post("/{listing_id}/apply/start", response_model=CandidateJobStateResponse)
def start_apply(
    listing_id: int,
    data: Optional[ApplicationRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return candidate_jobs.start_apply(db, current_user, listing_id, ctx, payload=data.payload if data else None)


@router.post("/{listing_id}/apply/submit", response_model=CandidateJobStateResponse)
def submit_apply(
    listing_id: int,
    data: Optional[ApplicationRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return candidate_jobs.submit_apply(db, current_user, listing_id, ctx, payload=data.payload if data else None)


@router.post("/{listing_id}/save-instead", response_model=CandidateJobStateResponse)
def save_instead(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ctx: SessionContext = Depends(get_session_context),
):
    return candidate_jobs.save_instead(db, current_user, listing_id, ctx)
