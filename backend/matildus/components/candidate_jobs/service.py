"""Candidate <-> listing relationship state.

The state is never stored as a column. It is derived on every read from three
disjoint backing records (saved job, dismissal, application) using a fixed
precedence: application > saved > dismissal > none. Each write keeps those
records consistent inside one transaction so the derived state is unambiguous.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.candidate_job import ApplicationStatus, JobApplication, JobDismissal, SavedJob
from ...models.listing import Listing
from ...models.user import User
from ...platform.errors import invalid_status, not_found
from ...platform.session_context import SessionContext
from ...shared.utils import commit_or_rollback, utcnow
from ..identity.membership import require_org_member, require_talent

logger = logging.getLogger(__name__)

STATE_NONE = "none"
STATE_DISMISSED = "dismissed"
STATE_SAVED = "saved"
STATE_APPLYING = "applying"
STATE_APPLIED = "applied"

CANDIDATE_JOB_STATES = (STATE_NONE, STATE_DISMISSED, STATE_SAVED, STATE_APPLYING, STATE_APPLIED)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------

def resolve_state(
    application: Optional[JobApplication],
    saved: Optional[SavedJob],
    dismissal: Optional[JobDismissal],
) -> str:
    """Collapse the three backing records into one state (application wins)."""
    if application is not None:
        if application.status == ApplicationStatus.SUBMITTED.value:
            return STATE_APPLIED
        return STATE_APPLYING
    if saved is not None:
        return STATE_SAVED
    if dismissal is not None:
        return STATE_DISMISSED
    return STATE_NONE


def _load_records(db: Session, candidate_id: int, listing_id: int):
    application = (
        db.query(JobApplication)
        .filter(JobApplication.candidate_id == candidate_id, JobApplication.listing_id == listing_id)
        .first()
    )
    saved = (
        db.query(SavedJob)
        .filter(SavedJob.candidate_id == candidate_id, SavedJob.listing_id == listing_id)
        .first()
    )
    dismissal = (
        db.query(JobDismissal)
        .filter(JobDismissal.candidate_id == candidate_id, JobDismissal.listing_id == listing_id)
        .first()
    )
    return application, saved, dismissal


def get_state(db: Session, candidate_id: int, listing_id: int) -> Dict[str, Any]:
    application, saved, dismissal = _load_records(db, candidate_id, listing_id)
    status = resolve_state(application, saved, dismissal)
    updated_at = None
    if application is not None:
        updated_at = application.submitted_at or application.updated_at or application.created_at
    elif saved is not None:
        updated_at = saved.created_at
    elif dismissal is not None:
        updated_at = dismissal.dismissed_at
    return {
        "listing_id": listing_id,
        "status": status,
        "application_id": application.id if application is not None else None,
        "updated_at": updated_at,
    }


def get_states(db: Session, candidate_id: int, listing_ids: List[int]) -> Dict[int, str]:
    """Batched read used by feeds: listing id -> derived state."""
    if not listing_ids:
        return {}
    applications = {
        row.listing_id: row
        for row in db.query(JobApplication).filter(
            JobApplication.candidate_id == candidate_id, JobApplication.listing_id.in_(listing_ids)
        )
    }
    saved = {
        row.listing_id: row
        for row in db.query(SavedJob).filter(
            SavedJob.candidate_id == candidate_id, SavedJob.listing_id.in_(listing_ids)
        )
    }
    dismissals = {
        row.listing_id: row
        for row in db.query(JobDismissal).filter(
            JobDismissal.candidate_id == candidate_id, JobDismissal.listing_id.in_(listing_ids)
        )
    }
    return {
        listing_id: resolve_state(applications.get(listing_id), saved.get(listing_id), dismissals.get(listing_id))
        for listing_id in listing_ids
    }


def _require_listing(db: Session, listing_id: int) -> Listing:
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise not_found("Job not found.")
    return listing


def _commit_upsert(db: Session, *, action: str, candidate_id: int, listing_id: int) -> None:
    """Commit; a concurrent writer winning the unique key counts as success."""
    try:
        commit_or_rollback(db, action=action)
    except IntegrityError:
        logger.info(
            "Concurrent %s resolved by existing record candidate_id=%s listing_id=%s",
            action,
            candidate_id,
            listing_id,
        )


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def save_job(db: Session, user: User, listing_id: int, ctx: SessionContext) -> Dict[str, Any]:
    """SAVE: none|dismissed -> saved."""
    require_talent(user)
    _require_listing(db, listing_id)
    application, saved, dismissal = _load_records(db, user.id, listing_id)
    state = resolve_state(application, saved, dismissal)
    if state == STATE_SAVED:
        return get_state(db, user.id, listing_id)
    if state not in (STATE_NONE, STATE_DISMISSED):
        raise invalid_status(f"Cannot save a job that is {state}.", state=state)

    if dismissal is not None:
        db.delete(dismissal)
    db.add(SavedJob(candidate_id=user.id, listing_id=listing_id, demo_session_id=ctx.write_tag))
    _commit_upsert(db, action="save_job", candidate_id=user.id, listing_id=listing_id)
    logger.info("Job saved candidate_id=%s listing_id=%s", user.id, listing_id)
    return get_state(db, user.id, listing_id)


def unsave_job(db: Session, user: User, listing_id: int) -> Dict[str, Any]:
    """UNSAVE: saved -> none."""
    application, saved, dismissal = _load_records(db, user.id, listing_id)
    state = resolve_state(application, saved, dismissal)
    if state != STATE_SAVED:
        raise invalid_status(f"Cannot unsave a job that is {state}.", state=state)
    db.delete(saved)
    commit_or_rollback(db, action="unsave_job")
    logger.info("Job unsaved candidate_id=%s listing_id=%s", user.id, listing_id)
    return get_state(db, user.id, listing_id)


def dismiss_job(db: Session, user: User, listing_id: int, ctx: SessionContext) -> Dict[str, Any]:
    """DISMISS: none -> dismissed. Saved or in-flight applications must be unsaved first."""
    require_talent(user)
    _require_listing(db, listing_id)
    application, saved, dismissal = _load_records(db, user.id, listing_id)
    state = resolve_state(application, saved, dismissal)
    if state == STATE_DISMISSED:
        return get_state(db, user.id, listing_id)
    if state != STATE_NONE:
        raise invalid_status(f"Cannot dismiss a job that is {state}.", state=state)

    db.add(JobDismissal(candidate_id=user.id, listing_id=listing_id, demo_session_id=ctx.write_tag))
    _commit_upsert(db, action="dismiss_job", candidate_id=user.id, listing_id=listing_id)
    logger.info("Job dismissed candidate_id=%s listing_id=%s", user.id, listing_id)
    return get_state(db, user.id, listing_id)


def start_apply(
    db: Session,
    user: User,
    listing_id: int,
    ctx: SessionContext,
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """START_APPLY: any non-applied state -> applying (draft upsert)."""
    require_talent(user)
    _require_listing(db, listing_id)
    application, saved, dismissal = _load_records(db, user.id, listing_id)
    state = resolve_state(application, saved, dismissal)
    if state == STATE_APPLIED:
        raise invalid_status("You have already applied to this job.", state=state)

    if application is None:
        db.add(
            JobApplication(
                candidate_id=user.id,
                listing_id=listing_id,
                status=ApplicationStatus.DRAFT.value,
                payload=payload or {},
                demo_session_id=ctx.write_tag,
            )
        )
    elif payload is not None:
        application.payload = payload
    _commit_upsert(db, action="start_apply", candidate_id=user.id, listing_id=listing_id)
    logger.info("Application started candidate_id=%s listing_id=%s", user.id, listing_id)
    return get_state(db, user.id, listing_id)


def submit_apply(
    db: Session,
    user: User,
    listing_id: int,
    ctx: SessionContext,
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """SUBMIT_APPLY: -> applied. Removes the saved record in the same transaction."""
    require_talent(user)
    _require_listing(db, listing_id)
    application, saved, dismissal = _load_records(db, user.id, listing_id)
    if application is not None and application.status == ApplicationStatus.SUBMITTED.value:
        return get_state(db, user.id, listing_id)

    now = utcnow()
    if application is None:
        application = JobApplication(
            candidate_id=user.id,
            listing_id=listing_id,
            demo_session_id=ctx.write_tag,
        )
        db.add(application)
    application.status = ApplicationStatus.SUBMITTED.value
    application.submitted_at = now
    if payload is not None:
        application.payload = payload
    if saved is not None:
        db.delete(saved)

    try:
        commit_or_rollback(db, action="submit_apply")
    except IntegrityError:
        # A concurrent draft insert won; promote it and clear the save again.
        db.query(JobApplication).filter(
            JobApplication.candidate_id == user.id,
            JobApplication.listing_id == listing_id,
        ).update(
            {JobApplication.status: ApplicationStatus.SUBMITTED.value, JobApplication.submitted_at: now},
            synchronize_session=False,
        )
        db.query(SavedJob).filter(
            SavedJob.candidate_id == user.id, SavedJob.listing_id == listing_id
        ).delete(synchronize_session=False)
        commit_or_rollback(db, action="submit_apply")
    logger.info("Application submitted candidate_id=%s listing_id=%s", user.id, listing_id)
    return get_state(db, user.id, listing_id)


def save_instead(db: Session, user: User, listing_id: int, ctx: SessionContext) -> Dict[str, Any]:
    """SAVE_INSTEAD: applying -> saved. Drops the draft application."""
    require_talent(user)
    _require_listing(db, listing_id)
    application, saved, dismissal = _load_records(db, user.id, listing_id)
    state = resolve_state(application, saved, dismissal)
    if state != STATE_APPLYING:
        raise invalid_status(f"Cannot save instead of applying when the job is {state}.", state=state)

    db.delete(application)
    if dismissal is not None:
        db.delete(dismissal)
    if saved is None:
        db.add(SavedJob(candidate_id=user.id, listing_id=listing_id, demo_session_id=ctx.write_tag))
    _commit_upsert(db, action="save_instead", candidate_id=user.id, listing_id=listing_id)
    logger.info("Draft application replaced by save candidate_id=%s listing_id=%s", user.id, listing_id)
    return get_state(db, user.id, listing_id)


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

def list_saved_jobs(db: Session, user: User) -> List[Listing]:
    return (
        db.query(Listing)
        .join(SavedJob, SavedJob.listing_id == Listing.id)
        .outerjoin(
            JobApplication,
            (JobApplication.listing_id == Listing.id) & (JobApplication.candidate_id == user.id),
        )
        .filter(SavedJob.candidate_id == user.id, JobApplication.id.is_(None))
        .order_by(SavedJob.created_at.desc(), SavedJob.id.desc())
        .all()
    )


def list_my_applications(db: Session, user: User) -> List[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(
            JobApplication.candidate_id == user.id,
            JobApplication.status == ApplicationStatus.SUBMITTED.value,
        )
        .order_by(JobApplication.submitted_at.desc(), JobApplication.id.desc())
        .all()
    )


def list_listing_applications(db: Session, user: User, listing_id: int) -> List[JobApplication]:
    listing = _require_listing(db, listing_id)
    require_org_member(db, listing.organization_id, user)
    return (
        db.query(JobApplication)
        .filter(
            JobApplication.listing_id == listing_id,
            JobApplication.status == ApplicationStatus.SUBMITTED.value,
        )
        .order_by(JobApplication.submitted_at.asc(), JobApplication.id.asc())
        .all()
    )
