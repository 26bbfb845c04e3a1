"""Shared utility functions used across components."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..platform.errors import unknown

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Return the current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return datetime as timezone-aware UTC. Returns None if input is None."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def windows_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap: [a) and [b) share at least one instant."""
    return ensure_utc(start_a) < ensure_utc(end_b) and ensure_utc(start_b) < ensure_utc(end_a)


def day_window(start: date, end: date | None = None) -> tuple[datetime, datetime]:
    """Whole-day UTC window covering ``start`` through ``end`` inclusive."""
    last = end or start
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(last + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )


def commit_or_rollback(db: Session, *, action: str) -> None:
    """Commit the unit of work; on database failure roll back and raise ``unknown``.

    Integrity errors are left to the caller, which knows what the violated
    constraint means.
    """
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if isinstance(exc, IntegrityError):
            raise
        logger.exception("Database error during %s", action)
        raise unknown(f"Could not complete {action.replace('_', ' ')}. Please try again.") from exc


def same_location(column, location: str):
    """Case- and whitespace-insensitive location comparison for a query filter."""
    return func.lower(func.trim(column)) == (location or "").strip().lower()
