"""Periodic sweeps for passive terminal states."""

import logging

from .celery_app import celery_app
from ..platform.database import SessionLocal

logger = logging.getLogger(__name__)


@celery_app.task(name="matildus.tasks.marketplace_tasks.expire_overdue_offers")
def expire_overdue_offers():
    """Move sent offers past their deadline to expired."""
    from ..components.offers.service import expire_overdue_offers as _expire

    db = SessionLocal()
    try:
        expired = _expire(db)
        return {"status": "ok", "expired": expired}
    except Exception:
        db.rollback()
        logger.exception("Offer expiry sweep failed")
        raise
    finally:
        db.close()


@celery_app.task(name="matildus.tasks.marketplace_tasks.expire_borrow_requests")
def expire_borrow_requests():
    """Close open borrow requests whose shift window has ended."""
    from ..components.borrow.service import expire_requests

    db = SessionLocal()
    try:
        closed = expire_requests(db)
        return {"status": "ok", "closed": closed}
    except Exception:
        db.rollback()
        logger.exception("Borrow request expiry sweep failed")
        raise
    finally:
        db.close()
