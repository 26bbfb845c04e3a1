from celery import Celery
from ..platform.config import settings

celery_app = Celery(
    "matildus",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "expire-overdue-offers": {
            "task": "matildus.tasks.marketplace_tasks.expire_overdue_offers",
            "schedule": settings.OFFER_EXPIRY_SWEEP_SECONDS,
        },
        "expire-borrow-requests": {
            "task": "matildus.tasks.marketplace_tasks.expire_borrow_requests",
            "schedule": settings.BORROW_EXPIRY_SWEEP_SECONDS,
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["matildus.tasks"])
