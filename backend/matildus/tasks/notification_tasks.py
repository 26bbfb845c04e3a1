import logging

from .celery_app import celery_app
from ..platform.config import settings

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def deliver_domain_event(self, event: dict):
    """Hand a committed domain event to the external notifier."""
    from ..components.notifications.webhook_client import NotifierWebhookClient

    client = NotifierWebhookClient(settings.NOTIFICATIONS_WEBHOOK_URL)
    result = client.deliver(event)
    if result.get("skipped"):
        return result
    if not result.get("success"):
        logger.error(
            "Failed to deliver event %s: %s", event.get("name"), result.get("error"),
            extra={"request_id": event.get("request_id") or self.request.id},
        )
        raise self.retry(exc=RuntimeError(result.get("error", "Event delivery failed")))
    logger.info("Delivered event %s", event.get("name"), extra={"request_id": event.get("request_id") or self.request.id})
    return result
