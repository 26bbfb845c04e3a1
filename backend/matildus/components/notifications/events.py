"""Domain events handed to the external notifier.

The marketplace core never pushes notifications itself. After a state
transition commits, services call :func:`emit_event`; in MVP mode (Celery
disabled) registered listeners run in-process, otherwise delivery is queued on
Celery and posted to ``NOTIFICATIONS_WEBHOOK_URL``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List

from ...platform.config import settings
from ...platform.request_context import get_request_id
from ...shared.utils import utcnow

logger = logging.getLogger(__name__)

MATCH_CREATED = "match.created"
OFFER_SENT = "offer.sent"
OFFER_RESPONDED = "offer.responded"
BORROW_OFFER_RECEIVED = "borrow_offer.received"
BORROW_REQUEST_FILLED = "borrow_request.filled"
CIRCLE_INVITED = "circle.invited"
RELEASE_OFFER_TAKEN = "release_offer.taken"


@dataclass
class DomainEvent:
    name: str
    payload: Dict[str, Any]
    occurred_at: str = field(default_factory=lambda: utcnow().isoformat())
    request_id: str | None = field(default_factory=get_request_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Listener = Callable[[DomainEvent], None]

_listeners: List[Listener] = []


def subscribe(listener: Listener) -> Listener:
    _listeners.append(listener)
    return listener


def unsubscribe(listener: Listener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def _dispatch_in_process(event: DomainEvent) -> None:
    for listener in list(_listeners):
        try:
            listener(event)
        except Exception:
            logger.exception("Domain event listener failed for %s", event.name)


def emit_event(name: str, **payload: Any) -> DomainEvent:
    """Emit a committed domain event. Delivery failures never fail the caller."""
    event = DomainEvent(name=name, payload=payload)
    logger.info("Domain event %s %s", name, payload)
    _dispatch_in_process(event)
    if not settings.MVP_DISABLE_CELERY:
        try:
            from ...tasks.notification_tasks import deliver_domain_event

            deliver_domain_event.delay(event.to_dict())
        except Exception:
            logger.exception("Failed to enqueue domain event %s", name)
    return event
