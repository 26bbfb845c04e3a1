"""Typed failure reasons shared by every marketplace state transition."""

from __future__ import annotations

from typing import Any

CONFLICT = "conflict"
FORBIDDEN = "forbidden"
VALIDATION = "validation"
NOT_FOUND = "not_found"
INVALID_STATUS = "invalid_status"
UNKNOWN = "unknown"

ERROR_REASONS = (CONFLICT, FORBIDDEN, VALIDATION, NOT_FOUND, INVALID_STATUS, UNKNOWN)

REASON_STATUS_CODES = {
    CONFLICT: 409,
    FORBIDDEN: 403,
    VALIDATION: 422,
    NOT_FOUND: 404,
    INVALID_STATUS: 409,
    UNKNOWN: 500,
}

DEFAULT_MESSAGES = {
    CONFLICT: "This action conflicts with an existing active record.",
    FORBIDDEN: "You do not have access to this organization or record.",
    VALIDATION: "Required information is missing or invalid.",
    NOT_FOUND: "The requested record could not be found.",
    INVALID_STATUS: "This action is not possible in the current status.",
    UNKNOWN: "Something went wrong. Please try again.",
}


class MarketplaceError(Exception):
    """A refused or failed state transition.

    ``reason`` is one of ``ERROR_REASONS``; ``context`` carries extra ids the
    caller needs to act on the failure (e.g. ``existing_offer_id``).
    """

    def __init__(self, reason: str, message: str | None = None, **context: Any):
        if reason not in ERROR_REASONS:
            reason = UNKNOWN
        self.reason = reason
        self.message = message or DEFAULT_MESSAGES[reason]
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return REASON_STATUS_CODES[self.reason]

    def to_detail(self) -> dict[str, Any]:
        return {"reason": self.reason, "message": self.message, **self.context}

    def __repr__(self) -> str:
        return f"MarketplaceError(reason={self.reason!r}, message={self.message!r}, context={self.context!r})"


def conflict(message: str | None = None, **context: Any) -> MarketplaceError:
    return MarketplaceError(CONFLICT, message, **context)


def forbidden(message: str | None = None, **context: Any) -> MarketplaceError:
    return MarketplaceError(FORBIDDEN, message, **context)


def validation(message: str | None = None, **context: Any) -> MarketplaceError:
    return MarketplaceError(VALIDATION, message, **context)


def not_found(message: str | None = None, **context: Any) -> MarketplaceError:
    return MarketplaceError(NOT_FOUND, message, **context)


def invalid_status(message: str | None = None, **context: Any) -> MarketplaceError:
    return MarketplaceError(INVALID_STATUS, message, **context)


def unknown(message: str | None = None, **context: Any) -> MarketplaceError:
    return MarketplaceError(UNKNOWN, message, **context)
