"""Live/demo session context threaded explicitly through every write."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .config import settings

LIVE_MODE = "live"


@dataclass(frozen=True)
class SessionContext:
    is_live: bool = True
    demo_session_id: Optional[str] = None

    @property
    def mode(self) -> str:
        if self.is_live:
            return LIVE_MODE
        return f"demo:{self.demo_session_id or 'anonymous'}"

    @property
    def write_tag(self) -> Optional[str]:
        """Value stored in ``demo_session_id`` columns (None for live writes)."""
        return None if self.is_live else self.demo_session_id


LIVE_SESSION = SessionContext()


def build_session_context(demo_session_id: Optional[str] = None, *, live_backend: Optional[bool] = None) -> SessionContext:
    live = settings.LIVE_BACKEND if live_backend is None else live_backend
    if live:
        return LIVE_SESSION
    cleaned = (demo_session_id or "").strip() or None
    return SessionContext(is_live=False, demo_session_id=cleaned)


def get_session_context(request: Request) -> SessionContext:
    """FastAPI dependency: resolve the caller's session context from headers."""
    return build_session_context(request.headers.get(settings.DEMO_SESSION_HEADER))
