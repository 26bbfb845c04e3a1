"""
Shared dependencies. Re-exports get_current_user from FastAPI-Users and the
per-request session context.
"""

from .api.v1.users_fastapi import current_active_user as get_current_user
from .components.scoring.client import get_scorer
from .platform.session_context import get_session_context

__all__ = ["get_current_user", "get_scorer", "get_session_context"]
