"""API module."""

from .auth import router as auth_router
from .threads import router as threads_router
from .messages import router as messages_router
from .assistant import router as assistant_router

__all__ = ['auth_router', 'threads_router', 'messages_router', 'assistant_router']
