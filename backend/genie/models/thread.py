"""
Thread Models - conversation containers owned by a single user.
"""

from datetime import datetime, timezone
from typing import Optional, List
from pydantic import BaseModel, Field

PLACEHOLDER_PREFIX = "temp-"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Thread(BaseModel):
    """Chat thread as stored and served."""
    id: str
    user_id: str
    title: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    message_count: int = Field(0, ge=0)

    @property
    def is_placeholder(self) -> bool:
        """True for optimistic threads the server has not confirmed yet."""
        return self.id.startswith(PLACEHOLDER_PREFIX)


class ThreadCreate(BaseModel):
    """Body of POST /api/chat/threads. Title presence is checked by the route."""
    title: Optional[str] = None


class ThreadEnvelope(BaseModel):
    thread: Thread


class ThreadListEnvelope(BaseModel):
    threads: List[Thread] = []
