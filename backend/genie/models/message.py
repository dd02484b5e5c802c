"""
Message Models - chat messages inside a thread.
"""

from datetime import datetime
from typing import Literal, Optional, List
from pydantic import BaseModel, ConfigDict, Field

from .thread import utc_now

MessageRole = Literal["user", "assistant", "system"]


class Message(BaseModel):
    """Chat message model."""
    id: str
    thread_id: str
    user_id: str
    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class MessageCreate(BaseModel):
    """Body of POST /api/chat/messages; required fields are checked by the route."""
    model_config = ConfigDict(populate_by_name=True)

    thread_id: Optional[str] = Field(None, alias="threadId")
    role: Optional[MessageRole] = None
    content: Optional[str] = None


class MessageEnvelope(BaseModel):
    message: Message


class MessageListEnvelope(BaseModel):
    messages: List[Message]
