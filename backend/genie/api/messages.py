"""
Chat message API endpoints - read and append messages of an owned thread.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from ..core.exceptions import ValidationError
from ..models import MessageCreate, MessageEnvelope, MessageListEnvelope
from ..storage import ThreadRepository, get_thread_repository
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/api/chat/messages", tags=["messages"])


@router.get("", response_model=MessageListEnvelope)
async def list_messages(
    thread_id: Optional[str] = Query(None, alias="threadId"),
    user_id: str = Depends(get_current_user_id),
    repository: ThreadRepository = Depends(get_thread_repository)
):
    """
    List the messages of a thread in ascending creation order.

    Raises:
        ValidationError: If ``threadId`` is missing
        NotFoundError: If the thread is missing or not owned
    """
    if not thread_id:
        raise ValidationError("Thread ID is required")

    messages = await repository.list_messages(user_id, thread_id)
    return MessageListEnvelope(messages=messages)


@router.post("", response_model=MessageEnvelope, status_code=status.HTTP_201_CREATED)
async def create_message(
    payload: MessageCreate,
    user_id: str = Depends(get_current_user_id),
    repository: ThreadRepository = Depends(get_thread_repository)
):
    """
    Append a message to an owned thread.

    The thread's message count and updated timestamp move with it.
    """
    if not payload.thread_id or not payload.role or not payload.content:
        raise ValidationError("Thread ID, role, and content are required")

    message = await repository.add_message(user_id, payload.thread_id, payload.role, payload.content)
    return MessageEnvelope(message=message)
