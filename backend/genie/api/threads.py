"""
Chat thread API endpoints - list, create, fetch and delete the caller's threads.
"""

import logging
from fastapi import APIRouter, Depends, Response, status

from ..core.exceptions import ValidationError
from ..models import ThreadCreate, ThreadEnvelope, ThreadListEnvelope
from ..storage import ThreadRepository, get_thread_repository
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat/threads", tags=["threads"])


@router.get("", response_model=ThreadListEnvelope)
async def list_threads(
    user_id: str = Depends(get_current_user_id),
    repository: ThreadRepository = Depends(get_thread_repository)
):
    """
    List the caller's threads, most recently updated first.
    """
    threads = await repository.list_threads(user_id)
    logger.debug(f"Fetched {len(threads)} threads for user {user_id}")
    return ThreadListEnvelope(threads=threads)


@router.post("", response_model=ThreadEnvelope, status_code=status.HTTP_201_CREATED)
async def create_thread(
    payload: ThreadCreate,
    user_id: str = Depends(get_current_user_id),
    repository: ThreadRepository = Depends(get_thread_repository)
):
    """
    Create a thread owned by the caller.

    Raises:
        ValidationError: If the title is missing or blank
    """
    if not payload.title or not payload.title.strip():
        raise ValidationError("Title is required")

    thread = await repository.create_thread(user_id, payload.title)
    return ThreadEnvelope(thread=thread)


@router.get("/{thread_id}", response_model=ThreadEnvelope)
async def get_thread(
    thread_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ThreadRepository = Depends(get_thread_repository)
):
    """Fetch one thread; 404 whether it is missing or owned by someone else."""
    thread = await repository.get_thread(user_id, thread_id)
    return ThreadEnvelope(thread=thread)


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ThreadRepository = Depends(get_thread_repository)
):
    """Delete one thread and its messages."""
    await repository.delete_thread(user_id, thread_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
