"""
Starting a conversation: new thread, first exchange, list revalidation.
"""

import logging
from typing import Optional, Tuple

from ..models import Message, Thread
from ..presentation.grouping import make_thread_title
from .chat_client import ChatClient
from .session import SessionProvider
from .sync import ThreadSync

logger = logging.getLogger(__name__)


async def start_conversation(
    sync: ThreadSync,
    chat: ChatClient,
    session: SessionProvider,
    content: str,
    model: Optional[str] = None
) -> Tuple[Thread, Message, Message]:
    """
    Create a thread titled after the first message and run the first exchange.

    The thread goes through ThreadSync, so it shows up in the sidebar at once.
    Appending messages changes its count and timestamp on the server, so the
    list is invalidated afterwards.

    Returns:
        (thread, user message, assistant message)
    """
    thread = await sync.create(make_thread_title(content))
    try:
        user_message, assistant_message = await chat.send(session.current(), thread.id, content, model=model)
    finally:
        sync.invalidate()
    logger.info(f"Started conversation in thread {thread.id}")
    return thread, user_message, assistant_message
