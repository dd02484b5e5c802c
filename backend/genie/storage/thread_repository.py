"""
Thread Repository - owner-scoped persistence for threads and their messages.

Layout inside the storage backend:
    threads/<user_id>/<thread_id>.json   one Thread document
    messages/<thread_id>.json            JSON list of Message documents

Every lookup is keyed by the authenticated user id, so a thread owned by
someone else is indistinguishable from a missing one.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, List

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import NotFoundError, StoreError
from ..models import Thread, Message, MessageRole
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class ThreadRepository:
    """Thread and message store on top of a StorageInterface."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.threads_dir = "threads"
        self.messages_dir = "messages"
        # Message appends read-modify-write two documents
        self._write_lock = asyncio.Lock()

    def _thread_path(self, user_id: str, thread_id: str) -> str:
        return f"{self.threads_dir}/{_safe_segment(user_id)}/{_checked_id(thread_id)}.json"

    def _messages_path(self, thread_id: str) -> str:
        return f"{self.messages_dir}/{_checked_id(thread_id)}.json"

    async def _write_thread(self, thread: Thread) -> None:
        saved = await self.storage.save(
            self._thread_path(thread.user_id, thread.id),
            thread.model_dump_json()
        )
        if not saved:
            raise StoreError("Failed to save chat thread")

    async def list_threads(self, user_id: str) -> List[Thread]:
        """All threads of a user, most recently updated first."""
        files = await self.storage.list(f"{self.threads_dir}/{_safe_segment(user_id)}", pattern="*.json")
        threads = []
        for file_path in files:
            content = await self.storage.load(file_path)
            if content is None:
                continue
            try:
                threads.append(Thread.model_validate_json(content))
            except PydanticValidationError as e:
                logger.warning(f"Skipping unreadable thread document {file_path}: {e}")
        threads.sort(key=lambda t: t.updated_at, reverse=True)
        return threads

    async def get_thread(self, user_id: str, thread_id: str) -> Thread:
        """
        Load one thread owned by ``user_id``.

        Raises:
            NotFoundError: If the thread does not exist or is owned by someone else
            StoreError: If the stored document is unreadable
        """
        try:
            path = self._thread_path(user_id, thread_id)
        except ValueError:
            raise NotFoundError("Thread not found")

        content = await self.storage.load(path)
        if content is None:
            raise NotFoundError("Thread not found")
        try:
            return Thread.model_validate_json(content)
        except PydanticValidationError as e:
            logger.error(f"Corrupt thread document {path}: {e}")
            raise StoreError("Failed to fetch chat thread")

    async def create_thread(self, user_id: str, title: str) -> Thread:
        now = datetime.now(timezone.utc)
        thread = Thread(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            created_at=now,
            updated_at=now,
            message_count=0,
        )
        await self._write_thread(thread)
        logger.info(f"Created thread {thread.id} for user {user_id}")
        return thread

    async def delete_thread(self, user_id: str, thread_id: str) -> None:
        """
        Delete a thread and its messages.

        Raises:
            NotFoundError: If the thread does not exist or is not owned by ``user_id``
        """
        thread = await self.get_thread(user_id, thread_id)
        async with self._write_lock:
            if not await self.storage.delete(self._thread_path(user_id, thread.id)):
                raise NotFoundError("Thread not found")
            await self.storage.delete(self._messages_path(thread.id))
        logger.info(f"Deleted thread {thread.id} for user {user_id}")

    async def _load_messages(self, thread_id: str) -> List[Message]:
        content = await self.storage.load(self._messages_path(thread_id))
        if content is None:
            return []
        try:
            return [Message.model_validate(item) for item in json.loads(content)]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error(f"Corrupt message log for thread {thread_id}: {e}")
            raise StoreError("Failed to fetch messages")

    async def list_messages(self, user_id: str, thread_id: str) -> List[Message]:
        """Messages of an owned thread in ascending creation order."""
        thread = await self.get_thread(user_id, thread_id)
        messages = await self._load_messages(thread.id)
        messages.sort(key=lambda m: m.created_at)
        return messages

    async def add_message(
        self,
        user_id: str,
        thread_id: str,
        role: MessageRole,
        content: str
    ) -> Message:
        """
        Append a message to an owned thread and bump the thread's
        ``message_count`` and ``updated_at``.
        """
        async with self._write_lock:
            thread = await self.get_thread(user_id, thread_id)
            messages = await self._load_messages(thread.id)

            message = Message(
                id=str(uuid.uuid4()),
                thread_id=thread.id,
                user_id=user_id,
                role=role,
                content=content,
            )
            messages.append(message)

            payload = json.dumps([m.model_dump(mode="json") for m in messages], ensure_ascii=False)
            if not await self.storage.save(self._messages_path(thread.id), payload):
                raise StoreError("Failed to create message")

            await self._write_thread(thread.model_copy(update={
                "message_count": len(messages),
                "updated_at": message.created_at,
            }))
        return message


def _checked_id(thread_id: str) -> str:
    """Thread ids are UUIDs; anything else can never name a stored thread."""
    return str(uuid.UUID(str(thread_id)))


def _safe_segment(value: str) -> str:
    if not value or "/" in value or "\\" in value or value in (".", ".."):
        raise ValueError(f"Invalid path segment: {value!r}")
    return value


# Process-wide repository, set up by the app lifespan
_thread_repository: Optional[ThreadRepository] = None


def init_thread_repository(storage: StorageInterface) -> ThreadRepository:
    """Initialize the global thread repository."""
    global _thread_repository
    _thread_repository = ThreadRepository(storage)
    return _thread_repository


def get_thread_repository() -> ThreadRepository:
    """FastAPI dependency returning the global repository, creating it on first use."""
    global _thread_repository
    if _thread_repository is None:
        from ..config import settings
        from .local_storage import LocalStorage
        _thread_repository = ThreadRepository(LocalStorage(settings.local_storage_path))
    return _thread_repository
