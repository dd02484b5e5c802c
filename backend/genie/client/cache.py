"""
Persistent Thread Cache - last known thread list, kept on local storage.

Used only as a fallback when fetching the list fails. One entry per
installation; the payload names its owner and is ignored for anyone else.
"""

import logging
import time
from typing import Callable, List, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..models import Thread
from ..storage import StorageInterface

logger = logging.getLogger(__name__)

STORAGE_KEY = "project-genie-threads"
MAX_AGE_SECONDS = 60 * 60


class CacheEntry(BaseModel):
    """Stored payload."""
    user_id: str
    threads: List[Thread]
    timestamp: float  # epoch seconds at capture


class PersistentThreadCache:
    """
    Fallback store of the thread list.

    Reads and writes never raise: an unreadable, foreign or expired entry is a
    miss, and a failed write is logged and ignored.
    """

    def __init__(
        self,
        storage: StorageInterface,
        key: str = STORAGE_KEY,
        max_age: float = MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.key = key
        self.max_age = max_age
        self._clock = clock

    @property
    def _path(self) -> str:
        return f"{self.key}.json"

    async def save(self, user_id: str, threads: List[Thread]) -> bool:
        """Replace the entry with ``threads`` for ``user_id``."""
        entry = CacheEntry(user_id=user_id, threads=list(threads), timestamp=self._clock())
        try:
            saved = await self.storage.save(self._path, entry.model_dump_json())
        except Exception as e:
            logger.warning(f"Failed to save threads to cache: {e}")
            return False
        if not saved:
            logger.warning("Failed to save threads to cache")
        return saved

    async def load_entry(self, user_id: str) -> Optional[CacheEntry]:
        """The stored entry if it belongs to ``user_id`` and is younger than ``max_age``."""
        try:
            content = await self.storage.load(self._path)
        except Exception as e:
            logger.warning(f"Failed to load threads from cache: {e}")
            return None
        if content is None:
            return None

        try:
            entry = CacheEntry.model_validate_json(content)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring unreadable thread cache: {e.error_count()} errors")
            return None

        if entry.user_id != user_id:
            return None
        if self._clock() - entry.timestamp >= self.max_age:
            logger.debug(f"Thread cache for user {user_id} is older than {self.max_age}s")
            return None
        return entry

    async def load(self, user_id: str) -> Optional[List[Thread]]:
        """Cached threads for ``user_id``, or None on any kind of miss."""
        entry = await self.load_entry(user_id)
        return entry.threads if entry is not None else None
