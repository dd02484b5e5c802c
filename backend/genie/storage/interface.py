"""
Storage Interface - contract for the byte stores behind the thread repository
and the client's persistent cache. A managed database or object store can be
swapped in by implementing these five methods.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageInterface(ABC):
    """Abstract key/path addressed byte store."""

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content at the given relative path, replacing what was there.

        Args:
            path: Relative path, e.g. "threads/<user_id>/<thread_id>.json"
            content: Bytes or text to store

        Returns:
            bool: True if the write succeeded
        """

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the given relative path.

        Returns:
            Optional[bytes]: Stored bytes, or None if absent or unreadable
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return True if something is stored at ``path``."""

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete the content at ``path``.

        Returns:
            bool: True if something was deleted, False if nothing was there
        """

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List relative paths of files directly under a directory.

        Args:
            path: Directory to list
            pattern: Optional glob pattern, e.g. "*.json"
        """
