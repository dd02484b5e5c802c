"""
Client Factory - wires the thread store client, persistent cache and
synchronization layer from configuration.
"""

from typing import Any, Optional, Tuple

import httpx

from ..config import settings
from ..storage import LocalStorage
from .cache import PersistentThreadCache
from .chat_client import ChatClient
from .session import SessionProvider
from .sync import ThreadSync
from .thread_client import ThreadStoreClient


def create_thread_sync(
    http: httpx.AsyncClient,
    session: SessionProvider,
    config: Optional[Any] = None,
    base_url: Optional[str] = None,
    cache_dir: Optional[str] = None,
) -> Tuple[ThreadSync, ChatClient]:
    """
    Build the client stack for one signed-in app instance.

    Args:
        http: Shared httpx client, owned by the caller
        session: Source of the bearer credential
        config: Settings object (defaults to the global settings)
        base_url: Overrides ``api_base_url``
        cache_dir: Overrides ``thread_cache_dir``

    Returns:
        (ThreadSync, ChatClient) sharing the same base URL
    """
    config = config or settings
    base_url = base_url if base_url is not None else config.api_base_url

    cache = PersistentThreadCache(
        LocalStorage(cache_dir or config.thread_cache_dir),
        max_age=config.thread_cache_max_age_seconds,
    )
    sync = ThreadSync(
        ThreadStoreClient(http, base_url),
        cache,
        session,
        stale_after=config.thread_stale_seconds,
        fetch_retries=config.thread_fetch_retries,
        retry_delay=config.thread_retry_delay_seconds,
    )
    return sync, ChatClient(http, base_url)
