"""Client module - thread store client, persistent cache and the synchronization layer."""

from .session import Credential, SessionProvider, StaticSession
from .thread_client import ThreadStoreClient
from .chat_client import ChatClient
from .cache import PersistentThreadCache, CacheEntry
from .state import SyncStatus, Idle, Fetching, Ready, Degraded, Failed, Mutating
from .sync import ThreadSync
from .conversation import start_conversation
from .factory import create_thread_sync

__all__ = [
    'Credential', 'SessionProvider', 'StaticSession',
    'ThreadStoreClient', 'ChatClient',
    'PersistentThreadCache', 'CacheEntry',
    'SyncStatus', 'Idle', 'Fetching', 'Ready', 'Degraded', 'Failed', 'Mutating',
    'ThreadSync', 'start_conversation', 'create_thread_sync'
]
