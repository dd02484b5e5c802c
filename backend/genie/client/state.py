"""
States of a user's thread list.

Each state is its own frozen dataclass carrying only the data that makes
sense in it, tagged with a SyncStatus for quick checks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from ..core.exceptions import GenieError


class SyncStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    DEGRADED = "degraded"
    FAILED = "failed"
    MUTATING = "mutating"


@dataclass(frozen=True)
class Idle:
    """Nothing fetched yet."""
    status: ClassVar[SyncStatus] = SyncStatus.IDLE


@dataclass(frozen=True)
class Fetching:
    """A list request is in flight.

    ``revalidating`` fetches run behind data that is already shown; ``attempt``
    counts network retries of this fetch.
    """
    token: int
    revalidating: bool = False
    attempt: int = 0
    status: ClassVar[SyncStatus] = SyncStatus.FETCHING


@dataclass(frozen=True)
class Ready:
    """The visible list reflects a fetch (or the persistent cache)."""
    fetched_at: float
    from_cache: bool = False
    invalidated: bool = False
    status: ClassVar[SyncStatus] = SyncStatus.READY

    def is_stale(self, now: float, stale_after: float) -> bool:
        return self.from_cache or self.invalidated or now - self.fetched_at > stale_after


@dataclass(frozen=True)
class Degraded:
    """The fetch hit a network error; the persistent cache is being consulted."""
    error: GenieError
    status: ClassVar[SyncStatus] = SyncStatus.DEGRADED


@dataclass(frozen=True)
class Failed:
    """The last fetch failed with nothing to fall back on. Cleared by the next fetch."""
    error: GenieError
    status: ClassVar[SyncStatus] = SyncStatus.FAILED


FetchState = Union[Idle, Fetching, Ready, Degraded, Failed]


@dataclass(frozen=True)
class Mutating:
    """Optimistic creates/deletes are awaiting the server, on top of ``base``."""
    pending: int
    base: FetchState
    status: ClassVar[SyncStatus] = SyncStatus.MUTATING


SyncState = Union[Idle, Fetching, Ready, Degraded, Failed, Mutating]
