"""
Sidebar history navigation.

Holds the date-grouped view of the thread list and regroups only when the
list's identity-and-timestamp fingerprint changes (or the local day rolls
over). Toggling, selection and any other UI state reuse the cached groups.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from ..models import Thread
from .grouping import BUCKET_TITLES, DateBucket, group_threads_by_date

if TYPE_CHECKING:
    from ..client.sync import ThreadSync

EMPTY_MESSAGE = "No chat threads yet"

Fingerprint = Tuple[Tuple[str, datetime], ...]


def thread_fingerprint(threads: List[Thread]) -> Fingerprint:
    return tuple((t.id, t.updated_at) for t in threads)


@dataclass(frozen=True)
class NavGroup:
    bucket: DateBucket
    title: str
    threads: Tuple[Thread, ...]


@dataclass(frozen=True)
class NavigationView:
    expanded: bool
    groups: Tuple[NavGroup, ...]
    active_thread_id: Optional[str] = None
    empty_message: Optional[str] = None


class ThreadNavigation:
    """
    "History" section of the sidebar.

    Args:
        sync: Synchronization layer to follow
        clock: Returns the current local time
        navigate: Called with the route of a selected thread
    """

    def __init__(
        self,
        sync: "ThreadSync",
        clock: Optional[Callable[[], datetime]] = None,
        navigate: Optional[Callable[[str], None]] = None,
    ):
        self._sync = sync
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._navigate = navigate
        self.expanded = True
        self.active_thread_id: Optional[str] = None
        self.render_count = 0

        self._threads: List[Thread] = sync.threads()
        self._key: Optional[Tuple[Fingerprint, date]] = None
        self._groups: Tuple[NavGroup, ...] = ()
        self._unsubscribe = sync.subscribe(self._on_threads_changed)

    def _on_threads_changed(self, user_id: str, threads: List[Thread]) -> None:
        # Listeners fire for every user; only the active user's list is shown
        self._threads = self._sync.threads()

    def groups(self) -> Tuple[NavGroup, ...]:
        """Non-empty buckets in display order, recomputed only when needed."""
        now = self._clock()
        local_now = now if now.tzinfo is not None else now.astimezone()
        key = (thread_fingerprint(self._threads), local_now.date())
        if key != self._key:
            grouped = group_threads_by_date(self._threads, now)
            self._groups = tuple(
                NavGroup(bucket=bucket, title=BUCKET_TITLES[bucket], threads=tuple(threads))
                for bucket, threads in grouped.items()
                if threads
            )
            self._key = key
            self.render_count += 1
        return self._groups

    @property
    def empty_message(self) -> Optional[str]:
        """Placeholder text when there is nothing to list and nothing loading."""
        if self._threads:
            return None
        state = self._sync.state()
        if getattr(state, "status", None) == "fetching" and not getattr(state, "revalidating", False):
            return None
        return EMPTY_MESSAGE

    def render(self) -> NavigationView:
        return NavigationView(
            expanded=self.expanded,
            groups=self.groups() if self.expanded else (),
            active_thread_id=self.active_thread_id,
            empty_message=self.empty_message if self.expanded else None,
        )

    def toggle(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded

    def select(self, thread_id: str) -> None:
        self.active_thread_id = thread_id
        if self._navigate is not None:
            self._navigate(f"/chat/{thread_id}")

    def close(self) -> None:
        """Stop following the synchronization layer."""
        self._unsubscribe()
