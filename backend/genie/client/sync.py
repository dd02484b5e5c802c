"""
Thread Synchronization Layer.

Keeps the visible thread list of the signed-in user in step with the server:

- at most one active list fetch per user, concurrent loads share it
- stale data is served immediately and revalidated in the background
- creates and deletes are applied optimistically and rolled back on failure
- a network failure on fetch is retried, then falls back to the persistent cache
- a failed revalidation keeps the shown list and leaves it stale
- a rejected credential is refreshed once before the error surfaces

Everything runs on one event loop. The only suspension points are the
remote calls and the cache reads/writes, so plain attributes are enough to
keep the per-user state consistent.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from ..core.exceptions import AuthError, GenieError, NetworkError, NotFoundError, ValidationError
from ..core.logging_config import LoggerAdapter
from ..models import Thread, PLACEHOLDER_PREFIX
from .cache import PersistentThreadCache
from .session import Credential, SessionProvider
from .state import Degraded, Failed, FetchState, Fetching, Idle, Mutating, Ready, SyncState
from .thread_client import ThreadStoreClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[str, List[Thread]], None]

STALE_AFTER_SECONDS = 5 * 60
FETCH_RETRIES = 2
RETRY_DELAY_SECONDS = 1.0
MAX_RETRY_DELAY_SECONDS = 30.0


@dataclass
class PendingCreate:
    """Optimistic insert of ``placeholder``; ``confirmed`` once the server answers."""
    request_id: int
    placeholder: Thread
    confirmed: Optional[Thread] = None
    settled_token: Optional[int] = None

    @property
    def settled(self) -> bool:
        return self.confirmed is not None

    def apply(self, threads: List[Thread]) -> List[Thread]:
        thread = self.confirmed or self.placeholder
        if any(t.id == thread.id for t in threads):
            return list(threads)
        return [thread] + list(threads)


@dataclass
class PendingDelete:
    """Optimistic removal of ``thread_id``."""
    request_id: int
    thread_id: str
    done: bool = False
    settled_token: Optional[int] = None

    @property
    def settled(self) -> bool:
        return self.done

    def apply(self, threads: List[Thread]) -> List[Thread]:
        return [t for t in threads if t.id != self.thread_id]


Mutation = Union[PendingCreate, PendingDelete]


@dataclass
class _UserSlot:
    """Everything ThreadSync tracks for one user."""
    user_id: str
    log: logging.LoggerAdapter
    threads: List[Thread] = field(default_factory=list)
    state: FetchState = field(default_factory=Idle)
    token: int = 0
    inflight: Optional["asyncio.Task[List[Thread]]"] = None
    revalidating: bool = False
    # Token of the in-flight fetch that an invalidate() arrived during
    invalidated_token: Optional[int] = None
    # State to return to if the in-flight fetch is cancelled
    resume_state: FetchState = field(default_factory=Idle)
    # Unsettled mutations, plus settled ones a pending fetch may not reflect yet
    mutations: List[Mutation] = field(default_factory=list)
    version: int = 0


class ThreadSync:
    """
    Query/cache layer over ThreadStoreClient for the session's current user.

    Args:
        client: Remote thread store
        cache: Persistent fallback cache
        session: Source of the bearer credential and the active user id
        stale_after: Seconds after which a fetched list is revalidated on access
        fetch_retries: Extra attempts for a list fetch that hits a NetworkError
        retry_delay: Delay before the first retry, doubled for each further one
        clock: Epoch-seconds time source
    """

    def __init__(
        self,
        client: ThreadStoreClient,
        cache: PersistentThreadCache,
        session: SessionProvider,
        stale_after: float = STALE_AFTER_SECONDS,
        fetch_retries: int = FETCH_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._cache = cache
        self._session = session
        self.stale_after = stale_after
        self.fetch_retries = fetch_retries
        self.retry_delay = retry_delay
        self._clock = clock
        self._slots: Dict[str, _UserSlot] = {}
        self._listeners: List[Listener] = []
        self._request_ids = itertools.count(1)

    # -- observation ---------------------------------------------------------

    def threads(self) -> List[Thread]:
        """Visible thread list of the active user (empty when signed out)."""
        slot = self._slots.get(self._session.user_id or "")
        return list(slot.threads) if slot else []

    def state(self) -> SyncState:
        slot = self._slots.get(self._session.user_id or "")
        if slot is None:
            return Idle()
        pending = sum(1 for m in slot.mutations if not m.settled)
        if pending:
            return Mutating(pending=pending, base=slot.state)
        return slot.state

    @property
    def is_stale(self) -> bool:
        """True when the visible list came from the cache or is due for revalidation."""
        slot = self._slots.get(self._session.user_id or "")
        if slot is None or not isinstance(slot.state, Ready):
            return False
        return slot.state.is_stale(self._clock(), self.stale_after)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener(user_id, threads)`` after every change of a visible list.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- fetching ------------------------------------------------------------

    async def load(self) -> List[Thread]:
        """
        Return the visible list, fetching when there is nothing usable yet.

        Fresh data is returned as is; stale data is returned immediately while a
        background fetch revalidates it; otherwise the caller waits for the
        (shared) fetch.
        """
        slot = self._active_slot()

        if slot.inflight is not None:
            if slot.revalidating:
                return list(slot.threads)
            return await asyncio.shield(slot.inflight)

        if isinstance(slot.state, Ready):
            if slot.state.is_stale(self._clock(), self.stale_after):
                slot.log.debug("Serving stale threads, revalidating in background")
                self._start_fetch(slot, revalidating=True)
            return list(slot.threads)

        return await asyncio.shield(self._start_fetch(slot))

    async def refresh(self) -> List[Thread]:
        """Fetch now, joining the in-flight fetch if there is one."""
        slot = self._active_slot()
        task = slot.inflight or self._start_fetch(slot)
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        """
        Mark the list stale so the next load revalidates it.

        A fetch already in flight may have read the server before the change
        that prompted this call, so its result lands stale too.
        """
        slot = self._slots.get(self._session.user_id or "")
        if slot is None:
            return
        if isinstance(slot.state, Ready):
            slot.state = replace(slot.state, invalidated=True)
        if slot.inflight is not None:
            slot.invalidated_token = slot.token
            if isinstance(slot.resume_state, Ready):
                slot.resume_state = replace(slot.resume_state, invalidated=True)

    def cancel(self) -> None:
        """Supersede the in-flight fetch; its result is dropped when it arrives."""
        slot = self._slots.get(self._session.user_id or "")
        if slot is None or slot.inflight is None:
            return
        slot.token += 1
        slot.inflight = None
        slot.log.debug(f"Fetch superseded, token now {slot.token}")
        slot.state = slot.resume_state

    def reset(self, user_id: Optional[str] = None) -> None:
        """Forget everything about a user (e.g. on sign-out)."""
        slot = self._slots.pop(user_id or self._session.user_id or "", None)
        if slot is not None:
            slot.token += 1
            slot.inflight = None

    def _start_fetch(self, slot: _UserSlot, revalidating: bool = False) -> "asyncio.Task[List[Thread]]":
        slot.token += 1
        token = slot.token
        slot.revalidating = revalidating
        slot.resume_state = slot.state
        slot.state = Fetching(token=token, revalidating=revalidating)
        task = asyncio.get_running_loop().create_task(self._fetch(slot, token))
        task.add_done_callback(_consume_task_error)
        slot.inflight = task
        return task

    def _is_current(self, slot: _UserSlot, token: int) -> bool:
        return slot.token == token and self._slots.get(slot.user_id) is slot

    async def _fetch(self, slot: _UserSlot, token: int) -> List[Thread]:
        try:
            server_threads = await self._list_with_retries(slot, token)
        except NetworkError as e:
            if not self._is_current(slot, token):
                return list(slot.threads)
            return await self._fall_back_to_cache(slot, token, e)
        except GenieError as e:
            if self._is_current(slot, token):
                self._fail(slot, e)
                raise
            return list(slot.threads)

        if not self._is_current(slot, token):
            slot.log.debug(f"Discarding result of superseded fetch {token}")
            return list(slot.threads)

        invalidated = slot.invalidated_token == token
        self._settle_fetch(slot)
        self._apply_fetch(slot, server_threads, token)
        slot.state = Ready(fetched_at=self._clock(), invalidated=invalidated)
        slot.log.info(f"Fetched {len(server_threads)} threads")
        await self._mirror(slot)
        return list(slot.threads)

    async def _list_with_retries(self, slot: _UserSlot, token: int) -> List[Thread]:
        """List the user's threads, retrying NetworkErrors with exponential backoff."""
        attempt = 0
        while True:
            try:
                return await self._authorized(lambda cred: self._client.list(cred, slot.user_id))
            except NetworkError as e:
                if attempt >= self.fetch_retries or not self._is_current(slot, token):
                    raise
                delay = min(self.retry_delay * 2 ** attempt, MAX_RETRY_DELAY_SECONDS)
                attempt += 1
                slot.log.info(f"Fetching threads failed ({e.message}), retry {attempt}/{self.fetch_retries} in {delay:g}s")
                slot.state = Fetching(token=token, revalidating=slot.revalidating, attempt=attempt)
                await asyncio.sleep(delay)
                if not self._is_current(slot, token):
                    raise

    async def _fall_back_to_cache(self, slot: _UserSlot, token: int, error: NetworkError) -> List[Thread]:
        slot.state = Degraded(error)
        slot.log.warning(f"Fetching threads failed ({error.message}), trying cache")

        entry = await self._cache.load_entry(slot.user_id)
        if not self._is_current(slot, token):
            return list(slot.threads)

        if entry is None:
            self._fail(slot, error)
            raise error

        self._settle_fetch(slot)
        slot.log.info(f"Using {len(entry.threads)} cached threads")
        self._apply_fetch(slot, entry.threads, token=None)
        slot.state = Ready(fetched_at=entry.timestamp, from_cache=True)
        return list(slot.threads)

    def _fail(self, slot: _UserSlot, error: GenieError) -> None:
        """Settle a failed fetch. A list that was already shown stays, marked stale."""
        self._settle_fetch(slot)
        if isinstance(slot.resume_state, Ready):
            slot.state = replace(slot.resume_state, invalidated=True)
            slot.log.warning(f"Revalidating threads failed, keeping {len(slot.threads)} shown: {error.message}")
        else:
            slot.state = Failed(error)
            slot.log.warning(f"Fetching threads failed: {error.message}")

    @staticmethod
    def _settle_fetch(slot: _UserSlot) -> None:
        slot.inflight = None
        slot.invalidated_token = None

    def _apply_fetch(self, slot: _UserSlot, base: List[Thread], token: Optional[int]) -> None:
        """
        Make ``base`` the visible list with outstanding mutations re-applied.

        ``token`` identifies the server fetch being applied; mutations that
        settled before it was issued are already part of ``base``.
        """
        if token is not None:
            slot.mutations = [
                m for m in slot.mutations
                if not m.settled or (m.settled_token is not None and m.settled_token >= token)
            ]

        threads = list(base)
        for mutation in slot.mutations:
            threads = mutation.apply(threads)
        self._set_threads(slot, threads)

        if token is not None:
            slot.mutations = [m for m in slot.mutations if not m.settled]

    # -- mutations -----------------------------------------------------------

    async def create(self, title: str) -> Thread:
        """
        Create a thread, showing a placeholder until the server confirms it.

        Raises:
            ValidationError: If the title is blank (the list is left untouched)
            GenieError: Whatever the server call failed with, after rollback
        """
        if not title or not title.strip():
            raise ValidationError("Title is required")

        slot = self._active_slot()
        request_id = next(self._request_ids)
        now = self._clock()
        created_at = datetime.fromtimestamp(now, tz=timezone.utc)
        placeholder = Thread(
            id=f"{PLACEHOLDER_PREFIX}{int(now * 1000)}-{request_id}",
            user_id=slot.user_id,
            title=title,
            created_at=created_at,
            updated_at=created_at,
            message_count=0,
        )
        mutation = PendingCreate(request_id=request_id, placeholder=placeholder)

        snapshot = list(slot.threads)
        slot.mutations.append(mutation)
        self._set_threads(slot, mutation.apply(slot.threads))
        version = slot.version

        try:
            thread = await self._authorized(lambda cred: self._client.create(cred, title))
        except BaseException as e:
            self._drop_mutation(slot, mutation)
            if self._slots.get(slot.user_id) is slot:
                if slot.version == version:
                    self._set_threads(slot, snapshot)
                else:
                    self._set_threads(slot, [t for t in slot.threads if t.id != placeholder.id])
            slot.log.warning(f"Create rolled back: {e}")
            raise

        mutation.confirmed = thread
        self._settle(slot, mutation)
        if self._slots.get(slot.user_id) is slot:
            threads = [t for t in slot.threads if t.id != thread.id]
            if any(t.id == placeholder.id for t in threads):
                threads = [thread if t.id == placeholder.id else t for t in threads]
            else:
                threads.insert(0, thread)
            self._set_threads(slot, threads)
            await self._mirror(slot)
        slot.log.info(f"Created thread {thread.id}")
        return thread

    async def delete(self, thread_id: str) -> None:
        """
        Delete a thread, hiding it immediately.

        A thread that is already gone on the server counts as deleted.

        Raises:
            ValidationError: For a placeholder that the server has not confirmed
            GenieError: Whatever the server call failed with, after rollback
        """
        if thread_id.startswith(PLACEHOLDER_PREFIX):
            raise ValidationError("Thread is still being created")

        slot = self._active_slot()
        snapshot = list(slot.threads)
        index = next((i for i, t in enumerate(snapshot) if t.id == thread_id), None)
        mutation = PendingDelete(request_id=next(self._request_ids), thread_id=thread_id)

        slot.mutations.append(mutation)
        self._set_threads(slot, mutation.apply(slot.threads))
        version = slot.version

        try:
            await self._authorized(lambda cred: self._client.delete(cred, thread_id))
        except NotFoundError:
            slot.log.info(f"Thread {thread_id} was already deleted")
        except BaseException as e:
            self._drop_mutation(slot, mutation)
            if self._slots.get(slot.user_id) is slot:
                if slot.version == version:
                    self._set_threads(slot, snapshot)
                elif index is not None and all(t.id != thread_id for t in slot.threads):
                    self._set_threads(slot, _reinsert(slot.threads, snapshot, index))
            slot.log.warning(f"Delete of {thread_id} rolled back: {e}")
            raise

        mutation.done = True
        self._settle(slot, mutation)
        if self._slots.get(slot.user_id) is slot:
            await self._mirror(slot)
        slot.log.info(f"Deleted thread {thread_id}")

    def _settle(self, slot: _UserSlot, mutation: Mutation) -> None:
        if slot.inflight is None:
            self._drop_mutation(slot, mutation)
        else:
            # The in-flight fetch may have read before this write
            mutation.settled_token = slot.token

    @staticmethod
    def _drop_mutation(slot: _UserSlot, mutation: Mutation) -> None:
        if mutation in slot.mutations:
            slot.mutations.remove(mutation)

    # -- plumbing ------------------------------------------------------------

    def _active_slot(self) -> _UserSlot:
        user_id = self._session.user_id
        if not user_id:
            raise AuthError("Not signed in")
        slot = self._slots.get(user_id)
        if slot is None:
            slot = _UserSlot(user_id=user_id, log=LoggerAdapter(logger, {"user_id": user_id}))
            self._slots[user_id] = slot
        return slot

    async def _authorized(self, call: Callable[[Credential], Awaitable[T]]) -> T:
        """Run ``call`` with the current credential, refreshing it once on AuthError."""
        try:
            return await call(self._session.current())
        except AuthError as e:
            logger.info(f"Credential rejected ({e.message}), refreshing")
        return await call(await self._session.refresh())

    def _set_threads(self, slot: _UserSlot, threads: List[Thread]) -> None:
        slot.threads = threads
        slot.version += 1
        for listener in list(self._listeners):
            try:
                listener(slot.user_id, list(threads))
            except Exception:
                logger.exception("Thread list listener failed")

    async def _mirror(self, slot: _UserSlot) -> None:
        """Persist the confirmed part of the visible list."""
        await self._cache.save(slot.user_id, [t for t in slot.threads if not t.is_placeholder])


def _reinsert(threads: List[Thread], snapshot: List[Thread], index: int) -> List[Thread]:
    """Put ``snapshot[index]`` back ahead of the first thread that followed it."""
    following = {t.id for t in snapshot[index + 1:]}
    position = next((i for i, t in enumerate(threads) if t.id in following), len(threads))
    return list(threads[:position]) + [snapshot[index]] + list(threads[position:])


def _consume_task_error(task: "asyncio.Task") -> None:
    """Mark a background fetch's exception as retrieved; awaiting callers still see it."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Thread fetch ended with {type(task.exception()).__name__}")
