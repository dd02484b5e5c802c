"""
Tests for client sessions and starting a conversation end to end.
"""

from types import SimpleNamespace

import httpx
import pytest

from genie.client import (
    ChatClient,
    Credential,
    PersistentThreadCache,
    Ready,
    StaticSession,
    ThreadStoreClient,
    ThreadSync,
    create_thread_sync,
    start_conversation,
)
from genie.core.exceptions import AuthError, NetworkError
from genie.main import app
from genie.storage import LocalStorage, get_thread_repository
from genie.utils.auth import create_access_token


class TestStaticSession:

    def test_signed_out(self):
        session = StaticSession()
        assert session.user_id is None
        with pytest.raises(AuthError):
            session.current()

    def test_expired_credential(self):
        session = StaticSession(Credential(access_token="t", user_id="u1", expires_at=100.0), clock=lambda: 100.0)
        assert session.user_id == "u1"
        with pytest.raises(AuthError):
            session.current()

    def test_sign_in_and_out(self):
        session = StaticSession()
        session.sign_in(Credential(access_token="t", user_id="u1"))
        assert session.current().access_token == "t"
        session.sign_out()
        assert session.user_id is None

    @pytest.mark.asyncio
    async def test_refresh_cannot_switch_user(self):
        async def refresher(credential):
            return Credential(access_token="t2", user_id="someone-else")

        session = StaticSession(Credential(access_token="t", user_id="u1"), refresher=refresher)
        with pytest.raises(AuthError):
            await session.refresh()
        assert session.current().access_token == "t"


@pytest.fixture
def stack(repository, tmp_path):
    """ThreadSync and ChatClient wired to the app in-process."""
    app.dependency_overrides[get_thread_repository] = lambda: repository
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    session = StaticSession(Credential(access_token=create_access_token({"sub": "user-erin"}), user_id="user-erin"))
    cache = PersistentThreadCache(LocalStorage(str(tmp_path / "cache")))
    sync = ThreadSync(ThreadStoreClient(http), cache, session)
    yield sync, ChatClient(http), session, cache
    app.dependency_overrides.clear()


class TestStartConversation:

    @pytest.mark.asyncio
    async def test_creates_thread_and_exchange(self, stack):
        sync, chat, session, cache = stack
        await sync.load()

        thread, user_message, assistant_message = await start_conversation(
            sync, chat, session, "Help me plan a trip to the mountains this summer please"
        )

        assert thread.title == "Help me plan a trip to the mountains this summer p..."
        assert user_message.thread_id == assistant_message.thread_id == thread.id
        assert [t.id for t in sync.threads()] == [thread.id]
        assert sync.is_stale is True

        # The next load serves the list and revalidates it
        await sync.load()
        refreshed = await sync.refresh()
        assert refreshed[0].message_count == 2
        assert isinstance(sync.state(), Ready)
        assert [t.id for t in await cache.load("user-erin")] == [thread.id]

    @pytest.mark.asyncio
    async def test_exchange_failure_keeps_thread(self, stack, monkeypatch):
        sync, chat, session, _ = stack
        await sync.load()

        async def offline(*args, **kwargs):
            raise NetworkError("offline")

        monkeypatch.setattr(chat, "ask_assistant", offline)
        with pytest.raises(NetworkError):
            await start_conversation(sync, chat, session, "hello")

        # The thread itself was created before the exchange failed
        assert [t.title for t in sync.threads()] == ["hello"]
        assert sync.is_stale is True


class TestClientFactory:

    @pytest.mark.asyncio
    async def test_builds_stack_from_settings(self, repository, tmp_path):
        config = SimpleNamespace(
            api_base_url="http://testserver",
            thread_cache_dir=str(tmp_path / "client-cache"),
            thread_stale_seconds=42,
            thread_fetch_retries=1,
            thread_retry_delay_seconds=0.5,
            thread_cache_max_age_seconds=120,
        )
        app.dependency_overrides[get_thread_repository] = lambda: repository
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
        session = StaticSession(Credential(access_token=create_access_token({"sub": "user-finn"}), user_id="user-finn"))
        try:
            sync, chat = create_thread_sync(http, session, config=config)

            assert sync.stale_after == 42
            assert (sync.fetch_retries, sync.retry_delay) == (1, 0.5)
            thread = await sync.create("Configured")
            assert [t.id for t in await sync.refresh()] == [thread.id]
            assert (tmp_path / "client-cache" / "project-genie-threads.json").exists()
            assert await chat.list_messages(session.current(), thread.id) == []
        finally:
            app.dependency_overrides.clear()
