"""
Remote Thread Store Client - fetch, create and delete threads over HTTP.
"""

from typing import List, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..core.exceptions import StoreError
from ..models import Thread, ThreadEnvelope, ThreadListEnvelope
from .base import ApiClient
from .session import Credential

THREADS_PATH = "/api/chat/threads"

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


def parse_envelope(response: httpx.Response, model: Type[EnvelopeT]) -> EnvelopeT:
    """Decode a success body, treating anything unexpected as a store failure."""
    try:
        return model.model_validate(response.json())
    except (ValueError, PydanticValidationError) as e:
        raise StoreError(f"Unexpected response body: {e}") from e


class ThreadStoreClient(ApiClient):
    """
    Client for the thread collection.

    No call has side effects beyond its request; caching and optimistic state
    live in ThreadSync.
    """

    async def list(self, credential: Credential, user_id: str) -> List[Thread]:
        """
        Fetch the user's threads, most recently updated first.

        ``user_id`` is not sent: the server scopes by the token. A listing that
        contains someone else's thread is rejected rather than shown.
        """
        response = await self._request("GET", THREADS_PATH, credential)
        if not response.content:
            return []
        threads = parse_envelope(response, ThreadListEnvelope).threads
        for thread in threads:
            if thread.user_id != user_id:
                raise StoreError("Thread listing contains foreign threads")
        return threads

    async def create(self, credential: Credential, title: str) -> Thread:
        """Create a thread; the server assigns id and timestamps."""
        response = await self._request("POST", THREADS_PATH, credential, json={"title": title})
        return parse_envelope(response, ThreadEnvelope).thread

    async def get(self, credential: Credential, thread_id: str) -> Thread:
        response = await self._request("GET", f"{THREADS_PATH}/{thread_id}", credential)
        return parse_envelope(response, ThreadEnvelope).thread

    async def delete(self, credential: Credential, thread_id: str) -> None:
        """
        Delete a thread.

        Raises:
            NotFoundError: If it is already gone; callers treat that as success
        """
        await self._request("DELETE", f"{THREADS_PATH}/{thread_id}", credential)
