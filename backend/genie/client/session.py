"""
Client-side credentials.

The OAuth provider owns sign-in and token refresh; the client only needs the
current bearer token, the user it belongs to, and a way to ask for a new one.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from ..core.exceptions import AuthError

logger = logging.getLogger(__name__)


class Credential(BaseModel):
    """Bearer access token for one user."""
    access_token: str
    user_id: str
    expires_at: Optional[float] = None  # epoch seconds

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at


class SessionProvider(ABC):
    """Source of the active credential."""

    @property
    @abstractmethod
    def user_id(self) -> Optional[str]:
        """Id of the signed-in user, known even when the token has expired."""

    @abstractmethod
    def current(self) -> Credential:
        """
        Return the active credential.

        Raises:
            AuthError: If there is no session or its token has expired
        """

    @abstractmethod
    async def refresh(self) -> Credential:
        """
        Obtain a fresh credential from the provider.

        Raises:
            AuthError: If the session cannot be refreshed (forces re-authentication)
        """


Refresher = Callable[[Credential], Awaitable[Credential]]


class StaticSession(SessionProvider):
    """
    Session holding one credential in memory, with an optional refresh callback
    supplied by the OAuth integration.
    """

    def __init__(
        self,
        credential: Optional[Credential] = None,
        refresher: Optional[Refresher] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._credential = credential
        self._refresher = refresher
        self._clock = clock

    @property
    def user_id(self) -> Optional[str]:
        return self._credential.user_id if self._credential else None

    def sign_in(self, credential: Credential) -> None:
        self._credential = credential

    def sign_out(self) -> None:
        self._credential = None

    def current(self) -> Credential:
        if self._credential is None:
            raise AuthError("Not signed in")
        if self._credential.is_expired(self._clock()):
            raise AuthError("Session expired")
        return self._credential

    async def refresh(self) -> Credential:
        if self._credential is None or self._refresher is None:
            raise AuthError("Session cannot be refreshed")

        logger.info(f"Refreshing credential for user {self._credential.user_id}")
        refreshed = await self._refresher(self._credential)
        if refreshed.user_id != self._credential.user_id:
            raise AuthError("Refreshed session belongs to a different user")
        self._credential = refreshed
        return refreshed
