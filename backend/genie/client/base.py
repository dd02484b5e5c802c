"""
Shared HTTP plumbing for the Genie API clients.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..core.exceptions import AuthError, NetworkError, error_for_status
from .session import Credential

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull the server's error text out of a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or None
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if payload.get(key):
                return str(payload[key])
    return None


class ApiClient:
    """
    Thin wrapper around an ``httpx.AsyncClient``.

    The caller owns the httpx client and its lifetime; tests hand in one built
    on ``httpx.MockTransport`` or ``httpx.ASGITransport``.
    """

    def __init__(self, http: httpx.AsyncClient, base_url: str = ""):
        self.http = http
        self.base_url = base_url.rstrip("/")

    def _get_headers(self, credential: Optional[Credential]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if credential is not None:
            headers["Authorization"] = f"Bearer {credential.access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        credential: Optional[Credential] = None,
        require_auth: bool = True,
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send a request and translate failures into the shared error taxonomy.

        Raises:
            AuthError: Missing credential, or 401/403 from the server
            ValidationError: 400/422
            NotFoundError: 404
            StoreError: 5xx
            NetworkError: Transport failure
        """
        if require_auth and (credential is None or not credential.access_token):
            raise AuthError("Missing credential")

        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            response = await self.http.request(method, url, headers=self._get_headers(credential), **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise NetworkError(f"{method} {path} failed: {e}") from e

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(f"{method} {path} -> {response.status_code} ({duration_ms:.2f}ms)")

        if response.is_success:
            return response
        raise error_for_status(response.status_code, _error_message(response))
