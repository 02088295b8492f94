"""
HTTP transport with authentication, rate limiting and retries.

:class:`HttpTransport` is the default implementation of
:class:`~apca.mapper.Transport`.  It sends one request and hands back the
raw body of a 2xx response; every other status becomes an
:class:`~apca.errors.HttpStatusError`.

Failures to reach the server are retried with exponential backoff via
tenacity.  GET, PUT and DELETE retry on any connection error or timeout.
POST and PATCH retry only when the connection was never established: a
dropped connection or a timeout may come after the server accepted the
request.  Once the attempts are used up the last exception is re-raised
unchanged.  A response with an error status is never retried: the server
has seen the request, and repeating an order submission is not safe.

An optional token bucket keeps the client under a per-minute request
budget.  It is shared by every request sent through one transport.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .auth_providers import AuthProvider
from .errors import HttpStatusError

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)

# Errors raised before any byte of the request reached the server.
PRE_SEND_ERRORS = (aiohttp.ClientConnectorError,)

NON_IDEMPOTENT_METHODS = frozenset({"POST", "PATCH"})


def retryable_errors(method: str) -> tuple:
    """Exceptions that may be retried for *method* without repeating a side effect."""
    if method.upper() in NON_IDEMPOTENT_METHODS:
        return PRE_SEND_ERRORS
    return RETRYABLE_ERRORS


class HttpTransport:
    """Asynchronous REST transport for the trading API."""

    def __init__(
        self,
        base_url: str,
        auth_provider: Optional[AuthProvider] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        max_requests_per_minute: int = 0,
    ) -> None:
        """Construct the transport.

        Args:
            base_url: API root, e.g. ``https://paper-api.alpaca.markets``.
            auth_provider: Builds the authentication headers; requests go
                out unauthenticated when omitted.
            session: Optional shared ``aiohttp.ClientSession``.  The caller
                owns it and closes it.  Without one, each request opens and
                closes its own session.
            timeout: Total seconds allowed per attempt.
            max_retries: Attempts per request, the first one included.
            backoff_seconds: Multiplier of the exponential backoff between
                attempts (capped at 8 seconds).
            max_requests_per_minute: Request budget; ``0`` disables the limit.
        """
        self.base_url = base_url.rstrip("/")
        self.auth_provider = auth_provider
        self.session = session
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        # Token bucket for the per-minute request budget.  Tokens are
        # consumed on each request and replenished over time so bursts are
        # smoothed across the minute.
        self.max_requests_per_minute = max_requests_per_minute
        self.tokens = max_requests_per_minute
        self._token_lock = asyncio.Lock()
        self._last_refill = time.monotonic()
        self._token_interval = (
            60.0 / max_requests_per_minute if max_requests_per_minute > 0 else 0.0
        )

    def __repr__(self) -> str:
        return f"HttpTransport(base_url={self.base_url!r}, auth_provider={self.auth_provider!r})"

    async def _acquire_token(self) -> None:
        """Wait until a request token is available based on the token bucket."""
        if self.max_requests_per_minute <= 0:
            return
        while True:
            async with self._token_lock:
                now = time.monotonic()
                elapsed = now - self._last_refill
                if elapsed > 0:
                    new_tokens = int(elapsed / self._token_interval)
                    if new_tokens > 0:
                        self.tokens = min(self.max_requests_per_minute, self.tokens + new_tokens)
                        self._last_refill = now
                if self.tokens > 0:
                    self.tokens -= 1
                    return
            await asyncio.sleep(self._token_interval)

    async def _headers(self, method: str, path: str, has_body: bool) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.auth_provider is not None:
            headers.update(await self.auth_provider.get_headers(method, path))
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        query: Optional[Dict[str, str]],
        body: Optional[Dict[str, Any]],
    ) -> bytes:
        await self._acquire_token()
        url = f"{self.base_url}{path}"
        data = json.dumps(body) if body is not None else None
        headers = await self._headers(method, path, data is not None)
        async with session.request(
            method,
            url,
            params=query,
            data=data,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            raw = await resp.read()
            if not 200 <= resp.status < 300:
                # Avoid logging full response bodies; truncate to prevent leakage
                text = raw[:200].decode("utf-8", errors="replace")
                logger.error("REST API error %s on %s %s: %s", resp.status, method, path, text)
                raise HttpStatusError(resp.status, raw)
            logger.debug("%s %s -> %s (%d bytes)", method, path, resp.status, len(raw))
            return raw

    async def _send_once(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, str]],
        body: Optional[Dict[str, Any]],
    ) -> bytes:
        if self.session is not None:
            return await self._request(self.session, method, path, query, body)
        async with aiohttp.ClientSession() as session:
            return await self._request(session, method, path, query, body)

    async def send(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """Send one request and return the raw body of its 2xx response.

        :raises HttpStatusError: for any other status.
        :raises aiohttp.ClientError: if the server stays unreachable.
        :raises asyncio.TimeoutError: if every attempt times out.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=8),
            retry=retry_if_exception_type(retryable_errors(method)),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "Retrying %s %s (attempt %d of %d)",
                        method,
                        path,
                        attempt.retry_state.attempt_number,
                        self.max_retries,
                    )
                return await self._send_once(method, path, query, body)
        raise AssertionError("unreachable")  # pragma: no cover
