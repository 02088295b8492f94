"""
Client facade.

:class:`AlpacaClient` binds the request mapper to a transport::

    client = paper_client("KEY_ID", "SECRET")
    account = await client.send(GetAccount())
    async for activity in client.paginate(GetAccountActivities()).items():
        ...

The client holds no state besides its transport, so one instance can serve
any number of concurrent requests.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .auth_providers import HeaderAuthProvider
from .config import LIVE_URL, PAPER_URL, Settings
from .mapper import ApiRequest, Transport, decode_response, encode_request
from .pagination import Paginator
from .transport import HttpTransport

logger = logging.getLogger(__name__)


class AlpacaClient:
    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def __repr__(self) -> str:
        return f"AlpacaClient(transport={self.transport!r})"

    async def send(self, request: ApiRequest) -> Any:
        """Send ``request`` and decode the response into its declared shape.

        :raises RequestValidationError: if the request is inconsistent;
            nothing is sent in that case.
        :raises HttpStatusError: for a non-2xx response.
        :raises DecodeError: if the response does not fit the shape.
        """
        encoded = encode_request(request)
        raw = await self.transport.send(encoded.method, encoded.path, encoded.query, encoded.body)
        return decode_response(request, raw)

    def paginate(self, request: ApiRequest, page_size: Optional[int] = None) -> Paginator:
        return Paginator(self.transport, request, page_size)


def client_with_url(url: str, key_id: str, secret_key: str, **transport_options: Any) -> AlpacaClient:
    """Client for an arbitrary API root, authenticated with an API key pair."""
    auth = HeaderAuthProvider(key_id, secret_key)
    return AlpacaClient(HttpTransport(url, auth, **transport_options))


def paper_client(key_id: str, secret_key: str, **transport_options: Any) -> AlpacaClient:
    return client_with_url(PAPER_URL, key_id, secret_key, **transport_options)


def live_client(key_id: str, secret_key: str, **transport_options: Any) -> AlpacaClient:
    return client_with_url(LIVE_URL, key_id, secret_key, **transport_options)


def client_from_env(settings: Optional[Settings] = None) -> AlpacaClient:
    """Client configured from ``APCA_*`` environment variables."""
    settings = settings or Settings.from_env()
    if not settings.has_credentials:
        logger.warning("APCA_API_KEY_ID or APCA_API_SECRET_KEY is not set; requests will be rejected")
    logger.info("Using API at %s (paper=%s)", settings.base_url, settings.paper)
    return client_with_url(
        settings.base_url,
        settings.key_id,
        settings.secret_key,
        timeout=settings.timeout_seconds,
        max_retries=settings.max_retries,
        max_requests_per_minute=settings.max_requests_per_minute,
    )
