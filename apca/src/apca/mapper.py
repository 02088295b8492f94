"""
Request/response mapping.

Every endpoint is described by a subclass of :class:`ApiRequest`.  The
subclass declares its HTTP method, its path, where its parameters go
(query string or JSON body) and the shape of the response.  Two pure
functions do the work around the transport:

* :func:`encode_request` validates the request once and turns it into an
  :class:`EncodedRequest` ``(method, path, query, body)``.
* :func:`decode_response` turns the raw response bytes into the declared
  response shape.  An empty body always maps to :data:`EMPTY_RESPONSE`.

The transport itself is anything that satisfies :class:`Transport`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Protocol

from .codecs import WireEnum, WireModel, decode_value, encode_query_value
from .errors import DecodeError

logger = logging.getLogger(__name__)

API_PREFIX = "/v2"


class Sort(WireEnum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class EmptyResponse:
    """Sentinel returned for endpoints that answer with no content."""

    _instance: Optional["EmptyResponse"] = None

    def __new__(cls) -> "EmptyResponse":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY_RESPONSE"


EMPTY_RESPONSE = EmptyResponse()


class Transport(Protocol):
    """What the client needs from an HTTP layer.

    ``send`` returns the raw body of a 2xx response and raises
    :class:`~apca.errors.HttpStatusError` for any other status.
    """

    async def send(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        ...


@dataclass(frozen=True)
class EncodedRequest:
    method: str
    path: str
    query: Optional[Dict[str, str]] = None
    body: Optional[Dict[str, Any]] = None


class ApiRequest(WireModel):
    """Base class for endpoint requests.

    Subclasses set ``method``, ``response_type`` and ``location``
    (``"query"``, ``"body"`` or ``"none"``) and implement
    :meth:`endpoint`.  Fields that only contribute to the path must be
    declared with ``Field(exclude=True)`` so they never reach the query or
    body.
    """

    method: ClassVar[str] = "GET"
    response_type: ClassVar[Any] = EmptyResponse
    location: ClassVar[str] = "none"
    paginated: ClassVar[bool] = False

    def endpoint(self) -> str:
        raise NotImplementedError

    def check(self) -> None:
        """Raise :class:`~apca.errors.RequestValidationError` if inconsistent."""

    def params(self) -> Dict[str, Any]:
        return self.to_wire()

    def query(self) -> Optional[Dict[str, str]]:
        if self.location != "query":
            return None
        return {key: encode_query_value(value) for key, value in self.params().items()}

    def body(self) -> Optional[Dict[str, Any]]:
        if self.location != "body":
            return None
        return self.params()

    def decode(self, payload: Any) -> Any:
        if self.response_type is EmptyResponse:
            return EMPTY_RESPONSE
        return decode_value(self.response_type, payload)


def encode_request(request: ApiRequest) -> EncodedRequest:
    """Validate ``request`` and bind it to method, path, query and body.

    :raises RequestValidationError: before anything is sent.
    """
    request.check()
    encoded = EncodedRequest(
        method=request.method,
        path=f"{API_PREFIX}{request.endpoint()}",
        query=request.query(),
        body=request.body(),
    )
    logger.debug("Encoded %s %s query=%s", encoded.method, encoded.path, encoded.query)
    return encoded


def parse_body(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        snippet = raw[:200].decode("utf-8", errors="replace")
        raise DecodeError("<body>", snippet, reason=f"invalid JSON: {exc}") from exc


def decode_response(request: ApiRequest, raw: bytes) -> Any:
    """Map raw response bytes onto ``request``'s response shape."""
    if not raw or not raw.strip():
        return EMPTY_RESPONSE
    return request.decode(parse_body(raw))
