"""
Error types raised by the client.

Four kinds of failure reach the caller, and none of them is swallowed or
turned into a default value:

* Transport errors (``aiohttp.ClientError``, ``asyncio.TimeoutError``)
  are not wrapped; they propagate exactly as the transport raised them.
* :class:`HttpStatusError` for any non-2xx response, carrying the status
  code and the raw response body.
* :class:`DecodeError` when a response body does not fit the expected
  shape.  It names the offending field and the raw token.
* :class:`RequestValidationError` when a request built by the caller is
  inconsistent.  It is raised while encoding, before any network call.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ApcaError(Exception):
    """Base class for all errors raised by this package."""


class HttpStatusError(ApcaError):
    """The API answered with a non-2xx status code."""

    def __init__(self, status: int, body: bytes = b"") -> None:
        self.status = status
        self.body = body
        text = body.decode("utf-8", errors="replace")[:200] if body else ""
        super().__init__(f"HTTP {status}: {text}" if text else f"HTTP {status}")


class DecodeError(ApcaError):
    """A response could not be mapped onto its domain type.

    :param field: Name of the field that failed (``"<body>"`` when the
        payload is not JSON at all).
    :param raw: The raw token found on the wire.
    :param reason: Human readable cause.
    :param path: Dotted location of the field inside the payload, e.g.
        ``"legs.0.qty"``.  Defaults to ``field``.
    """

    def __init__(self, field: str, raw: Any, reason: str = "", path: Optional[str] = None) -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        self.path = path or field
        message = f"cannot decode field {self.path!r} from {raw!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UntaggedUnionError(DecodeError):
    """None of the candidate shapes of an untagged union matched.

    ``attempts`` maps each shape name, in the order tried, to the
    :class:`DecodeError` that rejected it.
    """

    def __init__(self, union: str, raw: Any, attempts: Dict[str, DecodeError]) -> None:
        self.union = union
        self.attempts = attempts
        tried = "; ".join(f"{name}: {err}" for name, err in attempts.items())
        super().__init__(union, raw, reason=f"no variant matched ({tried})")


class RequestValidationError(ApcaError):
    """A request object is inconsistent and was not sent."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class OrderValidationError(RequestValidationError):
    """An order is missing fields its order type or order class requires."""

    def __init__(self, field: str, message: str, order_class: Optional[str] = None) -> None:
        self.order_class = order_class
        super().__init__(field, message)


class UnhandledVariantError(ApcaError, TypeError):
    """A union slot holds an object that is not one of its declared variants."""

    def __init__(self, union: str, value: Any) -> None:
        self.union = union
        self.value = value
        super().__init__(f"unhandled {union} variant: {type(value).__name__}")
