"""
Cursor pagination.

Paginated endpoints (the account activity feed) accept ``page_size`` and
``page_token`` and return at most ``page_size`` records.  The token for the
next page is the ``id`` of the last record of the current one.  A
:class:`Paginator` walks such an endpoint:

    Idle ──first request──▶ HasCursor ──non-empty page──▶ HasCursor
                                      └──empty page─────▶ Exhausted

The sequence ends on the first empty page, which is still yielded (with
``exhausted`` set) so callers see every response.  A short page does not
end it: the API gives no total count, so only an empty page proves there
is nothing left.

A paginator is a finite, non-restartable async iterator.  Requests are
issued strictly one after another; to stop early, stop iterating.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, Generic, Iterator, List, Optional, TypeVar

from .errors import DecodeError, RequestValidationError
from .mapper import EMPTY_RESPONSE, ApiRequest, EncodedRequest, Transport, decode_response, encode_request

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaginationCursor:
    page_size: int
    page_token: Optional[str] = None

    def to_query(self) -> Dict[str, str]:
        query = {"page_size": str(self.page_size)}
        if self.page_token is not None:
            query["page_token"] = self.page_token
        return query


@dataclass(frozen=True)
class Page(Generic[T]):
    """One response of a paginated endpoint.

    ``next_cursor`` is ``None`` once the sequence is exhausted.
    """

    items: List[T] = field(default_factory=list)
    next_cursor: Optional[PaginationCursor] = None

    @property
    def exhausted(self) -> bool:
        return self.next_cursor is None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


class PaginationState(Enum):
    IDLE = "idle"
    HAS_CURSOR = "has_cursor"
    EXHAUSTED = "exhausted"


class Paginator(Generic[T]):
    """Iterate the pages of a paginated request.

    Args:
        transport: Anything implementing :class:`~apca.mapper.Transport`.
        request: A request whose class sets ``paginated``.  Its own
            ``page_token`` is ignored; the first page is always requested
            without one.
        page_size: Records per page.  Defaults to the request's
            ``page_size``, then to :data:`DEFAULT_PAGE_SIZE`.

    The request is encoded (and validated) here, so an inconsistent request
    fails before anything is sent.
    """

    def __init__(self, transport: Transport, request: ApiRequest, page_size: Optional[int] = None) -> None:
        if not request.paginated:
            raise RequestValidationError("request", f"{type(request).__name__} is not paginated")
        size = page_size
        if size is None:
            size = getattr(request, "page_size", None)
        if size is None:
            size = DEFAULT_PAGE_SIZE
        self._request = request.model_copy(update={"page_size": size, "page_token": None})
        self._encoded: EncodedRequest = encode_request(self._request)
        self._transport = transport
        self.page_size: int = size
        self.state = PaginationState.IDLE
        self.cursor: Optional[PaginationCursor] = None
        self.pages_fetched = 0
        self.items_fetched = 0

    def _next_query(self) -> Dict[str, str]:
        query = {
            key: value
            for key, value in (self._encoded.query or {}).items()
            if key not in ("page_size", "page_token")
        }
        cursor = self.cursor or PaginationCursor(self.page_size)
        query.update(cursor.to_query())
        return query

    def __aiter__(self) -> "Paginator[T]":
        return self

    async def __anext__(self) -> Page[T]:
        if self.state is PaginationState.EXHAUSTED:
            raise StopAsyncIteration
        query = self._next_query()
        logger.debug("Fetching page %d of %s with %s", self.pages_fetched + 1, self._encoded.path, query)
        try:
            raw = await self._transport.send(
                self._encoded.method, self._encoded.path, query, self._encoded.body
            )
            decoded = decode_response(self._request, raw)
        except BaseException:
            # A failed page ends the sequence; the error goes to the caller.
            self.state = PaginationState.EXHAUSTED
            self.cursor = None
            raise
        items: List[T] = [] if decoded is EMPTY_RESPONSE else list(decoded)
        self.pages_fetched += 1
        self.items_fetched += len(items)
        if items:
            self.cursor = PaginationCursor(self.page_size, _item_id(items[-1]))
            self.state = PaginationState.HAS_CURSOR
        else:
            self.cursor = None
            self.state = PaginationState.EXHAUSTED
            logger.info(
                "Pagination of %s finished: %d pages, %d items",
                self._encoded.path,
                self.pages_fetched,
                self.items_fetched,
            )
        return Page(items, self.cursor)

    async def items(self) -> AsyncIterator[T]:
        """Yield the records of every page, in order."""
        async for page in self:
            for item in page:
                yield item

    async def collect(self) -> List[T]:
        return [item async for item in self.items()]


def _item_id(item: Any) -> str:
    item_id = getattr(item, "id", None)
    if item_id is None and isinstance(item, dict):
        item_id = item.get("id")
    if item_id is None:
        raise DecodeError("id", item, reason="a paginated record needs an id to continue from")
    return str(item_id)
