"""
Compound asset identifiers.

Assets and positions can be addressed either by their opaque asset id or
by a symbol that may be qualified with an exchange and an asset class::

    AAPL
    AAPL:NYSE
    AAPL:NYSE:us_equity
    904837e3-3b76-47ec-b432-046db621571b

:func:`parse_identifier` never fails; every string maps onto one of the
shapes above, and :func:`format_identifier` is its exact inverse.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple, Union

Venue = Tuple[str, Optional[str]]

_UUID_TEXT = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}|[0-9a-fA-F]{32}"
)


@dataclass(frozen=True)
class Symbol:
    """Ticker, optionally qualified by ``(exchange, asset_class)``."""

    ticker: str
    venue: Optional[Venue] = None

    def __str__(self) -> str:
        return format_identifier(self)


@dataclass(frozen=True)
class AssetId:
    """Opaque asset id."""

    id: uuid.UUID

    def __str__(self) -> str:
        return format_identifier(self)


Identifier = Union[Symbol, AssetId]


def parse_identifier(text: str) -> Identifier:
    """Parse ``text`` into an :data:`Identifier`.

    Hex UUID text (hyphenated or simple) always wins; signs, braces,
    underscores and ``urn:uuid:`` prefixes do not count as UUID text.
    Anything else is split on the first colon into ticker and venue; the
    venue is split once more into exchange and asset class, the latter
    taken verbatim.
    """
    if _UUID_TEXT.fullmatch(text):
        return AssetId(uuid.UUID(text))
    ticker, sep, rest = text.partition(":")
    if not sep:
        return Symbol(text)
    exchange, sep, asset_class = rest.partition(":")
    if not sep:
        return Symbol(ticker, (rest, None))
    return Symbol(ticker, (exchange, asset_class))


def format_identifier(identifier: Identifier) -> str:
    if isinstance(identifier, AssetId):
        return str(identifier.id)
    if isinstance(identifier, Symbol):
        if identifier.venue is None:
            return identifier.ticker
        exchange, asset_class = identifier.venue
        if asset_class is None:
            return f"{identifier.ticker}:{exchange}"
        return f"{identifier.ticker}:{exchange}:{asset_class}"
    raise TypeError(f"not an identifier: {identifier!r}")


def as_identifier(value: Union[Identifier, uuid.UUID, str]) -> Identifier:
    """Coerce a string, UUID or identifier into an :data:`Identifier`."""
    if isinstance(value, (Symbol, AssetId)):
        return value
    if isinstance(value, uuid.UUID):
        return AssetId(value)
    if isinstance(value, str):
        return parse_identifier(value)
    raise TypeError(f"cannot build an identifier from {type(value).__name__}")
