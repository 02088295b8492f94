"""Watchlists: named, ordered lists of assets."""

from __future__ import annotations

import uuid
from typing import Any, ClassVar, List, Optional

from pydantic import Field

from .assets import Asset
from .codecs import Timestamp, WireModel
from .errors import RequestValidationError
from .mapper import ApiRequest, EmptyResponse


class Watchlist(WireModel):
    id: uuid.UUID
    created_at: Timestamp
    updated_at: Timestamp
    name: str
    account_id: uuid.UUID
    assets: List[Asset] = Field(default_factory=list)


class GetWatchlists(ApiRequest):
    response_type: ClassVar[Any] = List[Watchlist]

    def endpoint(self) -> str:
        return "/watchlists"


class GetWatchlist(ApiRequest):
    response_type: ClassVar[Any] = Watchlist

    id: uuid.UUID

    def endpoint(self) -> str:
        return f"/watchlists/{self.id}"


class CreateWatchlist(ApiRequest):
    method: ClassVar[str] = "POST"
    response_type: ClassVar[Any] = Watchlist
    location: ClassVar[str] = "body"

    name: str
    symbols: List[str] = Field(default_factory=list)

    def endpoint(self) -> str:
        return "/watchlists"

    def check(self) -> None:
        if not self.name:
            raise RequestValidationError("name", "a watchlist needs a name")


class UpdateWatchlist(ApiRequest):
    """Rename a watchlist and/or replace its symbols wholesale."""

    method: ClassVar[str] = "PUT"
    response_type: ClassVar[Any] = Watchlist
    location: ClassVar[str] = "body"

    id: uuid.UUID = Field(exclude=True)
    name: Optional[str] = None
    symbols: Optional[List[str]] = None

    def endpoint(self) -> str:
        return f"/watchlists/{self.id}"

    def check(self) -> None:
        if not self.params():
            raise RequestValidationError("watchlist", "nothing to update")


class AddAssetToWatchlist(ApiRequest):
    method: ClassVar[str] = "POST"
    response_type: ClassVar[Any] = Watchlist
    location: ClassVar[str] = "body"

    id: uuid.UUID = Field(exclude=True)
    symbol: str

    def endpoint(self) -> str:
        return f"/watchlists/{self.id}"


class DeleteWatchlist(ApiRequest):
    method: ClassVar[str] = "DELETE"
    response_type: ClassVar[Any] = EmptyResponse

    id: uuid.UUID

    def endpoint(self) -> str:
        return f"/watchlists/{self.id}"


class RemoveAssetFromWatchlist(ApiRequest):
    method: ClassVar[str] = "DELETE"
    response_type: ClassVar[Any] = EmptyResponse

    id: uuid.UUID
    symbol: str

    def endpoint(self) -> str:
        return f"/watchlists/{self.id}/{self.symbol}"
