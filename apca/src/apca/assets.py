"""Assets and the asset lookup endpoints."""

from __future__ import annotations

import uuid
from typing import Any, ClassVar, List, Optional

from pydantic import Field, field_validator

from .codecs import WireEnum, WireModel
from .identifiers import Identifier, as_identifier, format_identifier
from .mapper import ApiRequest


class AssetClass(WireEnum):
    US_EQUITY = "us_equity"
    CRYPTO = "crypto"


class Exchange(WireEnum):
    AMEX = "AMEX"
    ARCA = "ARCA"
    BATS = "BATS"
    NYSE = "NYSE"
    NASDAQ = "NASDAQ"
    NYSE_ARCA = "NYSEARCA"
    OTC = "OTC"
    ERISX = "ERISX"


class AssetStatus(WireEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Asset(WireModel):
    id: uuid.UUID
    asset_class: AssetClass = Field(alias="class")
    exchange: Exchange
    symbol: str
    status: AssetStatus
    tradable: bool
    marginable: bool
    shortable: bool
    easy_to_borrow: bool
    fractionable: bool = False


class GetAssets(ApiRequest):
    response_type: ClassVar[Any] = List[Asset]
    location: ClassVar[str] = "query"

    status: Optional[AssetStatus] = AssetStatus.ACTIVE
    asset_class: Optional[AssetClass] = None

    def endpoint(self) -> str:
        return "/assets"


class _ByIdentifier(ApiRequest):
    """Request addressed by an asset identifier in the path."""

    identifier: Any = Field(exclude=True)

    @field_validator("identifier", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Identifier:
        return as_identifier(value)

    def target(self) -> str:
        return format_identifier(self.identifier)


class GetAsset(_ByIdentifier):
    response_type: ClassVar[Any] = Asset

    def endpoint(self) -> str:
        return f"/assets/{self.target()}"
