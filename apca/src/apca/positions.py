"""Open positions and the endpoints that list and liquidate them."""

from __future__ import annotations

import uuid
from typing import Any, ClassVar, List, Optional

from .assets import AssetClass, Exchange, _ByIdentifier
from .codecs import LenientDecimal, StrictDecimal, WireEnum, WireModel
from .mapper import ApiRequest


class PositionSide(WireEnum):
    LONG = "long"
    SHORT = "short"


class Position(WireModel):
    """A position in one asset.

    Percentages (``unrealized_plpc``, ``change_today``, ...) are fractions:
    ``0.05`` means five percent.
    """

    asset_id: uuid.UUID
    symbol: str
    exchange: Exchange
    asset_class: AssetClass
    avg_entry_price: LenientDecimal
    qty: StrictDecimal
    side: PositionSide = PositionSide.LONG
    market_value: LenientDecimal
    cost_basis: LenientDecimal
    unrealized_pl: LenientDecimal
    unrealized_plpc: LenientDecimal
    unrealized_intraday_pl: LenientDecimal
    unrealized_intraday_plpc: LenientDecimal
    current_price: LenientDecimal
    lastday_price: LenientDecimal
    change_today: LenientDecimal


class GetPositions(ApiRequest):
    response_type: ClassVar[Any] = List[Position]

    def endpoint(self) -> str:
        return "/positions"


class GetPosition(_ByIdentifier):
    response_type: ClassVar[Any] = Position

    def endpoint(self) -> str:
        return f"/positions/{self.target()}"


class CloseAllPositions(ApiRequest):
    """Liquidate every open position.

    The API answers ``207 Multi-Status`` with one entry per position it
    tried to close.  With ``cancel_orders`` set, open orders are cancelled
    first.
    """

    method: ClassVar[str] = "DELETE"
    response_type: ClassVar[Any] = List[Position]
    location: ClassVar[str] = "query"

    cancel_orders: Optional[bool] = None

    def endpoint(self) -> str:
        return "/positions"


class ClosePosition(_ByIdentifier):
    method: ClassVar[str] = "DELETE"
    response_type: ClassVar[Any] = Position

    def endpoint(self) -> str:
        return f"/positions/{self.target()}"
