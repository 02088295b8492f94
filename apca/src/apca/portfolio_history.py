"""
Portfolio history: equity and profit/loss sampled over a period.

The response holds parallel lists.  ``timestamp[i]`` is the sample time
of ``equity[i]``, ``profit_loss[i]`` and ``profit_loss_pct[i]``; samples
for which the API has no value (before the account opened, for
instance) come back as ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, ClassVar, Iterator, List, Optional, Tuple

from pydantic import BeforeValidator, PlainSerializer

from .codecs import EpochSecond, LenientDecimal, PlainDate, WireEnum, WireModel
from .errors import RequestValidationError
from .mapper import ApiRequest

_PERIOD_RE = re.compile(r"^(?P<count>\d+)(?P<unit>[DWMA])$")


class Timeframe(WireEnum):
    ONE_MINUTE = "1Min"
    FIVE_MINUTES = "5Min"
    FIFTEEN_MINUTES = "15Min"
    ONE_HOUR = "1H"
    ONE_DAY = "1D"


class PeriodUnit(WireEnum):
    DAY = "D"
    WEEK = "W"
    MONTH = "M"
    YEAR = "A"


@dataclass(frozen=True)
class Period:
    """A look-back window such as ``1D`` or ``3M``."""

    count: int
    unit: PeriodUnit

    def __str__(self) -> str:
        return f"{self.count}{self.unit.value}"

    @classmethod
    def parse(cls, text: str) -> "Period":
        match = _PERIOD_RE.match(text)
        if not match:
            raise ValueError(f"expected <count><D|W|M|A>, got {text!r}")
        return cls(int(match.group("count")), PeriodUnit(match.group("unit")))


def _coerce_period(value: Any) -> Period:
    if isinstance(value, Period):
        return value
    if isinstance(value, str):
        return Period.parse(value)
    raise ValueError(f"expected a period, got {value!r}")


PeriodField = Annotated[
    Period,
    BeforeValidator(_coerce_period),
    PlainSerializer(lambda period: str(period), return_type=str, when_used="json"),
]


class PortfolioHistory(WireModel):
    timestamp: List[EpochSecond]
    equity: List[Optional[LenientDecimal]]
    profit_loss: List[Optional[LenientDecimal]]
    profit_loss_pct: List[Optional[LenientDecimal]]
    base_value: LenientDecimal
    timeframe: Timeframe

    def samples(self) -> Iterator[Tuple[datetime, Any, Any, Any]]:
        """Yield ``(timestamp, equity, profit_loss, profit_loss_pct)`` rows."""
        return zip(self.timestamp, self.equity, self.profit_loss, self.profit_loss_pct)


class GetPortfolioHistory(ApiRequest):
    """History ending at ``date_end`` (today when unset)."""

    response_type: ClassVar[Any] = PortfolioHistory
    location: ClassVar[str] = "query"

    period: Optional[PeriodField] = None
    timeframe: Optional[Timeframe] = None
    date_end: Optional[PlainDate] = None
    extended_hours: Optional[bool] = None

    def endpoint(self) -> str:
        return "/account/portfolio/history"

    def check(self) -> None:
        if self.period is not None and self.period.count <= 0:
            raise RequestValidationError("period", f"count must be positive, got {self.period}")
