"""
Account activities.

The activity feed mixes two kinds of records without an explicit tag:
trade executions (fills) and everything else (dividends, transfers, fees,
corporate actions, ...).  :func:`decode_activity` tells them apart by
trying :class:`TradeActivity` first and :class:`NonTradeActivity` second,
keeping the first shape whose required fields are all present.

Both activity requests are paginated: the API returns at most
``page_size`` records, and the id of the last record is the
``page_token`` for the next page (see :mod:`apca.pagination`).
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from pydantic import Field

from .codecs import LenientDecimal, PlainDate, Timestamp, WireEnum, WireModel, decode_value
from .errors import DecodeError, RequestValidationError, UntaggedUnionError
from .mapper import ApiRequest, Sort

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ActivityType(WireEnum):
    FILL = "FILL"
    CASH_TRANSACTIONS = "TRANS"
    MISCELLANEOUS = "MISC"
    ACATS_CASH = "ACATC"
    ACATS_SECURITIES = "ACATS"
    CASH_DEPOSIT = "CSD"
    CASH_WITHDRAWAL = "CSW"
    DIVIDEND = "DIV"
    DIVIDEND_LONG_TERM_CAPITAL_GAIN = "DIVCGL"
    DIVIDEND_SHORT_TERM_CAPITAL_GAIN = "DIVCGS"
    DIVIDEND_FEE = "DIVFEE"
    DIVIDEND_FOREIGN_TAX_WITHHELD = "DIVFT"
    DIVIDEND_NRA_WITHHELD = "DIVNRA"
    DIVIDEND_RETURN_OF_CAPITAL = "DIVROC"
    DIVIDEND_TEFRA_WITHHELD = "DIVTW"
    DIVIDEND_TAX_EXEMPT = "DIVTXEX"
    INTEREST = "INT"
    INTEREST_NRA_WITHHELD = "INTNRA"
    INTEREST_TEFRA_WITHHELD = "INTTW"
    JOURNAL_ENTRY = "JNL"
    JOURNAL_ENTRY_CASH = "JNLC"
    JOURNAL_ENTRY_SECURITIES = "JNLS"
    MERGER_ACQUISITION = "MA"
    NAME_CHANGE = "NC"
    OPTION_ASSIGNMENT = "OPASN"
    OPTION_EXPIRATION = "OPEXP"
    OPTION_EXERCISE = "OPXRC"
    PASS_THROUGH_CHARGE = "PTC"
    PASS_THROUGH_REBATE = "PTR"
    REORGANIZATION = "REORG"
    SYMBOL_CHANGE = "SC"
    STOCK_SPINOFF = "SSO"
    STOCK_SPLIT = "SSP"


class FillType(WireEnum):
    FILL = "fill"
    PARTIAL_FILL = "partial_fill"


class ActivitySide(WireEnum):
    BUY = "buy"
    SELL = "sell"
    SELL_SHORT = "sell_short"


class TradeActivity(WireModel):
    activity_type: ActivityType
    cum_qty: LenientDecimal
    id: str
    leaves_qty: LenientDecimal
    price: LenientDecimal
    qty: LenientDecimal
    side: ActivitySide
    symbol: str
    transaction_time: Timestamp
    order_id: uuid.UUID
    fill_type: FillType = Field(alias="type")


class NonTradeActivity(WireModel):
    activity_type: ActivityType
    id: str
    date: PlainDate
    net_amount: LenientDecimal
    symbol: Optional[str] = None
    qty: Optional[LenientDecimal] = None
    per_share_amount: Optional[LenientDecimal] = None
    description: Optional[str] = None


Activity = Union[TradeActivity, NonTradeActivity]

# Tried in this order; the first match wins.
ACTIVITY_SHAPES: Tuple[Type[WireModel], ...] = (TradeActivity, NonTradeActivity)


def decode_activity(payload: Any) -> Activity:
    """Decode one record of the untagged activity union.

    :raises UntaggedUnionError: if neither shape fits; it carries the
        :class:`~apca.errors.DecodeError` of each attempt.
    """
    attempts: Dict[str, DecodeError] = {}
    for shape in ACTIVITY_SHAPES:
        try:
            return decode_value(shape, payload)
        except DecodeError as err:
            attempts[shape.__name__] = err
    raise UntaggedUnionError("Activity", payload, attempts)


def decode_activities(payload: Any) -> List[Activity]:
    if not isinstance(payload, list):
        raise DecodeError("<body>", payload, reason="expected a JSON array of activities")
    return [decode_activity(item) for item in payload]


class _ActivitiesRequest(ApiRequest):
    """Filters shared by both activity endpoints.

    ``date`` selects a single day and cannot be combined with the
    ``until``/``after`` range.
    """

    response_type: ClassVar[Any] = List[Activity]
    location: ClassVar[str] = "query"
    paginated: ClassVar[bool] = True

    date: Optional[PlainDate] = None
    until: Optional[Timestamp] = None
    after: Optional[Timestamp] = None
    direction: Optional[Sort] = None
    page_size: Optional[int] = None
    page_token: Optional[str] = None

    def check(self) -> None:
        if self.date is not None and (self.until is not None or self.after is not None):
            raise RequestValidationError("date", "date cannot be combined with until/after")
        if self.page_size is not None and not 0 < self.page_size <= MAX_PAGE_SIZE:
            raise RequestValidationError(
                "page_size", f"must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}"
            )

    def decode(self, payload: Any) -> List[Activity]:
        activities = decode_activities(payload)
        logger.debug("Decoded %d activities", len(activities))
        return activities


class GetAccountActivities(_ActivitiesRequest):
    """Activities of any of ``activity_types`` (all types when unset)."""

    activity_types: Optional[List[ActivityType]] = None

    def endpoint(self) -> str:
        return "/account/activities"

    def params(self) -> Dict[str, Any]:
        params = self.to_wire()
        if not params.get("activity_types"):
            params.pop("activity_types", None)
        return params


class GetAccountActivitiesByType(_ActivitiesRequest):
    activity_type: ActivityType = Field(exclude=True)

    def endpoint(self) -> str:
        return f"/account/activities/{self.activity_type.value}"
