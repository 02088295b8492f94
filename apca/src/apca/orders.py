"""
Order model and order endpoints.

An order is described by two independent unions:

* the order *type* (``market``, ``limit``, ``stop``, ``stop_limit``,
  ``trailing_stop``), tagged on the wire by ``type``;
* the order *class* (``simple``, ``bracket``, ``oco``, ``oto``), tagged on
  the wire by ``order_class``.

Each variant is its own model carrying only the fields that variant needs,
so a :class:`Limit` can never silently carry a ``stop_price``.  On the wire
both unions are flattened into the surrounding order object::

    {"symbol": "AAPL", "qty": "1", "side": "buy",
     "type": "limit", "limit_price": "100",
     "time_in_force": "day", "extended_hours": false,
     "order_class": "bracket",
     "take_profit": {"limit_price": "301"},
     "stop_loss": {"stop_price": "299", "limit_price": "298.5"}}

Orders may be built per variant (:class:`OrderSpec`) or through the flat
:class:`OrderTicket`.  Either way, rules that the types cannot express (one
trail value on a trailing stop, the legs a class needs) are checked once,
when the order is encoded, and reported as
:class:`~apca.errors.OrderValidationError` before anything is sent.
"""

from __future__ import annotations

import logging
import uuid
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union

from pydantic import ConfigDict, Field, model_validator

from .codecs import LenientDecimal, StrictDecimal, Timestamp, WireDecimal, WireEnum, WireModel
from .errors import OrderValidationError, RequestValidationError, UnhandledVariantError
from .mapper import ApiRequest, EmptyResponse, Sort

logger = logging.getLogger(__name__)


class Side(WireEnum):
    BUY = "buy"
    SELL = "sell"

    def __neg__(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class TimeInForce(WireEnum):
    DAY = "day"
    GOOD_TIL_CANCELLED = "gtc"
    OPEN = "opg"
    CLOSE = "cls"
    IMMEDIATE_OR_CANCEL = "ioc"
    FILL_OR_KILL = "fok"


class OrderStatus(WireEnum):
    ACCEPTED = "accepted"
    ACCEPTED_FOR_BIDDING = "accepted_for_bidding"
    CALCULATED = "calculated"
    CANCELED = "canceled"
    DONE_FOR_DAY = "done_for_day"
    EXPIRED = "expired"
    FILLED = "filled"
    NEW = "new"
    PARTIALLY_FILLED = "partially_filled"
    PENDING_CANCEL = "pending_cancel"
    PENDING_NEW = "pending_new"
    PENDING_REPLACE = "pending_replace"
    REJECTED = "rejected"
    REPLACED = "replaced"
    STOPPED = "stopped"
    SUSPENDED = "suspended"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.FILLED,
        OrderStatus.CANCELED,
        OrderStatus.EXPIRED,
        OrderStatus.REJECTED,
        OrderStatus.REPLACED,
        OrderStatus.DONE_FOR_DAY,
    }
)


class OrderTypeTag(WireEnum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"
    TRAILING_STOP = "trailing_stop"


class OrderClassTag(WireEnum):
    SIMPLE = "simple"
    BRACKET = "bracket"
    ONE_CANCELS_OTHER = "oco"
    ONE_TRIGGERS_OTHER = "oto"


class QueryOrderStatus(WireEnum):
    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


class _Variant(WireModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# Order types ----------------------------------------------------------------


class Market(_Variant):
    type: Literal["market"] = "market"


class Limit(_Variant):
    type: Literal["limit"] = "limit"
    limit_price: WireDecimal


class Stop(_Variant):
    type: Literal["stop"] = "stop"
    stop_price: WireDecimal


class StopLimit(_Variant):
    type: Literal["stop_limit"] = "stop_limit"
    limit_price: WireDecimal
    stop_price: WireDecimal


class TrailingStop(_Variant):
    """Exactly one of ``trail_price`` and ``trail_percent`` must be set."""

    type: Literal["trailing_stop"] = "trailing_stop"
    trail_price: Optional[WireDecimal] = None
    trail_percent: Optional[WireDecimal] = None


OrderType = Annotated[Union[Market, Limit, Stop, StopLimit, TrailingStop], Field(discriminator="type")]

# Wire fields read into each order type when decoding a flat order payload.
_ORDER_TYPE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "market": (),
    "limit": ("limit_price",),
    "stop": ("stop_price",),
    "stop_limit": ("limit_price", "stop_price"),
    "trailing_stop": ("trail_price", "trail_percent"),
}


# Order classes --------------------------------------------------------------


class TakeProfitSpec(_Variant):
    limit_price: WireDecimal


class StopLossSpec(_Variant):
    """Stop leg; a ``limit_price`` turns it into a stop-limit leg."""

    stop_price: WireDecimal
    limit_price: Optional[WireDecimal] = None


class Simple(_Variant):
    order_class: Literal["simple"] = "simple"


class Bracket(_Variant):
    order_class: Literal["bracket"] = "bracket"
    take_profit: TakeProfitSpec
    stop_loss: StopLossSpec


class OneCancelsOther(_Variant):
    order_class: Literal["oco"] = "oco"
    take_profit: TakeProfitSpec
    stop_loss: StopLossSpec


class OneTriggersOther(_Variant):
    """The triggered order carries exactly one of the two legs."""

    order_class: Literal["oto"] = "oto"
    take_profit: Optional[TakeProfitSpec] = None
    stop_loss: Optional[StopLossSpec] = None


OrderClass = Annotated[
    Union[Simple, Bracket, OneCancelsOther, OneTriggersOther], Field(discriminator="order_class")
]


def order_type_fields(order_type: Any, check: bool = True) -> Dict[str, Any]:
    """Flatten an order type into its wire fields, ``type`` included."""
    if isinstance(order_type, TrailingStop):
        if check and (order_type.trail_price is None) == (order_type.trail_percent is None):
            raise OrderValidationError(
                "trail_price", "a trailing stop needs exactly one of trail_price and trail_percent"
            )
    elif not isinstance(order_type, (Market, Limit, Stop, StopLimit)):
        raise UnhandledVariantError("OrderType", order_type)
    return order_type.to_wire()


def order_class_fields(order_class: Any, check: bool = True) -> Dict[str, Any]:
    """Flatten an order class into ``order_class`` plus its leg objects."""
    if isinstance(order_class, (Bracket, OneCancelsOther)):
        if check:
            for leg in ("take_profit", "stop_loss"):
                if getattr(order_class, leg, None) is None:
                    raise OrderValidationError(leg, "required leg is missing", order_class.order_class)
    elif isinstance(order_class, OneTriggersOther):
        if check and (order_class.take_profit is None) == (order_class.stop_loss is None):
            raise OrderValidationError(
                "take_profit", "an oto order needs exactly one of take_profit and stop_loss", "oto"
            )
    elif not isinstance(order_class, Simple):
        raise UnhandledVariantError("OrderClass", order_class)
    return order_class.to_wire()


# Outbound -------------------------------------------------------------------


class OrderSpec(WireModel):
    """A new order, built from per-variant type and class objects."""

    symbol: str
    qty: WireDecimal
    side: Side = Side.BUY
    order_type: OrderType = Field(default_factory=Market)
    time_in_force: TimeInForce = TimeInForce.DAY
    extended_hours: bool = False
    client_order_id: Optional[str] = None
    order_class: OrderClass = Field(default_factory=Simple)

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"order_type", "order_class"}, exclude_none=True)
        data.update(order_type_fields(self.order_type))
        data.update(order_class_fields(self.order_class))
        return data


_TICKET_PRICE_FIELDS = ("limit_price", "stop_price", "trail_price", "trail_percent")


class OrderTicket(WireModel):
    """Flat, generic description of an order.

    Every price and leg field is optional here; :meth:`to_spec` checks the
    combination against ``type`` and ``order_class`` and builds the matching
    :class:`OrderSpec`.  Nothing is defaulted or dropped: a missing required
    field or a field the chosen variant does not use raises
    :class:`~apca.errors.OrderValidationError`.
    """

    symbol: str
    qty: WireDecimal
    side: Side = Side.BUY
    type: OrderTypeTag = OrderTypeTag.MARKET
    time_in_force: TimeInForce = TimeInForce.DAY
    extended_hours: bool = False
    client_order_id: Optional[str] = None
    limit_price: Optional[WireDecimal] = None
    stop_price: Optional[WireDecimal] = None
    trail_price: Optional[WireDecimal] = None
    trail_percent: Optional[WireDecimal] = None
    order_class: OrderClassTag = OrderClassTag.SIMPLE
    take_profit: Optional[TakeProfitSpec] = None
    stop_loss: Optional[StopLossSpec] = None

    def _order_type(self) -> Any:
        tag = OrderTypeTag(self.type).value
        wanted = _ORDER_TYPE_FIELDS[tag]
        for name in _TICKET_PRICE_FIELDS:
            if name not in wanted and getattr(self, name) is not None:
                raise OrderValidationError(name, f"not used by {tag} orders")
        fields = {name: getattr(self, name) for name in wanted}
        if tag != "trailing_stop":
            for name, value in fields.items():
                if value is None:
                    raise OrderValidationError(name, f"required by {tag} orders")
        variant = {
            "market": Market,
            "limit": Limit,
            "stop": Stop,
            "stop_limit": StopLimit,
            "trailing_stop": TrailingStop,
        }[tag]
        return variant(**fields)

    def _order_class(self) -> Any:
        tag = OrderClassTag(self.order_class)
        if tag is OrderClassTag.SIMPLE:
            for name in ("take_profit", "stop_loss"):
                if getattr(self, name) is not None:
                    raise OrderValidationError(name, "not used by simple orders", tag.value)
            return Simple()
        if tag is OrderClassTag.ONE_TRIGGERS_OTHER:
            return OneTriggersOther(take_profit=self.take_profit, stop_loss=self.stop_loss)
        for name in ("take_profit", "stop_loss"):
            if getattr(self, name) is None:
                raise OrderValidationError(name, f"required by {tag.value} orders", tag.value)
        variant = Bracket if tag is OrderClassTag.BRACKET else OneCancelsOther
        return variant(take_profit=self.take_profit, stop_loss=self.stop_loss)

    def to_spec(self) -> OrderSpec:
        return OrderSpec(
            symbol=self.symbol,
            qty=self.qty,
            side=self.side,
            order_type=self._order_type(),
            time_in_force=self.time_in_force,
            extended_hours=self.extended_hours,
            client_order_id=self.client_order_id,
            order_class=self._order_class(),
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.to_spec().to_wire()


class OrderReplacement(WireModel):
    """Fields that may change when an open order is replaced."""

    qty: Optional[WireDecimal] = None
    time_in_force: Optional[TimeInForce] = None
    limit_price: Optional[WireDecimal] = None
    stop_price: Optional[WireDecimal] = None
    trail: Optional[WireDecimal] = None
    client_order_id: Optional[str] = None


# Inbound --------------------------------------------------------------------


class Order(WireModel):
    """An order as reported by the API.

    ``legs`` holds the child orders of bracket, oco and oto orders and is
    only filled in when the request asked for ``nested=true``.
    """

    wire_nullable: ClassVar[frozenset] = frozenset({"replaced_by", "replaces"})

    id: uuid.UUID
    client_order_id: str
    created_at: Timestamp
    updated_at: Optional[Timestamp] = None
    submitted_at: Optional[Timestamp] = None
    filled_at: Optional[Timestamp] = None
    expired_at: Optional[Timestamp] = None
    canceled_at: Optional[Timestamp] = None
    failed_at: Optional[Timestamp] = None
    replaced_at: Optional[Timestamp] = None
    replaced_by: Optional[uuid.UUID] = None
    replaces: Optional[uuid.UUID] = None
    asset_id: uuid.UUID
    symbol: str
    asset_class: str
    qty: StrictDecimal
    filled_qty: StrictDecimal
    filled_avg_price: Optional[LenientDecimal] = None
    order_type: OrderType
    order_class: OrderClassTag = OrderClassTag.SIMPLE
    side: Side
    time_in_force: TimeInForce
    status: OrderStatus
    extended_hours: bool
    legs: Optional[List["Order"]] = None
    trail_price: Optional[LenientDecimal] = None
    trail_percent: Optional[LenientDecimal] = None
    hwm: Optional[LenientDecimal] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_order_type(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "order_type" in data:
            return data
        data = dict(data)
        order_type: Dict[str, Any] = {}
        if "type" in data:
            tag = data["type"]
            order_type["type"] = tag
            wanted = _ORDER_TYPE_FIELDS.get(tag, ()) if isinstance(tag, str) else ()
            for name in wanted:
                if data.get(name) is not None:
                    order_type[name] = data[name]
        data["order_type"] = order_type
        # Simple orders come back with an empty or missing order_class.
        if not data.get("order_class"):
            data["order_class"] = OrderClassTag.SIMPLE.value
        return data

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"order_type", "legs"}, exclude_none=True)
        for name in self.wire_nullable:
            data.setdefault(name, None)
        data.update(order_type_fields(self.order_type, check=False))
        if self.legs is not None:
            data["legs"] = [leg.to_wire() for leg in self.legs]
        return data


class CancellationAttempt(WireModel):
    """Per-order outcome of a cancel-all request.

    Successful cancellations carry the order in ``body``; failures keep the
    API's error object in ``error``.
    """

    id: uuid.UUID
    status: int
    body: Optional[Order] = None
    error: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _split_error(cls, data: Any) -> Any:
        if isinstance(data, dict) and not 200 <= int(data.get("status") or 0) < 300:
            data = dict(data)
            data["error"] = data.pop("body", None)
        return data

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


# Requests -------------------------------------------------------------------


class GetOrders(ApiRequest):
    response_type: ClassVar[Any] = List[Order]
    location: ClassVar[str] = "query"

    status: QueryOrderStatus = QueryOrderStatus.OPEN
    limit: int = 50
    after: Optional[Timestamp] = None
    until: Optional[Timestamp] = None
    direction: Sort = Sort.DESCENDING
    nested: bool = False
    symbols: Optional[List[str]] = None

    def endpoint(self) -> str:
        return "/orders"

    def check(self) -> None:
        if not 0 < self.limit <= 500:
            raise RequestValidationError("limit", f"must be between 1 and 500, got {self.limit}")


class GetOrder(ApiRequest):
    response_type: ClassVar[Any] = Order
    location: ClassVar[str] = "query"

    order_id: uuid.UUID = Field(exclude=True)
    nested: bool = False

    def endpoint(self) -> str:
        return f"/orders/{self.order_id}"


class SubmitOrder(ApiRequest):
    method: ClassVar[str] = "POST"
    response_type: ClassVar[Any] = Order
    location: ClassVar[str] = "body"

    order: Union[OrderSpec, OrderTicket]

    def endpoint(self) -> str:
        return "/orders"

    def check(self) -> None:
        # Runs every rule the order types cannot express.
        self.params()

    def params(self) -> Dict[str, Any]:
        return self.order.to_wire()


class ReplaceOrder(ApiRequest):
    method: ClassVar[str] = "POST"
    response_type: ClassVar[Any] = Order
    location: ClassVar[str] = "body"

    order_id: uuid.UUID = Field(exclude=True)
    replacement: OrderReplacement

    def endpoint(self) -> str:
        return f"/orders/{self.order_id}"

    def check(self) -> None:
        if not self.params():
            raise RequestValidationError("replacement", "nothing to replace")

    def params(self) -> Dict[str, Any]:
        return self.replacement.to_wire()


class CancelOrder(ApiRequest):
    method: ClassVar[str] = "DELETE"
    response_type: ClassVar[Any] = EmptyResponse

    order_id: uuid.UUID

    def endpoint(self) -> str:
        return f"/orders/{self.order_id}"


class CancelAllOrders(ApiRequest):
    method: ClassVar[str] = "DELETE"
    response_type: ClassVar[Any] = List[CancellationAttempt]

    def endpoint(self) -> str:
        return "/orders"
