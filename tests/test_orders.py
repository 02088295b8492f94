"""Tests for the order model: per-variant construction, flattening and validation."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest  # type: ignore

from apca.errors import DecodeError, OrderValidationError, UnhandledVariantError
from apca.mapper import encode_request
from apca.orders import (
    Bracket,
    CancellationAttempt,
    Limit,
    Market,
    OneCancelsOther,
    OneTriggersOther,
    Order,
    OrderClassTag,
    OrderSpec,
    OrderStatus,
    OrderTicket,
    OrderTypeTag,
    Side,
    Simple,
    StopLimit,
    StopLossSpec,
    SubmitOrder,
    TakeProfitSpec,
    TimeInForce,
    TrailingStop,
    order_class_fields,
    order_type_fields,
)
from tests.helpers.payloads import ORDER_ID, order_payload

BRACKET = Bracket(
    take_profit=TakeProfitSpec(limit_price="301"),
    stop_loss=StopLossSpec(stop_price="299", limit_price="298.5"),
)


def test_limit_simple_order_body() -> None:
    spec = OrderSpec(symbol="AAPL", qty=1, order_type=Limit(limit_price=100))
    body = spec.to_wire()
    assert body["type"] == "limit"
    assert body["limit_price"] == "100"
    assert body["qty"] == "1"
    assert body["order_class"] == "simple"
    assert "take_profit" not in body
    assert "stop_loss" not in body
    assert "stop_price" not in body


def test_bracket_is_flattened_into_order() -> None:
    spec = OrderSpec(
        symbol="AAPL",
        qty="123",
        order_type=Limit(limit_price="100"),
        time_in_force=TimeInForce.GOOD_TIL_CANCELLED,
        client_order_id="TEST",
        order_class=BRACKET,
    )
    assert spec.to_wire() == {
        "symbol": "AAPL",
        "qty": "123",
        "side": "buy",
        "type": "limit",
        "limit_price": "100",
        "time_in_force": "gtc",
        "extended_hours": False,
        "client_order_id": "TEST",
        "order_class": "bracket",
        "take_profit": {"limit_price": "301"},
        "stop_loss": {"stop_price": "299", "limit_price": "298.5"},
    }


def test_variants_reject_foreign_fields() -> None:
    with pytest.raises(ValueError):
        Limit(limit_price="100", stop_price="99")  # type: ignore[call-arg]


def test_trailing_stop_needs_exactly_one_trail() -> None:
    assert order_type_fields(TrailingStop(trail_percent="2.5")) == {
        "type": "trailing_stop",
        "trail_percent": "2.5",
    }
    with pytest.raises(OrderValidationError) as excinfo:
        order_type_fields(TrailingStop())
    assert excinfo.value.field == "trail_price"
    with pytest.raises(OrderValidationError):
        order_type_fields(TrailingStop(trail_price="1", trail_percent="2"))


def test_oto_needs_exactly_one_leg() -> None:
    fields = order_class_fields(OneTriggersOther(stop_loss=StopLossSpec(stop_price="90")))
    assert fields == {"order_class": "oto", "stop_loss": {"stop_price": "90"}}
    with pytest.raises(OrderValidationError) as excinfo:
        order_class_fields(OneTriggersOther())
    assert excinfo.value.order_class == "oto"


def test_unknown_variants_raise() -> None:
    with pytest.raises(UnhandledVariantError) as excinfo:
        order_type_fields(object())
    assert excinfo.value.union == "OrderType"
    with pytest.raises(UnhandledVariantError):
        order_class_fields("bracket")
    # Still a TypeError for callers that catch the builtin.
    with pytest.raises(TypeError):
        order_class_fields(None)


def test_constructed_bracket_without_leg_fails_at_encode() -> None:
    broken = Bracket.model_construct(take_profit=TakeProfitSpec(limit_price="301"))
    with pytest.raises(OrderValidationError) as excinfo:
        order_class_fields(broken)
    assert excinfo.value.field == "stop_loss"
    assert excinfo.value.order_class == "bracket"


def test_ticket_builds_the_matching_variants() -> None:
    ticket = OrderTicket(
        symbol="AAPL",
        qty="10",
        side=Side.SELL,
        type="stop_limit",
        limit_price="98",
        stop_price="99",
        order_class=OrderClassTag.ONE_CANCELS_OTHER,
        take_profit=TakeProfitSpec(limit_price="110"),
        stop_loss=StopLossSpec(stop_price="95"),
    )
    spec = ticket.to_spec()
    assert spec.order_type == StopLimit(limit_price="98", stop_price="99")
    assert isinstance(spec.order_class, OneCancelsOther)
    assert ticket.to_wire()["order_class"] == "oco"


def test_ticket_missing_leg_is_reported_before_sending() -> None:
    ticket = OrderTicket(
        symbol="AAPL",
        qty="1",
        type="limit",
        limit_price="100",
        order_class="bracket",
        take_profit=TakeProfitSpec(limit_price="301"),
    )
    with pytest.raises(OrderValidationError) as excinfo:
        encode_request(SubmitOrder(order=ticket))
    assert excinfo.value.field == "stop_loss"
    assert excinfo.value.order_class == "bracket"


def test_ticket_rejects_stray_and_missing_prices() -> None:
    with pytest.raises(OrderValidationError) as excinfo:
        OrderTicket(symbol="AAPL", qty="1", type="market", stop_price="5").to_spec()
    assert excinfo.value.field == "stop_price"
    with pytest.raises(OrderValidationError) as excinfo:
        OrderTicket(symbol="AAPL", qty="1", type="limit").to_spec()
    assert excinfo.value.field == "limit_price"
    with pytest.raises(OrderValidationError) as excinfo:
        OrderTicket(
            symbol="AAPL", qty="1", stop_loss=StopLossSpec(stop_price="1")
        ).to_spec()
    assert excinfo.value.order_class == "simple"


def test_ticket_is_frozen_and_copied_with_updates() -> None:
    ticket = OrderTicket(symbol="AAPL", qty="1")
    with pytest.raises(ValueError):
        ticket.qty = Decimal("2")  # type: ignore[misc]
    limit = ticket.model_copy(update={"type": OrderTypeTag.LIMIT, "limit_price": Decimal("100")})
    assert limit.to_wire()["limit_price"] == "100"
    assert ticket.to_wire()["type"] == "market"


def test_decode_order_tolerates_unused_fields() -> None:
    order = Order.from_wire(order_payload())
    assert order.id == uuid.UUID(ORDER_ID)
    assert order.qty == Decimal("15")
    assert order.filled_qty == Decimal("0")
    # limit_price and stop_price are ignored by a market order.
    assert order.order_type == Market()
    assert order.order_class is OrderClassTag.SIMPLE
    assert order.status is OrderStatus.ACCEPTED
    assert not order.status.is_terminal
    assert order.replaces is None
    assert order.legs is None
    assert order.hwm == Decimal("108.05")


def test_decode_order_lifts_prices_into_type() -> None:
    order = Order.from_wire(order_payload(type="stop_limit"))
    assert order.order_type == StopLimit(limit_price="107.00", stop_price="106.00")


def test_decode_order_rejects_numeric_quantity() -> None:
    with pytest.raises(DecodeError) as excinfo:
        Order.from_wire(order_payload(qty=15))
    assert excinfo.value.field == "qty"
    assert excinfo.value.raw == 15


def test_decode_order_reports_unknown_type_tag() -> None:
    with pytest.raises(DecodeError) as excinfo:
        Order.from_wire(order_payload(type="iceberg"))
    assert excinfo.value.field == "type"
    assert excinfo.value.raw == "iceberg"


def test_decode_nested_legs() -> None:
    leg = order_payload(
        id="11111111-1111-1111-1111-111111111111", type="limit", order_class="bracket"
    )
    order = Order.from_wire(order_payload(type="limit", order_class="bracket", legs=[leg]))
    assert order.order_class is OrderClassTag.BRACKET
    assert order.legs is not None and len(order.legs) == 1
    assert order.legs[0].order_type == Limit(limit_price="107.00")


def test_order_wire_keeps_explicit_nulls() -> None:
    wire = Order.from_wire(order_payload()).to_wire()
    assert "replaces" in wire and wire["replaces"] is None
    assert wire["type"] == "market"
    assert wire["qty"] == "15"
    assert wire["created_at"] == "2018-10-05T05:48:59Z"


def test_cancellation_attempt_separates_failures() -> None:
    ok = CancellationAttempt.from_wire({"id": ORDER_ID, "status": 200, "body": order_payload()})
    assert ok.ok
    assert ok.body is not None and ok.body.symbol == "AAPL"
    failed = CancellationAttempt.from_wire(
        {"id": ORDER_ID, "status": 500, "body": {"code": 50010000, "message": "order is not cancelable"}}
    )
    assert not failed.ok
    assert failed.body is None
    assert failed.error == {"code": 50010000, "message": "order is not cancelable"}


def test_side_negation() -> None:
    assert -Side.BUY is Side.SELL
    assert -Side.SELL is Side.BUY


def test_default_spec_is_simple_market_day_order() -> None:
    spec = OrderSpec(symbol="SPY", qty="2")
    assert spec.order_type == Market()
    assert spec.order_class == Simple()
    assert spec.to_wire() == {
        "symbol": "SPY",
        "qty": "2",
        "side": "buy",
        "type": "market",
        "time_in_force": "day",
        "extended_hours": False,
        "order_class": "simple",
    }
