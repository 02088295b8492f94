"""Tests for the aiohttp transport against a local test server.

The server records every request it receives so the tests can check the
authentication headers, query strings and JSON bodies that went over the
wire, and answers with canned payloads per route.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import aiohttp
import pytest  # type: ignore
from aiohttp import web
from aiohttp import test_utils

from apca.account import Account, GetAccount
from apca.auth_providers import BearerAuthProvider, HeaderAuthProvider
from apca.client import AlpacaClient, client_with_url
from apca.errors import HttpStatusError
from apca.mapper import EMPTY_RESPONSE
from apca.orders import GetOrder, Limit, OrderSpec, SubmitOrder
from apca.positions import CloseAllPositions, Position
from apca.transport import HttpTransport
from apca.watchlists import DeleteWatchlist
from tests.helpers.payloads import ACCOUNT, ORDER_ID, POSITION, order_payload

WATCHLIST_ID = "fb306e55-16d3-4118-8c3d-c1615fcd4c03"


def build_app(seen: List[Dict[str, Any]]) -> web.Application:
    async def record(request: web.Request) -> None:
        seen.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "body": await request.text(),
            }
        )

    async def account(request: web.Request) -> web.Response:
        await record(request)
        return web.json_response(ACCOUNT)

    async def order(request: web.Request) -> web.Response:
        await record(request)
        if request.match_info["order_id"] == ORDER_ID:
            return web.json_response(order_payload())
        return web.json_response({"code": 40410000, "message": "order not found"}, status=404)

    async def submit(request: web.Request) -> web.Response:
        await record(request)
        return web.json_response(order_payload(type="limit"))

    async def close_all(request: web.Request) -> web.Response:
        await record(request)
        return web.json_response([POSITION], status=207)

    async def delete_watchlist(request: web.Request) -> web.Response:
        await record(request)
        return web.Response(status=204)

    app = web.Application()
    app.router.add_get("/v2/account", account)
    app.router.add_get("/v2/orders/{order_id}", order)
    app.router.add_post("/v2/orders", submit)
    app.router.add_delete("/v2/positions", close_all)
    app.router.add_delete("/v2/watchlists/{watchlist_id}", delete_watchlist)
    return app


def server_url(server: test_utils.TestServer) -> str:
    return f"http://{server.host}:{server.port}"


@pytest.mark.asyncio  # type: ignore
async def test_sends_key_headers_and_decodes() -> None:
    seen: List[Dict[str, Any]] = []
    async with test_utils.TestServer(build_app(seen)) as server:
        client = client_with_url(server_url(server), "APCA_API_KEY_ID", "APCA_API_SECRET_KEY")
        account = await client.send(GetAccount())
    assert isinstance(account, Account)
    headers = seen[0]["headers"]
    assert headers["APCA-API-KEY-ID"] == "APCA_API_KEY_ID"
    assert headers["APCA-API-SECRET-KEY"] == "APCA_API_SECRET_KEY"


@pytest.mark.asyncio  # type: ignore
async def test_missing_order_is_a_status_error() -> None:
    seen: List[Dict[str, Any]] = []
    missing = "11111111-1111-1111-1111-111111111111"
    async with test_utils.TestServer(build_app(seen)) as server:
        client = client_with_url(server_url(server), "KEY", "SECRET")
        with pytest.raises(HttpStatusError) as excinfo:
            await client.send(GetOrder(order_id=missing))
    assert excinfo.value.status == 404
    assert json.loads(excinfo.value.body)["message"] == "order not found"
    assert seen[0]["query"] == {"nested": "false"}
    # Status errors are answered by the server and never retried.
    assert len(seen) == 1


@pytest.mark.asyncio  # type: ignore
async def test_submit_order_posts_json() -> None:
    seen: List[Dict[str, Any]] = []
    async with test_utils.TestServer(build_app(seen)) as server:
        client = client_with_url(server_url(server), "KEY", "SECRET")
        order = await client.send(
            SubmitOrder(order=OrderSpec(symbol="AAPL", qty="1", order_type=Limit(limit_price="100")))
        )
    assert order.order_type == Limit(limit_price="107.00")
    assert seen[0]["headers"]["Content-Type"].startswith("application/json")
    body = json.loads(seen[0]["body"])
    assert body["type"] == "limit"
    assert body["limit_price"] == "100"
    assert body["qty"] == "1"


@pytest.mark.asyncio  # type: ignore
async def test_multi_status_and_no_content() -> None:
    seen: List[Dict[str, Any]] = []
    async with test_utils.TestServer(build_app(seen)) as server:
        async with aiohttp.ClientSession() as session:
            transport = HttpTransport(
                server_url(server), HeaderAuthProvider("KEY", "SECRET"), session=session
            )
            client = AlpacaClient(transport)
            positions = await client.send(CloseAllPositions(cancel_orders=True))
            deleted = await client.send(DeleteWatchlist(id=WATCHLIST_ID))
    assert [type(p) for p in positions] == [Position]
    assert seen[0]["query"] == {"cancel_orders": "true"}
    assert deleted is EMPTY_RESPONSE


@pytest.mark.asyncio  # type: ignore
async def test_bearer_auth() -> None:
    seen: List[Dict[str, Any]] = []
    async with test_utils.TestServer(build_app(seen)) as server:
        client = AlpacaClient(HttpTransport(server_url(server), BearerAuthProvider("TOKEN")))
        await client.send(GetAccount())
    assert seen[0]["headers"]["Authorization"] == "Bearer TOKEN"
    assert "APCA-API-KEY-ID" not in seen[0]["headers"]


@pytest.mark.asyncio  # type: ignore
async def test_connection_errors_are_retried_then_reraised(monkeypatch) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    attempts: List[str] = []

    async def refuse(method, path, query, body):
        attempts.append(path)
        raise aiohttp.ClientConnectionError("connection refused")

    monkeypatch.setattr(transport, "_send_once", refuse)
    with pytest.raises(aiohttp.ClientConnectionError):
        await transport.send("GET", "/v2/account")
    assert len(attempts) == 3


@pytest.mark.asyncio  # type: ignore
async def test_retry_recovers_after_a_dropped_connection(monkeypatch) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    outcomes: List[Any] = [aiohttp.ServerDisconnectedError(), b"{}"]

    async def flaky(method, path, query, body):
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(transport, "_send_once", flaky)
    assert await transport.send("GET", "/v2/clock") == b"{}"
    assert outcomes == []


@pytest.mark.asyncio  # type: ignore
async def test_status_errors_are_not_retried(monkeypatch) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    calls: List[str] = []

    async def reject(method, path, query, body):
        calls.append(path)
        raise HttpStatusError(500, b"internal error")

    monkeypatch.setattr(transport, "_send_once", reject)
    with pytest.raises(HttpStatusError):
        await transport.send("POST", "/v2/orders", body={"symbol": "AAPL"})
    assert len(calls) == 1


class RefusedConnection(aiohttp.ClientConnectorError):
    """Connection refused before the request was written."""

    def __init__(self) -> None:
        OSError.__init__(self, 111, "connection refused")

    def __str__(self) -> str:
        return "connection refused"


@pytest.mark.asyncio  # type: ignore
@pytest.mark.parametrize(
    "method, failure",
    [
        ("POST", aiohttp.ServerDisconnectedError),
        ("POST", asyncio.TimeoutError),
        ("PATCH", aiohttp.ServerDisconnectedError),
    ],
)
async def test_writes_are_not_resent_after_the_request_went_out(monkeypatch, method, failure) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    calls: List[str] = []

    async def drop(method, path, query, body):
        calls.append(path)
        raise failure()

    monkeypatch.setattr(transport, "_send_once", drop)
    with pytest.raises(failure):
        await transport.send(method, "/v2/orders", body={"symbol": "AAPL"})
    assert len(calls) == 1


@pytest.mark.asyncio  # type: ignore
async def test_submitted_order_is_sent_once_when_the_connection_drops(monkeypatch) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    submissions: List[str] = []

    async def drop(method, path, query, body):
        submissions.append(f"{method} {path}")
        raise aiohttp.ServerDisconnectedError()

    monkeypatch.setattr(transport, "_send_once", drop)
    client = AlpacaClient(transport)
    with pytest.raises(aiohttp.ServerDisconnectedError):
        await client.send(SubmitOrder(order=OrderSpec(symbol="AAPL", qty="1")))
    assert submissions == ["POST /v2/orders"]


@pytest.mark.asyncio  # type: ignore
async def test_writes_retry_when_the_connection_was_never_made(monkeypatch) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    outcomes: List[Any] = [RefusedConnection(), b"{}"]

    async def flaky(method, path, query, body):
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(transport, "_send_once", flaky)
    assert await transport.send("POST", "/v2/orders", body={"symbol": "AAPL"}) == b"{}"
    assert outcomes == []


@pytest.mark.asyncio  # type: ignore
async def test_deletes_retry_after_a_dropped_connection(monkeypatch) -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_retries=3, backoff_seconds=0)
    outcomes: List[Any] = [aiohttp.ServerDisconnectedError(), b""]

    async def flaky(method, path, query, body):
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(transport, "_send_once", flaky)
    assert await transport.send("DELETE", "/v2/orders/" + ORDER_ID) == b""
    assert outcomes == []


@pytest.mark.asyncio  # type: ignore
async def test_token_bucket_consumes_tokens() -> None:
    transport = HttpTransport("http://127.0.0.1:9", max_requests_per_minute=2)
    await transport._acquire_token()
    await transport._acquire_token()
    assert transport.tokens == 0


def test_repr_hides_secrets() -> None:
    transport = HttpTransport("https://paper-api.alpaca.markets/", HeaderAuthProvider("KEY", "SECRET"))
    assert transport.base_url == "https://paper-api.alpaca.markets"
    assert "SECRET" not in repr(transport)
