"""Tests for the Bitquery client."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import timedelta

import httpx
import pytest

from starship_realtime.errors import ProviderError
from starship_realtime.ingestor.bitquery_client import (
    SOLANA_REALTIME_TRADES_QUERY,
    BitqueryClient,
    build_window_variables,
    extract_trade_records,
)
from starship_realtime.window.models import Window
from tests.factories import FIXED_HOUR, TOKEN_MINT, make_record, make_side, provider_payload

URL = "https://bitquery.test/eap"
WINDOW = Window(since=FIXED_HOUR - timedelta(hours=4), till=FIXED_HOUR)


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> BitqueryClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BitqueryClient(token="secret", url=URL, http_client=http_client)


class TestHelpers:
    """Tests for request/response helpers."""

    def test_build_window_variables(self) -> None:
        assert build_window_variables(TOKEN_MINT, WINDOW, 50) == {
            "token": TOKEN_MINT,
            "since": "2026-10-17T08:00:00.000Z",
            "till": "2026-10-17T12:00:00.000Z",
            "limit": 50,
            "offset": 0,
        }

    def test_extract_missing_levels(self) -> None:
        assert extract_trade_records({}) == []
        assert extract_trade_records({"data": None}) == []
        assert extract_trade_records({"data": {"Solana": {}}}) == []
        assert extract_trade_records({"data": {"Solana": {"DEXTradeByTokens": None}}}) == []

    def test_query_filters(self) -> None:
        for fragment in (
            "Solana(dataset: realtime)",
            "orderBy: { ascending: Block_Time }",
            "Success: true",
            "Side: { Type: { is: buy } }",
            "Price: { gt: 0 }",
        ):
            assert fragment in SOLANA_REALTIME_TRADES_QUERY


class TestBitqueryClient:
    """Tests for BitqueryClient.fetch_window."""

    @pytest.mark.asyncio
    async def test_fetch_window_sends_one_request(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json=provider_payload(
                    make_record(signature="s1", sides=[make_side(address="A", amount="2")]),
                    make_record(signature="s2", time="2026-10-17T11:00:00Z"),
                ),
            )

        client = _client(handler)
        rows = await client.fetch_window(TOKEN_MINT, WINDOW, 25)

        assert len(requests) == 1
        sent = requests[0]
        assert str(sent.url) == URL
        assert sent.headers["Authorization"] == "Bearer secret"
        body = json.loads(sent.content)
        assert body["query"] == SOLANA_REALTIME_TRADES_QUERY
        assert body["variables"]["token"] == TOKEN_MINT
        assert body["variables"]["limit"] == 25

        assert [(r.signature, r.wallet, r.sol_amount) for r in rows] == [
            ("s1", "A", 2.0),
            ("s2", "", 0.0),
        ]

    @pytest.mark.asyncio
    async def test_empty_data_returns_no_rows(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"data": {}}))
        assert await client.fetch_window(TOKEN_MINT, WINDOW, 10) == []

    @pytest.mark.asyncio
    async def test_embedded_errors_raise(self) -> None:
        errors = [{"message": "query too complex"}]
        client = _client(lambda request: httpx.Response(200, json={"errors": errors, "data": None}))

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_window(TOKEN_MINT, WINDOW, 10)

        assert json.loads(exc_info.value.details) == errors

    @pytest.mark.asyncio
    async def test_http_status_error_raises(self) -> None:
        client = _client(lambda request: httpx.Response(401, json={"message": "bad token"}))

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_window(TOKEN_MINT, WINDOW, 10)

        assert exc_info.value.upstream_status == 401
        assert "bad token" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self) -> None:
        client = _client(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_window(TOKEN_MINT, WINDOW, 10)

        assert "Bad Gateway" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_non_json_success_body_raises(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(ProviderError):
            await client.fetch_window(TOKEN_MINT, WINDOW, 10)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_window(TOKEN_MINT, WINDOW, 10)

        assert "connection refused" in exc_info.value.details
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self) -> None:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        async with BitqueryClient(token="t", url=URL, http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self) -> None:
        client = BitqueryClient(token="t", url=URL)
        await client.aclose()
        assert client._client.is_closed
