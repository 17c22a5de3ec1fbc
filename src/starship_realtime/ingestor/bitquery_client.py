"""Async client for the Bitquery streaming GraphQL endpoint.

One call to ``fetch_window`` issues exactly one POST: buy-side, successful,
positive-price trades for a token mint inside ``[since, till)``, oldest
first. Failures are raised as ``ProviderError``; nothing is retried here.
"""

from __future__ import annotations

import json
import logging
from types import TracebackType
from typing import Any

import httpx

from starship_realtime.config import DEFAULT_BITQUERY_URL
from starship_realtime.errors import ProviderError
from starship_realtime.ingestor.models import TradeRow
from starship_realtime.ingestor.normalize import normalize_records
from starship_realtime.window.clock import to_iso
from starship_realtime.window.models import Window

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

SOLANA_REALTIME_TRADES_QUERY = """
  query SolanaTradesRealtime(
    $token: String!, $since: DateTime!, $till: DateTime!, $limit: Int, $offset: Int
  ) {
    Solana(dataset: realtime) {
      DEXTradeByTokens(
        orderBy: { ascending: Block_Time }
        limit: { count: $limit, offset: $offset }
        where: {
          Block: { Time: { after: $since, before: $till } }
          Transaction: { Result: { Success: true } }
          Trade: {
            Currency: { MintAddress: { is: $token } }
            Side: { Type: { is: buy } }
            Price: { gt: 0 }
          }
        }
      ) {
        Block { Time }
        Transaction { Signature }
        Trade {
          Price
          Account { Owner }
          Side {
            Type
            Account { Address Owner }
            Currency { MintAddress }
            Amount
          }
        }
      }
    }
  }
"""


def build_window_variables(
    token_address: str, window: Window, limit: int, *, offset: int = 0
) -> dict[str, Any]:
    """Build GraphQL variables for one window request."""
    return {
        "token": token_address,
        "since": to_iso(window.since),
        "till": to_iso(window.till),
        "limit": int(limit),
        "offset": offset,
    }


def extract_trade_records(payload: dict[str, Any]) -> list[Any]:
    """Pull ``data.Solana.DEXTradeByTokens`` out of a response body.

    Missing levels yield an empty list.
    """
    data = payload.get("data")
    solana = data.get("Solana") if isinstance(data, dict) else None
    records = solana.get("DEXTradeByTokens") if isinstance(solana, dict) else None
    return records if isinstance(records, list) else []


class BitqueryClient:
    """Bitquery client used to fetch per-window trade rows.

    Example:
        ```python
        async with BitqueryClient(token="...") as client:
            rows = await client.fetch_window(mint, window, limit=100)
        ```
    """

    def __init__(
        self,
        *,
        token: str,
        url: str = DEFAULT_BITQUERY_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Bearer token for the streaming endpoint.
            url: GraphQL endpoint URL.
            timeout_seconds: Per-request timeout.
            http_client: Pre-built client (tests inject a mock transport).
        """
        self._url = url
        self._headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        logger.info("Initialized BitqueryClient with url=%s", url)

    async def __aenter__(self) -> BitqueryClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _post_query(self, variables: dict[str, Any]) -> dict[str, Any]:
        body = {"query": SOLANA_REALTIME_TRADES_QUERY, "variables": variables}
        try:
            response = await self._client.post(self._url, json=body, headers=self._headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"Request to trade provider failed: {e}") from e

        raw = response.text
        try:
            payload = json.loads(raw)
        except ValueError:
            payload = None

        if not response.is_success:
            if isinstance(payload, dict) and payload.get("errors"):
                detail: Any = payload["errors"]
            elif payload is not None:
                detail = payload
            else:
                detail = {"raw": raw}
            raise ProviderError(json.dumps(detail), status_code=response.status_code)
        if not isinstance(payload, dict):
            raise ProviderError(json.dumps({"raw": raw}), status_code=response.status_code)
        if payload.get("errors"):
            raise ProviderError(json.dumps(payload["errors"]), status_code=response.status_code)
        return payload

    async def fetch_window(self, token_address: str, window: Window, limit: int) -> list[TradeRow]:
        """Fetch and normalize buy trades for one window.

        Args:
            token_address: Token mint address.
            window: Validated retrieval window.
            limit: Maximum number of provider records.

        Returns:
            Attribution-expanded rows in provider order.

        Raises:
            ProviderError: On transport failure, non-success status,
                non-JSON body or an embedded GraphQL error payload.
        """
        variables = build_window_variables(token_address, window, limit)
        payload = await self._post_query(variables)
        records = extract_trade_records(payload)
        rows = normalize_records(records)
        logger.debug(
            "Window %s..%s: %d records, %d rows",
            variables["since"],
            variables["till"],
            len(records),
            len(rows),
        )
        return rows
