"""Data models for the ingestor module.

Provider records arrive with optional and polymorphic fields (``Side`` may
be a single object or a list, owners may be missing). ``TradeRecord`` is
the normalized form those records are parsed into before any attribution
logic runs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from starship_realtime.window.clock import parse_instant, to_iso

WSOL_MINT = "So11111111111111111111111111111111111111112"
REALTIME_DATASET: Literal["realtime"] = "realtime"


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _number(value: Any) -> float | None:
    """Coerce a provider number (often a string) to float."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class TradeSide:
    """One leg of a trade (``Trade.Side`` in the provider schema)."""

    side_type: str
    address: str
    owner: str
    mint_address: str
    amount: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TradeSide:
        account = _mapping(data.get("Account"))
        currency = _mapping(data.get("Currency"))
        return cls(
            side_type=_text(data.get("Type")),
            address=_text(account.get("Address")),
            owner=_text(account.get("Owner")),
            mint_address=_text(currency.get("MintAddress")),
            amount=_number(data.get("Amount")) or 0.0,
        )

    @property
    def is_buy(self) -> bool:
        return self.side_type.lower() == "buy"

    @property
    def wallet(self) -> str:
        """Account address, or its owner when the address is missing."""
        return self.address or self.owner

    def is_currency(self, mint: str) -> bool:
        return self.mint_address.lower() == mint.lower()


@dataclass(frozen=True)
class TradeRecord:
    """A provider trade record after structural normalization."""

    time: datetime | None
    signature: str
    price: float | None
    owner: str
    sides: tuple[TradeSide, ...]

    @classmethod
    def from_bitquery(cls, data: dict[str, Any]) -> TradeRecord:
        """Create a TradeRecord from one ``DEXTradeByTokens`` entry.

        Args:
            data: Raw record from the GraphQL response.

        Returns:
            TradeRecord instance; missing fields become empty values.
        """
        block = _mapping(data.get("Block"))
        transaction = _mapping(data.get("Transaction"))
        trade = _mapping(data.get("Trade"))

        raw_sides = trade.get("Side")
        if isinstance(raw_sides, list):
            side_items = [s for s in raw_sides if isinstance(s, dict)]
        elif isinstance(raw_sides, dict):
            side_items = [raw_sides]
        else:
            side_items = []

        return cls(
            time=parse_instant(block.get("Time")),
            signature=_text(transaction.get("Signature")),
            price=_number(trade.get("Price")),
            owner=_text(_mapping(trade.get("Account")).get("Owner")),
            sides=tuple(TradeSide.from_dict(s) for s in side_items),
        )

    @property
    def buy_sides(self) -> tuple[TradeSide, ...]:
        return tuple(s for s in self.sides if s.is_buy)


@dataclass(frozen=True)
class TradeRow:
    """One (trade, attributed wallet) pair as served to clients."""

    time: datetime
    wallet: str
    signature: str
    sol_amount: float
    price: float | None
    dataset: Literal["realtime"] = REALTIME_DATASET

    @property
    def key(self) -> tuple[str, str, datetime]:
        """Identity used for cross-window deduplication."""
        return (self.signature, self.wallet, self.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": to_iso(self.time, exact=True),
            "wallet": self.wallet,
            "signature": self.signature,
            "solAmount": self.sol_amount,
            "price": self.price,
            "dataset": self.dataset,
        }
