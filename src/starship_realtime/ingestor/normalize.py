"""Attribution expansion of provider trade records into rows.

A record becomes one row per distinct wallet on its buy side. A record
with no attributable wallet still yields exactly one row with an empty
wallet, so trades never disappear for lack of attribution. Volume summed
over rows can therefore exceed the real traded volume.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from starship_realtime.ingestor.models import WSOL_MINT, TradeRecord, TradeRow

logger = logging.getLogger(__name__)


def buy_side_wallets(record: TradeRecord) -> list[str]:
    """Return distinct wallets for a record, primary owner first."""
    candidates = [record.owner, *(side.wallet for side in record.buy_sides)]
    # dict keeps first-seen order
    return list(dict.fromkeys(w for w in candidates if w))


def sol_amount(record: TradeRecord, *, mint: str = WSOL_MINT) -> float:
    """Sum native-currency amounts over the buy legs."""
    return sum((side.amount for side in record.buy_sides if side.is_currency(mint)), 0.0)


def expand_trade(record: TradeRecord) -> list[TradeRow]:
    """Expand one normalized record into attributed rows.

    Returns:
        One row per wallet, a single ``wallet=""`` row when nothing is
        attributable, or no rows when the record has no usable time.
    """
    if record.time is None:
        logger.error(
            "Dropping trade %s: missing or unparseable block time",
            record.signature or "(unsigned)",
        )
        return []

    amount = sol_amount(record)
    wallets = buy_side_wallets(record) or [""]
    return [
        TradeRow(
            time=record.time,
            wallet=wallet,
            signature=record.signature,
            sol_amount=amount,
            price=record.price,
        )
        for wallet in wallets
    ]


def normalize_records(records: Iterable[Any]) -> list[TradeRow]:
    """Parse and expand raw provider records, in provider order."""
    rows: list[TradeRow] = []
    skipped = 0
    for raw in records:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        rows.extend(expand_trade(TradeRecord.from_bitquery(raw)))
    if skipped:
        logger.debug("Skipped %d non-object trade records", skipped)
    return rows
