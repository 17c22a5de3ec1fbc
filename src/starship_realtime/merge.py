"""Cross-window merge of trade rows.

Rows are sorted by time (stable, so equal times keep input order) and
the first row seen for each ``(signature, wallet, time)`` key wins.
Rows sharing a key but differing in price or amount are treated as
duplicates.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from starship_realtime.ingestor.models import TradeRow


def merge_rows(batches: Iterable[Iterable[TradeRow]]) -> list[TradeRow]:
    """Merge per-window results into one ordered, deduplicated list.

    Args:
        batches: Rows per window, in any order.

    Returns:
        Rows ascending by time, unique by ``TradeRow.key``.
    """
    combined = [row for batch in batches for row in batch]
    combined.sort(key=lambda row: row.time)

    seen: set[tuple[str, str, datetime]] = set()
    merged: list[TradeRow] = []
    for row in combined:
        if row.key in seen:
            continue
        seen.add(row.key)
        merged.append(row)
    return merged
