"""Trade ingestion - provider client and record normalization."""

from starship_realtime.ingestor.bitquery_client import BitqueryClient
from starship_realtime.ingestor.models import TradeRecord, TradeRow, TradeSide
from starship_realtime.ingestor.normalize import expand_trade, normalize_records

__all__ = [
    "BitqueryClient",
    "TradeRecord",
    "TradeRow",
    "TradeSide",
    "expand_trade",
    "normalize_records",
]
