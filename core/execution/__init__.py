"""Simulated trade recording."""

from core.execution.journal import TradeJournal
from core.execution.ledger import TradeIntent, TradeLedger, validate_trade

__all__ = [
    "TradeIntent",
    "TradeJournal",
    "TradeLedger",
    "validate_trade",
]
