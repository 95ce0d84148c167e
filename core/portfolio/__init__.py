"""Portfolio views over the trade ledger."""

from .account import DEFAULT_STARTING_BALANCE, DemoAccount

__all__ = [
    "DEFAULT_STARTING_BALANCE",
    "DemoAccount",
]
