"""Append-only JSON Lines journal of trade records.

One record per line, decimals as strings, timestamps as ISO-8601 UTC. The file
is flushed after every append but never fsynced; it is a convenience for
restarting the demo, not a durability guarantee.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Union

from core.types import TradeRecord

logger = logging.getLogger(__name__)


def record_to_json(record: TradeRecord) -> str:
    return json.dumps(
        {
            "id": record.id,
            "symbol": record.symbol,
            "side": record.side,
            "quantity": str(record.quantity),
            "price": str(record.price),
            "value_usd": str(record.value_usd),
            "timestamp": record.timestamp.isoformat(),
        },
        separators=(",", ":"),
    )


def record_from_json(line: str) -> TradeRecord:
    data = json.loads(line)
    return TradeRecord(
        id=int(data["id"]),
        symbol=str(data["symbol"]),
        side=data["side"],
        quantity=Decimal(data["quantity"]),
        price=Decimal(data["price"]),
        value_usd=Decimal(data["value_usd"]),
        timestamp=datetime.fromisoformat(data["timestamp"]),
    )


class TradeJournal:
    """File-backed trade log."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def append(self, record: TradeRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(record_to_json(record) + "\n")
            fh.flush()

    def read(self) -> Iterator[TradeRecord]:
        """Yield journaled records in file order.

        Raises:
            ValueError: If a line cannot be parsed (includes the line number)
        """
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield record_from_json(line)
                except (ValueError, KeyError, TypeError) as exc:
                    raise ValueError(f"{self.path}:{lineno}: malformed trade record: {exc}") from exc
