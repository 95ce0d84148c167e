"""Signal fusion: price classification and explanations."""

from core.signals.fusion import SignalFusionEngine, to_positive_price

__all__ = [
    "SignalFusionEngine",
    "to_positive_price",
]
