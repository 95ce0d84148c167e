"""Environment-driven configuration.

All settings are read from environment variables with safe defaults; nothing
here performs I/O beyond reading `os.environ`.

Environment:
    SIGNAL_LOW_THRESHOLD       - price below which BUY is recommended (default 50000)
    SIGNAL_HIGH_THRESHOLD      - price above which SELL is recommended (default 70000)
    FLARE_RPC_URL              - Flare JSON-RPC endpoint (default Coston2)
    FTSO_V2_ADDRESS            - FTSOv2 contract address
    FTSO_TIMEOUT_SECONDS       - on-chain feed timeout (default 3)
    COINGECKO_BASE_URL         - CoinGecko API base URL
    COINGECKO_TIMEOUT_SECONDS  - market-data feed timeout (default 1.5)
    DEMO_STARTING_BALANCE      - demo account balance in USD (default 100000)
    TRADE_JOURNAL_PATH         - optional JSONL trade journal path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

COSTON2_RPC_URL = "https://coston2-api.flare.network/ext/C/rpc"
FTSO_V2_COSTON2_ADDRESS = "0x3d893C53D9e8056135C26C8c638B76C8b60Df726"
COINGECKO_API_BASE = "https://api.coingecko.com/api/v3"


def _env_decimal(env: Mapping[str, str], name: str, default: str) -> Decimal:
    raw = env.get(name, "").strip() or default
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if not value.is_finite():
        raise ValueError(f"{name} must be finite, got {raw!r}")
    return value


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class FusionConfig:
    """Thresholds for price classification and explanation rules."""

    low_threshold: Decimal = Decimal("50000")
    high_threshold: Decimal = Decimal("70000")
    whale_inflow_alert: int = 80
    fud_alert: int = 70

    def __post_init__(self) -> None:
        if self.low_threshold >= self.high_threshold:
            raise ValueError(
                f"low_threshold ({self.low_threshold}) must be below high_threshold ({self.high_threshold})"
            )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "FusionConfig":
        env = os.environ if env is None else env
        return cls(
            low_threshold=_env_decimal(env, "SIGNAL_LOW_THRESHOLD", "50000"),
            high_threshold=_env_decimal(env, "SIGNAL_HIGH_THRESHOLD", "70000"),
        )


@dataclass(frozen=True)
class FeedSettings:
    """Endpoints and timeouts for the two price feeds."""

    rpc_url: str = COSTON2_RPC_URL
    ftso_address: str = FTSO_V2_COSTON2_ADDRESS
    ftso_timeout_seconds: float = 3.0
    coingecko_base_url: str = COINGECKO_API_BASE
    coingecko_timeout_seconds: float = 1.5

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "FeedSettings":
        env = os.environ if env is None else env
        return cls(
            rpc_url=env.get("FLARE_RPC_URL", "").strip() or COSTON2_RPC_URL,
            ftso_address=env.get("FTSO_V2_ADDRESS", "").strip() or FTSO_V2_COSTON2_ADDRESS,
            ftso_timeout_seconds=_env_float(env, "FTSO_TIMEOUT_SECONDS", 3.0),
            coingecko_base_url=env.get("COINGECKO_BASE_URL", "").strip() or COINGECKO_API_BASE,
            coingecko_timeout_seconds=_env_float(env, "COINGECKO_TIMEOUT_SECONDS", 1.5),
        )


@dataclass(frozen=True)
class AppSettings:
    feeds: FeedSettings = field(default_factory=FeedSettings)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    starting_balance: Decimal = Decimal("100000")
    journal_path: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AppSettings":
        env = os.environ if env is None else env
        starting_balance = _env_decimal(env, "DEMO_STARTING_BALANCE", "100000")
        if starting_balance < 0:
            raise ValueError(f"DEMO_STARTING_BALANCE must not be negative, got {starting_balance}")
        return cls(
            feeds=FeedSettings.from_env(env),
            fusion=FusionConfig.from_env(env),
            starting_balance=starting_balance,
            journal_path=env.get("TRADE_JOURNAL_PATH", "").strip() or None,
        )
