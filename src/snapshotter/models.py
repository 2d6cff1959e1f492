"""Shared data models for the strategy snapshot pipeline.

Prices are floats: index prices are weighted sums of provider quotes that
arrive as decimal strings of arbitrary precision, and are stored as REAL.
"""

import time
from dataclasses import dataclass, field
from enum import Enum

SOURCE_NONE = "none"  # resolved asset, no provider returned a price
SOURCE_NO_MINT = "no_mint"  # symbol could not be resolved to an asset id


class Confidence(str, Enum):
    """How completely a snapshot's tokens were priced."""

    OK = "OK"
    PARTIAL = "PARTIAL"
    FAIL = "FAIL"


@dataclass
class StrategyRow:
    """A strategy as read from the store. Never written by this service."""

    id: str
    composition: str | None = None
    config: str | None = None


@dataclass
class TokenEntry:
    """One weighted token of a strategy's composition."""

    symbol: str  # uppercased
    weight: float  # arbitrary unit, normalized by the snapshot builder
    asset_id: str | None = None  # resolved mint address


@dataclass(frozen=True)
class PriceQuote:
    """A single positive price quote returned by a provider."""

    price_usd: float
    liquidity_usd: float = 0.0


@dataclass
class PriceResult:
    """Best-effort price for one asset, tagged with the provider that supplied it.

    A price of 0.0 means unknown; providers never report zero quotes.
    """

    price_usd: float = 0.0
    source: str = SOURCE_NONE

    @property
    def has_price(self) -> bool:
        return self.price_usd > 0


@dataclass
class SnapshotRecord:
    """Index price of one strategy for one time bucket.

    One row per (strategy_id, ts_bucket_utc); re-running a bucket replaces it.
    """

    strategy_id: str
    ts_bucket_utc: int
    index_price: float
    prices: dict[str, float]
    weights: dict[str, float]
    sources: dict[str, str]
    confidence: Confidence
    metadata: dict | None = None
    created_at: int = field(default_factory=lambda: int(time.time()))


@dataclass
class BaselineRecord:
    """First-ever snapshot value of a strategy. Written once, never updated."""

    strategy_id: str
    ts_bucket_utc: int
    baseline_price: float
    baseline_confidence: Confidence
    created_at: int = field(default_factory=lambda: int(time.time()))

    @classmethod
    def from_snapshot(cls, snapshot: SnapshotRecord) -> "BaselineRecord":
        """Baseline candidate for a snapshot, whatever its confidence."""
        return cls(
            strategy_id=snapshot.strategy_id,
            ts_bucket_utc=snapshot.ts_bucket_utc,
            baseline_price=snapshot.index_price,
            baseline_confidence=snapshot.confidence,
            created_at=snapshot.created_at,
        )


@dataclass
class PersistResult:
    """Outcome of one batched persistence phase."""

    statements: int
    batches: int
    failed_batches: list[int] = field(default_factory=list)


@dataclass
class RunSummary:
    """Diagnostics for one pipeline run."""

    ts_bucket_utc: int
    status: str = "ok"  # ok | no_strategies | store_unavailable | persist_failed
    strategies: int = 0
    assets: int = 0
    confidence_counts: dict[str, int] = field(default_factory=dict)
    statements: int = 0
    batches: int = 0
    failed_batches: list[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    finished_at: float = field(default_factory=time.time)
