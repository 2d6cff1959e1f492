"""Upstream price providers and the ordered fallback aggregator."""

from snapshotter.pricing.aggregator import PriceAggregator
from snapshotter.pricing.dexscreener import DexScreenerProvider
from snapshotter.pricing.jupiter import JupiterProvider
from snapshotter.pricing.provider import PriceProvider, parse_price

__all__ = [
    "DexScreenerProvider",
    "JupiterProvider",
    "PriceAggregator",
    "PriceProvider",
    "parse_price",
]
