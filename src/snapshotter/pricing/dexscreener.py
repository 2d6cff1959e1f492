"""DexScreener token-pairs price provider (primary).

One request returns every DEX pair involving the requested tokens. A token
commonly appears in many pairs; the pair with the deepest USD liquidity
decides its price.
"""

import httpx

from snapshotter.config import ProviderSettings
from snapshotter.exceptions import ProviderError
from snapshotter.models import PriceQuote
from snapshotter.pricing.provider import PriceProvider, parse_price


class DexScreenerProvider(PriceProvider):
    """Liquidity-weighted DEX prices from ``/latest/dex/tokens/{ids}``."""

    name = "dexscreener"

    def __init__(self, client: httpx.AsyncClient, settings: ProviderSettings) -> None:
        self._client = client
        self._base_url = settings.dexscreener_url.rstrip("/")
        self.batch_size = settings.dexscreener_batch_size

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        if not asset_ids:
            return {}

        url = f"{self._base_url}/{','.join(asset_ids)}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"transport error: {e!r}") from e
        if response.status_code != 200:
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.name, "response is not JSON") from e
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")

        pairs = data.get("pairs")
        if pairs is None:  # no pairs found for any requested token
            return {}
        if not isinstance(pairs, list):
            raise ProviderError(self.name, "unexpected 'pairs' shape")

        return _best_quotes(pairs)


def _best_quotes(pairs: list) -> dict[str, PriceQuote]:
    """Pick the highest-liquidity quote per base token. First seen wins ties."""
    best: dict[str, PriceQuote] = {}
    for pair in pairs:
        if not isinstance(pair, dict):
            continue
        base = pair.get("baseToken") or {}
        mint = base.get("address") if isinstance(base, dict) else None
        if not mint:
            continue

        price = parse_price(pair.get("priceUsd"))
        if price is None or price <= 0:
            continue
        liquidity = pair.get("liquidity") or {}
        liquidity_usd = parse_price(liquidity.get("usd")) if isinstance(liquidity, dict) else None

        quote = PriceQuote(price_usd=price, liquidity_usd=liquidity_usd or 0.0)
        existing = best.get(mint)
        if existing is None or quote.liquidity_usd > existing.liquidity_usd:
            best[mint] = quote
    return best
