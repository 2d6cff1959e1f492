"""Jupiter Price API provider (fallback)."""

import httpx

from snapshotter.config import ProviderSettings
from snapshotter.exceptions import ProviderError
from snapshotter.models import PriceQuote
from snapshotter.pricing.provider import PriceProvider, parse_price


class JupiterProvider(PriceProvider):
    """Aggregated swap-route prices from ``/price/v2?ids=a,b``.

    Jupiter reports no liquidity, so every quote carries liquidity 0.
    """

    name = "jupiter"

    def __init__(self, client: httpx.AsyncClient, settings: ProviderSettings) -> None:
        self._client = client
        self._url = settings.jupiter_url
        self._api_key = settings.jupiter_api_key.get_secret_value()
        self.batch_size = settings.jupiter_batch_size

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        if not asset_ids:
            return {}

        headers = {"x-api-key": self._api_key} if self._api_key else None
        try:
            response = await self._client.get(
                self._url, params={"ids": ",".join(asset_ids)}, headers=headers
            )
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"transport error: {e!r}") from e
        if response.status_code != 200:
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(self.name, "response is not JSON") from e
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")

        quotes: dict[str, PriceQuote] = {}
        for mint in asset_ids:
            entry = data.get(mint)
            if not isinstance(entry, dict):
                continue
            price = parse_price(entry.get("price"))
            if price is not None and price > 0:
                quotes[mint] = PriceQuote(price_usd=price)
        return quotes
