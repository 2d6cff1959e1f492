"""Ordered multi-provider price aggregation with silent degradation.

Providers are tried in a fixed order. Each stage only asks for the ids that
are still unpriced after the previous stages, so a fallback provider never
overrides a price the primary supplied. Any provider failure (transport,
status, shape, timeout) costs only the chunk it happened on.
"""

import asyncio
from collections.abc import Iterable, Sequence

from snapshotter.logging import get_logger
from snapshotter.models import SOURCE_NONE, PriceQuote, PriceResult
from snapshotter.pricing.provider import PriceProvider

logger = get_logger(__name__)


class PriceAggregator:
    """Coordinates ordered price providers into one best-effort price map.

    Args:
        providers: Providers in fallback order, primary first.
        request_timeout: Upper bound in seconds for one provider chunk call.
            A call that hangs is treated like one that fails.
    """

    def __init__(
        self, providers: Sequence[PriceProvider], request_timeout: float = 10.0
    ) -> None:
        self._providers = list(providers)
        self._request_timeout = request_timeout

    async def fetch_prices(self, asset_ids: Iterable[str]) -> dict[str, PriceResult]:
        """Return a price for every requested id.

        Ids no provider could price map to ``PriceResult(0.0, "none")``.
        """
        ids = sorted(set(asset_ids))
        results = {asset_id: PriceResult(0.0, SOURCE_NONE) for asset_id in ids}

        for provider in self._providers:
            pending = [i for i in ids if not results[i].has_price]
            if not pending:
                break

            quotes = await self._run_stage(provider, pending)
            for asset_id, quote in quotes.items():
                results[asset_id] = PriceResult(quote.price_usd, provider.name)

            logger.info(
                "price_stage_complete",
                provider=provider.name,
                requested=len(pending),
                priced=len(quotes),
            )

        unpriced = sum(1 for r in results.values() if not r.has_price)
        if unpriced:
            logger.warning("prices_unresolved", unpriced=unpriced, total=len(ids))
        return results

    async def _run_stage(
        self, provider: PriceProvider, pending: list[str]
    ) -> dict[str, PriceQuote]:
        """Query one provider chunk by chunk and merge its quotes.

        Only quotes for ``pending`` ids with a positive price are kept. When
        several chunks quote the same id, higher liquidity wins and the
        first-seen quote wins ties.
        """
        wanted = set(pending)
        merged: dict[str, PriceQuote] = {}
        size = max(1, provider.batch_size)

        for chunk_index, start in enumerate(range(0, len(pending), size)):
            chunk = pending[start : start + size]
            try:
                quotes = await asyncio.wait_for(
                    provider.fetch(chunk), timeout=self._request_timeout
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # TimeoutError, ProviderError, or a provider bug: no data for this chunk
                logger.warning(
                    "price_provider_chunk_failed",
                    provider=provider.name,
                    chunk_index=chunk_index,
                    chunk_size=len(chunk),
                    error=repr(e),
                )
                continue

            for asset_id, quote in quotes.items():
                if asset_id not in wanted or quote.price_usd <= 0:
                    continue
                existing = merged.get(asset_id)
                if existing is None or quote.liquidity_usd > existing.liquidity_usd:
                    merged[asset_id] = quote

        return merged
