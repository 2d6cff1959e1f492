"""Abstract price provider interface.

Defines the contract for all upstream market-data sources. The
PriceAggregator depends only on this interface, so adding a provider is one
more entry in its ordered provider list.
"""

import math
from abc import ABC, abstractmethod

from snapshotter.models import PriceQuote


class PriceProvider(ABC):
    """Abstract base class for upstream price sources."""

    #: Source tag recorded on every price this provider supplies.
    name: str = ""

    #: Max asset ids per request. The aggregator chunks requests accordingly.
    batch_size: int = 30

    @abstractmethod
    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        """Fetch quotes for at most ``batch_size`` asset ids.

        Returns a partial map: ids the provider has no price for are simply
        absent. Quotes must carry a strictly positive price.

        Raises:
            ProviderError: on transport, non-2xx status or unexpected shape.
        """
        ...


def parse_price(value: object) -> float | None:
    """Parse a provider-reported number (often a decimal string).

    Returns None for missing, non-numeric, boolean and non-finite values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None
