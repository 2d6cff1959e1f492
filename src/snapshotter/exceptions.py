"""Custom exceptions for the strategy snapshotter.

Malformed composition payloads and unresolvable symbols are not errors:
they degrade a snapshot's confidence instead of raising.
"""


class SnapshotterError(Exception):
    """Base exception for all snapshotter errors."""


class ProviderError(SnapshotterError):
    """Raised by a price provider on transport, status or response-shape failure.

    Always recovered inside the PriceAggregator.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class StoreUnavailableError(SnapshotterError):
    """Raised when strategies cannot be loaded from the store at all."""


class PersistenceError(SnapshotterError):
    """Raised when one or more store batches were rejected.

    Batches committed before or after the failing ones stay committed.
    """

    def __init__(self, failed_batches: list[int], total_batches: int) -> None:
        super().__init__(
            f"{len(failed_batches)} of {total_batches} batches failed: {failed_batches}"
        )
        self.failed_batches = failed_batches
        self.total_batches = total_batches
