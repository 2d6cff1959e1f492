"""Token descriptor -> canonical asset id (mint address) resolution."""

from collections.abc import Mapping
from typing import Any


class TokenResolver:
    """Maps a loosely-typed token descriptor to a mint address.

    Preference order: an explicit ``mint`` field that looks like an address,
    then an ``address`` field under the same test, then the uppercased
    ``symbol`` looked up in the curated symbol table. Returns None when none
    resolve; callers treat None as "unpriceable", not as an error.

    Args:
        symbol_table: Uppercased symbol -> mint mapping (see build_symbol_table).
        min_address_length: A field counts as an address only when longer than this.
    """

    def __init__(
        self, symbol_table: Mapping[str, str], min_address_length: int = 20
    ) -> None:
        self._symbol_table = symbol_table
        self._min_address_length = min_address_length

    def resolve(self, entry: Mapping[str, Any]) -> str | None:
        for key in ("mint", "address"):
            value = entry.get(key)
            if self._looks_like_address(value):
                return value

        symbol = entry.get("symbol")
        if isinstance(symbol, str) and symbol:
            return self._symbol_table.get(symbol.upper())
        return None

    def _looks_like_address(self, value: Any) -> bool:
        return isinstance(value, str) and len(value) > self._min_address_length
