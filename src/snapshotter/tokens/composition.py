"""Strategy composition parsing.

A strategy row carries two candidate JSON payloads: ``composition`` (current)
and ``config`` (legacy). Either may be absent, malformed, or hold an object
instead of a token list. Decoding is a tagged-variant step so the rest of the
pipeline only ever sees TokenEntry lists.
"""

import json
import math
from dataclasses import dataclass
from typing import Any

from snapshotter.logging import get_logger
from snapshotter.models import StrategyRow, TokenEntry
from snapshotter.tokens.resolver import TokenResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class TokenListPayload:
    """Payload that decoded to a JSON array."""

    items: list[Any]


@dataclass(frozen=True)
class UnrecognizedPayload:
    """Payload that is absent, not JSON, or not an array."""

    reason: str  # absent | invalid_json | not_a_list


DecodedPayload = TokenListPayload | UnrecognizedPayload


def decode_payload(raw: str | None) -> DecodedPayload:
    """Decode a raw payload column. Never raises."""
    if not raw:
        return UnrecognizedPayload("absent")
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return UnrecognizedPayload("invalid_json")
    if isinstance(parsed, list):
        return TokenListPayload(parsed)
    return UnrecognizedPayload("not_a_list")


def parse_tokens(row: StrategyRow, resolver: TokenResolver) -> list[TokenEntry]:
    """Extract a strategy's weighted token list.

    Tries ``composition`` first and falls back to ``config`` when the former
    does not decode to an array. Returns an empty list when neither does.
    """
    payload = decode_payload(row.composition)
    if not isinstance(payload, TokenListPayload):
        fallback = decode_payload(row.config)
        if not isinstance(fallback, TokenListPayload):
            logger.debug(
                "composition_unrecognized",
                strategy_id=row.id,
                composition=payload.reason,
                config=fallback.reason,
            )
            return []
        payload = fallback

    tokens = []
    for item in payload.items:
        weight = _token_weight(item)
        if weight is None:
            continue
        tokens.append(
            TokenEntry(
                symbol=item["symbol"].upper(),
                weight=weight,
                asset_id=resolver.resolve(item),
            )
        )
    return tokens


def _token_weight(item: Any) -> float | None:
    """Weight of a usable token item, or None if the item must be skipped.

    Usable items are objects with a non-empty string symbol and a finite,
    non-negative numeric weight that fits in a float.
    """
    if not isinstance(item, dict):
        return None
    symbol = item.get("symbol")
    weight = item.get("weight")
    if not isinstance(symbol, str) or not symbol:
        return None
    # bool is an int subclass; JSON true/false is not a weight
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return None
    try:
        value = float(weight)
    except OverflowError:  # JSON integers are unbounded
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value
