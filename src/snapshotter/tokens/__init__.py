"""Token resolution and strategy composition parsing."""

from snapshotter.tokens.composition import (
    TokenListPayload,
    UnrecognizedPayload,
    decode_payload,
    parse_tokens,
)
from snapshotter.tokens.registry import CURATED_TOKENS, CuratedToken, build_symbol_table
from snapshotter.tokens.resolver import TokenResolver

__all__ = [
    "CURATED_TOKENS",
    "CuratedToken",
    "TokenListPayload",
    "TokenResolver",
    "UnrecognizedPayload",
    "build_symbol_table",
    "decode_payload",
    "parse_tokens",
]
