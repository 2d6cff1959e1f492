"""Curated Solana token list and the symbol -> mint lookup built from it.

The table is built once at startup and injected into TokenResolver so that
resolution stays a pure function of its inputs.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class CuratedToken:
    """A token from the curated list."""

    symbol: str
    name: str
    address: str


CURATED_TOKENS: tuple[CuratedToken, ...] = (
    # Majors
    CuratedToken("SOL", "Wrapped SOL", "So11111111111111111111111111111111111111112"),
    CuratedToken("USDC", "USD Coin", "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"),
    CuratedToken("USDT", "USDT", "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"),
    CuratedToken("WBTC", "Wrapped Bitcoin", "3NZ9JMVBmGAqocyBIC2c7LQCJScmgsAZ6vQqTDzcqmJh"),
    CuratedToken("WETH", "Wrapped Ethereum", "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs"),
    # DeFi
    CuratedToken("JUP", "Jupiter", "JUPyiwrYJFskUPiHa7hkeR8VUtkOp66YWug2yPnTxk3"),
    CuratedToken("RAY", "Raydium", "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"),
    CuratedToken("ORCA", "Orca", "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE"),
    CuratedToken("PYTH", "Pyth Network", "HzwqbKZw8RnJC2SHW4Mg8BJyEZ56m47y59ccJeSDexi3"),
    CuratedToken("RENDER", "Render", "rndrizKT3MK1iimdxRdWabcF7Zg7AR5T4nud4EkHBof"),
    CuratedToken("HNT", "Helium", "hntyVP6YFm1Hg25TN9WGLqM12b8TQmcknKrdu1oxWux"),
    # Liquid staking
    CuratedToken("mSOL", "Marinade Staked SOL", "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So"),
    CuratedToken("jitoSOL", "Jito Staked SOL", "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn"),
    CuratedToken("bSOL", "BlazeStake Staked SOL", "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1"),
    # Memes
    CuratedToken("BONK", "Bonk", "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"),
    CuratedToken("WIF", "dogwifhat", "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"),
    CuratedToken("POPCAT", "Popcat", "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"),
)


def build_symbol_table(tokens: Iterable[CuratedToken] = CURATED_TOKENS) -> Mapping[str, str]:
    """Return a read-only uppercased symbol -> mint mapping.

    Later entries win when two tokens share a symbol.
    """
    return MappingProxyType({t.symbol.upper(): t.address for t in tokens})
