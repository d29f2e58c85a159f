"""Known token table for the treasury. Addresses are lowercase."""

from collections.abc import Mapping

from treasurywatch.domain.models import TokenInfo
from treasurywatch.exceptions import UnknownTokenError

KNOWN_TOKENS: dict[str, TokenInfo] = {
    "0xc99a6a985ed2cac1ef41640596c5a5f9f4e19ef5": TokenInfo(symbol="WETH", decimals=18),
    "0x97a9107c1793bc407d6f527b77e7fff4d812bece": TokenInfo(symbol="AXS", decimals=18),
    "0xa8754b9fa15fc18bb59458815510e40a12cd2014": TokenInfo(symbol="SLP", decimals=0),
}


class TokenRegistry:
    """Read-only mapping from token contract address to symbol/decimals."""

    def __init__(self, tokens: Mapping[str, TokenInfo] | None = None) -> None:
        source = KNOWN_TOKENS if tokens is None else tokens
        self._tokens = {addr.lower(): info for addr, info in source.items()}

    def lookup(self, address: str) -> TokenInfo:
        info = self._tokens.get(address.lower())
        if info is None:
            raise UnknownTokenError(address)
        return info

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._tokens

    @property
    def symbols(self) -> list[str]:
        return [info.symbol for info in self._tokens.values()]
