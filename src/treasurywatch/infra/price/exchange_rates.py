"""USD quotes for the treasury tokens from the Sky Mavis GraphQL gateway."""

import logging

import httpx

from treasurywatch.domain.models import ExchangeRateMap
from treasurywatch.exceptions import ExchangeRateError
from treasurywatch.infra.concurrency import run_all
from treasurywatch.infra.http.bounded_client import BoundedClient

logger = logging.getLogger(__name__)

BASE_URL = "https://api-gateway.skymavis.com/graphql/marketplace"

# Field names as the quote service spells them; "eth" is quoted for wrapped ether
QUOTE_TOKENS: tuple[str, ...] = ("eth", "axs", "slp")

# Quote-service name → registry symbol (lowercase)
SYMBOL_ALIASES: dict[str, str] = {"eth": "weth"}


def normalize_rates(rates: dict[str, float]) -> ExchangeRateMap:
    """Key rates by lowercase registry symbol (the service says ``eth`` for WETH)."""
    return {SYMBOL_ALIASES.get(k.lower(), k.lower()): v for k, v in rates.items()}


class ExchangeRateClient:
    def __init__(self, http_client: BoundedClient, base_url: str = BASE_URL) -> None:
        self._http = http_client
        self._base_url = base_url

    async def fetch_rates(self, api_key: str) -> ExchangeRateMap:
        """Current USD price for every treasury token. Any failed query fails the whole call."""
        if not api_key:
            raise ExchangeRateError("API key is required to fetch exchange rates")

        quotes = await run_all(self._fetch_one(token, api_key) for token in QUOTE_TOKENS)
        merged: dict[str, float] = {}
        for quote in quotes:
            merged.update(quote)
        rates = normalize_rates(merged)
        logger.info("Fetched exchange rates: %s", rates)
        return rates

    async def _fetch_one(self, token: str, api_key: str) -> dict[str, float]:
        query = f"{{ exchangeRate {{ {token} {{ usd }} }} }}"
        try:
            resp = await self._http.post(
                self._base_url,
                json={"query": query},
                headers={"X-API-Key": api_key, "Content-Type": "application/json"},
            )
        except httpx.TransportError as e:
            raise ExchangeRateError(f"Quote service unreachable for {token}: {e}") from e

        if resp.status_code != 200:
            raise ExchangeRateError(f"Quote service returned HTTP {resp.status_code} for {token}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ExchangeRateError(f"Quote service returned invalid JSON for {token}") from e

        if not isinstance(data, dict):
            raise ExchangeRateError(f"Quote service returned a non-object JSON body for {token}")

        if data.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in data["errors"])
            raise ExchangeRateError(f"Quote query for {token} failed: {messages}")

        try:
            usd = (data["data"]["exchangeRate"][token] or {})["usd"]
            return {token: float(usd)}
        except (KeyError, TypeError, ValueError) as e:
            raise ExchangeRateError(f"No USD quote for {token} in response") from e
