"""JSON-RPC client for the Ronin archive node."""

import logging
from typing import Any

import httpx

from treasurywatch.exceptions import AuthenticationError, ExternalServiceError
from treasurywatch.infra.http.bounded_client import BoundedClient

logger = logging.getLogger(__name__)


def to_hex(number: int) -> str:
    if number < 0:
        raise ValueError(f"Block number must be non-negative, got {number}")
    return hex(number)


class NodeRPCClient:
    """Minimal EVM JSON-RPC client: block height, blocks, logs, transactions."""

    def __init__(self, rpc_url: str, api_key: str, http_client: BoundedClient) -> None:
        self._rpc_url = rpc_url
        self._api_key = api_key
        self._http = http_client
        self._request_id = 0

    async def _call(self, method: str, params: list) -> Any:
        """Execute a JSON-RPC call and return the result field."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        try:
            resp = await self._http.post(self._rpc_url, json=payload, params={"apikey": self._api_key})
        except httpx.TransportError as e:
            raise ExternalServiceError(f"Node unreachable ({method}): {e}") from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(f"Node rejected credential ({method}): HTTP {resp.status_code}")
        if resp.status_code == 429 or resp.status_code >= 500:
            raise ExternalServiceError(f"Node returned HTTP {resp.status_code} ({method})")
        if resp.status_code >= 400:
            raise ExternalServiceError(f"Node request failed with HTTP {resp.status_code} ({method})")

        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalServiceError(f"Node returned invalid JSON ({method})") from e

        if not isinstance(data, dict):
            raise ExternalServiceError(f"Node returned a non-object JSON body ({method})")

        if "error" in data:
            error = data["error"]
            msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ExternalServiceError(f"Node RPC error ({method}): {msg}")

        return data.get("result")

    async def block_number(self) -> int:
        """Current chain height."""
        result = await self._call("eth_blockNumber", [])
        try:
            return int(result, 16)
        except (TypeError, ValueError) as e:
            raise ExternalServiceError(f"Node returned an invalid block number: {result!r}") from e

    async def get_block(self, number: int) -> dict | None:
        """Block header without transaction bodies, or None if the node has no such block."""
        return await self._call("eth_getBlockByNumber", [to_hex(number), False])

    async def get_block_timestamp(self, number: int) -> int | None:
        block = await self.get_block(number)
        if not block or block.get("timestamp") is None:
            return None
        return int(block["timestamp"], 16)

    async def get_logs(self, from_block: int, to_block: int, topics: list[str | None]) -> list[dict]:
        params = [{
            "fromBlock": to_hex(from_block),
            "toBlock": to_hex(to_block),
            "topics": topics,
        }]
        result = await self._call("eth_getLogs", params)
        if result is None:
            return []
        return result

    async def get_transaction(self, tx_hash: str) -> dict | None:
        return await self._call("eth_getTransactionByHash", [tx_hash])
