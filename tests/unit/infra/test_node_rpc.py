"""Tests for NodeRPCClient — JSON-RPC communication with the archive node."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from treasurywatch.exceptions import AuthenticationError, ExternalServiceError
from treasurywatch.infra.blockchain.rpc_client import NodeRPCClient, to_hex


@pytest.fixture()
def mock_http():
    return AsyncMock()


@pytest.fixture()
def rpc(mock_http):
    return NodeRPCClient(rpc_url="http://node.test/rpc", api_key="secret", http_client=mock_http)


def _mock_response(data: dict, status_code: int = 200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


def _payload(mock_http) -> dict:
    return mock_http.post.call_args.kwargs["json"]


class TestToHex:
    def test_values(self):
        assert to_hex(0) == "0x0"
        assert to_hex(255) == "0xff"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_hex(-1)


class TestCalls:
    async def test_block_number(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": "0x1b4"})
        assert await rpc.block_number() == 436
        assert _payload(mock_http)["method"] == "eth_blockNumber"

    async def test_api_key_sent_as_query_param(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": "0x1"})
        await rpc.block_number()
        assert mock_http.post.call_args.kwargs["params"] == {"apikey": "secret"}
        assert mock_http.post.call_args.args[0] == "http://node.test/rpc"

    async def test_get_block_params(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": {"number": "0x64", "timestamp": "0x6553f100"}})
        ts = await rpc.get_block_timestamp(100)
        assert ts == 0x6553F100
        assert _payload(mock_http)["method"] == "eth_getBlockByNumber"
        assert _payload(mock_http)["params"] == ["0x64", False]

    async def test_missing_block_is_none(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": None})
        assert await rpc.get_block_timestamp(10**9) is None

    async def test_get_logs_params(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": [{"blockNumber": "0x10"}]})
        topics = ["0xddf2", None, "0x000abc"]
        logs = await rpc.get_logs(16, 2015, topics)
        assert logs == [{"blockNumber": "0x10"}]
        payload = _payload(mock_http)
        assert payload["method"] == "eth_getLogs"
        assert payload["params"] == [{"fromBlock": "0x10", "toBlock": "0x7df", "topics": topics}]

    async def test_get_logs_null_result(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": None})
        assert await rpc.get_logs(1, 2, []) == []

    async def test_get_transaction(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": {"hash": "0xaa", "input": "0xa9059cbb"}})
        tx = await rpc.get_transaction("0xaa")
        assert tx["input"] == "0xa9059cbb"
        assert _payload(mock_http)["method"] == "eth_getTransactionByHash"
        assert _payload(mock_http)["params"] == ["0xaa"]

    async def test_request_ids_increment(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"result": "0x1"})
        await rpc.block_number()
        first = _payload(mock_http)["id"]
        await rpc.block_number()
        assert _payload(mock_http)["id"] == first + 1


class TestErrors:
    async def test_rpc_error_object(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"error": {"code": -32005, "message": "limit exceeded"}})
        with pytest.raises(ExternalServiceError, match="limit exceeded"):
            await rpc.block_number()

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    async def test_transient_http_status(self, rpc, mock_http, status):
        mock_http.post.return_value = _mock_response({}, status_code=status)
        with pytest.raises(ExternalServiceError):
            await rpc.block_number()

    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failure_is_not_transient(self, rpc, mock_http, status):
        mock_http.post.return_value = _mock_response({}, status_code=status)
        with pytest.raises(AuthenticationError):
            await rpc.block_number()

    async def test_transport_error_wrapped(self, rpc, mock_http):
        mock_http.post.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(ExternalServiceError, match="unreachable"):
            await rpc.block_number()

    async def test_invalid_json(self, rpc, mock_http):
        resp = _mock_response({})
        resp.json.side_effect = ValueError("not json")
        mock_http.post.return_value = resp
        with pytest.raises(ExternalServiceError, match="invalid JSON"):
            await rpc.block_number()

    @pytest.mark.parametrize("body", [[1, 2], "oops", None])
    async def test_non_object_body(self, rpc, mock_http, body):
        mock_http.post.return_value = _mock_response(body)
        with pytest.raises(ExternalServiceError, match="non-object"):
            await rpc.get_transaction("0xaa")

    @pytest.mark.parametrize("result", [None, "latest"])
    async def test_unreadable_block_number(self, rpc, mock_http, result):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": result})
        with pytest.raises(ExternalServiceError, match="invalid block number"):
            await rpc.block_number()
