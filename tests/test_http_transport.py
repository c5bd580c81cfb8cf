"""
Streamable HTTP transport tests
Exercises the JSON-RPC routing in transport/http.py without a socket.
"""

import json

import pytest

from container import ToolContainer
from tests.fakes import FakeDatabase, FakeStatement, column
from transport import http
from utils.jsonrpc import (
    JsonRpcError, is_valid_jsonrpc, is_notification, validate_mcp_protocol_version,
)


@pytest.fixture
def http_container(monkeypatch, select_one_db):
    container = ToolContainer(select_one_db, timeout=5)
    monkeypatch.setattr(http, "container", container)
    return container


def rpc(method, params=None, request_id=1):
    body = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        body["params"] = params
    return body


class TestJsonRpcHelpers:

    def test_validation(self):
        assert is_valid_jsonrpc(rpc("ping"))
        assert not is_valid_jsonrpc({"id": 1, "method": "ping"})
        assert not is_valid_jsonrpc(["not", "a", "dict"])

    def test_notification(self):
        assert is_notification({"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert not is_notification(rpc("ping"))

    def test_protocol_versions(self):
        assert validate_mcp_protocol_version("2024-11-05")
        assert not validate_mcp_protocol_version("1999-01-01")
        assert not validate_mcp_protocol_version(None)


class TestHandleMcpRequest:

    @pytest.mark.asyncio
    async def test_initialize(self):
        response = await http.handle_mcp_request(rpc("initialize", {"protocolVersion": "2025-03-26"}))

        assert response["result"]["protocolVersion"] == "2025-03-26"
        assert response["result"]["serverInfo"]["name"] == "postgres-mcp-server"

    @pytest.mark.asyncio
    async def test_tools_list(self):
        response = await http.handle_mcp_request(rpc("tools/list"))

        names = [t["name"] for t in response["result"]["tools"]]
        assert names == ["pg_query", "pg_schema_info"]

    @pytest.mark.asyncio
    async def test_tools_call_success(self, http_container):
        response = await http.handle_mcp_request(
            rpc("tools/call", {"name": "pg_query", "arguments": {"query": "SELECT 1 AS x"}})
        )

        result = response["result"]
        assert result["isError"] is False
        assert json.loads(result["content"][0]["text"])["rows"] == [{"x": 1}]

    @pytest.mark.asyncio
    async def test_tools_call_failure_sets_is_error(self, http_container):
        response = await http.handle_mcp_request(
            rpc("tools/call", {"name": "pg_query", "arguments": {"query": "drop table t"}})
        )

        result = response["result"]
        assert result["isError"] is True
        assert json.loads(result["content"][0]["text"])["code"] == "SAFETY_DENIED"

    @pytest.mark.asyncio
    async def test_tools_call_missing_name(self, http_container):
        response = await http.handle_mcp_request(rpc("tools/call", {"arguments": {}}))

        assert response["error"]["code"] == JsonRpcError.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_unknown_method(self):
        response = await http.handle_mcp_request(rpc("resources/list"))

        assert response["error"]["code"] == JsonRpcError.METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_initialized_notification_has_no_response(self):
        assert await http.handle_mcp_request({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    @pytest.mark.asyncio
    async def test_uninitialized_server_is_internal_error(self, monkeypatch):
        monkeypatch.setattr(http, "container", None)

        response = await http.handle_mcp_request(
            rpc("tools/call", {"name": "pg_query", "arguments": {"query": "SELECT 1"}})
        )

        assert response["error"]["code"] == JsonRpcError.INTERNAL_ERROR


class JsonBodyRequest:
    """Just enough of starlette's Request for mcp_post_endpoint"""

    def __init__(self, body):
        self.body = body

    async def json(self):
        return self.body


class TestMcpPostEndpoint:

    @pytest.mark.asyncio
    async def test_notification_handled_before_202(self, monkeypatch):
        handled = []

        async def record(request_data):
            handled.append(request_data["method"])
            return None

        monkeypatch.setattr(http, "handle_mcp_request", record)

        response = await http.mcp_post_endpoint(
            JsonBodyRequest({"jsonrpc": "2.0", "method": "notifications/initialized"}), None
        )

        assert response.status_code == 202
        assert handled == ["notifications/initialized"]

    @pytest.mark.asyncio
    async def test_unsupported_protocol_version(self):
        response = await http.mcp_post_endpoint(JsonBodyRequest(rpc("ping")), "1999-01-01")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_request_returns_json_rpc_response(self):
        response = await http.mcp_post_endpoint(JsonBodyRequest(rpc("ping", request_id=7)), None)

        assert response.status_code == 200
        assert json.loads(response.body) == {"jsonrpc": "2.0", "id": 7, "result": {}}


class TestNonFiniteValues:

    @pytest.mark.asyncio
    async def test_tool_text_is_strict_json(self, monkeypatch):
        statement = FakeStatement([column("v", "float4")], [(float("nan"),), (float("-inf"),)])
        monkeypatch.setattr(http, "container", ToolContainer(FakeDatabase(statement=statement)))

        result = await http.call_tool_handler("pg_query", {"query": "SELECT v FROM t"})

        def reject(constant):
            raise ValueError(f"non-JSON constant {constant}")

        payload = json.loads(result["content"][0]["text"], parse_constant=reject)
        assert payload["rows"] == [{"v": "NaN"}, {"v": "-Infinity"}]
        assert result["isError"] is False
