"""
JSON-RPC 2.0 helpers for the Streamable HTTP transport.

Handles:
- Request/notification validation
- Error code constants
- Response and tool-result formatting
"""

from typing import Any, Optional


SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")
DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class JsonRpcError:
    """Standard JSON-RPC 2.0 error codes"""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


def is_valid_jsonrpc(data: Any) -> bool:
    """True if data is a JSON-RPC 2.0 request or notification"""
    if not isinstance(data, dict):
        return False
    if data.get("jsonrpc") != "2.0":
        return False
    return isinstance(data.get("method"), str)


def is_notification(data: dict) -> bool:
    """Notifications carry no "id" and get no response"""
    return "id" not in data


def create_success_response(request_id: Any, result: Any) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "result": result
    }


def create_error_response(request_id: Any, code: int, message: str, data: Any = None) -> dict:
    error = {
        "code": code,
        "message": message
    }
    if data is not None:
        error["data"] = data

    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": error
    }


def create_tool_result(texts: list[str], is_error: bool = False) -> dict:
    """
    Body of a tools/call result.

    Tool failures are reported here with isError, not as JSON-RPC errors,
    so the model can read the message.
    """
    return {
        "content": [{"type": "text", "text": text} for text in texts],
        "isError": is_error,
    }


def validate_mcp_protocol_version(version: Optional[str]) -> bool:
    """Check the MCP-Protocol-Version header against the versions we speak"""
    return bool(version) and version in SUPPORTED_PROTOCOL_VERSIONS
