"""
Core Database Operation Handlers
Handles: pg_query, pg_schema_info

Handlers extract and coerce tool arguments, call into the container's
components and turn the ToolResult into MCP text content.
"""

import json
import logging
from typing import Any, Optional
from mcp import types

from models import ErrorKind, QueryRequest, ToolResult
from query.normalizer import serialize_value

logger = logging.getLogger(__name__)


def coerce_bool(value: Any) -> bool:
    """
    Read an optional boolean argument.
    Clients sometimes send "true"/"false" strings; anything else is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def optional_string(value: Any) -> Optional[str]:
    """Optional string argument; empty or non-string means absent"""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def render_result(result: ToolResult) -> list[types.TextContent]:
    """Serialize a ToolResult as one JSON text block"""
    return [types.TextContent(
        type="text",
        text=json.dumps(result.to_payload(), indent=2, default=serialize_value, allow_nan=False)
    )]


async def handle_pg_query(tools, arguments: dict[str, Any]) -> ToolResult:
    """
    Execute a query.

    Arguments:
        query: SQL text (required)
        unsafe: bypass the safe-mode keyword gate (optional, default false)
    """
    query = arguments.get("query")
    if not isinstance(query, str):
        return ToolResult.failure(ErrorKind.VALIDATION, "query parameter required")

    request = QueryRequest(text=query, allow_unsafe=coerce_bool(arguments.get("unsafe")))
    return await tools.executor.execute(request)


async def handle_pg_schema_info(tools, arguments: dict[str, Any]) -> ToolResult:
    """
    Describe tables in the public schema.

    Arguments:
        table: restrict to one table (optional)
    """
    return await tools.schema.describe(optional_string(arguments.get("table")))
