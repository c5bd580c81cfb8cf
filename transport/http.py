"""
Streamable HTTP transport for MCP (Model Context Protocol).

- Single /mcp endpoint for all JSON-RPC communication
- POST /mcp: accepts JSON-RPC requests, responds with JSON
- /healthz: health check endpoint (separate from /mcp)

Tool calls go through the same handler registry as the stdio server.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, Response, Header
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.status import HTTP_202_ACCEPTED, HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR
import uvicorn

from database import DatabaseConnection
from config import DatabaseConfig
from container import ToolContainer
from handlers import get_handler
from query.normalizer import serialize_value
from utils.error_messages import enhance_error_message
from utils.jsonrpc import (
    DEFAULT_PROTOCOL_VERSION, is_valid_jsonrpc, is_notification,
    create_success_response, create_error_response, create_tool_result,
    validate_mcp_protocol_version, JsonRpcError
)

logger = logging.getLogger(__name__)

SERVER_INFO = {"name": "postgres-mcp-server", "version": "1.0.0"}

# Initialized at startup
db: Optional[DatabaseConnection] = None
container: Optional[ToolContainer] = None
_connection_string: Optional[str] = None


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await initialize_server()
    try:
        yield
    finally:
        await shutdown_server()


app = FastAPI(title="PostgreSQL MCP Server - Streamable HTTP", lifespan=lifespan)

# CORS so browser-based clients can send the OPTIONS preflight
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["MCP-Protocol-Version"],
)


def get_tools_list() -> list[dict[str, Any]]:
    """MCP tool definitions as plain dicts"""
    from tools import get_core_tool_catalog
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": tool.inputSchema
        }
        for tool in get_core_tool_catalog()
    ]


async def call_tool_handler(name: str, arguments: dict[str, Any]) -> dict:
    """Run a tool and build the tools/call result body"""
    handler = get_handler(name)
    if not handler:
        return create_tool_result([f"Unknown tool: {name}"], is_error=True)

    if container is None:
        raise RuntimeError("Server not initialized: no database connection")

    try:
        result = await handler(container, arguments or {})
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return create_tool_result([f"Error executing {name}: {enhance_error_message(e)}"], is_error=True)

    text = json.dumps(result.to_payload(), indent=2, default=serialize_value, allow_nan=False)
    return create_tool_result([text], is_error=not result.ok)


async def handle_mcp_request(request_data: dict) -> Optional[dict]:
    """
    Handle a single MCP JSON-RPC request.

    Returns the JSON-RPC response dict, or None for notifications.
    """
    method = request_data.get("method")
    params = request_data.get("params") or {}
    request_id = request_data.get("id")

    try:
        if method == "initialize":
            requested = params.get("protocolVersion")
            result = {
                "protocolVersion": requested if validate_mcp_protocol_version(requested) else DEFAULT_PROTOCOL_VERSION,
                "capabilities": {
                    "tools": {}
                },
                "serverInfo": SERVER_INFO
            }
            return create_success_response(request_id, result)

        elif method == "ping":
            return create_success_response(request_id, {})

        elif method == "tools/list":
            return create_success_response(request_id, {"tools": get_tools_list()})

        elif method == "tools/call":
            tool_name = params.get("name")
            tool_args = params.get("arguments") or {}

            if not tool_name:
                return create_error_response(
                    request_id, JsonRpcError.INVALID_PARAMS, "Missing tool name"
                )
            if not isinstance(tool_args, dict):
                return create_error_response(
                    request_id, JsonRpcError.INVALID_PARAMS, "Tool arguments must be an object"
                )

            logger.info(f"[TOOL_CALL] {tool_name}")
            result = await call_tool_handler(tool_name, tool_args)
            return create_success_response(request_id, result)

        elif method == "notifications/initialized":
            return None

        else:
            return create_error_response(
                request_id, JsonRpcError.METHOD_NOT_FOUND, f"Unknown method: {method}"
            )

    except Exception as e:
        logger.error(f"Error handling method {method}: {e}", exc_info=True)
        return create_error_response(
            request_id, JsonRpcError.INTERNAL_ERROR, str(e)
        )


@app.post("/mcp")
async def mcp_post_endpoint(
    request: Request,
    mcp_protocol_version: Optional[str] = Header(None, alias="MCP-Protocol-Version")
):
    """
    POST /mcp - Main MCP endpoint for JSON-RPC requests.

    Returns:
    - 202 Accepted for notifications (no body)
    - 200 OK with the JSON-RPC response otherwise
    - 400 for bad JSON, bad JSON-RPC or an unsupported protocol version
    """
    if mcp_protocol_version and not validate_mcp_protocol_version(mcp_protocol_version):
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=create_error_response(
                None, JsonRpcError.INVALID_REQUEST,
                f"Unsupported MCP protocol version: {mcp_protocol_version}"
            )
        )

    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=create_error_response(
                None, JsonRpcError.PARSE_ERROR, f"Invalid JSON: {str(e)}"
            )
        )

    if not is_valid_jsonrpc(body):
        request_id = body.get("id") if isinstance(body, dict) else None
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=create_error_response(
                request_id, JsonRpcError.INVALID_REQUEST, "Invalid JSON-RPC request"
            )
        )

    if is_notification(body):
        await handle_mcp_request(body)
        return Response(status_code=HTTP_202_ACCEPTED)

    response = await handle_mcp_request(body)
    if response is None:
        return Response(status_code=HTTP_202_ACCEPTED)

    return JSONResponse(content=response)


@app.get("/healthz")
async def health_check():
    """Health check endpoint (separate from /mcp)"""
    if db is None or db.pool is None:
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "unhealthy", "error": "Database not initialized"}
        )

    if not await db.check_connection():
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "unhealthy", "error": "Database did not answer"}
        )

    return JSONResponse(content={
        "status": "healthy",
        "database": "connected",
        "pool": await db.get_pool_stats()
    })


async def initialize_server():
    """Connect the pool and build the tool container"""
    global db, container

    config = DatabaseConfig.from_environment(_connection_string)
    db = DatabaseConnection(config)
    await db.connect()
    container = ToolContainer(db)

    logger.info(f"Connected to database: {config.masked_dsn}")


async def shutdown_server():
    """Cleanup on shutdown"""
    global db, container
    if db:
        await db.disconnect()
        logger.info("Database connection closed")
    db = None
    container = None


def run_http_server(host: str = "127.0.0.1", port: int = 3333, connection_string: Optional[str] = None):
    """
    Run the MCP server with Streamable HTTP transport.

    Args:
        host: Host to bind to
        port: Port to listen on
        connection_string: Explicit DSN, wins over POSTGRES_CONNECTION_STRING
    """
    global _connection_string
    _connection_string = connection_string
    logger.info(f"PostgreSQL MCP Server (HTTP) starting on http://{host}:{port}/mcp")
    uvicorn.run(app, host=host, port=port, log_level="info")
