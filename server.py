"""
MCP Server Entry Point for PostgreSQL
Run with: python server.py [--connection-string DSN]
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional
from mcp.server.models import InitializationOptions
from mcp.server import NotificationOptions, Server
from mcp.server.stdio import stdio_server
from mcp import types

from database import DatabaseConnection
from config import DatabaseConfig
from container import ToolContainer
from handlers import get_handler, render_result
from utils.error_messages import enhance_error_message

__version__ = "1.0.0"
SERVER_NAME = "postgres-mcp-server"

# Logs go to stderr; stdout carries the MCP stream
logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO').upper())
logger = logging.getLogger(__name__)

# Initialize server
app = Server(SERVER_NAME)
db: Optional[DatabaseConnection] = None
container: Optional[ToolContainer] = None


@app.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available MCP tools: pg_query and pg_schema_info"""
    from tools import get_core_tool_catalog
    return get_core_tool_catalog()


def error_result(text: str) -> types.CallToolResult:
    """Failed call, flagged so the client does not read it as data"""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=True
    )


# Arguments are coerced by the handlers ("unsafe" may arrive as a string)
@app.call_tool(validate_input=False)
async def handle_call_tool(
    name: str, arguments: dict[str, Any]
) -> list[types.TextContent] | types.CallToolResult:
    """
    Handle tool execution.

    Each call runs in its own task; the handlers only touch the pool for the
    duration of the call, so no locking is needed here. Expected failures
    come back from the handler as structured errors; anything else is caught
    here so a bad call never takes the server down.
    """
    try:
        handler = get_handler(name)

        if not handler:
            return error_result(f"Unknown tool: {name}")

        if container is None:
            raise RuntimeError("Server not initialized: no database connection")

        result = await handler(container, arguments or {})
        if not result.ok:
            logger.info(f"Tool {name} failed ({result.error_kind.value}): {result.error_message}")
            return types.CallToolResult(content=render_result(result), isError=True)
        return render_result(result)

    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return error_result(f"Error executing {name}: {enhance_error_message(e)}")


def get_executable_path() -> str:
    """Full path of the running script, or just its name if it cannot be resolved"""
    script = Path(sys.argv[0])
    try:
        return str(script.resolve(strict=True))
    except (OSError, RuntimeError):
        return script.name


def build_client_config(connection_string: Optional[str] = None) -> dict[str, Any]:
    """MCP client configuration snippet printed by --json"""
    config: dict[str, Any] = {
        "type": "stdio",
        "command": get_executable_path(),
    }
    if connection_string:
        config["args"] = ["--connection-string", connection_string]
    return config


async def main(connection_string: Optional[str] = None):
    """Main entry point for MCP server"""
    global db, container

    try:
        config = DatabaseConfig.from_environment(connection_string)

        db = DatabaseConnection(config)
        await db.connect()

        container = ToolContainer(db)

        logger.info("PostgreSQL MCP Server starting...")
        logger.info(f"Connected to database: {config.masked_dsn}")

        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=app.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={}
                    )
                )
            )
    except Exception as e:
        logger.error(f"Failed to start MCP server: {e}", exc_info=True)
        raise
    finally:
        if db:
            await db.disconnect()
            logger.info("Database connection closed")
        container = None


def cli_entry():
    """Entry point for console script - wraps async main()"""
    import argparse

    parser = argparse.ArgumentParser(description="PostgreSQL MCP Server")
    parser.add_argument('--version', '-v', action='store_true', help='Show version')
    parser.add_argument('--json', action='store_true', help='Print MCP client configuration as JSON')
    parser.add_argument('--connection-string', type=str, default='',
                        help='PostgreSQL connection string (overrides POSTGRES_CONNECTION_STRING)')
    parser.add_argument('--http', action='store_true', help='Run in HTTP mode (Streamable HTTP transport)')
    parser.add_argument('--port', type=int, default=3333, help='Port for HTTP mode (default: 3333)')
    parser.add_argument('--host', type=str, default='127.0.0.1', help='Host for HTTP mode (default: 127.0.0.1)')

    args = parser.parse_args()
    connection_string = args.connection_string or None

    if args.version:
        print(f"{SERVER_NAME} version {__version__}")
        sys.exit(0)

    if args.json:
        print(json.dumps(build_client_config(connection_string)))
        sys.exit(0)

    if args.http:
        logger.info(f"Starting in HTTP mode (Streamable HTTP) on {args.host}:{args.port}/mcp")
        from transport.http import run_http_server
        run_http_server(host=args.host, port=args.port, connection_string=connection_string)
    else:
        logger.info("Starting in stdio mode...")
        asyncio.run(main(connection_string))


if __name__ == "__main__":
    cli_entry()
