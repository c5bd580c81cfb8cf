"""
Handler Registry - Maps tool names to handler functions

Every handler has the signature handle_<tool_name>(tools, arguments) and
returns a ToolResult; transports decide how to serialize it.

Usage:
    from handlers import get_handler

    handler = get_handler(tool_name)
    if handler:
        result = await handler(tools, arguments)
"""

from typing import Awaitable, Callable, Optional

from . import core_handlers
from .core_handlers import render_result


HANDLER_REGISTRY = {
    "pg_query": core_handlers.handle_pg_query,
    "pg_schema_info": core_handlers.handle_pg_schema_info,
}


def get_handler(tool_name: str) -> Optional[Callable[..., Awaitable]]:
    """Get the handler function for a tool, or None if unknown"""
    return HANDLER_REGISTRY.get(tool_name)


def list_all_handlers() -> list[str]:
    """Get list of all registered tool names"""
    return list(HANDLER_REGISTRY.keys())


__all__ = [
    'HANDLER_REGISTRY',
    'get_handler',
    'list_all_handlers',
    'render_result',
]
