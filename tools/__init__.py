"""
MCP Tools Package
Tool registration metadata (name, description, input schema).
"""

from .core_tools import pg_query, pg_schema_info


def get_core_tool_catalog():
    """Get all MCP tools exposed by the server"""
    return [pg_query(), pg_schema_info()]


__all__ = [
    'get_core_tool_catalog',
    'pg_query',
    'pg_schema_info',
]
