"""
Core MCP Tools
Query execution and schema exploration.
"""

from mcp import types


def pg_query() -> types.Tool:
    """
    Returns the SQL execution tool. Mutating statements are refused unless
    the caller sets unsafe=true.
    """
    return types.Tool(
        name="pg_query",
        description=(
            "Execute a PostgreSQL query. Returns the column names, the rows as objects keyed by "
            "column name, and the row count. Statements containing DROP, TRUNCATE, DELETE, UPDATE, "
            "ALTER, CREATE or INSERT are refused unless 'unsafe' is true. This check is a simple "
            "keyword scan, not a security boundary."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The SQL query to execute"
                },
                "unsafe": {
                    "type": "boolean",
                    "description": "Set to true to allow potentially unsafe queries (use with caution)"
                }
            },
            "required": ["query"]
        }
    )


def pg_schema_info() -> types.Tool:
    """
    Returns the schema tool listing tables of the public schema with their columns.
    """
    return types.Tool(
        name="pg_schema_info",
        description=(
            "Get schema information about database tables: column names, data types, nullability, "
            "defaults and key constraints. Use this to understand the database before writing queries."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "table": {
                    "type": "string",
                    "description": "Specific table to get schema for (leave empty for all tables)"
                }
            },
            "required": []
        }
    )
