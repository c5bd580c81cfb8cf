"""
Query pipeline for the PostgreSQL MCP server

safety -> executor -> normalizer for pg_query, schema for pg_schema_info.
"""

from .safety import classify, SafetyVerdict, DENYLIST_TOKENS, DENIAL_REASON
from .normalizer import classify_value, normalize, normalize_row, serialize_value
from .executor import QueryExecutor
from .schema import SchemaAggregator, aggregate_schema_rows, build_schema_query

__all__ = [
    'classify',
    'SafetyVerdict',
    'DENYLIST_TOKENS',
    'DENIAL_REASON',
    'classify_value',
    'normalize',
    'normalize_row',
    'serialize_value',
    'QueryExecutor',
    'SchemaAggregator',
    'aggregate_schema_rows',
    'build_schema_query',
]
