"""
Schema Aggregator

Folds the flat information_schema row stream into one entry per table.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

from models import ColumnInfo, DecodingError, ExecutionError, SchemaEnvelope, TableDescriptor, ToolError, ToolResult
from utils.error_messages import enhance_error_message

logger = logging.getLogger(__name__)

SCHEMA_QUERY = """
    SELECT
        t.table_name,
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        tc.constraint_type
    FROM
        information_schema.tables t
    JOIN
        information_schema.columns c
        ON t.table_name = c.table_name AND t.table_schema = c.table_schema
    LEFT JOIN
        information_schema.key_column_usage kcu
        ON c.column_name = kcu.column_name
        AND c.table_name = kcu.table_name
        AND c.table_schema = kcu.table_schema
    LEFT JOIN
        information_schema.table_constraints tc
        ON kcu.constraint_name = tc.constraint_name
        AND kcu.constraint_schema = tc.constraint_schema
    WHERE
        t.table_schema = 'public'
"""

TABLE_FILTER = " AND t.table_name = $1"
ORDER_CLAUSE = " ORDER BY t.table_name, c.ordinal_position"


def build_schema_query(table: Optional[str] = None) -> tuple[str, list[Any]]:
    """Catalog query plus bind parameters; the table name is never spliced into the SQL"""
    if table:
        return SCHEMA_QUERY + TABLE_FILTER + ORDER_CLAUSE, [table]
    return SCHEMA_QUERY + ORDER_CLAUSE, []


def column_info_from_row(row: Mapping[str, Any]) -> ColumnInfo:
    return ColumnInfo(
        column_name=row['column_name'] or '',
        data_type=row['data_type'] or '',
        is_nullable=row['is_nullable'] == 'YES',
        default_value=row['column_default'],
        constraint=row['constraint_type'],
    )


def aggregate_schema_rows(rows: Iterable[Mapping[str, Any]]) -> list[TableDescriptor]:
    """
    Group catalog rows by table, keeping column order within each table.
    Tables come back sorted by name.

    A column under several constraints appears once per constraint.
    """
    grouped: dict[str, list[ColumnInfo]] = {}
    for row in rows:
        table_name = row['table_name'] or ''
        grouped.setdefault(table_name, []).append(column_info_from_row(row))

    return [
        TableDescriptor(table_name=name, columns=columns)
        for name, columns in sorted(grouped.items())
    ]


def empty_schema_message(table: Optional[str]) -> str:
    if table:
        return f"Table '{table}' not found."
    return "No tables found in the database."


class SchemaAggregator:
    """
    Describes tables in the public schema.

    Args:
        db: DatabaseConnection (or anything with an async acquire() context manager)
        timeout: Per-call timeout in seconds, None to rely on the pool's command_timeout
    """

    def __init__(self, db, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    async def describe(self, table: Optional[str] = None) -> ToolResult:
        try:
            envelope = await self._describe(table)
        except ToolError as e:
            return ToolResult.from_error(e)
        return ToolResult.success(envelope.to_payload())

    async def _describe(self, table: Optional[str]) -> SchemaEnvelope:
        query, params = build_schema_query(table)
        logger.info(f"📚 Reading schema{f' for table {table!r}' if table else ''}")

        try:
            async with self.db.acquire() as conn:
                rows = await conn.fetch(query, *params, timeout=self.timeout)
        except Exception as e:
            logger.error(f"Failed to get schema information: {e}")
            raise ExecutionError(f"Failed to get schema information: {enhance_error_message(e)}") from e

        try:
            tables = aggregate_schema_rows(rows)
        except (KeyError, TypeError, ValueError) as e:
            raise DecodingError(f"Error scanning row: {e}") from e

        if not tables:
            return SchemaEnvelope(message=empty_schema_message(table))

        return SchemaEnvelope(tables=tables)
