"""
Query Executor

Runs one pg_query call: empty check, safe-mode gate, execution, row
normalization, envelope. Failures end as a ToolResult failure; nothing is
retried.
"""

import asyncio
import logging
from typing import Any, Optional

import asyncpg

from models import (
    ColumnDescriptor, DecodingError, ExecutionError, MissingParameterError,
    QueryRequest, ResultEnvelope, SafetyDeniedError, ToolError, ToolResult,
)
from query.normalizer import normalize_row
from query.safety import classify
from utils.error_messages import enhance_error_message

logger = logging.getLogger(__name__)

# Errors that come from the server or the connection rather than from
# decoding what the server sent back
SERVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError)
MULTI_STATEMENT_MESSAGE = "cannot insert multiple commands into a prepared statement"


def is_multi_statement_error(error: BaseException) -> bool:
    """Parse refuses a string holding more than one statement"""
    return MULTI_STATEMENT_MESSAGE in str(error)


def describe_columns(statement) -> list[ColumnDescriptor]:
    """Column descriptors of a prepared statement, type tags upper-cased"""
    return [
        ColumnDescriptor(name=attr.name, declared_type=attr.type.name.upper())
        for attr in statement.get_attributes()
    ]


class QueryExecutor:
    """
    Executes queries on a pool it does not own.

    Args:
        db: DatabaseConnection (or anything with an async acquire() context manager)
        timeout: Per-call timeout in seconds, None to rely on the pool's command_timeout
    """

    def __init__(self, db, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    async def execute(self, request: QueryRequest) -> ToolResult:
        """Run the request and return the envelope or a structured error"""
        try:
            envelope = await self._execute(request)
        except ToolError as e:
            return ToolResult.from_error(e)
        return ToolResult.success(envelope.to_payload())

    async def _execute(self, request: QueryRequest) -> ResultEnvelope:
        if request.is_blank:
            raise MissingParameterError("query parameter required")

        if not request.allow_unsafe:
            verdict = classify(request.text)
            if not verdict.allowed:
                logger.warning(f"🚫 Blocked query (matched '{verdict.token}'): {request.text[:100]}")
                raise SafetyDeniedError(verdict.reason)
        else:
            logger.info("⚠️  Safe mode bypassed for this query")

        logger.info(f"📊 Executing query: {request.text[:100]}")

        try:
            async with self.db.acquire() as conn:
                columns, rows = await self._run(conn, request.text)
        except ToolError:
            raise
        except Exception as e:
            # Pool/connection failure before or around the statement
            raise ExecutionError(f"Query execution failed: {enhance_error_message(e)}") from e

        if not rows:
            return ResultEnvelope.empty([c.name for c in columns])

        return ResultEnvelope(columns=[c.name for c in columns], rows=rows, count=len(rows))

    async def _run(self, conn, text: str) -> tuple[list[ColumnDescriptor], list[dict[str, Any]]]:
        try:
            statement = await conn.prepare(text, timeout=self.timeout)
        except asyncpg.exceptions.PostgresSyntaxError as e:
            if not is_multi_statement_error(e):
                logger.error(f"Error executing query: {e}")
                raise ExecutionError(f"Query execution failed: {enhance_error_message(e)}") from e
            return await self._run_script(conn, text)
        except Exception as e:
            logger.error(f"Error executing query: {e}")
            raise ExecutionError(f"Query execution failed: {enhance_error_message(e)}") from e

        try:
            columns = describe_columns(statement)
        except Exception as e:
            raise DecodingError(f"Failed to get column names: {e}") from e

        try:
            records = await statement.fetch(timeout=self.timeout)
        except SERVER_ERRORS as e:
            logger.error(f"Error iterating rows: {e}")
            raise ExecutionError(f"Error iterating rows: {enhance_error_message(e)}") from e
        except Exception as e:
            logger.error(f"Error scanning row: {e}")
            raise DecodingError(f"Error scanning row: {e}") from e

        rows = []
        for record in records:
            if len(record) != len(columns):
                raise DecodingError(
                    f"Error scanning row: expected {len(columns)} values, got {len(record)}"
                )
            rows.append(normalize_row(columns, record))

        logger.info(f"Query returned {len(rows)} rows")
        return columns, rows

    async def _run_script(self, conn, text: str) -> tuple[list[ColumnDescriptor], list[dict[str, Any]]]:
        """
        Run several statements through the simple query protocol.
        The server sends back no rows for a script, only a status.
        """
        logger.info("📜 Running multi-statement query without a prepared statement")
        try:
            status = await conn.execute(text, timeout=self.timeout)
        except Exception as e:
            logger.error(f"Error executing query: {e}")
            raise ExecutionError(f"Query execution failed: {enhance_error_message(e)}") from e

        logger.info(f"Script finished: {status}")
        return [], []
