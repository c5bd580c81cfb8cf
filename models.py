"""
Data models for query and schema tool calls
Using Pydantic for validation and serialization

All models are request-scoped: built for one tool call, serialized, discarded.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================

class ErrorKind(str, Enum):
    """Categories of tool failures reported to the caller"""
    VALIDATION = "VALIDATION_ERROR"      # Missing/empty required parameter
    SAFETY_DENIED = "SAFETY_DENIED"      # Blocked by the safe-mode heuristic
    EXECUTION = "EXECUTION_ERROR"        # SQL error, connectivity, permission, timeout
    DECODING = "DECODING_ERROR"          # Column introspection or row decoding failed


class ValueKind(str, Enum):
    """Closed set of raw cell shapes produced by the driver adapter"""
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"
    BYTES = "bytes"
    TEXT = "text"
    OPAQUE = "opaque"


# ============================================================================
# Errors
# ============================================================================

class ToolError(Exception):
    """Base class for failures that end a tool call with a structured error"""
    kind: ErrorKind = ErrorKind.EXECUTION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingParameterError(ToolError):
    kind = ErrorKind.VALIDATION


class SafetyDeniedError(ToolError):
    kind = ErrorKind.SAFETY_DENIED


class ExecutionError(ToolError):
    kind = ErrorKind.EXECUTION


class DecodingError(ToolError):
    kind = ErrorKind.DECODING


# ============================================================================
# Query models
# ============================================================================

class QueryRequest(BaseModel):
    """A query tool call after argument extraction"""
    text: str = ""
    allow_unsafe: bool = False

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class ColumnDescriptor(BaseModel):
    """Result column as reported by the driver"""
    model_config = ConfigDict(frozen=True)

    name: str
    declared_type: str  # Upper-cased PostgreSQL type name, e.g. INT8, FLOAT8, TEXT


class RawValue(BaseModel):
    """One cell tagged with its shape, consumed by the normalizer"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ValueKind
    value: Any = None


class ResultEnvelope(BaseModel):
    """
    Successful query result.

    rows/count are None (and dropped from the payload) when nothing came back;
    message is only set in that case.
    """
    columns: list[str]
    rows: Optional[list[dict[str, Any]]] = None
    count: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def empty(cls, columns: list[str]) -> 'ResultEnvelope':
        return cls(columns=columns, message="Query executed successfully with no rows returned")

    def to_payload(self) -> dict[str, Any]:
        if self.rows is None:
            return {"message": self.message, "columns": self.columns}
        return {"columns": self.columns, "rows": self.rows, "count": self.count}


# ============================================================================
# Schema models
# ============================================================================

class ColumnInfo(BaseModel):
    """One column of a table in the schema listing"""
    column_name: str
    data_type: str
    is_nullable: bool
    default_value: Optional[str] = None
    constraint: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        # Optional keys only appear when the catalog had a value
        return self.model_dump(exclude_none=True)


class TableDescriptor(BaseModel):
    table_name: str
    columns: list[ColumnInfo] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "columns": [c.to_payload() for c in self.columns],
        }


class SchemaEnvelope(BaseModel):
    """Schema listing, or a message when no table matched"""
    tables: list[TableDescriptor] = Field(default_factory=list)
    message: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        if not self.tables:
            return {"message": self.message}
        return {"tables": [t.to_payload() for t in self.tables]}


# ============================================================================
# Tool result
# ============================================================================

class ToolResult(BaseModel):
    """
    Outcome of a tool call: either data or an error, never both.
    The transport decides how to serialize it.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    data: Optional[dict[str, Any]] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @classmethod
    def success(cls, data: dict[str, Any]) -> 'ToolResult':
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> 'ToolResult':
        return cls(ok=False, error_kind=kind, error_message=message)

    @classmethod
    def from_error(cls, error: ToolError) -> 'ToolResult':
        return cls.failure(error.kind, error.message)

    def to_payload(self) -> dict[str, Any]:
        if self.ok:
            return self.data or {}
        return {"error": True, "code": self.error_kind.value, "message": self.error_message}
