"""
Tool Container - builds the query components around one connection handle

Single place where the executor and aggregator get their database,
used by both stdio (server.py) and HTTP (transport/http.py) modes.
"""

from typing import Optional

from query import QueryExecutor, SchemaAggregator


class ToolContainer:
    """
    Holds the components tool handlers call into.

    The connection handle is passed in, never looked up globally, so tests
    can hand in a fake pool.
    """
    def __init__(self, db, timeout: Optional[float] = None):
        if timeout is None and getattr(db, 'config', None) is not None:
            timeout = db.config.command_timeout
        self.db = db
        self.executor = QueryExecutor(db, timeout=timeout)
        self.schema = SchemaAggregator(db, timeout=timeout)
