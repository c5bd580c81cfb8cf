"""
Error Message Utilities

Adds short, actionable hints to common PostgreSQL errors before they are
returned to the calling client.
"""

import asyncio
import re

# (pattern, hint) pairs; first match wins
ERROR_HINTS = [
    (
        re.compile(r'relation "([^"]+)" does not exist'),
        "Table or view '{0}' does not exist. Use pg_schema_info to list available tables.",
    ),
    (
        re.compile(r'column "([^"]+)" does not exist'),
        "Column '{0}' does not exist. Use pg_schema_info with the table name to list its columns.",
    ),
    (
        re.compile(r'syntax error at or near "([^"]*)"'),
        "Check the SQL near '{0}'.",
    ),
    (
        re.compile(r'permission denied for (?:table|relation|schema|sequence) (\S+)'),
        "The connected role has no access to '{0}'.",
    ),
    (
        re.compile(r'cannot execute (\w+) in a read-only transaction'),
        "The database session is read-only; {0} is not allowed.",
    ),
    (
        re.compile(r'canceling statement due to statement timeout'),
        "The query ran longer than the server's statement_timeout.",
    ),
]


def enhance_error_message(error: BaseException) -> str:
    """
    Return the error text, followed by a hint when the error is a known case.

    Timeouts carry no text of their own, so they get a fixed message.
    """
    if isinstance(error, asyncio.TimeoutError):
        return "query timed out and was cancelled"

    error_str = str(error) or error.__class__.__name__

    for pattern, hint in ERROR_HINTS:
        match = pattern.search(error_str)
        if match:
            return f"{error_str} (hint: {hint.format(*match.groups())})"

    return error_str
