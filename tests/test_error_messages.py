"""Hints added to common PostgreSQL errors"""

import asyncio

from utils.error_messages import enhance_error_message


def test_missing_relation_hint():
    message = enhance_error_message(Exception('relation "orders" does not exist'))

    assert message.startswith('relation "orders" does not exist (hint: ')
    assert "'orders'" in message
    assert 'pg_schema_info' in message


def test_missing_column_hint():
    message = enhance_error_message(Exception('column "nmae" does not exist'))
    assert "Column 'nmae'" in message


def test_timeout():
    assert enhance_error_message(asyncio.TimeoutError()) == "query timed out and was cancelled"


def test_unknown_error_unchanged():
    assert enhance_error_message(Exception('disk full')) == 'disk full'


def test_empty_message_uses_class_name():
    assert enhance_error_message(ValueError()) == 'ValueError'
