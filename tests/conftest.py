"""
Pytest configuration and shared fixtures for PostgreSQL MCP Server tests

APPROACH: components get a FakeDatabase instead of a live pool
- No PostgreSQL needed to run the suite
- Each test builds its own fake, so there is no shared state
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from container import ToolContainer
from tests.fakes import FakeDatabase, FakeStatement, column


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    """
    import os
    os.environ['PYTEST_RUNNING'] = '1'
    os.environ.setdefault('APP_ENV', 'test')


@pytest.fixture
def fake_db():
    """Empty fake database; tests fill in statement/schema rows"""
    return FakeDatabase()


@pytest.fixture
def select_one_db():
    """Fake database answering SELECT 1 AS x"""
    statement = FakeStatement([column('x', 'int4')], [(1,)])
    return FakeDatabase(statement=statement)


@pytest.fixture
def tool_container(fake_db):
    """ToolContainer wired to the fake database"""
    return ToolContainer(fake_db, timeout=5)
