"""
Database connection management
Async PostgreSQL pool using asyncpg
"""

import asyncpg
import logging
from typing import Optional, Any
from contextlib import asynccontextmanager

from config import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Owns the PostgreSQL connection pool.

    One instance is created by the bootstrap and handed to the query
    executor and schema aggregator; nothing reaches it through module state.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Initialize connection pool and verify it answers"""
        if self.pool is not None:
            logger.warning("Connection pool already initialized")
            return

        try:
            self.pool = await asyncpg.create_pool(
                dsn=self.config.dsn,
                min_size=self.config.min_pool_size,
                max_size=self.config.max_pool_size,
                command_timeout=self.config.command_timeout,
            )
            await self.ping()
            logger.info(f"✅ Connected to PostgreSQL at {self.config.masked_dsn}")

        except Exception as e:
            logger.error(f"❌ Failed to connect to database: {e}")
            if self.pool is not None:
                await self.pool.close()
                self.pool = None
            raise

    async def disconnect(self):
        """Close connection pool"""
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info("Database connection pool closed")

    @asynccontextmanager
    async def acquire(self):
        """
        Acquire a connection from the pool.

        Usage:
            async with db.acquire() as conn:
                stmt = await conn.prepare("SELECT 1")

        The connection goes back to the pool on every exit path,
        including errors and cancellation.
        """
        if self.pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self.pool.acquire() as connection:
            yield connection

    async def ping(self):
        """Run SELECT 1, raising if the database does not answer"""
        async with self.acquire() as conn:
            result = await conn.fetchval("SELECT 1")
        if result != 1:
            raise RuntimeError(f"Unexpected ping result: {result!r}")

    async def check_connection(self) -> bool:
        """
        Check if database connection is healthy

        Returns:
            True if connection is healthy
        """
        try:
            await self.ping()
            return True
        except Exception as e:
            logger.error(f"Connection check failed: {e}")
            return False

    async def get_pool_stats(self) -> dict[str, Any]:
        """Connection pool statistics for the health endpoint"""
        if self.pool is None:
            return {
                'status': 'disconnected',
                'size': 0,
                'freesize': 0
            }

        return {
            'status': 'connected',
            'size': self.pool.get_size(),
            'freesize': self.pool.get_idle_size(),
            'min_size': self.config.min_pool_size,
            'max_size': self.config.max_pool_size
        }
