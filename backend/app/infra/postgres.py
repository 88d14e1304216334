"""AsyncPG pool management for the backend."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from app.domain.common.errors import UnavailableError
from app.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None

# Failures that mean the store is unreachable rather than the query being wrong
_CONNECTION_ERRORS = (
	OSError,
	asyncio.TimeoutError,
	asyncpg.PostgresConnectionError,
	asyncpg.InterfaceError,
	asyncpg.CannotConnectNowError,
	asyncpg.TooManyConnectionsError,
)


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		# Force 127.0.0.1 instead of localhost to avoid IPv6 issues on Windows
		dsn = settings.postgres_url.replace("localhost", "127.0.0.1")
		_pool = await asyncpg.create_pool(
			dsn=dsn,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
		)
	return _pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


@asynccontextmanager
async def connection(pool: asyncpg.pool.Pool) -> AsyncIterator[asyncpg.Connection]:
	"""Acquire a connection, reporting connectivity failures as UnavailableError."""
	try:
		async with pool.acquire() as conn:
			yield conn
	except _CONNECTION_ERRORS as exc:
		raise UnavailableError() from exc
