"""MongoDB Connection Cache — one lazily opened, process-wide database handle.

Invariants:
    - At most one connect attempt in flight; concurrent acquire() calls during cold
      start all await that single attempt and receive the same handle
    - Once a handle is stored it is reused for the lifetime of the process (no I/O)
    - A failed attempt clears the pending slot so the next acquire() retries
    - Every connect failure surfaces as DatabaseConnectionError (core/errors.py)
    - A caller that stops waiting never cancels the shared attempt (asyncio.shield)
    - An attempt that fails after all its waiters left is still consumed (no
      "Task exception was never retrieved" from the event loop)

Design Decisions:
    - Single-slot Task as the pending marker: asyncio's non-preemptive scheduling makes
      the check-and-set atomic, no lock needed (ADR: one event loop per process)
    - Singleton created on startup by init_db, injected through get_db (no import side effects)
    - Timeouts are pass-through driver options; no retry loop above the driver
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from app.core.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "devevent"


@dataclass(frozen=True)
class MongoHandle:
    """Live client plus the database it points at."""
    client: Any
    database: Any

    async def close(self) -> None:
        await self.client.close()


Connector = Callable[..., Awaitable[MongoHandle]]
OnConnect = Callable[[Any], Awaitable[None]]


async def connect_mongo(
    uri: str,
    *,
    database_name: str | None,
    connect_timeout_ms: int,
    socket_timeout_ms: int,
) -> MongoHandle:
    """Open a client and confirm the server answers before handing it out."""
    client: AsyncMongoClient = AsyncMongoClient(
        uri,
        connectTimeoutMS=connect_timeout_ms,
        socketTimeoutMS=socket_timeout_ms,
        serverSelectionTimeoutMS=connect_timeout_ms,
        tz_aware=True,
    )
    try:
        await client.admin.command("ping")
    except PyMongoError:
        await client.close()
        raise
    database: AsyncDatabase = (
        client.get_database(database_name)
        if database_name
        else client.get_default_database(DEFAULT_DATABASE)
    )
    return MongoHandle(client=client, database=database)


def _retrieve_outcome(task: asyncio.Task) -> None:
    # Marks the failure as seen when every waiter was cancelled before it landed
    if not task.cancelled():
        task.exception()


class MongoConnectionCache:
    """Lazily opens and memoizes the process-wide MongoDB handle."""

    def __init__(
        self,
        uri: str,
        *,
        database_name: str | None = None,
        connect_timeout_ms: int = 10_000,
        socket_timeout_ms: int = 45_000,
        connector: Connector = connect_mongo,
        on_connect: OnConnect | None = None,
    ):
        self._uri = uri
        self._database_name = database_name
        self._connect_timeout_ms = connect_timeout_ms
        self._socket_timeout_ms = socket_timeout_ms
        self._connector = connector
        self._on_connect = on_connect
        self._handle: MongoHandle | None = None
        self._pending: asyncio.Task[MongoHandle] | None = None

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    async def acquire(self) -> MongoHandle:
        """Return the live handle, joining or starting the single connect attempt."""
        if self._handle is not None:
            return self._handle
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._open())
            self._pending.add_done_callback(_retrieve_outcome)
        return await asyncio.shield(self._pending)

    async def _open(self) -> MongoHandle:
        try:
            handle = await self._connector(
                self._uri,
                database_name=self._database_name,
                connect_timeout_ms=self._connect_timeout_ms,
                socket_timeout_ms=self._socket_timeout_ms,
            )
            if self._on_connect is not None:
                try:
                    await self._on_connect(handle.database)
                except Exception:
                    await handle.close()
                    raise
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise DatabaseConnectionError(str(e)) from e
        finally:
            self._pending = None

        self._handle = handle
        logger.info("Successfully connected to MongoDB")
        return handle

    async def ping(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            handle = await self.acquire()
            await handle.database.command("ping")
            return True
        except (DatabaseConnectionError, PyMongoError) as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._handle is not None:
            await self._handle.close()
            self._handle = None


# Singleton (initialized on startup)
connection_cache: MongoConnectionCache | None = None


def init_db(uri: str, **kwargs) -> MongoConnectionCache:
    global connection_cache
    connection_cache = MongoConnectionCache(uri, **kwargs)
    return connection_cache


def get_connection_cache() -> MongoConnectionCache:
    if not connection_cache:
        raise RuntimeError("Database not initialized")
    return connection_cache


async def get_db() -> AsyncDatabase:
    """FastAPI dependency for the shared database handle."""
    handle = await get_connection_cache().acquire()
    return handle.database
