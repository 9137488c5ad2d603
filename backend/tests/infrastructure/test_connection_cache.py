"""Connection Cache — lazy, coalesced, retryable acquisition of the MongoDB handle.

Tests cover:
    - Concurrent cold-start acquire() calls share exactly one connect attempt
    - A stored handle is returned without calling the connector again
    - Failure reaches every waiting caller as DatabaseConnectionError and allows a retry
    - Timeouts and database name are passed through to the connector
    - on_connect runs once; its failure closes the client and fails the attempt
    - A cancelled waiter does not cancel the shared attempt
    - An attempt that fails after its only waiter was cancelled is not reported unretrieved
"""

import asyncio
import gc

import pytest
from pymongo.errors import ConnectionFailure

import app.infrastructure.database as db_module
from app.core.errors import DatabaseConnectionError
from app.infrastructure.database import MongoConnectionCache, MongoHandle, get_db
from tests.fake_mongo import FakeClient, FakeDatabase


class CountingConnector:
    """Connector double: counts calls, can fail N times, can be held open by a gate."""

    def __init__(self, fail_times: int = 0):
        self.calls = 0
        self.fail_times = fail_times
        self.options: dict = {}
        self.clients: list[FakeClient] = []
        self.gate = asyncio.Event()
        self.gate.set()

    async def __call__(self, uri: str, **options) -> MongoHandle:
        self.calls += 1
        self.uri = uri
        self.options = options
        await self.gate.wait()
        await asyncio.sleep(0)
        if self.calls <= self.fail_times:
            raise ConnectionFailure("connection refused")
        client = FakeClient()
        self.clients.append(client)
        return MongoHandle(client=client, database=FakeDatabase())


def _cache(connector, **kwargs) -> MongoConnectionCache:
    return MongoConnectionCache(
        "mongodb://localhost:27017/devevent-test", connector=connector, **kwargs,
    )


async def test_concurrent_acquire_coalesces_into_one_connect():
    connector = CountingConnector()
    connector.gate.clear()
    cache = _cache(connector)

    waiters = [asyncio.create_task(cache.acquire()) for _ in range(10)]
    await asyncio.sleep(0)
    connector.gate.set()
    handles = await asyncio.gather(*waiters)

    assert connector.calls == 1
    assert all(h is handles[0] for h in handles)
    assert cache.is_connected


async def test_active_handle_is_reused():
    connector = CountingConnector()
    cache = _cache(connector)

    first = await cache.acquire()
    second = await cache.acquire()

    assert first is second
    assert connector.calls == 1


async def test_failure_reaches_all_waiters_and_allows_retry():
    connector = CountingConnector(fail_times=1)
    cache = _cache(connector)

    results = await asyncio.gather(
        *(cache.acquire() for _ in range(3)), return_exceptions=True,
    )
    assert connector.calls == 1
    assert all(isinstance(r, DatabaseConnectionError) for r in results)
    assert not cache.is_connected

    handle = await cache.acquire()
    assert connector.calls == 2
    assert isinstance(handle.database, FakeDatabase)


async def test_connect_options_are_passed_through():
    connector = CountingConnector()
    cache = _cache(
        connector, database_name="events-db",
        connect_timeout_ms=1_500, socket_timeout_ms=9_000,
    )
    await cache.acquire()
    assert connector.uri == "mongodb://localhost:27017/devevent-test"
    assert connector.options == {
        "database_name": "events-db",
        "connect_timeout_ms": 1_500,
        "socket_timeout_ms": 9_000,
    }


async def test_on_connect_runs_once_with_database():
    seen = []

    async def on_connect(database):
        seen.append(database)

    connector = CountingConnector()
    cache = _cache(connector, on_connect=on_connect)
    handle = await cache.acquire()
    await cache.acquire()

    assert seen == [handle.database]


async def test_on_connect_failure_closes_client_and_fails_attempt():
    async def on_connect(database):
        raise RuntimeError("index build failed")

    connector = CountingConnector()
    cache = _cache(connector, on_connect=on_connect)

    with pytest.raises(DatabaseConnectionError):
        await cache.acquire()
    assert connector.clients[0].closed
    assert not cache.is_connected


async def test_cancelled_waiter_does_not_abort_attempt():
    connector = CountingConnector()
    connector.gate.clear()
    cache = _cache(connector)

    waiter = asyncio.create_task(cache.acquire())
    await asyncio.sleep(0)
    waiter.cancel()
    await asyncio.gather(waiter, return_exceptions=True)

    connector.gate.set()
    handle = await cache.acquire()
    assert connector.calls == 1
    assert handle is await cache.acquire()


async def test_failure_after_cancelled_waiter_is_consumed():
    loop = asyncio.get_running_loop()
    reported: list[dict] = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        connector = CountingConnector(fail_times=1)
        connector.gate.clear()
        cache = _cache(connector)

        waiter = asyncio.create_task(cache.acquire())
        await asyncio.sleep(0)
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)

        connector.gate.set()
        for _ in range(10):
            await asyncio.sleep(0)
        gc.collect()
        await asyncio.sleep(0)
    finally:
        loop.set_exception_handler(previous)

    assert not [c for c in reported if "never retrieved" in c.get("message", "")]
    assert connector.calls == 1
    handle = await cache.acquire()
    assert connector.calls == 2
    assert handle.client is connector.clients[0]


async def test_ping_reports_connectivity():
    cache = _cache(CountingConnector())
    assert await cache.ping() is True
    assert (await cache.acquire()).database.commands == ["ping"]


async def test_ping_is_false_when_connect_fails():
    cache = _cache(CountingConnector(fail_times=5))
    assert await cache.ping() is False


async def test_close_releases_client():
    connector = CountingConnector()
    cache = _cache(connector)
    await cache.acquire()
    await cache.close()
    assert connector.clients[0].closed
    assert not cache.is_connected


async def test_get_db_requires_initialization(monkeypatch):
    monkeypatch.setattr(db_module, "connection_cache", None)
    with pytest.raises(RuntimeError):
        await get_db()


async def test_get_db_returns_cached_database(monkeypatch):
    connector = CountingConnector()
    monkeypatch.setattr(db_module, "connection_cache", _cache(connector))
    first = await get_db()
    second = await get_db()
    assert first is second
    assert connector.calls == 1
