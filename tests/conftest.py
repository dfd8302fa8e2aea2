"""Shared fixtures for s3metacache tests."""

import asyncio
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from s3metacache.adapters import MemoryObjectStoreAdapter, NoopMetricsAdapter, StdLoggerAdapter
from s3metacache.core import MetadataCache


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class GatedStore:
    """Memory store that counts calls and can hold or fail the next call of an operation."""

    def __init__(self, clock: FakeClock):
        self.backend = MemoryObjectStoreAdapter(clock)
        self.calls: Counter[str] = Counter()
        self._gates: dict[str, asyncio.Event] = {}
        self._held_replies: dict[str, asyncio.Event] = {}
        self._failures: dict[str, Exception] = {}

    async def seed(self, schema_name: str, **entries: bytes) -> None:
        """Populate the backend directly, without counting calls."""
        await self.backend.create_schema(schema_name)
        for user_id, data in entries.items():
            await self.backend.create_entry(schema_name, user_id, data)

    def gate(self, op: str) -> asyncio.Event:
        """Hold the next ``op`` call until the returned event is set."""
        event = asyncio.Event()
        self._gates[op] = event
        return event

    def hold_reply(self, op: str) -> asyncio.Event:
        """Apply the next ``op`` call to the backend, then hold its reply until the event is set."""
        event = asyncio.Event()
        self._held_replies[op] = event
        return event

    def fail(self, op: str, error: Exception) -> None:
        """Make the next ``op`` call raise ``error``."""
        self._failures[op] = error

    async def _call(self, op: str, *args: Any) -> Any:
        self.calls[op] += 1
        gate = self._gates.pop(op, None)
        if gate is not None:
            await gate.wait()
        error = self._failures.pop(op, None)
        if error is not None:
            raise error
        result = await getattr(self.backend, op)(*args)
        held = self._held_replies.pop(op, None)
        if held is not None:
            await held.wait()
        return result

    async def create_schema(self, schema_name):
        return await self._call("create_schema", schema_name)

    async def create_entry(self, schema_name, user_id, data):
        return await self._call("create_entry", schema_name, user_id, data)

    async def get_schema_names(self):
        return await self._call("get_schema_names")

    async def get_data(self, schema_name, user_id, sink):
        return await self._call("get_data", schema_name, user_id, sink)

    async def get_entries_metadata_for_schema(self, schema_name):
        return await self._call("get_entries_metadata_for_schema", schema_name)

    async def append_entry(self, schema_name, user_id, data):
        return await self._call("append_entry", schema_name, user_id, data)

    async def delete_schema(self, schema_name):
        return await self._call("delete_schema", schema_name)

    async def delete_entry(self, schema_name, user_id):
        return await self._call("delete_entry", schema_name, user_id)


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """Empty gated memory store."""
    return GatedStore(clock)


@pytest.fixture
def logger():
    return StdLoggerAdapter(name="s3metacache.tests", level="DEBUG")


@pytest.fixture
def make_cache(store, clock, logger):
    """Factory building a cache over the gated store with a given lifetime."""

    def factory(lifetime: timedelta | None = None, metrics: Any = None) -> MetadataCache:
        return MetadataCache(
            store=store,
            clock=clock,
            logger=logger,
            metrics=metrics or NoopMetricsAdapter(),
            lifetime=lifetime,
        )

    return factory


@pytest.fixture
def cache(make_cache):
    """Cache that never expires."""
    return make_cache()
