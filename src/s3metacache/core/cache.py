"""Core MetadataCache orchestration."""

import threading
from datetime import datetime, timedelta
from typing import Any, BinaryIO

from ..ports import ClockPort, LoggerPort, MetricsPort, ObjectStorePort
from .errors import StoreError
from .models import EntryInfo, EntryMetadataEntry, SchemaNameSet, is_fresh


class MetadataCache:
    """Process-local cache of schema names and entry metadata.

    Fronts an object store and exposes the same operations. Reads are served
    from cache while fresh and fetched through otherwise; mutations keep the
    cache coherent:

    - create_schema / create_entry add to existing cached data on success
      and never create cache records.
    - append_entry / delete_entry drop the schema's entry metadata whether
      or not the store call succeeds.
    - delete_schema drops the name and the schema's entry metadata on success.

    Each schema (and the schema name set) carries a generation counter that
    mutations bump when they settle. Fetches and mutations record the
    generation when they are issued. A fetch only populates the cache if that
    generation is still current, and a mutation only applies its precise
    update if it is; otherwise the cached record is dropped. Replies that
    settle out of issue order therefore never bring stale data back.

    Per-schema generations are only kept while a call on that schema is in
    flight, so the map is bounded by concurrent calls, not by every schema
    name ever seen.
    """

    def __init__(
        self,
        store: ObjectStorePort,
        clock: ClockPort,
        logger: LoggerPort,
        metrics: MetricsPort,
        lifetime: timedelta | None = None,
    ):
        """Initialize cache with ports.

        Args:
            lifetime: How long fetched data stays fresh. None never expires.
        """
        self.store = store
        self.clock = clock
        self.logger = logger
        self.metrics = metrics
        self.lifetime = lifetime

        self._lock = threading.RLock()
        self._schema_names: SchemaNameSet | None = None
        self._entries: dict[str, EntryMetadataEntry] = {}
        self._names_generation = 0
        self._generations: dict[str, int] = {}
        self._in_flight: dict[str, int] = {}

        self._hits = 0
        self._misses = 0
        self._invalidations = 0
        self._discarded_fetches = 0

    # CREATE operations

    async def create_schema(self, schema_name: str) -> None:
        """Forward to the store. On success, add the name to cached schema names.

        If another mutation settled while this call was in flight, the cached
        names are dropped instead and the next read fetches them again.
        """
        start_time = self.clock.now()
        with self._lock:
            generation = self._names_generation

        await self._call_store("create_schema", schema_name, self.store.create_schema(schema_name))

        with self._lock:
            if generation != self._names_generation:
                self._drop_schema_names()
            elif self._schema_names is not None:
                self._schema_names = self._schema_names.with_schema(schema_name)
            self._names_generation += 1

        self._finish("create_schema", schema_name, start_time)

    async def create_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        """Forward to the store. On success, add the user to cached entry metadata if present.

        If another mutation on the schema settled while this call was in
        flight, the schema's entry metadata is dropped instead.
        """
        start_time = self.clock.now()
        with self._lock:
            generation = self._track(schema_name)

        try:
            await self._call_store(
                "create_entry", schema_name, self.store.create_entry(schema_name, user_id, data)
            )
            with self._lock:
                entry = self._entries.get(schema_name)
                if generation != self._generations[schema_name]:
                    self._drop_entries(schema_name)
                elif entry is not None:
                    info = EntryInfo(user_id=user_id, size=len(data), last_modified=self.clock.now())
                    self._entries[schema_name] = entry.with_entry(info)
                self._generations[schema_name] += 1
        finally:
            self._untrack(schema_name)

        self._finish("create_entry", schema_name, start_time, user_id=user_id, size=len(data))

    # READ operations

    async def get_schema_names(self) -> set[str]:
        """Return cached schema names while fresh, otherwise fetch and cache them."""
        start_time = self.clock.now()
        with self._lock:
            cached = self._schema_names
            generation = self._names_generation

        if cached is not None and is_fresh(cached.fetched_at, start_time, self.lifetime):
            self._record_hit("schema_names", None)
            self._finish("get_schema_names", None, start_time, cache_hit=True)
            return set(cached.schemas)

        self._record_miss("schema_names", None)
        names = await self._call_store("get_schema_names", None, self.store.get_schema_names())
        fetched = SchemaNameSet(schemas=frozenset(names), fetched_at=self.clock.now())

        with self._lock:
            stored = generation == self._names_generation
            if stored:
                self._schema_names = fetched
        if not stored:
            self._record_discard(None)

        self._finish("get_schema_names", None, start_time, count=len(fetched.schemas))
        return set(fetched.schemas)

    async def get_data(self, schema_name: str, user_id: str, sink: BinaryIO) -> int:
        """Forward to the store. Entry data is streamed to ``sink`` and never cached."""
        start_time = self.clock.now()
        written = await self._call_store(
            "get_data", schema_name, self.store.get_data(schema_name, user_id, sink)
        )
        self._finish("get_data", schema_name, start_time, user_id=user_id, size=written)
        return written

    async def get_entries_metadata_for_schema(self, schema_name: str) -> dict[str, EntryInfo]:
        """Return cached entry metadata while fresh, otherwise fetch and cache it."""
        start_time = self.clock.now()
        with self._lock:
            cached = self._entries.get(schema_name)
            fresh = cached is not None and is_fresh(cached.fetched_at, start_time, self.lifetime)
            if not fresh:
                generation = self._track(schema_name)

        if fresh:
            self._record_hit("entries", schema_name)
            self._finish("get_entries_metadata_for_schema", schema_name, start_time, cache_hit=True)
            return dict(cached.metadata)

        try:
            self._record_miss("entries", schema_name)
            metadata = await self._call_store(
                "get_entries_metadata_for_schema",
                schema_name,
                self.store.get_entries_metadata_for_schema(schema_name),
            )
            fetched = EntryMetadataEntry(
                schema_name=schema_name, metadata=metadata, fetched_at=self.clock.now()
            )

            with self._lock:
                stored = generation == self._generations[schema_name]
                if stored:
                    self._entries[schema_name] = fetched
        finally:
            self._untrack(schema_name)
        if not stored:
            self._record_discard(schema_name)

        self._finish(
            "get_entries_metadata_for_schema", schema_name, start_time, count=len(fetched.metadata)
        )
        return dict(fetched.metadata)

    # UPDATE operations

    async def append_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        """Forward to the store. Always invalidate the schema's entry metadata."""
        start_time = self.clock.now()
        try:
            await self._call_store(
                "append_entry", schema_name, self.store.append_entry(schema_name, user_id, data)
            )
        finally:
            self._invalidate_entries(schema_name)
        self._finish("append_entry", schema_name, start_time, user_id=user_id, size=len(data))

    # DELETE operations

    async def delete_schema(self, schema_name: str) -> None:
        """Forward to the store. On success, drop the schema from both caches."""
        start_time = self.clock.now()
        with self._lock:
            generation = self._names_generation

        await self._call_store("delete_schema", schema_name, self.store.delete_schema(schema_name))

        with self._lock:
            if generation != self._names_generation:
                self._drop_schema_names()
            elif self._schema_names is not None:
                self._schema_names = self._schema_names.without_schema(schema_name)
            self._names_generation += 1
        self._invalidate_entries(schema_name)
        self._finish("delete_schema", schema_name, start_time)

    async def delete_entry(self, schema_name: str, user_id: str) -> None:
        """Forward to the store. Always invalidate the schema's entry metadata."""
        start_time = self.clock.now()
        try:
            await self._call_store(
                "delete_entry", schema_name, self.store.delete_entry(schema_name, user_id)
            )
        finally:
            self._invalidate_entries(schema_name)
        self._finish("delete_entry", schema_name, start_time, user_id=user_id)

    # Cache management

    def invalidate(self, schema_name: str | None = None) -> None:
        """Drop cached entry metadata for one schema, or everything if no schema is given."""
        if schema_name is not None:
            self._invalidate_entries(schema_name)
            return

        with self._lock:
            self._names_generation += 1
            for name in self._generations:
                self._generations[name] += 1
            self._invalidations += len(self._entries)
            if self._schema_names is not None:
                self._invalidations += 1
            self._schema_names = None
            self._entries.clear()
        self.logger.info("Cleared metadata cache")

    def schema_names_snapshot(self) -> SchemaNameSet | None:
        """Cached schema names as stored, fresh or not."""
        with self._lock:
            return self._schema_names

    def entry_snapshot(self, schema_name: str) -> EntryMetadataEntry | None:
        """Cached entry metadata of a schema as stored, fresh or not."""
        with self._lock:
            return self._entries.get(schema_name)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0
            return {
                "schema_names_cached": self._schema_names is not None,
                "schemas_with_entries": len(self._entries),
                "schemas_in_flight": len(self._in_flight),
                "lifetime_seconds": (
                    self.lifetime.total_seconds() if self.lifetime is not None else None
                ),
                "hits": self._hits,
                "misses": self._misses,
                "invalidations": self._invalidations,
                "discarded_fetches": self._discarded_fetches,
                "hit_rate_percent": hit_rate,
                "total_requests": total_requests,
            }

    # Internal helpers

    async def _call_store(self, op: str, schema_name: str | None, call: Any) -> Any:
        """Await a store call, logging failures before they propagate."""
        try:
            return await call
        except StoreError as e:
            self.logger.warning("Store operation failed", op=op, schema=schema_name, error=str(e))
            self.metrics.increment("s3metacache.store.error", tags={"op": op})
            raise

    def _track(self, schema_name: str) -> int:
        """Register an in-flight call on a schema and return its current generation.

        Must be called with the lock held.
        """
        self._in_flight[schema_name] = self._in_flight.get(schema_name, 0) + 1
        return self._generations.setdefault(schema_name, 0)

    def _untrack(self, schema_name: str) -> None:
        # With nothing in flight no caller holds a generation, so the counter can go.
        with self._lock:
            remaining = self._in_flight[schema_name] - 1
            if remaining:
                self._in_flight[schema_name] = remaining
            else:
                del self._in_flight[schema_name]
                del self._generations[schema_name]

    def _invalidate_entries(self, schema_name: str) -> None:
        with self._lock:
            if schema_name in self._generations:
                self._generations[schema_name] += 1
            self._drop_entries(schema_name)

    def _drop_entries(self, schema_name: str) -> None:
        with self._lock:
            removed = self._entries.pop(schema_name, None) is not None
            if removed:
                self._invalidations += 1
        if removed:
            self.logger.debug("Invalidated entry metadata", schema=schema_name)
            self.metrics.increment("s3metacache.invalidation")

    def _drop_schema_names(self) -> None:
        with self._lock:
            removed = self._schema_names is not None
            self._schema_names = None
            if removed:
                self._invalidations += 1
        if removed:
            self.logger.debug("Invalidated schema names")
            self.metrics.increment("s3metacache.invalidation")

    def _record_hit(self, kind: str, schema_name: str | None) -> None:
        with self._lock:
            self._hits += 1
        self.logger.debug("Cache hit", kind=kind, schema=schema_name)
        self.metrics.increment(f"s3metacache.{kind}.hit")

    def _record_miss(self, kind: str, schema_name: str | None) -> None:
        with self._lock:
            self._misses += 1
        self.logger.debug("Cache miss", kind=kind, schema=schema_name)
        self.metrics.increment(f"s3metacache.{kind}.miss")

    def _record_discard(self, schema_name: str | None) -> None:
        with self._lock:
            self._discarded_fetches += 1
        self.logger.debug("Discarded fetch that raced with a mutation", schema=schema_name)
        self.metrics.increment("s3metacache.stale_fetch_discarded")

    def _finish(
        self,
        op: str,
        schema_name: str | None,
        start_time: datetime,
        cache_hit: bool = False,
        **kwargs: Any,
    ) -> None:
        duration = (self.clock.now() - start_time).total_seconds()
        self.logger.log_operation(
            op=op,
            schema=schema_name,
            durations={"total": duration},
            cache_hit=cache_hit,
            **kwargs,
        )
        self.metrics.timing(f"s3metacache.{op}.duration", duration)
