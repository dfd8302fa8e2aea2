"""In-memory object store adapter."""

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO

from ..core.errors import StoreError
from ..core.models import EntryInfo
from ..ports import ClockPort
from .clock_utc import UtcClockAdapter


@dataclass
class _StoredEntry:
    data: bytes
    last_modified: datetime


class MemoryObjectStoreAdapter:
    """Dict-backed store for tests and local experiments.

    Stricter than S3: touching a missing schema, or reading, appending to
    or deleting a missing entry, raises StoreError.
    """

    def __init__(self, clock: ClockPort | None = None):
        self.clock = clock or UtcClockAdapter()
        self._schemas: dict[str, dict[str, _StoredEntry]] = {}

    async def create_schema(self, schema_name: str) -> None:
        self._schemas.setdefault(schema_name, {})

    async def create_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        entries = self._schema(schema_name)
        entries[user_id] = _StoredEntry(data=bytes(data), last_modified=self.clock.now())

    async def get_schema_names(self) -> set[str]:
        return set(self._schemas)

    async def get_data(self, schema_name: str, user_id: str, sink: BinaryIO) -> int:
        entry = self._entry(schema_name, user_id)
        sink.write(entry.data)
        return len(entry.data)

    async def get_entries_metadata_for_schema(self, schema_name: str) -> dict[str, EntryInfo]:
        return {
            user_id: EntryInfo(
                user_id=user_id, size=len(entry.data), last_modified=entry.last_modified
            )
            for user_id, entry in self._schema(schema_name).items()
        }

    async def append_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        entry = self._entry(schema_name, user_id)
        entry.data += bytes(data)
        entry.last_modified = self.clock.now()

    async def delete_schema(self, schema_name: str) -> None:
        self._schema(schema_name)
        del self._schemas[schema_name]

    async def delete_entry(self, schema_name: str, user_id: str) -> None:
        self._entry(schema_name, user_id)
        del self._schemas[schema_name][user_id]

    def _schema(self, schema_name: str) -> dict[str, _StoredEntry]:
        try:
            return self._schemas[schema_name]
        except KeyError:
            raise StoreError(f"Schema not found: {schema_name}", payload="NoSuchSchema") from None

    def _entry(self, schema_name: str, user_id: str) -> _StoredEntry:
        try:
            return self._schema(schema_name)[user_id]
        except KeyError:
            raise StoreError(
                f"Entry not found: {schema_name}/{user_id}", payload="NoSuchEntry"
            ) from None
