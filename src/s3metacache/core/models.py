"""Core domain models."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from types import MappingProxyType


@dataclass(frozen=True)
class EntryInfo:
    """Metadata describing one entry of a schema."""

    user_id: str
    size: int | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True)
class SchemaNameSet:
    """Cached collection of every known schema name."""

    schemas: frozenset[str]
    fetched_at: datetime

    def with_schema(self, name: str) -> "SchemaNameSet":
        """Copy with ``name`` added, keeping ``fetched_at``."""
        return replace(self, schemas=self.schemas | {name})

    def without_schema(self, name: str) -> "SchemaNameSet":
        """Copy with ``name`` removed, keeping ``fetched_at``."""
        return replace(self, schemas=self.schemas - {name})


@dataclass(frozen=True)
class EntryMetadataEntry:
    """Cached entry metadata of a single schema."""

    schema_name: str
    metadata: Mapping[str, EntryInfo]
    fetched_at: datetime

    def __post_init__(self) -> None:
        # Freeze a private copy so the cached mapping cannot be mutated by callers
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def with_entry(self, info: EntryInfo) -> "EntryMetadataEntry":
        """Copy with ``info`` inserted, keeping ``fetched_at``."""
        metadata = dict(self.metadata)
        metadata[info.user_id] = info
        return replace(self, metadata=metadata)


def is_fresh(fetched_at: datetime, now: datetime, lifetime: timedelta | None) -> bool:
    """Return True while ``now - fetched_at`` is below ``lifetime``.

    A ``lifetime`` of None never expires.
    """
    if lifetime is None:
        return True
    return (now - fetched_at) < lifetime
