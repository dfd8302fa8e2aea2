"""Object store port interface."""

from typing import TYPE_CHECKING, BinaryIO, Protocol

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..core.models import EntryInfo


class ObjectStorePort(Protocol):
    """Port for schema and entry storage.

    Every method raises ``StoreError`` on failure.
    """

    async def create_schema(self, schema_name: str) -> None:
        """Create an empty schema."""
        ...

    async def create_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        """Create or replace the entry of ``user_id`` in a schema."""
        ...

    async def get_schema_names(self) -> set[str]:
        """List every schema name."""
        ...

    async def get_data(self, schema_name: str, user_id: str, sink: BinaryIO) -> int:
        """Stream entry data into ``sink``; return the number of bytes written."""
        ...

    async def get_entries_metadata_for_schema(self, schema_name: str) -> "dict[str, EntryInfo]":
        """Describe every entry of a schema, keyed by user id."""
        ...

    async def append_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        """Append ``data`` to an entry."""
        ...

    async def delete_schema(self, schema_name: str) -> None:
        """Delete a schema and all of its entries."""
        ...

    async def delete_entry(self, schema_name: str, user_id: str) -> None:
        """Delete a single entry."""
        ...
