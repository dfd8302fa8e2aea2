"""S3 object store adapter."""

import asyncio
from collections.abc import Callable, Iterator
from typing import Any, BinaryIO, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import StoreError
from ..core.models import EntryInfo

T = TypeVar("T")

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000
DEFAULT_CHUNK_SIZE = 1024 * 1024


class S3ObjectStoreAdapter:
    """Store schemas and entries in a single S3 bucket.

    Layout:
        <schema>/            empty marker object, makes an empty schema visible
        <schema>/<user_id>   entry data

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        client: Any = None,
        endpoint_url: str | None = None,
        region: str | None = None,
        profile: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if client is None:
            session = boto3.Session(profile_name=profile, region_name=region)
            client = session.client("s3", endpoint_url=endpoint_url)
        self.bucket = bucket
        self.client = client
        self.chunk_size = chunk_size

    # Async port methods

    async def create_schema(self, schema_name: str) -> None:
        await self._run("create_schema", self._put, _schema_prefix(schema_name), b"")

    async def create_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        await self._run("create_entry", self._put, _entry_key(schema_name, user_id), data)

    async def get_schema_names(self) -> set[str]:
        return await self._run("get_schema_names", self._list_schema_names)

    async def get_data(self, schema_name: str, user_id: str, sink: BinaryIO) -> int:
        return await self._run(
            "get_data", self._stream_to, _entry_key(schema_name, user_id), sink
        )

    async def get_entries_metadata_for_schema(self, schema_name: str) -> dict[str, EntryInfo]:
        return await self._run(
            "get_entries_metadata_for_schema", self._list_entries, schema_name
        )

    async def append_entry(self, schema_name: str, user_id: str, data: bytes) -> None:
        await self._run("append_entry", self._append, _entry_key(schema_name, user_id), data)

    async def delete_schema(self, schema_name: str) -> None:
        await self._run("delete_schema", self._delete_prefix, _schema_prefix(schema_name))

    async def delete_entry(self, schema_name: str, user_id: str) -> None:
        await self._run("delete_entry", self._delete, _entry_key(schema_name, user_id))

    async def _run(self, op: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"S3 {op} failed: {e}", payload=e) from e

    # Blocking helpers (run in worker threads)

    def _put(self, key: str, body: bytes) -> None:
        self.client.put_object(Bucket=self.bucket, Key=key, Body=body)

    def _delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def _list_schema_names(self) -> set[str]:
        names: set[str] = set()
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Delimiter="/"):
            for common_prefix in page.get("CommonPrefixes", []):
                names.add(common_prefix["Prefix"].rstrip("/"))
        return names

    def _list_entries(self, schema_name: str) -> dict[str, EntryInfo]:
        prefix = _schema_prefix(schema_name)
        metadata: dict[str, EntryInfo] = {}
        for obj in self._iter_objects(prefix):
            user_id = obj["Key"][len(prefix) :]
            if not user_id:
                continue  # schema marker
            metadata[user_id] = EntryInfo(
                user_id=user_id,
                size=obj.get("Size"),
                last_modified=obj.get("LastModified"),
            )
        return metadata

    def _stream_to(self, key: str, sink: BinaryIO) -> int:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        body = response["Body"]
        written = 0
        try:
            for chunk in body.iter_chunks(self.chunk_size):
                sink.write(chunk)
                written += len(chunk)
        finally:
            body.close()
        return written

    def _append(self, key: str, data: bytes) -> None:
        # S3 has no append: read, concatenate, write back
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            existing = response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in ("NoSuchKey", "404"):
                raise
            existing = b""
        self._put(key, existing + data)

    def _delete_prefix(self, prefix: str) -> None:
        keys = [obj["Key"] for obj in self._iter_objects(prefix)]
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            response = self.client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            errors = response.get("Errors", [])
            if errors:
                raise StoreError(
                    f"S3 delete_schema failed for {len(errors)} object(s) under {prefix}",
                    payload=errors,
                )

    def _iter_objects(self, prefix: str) -> Iterator[dict[str, Any]]:
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            yield from page.get("Contents", [])


def _schema_prefix(schema_name: str) -> str:
    return f"{schema_name}/"


def _entry_key(schema_name: str, user_id: str) -> str:
    return f"{schema_name}/{user_id}"
