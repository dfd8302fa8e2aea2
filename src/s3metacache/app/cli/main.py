"""CLI main entry point."""

import asyncio
import json
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

import click

from ...adapters import (
    LoggingMetricsAdapter,
    MemoryObjectStoreAdapter,
    NoopMetricsAdapter,
    S3ObjectStoreAdapter,
    StdLoggerAdapter,
    UtcClockAdapter,
)
from ...core import MetaCacheConfig, MetadataCache, StoreError
from ...ports import MetricsPort, ObjectStorePort

T = TypeVar("T")


def create_cache(config: MetaCacheConfig) -> MetadataCache:
    """Create cache with wired adapters."""
    clock = UtcClockAdapter()
    logger = StdLoggerAdapter(level=config.log_level)

    metrics: MetricsPort
    if config.metrics_type == "noop":
        metrics = NoopMetricsAdapter()
    elif config.metrics_type == "logging":
        metrics = LoggingMetricsAdapter(logger)
    else:
        raise ValueError(f"Unknown metrics backend: {config.metrics_type}")

    store: ObjectStorePort
    if config.store_backend == "memory":
        store = MemoryObjectStoreAdapter(clock)
    elif config.store_backend == "s3":
        if not config.bucket:
            raise ValueError("An S3 bucket is required (--bucket or MC_BUCKET)")
        store = S3ObjectStoreAdapter(
            config.bucket,
            endpoint_url=config.endpoint_url,
            region=config.region,
            profile=config.profile,
        )
    else:
        raise ValueError(f"Unknown store backend: {config.store_backend}")

    return MetadataCache(
        store=store,
        clock=clock,
        logger=logger,
        metrics=metrics,
        lifetime=config.lifetime,
    )


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a cache coroutine, turning store failures into a CLI error exit."""
    try:
        return asyncio.run(coro)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _echo_json(output: Any) -> None:
    click.echo(json.dumps(output, indent=2, sort_keys=True))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--bucket", envvar="MC_BUCKET", help="S3 bucket holding the schemas")
@click.option("--endpoint-url", help="Custom S3 endpoint (e.g. MinIO)")
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile")
@click.option("--memory", is_flag=True, help="Use a throwaway in-memory store")
@click.option("--lifetime", help="Cache lifetime in seconds, or 'inf' (default)")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    bucket: str | None,
    endpoint_url: str | None,
    region: str | None,
    profile: str | None,
    memory: bool,
    lifetime: str | None,
) -> None:
    """s3metacache - Cached schema/entry metadata over S3."""
    try:
        config = MetaCacheConfig.from_env(
            lifetime=lifetime,
            bucket=bucket,
            store_backend="memory" if memory else None,
            endpoint_url=endpoint_url,
            region=region,
            profile=profile,
        )
        if debug:
            config.log_level = "DEBUG"
        ctx.obj = create_cache(config)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


@cli.command()
@click.pass_obj
def schemas(cache: MetadataCache) -> None:
    """List schema names."""
    names = _run(cache.get_schema_names())
    _echo_json(sorted(names))


@cli.command()
@click.argument("schema")
@click.pass_obj
def entries(cache: MetadataCache, schema: str) -> None:
    """Show entry metadata of a schema."""
    metadata = _run(cache.get_entries_metadata_for_schema(schema))
    output = {
        user_id: {
            "size": info.size,
            "last_modified": info.last_modified.isoformat() if info.last_modified else None,
        }
        for user_id, info in metadata.items()
    }
    _echo_json(output)


@cli.command("create-schema")
@click.argument("schema")
@click.pass_obj
def create_schema(cache: MetadataCache, schema: str) -> None:
    """Create an empty schema."""
    _run(cache.create_schema(schema))
    click.echo(f"Created schema: {schema}")


@cli.command()
@click.argument("schema")
@click.argument("user_id")
@click.argument("file", type=click.File("rb"), default="-")
@click.pass_obj
def put(cache: MetadataCache, schema: str, user_id: str, file: BinaryIO) -> None:
    """Create or replace an entry from FILE (stdin by default)."""
    data = file.read()
    _run(cache.create_entry(schema, user_id, data))
    click.echo(f"Stored {len(data)} bytes in {schema}/{user_id}")


@cli.command()
@click.argument("schema")
@click.argument("user_id")
@click.argument("file", type=click.File("rb"), default="-")
@click.pass_obj
def append(cache: MetadataCache, schema: str, user_id: str, file: BinaryIO) -> None:
    """Append FILE (stdin by default) to an entry."""
    data = file.read()
    _run(cache.append_entry(schema, user_id, data))
    click.echo(f"Appended {len(data)} bytes to {schema}/{user_id}")


@cli.command()
@click.argument("schema")
@click.argument("user_id")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Output file path")
@click.pass_obj
def cat(cache: MetadataCache, schema: str, user_id: str, output: Path | None) -> None:
    """Write entry data to stdout or a file."""
    if output is None:
        _run(cache.get_data(schema, user_id, click.get_binary_stream("stdout")))
        return

    with output.open("wb") as sink:
        written = _run(cache.get_data(schema, user_id, sink))
    click.echo(f"Wrote {written} bytes to {output}", err=True)


@cli.command("rm-schema")
@click.argument("schema")
@click.pass_obj
def rm_schema(cache: MetadataCache, schema: str) -> None:
    """Delete a schema and all of its entries."""
    _run(cache.delete_schema(schema))
    click.echo(f"Deleted schema: {schema}")


@cli.command("rm-entry")
@click.argument("schema")
@click.argument("user_id")
@click.pass_obj
def rm_entry(cache: MetadataCache, schema: str, user_id: str) -> None:
    """Delete a single entry."""
    _run(cache.delete_entry(schema, user_id))
    click.echo(f"Deleted entry: {schema}/{user_id}")


def main() -> None:
    """Main entry point."""
    cli()
