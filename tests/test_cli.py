"""
Tests for the s3metacache command line interface.
"""

import json

import pytest
from click.testing import CliRunner

from s3metacache.adapters import (
    MemoryObjectStoreAdapter,
    NoopMetricsAdapter,
    S3ObjectStoreAdapter,
    StdLoggerAdapter,
    UtcClockAdapter,
)
from s3metacache.app.cli.main import cli, create_cache
from s3metacache.core import MetaCacheConfig, MetadataCache


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def memory_cache():
    return MetadataCache(
        store=MemoryObjectStoreAdapter(),
        clock=UtcClockAdapter(),
        logger=StdLoggerAdapter(name="s3metacache.test_cli", level="WARNING"),
        metrics=NoopMetricsAdapter(),
    )


@pytest.fixture
def wired_cache(monkeypatch, memory_cache):
    """Make the CLI build its commands on the in-memory cache."""
    monkeypatch.delenv("MC_CACHE_LIFETIME", raising=False)
    monkeypatch.setattr("s3metacache.app.cli.main.create_cache", lambda config: memory_cache)
    return memory_cache


class TestCommands:
    """Commands against an in-memory cache."""

    def test_schema_lifecycle(self, runner, wired_cache):
        result = runner.invoke(cli, ["create-schema", "users"])
        assert result.exit_code == 0, result.output
        assert "Created schema: users" in result.output

        result = runner.invoke(cli, ["schemas"])
        assert result.exit_code == 0
        assert json.loads(result.output) == ["users"]

        result = runner.invoke(cli, ["rm-schema", "users"])
        assert result.exit_code == 0

        result = runner.invoke(cli, ["schemas"])
        assert json.loads(result.output) == []

    def test_entry_lifecycle(self, runner, wired_cache, tmp_path):
        runner.invoke(cli, ["create-schema", "users"])

        result = runner.invoke(cli, ["put", "users", "u1"], input=b"hello")
        assert result.exit_code == 0, result.output
        assert "Stored 5 bytes in users/u1" in result.output

        result = runner.invoke(cli, ["append", "users", "u1"], input=b" world")
        assert result.exit_code == 0

        result = runner.invoke(cli, ["entries", "users"])
        entries = json.loads(result.output)
        assert entries["u1"]["size"] == 11
        assert entries["u1"]["last_modified"] is not None

        output = tmp_path / "u1.bin"
        result = runner.invoke(cli, ["cat", "users", "u1", "-o", str(output)])
        assert result.exit_code == 0
        assert output.read_bytes() == b"hello world"

        result = runner.invoke(cli, ["rm-entry", "users", "u1"])
        assert result.exit_code == 0
        result = runner.invoke(cli, ["entries", "users"])
        assert json.loads(result.output) == {}

    def test_cat_to_stdout(self, runner, wired_cache):
        runner.invoke(cli, ["create-schema", "users"])
        runner.invoke(cli, ["put", "users", "u1"], input=b"raw-bytes")

        result = runner.invoke(cli, ["cat", "users", "u1"])

        assert result.exit_code == 0
        assert result.stdout_bytes == b"raw-bytes"

    def test_store_error_exits_with_message(self, runner, wired_cache):
        result = runner.invoke(cli, ["rm-entry", "users", "ghost"])

        assert result.exit_code == 1
        assert "Error: Schema not found: users" in result.output


class TestCreateCache:
    """Wiring from configuration."""

    def test_memory_backend(self):
        cache = create_cache(MetaCacheConfig(store_backend="memory", metrics_type="noop"))

        assert isinstance(cache.store, MemoryObjectStoreAdapter)
        assert cache.lifetime is None

    def test_s3_backend(self):
        config = MetaCacheConfig(bucket="schemas", region="us-east-1")

        cache = create_cache(config)

        assert isinstance(cache.store, S3ObjectStoreAdapter)
        assert cache.store.bucket == "schemas"

    def test_s3_backend_requires_bucket(self):
        with pytest.raises(ValueError, match="bucket"):
            create_cache(MetaCacheConfig(store_backend="s3"))

    def test_unknown_metrics_backend(self):
        with pytest.raises(ValueError, match="metrics"):
            create_cache(MetaCacheConfig(store_backend="memory", metrics_type="statsd"))

    def test_cli_without_bucket_is_usage_error(self, runner, monkeypatch):
        monkeypatch.delenv("MC_BUCKET", raising=False)
        monkeypatch.delenv("MC_STORE", raising=False)

        result = runner.invoke(cli, ["schemas"])

        assert result.exit_code == 2
        assert "bucket is required" in result.output

    def test_cli_memory_flag(self, runner, monkeypatch):
        monkeypatch.delenv("MC_CACHE_LIFETIME", raising=False)
        monkeypatch.setenv("MC_LOG_LEVEL", "WARNING")

        result = runner.invoke(cli, ["--memory", "--lifetime", "60", "schemas"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == []
