"""s3metacache - Metadata cache in front of an S3 schema/entry store."""

try:
    from ._version import version as __version__
except ImportError:
    # Package is not installed, so version is not available
    __version__ = "0.0.0+unknown"

from .core import (
    EntryInfo,
    EntryMetadataEntry,
    MetaCacheConfig,
    MetaCacheError,
    MetadataCache,
    SchemaNameSet,
    StoreError,
)

__all__ = [
    "EntryInfo",
    "EntryMetadataEntry",
    "MetaCacheConfig",
    "MetaCacheError",
    "MetadataCache",
    "SchemaNameSet",
    "StoreError",
    "__version__",
]
