"""Core domain for s3metacache."""

from .cache import MetadataCache
from .config import MetaCacheConfig, parse_lifetime
from .errors import MetaCacheError, StoreError
from .models import EntryInfo, EntryMetadataEntry, SchemaNameSet, is_fresh

__all__ = [
    "EntryInfo",
    "EntryMetadataEntry",
    "MetaCacheConfig",
    "MetaCacheError",
    "MetadataCache",
    "SchemaNameSet",
    "StoreError",
    "is_fresh",
    "parse_lifetime",
]
