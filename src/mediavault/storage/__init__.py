from .base import BaseStore, MediaPayload, StoredObject
from .identifiers import generate_identifier
from .local import LocalStore
from .paths import PathResolver
from .stats import StatsAggregator, StorageStats, format_bytes
from .taxonomy import FolderTaxonomy

__all__ = [
    "BaseStore",
    "FolderTaxonomy",
    "LocalStore",
    "MediaPayload",
    "PathResolver",
    "StatsAggregator",
    "StorageStats",
    "StoredObject",
    "format_bytes",
    "generate_identifier",
]
