import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict

from mediavault.error_handling import StorageIOError
from mediavault.storage.paths import PathResolver

logger = logging.getLogger("mediavault.storage")

_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_bytes(size: int) -> str:
    """Human readable size: ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    if size <= 0:
        return "0 Bytes"
    i = 0
    while size >= 1024 ** (i + 1) and i < len(_UNITS) - 1:
        i += 1
    value = round(size / (1024 ** i), 2)
    return f"{value:g} {_UNITS[i]}"


@dataclass
class FolderStats:
    files: int = 0
    size: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"files": self.files, "size": self.size}


@dataclass
class StorageStats:
    folders: Dict[str, FolderStats] = field(default_factory=dict)

    @property
    def total_files(self) -> int:
        return sum(f.files for f in self.folders.values())

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.folders.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folders": {name: stats.to_dict() for name, stats in self.folders.items()},
            "total": {
                "files": self.total_files,
                "size": self.total_size,
                "sizeFormatted": format_bytes(self.total_size),
            },
        }


class StatsAggregator:
    """
    Point-in-time file counts and byte totals per taxonomy folder.

    Reads are unsynchronized against concurrent writes/deletes; numbers are
    eventually accurate, nothing more.
    """

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    def _folder_stats(self, folder: str) -> FolderStats:
        stats = FolderStats()
        try:
            entries = os.scandir(self.resolver.folder_path(folder))
        except FileNotFoundError:
            return stats
        with entries:
            for entry in entries:
                # Hidden entries are in-flight temp files.
                if entry.name.startswith("."):
                    continue
                try:
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    size = entry.stat(follow_symlinks=False).st_size
                except FileNotFoundError:
                    continue
                stats.files += 1
                stats.size += size
        return stats

    def aggregate(self) -> StorageStats:
        result = StorageStats()
        try:
            for folder in self.resolver.taxonomy:
                result.folders[folder] = self._folder_stats(folder)
        except OSError as e:
            raise StorageIOError(f"Failed to get stats: {e}") from e
        logger.debug(f"Aggregated stats: {result.total_files} files, {result.total_size} bytes")
        return result
