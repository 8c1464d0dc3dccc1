# mediavault/storage/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MediaPayload:
    """Bytes ready to persist, plus what the pipeline learned about them."""

    content: bytes
    extension: str
    content_type: str
    original_name: Optional[str] = None


@dataclass(frozen=True)
class StoredObject:
    folder: str
    identifier: str
    extension: str
    size_bytes: int
    public_path: str
    content_type: str
    original_name: Optional[str] = None

    @property
    def filename(self) -> str:
        return f"{self.identifier}.{self.extension}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.public_path,
            "filename": self.filename,
            "folder": self.folder,
            "size": self.size_bytes,
            "type": self.content_type,
            "originalName": self.original_name,
        }


class BaseStore(ABC):
    """
    Minimal contract a storage back-end must fulfil.
    Every method is synchronous on purpose; the HTTP layer pushes them
    onto a worker thread.
    """

    @abstractmethod
    def provision(self) -> None:
        """Create the root and every taxonomy folder. Called once at startup."""
        ...

    @abstractmethod
    def write(self, folder: str, payload: MediaPayload) -> StoredObject:
        """Persist *payload* under a fresh identifier in *folder*."""
        ...

    @abstractmethod
    def remove(self, path: str) -> bool:
        """Remove an already-confined path. Returns False if it was absent."""
        ...
