# mediavault/storage/local.py
import logging
import os
import tempfile

from mediavault.error_handling import StorageIOError
from mediavault.storage.base import BaseStore, MediaPayload, StoredObject
from mediavault.storage.identifiers import generate_identifier
from mediavault.storage.paths import PathResolver

logger = logging.getLogger("mediavault.storage")

_MAX_IDENTIFIER_ATTEMPTS = 3


class LocalStore(BaseStore):
    """
    Stores files under <root>/<folder>/<identifier>.<extension>.

    Writes go to a hidden temp file in the destination folder and are
    renamed into place, so a concurrent static read sees either nothing
    or the complete file.
    """

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver
        self.root = resolver.root

    # ---------- helpers ---------- #
    def _unused_identifier(self, folder: str, extension: str) -> str:
        for _ in range(_MAX_IDENTIFIER_ATTEMPTS):
            identifier = generate_identifier()
            if not os.path.exists(self.resolver.resolve_for_write(folder, identifier, extension)):
                return identifier
            logger.warning(f"Identifier collision in '{folder}', regenerating")
        raise StorageIOError("Could not allocate a unique identifier")

    # ---------- API ---------- #
    def provision(self) -> None:
        try:
            os.makedirs(self.root, exist_ok=True)
            for folder in self.resolver.taxonomy:
                os.makedirs(self.resolver.folder_path(folder), exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Cannot provision storage root {self.root}: {e}") from e
        if not os.access(self.root, os.W_OK):
            raise StorageIOError(f"Storage root {self.root} is not writable")
        logger.info(f"Storage provisioned at {self.root} ({', '.join(self.resolver.taxonomy)})")

    def write(self, folder: str, payload: MediaPayload) -> StoredObject:
        identifier = self._unused_identifier(folder, payload.extension)
        destination = self.resolver.resolve_for_write(folder, identifier, payload.extension)
        folder_dir = os.path.dirname(destination)

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=folder_dir, prefix=".", suffix=".part")
            with os.fdopen(fd, "wb") as out:
                out.write(payload.content)
                out.flush()
                os.fsync(out.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, destination)
            tmp_path = None
            size = os.stat(destination).st_size
        except OSError as e:
            raise StorageIOError(f"Failed to store file: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass

        if size != len(payload.content):
            self.remove(destination)
            raise StorageIOError(
                f"Short write: expected {len(payload.content)} bytes, found {size}"
            )

        logger.info(f"Stored {folder}/{identifier}.{payload.extension} ({size} bytes)")
        return StoredObject(
            folder=folder,
            identifier=identifier,
            extension=payload.extension,
            size_bytes=size,
            public_path=self.resolver.public_path(folder, identifier, payload.extension),
            content_type=payload.content_type,
            original_name=payload.original_name,
        )

    def remove(self, path: str) -> bool:
        try:
            os.unlink(path)
        except FileNotFoundError:
            return False
        except IsADirectoryError as e:
            raise StorageIOError(f"Refusing to remove directory {path}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to delete file: {e}") from e
        logger.info(f"Removed {os.path.relpath(path, self.root)}")
        return True
