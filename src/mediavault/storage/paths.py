"""
Mapping between public references and filesystem paths.

Writes only ever see taxonomy folders and generated identifiers, so the
write path is a plain join. Deletes take an untrusted reference and must be
confined to the storage root.
"""

import os
from urllib.parse import unquote, urlsplit

from mediavault.error_handling import PathSecurityError
from mediavault.storage.taxonomy import FolderTaxonomy


class PathResolver:
    def __init__(self, root: str, mount: str, taxonomy: FolderTaxonomy):
        self.root = os.path.realpath(os.path.expanduser(root))
        self.mount = mount.strip("/")
        self.prefix = f"/{self.mount}/"
        self.taxonomy = taxonomy

    # ---------- write side ---------- #
    def folder_path(self, folder: str) -> str:
        return os.path.join(self.root, folder)

    def resolve_for_write(self, folder: str, identifier: str, extension: str) -> str:
        return os.path.join(self.root, folder, f"{identifier}.{extension}")

    def public_path(self, folder: str, identifier: str, extension: str) -> str:
        return f"{self.prefix}{folder}/{identifier}.{extension}"

    # ---------- delete side ---------- #
    def _relative_reference(self, reference: str) -> str:
        parts = urlsplit(reference)
        path = parts.path if (parts.scheme or parts.netloc) else reference
        path = unquote(path)
        if path.startswith(self.prefix):
            return path[len(self.prefix):]
        if path.startswith(self.prefix.lstrip("/")):
            return path[len(self.prefix) - 1:]
        return path

    def is_within_root(self, path: str) -> bool:
        candidate = os.path.realpath(path)
        return candidate == self.root or candidate.startswith(self.root + os.sep)

    def resolve_for_delete(self, reference: str) -> str:
        """
        Map a caller-supplied reference to an absolute path inside the root.

        Raises:
            PathSecurityError: the reference is empty, escapes the root, or
                does not point at a file directly inside a taxonomy folder.
        """
        if not reference or not reference.strip():
            raise PathSecurityError("Invalid path", reference=reference)

        relative = self._relative_reference(reference.strip())
        if "\x00" in relative:
            raise PathSecurityError("Invalid path", reference=reference)
        candidate = os.path.realpath(os.path.join(self.root, relative))

        if not self.is_within_root(candidate):
            raise PathSecurityError("Invalid path", reference=reference)

        # Objects live exactly one level below a taxonomy folder.
        parts = os.path.relpath(candidate, self.root).split(os.sep)
        if len(parts) != 2 or parts[0] not in self.taxonomy or parts[1].startswith("."):
            raise PathSecurityError("Invalid path", reference=reference)

        return candidate
