from dataclasses import dataclass
from typing import Optional, Tuple

from mediavault.configs.config import Config
from mediavault.error_handling import InvalidFolderError


@dataclass(frozen=True)
class FolderTaxonomy:
    """The fixed set of folders an object may be filed under."""

    folders: Tuple[str, ...]
    default: str

    def __post_init__(self):
        if not self.folders:
            raise ValueError("Folder taxonomy cannot be empty")
        if self.default not in self.folders:
            raise ValueError(
                f"Default folder '{self.default}' is not one of: {', '.join(self.folders)}"
            )

    @classmethod
    def from_config(cls, config: Config) -> "FolderTaxonomy":
        return cls(folders=tuple(config.folders), default=config.default_folder)

    def is_valid(self, name: str) -> bool:
        return name in self.folders

    def resolve(self, name: Optional[str]) -> str:
        """Return *name*, or the default when omitted; reject anything else."""
        if name is None or not name.strip():
            return self.default
        if not self.is_valid(name):
            raise InvalidFolderError(f"Invalid folder. Use: {', '.join(self.folders)}")
        return name

    def __iter__(self):
        return iter(self.folders)

    def __contains__(self, name: object) -> bool:
        return name in self.folders
