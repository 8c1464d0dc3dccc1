"""Error taxonomy and HTTP error rendering."""

from .exceptions import (
    AuthError,
    InvalidFolderError,
    MediaVaultError,
    MissingFileError,
    PathSecurityError,
    PayloadTooLargeError,
    StorageIOError,
    TranscodeError,
    UnsupportedTypeError,
    ValidationError,
)
from .handlers import register_exception_handlers

__all__ = [
    "AuthError",
    "InvalidFolderError",
    "MediaVaultError",
    "MissingFileError",
    "PathSecurityError",
    "PayloadTooLargeError",
    "StorageIOError",
    "TranscodeError",
    "UnsupportedTypeError",
    "ValidationError",
    "register_exception_handlers",
]
