"""
Error taxonomy for the media service.

Every failure the upload, delete and stats paths can produce is one of these.
Each carries the HTTP status it maps to, so the route layer never decides
status codes itself.
"""

from typing import Optional


class MediaVaultError(Exception):
    """Base class for all service errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(MediaVaultError):
    """Caller supplied something the policy does not accept."""

    status_code = 400


class MissingFileError(ValidationError):
    pass


class InvalidFolderError(ValidationError):
    pass


class UnsupportedTypeError(ValidationError):
    pass


class PayloadTooLargeError(ValidationError):
    pass


class AuthError(MediaVaultError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class PathSecurityError(MediaVaultError):
    """A user-supplied reference tried to leave the storage root."""

    status_code = 400

    def __init__(self, message: str = "Invalid path", reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


class TranscodeError(MediaVaultError):
    """
    Media could not be decoded or re-encoded.

    ``client_fault`` separates corrupt/unsupported input (400) from an
    encoder failing on input it accepted (500).
    """

    def __init__(self, message: str, client_fault: bool = True):
        super().__init__(message, status_code=400 if client_fault else 500)
        self.client_fault = client_fault


class StorageIOError(MediaVaultError):
    """Disk full, permission denied, missing mount and friends."""

    status_code = 500
