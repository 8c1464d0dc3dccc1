"""File validation for uploads: type allow-list, size ceiling, content sniffing."""

import logging
from dataclasses import dataclass
from typing import Optional

from mediavault.configs.config import Config
from mediavault.error_handling import (
    MissingFileError,
    PayloadTooLargeError,
    UnsupportedTypeError,
    ValidationError,
)

logger = logging.getLogger("mediavault.validation")

# Declared types that carry no information and are ignored.
GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

# Browsers and clients disagree on a few names.
TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
    "image/x-ms-bmp": "image/bmp",
    "video/x-matroska": "video/webm",
    "video/avi": "video/x-msvideo",
}

# Magic number signatures checked at offset 0
SIGNATURES = [
    ("image/jpeg", b"\xff\xd8\xff"),
    ("image/png", b"\x89PNG\r\n\x1a\n"),
    ("image/gif", b"GIF87a"),
    ("image/gif", b"GIF89a"),
    ("image/bmp", b"BM"),
    ("image/tiff", b"II*\x00"),
    ("image/tiff", b"MM\x00*"),
    ("video/webm", b"\x1a\x45\xdf\xa3"),  # EBML (WebM / Matroska)
    ("video/mpeg", b"\x00\x00\x01\xba"),
    ("video/mpeg", b"\x00\x00\x01\xb3"),
    ("video/ogg", b"OggS"),
]

# ISO base media brands (bytes 8..12 after "ftyp")
QUICKTIME_BRANDS = {b"qt  "}
HEIC_BRANDS = {b"heic", b"heix", b"mif1", b"msf1"}

MIN_SNIFF_BYTES = 12


@dataclass(frozen=True)
class ValidationResult:
    detected_type: str
    declared_type: Optional[str]
    size: int


def normalize_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    base = content_type.split(";", 1)[0].strip().lower()
    return TYPE_ALIASES.get(base, base)


def detect_type(content: bytes) -> Optional[str]:
    """
    Detect a MIME type from magic numbers.

    Returns:
        The detected MIME type, or None if the content is not recognised.
    """
    if len(content) >= MIN_SNIFF_BYTES:
        if content[:4] == b"RIFF":
            kind = content[8:12]
            if kind == b"WEBP":
                return "image/webp"
            if kind == b"AVI ":
                return "video/x-msvideo"
            return None
        if content[4:8] == b"ftyp":
            brand = content[8:12]
            if brand in QUICKTIME_BRANDS:
                return "video/quicktime"
            if brand in HEIC_BRANDS:
                return "image/heic"
            return "video/mp4"

    for mime_type, signature in SIGNATURES:
        if content.startswith(signature):
            return mime_type
    return None


class MediaValidator:
    """Checks an upload against the configured media policy."""

    def __init__(self, config: Config):
        self.allowed_types = config.allowed_mime_types
        self.max_size_bytes = config.max_upload_bytes
        self.max_files = config.max_files_per_upload

    @property
    def max_size_mb(self) -> float:
        return self.max_size_bytes / 1024 / 1024

    def check_size(self, size: Optional[int]) -> None:
        if size is not None and size > self.max_size_bytes:
            raise PayloadTooLargeError(
                f"File size ({size / 1024 / 1024:.1f} MB) exceeds "
                f"maximum allowed size ({self.max_size_mb:g} MB)"
            )

    def validate(
        self,
        content_type: Optional[str],
        declared_size: Optional[int],
        content: bytes,
    ) -> ValidationResult:
        """
        Validate one upload before anything is decoded or written.

        Args:
            content_type: Client-declared Content-Type of the part
            declared_size: Size the framework reported for the part, if known
            content: The uploaded bytes

        Returns:
            ValidationResult with the sniffed type

        Raises:
            PayloadTooLargeError: payload over the configured ceiling
            UnsupportedTypeError: declared or sniffed type outside the allow-list
        """
        # Declared size first so oversized parts fail without further work.
        self.check_size(declared_size)
        if not content:
            raise ValidationError("File is empty")
        self.check_size(len(content))

        declared = normalize_type(content_type)
        if declared not in GENERIC_TYPES and declared not in self.allowed_types:
            raise UnsupportedTypeError(f"File type '{declared}' is not allowed")

        detected = detect_type(content)
        if detected is None:
            raise UnsupportedTypeError("Could not determine file type from content")
        if detected not in self.allowed_types:
            raise UnsupportedTypeError(f"File type '{detected}' is not allowed")

        if declared not in GENERIC_TYPES and declared != detected:
            logger.info(f"Declared type '{declared}' differs from content '{detected}', using content")

        return ValidationResult(detected_type=detected, declared_type=declared or None, size=len(content))

    def validate_batch(self, count: int) -> None:
        if count == 0:
            raise MissingFileError("No files provided")
        if count > self.max_files:
            raise ValidationError(
                f"Too many files. Maximum {self.max_files} files allowed per upload"
            )
