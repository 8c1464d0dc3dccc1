"""
Transcoding of validated uploads into what actually gets stored.

Two modes, picked once from configuration:

- normalize: decode with Pillow, downscale anything wider than
  ``max_image_width`` (never upscale), re-encode to WebP at a fixed quality.
- passthrough: keep the bytes exactly as received; the original filename
  extension is kept only when it names the sniffed type.
"""

from __future__ import annotations

import logging
import os
import re
import struct
import warnings
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from mediavault.configs.config import Config, MediaMode
from mediavault.error_handling import TranscodeError
from mediavault.storage.base import MediaPayload

logger = logging.getLogger("mediavault.media")

# =============================================================================
# Constants
# =============================================================================

OUTPUT_FORMAT = "WEBP"
OUTPUT_EXTENSION = "webp"
OUTPUT_CONTENT_TYPE = "image/webp"

# Used when passthrough uploads arrive without a usable extension
FALLBACK_EXTENSION = "jpg"

_SAFE_EXTENSION = re.compile(r"^[a-z0-9]{1,10}$")

# Canonical extension for each sniffed type
_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/mpeg": "mpeg",
    "video/ogg": "ogv",
}

# Filename extensions accepted for each sniffed type in passthrough mode
_EXTENSION_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jpe": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "mp4": "video/mp4",
    "m4v": "video/mp4",
    "webm": "video/webm",
    "mkv": "video/webm",
    "mov": "video/quicktime",
    "qt": "video/quicktime",
    "avi": "video/x-msvideo",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "ogv": "video/ogg",
    "ogg": "video/ogg",
}

# Modes WebP can encode directly
_WEBP_MODES = {"RGB", "RGBA"}


def extension_from_filename(filename: Optional[str]) -> Optional[str]:
    """Lowercased extension of *filename* if it is short and alphanumeric."""
    if not filename:
        return None
    ext = os.path.splitext(os.path.basename(filename))[1].lstrip(".").lower()
    if ext and _SAFE_EXTENSION.match(ext):
        return ext
    return None


# =============================================================================
# Transcoders
# =============================================================================


class Transcoder(ABC):
    mode: MediaMode

    @abstractmethod
    def transcode(
        self, content: bytes, detected_type: str, original_name: Optional[str] = None
    ) -> MediaPayload:
        """Turn validated upload bytes into a payload ready for the store."""
        ...


class NormalizeTranscoder(Transcoder):
    mode = MediaMode.NORMALIZE

    def __init__(self, max_width: int = 1920, quality: int = 85):
        self.max_width = max_width
        self.quality = quality

    def _decode(self, content: bytes) -> Image.Image:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                image = Image.open(BytesIO(content))
                image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
            raise TranscodeError(f"Unsupported or oversized image: {e}") from e
        except (OSError, SyntaxError, ValueError, EOFError, IndexError, struct.error) as e:
            # Truncated or otherwise corrupt data
            raise TranscodeError(f"Corrupt image data: {e}") from e
        return image

    def _resize(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        if width <= self.max_width:
            return image
        new_height = max(1, round(height * self.max_width / width))
        logger.debug(f"Downscaling {width}x{height} -> {self.max_width}x{new_height}")
        return image.resize((self.max_width, new_height), Image.Resampling.LANCZOS)

    def _to_webp_mode(self, image: Image.Image) -> Image.Image:
        if image.mode in _WEBP_MODES:
            return image
        has_alpha = image.mode in ("LA", "PA") or (
            image.mode == "P" and "transparency" in image.info
        )
        return image.convert("RGBA" if has_alpha else "RGB")

    def transcode(
        self, content: bytes, detected_type: str, original_name: Optional[str] = None
    ) -> MediaPayload:
        image = self._decode(content)
        try:
            source_size = image.size
            # Animated inputs keep only their first frame, which load() selected.
            image = self._to_webp_mode(self._resize(image))
            buffer = BytesIO()
            image.save(buffer, format=OUTPUT_FORMAT, quality=self.quality)
        except (OSError, ValueError) as e:
            raise TranscodeError(f"Failed to encode image: {e}", client_fault=False) from e
        finally:
            image.close()

        output = buffer.getvalue()
        logger.info(
            f"Normalized {detected_type} {source_size[0]}x{source_size[1]} "
            f"({len(content)} bytes) -> webp ({len(output)} bytes)"
        )
        return MediaPayload(
            content=output,
            extension=OUTPUT_EXTENSION,
            content_type=OUTPUT_CONTENT_TYPE,
            original_name=original_name,
        )


class PassthroughTranscoder(Transcoder):
    mode = MediaMode.PASSTHROUGH

    def transcode(
        self, content: bytes, detected_type: str, original_name: Optional[str] = None
    ) -> MediaPayload:
        # The filename only picks between spellings of the sniffed type.
        extension = extension_from_filename(original_name)
        if extension is None or _EXTENSION_TYPES.get(extension) != detected_type:
            extension = _TYPE_EXTENSIONS.get(detected_type, FALLBACK_EXTENSION)
        return MediaPayload(
            content=content,
            extension=extension,
            content_type=detected_type,
            original_name=original_name,
        )


def build_transcoder(config: Config) -> Transcoder:
    if config.media_mode == MediaMode.PASSTHROUGH:
        return PassthroughTranscoder()
    return NormalizeTranscoder(max_width=config.max_image_width, quality=config.output_quality)
