import functools
import re
import sys
from enum import StrEnum
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

load_dotenv()


class LogLevel(StrEnum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class MediaMode(StrEnum):
    NORMALIZE = "normalize"  # image-only, re-encode to WebP
    PASSTHROUGH = "passthrough"  # images + videos, stored byte-for-byte


DEFAULT_API_KEY = "media-server-secret-key"

IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
)
VIDEO_TYPES = (
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/x-msvideo",
)

_MODE_MAX_SIZE_MB = {MediaMode.NORMALIZE: 10, MediaMode.PASSTHROUGH: 50}
_FOLDER_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config(BaseSettings):
    # Authentication
    api_key: str = DEFAULT_API_KEY  # Shared secret for upload/delete/stats

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 4000
    log_level: LogLevel = LogLevel.INFO

    # Storage configuration
    storage_dir: str = "/data/uploads"  # Railway-style persistent volume
    public_mount: str = "uploads"  # URL prefix stored files are served under
    storage_folders: str = "avatars,news,store,sliders,general"
    default_folder: str = "general"
    cache_max_age: int = 2592000  # 30 days

    # Media policy
    media_mode: MediaMode = MediaMode.NORMALIZE
    max_file_size_mb: Optional[int] = None  # None -> mode default
    allowed_types: str = ""  # Empty -> mode default
    max_files_per_upload: int = 10
    max_image_width: int = 1920
    output_quality: int = 85

    @field_validator("log_level", "media_mode", mode="before")
    @classmethod
    def lowercase_enum(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("public_mount", mode="after")
    @classmethod
    def validate_public_mount(cls, v: str) -> str:
        mount = v.strip("/")
        if not mount or not _FOLDER_NAME.match(mount):
            raise ValueError(f"public_mount must be a single path segment, got '{v}'")
        return mount

    @field_validator("storage_folders", mode="after")
    @classmethod
    def validate_storage_folders(cls, v: str) -> str:
        folders = _split_csv(v)
        if not folders:
            raise ValueError("storage_folders must name at least one folder")
        for name in folders:
            if not _FOLDER_NAME.match(name):
                raise ValueError(f"Invalid folder name '{name}' in storage_folders")
        return ",".join(folders)

    @field_validator("output_quality", mode="after")
    @classmethod
    def validate_output_quality(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"output_quality must be between 1 and 100, got {v}")
        return v

    @field_validator("max_image_width", "max_files_per_upload", mode="after")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"value must be positive, got {v}")
        return v

    @property
    def folders(self) -> List[str]:
        folders = _split_csv(self.storage_folders)
        if self.media_mode == MediaMode.PASSTHROUGH and "videos" not in folders:
            folders.append("videos")
        return folders

    @property
    def allowed_mime_types(self) -> frozenset:
        if self.allowed_types:
            return frozenset(t.lower() for t in _split_csv(self.allowed_types))
        if self.media_mode == MediaMode.PASSTHROUGH:
            return frozenset(IMAGE_TYPES + VIDEO_TYPES)
        return frozenset(IMAGE_TYPES)

    @property
    def max_upload_bytes(self) -> int:
        size_mb = self.max_file_size_mb or _MODE_MAX_SIZE_MB[self.media_mode]
        return size_mb * 1024 * 1024

    @property
    def uses_default_api_key(self) -> bool:
        return self.api_key == DEFAULT_API_KEY

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "frozen": True,
    }


@functools.lru_cache(maxsize=1)
def get_config() -> Config:
    try:
        return Config()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
