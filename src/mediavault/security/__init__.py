"""Upload validation and API-key authentication."""

from .auth import key_matches, require_api_key
from .file_validator import MediaValidator, ValidationResult, detect_type

__all__ = ["MediaValidator", "ValidationResult", "detect_type", "key_matches", "require_api_key"]
