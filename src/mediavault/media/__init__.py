from .transcode import (
    NormalizeTranscoder,
    PassthroughTranscoder,
    Transcoder,
    build_transcoder,
    extension_from_filename,
)

__all__ = [
    "NormalizeTranscoder",
    "PassthroughTranscoder",
    "Transcoder",
    "build_transcoder",
    "extension_from_filename",
]
