from .uploads import IncomingFile, UploadService

__all__ = ["IncomingFile", "UploadService"]
