from contextlib import asynccontextmanager
import asyncio
import logging
import os
import signal
import sys
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import uvicorn

from mediavault.configs.config import Config, get_config
from mediavault.error_handling import register_exception_handlers
from mediavault.health import DependencyHealthTracker, DependencyType, check_storage
from mediavault.routes import health, media
from mediavault.services import UploadService

logger = logging.getLogger("mediavault")

STATIC_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jpe": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/webm",
    ".mov": "video/quicktime",
    ".qt": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mpeg": "video/mpeg",
    ".mpg": "video/mpeg",
    ".ogv": "video/ogg",
    ".ogg": "video/ogg",
}


class CachedStaticFiles(StaticFiles):
    """Static files with long-lived cache headers; stored objects never change."""

    def __init__(self, *args, max_age: int = 2592000, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_age = max_age

    def file_response(self, full_path, stat_result, scope, status_code=200):
        response = super().file_response(full_path, stat_result, scope, status_code)
        content_type = STATIC_CONTENT_TYPES.get(os.path.splitext(str(full_path))[1].lower())
        if content_type:
            response.headers["Content-Type"] = content_type
        else:
            # Never let the browser render anything we did not store as media.
            response.headers["Content-Type"] = "application/octet-stream"
            response.headers["Content-Disposition"] = "attachment"
        response.headers["Cache-Control"] = f"public, max-age={self.max_age}"
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response


def handle_shutdown_signal(signum, frame):
    """Handle shutdown signals"""
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    sys.exit(0)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: Config = app.state.config
    tracker: DependencyHealthTracker = app.state.health_tracker

    tracker.register_dependency("storage", DependencyType.STORAGE, {"root": config.storage_dir})
    check_storage(tracker, "storage", config.storage_dir)

    if config.uses_default_api_key:
        logger.warning("API_KEY is not set; using the built-in default key")
    logger.info(
        f"Media server ready: mode={config.media_mode.value}, storage={config.storage_dir}, "
        f"max upload={config.max_upload_bytes // (1024 * 1024)} MB"
    )
    yield


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the application.

    Storage folders are provisioned here, before the static mount is created;
    an unwritable storage root aborts startup.
    """
    config = config or get_config()
    service = UploadService.from_config(config)
    service.store.provision()

    app = FastAPI(
        title="Media Server",
        description="Upload, normalize, store and serve media files",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.upload_service = service
    app.state.health_tracker = DependencyHealthTracker()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.mount(
        f"/{config.public_mount}",
        CachedStaticFiles(directory=service.resolver.root, max_age=config.cache_max_age),
        name="uploads",
    )
    app.include_router(health.router)
    app.include_router(media.router)
    return app


async def main():
    """
    Main entry point for the media server.
    """
    config = get_config()
    logging.basicConfig(
        level=config.log_level.value.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Starting media server...")
    signal.signal(signal.SIGINT, handle_shutdown_signal)
    signal.signal(signal.SIGTERM, handle_shutdown_signal)

    app = create_app(config)
    server_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.value,
        access_log=True,
    )
    server = uvicorn.Server(server_config)

    try:
        await server.serve()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        logger.error(f"Server error: {str(e)}")
        raise


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
