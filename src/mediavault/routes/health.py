import logging
from typing import Annotated

from fastapi import Depends
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from starlette.concurrency import run_in_threadpool

from mediavault.configs.config import Config
from mediavault.deps import get_app_config, get_health_tracker
from mediavault.health import DependencyHealthTracker, check_storage

logger = logging.getLogger("mediavault.health")
router = APIRouter(
    prefix="/health",
    tags=["health"],
)

STORAGE_DEPENDENCY = "storage"


@router.get("")
async def health_check(
    config: Annotated[Config, Depends(get_app_config)],
    tracker: Annotated[DependencyHealthTracker, Depends(get_health_tracker)],
):
    """
    Liveness check. Always answers; reports whether the storage volume is mounted.
    """
    mounted = await run_in_threadpool(check_storage, tracker, STORAGE_DEPENDENCY, config.storage_dir)
    return {
        "status": "ok" if mounted else "degraded",
        "storageMounted": mounted,
        "uptimeSeconds": round(tracker.uptime_seconds, 3),
    }


@router.get("/ready")
async def readiness_check(
    config: Annotated[Config, Depends(get_app_config)],
    tracker: Annotated[DependencyHealthTracker, Depends(get_health_tracker)],
):
    """Readiness check: 503 until the storage dependency is healthy."""
    await run_in_threadpool(check_storage, tracker, STORAGE_DEPENDENCY, config.storage_dir)
    ready = tracker.is_application_healthy()
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"ready": ready, "dependencies": tracker.get_all_dependencies()},
    )
