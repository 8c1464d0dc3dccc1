from fastapi import Request

from mediavault.configs.config import Config
from mediavault.health import DependencyHealthTracker
from mediavault.services import UploadService


def get_app_config(request: Request) -> Config:
    return request.app.state.config


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def get_health_tracker(request: Request) -> DependencyHealthTracker:
    return request.app.state.health_tracker
