"""
Pytest configuration and shared fixtures.

Every test gets its own storage root under tmp_path and its own config;
nothing reads the developer's environment or .env file.
"""

import os
from io import BytesIO
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from mediavault.configs.config import Config, MediaMode
from mediavault.main import create_app
from mediavault.services import UploadService

API_KEY = "test-api-key"

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 256


def make_config(tmp_path, **overrides) -> Config:
    values = {"storage_dir": str(tmp_path / "uploads"), "api_key": API_KEY}
    values.update(overrides)
    return Config(_env_file=None, **values)


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    color = (200, 120, 40, 128) if mode == "RGBA" else (200, 120, 40)
    if mode == "P":
        image = Image.new("RGB", (width, height), color).convert("P")
    else:
        image = Image.new(mode, (width, height), color)
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def stored_files(root) -> list:
    """Every regular file under *root*, relative paths."""
    found = []
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            found.append(os.path.relpath(os.path.join(dirpath, name), root))
    return sorted(found)


@pytest.fixture
def config(tmp_path) -> Config:
    return make_config(tmp_path)


@pytest.fixture
def passthrough_config(tmp_path) -> Config:
    return make_config(tmp_path, media_mode=MediaMode.PASSTHROUGH)


@pytest.fixture
def service(config) -> UploadService:
    svc = UploadService.from_config(config)
    svc.store.provision()
    return svc


@pytest.fixture
def storage_root(config) -> str:
    return os.path.realpath(config.storage_dir)


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    return make_image_bytes


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as test_client:
        yield test_client


@pytest.fixture
def passthrough_client(passthrough_config):
    with TestClient(create_app(passthrough_config)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict:
    return {"X-API-Key": API_KEY}
