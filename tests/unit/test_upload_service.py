import os

import pytest
from PIL import Image

from mediavault.error_handling import (
    InvalidFolderError,
    PathSecurityError,
    StorageIOError,
    TranscodeError,
    UnsupportedTypeError,
)
from mediavault.services import IncomingFile
from tests.conftest import stored_files

pytestmark = pytest.mark.unit


def incoming(content: bytes, name: str = "photo.jpg", content_type: str = "image/jpeg") -> IncomingFile:
    return IncomingFile(content=content, filename=name, content_type=content_type, declared_size=len(content))


class TestUpload:
    def test_normalized_upload_lands_in_folder(self, service, image_factory):
        stored = service.upload("store", incoming(image_factory(2500, 500)))

        path = service.resolver.resolve_for_delete(stored.public_path)
        with Image.open(path) as image:
            assert image.format == "WEBP"
            assert image.width == 1920
        assert stored.folder == "store"
        assert stored.size_bytes == os.path.getsize(path)

    def test_default_folder(self, service, image_factory):
        assert service.upload(None, incoming(image_factory(10, 10))).folder == "general"

    def test_invalid_folder_rejected_before_anything_else(self, service, storage_root):
        with pytest.raises(InvalidFolderError):
            service.upload("secret", incoming(b"not even an image"))
        assert stored_files(storage_root) == []

    def test_disallowed_type_never_written(self, service, storage_root):
        with pytest.raises(UnsupportedTypeError):
            service.upload("general", incoming(b"%PDF-1.7 ...", "doc.pdf", "application/pdf"))
        assert stored_files(storage_root) == []

    def test_corrupt_image_never_written(self, service, storage_root):
        with pytest.raises(TranscodeError):
            service.upload("general", incoming(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64, "x.png", "image/png"))
        assert stored_files(storage_root) == []


class TestUploadMany:
    def test_all_files_stored(self, service, image_factory, storage_root):
        files = [incoming(image_factory(10 + i, 10)) for i in range(3)]
        stored = service.upload_many("news", files)

        assert len(stored) == 3
        assert len({obj.identifier for obj in stored}) == 3
        assert len(stored_files(storage_root)) == 3

    def test_one_bad_file_aborts_batch_before_any_write(self, service, image_factory, storage_root):
        files = [incoming(image_factory(10, 10)), incoming(b"plain text", "notes.txt", "text/plain")]
        with pytest.raises(UnsupportedTypeError) as exc_info:
            service.upload_many("news", files)
        assert exc_info.value.message.startswith("File 1 (notes.txt)")
        assert stored_files(storage_root) == []

    def test_failed_write_rolls_back_earlier_writes(self, service, image_factory, storage_root, monkeypatch):
        real_write = service.store.write
        calls = []

        def flaky_write(folder, payload):
            calls.append(folder)
            if len(calls) == 2:
                raise StorageIOError("disk full")
            return real_write(folder, payload)

        monkeypatch.setattr(service.store, "write", flaky_write)
        files = [incoming(image_factory(10, 10)) for _ in range(3)]
        with pytest.raises(StorageIOError):
            service.upload_many("news", files)
        assert stored_files(storage_root) == []

    def test_rollback_failure_does_not_mask_write_error(self, service, image_factory, storage_root, monkeypatch):
        real_write = service.store.write
        real_remove = service.store.remove
        calls = []
        removed = []

        def flaky_write(folder, payload):
            calls.append(folder)
            if len(calls) == 3:
                raise StorageIOError("disk full")
            return real_write(folder, payload)

        def stuck_remove(path):
            removed.append(path)
            if len(removed) == 1:
                raise StorageIOError("permission denied")
            return real_remove(path)

        monkeypatch.setattr(service.store, "write", flaky_write)
        monkeypatch.setattr(service.store, "remove", stuck_remove)
        files = [incoming(image_factory(10, 10)) for _ in range(3)]
        with pytest.raises(StorageIOError) as exc_info:
            service.upload_many("news", files)
        assert exc_info.value.message == "disk full"
        assert len(removed) == 2
        assert stored_files(storage_root) == [os.path.relpath(removed[0], storage_root)]


class TestDelete:
    def test_delete_then_delete_again(self, service, image_factory):
        stored = service.upload("general", incoming(image_factory(10, 10)))
        assert service.delete(stored.public_path) is True
        assert service.delete(stored.public_path) is False
        assert service.stats().folders["general"].files == 0

    def test_escape_attempt_touches_nothing(self, service, tmp_path):
        victim = tmp_path / "victim.txt"
        victim.write_bytes(b"keep")
        with pytest.raises(PathSecurityError):
            service.delete("/uploads/../victim.txt")
        assert victim.exists()
