import os

import pytest

from mediavault.error_handling import StorageIOError
from mediavault.storage import MediaPayload
from mediavault.storage import local as local_module
from tests.conftest import stored_files

pytestmark = pytest.mark.unit


def payload(content: bytes = b"stored-bytes", extension: str = "webp") -> MediaPayload:
    return MediaPayload(content=content, extension=extension, content_type="image/webp", original_name="a.png")


class TestProvision:
    def test_creates_every_taxonomy_folder(self, service, storage_root):
        for folder in ("avatars", "news", "store", "sliders", "general"):
            assert os.path.isdir(os.path.join(storage_root, folder))

    def test_is_idempotent(self, service):
        service.store.provision()
        service.store.provision()

    def test_unwritable_root_is_fatal(self, service, monkeypatch):
        monkeypatch.setattr(local_module.os, "access", lambda path, mode: False)
        with pytest.raises(StorageIOError):
            service.store.provision()


class TestWrite:
    def test_public_path_resolves_to_written_file(self, service):
        stored = service.store.write("news", payload(b"x" * 1234))

        path = service.resolver.resolve_for_delete(stored.public_path)
        assert os.path.isfile(path)
        assert os.path.getsize(path) == stored.size_bytes == 1234
        assert stored.public_path == f"/uploads/news/{stored.identifier}.webp"
        assert stored.filename == f"{stored.identifier}.webp"

    def test_to_dict_shape(self, service):
        stored = service.store.write("general", payload())
        assert stored.to_dict() == {
            "url": stored.public_path,
            "filename": stored.filename,
            "folder": "general",
            "size": len(b"stored-bytes"),
            "type": "image/webp",
            "originalName": "a.png",
        }

    def test_no_temp_files_left_behind(self, service, storage_root):
        stored = service.store.write("general", payload())
        assert stored_files(storage_root) == [os.path.join("general", stored.filename)]

    def test_two_writes_get_distinct_identifiers(self, service):
        first = service.store.write("general", payload())
        second = service.store.write("general", payload())
        assert first.identifier != second.identifier

    def test_failed_rename_leaves_nothing(self, service, storage_root, monkeypatch):
        def failing_replace(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(local_module.os, "replace", failing_replace)
        with pytest.raises(StorageIOError):
            service.store.write("general", payload())
        assert stored_files(storage_root) == []

    def test_identifier_collision_regenerates(self, service, monkeypatch):
        identifiers = iter(["a" * 32, "a" * 32, "b" * 32])
        monkeypatch.setattr(local_module, "generate_identifier", lambda: next(identifiers))

        assert service.store.write("general", payload()).identifier == "a" * 32
        assert service.store.write("general", payload()).identifier == "b" * 32


class TestRemove:
    def test_remove_existing(self, service):
        stored = service.store.write("general", payload())
        path = service.resolver.resolve_for_write("general", stored.identifier, "webp")
        assert service.store.remove(path) is True
        assert not os.path.exists(path)

    def test_remove_missing_is_idempotent(self, service):
        path = service.resolver.resolve_for_write("general", "0" * 32, "webp")
        assert service.store.remove(path) is False
        assert service.store.remove(path) is False
