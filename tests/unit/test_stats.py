import os

import pytest

from mediavault.error_handling import StorageIOError
from mediavault.storage import MediaPayload, format_bytes
from mediavault.storage import stats as stats_module

pytestmark = pytest.mark.unit


def write(service, folder: str, size: int):
    return service.store.write(
        folder, MediaPayload(content=b"z" * size, extension="webp", content_type="image/webp")
    )


class TestStatsAggregator:
    def test_empty_store(self, service):
        stats = service.stats()
        assert set(stats.folders) == {"avatars", "news", "store", "sliders", "general"}
        assert stats.total_files == 0
        assert stats.to_dict()["total"] == {"files": 0, "size": 0, "sizeFormatted": "0 Bytes"}

    def test_counts_and_sizes_are_exact(self, service):
        for size in (100, 250, 1024):
            write(service, "news", size)
        write(service, "avatars", 7)

        data = service.stats().to_dict()
        assert data["folders"]["news"] == {"files": 3, "size": 1374}
        assert data["folders"]["avatars"] == {"files": 1, "size": 7}
        assert data["folders"]["general"] == {"files": 0, "size": 0}
        assert data["total"]["files"] == sum(f["files"] for f in data["folders"].values()) == 4
        assert data["total"]["size"] == sum(f["size"] for f in data["folders"].values()) == 1381

    def test_missing_folder_counts_as_zero(self, service, storage_root):
        os.rmdir(os.path.join(storage_root, "sliders"))
        assert service.stats().folders["sliders"].files == 0

    def test_hidden_entries_and_directories_ignored(self, service, storage_root):
        general = os.path.join(storage_root, "general")
        with open(os.path.join(general, ".inflight.part"), "wb") as f:
            f.write(b"partial")
        os.mkdir(os.path.join(general, "subdir"))
        write(service, "general", 10)

        assert service.stats().folders["general"].to_dict() == {"files": 1, "size": 10}

    def test_unreadable_storage_is_an_io_error(self, service, monkeypatch):
        def denied(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr(stats_module.os, "scandir", denied)
        with pytest.raises(StorageIOError):
            service.stats()


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (2 * 1024 * 1024, "2 MB"),
        (int(1.25 * 1024 ** 3), "1.25 GB"),
        (1234567, "1.18 MB"),
    ],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected
