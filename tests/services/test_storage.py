"""
Tests for local media storage
"""

import io

import pytest

from services.storage import StorageError, StorageLimitError, clean_file_name


def test_clean_file_name():
    assert clean_file_name("informe final (v2).pdf") == "informe_final__v2_.pdf"
    assert clean_file_name("") == "archivo"


@pytest.mark.asyncio
async def test_save_and_delete(storage):
    stored = await storage.save("cases/abc", "foto.png", io.BytesIO(b"12345"))

    assert stored.size == 5
    assert stored.path.startswith("cases/abc/")
    assert stored.path.endswith("__foto.png")
    assert stored.url == f"http://testserver/media/{stored.path}"
    assert storage.path_for(stored.path).read_bytes() == b"12345"

    await storage.delete(stored.path)
    assert not storage.path_for(stored.path).exists()
    await storage.delete(None)


@pytest.mark.asyncio
async def test_oversized_upload_leaves_no_file(storage):
    with pytest.raises(StorageLimitError) as exc_info:
        await storage.save("resources/General", "big.bin", io.BytesIO(b"x" * 11), max_bytes=10)

    assert exc_info.value.limit == 10
    assert list((storage.base_dir / "resources" / "General").iterdir()) == []


def test_paths_cannot_escape_base_dir(storage):
    with pytest.raises(StorageError):
        storage.path_for("../../etc/passwd")
