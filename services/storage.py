"""Local object storage for uploaded attachments and resources."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from fastapi.concurrency import run_in_threadpool
from loguru import logger

from config import settings

_CHUNK_SIZE = 1024 * 1024
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


class StorageError(Exception):
    """Base class for storage failures."""


class StorageLimitError(StorageError):
    def __init__(self, limit: int, received: int) -> None:
        super().__init__(f"El archivo supera el tamaño máximo de {limit // (1024 * 1024)}MB")
        self.limit = limit
        self.received = received


@dataclass
class StoredFile:
    path: str
    url: str
    size: int


def clean_file_name(file_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", file_name or "archivo")


class MediaStorage:
    """Files live under ``base_dir`` and are served from ``base_url``."""

    def __init__(self, base_dir: Optional[Path] = None, base_url: Optional[str] = None) -> None:
        self.base_dir = Path(base_dir or settings.media_root_path).expanduser().resolve()
        self.base_url = (base_url or settings.media_base_url).rstrip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def make_path(self, folder: str, file_name: str) -> str:
        """Timestamped relative path, e.g. ``cases/<id>/1700000000000__foto.png``."""
        timestamp = int(time.time() * 1000)
        return f"{folder.strip('/')}/{timestamp}__{clean_file_name(file_name)}"

    def path_for(self, relative: str) -> Path:
        candidate = (self.base_dir / relative.lstrip("/")).resolve()
        try:
            candidate.relative_to(self.base_dir)
        except ValueError as exc:
            raise StorageError("La ruta indicada sale del directorio de almacenamiento") from exc
        return candidate

    def url_for(self, relative: str) -> str:
        return f"{self.base_url}/{relative.lstrip('/')}"

    async def save(
        self,
        folder: str,
        file_name: str,
        stream: BinaryIO,
        *,
        max_bytes: Optional[int] = None,
    ) -> StoredFile:
        relative = self.make_path(folder, file_name)
        destination = self.path_for(relative)
        limit = max_bytes if max_bytes is not None else settings.max_upload_size

        def _write() -> int:
            size = 0
            destination.parent.mkdir(parents=True, exist_ok=True)
            success = False
            try:
                with destination.open("wb") as target:
                    while True:
                        chunk = stream.read(_CHUNK_SIZE)
                        if not chunk:
                            break
                        size += len(chunk)
                        if limit and size > limit:
                            raise StorageLimitError(limit=limit, received=size)
                        target.write(chunk)
                success = True
            finally:
                if not success:
                    destination.unlink(missing_ok=True)
            return size

        size = await run_in_threadpool(_write)
        logger.info(f"Stored upload {relative} ({size} bytes)")
        return StoredFile(path=relative, url=self.url_for(relative), size=size)

    async def delete(self, relative: Optional[str]) -> None:
        if not relative:
            return
        path = self.path_for(relative)

        def _remove() -> None:
            path.unlink(missing_ok=True)

        await run_in_threadpool(_remove)
        logger.info(f"Removed stored file {relative}")


_storage: Optional[MediaStorage] = None


def get_storage() -> MediaStorage:
    """FastAPI dependency returning the shared storage instance."""
    global _storage
    if _storage is None:
        _storage = MediaStorage()
    return _storage


__all__ = [
    "MediaStorage",
    "StoredFile",
    "StorageError",
    "StorageLimitError",
    "clean_file_name",
    "get_storage",
]
