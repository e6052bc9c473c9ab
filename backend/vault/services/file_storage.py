"""Local-disk storage for uploaded bytes."""
import contextlib
import logging
import os
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from vault.errors import ClientInputError, StorageIOError

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    """Result of writing an upload to disk, ready to become a FileRecord."""
    original_name: str
    stored_name: str
    path: str
    size: int


def clean_original_name(filename: str | None) -> str:
    """Strip any client-side directory parts (both separator styles)."""
    if not filename:
        return ""
    return Path(filename.replace("\\", "/")).name


def make_stored_name(original_name: str, now_ms: int | None = None) -> str:
    """`<ms timestamp>-<original name>`.

    Two uploads of the same name within one millisecond get the same stored
    name; the later write wins.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{now_ms}-{original_name}"


class FileStorageService:
    """Handles file write/read checks/delete under one directory."""

    def __init__(self, base_path: str | Path, chunk_size: int = 1024 * 1024):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.chunk_size = chunk_size

    def path_for(self, stored_name: str) -> Path:
        return self.base_path / stored_name

    async def save(self, upload: UploadFile) -> StoredFile:
        """Stream an upload to disk. Returns only after the file is fully written."""
        original_name = clean_original_name(upload.filename)
        if not original_name:
            raise ClientInputError("No file uploaded.")

        stored_name = make_stored_name(original_name)
        path = self.path_for(stored_name)
        size = 0
        try:
            async with aiofiles.open(path, "wb") as f:
                while True:
                    chunk = await upload.read(self.chunk_size)
                    if not chunk:
                        break
                    await f.write(chunk)
                    size += len(chunk)
        except OSError as e:
            # No record will ever point at a partial file.
            with contextlib.suppress(FileNotFoundError):
                await aiofiles.os.remove(path)
            raise StorageIOError() from e

        return StoredFile(
            original_name=original_name,
            stored_name=stored_name,
            path=str(path),
            size=size,
        )

    async def open_stream(self, path: str | Path) -> tuple[AsyncIterator[bytes], int]:
        """Open a stored file and return (chunk iterator, size).

        The file is opened here, before any response is started, so the
        iterator keeps reading from the open handle even if the path is
        removed in the meantime.
        """
        try:
            f = await aiofiles.open(path, "rb")
        except OSError as e:
            raise StorageIOError() from e
        size = os.fstat(f.fileno()).st_size

        async def chunks():
            try:
                while True:
                    chunk = await f.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk
            finally:
                await f.close()

        return chunks(), size

    async def delete(self, path: str | Path) -> bool:
        """Remove a stored file. Returns False if there was nothing to remove."""
        path = str(path)
        if not await aiofiles.os.path.exists(path):
            return False
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            # Removed by a concurrent delete between the check and here.
            return False
        except OSError as e:
            raise StorageIOError() from e
        return True
