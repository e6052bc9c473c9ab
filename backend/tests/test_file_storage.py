import io
import re

import pytest
from fastapi import UploadFile

from vault.errors import ClientInputError, StorageIOError
from vault.services.file_storage import clean_original_name, make_stored_name


def _upload(content: bytes, filename: str | None) -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


def test_make_stored_name():
    assert make_stored_name("a.txt", now_ms=1700000000123) == "1700000000123-a.txt"


def test_make_stored_name_uses_millisecond_clock():
    assert re.fullmatch(r"\d{13}-a\.txt", make_stored_name("a.txt"))


@pytest.mark.parametrize("filename, expected", [
    ("a.txt", "a.txt"),
    ("../../etc/passwd", "passwd"),
    ("C:\\Users\\me\\report.pdf", "report.pdf"),
    ("dir/", "dir"),
    ("", ""),
    (None, ""),
])
def test_clean_original_name(filename, expected):
    assert clean_original_name(filename) == expected


async def test_save_writes_bytes_in_chunks(file_storage, upload_dir):
    content = b"0123456789"  # spans several 4-byte chunks
    stored = await file_storage.save(_upload(content, "a.txt"))

    assert stored.original_name == "a.txt"
    assert re.fullmatch(r"\d+-a\.txt", stored.stored_name)
    assert stored.size == 10
    assert stored.path == str(upload_dir / stored.stored_name)
    assert (upload_dir / stored.stored_name).read_bytes() == content


async def test_save_empty_file(file_storage, upload_dir):
    stored = await file_storage.save(_upload(b"", "empty.bin"))

    assert stored.size == 0
    assert (upload_dir / stored.stored_name).read_bytes() == b""


async def test_save_keeps_file_inside_storage_dir(file_storage, upload_dir):
    stored = await file_storage.save(_upload(b"x", "../escape.txt"))

    assert stored.original_name == "escape.txt"
    assert (upload_dir / stored.stored_name).exists()
    assert not (upload_dir.parent / "escape.txt").exists()


async def test_save_without_filename(file_storage, upload_dir):
    with pytest.raises(ClientInputError):
        await file_storage.save(_upload(b"x", ""))
    assert list(upload_dir.iterdir()) == []


async def test_save_disk_failure(file_storage, upload_dir):
    upload_dir.rmdir()
    with pytest.raises(StorageIOError):
        await file_storage.save(_upload(b"x", "a.txt"))


async def test_delete(file_storage, upload_dir):
    target = upload_dir / "1-a.txt"
    target.write_bytes(b"x")

    assert await file_storage.delete(target) is True
    assert not target.exists()


async def test_delete_absent_file(file_storage, upload_dir):
    assert await file_storage.delete(upload_dir / "never-there.txt") is False


async def test_save_removes_partial_file_on_write_failure(file_storage, upload_dir, failing_disk):
    with pytest.raises(StorageIOError):
        await file_storage.save(_upload(b"0123456789", "a.txt"))
    assert list(upload_dir.iterdir()) == []


async def _read_all(chunks) -> bytes:
    return b"".join([chunk async for chunk in chunks])


async def test_open_stream(file_storage, upload_dir):
    target = upload_dir / "1-a.txt"
    target.write_bytes(b"0123456789")

    chunks, size = await file_storage.open_stream(target)

    assert size == 10
    assert await _read_all(chunks) == b"0123456789"


async def test_open_stream_survives_removal_after_open(file_storage, upload_dir):
    target = upload_dir / "1-a.txt"
    target.write_bytes(b"0123456789")

    chunks, _ = await file_storage.open_stream(target)
    target.unlink()

    assert await _read_all(chunks) == b"0123456789"


async def test_open_stream_missing_or_directory(file_storage, upload_dir):
    (upload_dir / "a-dir").mkdir()

    with pytest.raises(StorageIOError):
        await file_storage.open_stream(upload_dir / "absent.txt")
    with pytest.raises(StorageIOError):
        await file_storage.open_stream(upload_dir / "a-dir")
