import errno

import pytest
from aiofiles.threadpool.binary import AsyncBufferedIOBase
from fastapi.testclient import TestClient

from vault.config import Settings
from vault.main import create_app
from vault.services.file_storage import FileStorageService
from vault.services.metadata_store import MetadataStore


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def db_uri(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}"


@pytest.fixture
def unreachable_db_uri(tmp_path):
    # SQLite cannot create a database inside a directory that does not exist
    return f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'vault.db'}"


@pytest.fixture
def settings(upload_dir, db_uri):
    return Settings(UPLOAD_PATH=str(upload_dir), DB_URI=db_uri)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
async def store(db_uri):
    s = MetadataStore(db_uri)
    await s.open()
    yield s
    await s.close()


@pytest.fixture
def file_storage(upload_dir):
    return FileStorageService(upload_dir, chunk_size=4)


@pytest.fixture
def failing_disk(monkeypatch):
    """Let the first chunk write through, then fail every write with ENOSPC."""
    real_write = AsyncBufferedIOBase.write
    written = []

    async def write(self, data):
        if written:
            raise OSError(errno.ENOSPC, "No space left on device")
        written.append(data)
        return await real_write(self, data)

    monkeypatch.setattr(AsyncBufferedIOBase, "write", write)
