"""FastAPI dependencies resolving the per-process handles set up in lifespan."""
from fastapi import Request

from vault.services.file_storage import FileStorageService
from vault.services.metadata_store import MetadataStore


def get_store(request: Request) -> MetadataStore:
    return request.app.state.store


def get_file_storage(request: Request) -> FileStorageService:
    return request.app.state.file_storage
