"""Upload / download-latest / delete-latest routes."""
import logging
import mimetypes
from urllib.parse import quote

from fastapi import APIRouter, Depends, UploadFile, File as FastAPIFile
from fastapi.responses import PlainTextResponse, StreamingResponse

from vault.dependencies import get_file_storage, get_store
from vault.errors import ClientInputError, MetadataStoreError, NotFoundError, StorageIOError, VaultError
from vault.models import FileRecord
from vault.services.file_storage import FileStorageService
from vault.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])

DOWNLOAD_FAILED = "Could not download file."
DELETE_FAILED = "Could not delete file."


def attachment_header(filename: str) -> str:
    """Content-Disposition for a download, RFC 5987 encoded when not plain ASCII."""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


@router.post("/upload", response_class=PlainTextResponse)
async def upload_file(
    upload: UploadFile | None = FastAPIFile(None, alias="myFile"),
    store: MetadataStore = Depends(get_store),
    file_storage: FileStorageService = Depends(get_file_storage),
):
    """Write the `myFile` part to disk, then record it."""
    if upload is None or not upload.filename:
        raise ClientInputError("No file uploaded.")

    stored = await file_storage.save(upload)

    record = FileRecord(
        original_name=stored.original_name,
        stored_name=stored.stored_name,
        path=stored.path,
        size=stored.size,
    )
    try:
        await store.insert(record)
    except MetadataStoreError:
        logger.error("File %s written but not recorded", stored.path)
        raise
    logger.info("Saved %s (%d bytes) to disk and metadata store", stored.stored_name, stored.size)

    return f"Success! Saved as {stored.stored_name}"


@router.get("/download/latest")
async def download_latest(
    store: MetadataStore = Depends(get_store),
    file_storage: FileStorageService = Depends(get_file_storage),
):
    """Stream the most recent upload back under its original name."""
    record = await store.find_latest()
    if record is None:
        raise NotFoundError("No files found in the vault.")

    path = file_storage.path_for(record.stored_name)
    try:
        chunks, size = await file_storage.open_stream(path)
    except StorageIOError as e:
        logger.error("Stored file for %s is missing or unreadable: %s", record.original_name, path)
        raise StorageIOError(DOWNLOAD_FAILED) from e

    media_type, _ = mimetypes.guess_type(record.original_name)
    return StreamingResponse(
        chunks,
        media_type=media_type or "application/octet-stream",
        headers={
            "Content-Disposition": attachment_header(record.original_name),
            "Content-Length": str(size),
        },
    )


@router.delete("/delete/latest", response_class=PlainTextResponse)
async def delete_latest(
    store: MetadataStore = Depends(get_store),
    file_storage: FileStorageService = Depends(get_file_storage),
):
    """Remove the most recent upload from disk, then its record.

    Not transactional: a failure after the file is gone leaves the record.
    """
    try:
        record = await store.find_latest()
    except MetadataStoreError as e:
        raise MetadataStoreError(DELETE_FAILED) from e
    if record is None:
        raise NotFoundError("Nothing to delete.")

    try:
        if await file_storage.delete(record.path):
            logger.info("Physically deleted %s", record.stored_name)
        else:
            logger.info("Stored file %s already absent", record.stored_name)

        if await store.delete_by_id(record.id):
            logger.info("Metadata record %s erased", record.id)
    except VaultError as e:
        raise type(e)(DELETE_FAILED) from e
    except Exception as e:
        raise StorageIOError(DELETE_FAILED) from e

    return f"Deleted {record.original_name} successfully."
