"""Metadata store: the `files` table behind insert / find-latest / delete-by-id.

Usage:
    store = MetadataStore(settings.DB_URI)
    await store.open()
    record_id = await store.insert(FileRecord(...))
    latest = await store.find_latest()
    await store.delete_by_id(latest.id)
    await store.close()
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, desc, select, text
from sqlalchemy.exc import SQLAlchemyError

from vault.database import build_engine, build_session_factory
from vault.errors import MetadataStoreError
from vault.models import Base, FileRecord

logger = logging.getLogger(__name__)

# Driver-level connect failures (e.g. asyncpg's ConnectionRefusedError) are
# not always wrapped by SQLAlchemy.
_STORE_ERRORS = (SQLAlchemyError, OSError)


class MetadataStore:
    """Handle over one database. Open once at startup, share across requests."""

    def __init__(self, db_uri: str):
        self.db_uri = db_uri
        self.engine = build_engine(db_uri)
        self.session_factory = build_session_factory(self.engine)
        self._schema_ready = False

    async def open(self, fail_fast: bool = False) -> bool:
        """Create the files table if missing.

        Returns False when the database is unreachable. Unless ``fail_fast``
        is set the failure is only logged, and each later call retries the
        schema setup before running its query.
        """
        try:
            await self._ensure_schema()
        except MetadataStoreError as e:
            if fail_fast:
                raise
            logger.error("Metadata store unavailable at startup: %s", e.__cause__)
            return False
        logger.info("Metadata store connected")
        return True

    async def close(self) -> None:
        await self.engine.dispose()

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except _STORE_ERRORS as e:
            raise MetadataStoreError() from e
        self._schema_ready = True

    async def insert(self, record: FileRecord) -> uuid.UUID:
        """Persist a new record. Assigns id and upload_date when absent."""
        if record.id is None:
            record.id = uuid.uuid4()
        if record.upload_date is None:
            record.upload_date = datetime.now(timezone.utc)

        await self._ensure_schema()
        try:
            async with self.session_factory() as db:
                db.add(record)
                await db.commit()
        except _STORE_ERRORS as e:
            raise MetadataStoreError() from e
        return record.id

    async def find_latest(self) -> FileRecord | None:
        """Record with the greatest upload_date, or None when the table is empty."""
        await self._ensure_schema()
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(FileRecord)
                    .order_by(desc(FileRecord.upload_date))
                    .limit(1)
                )
                return result.scalars().first()
        except _STORE_ERRORS as e:
            raise MetadataStoreError() from e

    async def delete_by_id(self, record_id: uuid.UUID) -> bool:
        """Delete one record. Returns False (never raises) if it was already gone."""
        await self._ensure_schema()
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    delete(FileRecord).where(FileRecord.id == record_id)
                )
                await db.commit()
        except _STORE_ERRORS as e:
            raise MetadataStoreError() from e
        return result.rowcount > 0

    async def ping(self) -> bool:
        try:
            async with self.session_factory() as db:
                await db.execute(text("SELECT 1"))
        except _STORE_ERRORS as e:
            logger.warning("Metadata store ping failed: %s", e)
            return False
        return True
