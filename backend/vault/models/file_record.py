"""FileRecord model - metadata for one stored upload (bytes live on disk)."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, BigInteger, DateTime, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column
from vault.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    # "<ms timestamp>-<original_name>"
    stored_name: Mapped[str] = mapped_column(String(600), nullable=False)
    path: Mapped[str] = mapped_column(String(1000), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # Set in-process with microsecond precision so "latest" is stable on
    # backends whose now() only has second resolution.
    upload_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_files_upload_date", "upload_date"),
    )

    def __repr__(self) -> str:
        return f"<FileRecord {self.stored_name} ({self.size} bytes)>"
