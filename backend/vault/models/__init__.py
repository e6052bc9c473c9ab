"""Import all models so SQLAlchemy metadata knows about them."""
from vault.models.base import Base
from vault.models.file_record import FileRecord

__all__ = ["Base", "FileRecord"]
