"""Async SQLAlchemy engine and session factory construction.

The engine is not a module global: MetadataStore builds one from DB_URI when
the app starts and disposes of it at shutdown.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def build_engine(db_uri: str, echo: bool = False) -> AsyncEngine:
    # SQLite pools are single-connection; pool sizing only applies to servers.
    if db_uri.startswith("sqlite"):
        return create_async_engine(db_uri, echo=echo)
    return create_async_engine(
        db_uri,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
