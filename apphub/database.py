"""Database engine and session lifecycle for the record store."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import HubConfig
from .models.base import Base
from .utils.logging import get_logger

logger = get_logger("apphub.database")

_engine = None
_session_factory = None


def get_engine(config: HubConfig):
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        options = {"echo": config.debug, "pool_pre_ping": True}
        if config.database_url.startswith("sqlite"):
            # Overlapping overlay writes queue on the file lock
            options["connect_args"] = {"timeout": config.db_busy_timeout}
        _engine = create_async_engine(config.database_url, **options)
    return _engine


def get_session_factory(config: HubConfig) -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(config), expire_on_commit=False)
    return _session_factory


async def create_tables(config: HubConfig) -> None:
    """Create the catalog, overlay and user tables."""
    engine = get_engine(config)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        if engine.dialect.name == "sqlite":
            await conn.execute(text("PRAGMA journal_mode=WAL"))
    logger.info("database_ready", dialect=engine.dialect.name)


async def get_session(config: HubConfig):
    """Yield a session from the shared factory."""
    async with get_session_factory(config)() as session:
        yield session


async def close_engine() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
