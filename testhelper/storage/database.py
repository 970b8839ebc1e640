"""Async database engine and session management for scenario storage."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from testhelper.config.settings import get_settings
from testhelper.config.logging_config import get_logger
from testhelper.storage.models import Base

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_db(database_url: Optional[str] = None) -> None:
    """
    Create the engine, session factory, and storage tables.

    Args:
        database_url: Overrides ``DATABASE_URL`` from settings
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    url = database_url or get_settings().database_url
    _engine = create_async_engine(url, echo=False, future=True)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False, class_=AsyncSession)

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Scenario storage initialized", url=_engine.url.render_as_string(hide_password=True))


async def dispose_db() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.info("Scenario storage disposed")
    _engine = None
    _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory; ``init_db`` must have run."""
    if _session_factory is None:
        raise RuntimeError("Database is not initialized. Call init_db() first.")
    return _session_factory

