from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from geoscan.core.config import settings


def make_session_factory(url: str | None = None, **engine_kwargs) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create a fresh async engine + session factory.

    Each Celery task runs on its own event loop, so engines are created per
    call rather than shared at module level.
    """
    engine_kwargs.setdefault("echo", False)
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine = create_async_engine(url or settings.postgres_url, **engine_kwargs)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False), engine
