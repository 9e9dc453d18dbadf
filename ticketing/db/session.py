"""
Async engine, session factory and the store-call boundary.

`store_operation` wraps a service coroutine with the configured timeout and
turns driver failures into `StoreError`, so callers only ever see the
application error taxonomy.
"""

import asyncio
import functools
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ticketing.core.config import get_settings
from ticketing.core.errors import StoreError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_store_operation

logger = get_logger(__name__)
settings = get_settings()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"timeout": 30}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commit on success, roll back on any error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def store_operation(name: str):
    """Bound a service call by STORE_TIMEOUT_SECONDS and map store failures."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await asyncio.wait_for(
                    func(*args, **kwargs),
                    timeout=get_settings().STORE_TIMEOUT_SECONDS,
                )
            except asyncio.TimeoutError:
                record_store_operation(name, "timeout")
                logger.error("store_timeout", operation=name)
                raise StoreError(
                    "The service is busy, please try again",
                    details=f"{name} exceeded {get_settings().STORE_TIMEOUT_SECONDS}s",
                    retryable=True,
                )
            except SQLAlchemyError as e:
                record_store_operation(name, "error")
                logger.error("store_failure", operation=name, error=str(e))
                raise StoreError("Something went wrong, please try again later", details=str(e))
            record_store_operation(name, "ok")
            return result

        return wrapper

    return decorator
