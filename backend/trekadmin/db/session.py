"""
Storage gateway: pooled async engine, scoped sessions and transactions.

Every request (and every sweep run) works on its own AsyncSession. The session
checks a connection out of the bounded pool on its first statement and
returns it when the session closes, on every exit path.

Pool exhaustion surfaces as sqlalchemy.exc.TimeoutError after DB_POOL_TIMEOUT
seconds; `transaction()` turns it into a transient StorageFailure instead of
letting the caller hang.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from trekadmin.core.config import get_settings
from trekadmin.core.exceptions import StorageFailure, TrekAdminError
from trekadmin.core.logging import get_logger

logger = get_logger(__name__)

TRANSIENT_ERRORS = (sa_exc.TimeoutError, sa_exc.DisconnectionError)


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed when the request ends."""
    async with get_session_factory()() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a unit of work on `db`: commit on success, roll back on any error.

    Domain errors propagate unchanged. Storage errors are logged with their
    raw text and re-raised as StorageFailure.
    """
    try:
        yield db
        await db.commit()
    except TrekAdminError:
        await db.rollback()
        raise
    except sa_exc.SQLAlchemyError as exc:
        await db.rollback()
        transient = isinstance(exc, TRANSIENT_ERRORS)
        logger.error(
            "storage_failure",
            error=str(exc),
            error_type=type(exc).__name__,
            transient=transient,
        )
        raise StorageFailure(transient=transient) from exc
    except Exception:
        await db.rollback()
        raise


async def dispose_engine() -> None:
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
