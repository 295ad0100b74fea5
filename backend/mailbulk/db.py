# backend/mailbulk/db.py

import logging
import asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.exc import OperationalError
import sqlalchemy

from .config import settings

logger = logging.getLogger("mailbulk.db")

# ---------------------------------------------------------
# Declarative base shared by the read models
# ---------------------------------------------------------
Base = declarative_base()

# ---------------------------------------------------------
# Lazy engine + Lazy session maker
# ---------------------------------------------------------
_engine = None
_session_maker = None


def get_engine():
    """Lazy async engine creation."""
    global _engine
    if _engine is None:
        kwargs = {"echo": bool(settings.DEBUG), "future": True, "pool_pre_ping": True}
        if not settings.DATABASE_URL.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
            )
        _engine = create_async_engine(settings.DATABASE_URL, **kwargs)
    return _engine


def get_session_maker():
    """Lazy sessionmaker creation."""
    global _session_maker
    if _session_maker is None:
        _session_maker = sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_maker


# ---------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------
async def get_db():
    """
    One session per request. The ``async with`` block hands the connection
    back to the pool on every exit path, including a client that goes away
    in the middle of a download.
    """
    SessionLocal = get_session_maker()
    async with SessionLocal() as session:
        yield session


async def dispose_engine():
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None


# ---------------------------------------------------------
# DB readiness check for startup
# ---------------------------------------------------------
async def wait_for_db(max_retries: int = 8, delay: float = 2.0):
    """
    Wait for DB to accept connections before the app starts serving.
    """
    engine = get_engine()

    last_exc = None
    for attempt in range(1, max_retries + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(sqlalchemy.text("SELECT 1"))
                logger.info("Database connected (attempt %d)", attempt)
                return True

        except OperationalError as e:
            last_exc = e
            msg = str(e.__cause__ or e)

            if "password authentication failed" in msg.lower():
                logger.error("Database authentication failed: %s", msg)
                raise

            logger.warning(
                "DB not ready (attempt %d/%d): %s",
                attempt, max_retries, msg
            )
            await asyncio.sleep(delay)

        except Exception as e:
            last_exc = e
            logger.exception(
                "Unexpected DB connection error (attempt %d/%d): %s",
                attempt, max_retries, e
            )
            await asyncio.sleep(delay)

    logger.error("Failed to connect to DB after %d retries. Last error: %s",
                 max_retries, last_exc)
    raise last_exc
