# uniform_workflow/core/db.py

import ssl
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from uniform_workflow.core.config import (
    DATABASE_URL,
    DB_TYPE,
    DB_POOL_SIZE,
    DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT,
    DB_SSL_VERIFY,
    DB_ECHO_POOL,
    APP_ENV,
)
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)

# =====================================================
# BASE
# =====================================================
# stable constraint names, so unique-key violations can be told apart in logs
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


# =====================================================
# ENGINE FACTORY
# =====================================================
def enable_sqlite_foreign_keys(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _postgres_connect_args() -> dict:
    ssl_ctx = ssl.create_default_context()
    if not DB_SSL_VERIFY:
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE

    return {
        "ssl": ssl_ctx,
        # pgbouncer-style poolers break asyncpg prepared statements
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
    }


def build_engine(url: str, **engine_kwargs) -> AsyncEngine:
    """
    Async engine for `url`.

    SQLite engines get foreign keys switched on for every connection
    (ON DELETE SET NULL on order -> indent links depends on it).
    """
    is_sqlite = url.startswith("sqlite")

    if is_sqlite:
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        engine_kwargs.setdefault("connect_args", _postgres_connect_args())
        if "poolclass" not in engine_kwargs:
            engine_kwargs.setdefault("pool_size", DB_POOL_SIZE)
            engine_kwargs.setdefault("max_overflow", DB_MAX_OVERFLOW)
            engine_kwargs.setdefault("pool_timeout", DB_POOL_TIMEOUT)
            engine_kwargs.setdefault("pool_pre_ping", True)

    new_engine = create_async_engine(url, echo=False, echo_pool=DB_ECHO_POOL, **engine_kwargs)

    if is_sqlite:
        event.listen(new_engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    return new_engine


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    # services read back what they wrote after commit; keep attributes loaded
    return sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


# =====================================================
# ENGINE / SESSION
# =====================================================
engine = build_engine(DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)


# =====================================================
# DEPENDENCY
# =====================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# =====================================================
# BACKGROUND JOBS
# =====================================================
@asynccontextmanager
async def job_session(job_name: str) -> AsyncGenerator[AsyncSession, None]:
    """Session for scheduler jobs; a failure is logged with the job name and re-raised."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.exception("Scheduled job failed", extra={"job": job_name, "db_type": DB_TYPE})
            raise


# =====================================================
# MODEL IMPORT
# =====================================================
import uniform_workflow.models  # noqa


# =====================================================
# DEV ONLY: AUTO CREATE TABLES
# =====================================================
async def init_models():
    if APP_ENV != "development":
        raise RuntimeError("init_models() is forbidden outside development")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
