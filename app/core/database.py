"""Async database engine and session helpers."""

from datetime import datetime, timezone
from typing import AsyncGenerator, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import declarative_base
import structlog

from app.core.config import settings

logger = structlog.get_logger()

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def _build_engine(database_url: str) -> AsyncEngine:
    kwargs = {
        "echo": settings.DATABASE_ECHO,
        "pool_pre_ping": True,
    }

    if not database_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
        kwargs["max_overflow"] = settings.DATABASE_MAX_OVERFLOW

    return create_async_engine(database_url, **kwargs)


def get_engine() -> AsyncEngine:
    """Get (and lazily create) the shared async engine."""
    global _engine, _session_factory

    if _engine is None:
        _engine = _build_engine(settings.DATABASE_URL)
        _session_factory = async_sessionmaker(
            bind=_engine,
            autoflush=False,
            expire_on_commit=False,
        )

    return _engine


def get_session_factory() -> async_sessionmaker:
    """Get the session factory bound to the shared engine."""
    if _session_factory is None:
        get_engine()
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session."""
    async with get_session_factory()() as session:
        yield session


async def init_db():
    """Create database tables."""
    # Register models on the metadata before create_all
    import app.models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized")


async def dispose_engine():
    """Dispose the shared engine."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def utcnow() -> datetime:
    """Timezone-aware current UTC time for column defaults."""
    return datetime.now(timezone.utc)


def _dialect_insert(session: AsyncSession, model, helper: str):
    dialect = session.get_bind().dialect.name

    if dialect == "postgresql":
        return postgresql_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"{helper} is not supported on {dialect}")


def insert_if_absent(session: AsyncSession, model, index_elements: Sequence[str], **values):
    """Build an ``INSERT ... ON CONFLICT DO NOTHING`` for the session's dialect."""
    stmt = _dialect_insert(session, model, "insert_if_absent")
    return stmt.values(**values).on_conflict_do_nothing(index_elements=list(index_elements))


def upsert(
    session: AsyncSession,
    model,
    index_elements: Sequence[str],
    update_columns: Sequence[str],
    keep_if_null: Sequence[str] = (),
    **values
):
    """Build an ``INSERT ... ON CONFLICT DO UPDATE`` for the session's dialect.

    On conflict the ``update_columns`` take the incoming values. Columns also
    named in ``keep_if_null`` keep the stored value when the incoming one is
    NULL. Column ``onupdate`` hooks do not fire here, so timestamps must be
    passed explicitly.
    """
    stmt = _dialect_insert(session, model, "upsert").values(**values)

    set_ = {}
    for column in update_columns:
        incoming = getattr(stmt.excluded, column)
        if column in keep_if_null:
            incoming = func.coalesce(incoming, getattr(model, column))
        set_[column] = incoming

    return stmt.on_conflict_do_update(index_elements=list(index_elements), set_=set_)
