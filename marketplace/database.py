"""
Async engine, session factory and declarative base.

PostgreSQL (asyncpg) in deployments, SQLite (aiosqlite) for local runs and tests.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import text, DateTime, Uuid, func
from sqlalchemy.types import TypeDecorator
from marketplace.config import settings
import logging
import uuid
from datetime import datetime, timezone
from typing import AsyncIterator

logger = logging.getLogger(__name__)

POSTGRES_POOL_OPTIONS = {
    "pool_size": 10,
    "max_overflow": 20,
    "pool_pre_ping": True,
    "pool_recycle": 3600,
    "pool_timeout": 30,
    "connect_args": {"server_settings": {"application_name": "housing_marketplace_api"}},
}


def build_engine(url: str) -> AsyncEngine:
    options = {} if url.startswith("sqlite") else POSTGRES_POOL_OPTIONS
    return create_async_engine(url, echo=settings.debug, **options)


engine = build_engine(settings.database_url)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp stored as UTC.

    Aware values are converted to UTC before binding and naive values are taken
    to be UTC already. Rows always load as aware UTC datetimes, including on
    SQLite, which keeps no offset.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None) if dialect.name == "sqlite" else value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base: every table gets a UUID key and created/updated timestamps."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, rolled back if the handler raises."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def test_database_connection() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False
    return True


# Not a pytest test despite the name
test_database_connection.__test__ = False


def _load_models() -> None:
    # Tables are registered on Base.metadata when the model modules are imported
    import marketplace.models  # noqa: F401


async def create_tables():
    _load_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


async def drop_tables():
    """Drop every table. Refused when ENVIRONMENT=production."""
    if settings.is_production:
        raise RuntimeError("Cannot drop tables in production environment")

    _load_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Dropped all tables")


async def close_db_connection():
    await engine.dispose()
    logger.info("Database connections closed")
