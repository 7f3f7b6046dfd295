"""
Database engine and session management for the Laundry Orders API.

DATABASE_URL may use the plain ``sqlite:///`` form; it is mapped to the
aiosqlite driver. For file databases the parent directory is created before
the tables, and every SQLite connection enforces foreign keys so reports
and orders cannot point at rows that do not exist.
"""
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


# ── URL helpers ─────────────────────────────────────────────────────

def async_database_url(url: str) -> str:
    """sqlite:///... → sqlite+aiosqlite:///...; other URLs pass through."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def sqlite_file_path(url: str) -> Optional[Path]:
    """Path of a SQLite database file, or None for in-memory and non-SQLite URLs."""
    for prefix in ("sqlite+aiosqlite:///", "sqlite:///"):
        if url.startswith(prefix):
            path = url[len(prefix):].split("?", 1)[0]
            if not path or path == ":memory:":
                return None
            return Path(path)
    return None


def ensure_sqlite_dir(url: str) -> None:
    path = sqlite_file_path(url)
    if path is None or path.parent.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created database directory {path.parent}")


def enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ── Engine ──────────────────────────────────────────────────────────

engine = create_async_engine(
    async_database_url(settings.database_url),
    echo=settings.database_echo,
    future=True,
)
if engine.dialect.name == "sqlite":
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db() -> None:
    """Create all tables. Called once on server startup."""
    # Import models so Base.metadata knows about them
    import db_models  # noqa: F401

    ensure_sqlite_dir(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database ready ({engine.dialect.name})")


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields an async session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
