from collections.abc import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.app.config import DATA_DIR, DATABASE_URL


class Base(DeclarativeBase):
    pass


def _apply_sqlite_pragmas(dbapi_connection, connection_record) -> None:  # noqa: ANN001
    # foreign_keys is per-connection in SQLite, so it has to be set on every checkout
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA busy_timeout = 5000")
    cursor.close()


def register_sqlite_pragmas(target: AsyncEngine) -> None:
    """Attach the per-connection pragma hook to an async engine."""
    event.listen(target.sync_engine, "connect", _apply_sqlite_pragmas)


engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
)
register_sqlite_pragmas(engine)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    One transaction per request: commit on success, roll back on any error so
    multi-step operations never apply partially.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables and apply database-wide pragmas."""
    import backend.app.models  # noqa: F401 - ensure models are registered

    DATA_DIR.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        # SQLite performance & safety pragmas
        await conn.execute(text("PRAGMA journal_mode = WAL"))
        await conn.execute(text("PRAGMA synchronous = NORMAL"))
        await conn.execute(text("PRAGMA cache_size = -64000"))
        await conn.execute(text("PRAGMA temp_store = MEMORY"))

        await conn.run_sync(Base.metadata.create_all)
