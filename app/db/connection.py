import logging
from typing import AsyncGenerator, Dict, Any, Optional
from sqlalchemy import text, inspect
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncConnection
from fastapi import HTTPException, Request, status

from app.core.config import settings
from app.db.schema_definitions import SCHEMA_DEFINITIONS, LAZY_TABLES

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and its bounded connection pool.

    Created once in the application lifespan and handed to request handlers
    through the ``get_db`` dependency. Nothing here is module-global.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine: Optional[AsyncEngine] = None

    async def connect(self) -> None:
        """Create the engine and verify it with ``SELECT 1``."""
        self.engine = _create_async_engine(self.url)
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                row = result.fetchone()
                if row and row[0] == 1:
                    logger.info("Successfully connected to the institute database (async)")
                else:
                    raise ValueError(f"Connection test failed: Unexpected result {row}")
        except Exception as e:
            logger.critical(f"CRITICAL: Failed to connect to the institute database: {str(e)}")
            await self.engine.dispose()
            self.engine = None
            raise RuntimeError("Failed to connect to the institute database") from e

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed.")
            self.engine = None

    async def ping(self) -> bool:
        if self.engine is None:
            return False
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            row = result.fetchone()
            return bool(row and row[0] == 1)

    async def validate_schema_definitions(self) -> Dict[str, Any]:
        """Compare the defined tables and columns with the live database.

        Only logs; handlers keep checking per request so a missing companion
        table degrades output instead of blocking startup.
        """
        report: Dict[str, Any] = {"missing_tables": [], "missing_columns": {}}
        if self.engine is None:
            logger.warning("Schema validation skipped: engine not initialized")
            return report

        def get_table_columns(connection) -> Dict[str, list]:
            inspector = inspect(connection)
            return {
                name: [col["name"] for col in inspector.get_columns(name)]
                for name in inspector.get_table_names()
            }

        try:
            async with self.engine.connect() as conn:
                actual = await conn.run_sync(get_table_columns)
        except Exception as e:
            logger.error(f"Error validating database schema: {str(e)}")
            return report

        for table_name, table in SCHEMA_DEFINITIONS["tables"].items():
            if table_name not in actual:
                report["missing_tables"].append(table_name)
                continue
            # Column names are case-insensitive in MySQL
            actual_columns = {c.lower() for c in actual[table_name]}
            missing = [c.name for c in table.columns if c.name.lower() not in actual_columns]
            if missing:
                report["missing_columns"][table_name] = missing
                logger.warning(f"Table '{table_name}' is missing these defined columns: {', '.join(missing)}")

        missing_core = [t for t in report["missing_tables"] if t not in LAZY_TABLES]
        missing_lazy = [t for t in report["missing_tables"] if t in LAZY_TABLES]
        if missing_core:
            logger.warning(f"Database is missing these core tables: {', '.join(missing_core)}")
        if missing_lazy:
            logger.info(f"These tables will be created on first use: {', '.join(missing_lazy)}")
        return report


def _create_async_engine(db_url: str) -> AsyncEngine:
    """Create an asynchronous SQLAlchemy engine with a bounded pool."""
    url = make_url(db_url)
    if url.drivername == "mysql":
        url = url.set(drivername="mysql+aiomysql")

    engine_kwargs: Dict[str, Any] = {"echo": settings.DEBUG}
    if not url.drivername.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )

    logger.info(
        f"Creating async engine for {url.host or url.database} with pool_size={settings.DB_POOL_SIZE}, "
        f"max_overflow={settings.DB_MAX_OVERFLOW}, pool_timeout={settings.DB_POOL_TIMEOUT}s"
    )
    return create_async_engine(url, **engine_kwargs)


# --- FastAPI Dependencies ---
def get_database(request: Request) -> Database:
    """Return the Database owned by the running application."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None or database.engine is None:
        logger.error("Database is not initialized. Cannot provide connection.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service is not available.",
        )
    return database


async def get_db(request: Request) -> AsyncGenerator[AsyncConnection, None]:
    """Yield a pooled connection for the duration of one request.

    Acquiring waits when the pool is exhausted. Writes are committed by the
    repository functions step by step; anything left open is rolled back here.
    """
    database = get_database(request)
    async with database.engine.connect() as conn:
        try:
            yield conn
        except Exception:
            await conn.rollback()
            raise
        finally:
            logger.debug("Async connection returned to pool")
# --- End FastAPI Dependencies ---
