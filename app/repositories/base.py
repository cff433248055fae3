import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from app.utils import rows_to_dicts, to_bind_params

logger = logging.getLogger(__name__)

# --- Custom Exceptions ---
class RepositoryError(Exception):
    """Base class for repository exceptions."""
    pass

class RecordNotFound(RepositoryError):
    """Indicates a requested record was not found."""
    pass

class InvalidInput(RepositoryError):
    """Indicates the caller supplied missing or malformed values."""
    pass

class DependentRecordsExist(RepositoryError):
    """Indicates a delete was refused because other rows still reference the record."""
    pass
# --- End Custom Exceptions ---


async def fetch_all(conn: AsyncConnection, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    result = await conn.execute(text(sql), params or {})
    return rows_to_dicts(result)


async def fetch_one(conn: AsyncConnection, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    result = await conn.execute(text(sql), params or {})
    row = result.mappings().first()
    return dict(row) if row is not None else None


async def execute_write(conn: AsyncConnection, sql: str, params: Optional[Dict[str, Any]] = None):
    """Run one write statement and commit it on its own.

    Multi-step writes are not atomic: each step is committed as it happens.
    """
    result = await conn.execute(text(sql), to_bind_params(params or {}))
    await conn.commit()
    return result
