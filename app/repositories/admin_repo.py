import logging
from typing import Any, Dict, List

import sqlalchemy.exc
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.sql_guard import fingerprint, statement_types
from app.repositories.base import RepositoryError
from app.utils import rows_to_dicts, to_jsonable

logger = logging.getLogger(__name__)


async def run_console_query(conn: AsyncConnection, sql: str) -> List[Dict[str, Any]]:
    """Execute console text verbatim.

    The text goes to the driver untouched (no bind-parameter parsing), so the
    caller must have screened it with ``find_blocked_keyword`` first.
    """
    logger.info(f"Executing console SQL (Fingerprint: {fingerprint(sql)}, types: {statement_types(sql)})")
    try:
        result = await conn.exec_driver_sql(sql)
        rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
    except sqlalchemy.exc.DBAPIError as e:
        await conn.rollback()
        message = str(e.orig) if e.orig is not None else str(e)
        logger.warning(f"Console SQL failed: {message}")
        raise RepositoryError(message) from e
    finally:
        # Console statements never persist anything
        if conn.in_transaction():
            await conn.rollback()
    return to_jsonable(rows)


async def list_tables_with_rows(conn: AsyncConnection, preview_rows: int) -> List[Dict[str, Any]]:
    """Every table with its columns and a preview of its rows.

    A table whose preview fails is still listed, with ``rows: []``.
    """
    def describe(connection) -> List[Dict[str, Any]]:
        inspector = inspect(connection)
        return [
            {
                "name": name,
                "columns": [
                    {"name": col["name"], "type": str(col["type"]), "nullable": col["nullable"]}
                    for col in inspector.get_columns(name)
                ],
            }
            for name in inspector.get_table_names()
        ]

    tables = await conn.run_sync(describe)
    quote = conn.dialect.identifier_preparer.quote
    for table in tables:
        try:
            result = await conn.execute(text(f"SELECT * FROM {quote(table['name'])} LIMIT :limit"), {"limit": preview_rows})
            table["rows"] = to_jsonable(rows_to_dicts(result))
        except sqlalchemy.exc.SQLAlchemyError as e:
            logger.warning(f"Could not preview table '{table['name']}': {e}")
            await conn.rollback()
            table["rows"] = []
    return tables
