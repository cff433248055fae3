import logging
from typing import Iterable, Set

from fastapi import Depends
from sqlalchemy import Table, inspect
from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.connection import get_db

logger = logging.getLogger(__name__)


class SchemaProber:
    """Answers "does this table/column exist?" at request time.

    Every call issues a fresh metadata query; nothing is cached. A failing
    metadata query counts as "does not exist", so only the optional feature
    degrades and the request carries on.
    """

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def table_exists(self, table_name: str) -> bool:
        try:
            exists = await self.conn.run_sync(lambda c: inspect(c).has_table(table_name))
        except Exception as e:
            logger.warning(f"Lookup of table '{table_name}' failed, treating as absent: {e}")
            return False
        logger.debug(f"Table '{table_name}' exists: {exists}")
        return bool(exists)

    async def existing_columns(self, table_name: str, candidates: Iterable[str]) -> Set[str]:
        """Return the subset of ``candidates`` present on the table.

        Matching ignores case; the returned names are spelled as requested.
        """
        candidates = list(candidates)
        try:
            columns = await self.conn.run_sync(lambda c: inspect(c).get_columns(table_name))
        except Exception as e:
            logger.warning(f"Column lookup on '{table_name}' failed, treating as absent: {e}")
            return set()
        actual = {col["name"].lower() for col in columns}
        return {name for name in candidates if name.lower() in actual}

    async def column_exists(self, table_name: str, column_name: str) -> bool:
        return column_name in await self.existing_columns(table_name, [column_name])

    async def ensure_table(self, table: Table) -> None:
        """CREATE TABLE IF NOT EXISTS for a lazily created table, committed at once."""
        await self.conn.run_sync(lambda c: table.create(c, checkfirst=True))
        await self.conn.commit()
        logger.debug(f"Ensured table '{table.name}' exists")


def get_schema_prober(conn: AsyncConnection = Depends(get_db)) -> SchemaProber:
    """FastAPI dependency binding a prober to the request's connection."""
    return SchemaProber(conn)
