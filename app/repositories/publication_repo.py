import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.schema_definitions import faculty_publications
from app.db.schema_prober import SchemaProber
from app.repositories.base import RecordNotFound, execute_write, fetch_all, fetch_one

logger = logging.getLogger(__name__)

PUBLICATION_COLUMNS = [
    "publication_id",
    "faculty_id",
    "title_of_the_paper",
    "name_of_the_conference",
    "Year_Of_Study",
    "paper_link",
    "publication_type",
    "doi",
]
WRITABLE_COLUMNS = PUBLICATION_COLUMNS[2:]


def _scope_clause(owner_id: Optional[int], params: Dict[str, Any]) -> str:
    if owner_id is None:
        return ""
    params["owner_id"] = owner_id
    return " AND faculty_id = :owner_id"


async def list_publications(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_publications"):
        logger.debug("faculty_publications table missing; returning no publications")
        return []
    return await fetch_all(
        conn,
        f"SELECT {', '.join(PUBLICATION_COLUMNS)} FROM faculty_publications "
        "WHERE faculty_id = :faculty_id ORDER BY Year_Of_Study DESC, publication_id DESC",
        {"faculty_id": faculty_id},
    )


async def create_publication(
    conn: AsyncConnection,
    prober: SchemaProber,
    faculty_id: int,
    values: Dict[str, Any],
) -> int:
    await prober.ensure_table(faculty_publications)
    values = {k: v for k, v in values.items() if k in WRITABLE_COLUMNS and v is not None}
    columns = ["faculty_id"] + list(values)
    result = await execute_write(
        conn,
        f"INSERT INTO faculty_publications ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})",
        {**values, "faculty_id": faculty_id},
    )
    logger.info(f"Created publication {result.lastrowid} for faculty {faculty_id}")
    return result.lastrowid


async def _require_publication(
    conn: AsyncConnection,
    prober: SchemaProber,
    publication_id: int,
    owner_id: Optional[int],
) -> None:
    if not await prober.table_exists("faculty_publications"):
        raise RecordNotFound("Publication not found")
    params: Dict[str, Any] = {"id": publication_id}
    scope = _scope_clause(owner_id, params)
    row = await fetch_one(conn, f"SELECT publication_id FROM faculty_publications WHERE publication_id = :id{scope}", params)
    if row is None:
        raise RecordNotFound("Publication not found")


async def update_publication(
    conn: AsyncConnection,
    prober: SchemaProber,
    publication_id: int,
    owner_id: Optional[int],
    values: Dict[str, Any],
) -> None:
    """Update a publication; ``owner_id`` restricts the match to one faculty's rows."""
    await _require_publication(conn, prober, publication_id, owner_id)
    values = {k: v for k, v in values.items() if k in WRITABLE_COLUMNS}
    if not values:
        return
    assignments = ", ".join(f"{column} = :{column}" for column in values)
    await execute_write(
        conn,
        f"UPDATE faculty_publications SET {assignments} WHERE publication_id = :publication_id",
        {**values, "publication_id": publication_id},
    )
    logger.info(f"Updated publication {publication_id}")


async def delete_publication(
    conn: AsyncConnection,
    prober: SchemaProber,
    publication_id: int,
    owner_id: Optional[int],
) -> None:
    await _require_publication(conn, prober, publication_id, owner_id)
    await execute_write(conn, "DELETE FROM faculty_publications WHERE publication_id = :id", {"id": publication_id})
    logger.info(f"Deleted publication {publication_id}")
