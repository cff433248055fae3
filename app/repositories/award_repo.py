import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.schema_definitions import faculty_awards
from app.db.schema_prober import SchemaProber
from app.repositories.base import RecordNotFound, execute_write, fetch_all, fetch_one

logger = logging.getLogger(__name__)

AWARD_COLUMNS = [
    "award_id",
    "faculty_id",
    "award_name",
    "awarding_organization",
    "award_description",
    "award_date",
    "category",
    "certificate",
]
WRITABLE_COLUMNS = AWARD_COLUMNS[2:]


async def list_awards(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_awards"):
        return []
    return await fetch_all(
        conn,
        f"SELECT {', '.join(AWARD_COLUMNS)} FROM faculty_awards WHERE faculty_id = :faculty_id ORDER BY award_date DESC",
        {"faculty_id": faculty_id},
    )


async def create_award(conn: AsyncConnection, prober: SchemaProber, faculty_id: int, values: Dict[str, Any]) -> int:
    await prober.ensure_table(faculty_awards)
    values = {k: v for k, v in values.items() if k in WRITABLE_COLUMNS}
    columns = ["faculty_id"] + list(values)
    result = await execute_write(
        conn,
        f"INSERT INTO faculty_awards ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})",
        {**values, "faculty_id": faculty_id},
    )
    logger.info(f"Created award {result.lastrowid} for faculty {faculty_id}")
    return result.lastrowid


async def get_award(
    conn: AsyncConnection,
    prober: SchemaProber,
    award_id: int,
    owner_id: Optional[int] = None,
) -> Dict[str, Any]:
    if not await prober.table_exists("faculty_awards"):
        raise RecordNotFound("Award not found")
    params: Dict[str, Any] = {"id": award_id}
    sql = f"SELECT {', '.join(AWARD_COLUMNS)} FROM faculty_awards WHERE award_id = :id"
    if owner_id is not None:
        sql += " AND faculty_id = :owner_id"
        params["owner_id"] = owner_id
    row = await fetch_one(conn, sql, params)
    if row is None:
        raise RecordNotFound("Award not found")
    return row


async def update_award(
    conn: AsyncConnection,
    prober: SchemaProber,
    award_id: int,
    owner_id: Optional[int],
    values: Dict[str, Any],
) -> None:
    await get_award(conn, prober, award_id, owner_id)
    values = {k: v for k, v in values.items() if k in WRITABLE_COLUMNS}
    if not values:
        return
    assignments = ", ".join(f"{column} = :{column}" for column in values)
    await execute_write(
        conn,
        f"UPDATE faculty_awards SET {assignments} WHERE award_id = :award_id",
        {**values, "award_id": award_id},
    )
    logger.info(f"Updated award {award_id}")


async def delete_award(conn: AsyncConnection, prober: SchemaProber, award_id: int, owner_id: Optional[int]) -> Dict[str, Any]:
    award = await get_award(conn, prober, award_id, owner_id)
    await execute_write(conn, "DELETE FROM faculty_awards WHERE award_id = :id", {"id": award_id})
    logger.info(f"Deleted award {award_id}")
    return award
