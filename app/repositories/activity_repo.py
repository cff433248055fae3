"""Activity records kept against a faculty member: memberships, contributions, research projects and workshops."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.schema_definitions import (
    faculty_contributions,
    faculty_memberships,
    faculty_research_projects,
    faculty_workshops,
)
from app.db.schema_prober import SchemaProber
from app.repositories.base import RecordNotFound, execute_write, fetch_all, fetch_one

logger = logging.getLogger(__name__)

MEMBERSHIP_COLUMNS = [
    "membership_id",
    "faculty_id",
    "organization",
    "organization_category",
    "membership_type",
    "membership_identifier",
    "certificate_url",
    "start_date",
    "end_date",
    "description",
]

CONTRIBUTION_COLUMNS = [
    "Contribution_ID",
    "F_ID",
    "Contribution_Type",
    "Contribution_Title",
    "Description",
    "Journal_Conference",
    "Year",
    "Contribution_Date",
]

RESEARCH_PROJECT_COLUMNS = [
    "id",
    "faculty_id",
    "title",
    "description",
    "start_date",
    "end_date",
    "status",
    "funding_agency",
    "funding_amount",
]

WORKSHOP_COLUMNS = [
    "id",
    "faculty_id",
    "title",
    "description",
    "start_date",
    "end_date",
    "venue",
    "type",
    "role",
]


async def _insert(conn: AsyncConnection, table: str, values: Dict[str, Any]) -> int:
    columns = list(values)
    result = await execute_write(
        conn,
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})",
        values,
    )
    return result.lastrowid


async def _require_owned(
    conn: AsyncConnection,
    prober: SchemaProber,
    table: str,
    key: str,
    row_id: int,
    owner_id: Optional[int],
    label: str,
) -> None:
    """Raise RecordNotFound unless the row exists (and belongs to ``owner_id`` when given)."""
    if not await prober.table_exists(table):
        raise RecordNotFound(f"{label} not found")
    params: Dict[str, Any] = {"id": row_id}
    sql = f"SELECT {key} FROM {table} WHERE {key} = :id"
    if owner_id is not None:
        sql += " AND faculty_id = :owner_id"
        params["owner_id"] = owner_id
    if await fetch_one(conn, sql, params) is None:
        raise RecordNotFound(f"{label} not found")


async def _update(conn: AsyncConnection, table: str, key: str, row_id: int, values: Dict[str, Any]) -> None:
    if not values:
        return
    assignments = ", ".join(f"{column} = :{column}" for column in values)
    await execute_write(conn, f"UPDATE {table} SET {assignments} WHERE {key} = :row_id", {**values, "row_id": row_id})


async def list_memberships(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_memberships"):
        return []
    return await fetch_all(
        conn,
        f"SELECT {', '.join(MEMBERSHIP_COLUMNS)} FROM faculty_memberships "
        "WHERE faculty_id = :faculty_id ORDER BY start_date DESC",
        {"faculty_id": faculty_id},
    )


async def create_membership(conn: AsyncConnection, prober: SchemaProber, faculty_id: int, values: Dict[str, Any]) -> int:
    await prober.ensure_table(faculty_memberships)
    row = {k: v for k, v in values.items() if k in MEMBERSHIP_COLUMNS[2:] and v is not None}
    membership_id = await _insert(conn, "faculty_memberships", {**row, "faculty_id": faculty_id})
    logger.info(f"Created membership {membership_id} for faculty {faculty_id}")
    return membership_id


async def update_membership(
    conn: AsyncConnection,
    prober: SchemaProber,
    membership_id: int,
    owner_id: Optional[int],
    values: Dict[str, Any],
) -> None:
    await _require_owned(conn, prober, "faculty_memberships", "membership_id", membership_id, owner_id, "Membership")
    values = {k: v for k, v in values.items() if k in MEMBERSHIP_COLUMNS[2:]}
    await _update(conn, "faculty_memberships", "membership_id", membership_id, values)
    logger.info(f"Updated membership {membership_id}")


async def delete_membership(conn: AsyncConnection, prober: SchemaProber, membership_id: int, owner_id: Optional[int]) -> None:
    await _require_owned(conn, prober, "faculty_memberships", "membership_id", membership_id, owner_id, "Membership")
    await execute_write(conn, "DELETE FROM faculty_memberships WHERE membership_id = :id", {"id": membership_id})
    logger.info(f"Deleted membership {membership_id}")


async def list_contributions(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_contributions"):
        return []
    present = await prober.existing_columns("faculty_contributions", CONTRIBUTION_COLUMNS)
    columns = [c if c in present else f"NULL AS {c}" for c in CONTRIBUTION_COLUMNS]
    order = "Contribution_Date DESC" if "Contribution_Date" in present else "F_ID"
    return await fetch_all(
        conn,
        f"SELECT {', '.join(columns)} FROM faculty_contributions WHERE F_ID = :faculty_id ORDER BY {order}",
        {"faculty_id": faculty_id},
    )


async def create_contribution(conn: AsyncConnection, prober: SchemaProber, faculty_id: int, values: Dict[str, Any]) -> int:
    await prober.ensure_table(faculty_contributions)
    row = {k: v for k, v in values.items() if k in CONTRIBUTION_COLUMNS[2:] and v is not None}
    contribution_id = await _insert(conn, "faculty_contributions", {**row, "F_ID": faculty_id})
    logger.info(f"Created contribution {contribution_id} for faculty {faculty_id}")
    return contribution_id


# --- Research projects and workshops ---

async def list_research_projects(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_research_projects"):
        return []
    return await fetch_all(
        conn,
        f"SELECT {', '.join(RESEARCH_PROJECT_COLUMNS)} FROM faculty_research_projects "
        "WHERE faculty_id = :faculty_id ORDER BY start_date DESC",
        {"faculty_id": faculty_id},
    )


async def create_research_project(
    conn: AsyncConnection, prober: SchemaProber, faculty_id: int, values: Dict[str, Any]
) -> int:
    await prober.ensure_table(faculty_research_projects)
    row = {k: v for k, v in values.items() if k in RESEARCH_PROJECT_COLUMNS[2:] and v is not None}
    project_id = await _insert(conn, "faculty_research_projects", {**row, "faculty_id": faculty_id})
    logger.info(f"Created research project {project_id} for faculty {faculty_id}")
    return project_id


async def update_research_project(
    conn: AsyncConnection,
    prober: SchemaProber,
    project_id: int,
    owner_id: Optional[int],
    values: Dict[str, Any],
) -> None:
    await _require_owned(conn, prober, "faculty_research_projects", "id", project_id, owner_id, "Research project")
    values = {k: v for k, v in values.items() if k in RESEARCH_PROJECT_COLUMNS[2:]}
    await _update(conn, "faculty_research_projects", "id", project_id, values)
    logger.info(f"Updated research project {project_id}")


async def delete_research_project(
    conn: AsyncConnection, prober: SchemaProber, project_id: int, owner_id: Optional[int]
) -> None:
    await _require_owned(conn, prober, "faculty_research_projects", "id", project_id, owner_id, "Research project")
    await execute_write(conn, "DELETE FROM faculty_research_projects WHERE id = :id", {"id": project_id})
    logger.info(f"Deleted research project {project_id}")


async def list_workshops(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_workshops"):
        return []
    return await fetch_all(
        conn,
        f"SELECT {', '.join(WORKSHOP_COLUMNS)} FROM faculty_workshops "
        "WHERE faculty_id = :faculty_id ORDER BY start_date DESC",
        {"faculty_id": faculty_id},
    )


async def create_workshop(conn: AsyncConnection, prober: SchemaProber, faculty_id: int, values: Dict[str, Any]) -> int:
    await prober.ensure_table(faculty_workshops)
    row = {k: v for k, v in values.items() if k in WORKSHOP_COLUMNS[2:] and v is not None}
    workshop_id = await _insert(conn, "faculty_workshops", {**row, "faculty_id": faculty_id})
    logger.info(f"Created workshop {workshop_id} for faculty {faculty_id}")
    return workshop_id


async def update_workshop(
    conn: AsyncConnection,
    prober: SchemaProber,
    workshop_id: int,
    owner_id: Optional[int],
    values: Dict[str, Any],
) -> None:
    await _require_owned(conn, prober, "faculty_workshops", "id", workshop_id, owner_id, "Workshop")
    values = {k: v for k, v in values.items() if k in WORKSHOP_COLUMNS[2:]}
    await _update(conn, "faculty_workshops", "id", workshop_id, values)
    logger.info(f"Updated workshop {workshop_id}")


async def delete_workshop(conn: AsyncConnection, prober: SchemaProber, workshop_id: int, owner_id: Optional[int]) -> None:
    await _require_owned(conn, prober, "faculty_workshops", "id", workshop_id, owner_id, "Workshop")
    await execute_write(conn, "DELETE FROM faculty_workshops WHERE id = :id", {"id": workshop_id})
    logger.info(f"Deleted workshop {workshop_id}")
