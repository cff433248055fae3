import logging
from typing import Any, Dict, List, Optional

import sqlalchemy.exc
from rapidfuzz import fuzz
from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.query_builder import FACULTY_LIST_DETAIL_COLUMNS, build_faculty_list_query, select_columns
from app.db.schema_definitions import faculty_details
from app.db.schema_prober import SchemaProber
from app.repositories.base import (
    InvalidInput,
    RecordNotFound,
    RepositoryError,
    execute_write,
    fetch_all,
    fetch_one,
)
from app.utils import today_iso

logger = logging.getLogger(__name__)

# Faculty ids are "<prefix><two digit suffix>", e.g. 101, 102 for Computer Engineering
DEPARTMENT_PREFIXES = {
    "Computer Engineering": "1",
    "Mechanical Engineering": "2",
    "Electronics and Telecommunication Engineering": "3",
    "Electrical Engineering": "4",
    "Information Technology": "5",
}
SUFFIX_DIGITS = 2

FACULTY_DETAIL_DEFAULTS: Dict[str, Any] = {
    "Email": "",
    "Phone_Number": "",
    "PAN_Number": "",
    "Aadhaar_Number": "",
    "Highest_Degree": "",
    "Area_of_Certification": "",
    "Date_of_Joining": None,
    "Experience": 0,
    "Past_Experience": "",
    "Age": 18,
    "Current_Designation": "",
    "Date_of_Birth": None,
    "Nature_of_Association": "",
}

AUTOCOMPLETE_LIMIT = 20


def _with_detail_defaults(row: Dict[str, Any]) -> Dict[str, Any]:
    shaped = dict(row)
    for column, default in FACULTY_DETAIL_DEFAULTS.items():
        if shaped.get(column) is None:
            shaped[column] = default
    return shaped


def resolve_prefix(department: Optional[str], explicit_prefix: Optional[str] = None) -> str:
    prefix = str(explicit_prefix).strip() if explicit_prefix not in (None, "") else DEPARTMENT_PREFIXES.get(department or "")
    if not prefix or not prefix.isdigit():
        raise InvalidInput(f"Invalid department: {department}")
    return prefix


async def next_faculty_id(conn: AsyncConnection, prefix: str) -> int:
    """Highest existing suffix under ``prefix`` plus one; ``<prefix>01`` when none exist."""
    rows = await fetch_all(
        conn,
        "SELECT F_id FROM faculty WHERE CAST(F_id AS CHAR) LIKE :pattern",
        {"pattern": prefix + "_" * SUFFIX_DIGITS},
    )
    suffixes = [
        int(str(row["F_id"])[len(prefix):])
        for row in rows
        if str(row["F_id"])[len(prefix):].isdigit()
    ]
    next_suffix = max(suffixes, default=0) + 1
    if next_suffix >= 10 ** SUFFIX_DIGITS:
        raise InvalidInput(f"No faculty ids left for department prefix {prefix}")
    return int(f"{prefix}{next_suffix:0{SUFFIX_DIGITS}d}")


async def faculty_exists(conn: AsyncConnection, faculty_id: Any) -> bool:
    row = await fetch_one(conn, "SELECT F_id FROM faculty WHERE F_id = :id", {"id": faculty_id})
    return row is not None


async def list_faculty(
    conn: AsyncConnection,
    prober: SchemaProber,
    department: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    has_details = await prober.table_exists("faculty_details")
    detail_columns = await prober.existing_columns("faculty_details", FACULTY_LIST_DETAIL_COLUMNS) if has_details else set()
    has_contributions = await prober.table_exists("faculty_contributions")
    has_professional_body = await prober.table_exists("faculty_professional_body")

    sql, params = build_faculty_list_query(
        detail_columns,
        has_details,
        has_contributions,
        has_professional_body,
        department=department,
        search=search,
    )
    try:
        return await fetch_all(conn, sql, params)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Error listing faculty: {e}", exc_info=True)
        raise RepositoryError(f"Failed to fetch faculty: {e}") from e


async def get_faculty(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> Dict[str, Any]:
    row = await fetch_one(conn, "SELECT F_id, F_name, F_dept FROM faculty WHERE F_id = :id", {"id": faculty_id})
    if row is None:
        raise RecordNotFound("Faculty not found")

    if not await prober.table_exists("faculty_details"):
        logger.debug("faculty_details table missing; returning basic faculty row")
        return _with_detail_defaults(row)

    present = await prober.existing_columns("faculty_details", FACULTY_DETAIL_DEFAULTS)
    if present:
        columns = select_columns("fd", FACULTY_DETAIL_DEFAULTS, present)
        details = await fetch_one(
            conn,
            f"SELECT {', '.join(columns)} FROM faculty_details fd WHERE fd.F_ID = :id",
            {"id": faculty_id},
        )
        row.update(details or {})
    return _with_detail_defaults(row)


async def upsert_faculty_details(
    conn: AsyncConnection,
    prober: SchemaProber,
    faculty_id: int,
    details: Dict[str, Any],
) -> None:
    await prober.ensure_table(faculty_details)
    known = {c.name for c in faculty_details.columns}
    values = {k: v for k, v in details.items() if k in known and k != "F_ID"}
    existing = await fetch_one(conn, "SELECT F_ID FROM faculty_details WHERE F_ID = :id", {"id": faculty_id})
    if existing:
        if values:
            assignments = ", ".join(f"{column} = :{column}" for column in values)
            await execute_write(
                conn,
                f"UPDATE faculty_details SET {assignments} WHERE F_ID = :faculty_id",
                {**values, "faculty_id": faculty_id},
            )
    else:
        columns = ["F_ID"] + list(values)
        await execute_write(
            conn,
            f"INSERT INTO faculty_details ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})",
            {**values, "F_ID": faculty_id},
        )


async def create_faculty(
    conn: AsyncConnection,
    prober: SchemaProber,
    name: str,
    department: str,
    prefix: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> int:
    """Insert the faculty row, then its details row.

    The two inserts are committed separately; a failure in between leaves a
    faculty row without details, which every reader tolerates.
    """
    dept_prefix = resolve_prefix(department, prefix)
    faculty_id = await next_faculty_id(conn, dept_prefix)
    try:
        await execute_write(
            conn,
            "INSERT INTO faculty (F_id, F_name, F_dept) VALUES (:id, :name, :dept)",
            {"id": faculty_id, "name": name, "dept": department},
        )
    except sqlalchemy.exc.IntegrityError as e:
        raise InvalidInput(f"Faculty id {faculty_id} already exists") from e
    logger.info(f"Created faculty {faculty_id} ('{name}', {department})")

    initial_details = {"Date_of_Joining": today_iso()}
    initial_details.update({k: v for k, v in (details or {}).items() if v is not None})
    await upsert_faculty_details(conn, prober, faculty_id, initial_details)
    return faculty_id


async def update_faculty(
    conn: AsyncConnection,
    prober: SchemaProber,
    faculty_id: int,
    name: Optional[str] = None,
    department: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    if not await faculty_exists(conn, faculty_id):
        raise RecordNotFound("Faculty not found")

    updates = {k: v for k, v in (("F_name", name), ("F_dept", department)) if v}
    if updates:
        assignments = ", ".join(f"{column} = :{column}" for column in updates)
        await execute_write(conn, f"UPDATE faculty SET {assignments} WHERE F_id = :id", {**updates, "id": faculty_id})
    if details:
        await upsert_faculty_details(conn, prober, faculty_id, details)
    logger.info(f"Updated faculty {faculty_id}")


async def delete_faculty(conn: AsyncConnection, prober: SchemaProber, faculty_id: int) -> None:
    if not await faculty_exists(conn, faculty_id):
        raise RecordNotFound("Faculty not found")

    if await prober.table_exists("faculty_details"):
        try:
            await execute_write(conn, "DELETE FROM faculty_details WHERE F_ID = :id", {"id": faculty_id})
        except sqlalchemy.exc.SQLAlchemyError as e:
            await conn.rollback()
            logger.warning(f"Could not delete details for faculty {faculty_id}: {e}")

    await execute_write(conn, "DELETE FROM faculty WHERE F_id = :id", {"id": faculty_id})
    logger.info(f"Deleted faculty {faculty_id}")


async def autocomplete_faculty(conn: AsyncConnection, term: str) -> List[Dict[str, Any]]:
    """Faculty whose name or id contains ``term``, best fuzzy match first."""
    term = (term or "").strip()
    rows = await fetch_all(
        conn,
        "SELECT F_id, F_name, F_dept FROM faculty "
        "WHERE F_name LIKE :term OR CAST(F_id AS CHAR) LIKE :term ORDER BY F_name",
        {"term": f"%{term}%"},
    )
    if term:
        rows.sort(key=lambda row: fuzz.WRatio(term.lower(), str(row["F_name"]).lower()), reverse=True)
    return [
        {"id": row["F_id"], "name": row["F_name"], "department": row["F_dept"]}
        for row in rows[:AUTOCOMPLETE_LIMIT]
    ]
