import logging
from typing import Any, Dict, Iterable, List, Optional

import sqlalchemy.exc
from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.query_builder import (
    DEPARTMENT_DETAIL_COLUMNS,
    build_department_list_query,
    build_department_stats_query,
)
from app.db.schema_definitions import department_details
from app.db.schema_prober import SchemaProber
from app.repositories.base import (
    DependentRecordsExist,
    RecordNotFound,
    RepositoryError,
    execute_write,
    fetch_all,
    fetch_one,
)

logger = logging.getLogger(__name__)

UNKNOWN_FACULTY = "Unknown Faculty"

DEPARTMENT_DETAIL_DEFAULTS: Dict[str, Any] = {
    "Establishment_Year": None,
    "Department_Code": "",
    "Email_ID": "",
    "Department_Phone_Number": "",
    "HOD_ID": None,
    "Vision": "",
    "Mission": "",
    "Total_Faculty": 0,
    "Total_Students": 0,
    "Website_URL": "",
    "Notable_Achievements": "",
    "Industry_Collaboration": "",
    "Research_Focus_Area": "",
}


def _with_detail_defaults(row: Dict[str, Any]) -> Dict[str, Any]:
    shaped = dict(row)
    for column, default in DEPARTMENT_DETAIL_DEFAULTS.items():
        if shaped.get(column) is None:
            shaped[column] = default
    return shaped


async def resolve_hod_names(conn: AsyncConnection, hod_ids: Iterable[Any]) -> Dict[Any, str]:
    """Look up faculty names for all HOD ids in one query.

    Best effort: a failure leaves every HOD as "Unknown Faculty".
    """
    ids = sorted({hod_id for hod_id in hod_ids if hod_id is not None}, key=str)
    if not ids:
        return {}
    stmt = text("SELECT F_id, F_name FROM faculty WHERE F_id IN :ids").bindparams(bindparam("ids", expanding=True))
    try:
        result = await conn.execute(stmt, {"ids": ids})
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning(f"HOD name lookup failed for {ids}: {e}")
        return {}
    return {str(row.F_id): row.F_name for row in result}


def _attach_hod(row: Dict[str, Any], names: Dict[Any, str]) -> Dict[str, Any]:
    hod_id = row.get("HOD_ID")
    if hod_id is None:
        row["HOD"] = None
    else:
        row["HOD"] = {"id": hod_id, "name": names.get(str(hod_id), UNKNOWN_FACULTY)}
    return row


async def list_departments(
    conn: AsyncConnection,
    prober: SchemaProber,
    search: Optional[str] = None,
    department_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    has_details = await prober.table_exists("department_details")
    sql, params = build_department_list_query(has_details, search=search, department_id=department_id)
    try:
        rows = [_with_detail_defaults(row) for row in await fetch_all(conn, sql, params)]
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Error listing departments: {e}", exc_info=True)
        raise RepositoryError(f"Failed to fetch departments: {e}") from e
    names = await resolve_hod_names(conn, (row["HOD_ID"] for row in rows))
    return [_attach_hod(row, names) for row in rows]


async def _get_department_row(conn: AsyncConnection, department_id: int) -> Dict[str, Any]:
    row = await fetch_one(
        conn,
        "SELECT Department_ID, Department_Name FROM department WHERE Department_ID = :id",
        {"id": department_id},
    )
    if row is None:
        raise RecordNotFound("Department not found")
    return row


async def get_department(conn: AsyncConnection, prober: SchemaProber, department_id: int) -> Dict[str, Any]:
    department = await _get_department_row(conn, department_id)

    if not await prober.table_exists("department_details"):
        logger.debug("department_details table missing; returning basic department row")
        return _attach_hod(_with_detail_defaults(department), {})

    details = await fetch_one(
        conn,
        f"SELECT {', '.join(DEPARTMENT_DETAIL_COLUMNS)} FROM department_details WHERE Department_ID = :id",
        {"id": department_id},
    )
    department.update(details or {})
    department = _with_detail_defaults(department)
    names = await resolve_hod_names(conn, [department["HOD_ID"]])
    return _attach_hod(department, names)


async def get_department_stats(
    conn: AsyncConnection,
    prober: SchemaProber,
    department: Optional[str] = None,
) -> List[Dict[str, Any]]:
    has_details = await prober.table_exists("department_details")
    sql, params = build_department_stats_query(has_details, department)
    return await fetch_all(conn, sql, params)


def _is_missing_auto_increment(error: Exception) -> bool:
    message = str(error)
    return "Department_ID" in message and "doesn't have a default value" in message


async def create_department(
    conn: AsyncConnection,
    prober: SchemaProber,
    name: str,
    details: Optional[Dict[str, Any]] = None,
) -> int:
    """Insert a department; repair a missing AUTO_INCREMENT once and retry."""
    insert_sql = "INSERT INTO department (Department_Name) VALUES (:name)"
    try:
        result = await execute_write(conn, insert_sql, {"name": name})
    except sqlalchemy.exc.DBAPIError as e:
        if not _is_missing_auto_increment(e):
            raise RepositoryError(f"Failed to create department: {e.orig}") from e
        await conn.rollback()
        logger.warning("department.Department_ID lacks AUTO_INCREMENT; altering column and retrying")
        await execute_write(conn, "ALTER TABLE department MODIFY Department_ID INT NOT NULL AUTO_INCREMENT")
        result = await execute_write(conn, insert_sql, {"name": name})

    department_id = result.lastrowid
    logger.info(f"Created department {department_id} ('{name}')")
    if details:
        await upsert_department_details(conn, prober, department_id, details)
    return department_id


async def upsert_department_details(
    conn: AsyncConnection,
    prober: SchemaProber,
    department_id: int,
    details: Dict[str, Any],
) -> None:
    """Update the details row when present, insert it otherwise."""
    await prober.ensure_table(department_details)
    values = {k: v for k, v in details.items() if k in DEPARTMENT_DETAIL_DEFAULTS}
    existing = await fetch_one(
        conn,
        "SELECT 1 FROM department_details WHERE Department_ID = :id LIMIT 1",
        {"id": department_id},
    )
    if existing:
        if values:
            assignments = ", ".join(f"{column} = :{column}" for column in values)
            await execute_write(
                conn,
                f"UPDATE department_details SET {assignments} WHERE Department_ID = :department_id",
                {**values, "department_id": department_id},
            )
        logger.debug(f"Updated department_details for department {department_id}")
    else:
        columns = ["Department_ID"] + list(values)
        await execute_write(
            conn,
            f"INSERT INTO department_details ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})",
            {**values, "Department_ID": department_id},
        )
        logger.debug(f"Inserted department_details for department {department_id}")


async def update_department(
    conn: AsyncConnection,
    prober: SchemaProber,
    department_id: int,
    name: Optional[str],
    details: Dict[str, Any],
) -> None:
    await _get_department_row(conn, department_id)
    if name:
        await execute_write(
            conn,
            "UPDATE department SET Department_Name = :name WHERE Department_ID = :id",
            {"name": name, "id": department_id},
        )
    await upsert_department_details(conn, prober, department_id, details)
    logger.info(f"Updated department {department_id}")


async def delete_department(conn: AsyncConnection, prober: SchemaProber, department_id: int) -> None:
    department = await _get_department_row(conn, department_id)

    count_row = await fetch_one(
        conn,
        "SELECT COUNT(*) AS faculty_count FROM faculty WHERE F_dept = :name",
        {"name": department["Department_Name"]},
    )
    faculty_count = int(count_row["faculty_count"]) if count_row else 0
    if faculty_count > 0:
        raise DependentRecordsExist(
            f"Cannot delete department with {faculty_count} faculty member(s) assigned to it. "
            "Please reassign faculty first."
        )

    if await prober.table_exists("department_details"):
        try:
            await execute_write(conn, "DELETE FROM department_details WHERE Department_ID = :id", {"id": department_id})
        except sqlalchemy.exc.SQLAlchemyError as e:
            await conn.rollback()
            logger.warning(f"Could not delete details for department {department_id}: {e}")

    await execute_write(conn, "DELETE FROM department WHERE Department_ID = :id", {"id": department_id})
    logger.info(f"Deleted department {department_id} ('{department['Department_Name']}')")
