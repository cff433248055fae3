"""Data loaders behind the PDF and JSON reports."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import sqlalchemy.exc
from sqlalchemy.ext.asyncio import AsyncConnection

from app.db.query_builder import (
    FACULTY_REPORT_DETAIL_COLUMNS,
    build_faculty_report_query,
    build_faculty_stats_query,
    build_research_query,
    build_research_stats_query,
    build_student_query,
    select_columns,
)
from app.db.schema_prober import SchemaProber
from app.repositories.base import RecordNotFound, fetch_all, fetch_one

logger = logging.getLogger(__name__)

PROFILE_DETAIL_COLUMNS = [
    "Email",
    "Phone_Number",
    "Current_Designation",
    "Highest_Degree",
    "Experience",
    "Date_of_Joining",
    "Research_Interest",
    "Bio",
]


async def resolve_department_name(conn: AsyncConnection, department_id: Optional[Any]) -> Optional[str]:
    """Reports filter faculty by department *name*; numeric ids are looked up first."""
    if department_id in (None, "", "all"):
        return None
    value = str(department_id).strip()
    if not value.isdigit():
        return value
    row = await fetch_one(
        conn,
        "SELECT Department_Name FROM department WHERE Department_ID = :id",
        {"id": int(value)},
    )
    if row is None:
        raise RecordNotFound("Department not found")
    return row["Department_Name"]


async def fetch_faculty_report_rows(conn: AsyncConnection, prober: SchemaProber, department: Optional[str]) -> List[Dict[str, Any]]:
    has_details = await prober.table_exists("faculty_details")
    detail_columns = await prober.existing_columns("faculty_details", FACULTY_REPORT_DETAIL_COLUMNS) if has_details else set()
    has_department_details = await prober.column_exists("department_details", "HOD_ID")
    sql, params = build_faculty_report_query(detail_columns, has_details, has_department_details, department)
    return await fetch_all(conn, sql, params)


async def fetch_faculty_stats(conn: AsyncConnection, prober: SchemaProber, department: Optional[str]) -> List[Dict[str, Any]]:
    has_designation = await prober.column_exists("faculty_details", "Current_Designation")
    sql, params = build_faculty_stats_query(has_designation, department)
    return await fetch_all(conn, sql, params)


async def fetch_research_rows(conn: AsyncConnection, prober: SchemaProber, department: Optional[str]) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_contributions"):
        return []
    sql, params = build_research_query(department)
    return await fetch_all(conn, sql, params)


async def fetch_research_stats(conn: AsyncConnection, prober: SchemaProber, department: Optional[str]) -> List[Dict[str, Any]]:
    if not await prober.table_exists("faculty_contributions"):
        return []
    sql, params = build_research_stats_query(department)
    return await fetch_all(conn, sql, params)


async def fetch_student_rows(conn: AsyncConnection, prober: SchemaProber, department: Optional[str]) -> List[Dict[str, Any]]:
    if not await prober.table_exists("student"):
        raise RecordNotFound("Student records are not available in this database")
    columns = await prober.existing_columns("student", ["id", "name", "department", "year", "enrollment_number"])
    sql, params = build_student_query(columns, department)
    return await fetch_all(conn, sql, params)


async def fetch_faculty_profile(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> Optional[Dict[str, Any]]:
    """The required section of every per-faculty document; None when the faculty row is missing."""
    present = set()
    if await prober.table_exists("faculty_details"):
        present = await prober.existing_columns("faculty_details", PROFILE_DETAIL_COLUMNS)
    columns = ["f.F_id", "f.F_name", "f.F_dept"] + select_columns("fd", PROFILE_DETAIL_COLUMNS, present)
    sql = f"SELECT {', '.join(columns)} FROM faculty f"
    if present:
        sql += " LEFT JOIN faculty_details fd ON f.F_id = fd.F_ID"
    sql += " WHERE f.F_id = :id"
    return await fetch_one(conn, sql, {"id": faculty_id})


@dataclass(frozen=True)
class PublicationSource:
    """Where one candidate publication table keeps each output field."""
    table: str
    owner_column: str
    fields: Dict[str, str]
    approved_only: bool = False


PUBLICATION_SOURCES = [
    PublicationSource(
        "faculty_publications",
        "faculty_id",
        {"id": "publication_id", "title": "title_of_the_paper", "venue": "name_of_the_conference",
         "year": "Year_Of_Study", "doi": "doi", "type": "publication_type"},
    ),
    PublicationSource(
        "bookschapter",
        "user_id",
        {"id": "id", "title": "Title_Of_The_Book_Published", "authors": "Name_Of_The_Teacher",
         "venue": "Name_Of_The_Publisher", "year": "Year_Of_Publication", "doi": "ISBN_Or_ISSN_Number"},
        approved_only=True,
    ),
    PublicationSource(
        "conference_publications",
        "user_id",
        {"id": "id", "title": "Title_Of_The_Paper", "authors": "Name_Of_The_Teacher",
         "venue": "Name_Of_The_Conference", "year": "Year_Of_Publication", "doi": "doi"},
        approved_only=True,
    ),
    PublicationSource(
        "paper_publication",
        "id",
        {"id": "id", "title": "title_of_the_paper", "venue": "name_of_the_conference", "year": "Year_Of_Study"},
    ),
]
PUBLICATION_FIELDS = ["id", "title", "authors", "venue", "year", "doi", "type"]


async def _fetch_publication_source(
    conn: AsyncConnection,
    prober: SchemaProber,
    source: PublicationSource,
    faculty_id: Any,
) -> List[Dict[str, Any]]:
    if not await prober.table_exists(source.table):
        return []
    wanted = set(source.fields.values()) | {source.owner_column, "STATUS"}
    present = await prober.existing_columns(source.table, wanted)
    if source.owner_column not in present:
        logger.debug(f"Publication source '{source.table}' has no '{source.owner_column}' column; skipping")
        return []
    columns = []
    for name in PUBLICATION_FIELDS:
        column = source.fields.get(name)
        columns.append(f"{column} AS {name}" if column in present else f"NULL AS {name}")
    sql = f"SELECT {', '.join(columns)} FROM {source.table} WHERE {source.owner_column} = :id"
    if source.approved_only and "STATUS" in present:
        sql += " AND STATUS = 'approved'"
    rows = await fetch_all(conn, sql, {"id": faculty_id})
    for row in rows:
        row["source"] = source.table
    return rows


async def fetch_all_publications(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> List[Dict[str, Any]]:
    """Publications merged from every candidate table that exists.

    Each table is read on its own; one failing source is logged and skipped.
    """
    merged: List[Dict[str, Any]] = []
    for source in PUBLICATION_SOURCES:
        try:
            merged.extend(await _fetch_publication_source(conn, prober, source, faculty_id))
        except sqlalchemy.exc.SQLAlchemyError as e:
            logger.warning(f"Skipping publication source '{source.table}' for faculty {faculty_id}: {e}")
            await conn.rollback()
    return merged


async def fetch_research_projects(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> List[Dict[str, Any]]:
    """Rows of ``faculty_research_projects`` when that table exists, else []."""
    if not await prober.table_exists("faculty_research_projects"):
        return []
    wanted = ["id", "title", "funding_agency", "funding_amount", "start_date", "end_date", "status"]
    present = await prober.existing_columns("faculty_research_projects", wanted + ["faculty_id"])
    if "faculty_id" not in present:
        return []
    columns = [c if c in present else f"NULL AS {c}" for c in wanted]
    return await fetch_all(
        conn,
        f"SELECT {', '.join(columns)} FROM faculty_research_projects WHERE faculty_id = :id",
        {"id": faculty_id},
    )


async def lookup_hod_name(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> Optional[str]:
    """Name of the head of the faculty member's department, when it can be resolved."""
    faculty = await fetch_one(conn, "SELECT F_dept FROM faculty WHERE F_id = :id", {"id": faculty_id})
    if faculty is None:
        raise RecordNotFound("Faculty not found")
    department = faculty["F_dept"]

    if await prober.column_exists("department_details", "HOD_ID"):
        row = await fetch_one(
            conn,
            "SELECT f.F_name FROM department d "
            "JOIN department_details dd ON d.Department_ID = dd.Department_ID "
            "JOIN faculty f ON f.F_id = dd.HOD_ID "
            "WHERE d.Department_Name = :department",
            {"department": department},
        )
        if row:
            return row["F_name"]

    if await prober.column_exists("faculty_details", "is_hod"):
        row = await fetch_one(
            conn,
            "SELECT f.F_name FROM faculty f JOIN faculty_details fd ON f.F_id = fd.F_ID "
            "WHERE f.F_dept = :department AND fd.is_hod = 1",
            {"department": department},
        )
        if row:
            return row["F_name"]
    return None
