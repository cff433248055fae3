"""
Department-level reports: faculty, students, research and the combined
NAAC/NBA report.

Loading is async and section by section; rendering is plain synchronous
reportlab work so it can be pushed to a worker thread.
"""

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from aiolimiter import AsyncLimiter
from sqlalchemy.ext.asyncio import AsyncConnection

from app.core.config import settings
from app.db.schema_prober import SchemaProber
from app.reports.charts import render_faculty_distribution_chart
from app.reports.composer import RenderedReport, ReportComposer
from app.reports.formatting import display, format_date, format_percentage
from app.reports.sections import Ok, SectionResult, Unavailable, load_section
from app.repositories import report_repo

logger = logging.getLogger(__name__)

REPORT_TYPES = ("faculty", "students", "research", "full")

def new_report_limiter() -> AsyncLimiter:
    """One limiter per running application; PDF rendering is CPU bound."""
    return AsyncLimiter(settings.REPORT_MAX_RATE, settings.REPORT_TIME_PERIOD)

# (column header, row key)
FACULTY_TABLE = [
    ("Faculty ID", "F_id"),
    ("Name", "F_name"),
    ("Department", "F_dept"),
    ("Designation", "Current_Designation"),
    ("Qualification", "Highest_Degree"),
    ("Experience", "Experience"),
    ("Date of Joining", "Date_of_Joining"),
    ("Email", "Email"),
]
FACULTY_TABLE_WIDTHS = [50, 80, 75, 70, 60, 45, 55, 80]

FACULTY_STATS_TABLE = [
    ("Department", "Department"),
    ("Total", "TotalFaculty"),
    ("Professors", "Professors"),
    ("Associate", "AssociateProfessors"),
    ("Assistant", "AssistantProfessors"),
]

RESEARCH_TABLE = [
    ("Faculty", "F_name"),
    ("Department", "F_dept"),
    ("Title", "Title"),
    ("Type", "Type"),
    ("Year", "Year"),
    ("Journal / Conference", "Journal_Conference"),
]
RESEARCH_TABLE_WIDTHS = [75, 75, 150, 50, 35, 130]

RESEARCH_STATS_TABLE = [
    ("Department", "Department"),
    ("Contributions", "TotalContributions"),
    ("Journal", "JournalPublications"),
    ("Conference", "ConferencePublications"),
    ("Projects", "ResearchProjects"),
]

STUDENT_TABLE = [
    ("ID", "id"),
    ("Name", "name"),
    ("Department", "department"),
    ("Year", "year"),
    ("Enrollment No.", "enrollment_number"),
]


@dataclass
class InstituteReportData:
    report_type: str
    department: Optional[str]
    sections: Dict[str, SectionResult] = field(default_factory=dict)

    @property
    def department_label(self) -> str:
        return self.department or "All Departments"


def _cell(row: Dict[str, Any], key: str) -> str:
    if key == "Date_of_Joining":
        return format_date(row.get(key))
    value = display(row.get(key))
    if key == "F_name" and (row.get("is_hod") in (1, True, "1")):
        return f"{value} (HOD)"
    return value


def _table_rows(layout: List[Tuple[str, str]], rows: List[Dict[str, Any]]) -> List[List[str]]:
    return [[_cell(row, key) for _, key in layout] for row in rows]


def _headers(layout: List[Tuple[str, str]]) -> List[str]:
    return [header for header, _ in layout]


async def load_institute_report(
    conn: AsyncConnection,
    prober: SchemaProber,
    report_type: str,
    department: Optional[str],
) -> InstituteReportData:
    data = InstituteReportData(report_type=report_type, department=department)
    sections = data.sections

    if report_type in ("faculty", "full"):
        sections["faculty_stats"] = await load_section(
            conn, "faculty_stats", lambda: report_repo.fetch_faculty_stats(conn, prober, department)
        )
        sections["faculty"] = await load_section(
            conn, "faculty", lambda: report_repo.fetch_faculty_report_rows(conn, prober, department)
        )
    if report_type in ("research", "full"):
        sections["research_stats"] = await load_section(
            conn, "research_stats", lambda: report_repo.fetch_research_stats(conn, prober, department)
        )
        sections["research"] = await load_section(
            conn, "research", lambda: report_repo.fetch_research_rows(conn, prober, department)
        )
    if report_type in ("students", "full"):
        sections["students"] = await load_section(
            conn, "students", lambda: report_repo.fetch_student_rows(conn, prober, department)
        )
    logger.debug(f"Loaded {report_type} report sections: {list(sections)}")
    return data


def table_data(data: InstituteReportData) -> Dict[str, Any]:
    """Columns and rows of the primary table, for ``format == json`` callers."""
    primary = {
        "faculty": ("faculty", FACULTY_TABLE),
        "full": ("faculty", FACULTY_TABLE),
        "research": ("research", RESEARCH_TABLE),
        "students": ("students", STUDENT_TABLE),
    }[data.report_type]
    name, layout = primary
    result = data.sections.get(name)
    payload: Dict[str, Any] = {"columns": _headers(layout), "tableData": []}
    if isinstance(result, Ok):
        payload["tableData"] = _table_rows(layout, result.data)
    elif isinstance(result, Unavailable):
        payload["warnings"] = [f"{name}: {result.reason}"]
    return payload


def _draw_faculty_stats(composer: ReportComposer, stats: List[Dict[str, Any]]):
    rows = _table_rows(FACULTY_STATS_TABLE, stats)
    for row, stat in zip(rows, stats):
        row.append(format_percentage(stat.get("Professors"), stat.get("TotalFaculty")))
    composer.table(_headers(FACULTY_STATS_TABLE) + ["Professors %"], rows)

    try:
        chart = render_faculty_distribution_chart(stats)
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Faculty distribution chart skipped: {e}")
        composer.error_line("Faculty distribution chart could not be rendered")
        return
    if chart:
        composer.image(chart, width=composer.content_width, height=220)


def _draw_faculty_sections(composer: ReportComposer, data: InstituteReportData):
    composer.section("Faculty Statistics", data.sections["faculty_stats"],
                     lambda stats: _draw_faculty_stats(composer, stats))
    composer.section(
        "Faculty Members",
        data.sections["faculty"],
        lambda rows: composer.table(_headers(FACULTY_TABLE), _table_rows(FACULTY_TABLE, rows), FACULTY_TABLE_WIDTHS),
        optional=False,
    )
    faculty = data.sections["faculty"]
    if isinstance(faculty, Ok) and not faculty.data:
        composer.line("No faculty records found.", indent=10)


def _draw_research_sections(composer: ReportComposer, data: InstituteReportData):
    composer.section(
        "Research Summary",
        data.sections["research_stats"],
        lambda stats: composer.table(_headers(RESEARCH_STATS_TABLE), _table_rows(RESEARCH_STATS_TABLE, stats)),
    )
    composer.section(
        "Research Contributions",
        data.sections["research"],
        lambda rows: composer.table(_headers(RESEARCH_TABLE), _table_rows(RESEARCH_TABLE, rows), RESEARCH_TABLE_WIDTHS),
    )


def _draw_student_sections(composer: ReportComposer, data: InstituteReportData, optional: bool):
    composer.section(
        "Students",
        data.sections["students"],
        lambda rows: composer.table(_headers(STUDENT_TABLE), _table_rows(STUDENT_TABLE, rows)),
        optional=optional,
    )


def render_institute_report(data: InstituteReportData, generated_on: Optional[datetime.date] = None) -> RenderedReport:
    generated_on = generated_on or datetime.date.today()
    title = {
        "faculty": "Faculty Report",
        "students": "Student Report",
        "research": "Research Report",
        "full": "NAAC/NBA Report",
    }[data.report_type]
    composer = ReportComposer(
        f"{title} - {data.department_label}",
        footer_left=settings.REPORT_FOOTER,
        footer_right=f"Generated on: {format_date(generated_on)}",
    )

    if data.report_type == "full":
        composer.cover_page(
            settings.INSTITUTE_NAME,
            title,
            [data.department_label, f"Generated on: {format_date(generated_on)}"],
        )
    composer.letterhead(settings.INSTITUTE_TRUST_NAME, settings.INSTITUTE_NAME, settings.INSTITUTE_AFFILIATION)
    composer.heading(f"{title} - {data.department_label}", align="center")

    if data.report_type in ("faculty", "full"):
        _draw_faculty_sections(composer, data)
    if data.report_type in ("research", "full"):
        _draw_research_sections(composer, data)
    if data.report_type in ("students", "full"):
        _draw_student_sections(composer, data, optional=data.report_type == "full")
    return composer.render()


def report_filename(report_type: str, department: Optional[str], generated_on: datetime.date) -> str:
    scope = (department or "all").replace(" ", "_").lower()
    return f"{report_type}_report_{scope}_{generated_on.isoformat()}.pdf"
