"""
SQL assembly for the listing and report queries.

Each builder is a pure function of what the schema prober found plus the
caller's filters, and returns ``(sql, params)``. Values always travel in the
params dict; only identifiers known to this module are spliced into the text.
When an optional column is missing it is replaced by ``NULL AS <name>`` so the
rows have the same keys whatever the schema variant.
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

Query = Tuple[str, Dict[str, Any]]

DESIGNATION_RANKS = [
    ("Professor", 1),
    ("Associate Professor", 2),
    ("Assistant Professor", 3),
]
DEFAULT_DESIGNATION_RANK = 4

DEPARTMENT_DETAIL_COLUMNS = [
    "Establishment_Year",
    "Department_Code",
    "Email_ID",
    "Department_Phone_Number",
    "HOD_ID",
    "Vision",
    "Mission",
    "Total_Faculty",
    "Total_Students",
    "Website_URL",
    "Notable_Achievements",
    "Industry_Collaboration",
    "Research_Focus_Area",
]

FACULTY_LIST_DETAIL_COLUMNS = [
    "Email",
    "Phone_Number",
    "Current_Designation",
    "Highest_Degree",
    "Experience",
    "Date_of_Joining",
]

FACULTY_REPORT_DETAIL_COLUMNS = [
    "Email",
    "Current_Designation",
    "Highest_Degree",
    "Experience",
    "Date_of_Joining",
    "is_hod",
]

RESEARCH_CONTRIBUTION_TYPES = ["journal", "conference", "publication", "project"]


def column_or_null(alias: str, column: str, present: Set[str]) -> str:
    """``alias.column`` when the column exists, otherwise ``NULL AS column``."""
    if column in present:
        return f"{alias}.{column}"
    return f"NULL AS {column}"


def select_columns(alias: str, columns: Iterable[str], present: Set[str]) -> List[str]:
    return [column_or_null(alias, column, present) for column in columns]


def designation_rank_case(column: str) -> str:
    whens = " ".join(f"WHEN {column} = '{title}' THEN {rank}" for title, rank in DESIGNATION_RANKS)
    return f"CASE {whens} ELSE {DEFAULT_DESIGNATION_RANK} END"


def _department_filter(column: str, department: Optional[str], params: Dict[str, Any]) -> Optional[str]:
    if department and department != "all":
        params["department"] = department
        return f"{column} = :department"
    return None


def build_department_list_query(
    has_details: bool,
    search: Optional[str] = None,
    department_id: Optional[int] = None,
) -> Query:
    columns = ["d.Department_ID", "d.Department_Name"]
    joins = ""
    if has_details:
        columns += [f"dd.{c}" for c in DEPARTMENT_DETAIL_COLUMNS]
        joins = " LEFT JOIN department_details dd ON d.Department_ID = dd.Department_ID"
    else:
        columns += [f"NULL AS {c}" for c in DEPARTMENT_DETAIL_COLUMNS]

    where: List[str] = []
    params: Dict[str, Any] = {}
    if search:
        where.append("d.Department_Name LIKE :search")
        params["search"] = f"%{search}%"
    if department_id is not None:
        where.append("d.Department_ID = :department_id")
        params["department_id"] = department_id

    sql = f"SELECT {', '.join(columns)} FROM department d{joins}"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY d.Department_Name"
    return sql, params


def build_department_stats_query(has_details: bool, department: Optional[str] = None) -> Query:
    students = "COALESCE(dd.Total_Students, 0)" if has_details else "0"
    joins = " LEFT JOIN department_details dd ON d.Department_ID = dd.Department_ID" if has_details else ""
    params: Dict[str, Any] = {}
    sql = (
        "SELECT d.Department_ID, d.Department_Name, "
        "(SELECT COUNT(*) FROM faculty f WHERE f.F_dept = d.Department_Name) AS current_faculty_count, "
        f"{students} AS Total_Students "
        f"FROM department d{joins}"
    )
    condition = _department_filter("d.Department_Name", department, params)
    if condition:
        sql += f" WHERE {condition}"
    sql += " ORDER BY d.Department_Name"
    return sql, params


def build_faculty_list_query(
    detail_columns: Set[str],
    has_details: bool,
    has_contributions: bool,
    has_professional_body: bool,
    department: Optional[str] = None,
    search: Optional[str] = None,
) -> Query:
    present = detail_columns if has_details else set()
    columns = ["f.F_id", "f.F_name", "f.F_dept"] + select_columns("fd", FACULTY_LIST_DETAIL_COLUMNS, present)
    group_by = ["f.F_id", "f.F_name", "f.F_dept"] + [f"fd.{c}" for c in FACULTY_LIST_DETAIL_COLUMNS if c in present]

    joins = []
    if has_details:
        joins.append("LEFT JOIN faculty_details fd ON f.F_id = fd.F_ID")
    if has_contributions:
        joins.append("LEFT JOIN faculty_contributions c ON f.F_id = c.F_ID")
        columns.append("COUNT(DISTINCT c.Contribution_ID) AS total_contributions")
    else:
        columns.append("0 AS total_contributions")
    if has_professional_body:
        joins.append("LEFT JOIN faculty_professional_body m ON f.F_id = m.f_id")
        columns.append("COUNT(DISTINCT m.SrNo) AS professional_memberships")
    else:
        columns.append("0 AS professional_memberships")

    where: List[str] = []
    params: Dict[str, Any] = {}
    condition = _department_filter("f.F_dept", department, params)
    if condition:
        where.append(condition)
    if search:
        params["search"] = f"%{search}%"
        if "Email" in present:
            where.append("(f.F_name LIKE :search OR fd.Email LIKE :search)")
        else:
            where.append("f.F_name LIKE :search")

    sql = f"SELECT {', '.join(columns)} FROM faculty f"
    if joins:
        sql += " " + " ".join(joins)
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += f" GROUP BY {', '.join(group_by)} ORDER BY f.F_name"
    return sql, params


def build_faculty_report_query(
    detail_columns: Set[str],
    has_details: bool,
    has_department_details: bool,
    department: Optional[str] = None,
) -> Query:
    """Faculty rows ordered HOD first, then designation rank, then joining date."""
    present = detail_columns if has_details else set()
    columns = ["f.F_id", "f.F_name", "f.F_dept"] + select_columns("fd", FACULTY_REPORT_DETAIL_COLUMNS, present)

    hod_checks = []
    if "is_hod" in present:
        hod_checks.append("fd.is_hod = 1")
    if has_department_details:
        hod_checks.append(
            "f.F_id IN (SELECT dd.HOD_ID FROM department_details dd "
            "JOIN department d ON d.Department_ID = dd.Department_ID "
            "WHERE d.Department_Name = f.F_dept AND dd.HOD_ID IS NOT NULL)"
        )
    order_by = []
    if hod_checks:
        order_by.append(f"CASE WHEN {' OR '.join(hod_checks)} THEN 0 ELSE 1 END")
    if "Current_Designation" in present:
        order_by.append(designation_rank_case("fd.Current_Designation"))
    if "Date_of_Joining" in present:
        order_by.append("fd.Date_of_Joining")
    order_by.append("f.F_name")

    params: Dict[str, Any] = {}
    sql = f"SELECT {', '.join(columns)} FROM faculty f"
    if has_details:
        sql += " LEFT JOIN faculty_details fd ON f.F_id = fd.F_ID"
    condition = _department_filter("f.F_dept", department, params)
    if condition:
        sql += f" WHERE {condition}"
    sql += f" ORDER BY {', '.join(order_by)}"
    return sql, params


def build_faculty_stats_query(has_designation: bool, department: Optional[str] = None) -> Query:
    params: Dict[str, Any] = {}
    if has_designation:
        counts = ", ".join(
            f"SUM(CASE WHEN fd.Current_Designation = '{title}' THEN 1 ELSE 0 END) AS {alias}"
            for title, alias in (
                ("Professor", "Professors"),
                ("Associate Professor", "AssociateProfessors"),
                ("Assistant Professor", "AssistantProfessors"),
            )
        )
        joins = " LEFT JOIN faculty_details fd ON f.F_id = fd.F_ID"
    else:
        counts = "0 AS Professors, 0 AS AssociateProfessors, 0 AS AssistantProfessors"
        joins = ""
    sql = f"SELECT f.F_dept AS Department, COUNT(*) AS TotalFaculty, {counts} FROM faculty f{joins}"
    condition = _department_filter("f.F_dept", department, params)
    if condition:
        sql += f" WHERE {condition}"
    sql += " GROUP BY f.F_dept ORDER BY f.F_dept"
    return sql, params


def build_research_query(department: Optional[str] = None) -> Query:
    type_params = {f"type_{i}": t for i, t in enumerate(RESEARCH_CONTRIBUTION_TYPES)}
    placeholders = ", ".join(f":{name}" for name in type_params)
    params: Dict[str, Any] = dict(type_params)
    sql = (
        "SELECT f.F_name, f.F_dept, fc.Contribution_Title AS Title, fc.Contribution_Type AS Type, "
        "fc.Year, fc.Journal_Conference "
        "FROM faculty_contributions fc JOIN faculty f ON fc.F_ID = f.F_id "
        f"WHERE LOWER(fc.Contribution_Type) IN ({placeholders})"
    )
    if department and department != "all":
        sql += " AND f.F_dept = :department"
        params["department"] = department
    sql += " ORDER BY fc.Year DESC, f.F_dept, f.F_name"
    return sql, params


def build_research_stats_query(department: Optional[str] = None) -> Query:
    params: Dict[str, Any] = {}
    sql = (
        "SELECT f.F_dept AS Department, "
        "COUNT(DISTINCT fc.Contribution_ID) AS TotalContributions, "
        "SUM(CASE WHEN LOWER(fc.Contribution_Type) = 'journal' THEN 1 ELSE 0 END) AS JournalPublications, "
        "SUM(CASE WHEN LOWER(fc.Contribution_Type) = 'conference' THEN 1 ELSE 0 END) AS ConferencePublications, "
        "SUM(CASE WHEN LOWER(fc.Contribution_Type) = 'project' THEN 1 ELSE 0 END) AS ResearchProjects "
        "FROM faculty f LEFT JOIN faculty_contributions fc ON f.F_id = fc.F_ID"
    )
    condition = _department_filter("f.F_dept", department, params)
    if condition:
        sql += f" WHERE {condition}"
    sql += " GROUP BY f.F_dept ORDER BY f.F_dept"
    return sql, params


def build_student_query(student_columns: Set[str], department: Optional[str] = None) -> Query:
    columns = select_columns("s", ["id", "name", "department", "year", "enrollment_number"], student_columns)
    params: Dict[str, Any] = {}
    sql = f"SELECT {', '.join(columns)} FROM student s"
    if "department" in student_columns:
        condition = _department_filter("s.department", department, params)
        if condition:
            sql += f" WHERE {condition}"
    if "name" in student_columns:
        sql += " ORDER BY s.name"
    return sql, params
