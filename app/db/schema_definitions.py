"""
Table definitions for the institute database.

The core tables (department, faculty, users) are expected to exist already. The
companion and activity tables are created on first use by the handlers that
write to them, so a partially migrated database keeps working. Tables listed
in OPTIONAL_SOURCE_TABLES are never created here; they are only read when the
schema prober finds them.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
)

metadata = MetaData()

# --- Core tables ---

department = Table(
    "department",
    metadata,
    Column("Department_ID", Integer, primary_key=True, autoincrement=True),
    Column("Department_Name", String(255), nullable=False, comment="Display name, also referenced by faculty.F_dept"),
)

faculty = Table(
    "faculty",
    metadata,
    Column("F_id", BigInteger, primary_key=True, autoincrement=False, comment="Department prefix followed by a two digit suffix"),
    Column("F_name", String(255), nullable=False),
    Column("F_dept", String(255), comment="Department name, not a foreign key"),
)

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, comment="Faculty users log in with their F_id"),
    Column("email", String(255)),
    Column("password", String(255)),
    Column("role", String(50), nullable=False),
    Column("name", String(255)),
    Column("department_id", Integer),
    Column("is_active", Boolean, server_default="1"),
)

# --- Companion tables (created lazily) ---

department_details = Table(
    "department_details",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("Department_ID", Integer, nullable=False),
    Column("Establishment_Year", Integer),
    Column("Department_Code", String(50)),
    Column("Email_ID", String(255)),
    Column("Department_Phone_Number", String(50)),
    Column("HOD_ID", BigInteger, comment="faculty.F_id of the head of department"),
    Column("Vision", Text),
    Column("Mission", Text),
    Column("Total_Faculty", Integer, server_default="0"),
    Column("Total_Students", Integer, server_default="0"),
    Column("Website_URL", String(255)),
    Column("Notable_Achievements", Text),
    Column("Industry_Collaboration", Text),
    Column("Research_Focus_Area", Text),
)

faculty_details = Table(
    "faculty_details",
    metadata,
    Column("F_ID", BigInteger, primary_key=True, autoincrement=False),
    Column("Email", String(255)),
    Column("Phone_Number", String(50)),
    Column("PAN_Number", String(20)),
    Column("Aadhaar_Number", String(20)),
    Column("Highest_Degree", String(100)),
    Column("Area_of_Certification", String(255)),
    Column("Date_of_Joining", Date),
    Column("Experience", Integer, server_default="0"),
    Column("Past_Experience", Text),
    Column("Age", Integer),
    Column("Current_Designation", String(100)),
    Column("Date_of_Birth", Date),
    Column("Nature_of_Association", String(100)),
    Column("is_hod", Boolean, server_default="0"),
    Column("Research_Interest", Text),
    Column("Bio", Text),
)

# --- Activity tables (created lazily) ---

faculty_contributions = Table(
    "faculty_contributions",
    metadata,
    Column("Contribution_ID", Integer, primary_key=True, autoincrement=True),
    Column("F_ID", BigInteger, nullable=False),
    Column("Contribution_Type", String(100), nullable=False, comment="journal, conference, project, workshop, award, membership, ..."),
    Column("Contribution_Title", String(500)),
    Column("Description", Text),
    Column("Journal_Conference", String(255)),
    Column("Year", Integer),
    Column("Contribution_Date", Date),
)

faculty_publications = Table(
    "faculty_publications",
    metadata,
    Column("publication_id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_id", BigInteger, nullable=False),
    Column("title_of_the_paper", String(500), nullable=False),
    Column("name_of_the_conference", String(500), nullable=False),
    Column("Year_Of_Study", String(20), nullable=False),
    Column("paper_link", String(500)),
    Column("publication_type", String(50), server_default="conference", comment="journal, conference, book, book_chapter or other"),
    Column("doi", String(255)),
    Column("created_at", DateTime, server_default=func.now()),
)

faculty_awards = Table(
    "faculty_awards",
    metadata,
    Column("award_id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_id", BigInteger, nullable=False),
    Column("award_name", String(255), nullable=False),
    Column("awarding_organization", String(255), nullable=False),
    Column("award_description", Text),
    Column("award_date", Date, nullable=False),
    Column("category", String(100)),
    Column("certificate", String(500), comment="Public path of the uploaded PDF"),
    Column("created_at", DateTime, server_default=func.now()),
)

faculty_memberships = Table(
    "faculty_memberships",
    metadata,
    Column("membership_id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_id", BigInteger, nullable=False),
    Column("organization", String(255), nullable=False),
    Column("organization_category", String(50), server_default="National"),
    Column("membership_type", String(100), nullable=False),
    Column("membership_identifier", String(100)),
    Column("certificate_url", String(255)),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date),
    Column("description", Text),
)

faculty_research_projects = Table(
    "faculty_research_projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_id", BigInteger, nullable=False),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date),
    Column("status", String(50), nullable=False, comment="planned, ongoing or completed"),
    Column("funding_agency", String(255)),
    Column("funding_amount", Numeric(15, 2)),
    Column("created_at", DateTime, server_default=func.now()),
)

faculty_workshops = Table(
    "faculty_workshops",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_id", BigInteger, nullable=False),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date),
    Column("venue", String(255), nullable=False),
    Column("type", String(20), nullable=False, comment="workshop, conference or seminar"),
    Column("role", String(20), nullable=False, comment="attendee, presenter or organizer"),
    Column("created_at", DateTime, server_default=func.now()),
)

CORE_TABLES = [department, faculty, users]

LAZY_TABLES = {
    table.name: table
    for table in (
        department_details,
        faculty_details,
        faculty_contributions,
        faculty_publications,
        faculty_awards,
        faculty_memberships,
        faculty_research_projects,
        faculty_workshops,
    )
}

# Read only when present; never created by this service
OPTIONAL_SOURCE_TABLES = [
    "faculty_professional_body",
    "bookschapter",
    "conference_publications",
    "paper_publication",
    "student",
]

SCHEMA_DEFINITIONS = {
    "description": "Institute records: departments, faculty and their academic activity.",
    "tables": {table.name: table for table in metadata.sorted_tables},
}
