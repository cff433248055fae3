"""
Per-faculty documents: the biodata and the comprehensive profile.

The faculty profile is the one required section; when it is missing the
caller gets RecordNotFound before anything is drawn. Every other section is
loaded through ``load_section`` and degrades on its own.
"""

import datetime
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncConnection

from app.core.config import settings
from app.db.schema_prober import SchemaProber
from app.reports.composer import RenderedReport, ReportComposer
from app.reports.formatting import display, format_date, format_inr
from app.reports.sections import Ok, SectionResult, load_section
from app.repositories import activity_repo, award_repo, publication_repo, report_repo
from app.repositories.base import RecordNotFound

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not Available"
NOT_SPECIFIED = "Not Specified"

PROFILE_DEFAULTS = {
    "Email": NOT_AVAILABLE,
    "Phone_Number": NOT_AVAILABLE,
    "Current_Designation": NOT_SPECIFIED,
    "Highest_Degree": NOT_SPECIFIED,
    "Experience": 0,
    "Date_of_Joining": None,
    "Research_Interest": NOT_SPECIFIED,
    "Bio": "",
}

PUBLICATION_GROUPS = [
    ("Journal Articles", ("journal",)),
    ("Conference Papers", ("conference",)),
    ("Books and Book Chapters", ("book",)),
]
OTHER_PUBLICATIONS = "Other Publications"

# Contribution_Type keyword -> bucket, first match wins
CONTRIBUTION_BUCKETS = [
    ("publication", ("publication", "journal", "conference", "paper", "book")),
    ("project", ("project", "research")),
    ("workshop", ("workshop", "seminar", "training", "fdp")),
    ("award", ("award", "achievement", "recognition")),
    ("membership", ("member", "association", "society", "body")),
]

COMPREHENSIVE_COLUMNS = {
    "publications": ["id", "title", "authors", "venue", "year", "doi"],
    "researchProjects": ["id", "title", "funding_agency", "amount", "start_date", "end_date", "status"],
    "workshops": ["id", "title", "venue", "type", "date"],
    "awards": ["id", "title", "awarding_organization", "date"],
    "memberships": ["id", "organization", "membership_type", "start_date", "end_date"],
    "contributions": ["id", "type", "title", "date", "details"],
}


def classify_contribution(contribution_type: Optional[str]) -> str:
    lowered = (contribution_type or "").lower()
    for bucket, keywords in CONTRIBUTION_BUCKETS:
        if any(keyword in lowered for keyword in keywords):
            return bucket
    return "other"


def split_contributions(rows: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    buckets: Dict[str, List[Dict[str, Any]]] = {name: [] for name, _ in CONTRIBUTION_BUCKETS}
    buckets["other"] = []
    for row in rows:
        buckets[classify_contribution(row.get("Contribution_Type"))].append(row)
    return buckets


def group_publications(publications: List[Dict[str, Any]]) -> "OrderedDict[str, List[Dict[str, Any]]]":
    """Publications keyed by display group; empty groups are left out."""
    grouped: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict((title, []) for title, _ in PUBLICATION_GROUPS)
    grouped[OTHER_PUBLICATIONS] = []
    for publication in publications:
        kind = (publication.get("publication_type") or publication.get("type") or "").lower()
        target = OTHER_PUBLICATIONS
        for title, keywords in PUBLICATION_GROUPS:
            if any(keyword in kind for keyword in keywords):
                target = title
                break
        grouped[target].append(publication)
    return OrderedDict((title, rows) for title, rows in grouped.items() if rows)


def with_profile_defaults(profile: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(profile)
    for key, default in PROFILE_DEFAULTS.items():
        if merged.get(key) in (None, ""):
            merged[key] = default
    return merged


async def _require_profile(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> Dict[str, Any]:
    profile = await report_repo.fetch_faculty_profile(conn, prober, faculty_id)
    if profile is None:
        raise RecordNotFound("Faculty not found")
    return profile


def _document_filename(kind: str, faculty_id: Any, generated_on: datetime.date) -> str:
    return f"faculty_{kind}_{faculty_id}_{generated_on.isoformat()}.pdf"


def _new_composer(title: str, faculty_name: str, generated_on: datetime.date) -> ReportComposer:
    return ReportComposer(
        title,
        footer_left=f"Generated on: {format_date(generated_on)}",
        footer_right=faculty_name,
    )


def _profile_pairs(profile: Dict[str, Any]) -> List[tuple]:
    return [
        ("Faculty ID", profile.get("F_id")),
        ("Name", profile.get("F_name")),
        ("Department", profile.get("F_dept")),
        ("Designation", profile.get("Current_Designation")),
        ("Highest Qualification", profile.get("Highest_Degree")),
        ("Experience (years)", profile.get("Experience")),
        ("Date of Joining", format_date(profile.get("Date_of_Joining"), NOT_AVAILABLE)),
        ("Email", profile.get("Email")),
        ("Phone", profile.get("Phone_Number")),
    ]


def _draw_publication_groups(composer: ReportComposer, publications: List[Dict[str, Any]]):
    for title, rows in group_publications(publications).items():
        composer.line(title, size=11, bold=True)
        for number, row in enumerate(rows, start=1):
            text = display(row.get("title_of_the_paper") or row.get("title"))
            venue = row.get("name_of_the_conference") or row.get("venue")
            year = row.get("Year_Of_Study") or row.get("year")
            entry = f"{number}. {text}"
            if venue:
                entry += f", {venue}"
            if year:
                entry += f" ({year})"
            if row.get("doi"):
                entry += f" DOI: {row['doi']}"
            composer.paragraph(entry, indent=10)
        composer.space(4)


def _draw_awards(composer: ReportComposer, awards: List[Dict[str, Any]]):
    composer.table(
        ["Award", "Organization", "Category", "Date"],
        [
            [
                display(a.get("award_name") or a.get("Contribution_Title")),
                display(a.get("awarding_organization") or a.get("Journal_Conference")),
                display(a.get("category")),
                format_date(a.get("award_date") or a.get("Contribution_Date")),
            ]
            for a in awards
        ],
        [200, 150, 80, 85],
    )


def _draw_memberships(composer: ReportComposer, memberships: List[Dict[str, Any]]):
    composer.table(
        ["Organization", "Type", "Membership ID", "From", "To"],
        [
            [
                display(m.get("organization")),
                display(m.get("membership_type")),
                display(m.get("membership_identifier")),
                format_date(m.get("start_date")),
                format_date(m.get("end_date"), "Present"),
            ]
            for m in memberships
        ],
        [170, 100, 95, 75, 75],
    )


def _draw_contribution_groups(composer: ReportComposer, contributions: List[Dict[str, Any]]):
    grouped: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    for row in contributions:
        grouped.setdefault(display(row.get("Contribution_Type"), "Other"), []).append(row)
    for kind, rows in grouped.items():
        composer.line(kind, size=11, bold=True)
        for row in rows:
            date = format_date(row.get("Contribution_Date"), display(row.get("Year"), ""))
            title = display(row.get("Contribution_Title"))
            composer.paragraph(f"- {title} {f'({date})' if date else ''}".rstrip(), indent=10)
            if row.get("Description"):
                composer.paragraph(row["Description"], size=9, indent=20)
        composer.space(4)


# --- biodata ---

@dataclass
class BiodataData:
    profile: Dict[str, Any]
    sections: Dict[str, SectionResult] = field(default_factory=dict)


async def load_biodata(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> BiodataData:
    profile = await _require_profile(conn, prober, faculty_id)
    loaders: Dict[str, Callable] = {
        "publications": lambda: publication_repo.list_publications(conn, prober, faculty_id),
        "awards": lambda: award_repo.list_awards(conn, prober, faculty_id),
        "memberships": lambda: activity_repo.list_memberships(conn, prober, faculty_id),
        "contributions": lambda: activity_repo.list_contributions(conn, prober, faculty_id),
    }
    data = BiodataData(profile=profile)
    for name, loader in loaders.items():
        data.sections[name] = await load_section(conn, name, loader)
    return data


def render_biodata(data: BiodataData, generated_on: datetime.date) -> RenderedReport:
    profile = data.profile
    composer = _new_composer(f"Faculty Biodata - {profile['F_name']}", profile["F_name"], generated_on)
    composer.letterhead(settings.INSTITUTE_TRUST_NAME, settings.INSTITUTE_NAME, settings.INSTITUTE_AFFILIATION)
    composer.heading("FACULTY BIODATA", align="center")

    composer.subheading("Personal Information")
    composer.key_values(_profile_pairs(with_profile_defaults(profile)))
    if profile.get("Research_Interest"):
        composer.paragraph(f"Research Interests: {profile['Research_Interest']}")

    composer.section("Publications", data.sections["publications"], lambda rows: _draw_publication_groups(composer, rows))
    composer.section("Awards and Recognition", data.sections["awards"], lambda rows: _draw_awards(composer, rows))
    composer.section("Professional Memberships", data.sections["memberships"], lambda rows: _draw_memberships(composer, rows))
    composer.section("Other Contributions", data.sections["contributions"], lambda rows: _draw_contribution_groups(composer, rows))
    return composer.render()


def biodata_filename(faculty_id: Any, generated_on: datetime.date) -> str:
    return _document_filename("biodata", faculty_id, generated_on)


# --- comprehensive profile ---

@dataclass
class ComprehensiveData:
    profile: Dict[str, Any]
    hod_name: str
    sections: Dict[str, SectionResult] = field(default_factory=dict)

    def table_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """Section rows keyed like ``COMPREHENSIVE_COLUMNS``; unavailable sections are empty."""
        return {
            name: result.data if isinstance(result, Ok) else []
            for name, result in self.sections.items()
        }


def _publication_rows(sources: List[Dict[str, Any]], contributions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = [
        {"id": r.get("id"), "title": r.get("title"), "authors": r.get("authors"), "venue": r.get("venue"),
         "year": r.get("year"), "doi": r.get("doi"), "type": r.get("type") or r.get("source")}
        for r in sources
    ]
    rows += [
        {"id": c.get("Contribution_ID"), "title": c.get("Contribution_Title"), "authors": None,
         "venue": c.get("Journal_Conference"), "year": c.get("Year"), "doi": None, "type": c.get("Contribution_Type")}
        for c in contributions
    ]
    return rows


def _project_rows(projects: List[Dict[str, Any]], contributions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if projects:
        return [
            {"id": p.get("id"), "title": p.get("title"), "funding_agency": p.get("funding_agency"),
             "amount": p.get("funding_amount"), "start_date": p.get("start_date"),
             "end_date": p.get("end_date"), "status": p.get("status")}
            for p in projects
        ]
    return [
        {"id": c.get("Contribution_ID"), "title": c.get("Contribution_Title"), "funding_agency": c.get("Journal_Conference"),
         "amount": None, "start_date": c.get("Contribution_Date"), "end_date": None, "status": None}
        for c in contributions
    ]


def _contribution_rows(contributions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {"id": c.get("Contribution_ID"), "type": c.get("Contribution_Type"), "title": c.get("Contribution_Title"),
         "date": c.get("Contribution_Date") or c.get("Year"), "details": c.get("Journal_Conference") or c.get("Description")}
        for c in contributions
    ]


async def load_comprehensive(conn: AsyncConnection, prober: SchemaProber, faculty_id: Any) -> ComprehensiveData:
    profile = await _require_profile(conn, prober, faculty_id)

    hod = await load_section(conn, "hod", lambda: report_repo.lookup_hod_name(conn, prober, faculty_id))
    hod_name = hod.data if isinstance(hod, Ok) and hod.data else settings.DEFAULT_HOD_NAME

    contributions = await load_section(
        conn, "contributions", lambda: activity_repo.list_contributions(conn, prober, faculty_id)
    )
    buckets = split_contributions(contributions.data) if isinstance(contributions, Ok) else split_contributions([])

    async def publications():
        sources = await report_repo.fetch_all_publications(conn, prober, faculty_id)
        return _publication_rows(sources, buckets["publication"])

    async def research_projects():
        projects = await report_repo.fetch_research_projects(conn, prober, faculty_id)
        return _project_rows(projects, buckets["project"])

    async def awards():
        rows = await award_repo.list_awards(conn, prober, faculty_id)
        merged = [
            {"id": a["award_id"], "title": a["award_name"], "awarding_organization": a["awarding_organization"],
             "date": a["award_date"], "category": a.get("category")}
            for a in rows
        ]
        merged += [
            {"id": c.get("Contribution_ID"), "title": c.get("Contribution_Title"),
             "awarding_organization": c.get("Journal_Conference"), "date": c.get("Contribution_Date"), "category": None}
            for c in buckets["award"]
        ]
        return merged

    async def memberships():
        rows = await activity_repo.list_memberships(conn, prober, faculty_id)
        merged = [
            {"id": m["membership_id"], "organization": m["organization"], "membership_type": m["membership_type"],
             "start_date": m["start_date"], "end_date": m["end_date"]}
            for m in rows
        ]
        merged += [
            {"id": c.get("Contribution_ID"), "organization": c.get("Contribution_Title"),
             "membership_type": c.get("Contribution_Type"), "start_date": c.get("Contribution_Date"), "end_date": None}
            for c in buckets["membership"]
        ]
        return merged

    async def workshops():
        rows = await activity_repo.list_workshops(conn, prober, faculty_id)
        merged = [
            {"id": w["id"], "title": w["title"], "venue": w["venue"], "type": w["type"], "date": w["start_date"]}
            for w in rows
        ]
        merged += [
            {"id": c.get("Contribution_ID"), "title": c.get("Contribution_Title"), "venue": c.get("Journal_Conference"),
             "type": c.get("Contribution_Type"), "date": c.get("Contribution_Date") or c.get("Year")}
            for c in buckets["workshop"]
        ]
        return merged

    data = ComprehensiveData(profile=with_profile_defaults(profile), hod_name=hod_name)
    loaders = OrderedDict([
        ("publications", publications),
        ("researchProjects", research_projects),
        ("workshops", workshops),
        ("awards", awards),
        ("memberships", memberships),
    ])
    for name, loader in loaders.items():
        data.sections[name] = await load_section(conn, name, loader)
    if isinstance(contributions, Ok):
        data.sections["contributions"] = Ok(_contribution_rows(buckets["other"]))
    else:
        data.sections["contributions"] = contributions
    return data


def render_comprehensive(data: ComprehensiveData, generated_on: datetime.date) -> RenderedReport:
    profile = data.profile
    name = profile["F_name"]
    composer = _new_composer(f"Comprehensive Faculty Profile - {name}", name, generated_on)
    composer.letterhead(settings.INSTITUTE_TRUST_NAME, settings.INSTITUTE_NAME, settings.INSTITUTE_AFFILIATION)
    composer.heading("COMPREHENSIVE FACULTY PROFILE", align="center")

    composer.subheading("Profile")
    composer.key_values(_profile_pairs(profile))
    composer.paragraph(f"Research Interests: {profile['Research_Interest']}")
    if profile.get("Bio"):
        composer.paragraph(profile["Bio"])

    sections = data.sections
    composer.section(
        "Publications",
        sections["publications"],
        lambda rows: composer.table(
            ["Title", "Authors", "Venue", "Year", "DOI / ISBN"],
            [[display(r["title"]), display(r["authors"]), display(r["venue"]), display(r["year"]), display(r["doi"])]
             for r in rows],
            [170, 90, 130, 40, 85],
        ),
    )
    composer.section(
        "Research Projects",
        sections["researchProjects"],
        lambda rows: composer.table(
            ["Title", "Funding Agency", "Amount", "Start", "End", "Status"],
            [[display(r["title"]), display(r["funding_agency"]), format_inr(r["amount"], symbol="Rs. "),
              format_date(r["start_date"]), format_date(r["end_date"], "Ongoing"), display(r["status"])]
             for r in rows],
            [150, 100, 75, 60, 60, 70],
        ),
    )
    composer.section(
        "Workshops, Seminars and Training",
        sections["workshops"],
        lambda rows: composer.table(
            ["Title", "Type", "Venue", "Date"],
            [[display(r["title"]), display(r["type"]), display(r["venue"]), format_date(r["date"], display(r["date"]))]
             for r in rows],
            [200, 80, 155, 80],
        ),
    )
    composer.section(
        "Awards and Recognition",
        sections["awards"],
        lambda rows: composer.table(
            ["Award", "Awarding Organization", "Date"],
            [[display(r["title"]), display(r["awarding_organization"]), format_date(r["date"])] for r in rows],
            [220, 200, 95],
        ),
    )
    composer.section(
        "Professional Memberships",
        sections["memberships"],
        lambda rows: composer.table(
            ["Organization", "Membership Type", "From", "To"],
            [[display(r["organization"]), display(r["membership_type"]), format_date(r["start_date"]),
              format_date(r["end_date"], "Present")] for r in rows],
            [200, 135, 90, 90],
        ),
    )
    composer.section(
        "Other Contributions",
        sections["contributions"],
        lambda rows: composer.table(
            ["Type", "Title", "Date", "Details"],
            [[display(r["type"]), display(r["title"]), format_date(r["date"], display(r["date"])), display(r["details"])]
             for r in rows],
            [90, 180, 70, 175],
        ),
    )

    composer.signature_block(name, data.hod_name)
    return composer.render()


def comprehensive_filename(faculty_id: Any, generated_on: datetime.date) -> str:
    return _document_filename("comprehensive_profile", faculty_id, generated_on)
