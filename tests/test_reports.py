import base64
from datetime import date

import pytest
from aiolimiter import AsyncLimiter
from httpx import AsyncClient

from app.core.config import settings
from app.main import app
from app.reports.faculty_documents import COMPREHENSIVE_COLUMNS


def _pdf(payload: dict) -> bytes:
    return base64.b64decode(payload["data"]["pdfBase64"])


@pytest.mark.asyncio
async def test_biodata_for_missing_faculty(client: AsyncClient, admin_headers):
    response = await client.get("/api/faculty/biodata", params={"facultyId": 999}, headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Faculty not found"}


@pytest.mark.asyncio
async def test_biodata_without_optional_tables(client: AsyncClient, faculty_headers, faculty_member):
    """Only the core tables exist; every optional section is simply left out"""
    response = await client.get("/api/faculty/biodata", headers=faculty_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["facultyName"] == "Asha Nair"
    assert body["data"]["facultyId"] == faculty_member
    assert body["data"]["filename"] == f"faculty_biodata_{faculty_member}_{date.today().isoformat()}.pdf"
    assert _pdf(body).startswith(b"%PDF")


@pytest.mark.asyncio
async def test_biodata_of_another_faculty_is_forbidden(client: AsyncClient, faculty_headers, add_faculty):
    await add_faculty(102, "Computer Engineering")

    response = await client.get("/api/faculty/biodata", params={"facultyId": 102}, headers=faculty_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "You can only access your own records"


@pytest.mark.asyncio
async def test_comprehensive_report_table_data(client: AsyncClient, faculty_headers, faculty_member):
    await client.post(
        "/api/faculty/contributions",
        json={"Contribution_Type": "Workshop", "Contribution_Title": "FDP on Python", "Year": 2023},
        headers=faculty_headers,
    )
    await client.post(
        "/api/faculty/contributions",
        json={"Contribution_Type": "Expert Talk", "Contribution_Title": "Guest lecture"},
        headers=faculty_headers,
    )

    response = await client.get("/api/faculty/comprehensive-report", headers=faculty_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["columns"] == COMPREHENSIVE_COLUMNS
    assert set(data["tableData"]) == set(COMPREHENSIVE_COLUMNS)
    assert [w["title"] for w in data["tableData"]["workshops"]] == ["FDP on Python"]
    assert [c["title"] for c in data["tableData"]["contributions"]] == ["Guest lecture"]
    assert data["tableData"]["publications"] == []
    assert _pdf(response.json()).startswith(b"%PDF")


@pytest.mark.asyncio
async def test_hod_lookup_defaults_when_unassigned(client: AsyncClient, admin_headers, faculty_member):
    response = await client.post(
        "/api/reports", json={"requestType": "hod-lookup", "facultyId": faculty_member}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "hodName": settings.DEFAULT_HOD_NAME}


@pytest.mark.asyncio
async def test_hod_lookup_uses_department_details(
    client: AsyncClient, admin_headers, add_faculty, computer_department, faculty_member
):
    await add_faculty(102, "Computer Engineering", "Dr. Prakash Menon")
    await client.put(f"/api/departments/{computer_department}", json={"HOD_ID": 102}, headers=admin_headers)

    response = await client.post(
        "/api/reports", json={"requestType": "hod-lookup", "facultyId": faculty_member}, headers=admin_headers
    )

    assert response.json()["hodName"] == "Dr. Prakash Menon"


@pytest.mark.asyncio
async def test_faculty_report_as_json(client: AsyncClient, admin_headers, add_faculty, computer_department):
    await add_faculty(101, "Computer Engineering", "Asha Nair")
    await add_faculty(201, "Mechanical Engineering", "Vikram Shah")

    response = await client.post(
        "/api/reports",
        json={"reportType": "faculty", "departmentId": computer_department, "format": "json"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["reportType"] == "faculty"
    assert data["departmentId"] == computer_department
    assert data["columns"][:3] == ["Faculty ID", "Name", "Department"]
    assert [row[1] for row in data["tableData"]] == ["Asha Nair"]


@pytest.mark.asyncio
async def test_unknown_report_department(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/reports", json={"reportType": "faculty", "departmentId": 999, "format": "json"}, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Department not found"


@pytest.mark.asyncio
async def test_student_report_without_student_table(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/reports", json={"reportType": "students", "format": "json"}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["departmentId"] == "all"
    assert data["tableData"] == []
    assert data["warnings"] == ["students: Student records are not available in this database"]


@pytest.mark.asyncio
async def test_full_report_pdf(client: AsyncClient, admin_headers, add_faculty, computer_department):
    await add_faculty(101, "Computer Engineering")

    response = await client.post("/api/reports", json={"reportType": "full"}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["filename"].endswith(f"{date.today().isoformat()}.pdf")
    assert _pdf(response.json()).startswith(b"%PDF")


@pytest.mark.asyncio
async def test_report_download_requires_id(client: AsyncClient, admin_headers):
    response = await client.get("/api/reports", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Report ID is required"


@pytest.mark.asyncio
async def test_report_download_is_a_pdf(client: AsyncClient, admin_headers, add_faculty, computer_department):
    await add_faculty(101, "Computer Engineering")

    response = await client.get("/api/reports", params={"id": "all"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "attachment;" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_health_without_database(client: AsyncClient):
    """The lifespan does not run under the test transport, so no database is attached"""
    response = await client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"
    assert response.json()["dependencies"]["database"] == "disconnected"
    assert response.json()["dependencies"]["uploads"] == "writable"


class _CountingLimiter(AsyncLimiter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.acquired = 0

    async def acquire(self, amount: float = 1) -> None:
        self.acquired += 1
        await super().acquire(amount)


@pytest.mark.asyncio
async def test_rendering_goes_through_the_application_limiter(client: AsyncClient, admin_headers, faculty_member):
    limiter = _CountingLimiter(5, 60)
    app.state.report_limiter = limiter

    biodata = await client.get("/api/faculty/biodata", params={"facultyId": faculty_member}, headers=admin_headers)
    report = await client.post("/api/reports", json={"reportType": "faculty"}, headers=admin_headers)
    as_json = await client.post("/api/reports", json={"reportType": "faculty", "format": "json"}, headers=admin_headers)

    assert biodata.status_code == 200
    assert report.status_code == 200
    assert as_json.status_code == 200
    assert limiter.acquired == 2
