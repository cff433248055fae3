import os

import pytest
from httpx import AsyncClient
from sqlalchemy import inspect

from app.core.config import settings

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"

AWARD_FORM = {
    "award_name": "Excellence in Teaching",
    "awarding_organization": "University of Mumbai",
    "award_date": "2024-03-08",
    "category": "Teaching",
}


async def _table_exists(conn, name: str) -> bool:
    return await conn.run_sync(lambda c: inspect(c).has_table(name))


def _stored_certificates(faculty_id: int) -> list:
    return [name for name in os.listdir(settings.UPLOAD_DIR) if name.startswith(f"{faculty_id}_")]


@pytest.mark.asyncio
async def test_award_without_certificate_writes_nothing(client: AsyncClient, db_conn, faculty_headers, faculty_member):
    response = await client.post("/api/faculty/awards", data=AWARD_FORM, headers=faculty_headers)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Certificate file is required"}
    assert not await _table_exists(db_conn, "faculty_awards")
    assert _stored_certificates(faculty_member) == []


@pytest.mark.asyncio
async def test_non_pdf_certificate_is_rejected(client: AsyncClient, db_conn, faculty_headers, faculty_member):
    response = await client.post(
        "/api/faculty/awards",
        data=AWARD_FORM,
        files={"certificate": ("certificate.png", b"\x89PNG\r\n", "image/png")},
        headers=faculty_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Only PDF files are allowed for certificates"
    assert not await _table_exists(db_conn, "faculty_awards")
    assert _stored_certificates(faculty_member) == []


@pytest.mark.asyncio
async def test_missing_fields_are_named(client: AsyncClient, faculty_headers):
    form = {k: v for k, v in AWARD_FORM.items() if k != "awarding_organization"}

    response = await client.post(
        "/api/faculty/awards",
        data=form,
        files={"certificate": ("award.pdf", PDF_BYTES, "application/pdf")},
        headers=faculty_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: awarding_organization"


@pytest.mark.asyncio
async def test_create_list_and_delete_award(client: AsyncClient, faculty_headers, faculty_member):
    response = await client.post(
        "/api/faculty/awards",
        data=AWARD_FORM,
        files={"certificate": ("excellence award.pdf", PDF_BYTES, "application/pdf")},
        headers=faculty_headers,
    )

    assert response.status_code == 200
    award = response.json()["award"]
    assert award["certificate"].startswith(f"{settings.UPLOAD_URL_BASE}/{faculty_member}_")
    assert award["certificate"].endswith("excellence_award.pdf")
    stored = _stored_certificates(faculty_member)
    assert len(stored) == 1

    awards = (await client.get("/api/faculty/awards", headers=faculty_headers)).json()["awards"]
    assert [a["award_name"] for a in awards] == ["Excellence in Teaching"]

    deleted = await client.delete(f"/api/faculty/awards/{award['award_id']}", headers=faculty_headers)

    assert deleted.status_code == 200
    assert _stored_certificates(faculty_member) == []


@pytest.mark.asyncio
async def test_faculty_cannot_add_award_for_someone_else(client: AsyncClient, faculty_headers, add_faculty):
    await add_faculty(102, "Computer Engineering")

    response = await client.post(
        "/api/faculty/awards",
        data={**AWARD_FORM, "facultyId": "102"},
        files={"certificate": ("award.pdf", PDF_BYTES, "application/pdf")},
        headers=faculty_headers,
    )

    assert response.status_code == 403
    assert _stored_certificates(102) == []


@pytest.mark.asyncio
async def test_update_missing_award(client: AsyncClient, faculty_headers):
    response = await client.put("/api/faculty/awards/42", json={"category": "Research"}, headers=faculty_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Award not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["award_name", "awarding_organization", "award_date"])
async def test_update_rejects_null_required_field(client: AsyncClient, faculty_headers, field):
    created = await client.post(
        "/api/faculty/awards",
        data=AWARD_FORM,
        files={"certificate": ("award.pdf", PDF_BYTES, "application/pdf")},
        headers=faculty_headers,
    )
    award_id = created.json()["award"]["award_id"]

    response = await client.put(f"/api/faculty/awards/{award_id}", json={field: None}, headers=faculty_headers)

    assert response.status_code == 400
    assert field in response.json()["message"]
    awards = (await client.get("/api/faculty/awards", headers=faculty_headers)).json()["awards"]
    assert awards[0]["award_name"] == "Excellence in Teaching"


@pytest.mark.asyncio
async def test_update_award_category(client: AsyncClient, faculty_headers):
    created = await client.post(
        "/api/faculty/awards",
        data=AWARD_FORM,
        files={"certificate": ("award.pdf", PDF_BYTES, "application/pdf")},
        headers=faculty_headers,
    )
    award_id = created.json()["award"]["award_id"]

    response = await client.put(f"/api/faculty/awards/{award_id}", json={"category": "Research"}, headers=faculty_headers)

    assert response.status_code == 200
    awards = (await client.get("/api/faculty/awards", headers=faculty_headers)).json()["awards"]
    assert awards[0]["category"] == "Research"
