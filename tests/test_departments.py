import pytest
from httpx import AsyncClient
from sqlalchemy import text


@pytest.mark.asyncio
async def test_get_missing_department(client: AsyncClient):
    """Unknown department id is a 404 in the error envelope"""
    response = await client.get("/api/departments/999")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Department not found"}


@pytest.mark.asyncio
async def test_create_then_get_department_fills_defaults(client: AsyncClient, admin_headers):
    """A department without a details row reads back with default detail values"""
    response = await client.post(
        "/api/departments", json={"Department_Name": "  Civil Engineering "}, headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["department"]["Department_Name"] == "Civil Engineering"
    department_id = body["department"]["Department_ID"]

    response = await client.get(f"/api/departments/{department_id}")

    assert response.status_code == 200
    department = response.json()["department"]
    assert department["Department_Name"] == "Civil Engineering"
    assert department["Department_Code"] == ""
    assert department["Vision"] == ""
    assert department["Total_Faculty"] == 0
    assert department["Total_Students"] == 0
    assert department["HOD"] is None


@pytest.mark.asyncio
async def test_create_department_with_details(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/departments",
        json={"Department_Name": "Information Technology", "Department_Code": "IT", "Establishment_Year": 2001},
        headers=admin_headers,
    )
    department_id = response.json()["department"]["Department_ID"]

    department = (await client.get(f"/api/departments/{department_id}")).json()["department"]

    assert department["Department_Code"] == "IT"
    assert department["Establishment_Year"] == 2001


@pytest.mark.asyncio
async def test_create_department_missing_name(client: AsyncClient, admin_headers):
    response = await client.post("/api/departments", json={"Department_Code": "XX"}, headers=admin_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "Department_Name" in body["message"]


@pytest.mark.asyncio
async def test_create_department_requires_admin(client: AsyncClient, make_auth_headers):
    response = await client.post("/api/departments", json={"Department_Name": "Physics"})
    assert response.status_code == 401

    hod_headers = await make_auth_headers("hod")
    response = await client.post("/api/departments", json={"Department_Name": "Physics"}, headers=hod_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_session_cookie_is_accepted(client: AsyncClient, make_auth_headers):
    headers = await make_auth_headers("admin")
    client.cookies.set("session_token", headers["Authorization"].split(" ", 1)[1])

    response = await client.post("/api/departments", json={"Department_Name": "Chemistry"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_details_twice_keeps_one_row(client: AsyncClient, db_conn, admin_headers, computer_department):
    """The second update changes the existing details row instead of adding another"""
    first = await client.put(
        f"/api/departments/{computer_department}", json={"Vision": "Excellence"}, headers=admin_headers
    )
    second = await client.put(
        f"/api/departments/{computer_department}", json={"Vision": "Excellence"}, headers=admin_headers
    )
    third = await client.put(
        f"/api/departments/{computer_department}", json={"Mission": "Teach well"}, headers=admin_headers
    )

    assert first.status_code == 200
    assert second.status_code == 200
    assert third.status_code == 200
    result = await db_conn.execute(
        text("SELECT COUNT(*) FROM department_details WHERE Department_ID = :id"), {"id": computer_department}
    )
    assert result.scalar() == 1

    department = (await client.get(f"/api/departments/{computer_department}")).json()["department"]
    assert department["Vision"] == "Excellence"
    assert department["Mission"] == "Teach well"


@pytest.mark.asyncio
async def test_hod_name_is_resolved(client: AsyncClient, admin_headers, computer_department, faculty_member):
    await client.put(
        f"/api/departments/{computer_department}", json={"HOD_ID": faculty_member}, headers=admin_headers
    )

    department = (await client.get(f"/api/departments/{computer_department}")).json()["department"]

    assert department["HOD"] == {"id": faculty_member, "name": "Asha Nair"}


@pytest.mark.asyncio
async def test_unknown_hod_is_reported_as_unknown_faculty(client: AsyncClient, admin_headers, computer_department):
    await client.put(f"/api/departments/{computer_department}", json={"HOD_ID": 999}, headers=admin_headers)

    response = await client.get("/api/departments")

    departments = response.json()["departments"]
    assert departments[0]["HOD"] == {"id": 999, "name": "Unknown Faculty"}


@pytest.mark.asyncio
async def test_hod_can_only_edit_own_department(client: AsyncClient, make_auth_headers, add_department):
    own = await add_department("Mechanical Engineering")
    other = await add_department("Electrical Engineering")
    hod_headers = await make_auth_headers("hod", department_id=own)

    allowed = await client.put(f"/api/departments/{own}", json={"Vision": "Build"}, headers=hod_headers)
    refused = await client.put(f"/api/departments/{other}", json={"Vision": "Build"}, headers=hod_headers)

    assert allowed.status_code == 200
    assert refused.status_code == 403


@pytest.mark.asyncio
async def test_department_user_sees_only_own_department(client: AsyncClient, make_auth_headers, add_department):
    own = await add_department("Mechanical Engineering")
    await add_department("Electrical Engineering")
    department_headers = await make_auth_headers("department", department_id=own)

    scoped = await client.get("/api/departments", headers=department_headers)
    anonymous = await client.get("/api/departments")

    assert [d["Department_ID"] for d in scoped.json()["departments"]] == [own]
    assert len(anonymous.json()["departments"]) == 2


@pytest.mark.asyncio
async def test_department_stats_count_faculty(client: AsyncClient, add_faculty, computer_department):
    await add_faculty(101, "Computer Engineering")
    await add_faculty(102, "Computer Engineering")

    response = await client.get("/api/departments/stats")

    assert response.status_code == 200
    stats = response.json()["departmentStats"]
    assert stats[0]["Department_Name"] == "Computer Engineering"
    assert stats[0]["current_faculty_count"] == 2
    assert stats[0]["Total_Students"] == 0


@pytest.mark.asyncio
async def test_delete_refused_until_faculty_reassigned(
    client: AsyncClient, admin_headers, add_faculty, computer_department
):
    await add_faculty(101, "Computer Engineering")
    await add_faculty(102, "Computer Engineering")

    response = await client.delete(f"/api/departments/{computer_department}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "2 faculty member(s)" in response.json()["message"]

    for faculty_id in (101, 102):
        moved = await client.put(
            f"/api/faculty/{faculty_id}", json={"F_dept": "Mechanical Engineering"}, headers=admin_headers
        )
        assert moved.status_code == 200

    response = await client.delete(f"/api/departments/{computer_department}", headers=admin_headers)

    assert response.status_code == 200
    assert (await client.get(f"/api/departments/{computer_department}")).status_code == 404


@pytest.mark.asyncio
async def test_blank_department_name_is_rejected(client: AsyncClient, admin_headers):
    response = await client.post("/api/departments", json={"Department_Name": "   "}, headers=admin_headers)

    assert response.status_code == 400
    assert "Department_Name" in response.json()["message"]
    assert (await client.get("/api/departments")).json()["departments"] == []


@pytest.mark.asyncio
async def test_details_update_on_table_without_id_column(
    client: AsyncClient, db_conn, admin_headers, computer_department
):
    """Older databases keep department_details keyed only by Department_ID"""
    await db_conn.execute(text("CREATE TABLE department_details (Department_ID INTEGER NOT NULL, Vision TEXT, Mission TEXT)"))
    await db_conn.commit()

    first = await client.put(f"/api/departments/{computer_department}", json={"Vision": "Build"}, headers=admin_headers)
    second = await client.put(f"/api/departments/{computer_department}", json={"Mission": "Teach"}, headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    result = await db_conn.execute(
        text("SELECT Vision, Mission FROM department_details WHERE Department_ID = :id"), {"id": computer_department}
    )
    assert result.all() == [("Build", "Teach")]
