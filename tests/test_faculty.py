from datetime import date

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_faculty_ids_follow_department_prefix(client: AsyncClient, admin_headers):
    """Ids are the department prefix plus a two digit suffix, counting up"""
    first = await client.post(
        "/api/faculty", json={"F_name": "Meera Iyer", "F_dept": "Computer Engineering"}, headers=admin_headers
    )
    second = await client.post(
        "/api/faculty", json={"F_name": "Rohan Das", "F_dept": "Computer Engineering"}, headers=admin_headers
    )

    assert first.status_code == 200
    assert first.json()["faculty"]["F_id"] == 101
    assert second.json()["faculty"]["F_id"] == 102


@pytest.mark.asyncio
async def test_faculty_id_continues_after_highest_suffix(client: AsyncClient, admin_headers, add_faculty):
    await add_faculty(207, "Mechanical Engineering")

    response = await client.post(
        "/api/faculty", json={"F_name": "Kiran Rao", "F_dept": "Mechanical Engineering"}, headers=admin_headers
    )

    assert response.json()["faculty"]["F_id"] == 208


@pytest.mark.asyncio
async def test_explicit_prefix_for_unmapped_department(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/faculty",
        json={"F_name": "Sara Khan", "F_dept": "Humanities", "deptPrefix": "7"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["faculty"]["F_id"] == 701


@pytest.mark.asyncio
async def test_unknown_department_without_prefix(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/faculty", json={"F_name": "Sara Khan", "F_dept": "Astrology"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid department: Astrology"}


@pytest.mark.asyncio
async def test_new_faculty_reads_back_with_defaults(client: AsyncClient, admin_headers):
    created = await client.post(
        "/api/faculty",
        json={"F_name": "Meera Iyer", "F_dept": "Computer Engineering", "Email": "meera@example.edu"},
        headers=admin_headers,
    )
    faculty_id = created.json()["faculty"]["F_id"]

    response = await client.get(f"/api/faculty/{faculty_id}")

    assert response.status_code == 200
    profile = response.json()["faculty"]
    assert profile["F_name"] == "Meera Iyer"
    assert profile["Email"] == "meera@example.edu"
    assert profile["Phone_Number"] == ""
    assert profile["Experience"] == 0
    assert profile["Date_of_Joining"] == date.today().isoformat()


@pytest.mark.asyncio
async def test_get_missing_faculty(client: AsyncClient):
    response = await client.get("/api/faculty/999")

    assert response.status_code == 404
    assert response.json()["message"] == "Faculty not found"


@pytest.mark.asyncio
async def test_faculty_role_cannot_create_faculty(client: AsyncClient, faculty_headers):
    response = await client.post(
        "/api/faculty", json={"F_name": "X", "F_dept": "Computer Engineering"}, headers=faculty_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_faculty_reads_own_profile(client: AsyncClient, faculty_headers, faculty_member):
    response = await client.get("/api/faculty/me", headers=faculty_headers)

    assert response.status_code == 200
    assert response.json()["faculty"]["F_id"] == faculty_member


@pytest.mark.asyncio
async def test_faculty_updates_only_own_record(client: AsyncClient, faculty_headers, add_faculty, faculty_member):
    await add_faculty(102, "Computer Engineering")

    own = await client.put(
        f"/api/faculty/{faculty_member}", json={"Current_Designation": "Professor"}, headers=faculty_headers
    )
    other = await client.put("/api/faculty/102", json={"Current_Designation": "Professor"}, headers=faculty_headers)

    assert own.status_code == 200
    assert other.status_code == 403
    profile = (await client.get(f"/api/faculty/{faculty_member}")).json()["faculty"]
    assert profile["Current_Designation"] == "Professor"


@pytest.mark.asyncio
async def test_list_faculty_by_department(client: AsyncClient, add_faculty):
    await add_faculty(101, "Computer Engineering", "Asha Nair")
    await add_faculty(201, "Mechanical Engineering", "Vikram Shah")

    response = await client.get("/api/faculty", params={"department": "Computer Engineering"})

    assert response.status_code == 200
    rows = response.json()["faculty"]
    assert [row["F_name"] for row in rows] == ["Asha Nair"]
    assert rows[0]["total_contributions"] == 0


@pytest.mark.asyncio
async def test_autocomplete_matches_name_and_id(client: AsyncClient, add_faculty):
    await add_faculty(101, "Computer Engineering", "Asha Nair")
    await add_faculty(102, "Computer Engineering", "Rohan Das")

    by_name = await client.get("/api/faculty/autocomplete", params={"q": "asha"})
    by_id = await client.get("/api/faculty/autocomplete", params={"q": "102"})

    assert [row["id"] for row in by_name.json()["faculty"]] == [101]
    assert [row["name"] for row in by_id.json()["faculty"]] == ["Rohan Das"]


@pytest.mark.asyncio
async def test_delete_faculty(client: AsyncClient, admin_headers, faculty_member):
    response = await client.delete(f"/api/faculty/{faculty_member}", headers=admin_headers)

    assert response.status_code == 200
    assert (await client.get(f"/api/faculty/{faculty_member}")).status_code == 404


@pytest.mark.asyncio
async def test_publications_are_scoped_to_the_faculty_caller(
    client: AsyncClient, faculty_headers, admin_headers, faculty_member
):
    created = await client.post(
        "/api/faculty/publications",
        json={
            "title_of_the_paper": "Graph Pruning",
            "name_of_the_conference": "ICML",
            "Year_Of_Study": "2024",
            "publication_type": "conference",
        },
        headers=faculty_headers,
    )
    assert created.status_code == 200

    own = await client.get("/api/faculty/publications", headers=faculty_headers)
    other = await client.get("/api/faculty/publications", params={"facultyId": 102}, headers=faculty_headers)
    managed = await client.get("/api/faculty/publications", params={"facultyId": faculty_member}, headers=admin_headers)

    assert [p["title_of_the_paper"] for p in own.json()["publications"]] == ["Graph Pruning"]
    assert other.status_code == 403
    assert len(managed.json()["publications"]) == 1


@pytest.mark.asyncio
async def test_delete_publication_requires_id(client: AsyncClient, faculty_headers):
    response = await client.delete("/api/faculty/publications", headers=faculty_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Publication ID is required"


@pytest.mark.asyncio
async def test_manager_must_name_the_faculty(client: AsyncClient, admin_headers):
    response = await client.get("/api/faculty/memberships", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Faculty ID is required"


@pytest.mark.asyncio
async def test_membership_and_contribution_round_trip(client: AsyncClient, faculty_headers):
    membership = await client.post(
        "/api/faculty/memberships",
        json={"organization": "IEEE", "membership_type": "Senior Member", "start_date": "2020-01-15"},
        headers=faculty_headers,
    )
    contribution = await client.post(
        "/api/faculty/contributions",
        json={"Contribution_Type": "Workshop", "Contribution_Title": "FDP on Python", "Year": 2023},
        headers=faculty_headers,
    )

    assert membership.status_code == 200
    assert contribution.status_code == 200
    memberships = (await client.get("/api/faculty/memberships", headers=faculty_headers)).json()["memberships"]
    contributions = (await client.get("/api/faculty/contributions", headers=faculty_headers)).json()["contributions"]
    assert memberships[0]["organization"] == "IEEE"
    assert memberships[0]["organization_category"] == "National"
    assert contributions[0]["Contribution_Title"] == "FDP on Python"


@pytest.mark.asyncio
async def test_blank_faculty_name_is_rejected(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/faculty", json={"F_name": "   ", "F_dept": "Computer Engineering"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert "F_name" in response.json()["message"]


@pytest.mark.asyncio
async def test_blank_membership_organization_is_rejected(client: AsyncClient, faculty_headers):
    response = await client.post(
        "/api/faculty/memberships",
        json={"organization": " ", "membership_type": "Member", "start_date": "2020-01-15"},
        headers=faculty_headers,
    )

    assert response.status_code == 400
    assert "organization" in response.json()["message"]


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["title_of_the_paper", "name_of_the_conference", "Year_Of_Study"])
async def test_publication_update_rejects_null_required_field(client: AsyncClient, faculty_headers, field):
    created = await client.post(
        "/api/faculty/publications",
        json={"title_of_the_paper": "Graph Pruning", "name_of_the_conference": "ICML", "Year_Of_Study": "2024"},
        headers=faculty_headers,
    )
    publication_id = created.json()["publicationId"]

    response = await client.put(
        "/api/faculty/publications", json={"id": publication_id, field: None}, headers=faculty_headers
    )

    assert response.status_code == 400
    assert field in response.json()["message"]
    publications = (await client.get("/api/faculty/publications", headers=faculty_headers)).json()["publications"]
    assert publications[0]["title_of_the_paper"] == "Graph Pruning"


@pytest.mark.asyncio
async def test_publication_update_keeps_omitted_fields(client: AsyncClient, faculty_headers):
    created = await client.post(
        "/api/faculty/publications",
        json={"title_of_the_paper": "Graph Pruning", "name_of_the_conference": "ICML", "Year_Of_Study": "2024"},
        headers=faculty_headers,
    )
    publication_id = created.json()["publicationId"]

    response = await client.put(
        "/api/faculty/publications", json={"id": publication_id, "doi": None}, headers=faculty_headers
    )

    assert response.status_code == 200
    publication = (await client.get("/api/faculty/publications", headers=faculty_headers)).json()["publications"][0]
    assert publication["name_of_the_conference"] == "ICML"
    assert publication["doi"] is None
