import pytest
from httpx import AsyncClient

from app.api.admin import BLOCKED_QUERY_MESSAGE
from app.repositories import admin_repo


@pytest.fixture
def console_calls(monkeypatch):
    """Record whether a query reached the database"""
    calls = []

    async def fake_run_console_query(conn, sql):
        calls.append(sql)
        return []

    monkeypatch.setattr(admin_repo, "run_console_query", fake_run_console_query)
    return calls


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query",
    [
        "DROP TABLE faculty",
        "delete from faculty where F_id = 101",
        "SELECT * FROM faculty; UpDaTe faculty SET F_name = 'x'",
        "truncate users",
        "SELECT created_at FROM faculty_awards",
    ],
)
async def test_blocked_queries_never_reach_the_database(client: AsyncClient, admin_headers, console_calls, query):
    response = await client.post("/api/admin/database/query", json={"query": query}, headers=admin_headers)

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": BLOCKED_QUERY_MESSAGE}
    assert console_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"query": ""}, {"query": "   "}])
async def test_blank_query(client: AsyncClient, admin_headers, console_calls, body):
    response = await client.post("/api/admin/database/query", json=body, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "SQL query is required"
    assert console_calls == []


@pytest.mark.asyncio
async def test_console_is_admin_only(client: AsyncClient, make_auth_headers, console_calls):
    hod_headers = await make_auth_headers("hod")

    response = await client.post("/api/admin/database/query", json={"query": "SELECT 1"}, headers=hod_headers)

    assert response.status_code == 403
    assert console_calls == []


@pytest.mark.asyncio
async def test_select_returns_rows(client: AsyncClient, admin_headers, add_faculty):
    await add_faculty(101, "Computer Engineering", "Asha Nair")

    response = await client.post(
        "/api/admin/database/query",
        json={"query": "SELECT F_id, F_name FROM faculty"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "results": [{"F_id": 101, "F_name": "Asha Nair"}]}


@pytest.mark.asyncio
async def test_failing_query_reports_driver_message(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/admin/database/query",
        json={"query": "SELECT * FROM no_such_table"},
        headers=admin_headers,
    )

    assert response.status_code == 500
    message = response.json()["message"]
    assert message.startswith("Query execution failed: ")
    assert "no_such_table" in message


@pytest.mark.asyncio
async def test_table_browser_lists_tables_with_rows(client: AsyncClient, admin_headers, add_faculty):
    await add_faculty(101, "Computer Engineering", "Asha Nair")

    response = await client.get("/api/admin/database/tables", headers=admin_headers)

    assert response.status_code == 200
    tables = {table["name"]: table for table in response.json()["tables"]}
    assert {"department", "faculty", "users"} <= set(tables)
    assert [c["name"] for c in tables["faculty"]["columns"]] == ["F_id", "F_name", "F_dept"]
    assert tables["faculty"]["rows"][0]["F_name"] == "Asha Nair"
