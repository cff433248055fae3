"""
Institute Management API - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Optional

import pytest
from faker import Faker
from httpx import AsyncClient, ASGITransport
from sqlalchemy import MetaData, insert
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine
from sqlalchemy.pool import NullPool

# Set testing environment
_TEST_ROOT = tempfile.mkdtemp(prefix='ims_test_')
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_ims.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['VALIDATE_SCHEMA_ON_STARTUP'] = 'false'
os.environ['LOG_DIR'] = os.path.join(_TEST_ROOT, 'logs')
os.environ['UPLOAD_DIR'] = os.path.join(_TEST_ROOT, 'uploads')

from app.main import app
from app.db.connection import get_db
from app.db.schema_definitions import CORE_TABLES, department, faculty, metadata, users
from app.reports.institute_reports import new_report_limiter
from app.security import create_session_token

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_ims.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)


def _drop_everything(sync_conn):
    # Lazily created tables are not known up front; reflect and drop whatever is there
    reflected = MetaData()
    reflected.reflect(bind=sync_conn)
    reflected.drop_all(bind=sync_conn)


@pytest.fixture(scope='function')
async def db_conn() -> AsyncGenerator[AsyncConnection, None]:
    """Fresh core tables and one connection shared by the test and the app"""
    async with test_engine.begin() as conn:
        await conn.run_sync(lambda c: metadata.create_all(c, tables=CORE_TABLES))

    async with test_engine.connect() as conn:
        yield conn
        if conn.in_transaction():
            await conn.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(_drop_everything)


@pytest.fixture
async def client(db_conn: AsyncConnection) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_conn

    app.dependency_overrides[get_db] = override_get_db
    # The lifespan does not run under ASGITransport; give each test its own limiter
    app.state.report_limiter = new_report_limiter()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def add_department(db_conn: AsyncConnection):
    """Insert a department row and return its Department_ID"""
    async def _add(name: Optional[str] = None) -> int:
        result = await db_conn.execute(insert(department).values(Department_Name=name or fake.company()))
        await db_conn.commit()
        return result.inserted_primary_key[0]
    return _add


@pytest.fixture
def add_faculty(db_conn: AsyncConnection):
    """Insert a bare faculty row (no faculty_details)"""
    async def _add(f_id: int, dept: str, name: Optional[str] = None) -> int:
        await db_conn.execute(insert(faculty).values(F_id=f_id, F_name=name or fake.name(), F_dept=dept))
        await db_conn.commit()
        return f_id
    return _add


@pytest.fixture
def make_auth_headers(db_conn: AsyncConnection):
    """Create an active user with the given role and return Bearer headers for it"""
    async def _make(role: str, username: Optional[str] = None, department_id: Optional[int] = None) -> dict:
        result = await db_conn.execute(
            insert(users).values(
                username=username or fake.user_name(),
                email=fake.email(),
                password='not-used-by-this-service',
                role=role,
                name=fake.name(),
                department_id=department_id,
                is_active=True,
            )
        )
        await db_conn.commit()
        token = create_session_token(result.inserted_primary_key[0], role)
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
async def admin_headers(make_auth_headers) -> dict:
    return await make_auth_headers('admin')


@pytest.fixture
async def computer_department(add_department) -> int:
    return await add_department('Computer Engineering')


@pytest.fixture
async def faculty_member(add_faculty, computer_department) -> int:
    """Faculty 101 in Computer Engineering"""
    return await add_faculty(101, 'Computer Engineering', 'Asha Nair')


@pytest.fixture
async def faculty_headers(make_auth_headers, faculty_member) -> dict:
    """Faculty users log in with their F_id as username"""
    return await make_auth_headers('faculty', username=str(faculty_member))
