import logging
from typing import Optional

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncConnection

from app.api.deps import database_http_error, repository_http_error, resolve_faculty_scope
from app.db.connection import get_db
from app.db.schema_prober import SchemaProber, get_schema_prober
from app.repositories import faculty_repo
from app.repositories.base import RepositoryError
from app.schemas.faculty import FacultyCreate, FacultyUpdate
from app.security import FACULTY_MANAGER_ROLES, CurrentUser, get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/faculty", tags=["faculty"])
async def list_faculty(
    department: Optional[str] = Query(None, description="Department name, or 'all'"),
    search: Optional[str] = Query(None, description="Substring of the name or email"),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
):
    try:
        faculty = await faculty_repo.list_faculty(conn, prober, department=department, search=search)
    except RepositoryError as e:
        raise repository_http_error(e)
    return {"success": True, "faculty": faculty}


@router.post("/faculty", tags=["faculty"])
async def create_faculty(
    body: FacultyCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_roles(*FACULTY_MANAGER_ROLES)),
):
    try:
        faculty_id = await faculty_repo.create_faculty(
            conn,
            prober,
            name=body.F_name.strip(),
            department=body.F_dept,
            prefix=body.deptPrefix,
            details=body.detail_values(),
        )
    except RepositoryError as e:
        logger.warning(f"Create faculty refused: {e}")
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Create faculty failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {
        "success": True,
        "message": "Faculty created successfully",
        "faculty": {"F_id": faculty_id, "F_name": body.F_name.strip(), "F_dept": body.F_dept},
    }


@router.get("/faculty/autocomplete", tags=["faculty"])
async def autocomplete(
    q: str = Query("", description="Part of a name or id"),
    conn: AsyncConnection = Depends(get_db),
):
    try:
        matches = await faculty_repo.autocomplete_faculty(conn, q)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Faculty autocomplete failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "faculty": matches}


@router.get("/faculty/me", tags=["faculty"])
async def my_profile(
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_roles("faculty")),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, None)
    try:
        faculty = await faculty_repo.get_faculty(conn, prober, faculty_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    return {"success": True, "faculty": faculty}


# Registered after the activity routers so /faculty/publications etc. match first
@router.get("/faculty/{faculty_id}", tags=["faculty"])
async def get_faculty(
    faculty_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
):
    try:
        faculty = await faculty_repo.get_faculty(conn, prober, faculty_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Fetching faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "faculty": faculty}


@router.put("/faculty/{faculty_id}", tags=["faculty"])
async def update_faculty(
    body: FacultyUpdate,
    faculty_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    is_self = current_user.role == "faculty" and current_user.username == str(faculty_id)
    if current_user.role not in FACULTY_MANAGER_ROLES and not is_self:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    try:
        await faculty_repo.update_faculty(
            conn,
            prober,
            faculty_id,
            name=body.F_name,
            department=body.F_dept,
            details=body.detail_values(),
        )
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Faculty updated successfully"}


@router.delete("/faculty/{faculty_id}", tags=["faculty"])
async def delete_faculty(
    faculty_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_roles(*FACULTY_MANAGER_ROLES)),
):
    try:
        await faculty_repo.delete_faculty(conn, prober, faculty_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Faculty deleted successfully"}
