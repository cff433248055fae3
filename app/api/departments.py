import logging
from typing import Optional

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncConnection

from app.api.deps import database_http_error, repository_http_error
from app.db.connection import get_db
from app.db.schema_prober import SchemaProber, get_schema_prober
from app.repositories import department_repo
from app.repositories.base import RepositoryError
from app.schemas.departments import DepartmentCreate, DepartmentUpdate
from app.security import CurrentUser, get_current_user, get_optional_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter()


def _can_edit_department(user: CurrentUser, department_id: int) -> bool:
    if user.role == "admin":
        return True
    return user.role in ("hod", "department") and user.department_id == department_id


@router.get("/departments", tags=["departments"])
async def list_departments(
    search: Optional[str] = Query(None, description="Substring of the department name"),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
):
    # Department accounts only ever see their own department
    scope_id = None
    if current_user is not None and current_user.role == "department":
        scope_id = current_user.department_id
        if scope_id is None:
            logger.warning(f"Department user {current_user.id} has no department_id")
            return {"success": True, "departments": []}
    try:
        departments = await department_repo.list_departments(conn, prober, search=search, department_id=scope_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    return {"success": True, "departments": departments}


@router.post("/departments", tags=["departments"])
async def create_department(
    body: DepartmentCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_roles("admin")),
):
    try:
        department_id = await department_repo.create_department(
            conn, prober, body.Department_Name.strip(), body.detail_values()
        )
    except RepositoryError as e:
        logger.error(f"Create department failed: {e}")
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Create department failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {
        "success": True,
        "message": "Department created successfully",
        "department": {"Department_ID": department_id, "Department_Name": body.Department_Name.strip()},
    }


@router.get("/departments/stats", tags=["departments"])
async def department_stats(
    department: Optional[str] = Query(None, description="Department name, or 'all'"),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
):
    try:
        stats = await department_repo.get_department_stats(conn, prober, department)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Department stats failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "departmentStats": stats}


@router.get("/departments/{department_id}", tags=["departments"])
async def get_department(
    department_id: int = Path(..., description="Department_ID"),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
):
    try:
        department = await department_repo.get_department(conn, prober, department_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Fetching department {department_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "department": department}


@router.put("/departments/{department_id}", tags=["departments"])
async def update_department(
    body: DepartmentUpdate,
    department_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    if not _can_edit_department(current_user, department_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    name = body.Department_Name.strip() if body.Department_Name else None
    try:
        await department_repo.update_department(conn, prober, department_id, name, body.detail_values())
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating department {department_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Department updated successfully"}


@router.delete("/departments/{department_id}", tags=["departments"])
async def delete_department(
    department_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_roles("admin")),
):
    try:
        await department_repo.delete_department(conn, prober, department_id)
    except RepositoryError as e:
        logger.warning(f"Delete department {department_id} refused: {e}")
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting department {department_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Department deleted successfully"}
