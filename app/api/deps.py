import logging
from typing import Optional

import sqlalchemy.exc
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncConnection

from app.repositories.base import DependentRecordsExist, InvalidInput, RecordNotFound, RepositoryError
from app.repositories.faculty_repo import faculty_exists
from app.security import FACULTY_MANAGER_ROLES, CurrentUser, require_roles

logger = logging.getLogger(__name__)

# Roles allowed to write publications and awards
ACTIVITY_WRITER_ROLES = ("faculty", "hod", "admin")
require_activity_writer = require_roles(*ACTIVITY_WRITER_ROLES)


def repository_http_error(e: RepositoryError) -> HTTPException:
    """Map a repository exception onto the HTTP status the API reports for it."""
    if isinstance(e, RecordNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (InvalidInput, DependentRecordsExist)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


async def resolve_faculty_scope(
    conn: AsyncConnection,
    current_user: CurrentUser,
    requested_id: Optional[int],
) -> int:
    """
    The faculty id a request acts on.

    Faculty callers are bound to their own record (their username is their
    F_id). Managers must name the faculty explicitly.
    """
    if current_user.role == "faculty":
        own_id = int(current_user.username) if current_user.username.isdigit() else None
        if own_id is None or not await faculty_exists(conn, own_id):
            logger.warning(f"User {current_user.id} has role faculty but no faculty row for '{current_user.username}'")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Faculty record not found")
        if requested_id is not None and requested_id != own_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only access your own records")
        return own_id

    if current_user.role in FACULTY_MANAGER_ROLES:
        if requested_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Faculty ID is required")
        return requested_id

    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def database_http_error(e: sqlalchemy.exc.SQLAlchemyError) -> HTTPException:
    """500 carrying the driver message; this API is an internal admin tool."""
    detail = str(getattr(e, "orig", None) or e).splitlines()[0]
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


async def resolve_owner_scope(conn: AsyncConnection, current_user: CurrentUser) -> Optional[int]:
    """Faculty callers may only touch rows they own; managers may touch any."""
    if current_user.role != "faculty":
        return None
    return await resolve_faculty_scope(conn, current_user, None)
