import logging
from typing import Optional

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncConnection

from app.api.deps import (
    database_http_error,
    repository_http_error,
    require_activity_writer,
    resolve_faculty_scope,
    resolve_owner_scope,
)
from app.db.connection import get_db
from app.db.schema_prober import SchemaProber, get_schema_prober
from app.repositories import publication_repo
from app.repositories.base import RepositoryError
from app.schemas.faculty import PublicationCreate, PublicationUpdate
from app.security import CurrentUser, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/faculty/publications", tags=["publications"])
async def list_publications(
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        publications = await publication_repo.list_publications(conn, prober, faculty_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Listing publications for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "publications": publications}


@router.post("/faculty/publications", tags=["publications"])
async def create_publication(
    body: PublicationCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, body.facultyId)
    try:
        publication_id = await publication_repo.create_publication(
            conn, prober, faculty_id, body.model_dump(exclude={"facultyId"})
        )
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Creating publication for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Publication added successfully", "publicationId": publication_id}


@router.put("/faculty/publications", tags=["publications"])
async def update_publication(
    body: PublicationUpdate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await publication_repo.update_publication(conn, prober, body.id, owner_id, body.update_values())
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating publication {body.id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Publication updated successfully"}


@router.delete("/faculty/publications", tags=["publications"])
async def delete_publication(
    id: Optional[int] = Query(None, description="publication_id to delete"),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    if id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Publication ID is required")
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await publication_repo.delete_publication(conn, prober, id, owner_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting publication {id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Publication deleted successfully"}
