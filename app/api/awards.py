import asyncio
import logging
import os
import re
import time
from datetime import date
from typing import Optional

import sqlalchemy.exc
from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncConnection

from app.api.deps import (
    database_http_error,
    repository_http_error,
    require_activity_writer,
    resolve_faculty_scope,
    resolve_owner_scope,
)
from app.core.config import settings
from app.db.connection import get_db
from app.db.schema_prober import SchemaProber, get_schema_prober
from app.repositories import award_repo
from app.repositories.base import RepositoryError
from app.schemas.faculty import AwardUpdate
from app.security import CurrentUser, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

PDF_CONTENT_TYPE = "application/pdf"
REQUIRED_AWARD_FIELDS = ("award_name", "awarding_organization", "award_date")


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _certificate_filename(faculty_id: int, original: Optional[str]) -> str:
    stem = re.sub(r"[^A-Za-z0-9._-]", "_", os.path.basename(original or "certificate.pdf"))
    if not stem.lower().endswith(".pdf"):
        stem += ".pdf"
    return f"{faculty_id}_{int(time.time() * 1000)}_{stem}"


def _write_file(path: str, content: bytes) -> None:
    with open(path, "wb") as f:
        f.write(content)


def _remove_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


@router.get("/faculty/awards", tags=["awards"])
async def list_awards(
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        awards = await award_repo.list_awards(conn, prober, faculty_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Listing awards for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "awards": awards}


@router.post("/faculty/awards", tags=["awards"])
async def create_award(
    award_name: Optional[str] = Form(None),
    awarding_organization: Optional[str] = Form(None),
    award_description: Optional[str] = Form(None),
    award_date: Optional[date] = Form(None),
    category: Optional[str] = Form(None),
    facultyId: Optional[int] = Form(None),
    certificate: Optional[UploadFile] = File(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    """Create an award with its PDF certificate.

    Every check runs before the file is stored or a row is written.
    """
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)

    values = {
        "award_name": (award_name or "").strip() or None,
        "awarding_organization": (awarding_organization or "").strip() or None,
        "award_description": award_description,
        "award_date": award_date,
        "category": category,
    }
    missing = [name for name in REQUIRED_AWARD_FIELDS if not values[name]]
    if missing:
        raise _bad_request(f"Missing required fields: {', '.join(missing)}")

    if certificate is None or not certificate.filename:
        raise _bad_request("Certificate file is required")
    if certificate.content_type != PDF_CONTENT_TYPE:
        logger.warning(f"Rejected certificate '{certificate.filename}' with content type {certificate.content_type}")
        raise _bad_request("Only PDF files are allowed for certificates")
    content = await certificate.read()
    if len(content) > settings.max_certificate_bytes:
        raise _bad_request(f"Certificate must be smaller than {settings.MAX_CERTIFICATE_SIZE_MB}MB")

    filename = _certificate_filename(faculty_id, certificate.filename)
    path = os.path.join(settings.UPLOAD_DIR, filename)
    await asyncio.get_running_loop().run_in_executor(None, _write_file, path, content)
    values["certificate"] = f"{settings.UPLOAD_URL_BASE}/{filename}"

    try:
        award_id = await award_repo.create_award(conn, prober, faculty_id, values)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Creating award for faculty {faculty_id} failed: {e}", exc_info=True)
        await asyncio.get_running_loop().run_in_executor(None, _remove_file, path)
        raise database_http_error(e)
    return {
        "success": True,
        "message": "Award added successfully",
        "award": {"award_id": award_id, **values},
    }


@router.put("/faculty/awards/{award_id}", tags=["awards"])
async def update_award(
    body: AwardUpdate,
    award_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await award_repo.update_award(conn, prober, award_id, owner_id, body.model_dump(exclude_unset=True))
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating award {award_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Award updated successfully"}


@router.delete("/faculty/awards/{award_id}", tags=["awards"])
async def delete_award(
    award_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        award = await award_repo.delete_award(conn, prober, award_id, owner_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting award {award_id} failed: {e}", exc_info=True)
        raise database_http_error(e)

    certificate = award.get("certificate") or ""
    if certificate.startswith(settings.UPLOAD_URL_BASE + "/"):
        path = os.path.join(settings.UPLOAD_DIR, os.path.basename(certificate))
        await asyncio.get_running_loop().run_in_executor(None, _remove_file, path)
    return {"success": True, "message": "Award deleted successfully"}
