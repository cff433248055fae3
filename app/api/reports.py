import asyncio
import base64
import datetime
import logging
from typing import Optional

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncConnection

from app.api.deps import database_http_error, repository_http_error, resolve_faculty_scope
from app.core.config import settings
from app.db.connection import get_db
from app.db.schema_prober import SchemaProber, get_schema_prober
from app.reports import faculty_documents, institute_reports
from app.repositories import report_repo
from app.repositories.base import RepositoryError
from app.schemas.reports import ReportRequest
from app.security import CurrentUser, get_current_user
from app.utils import to_jsonable

logger = logging.getLogger(__name__)

router = APIRouter()


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


async def _render(request: Request, render, data, generated_on: datetime.date):
    """Throttled rendering on the default executor; reportlab and matplotlib block."""
    loop = asyncio.get_running_loop()
    async with request.app.state.report_limiter:
        return await loop.run_in_executor(None, render, data, generated_on)


@router.get("/faculty/biodata", tags=["reports"])
async def faculty_biodata(
    request: Request,
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Biodata PDF for one faculty member, base64 encoded in the JSON body."""
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        data = await faculty_documents.load_biodata(conn, prober, faculty_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Loading biodata for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)

    today = datetime.date.today()
    rendered = await _render(request, faculty_documents.render_biodata, data, today)
    logger.info(f"Generated biodata for faculty {faculty_id} ({rendered.page_count} pages)")
    return {
        "success": True,
        "message": "Biodata generated successfully",
        "data": {
            "facultyName": data.profile["F_name"],
            "facultyId": faculty_id,
            "generatedAt": _now_iso(),
            "filename": faculty_documents.biodata_filename(faculty_id, today),
            "pdfBase64": base64.b64encode(rendered.content).decode("ascii"),
        },
    }


@router.get("/faculty/comprehensive-report", tags=["reports"])
async def comprehensive_report(
    request: Request,
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        data = await faculty_documents.load_comprehensive(conn, prober, faculty_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Loading comprehensive report for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)

    today = datetime.date.today()
    rendered = await _render(request, faculty_documents.render_comprehensive, data, today)
    logger.info(f"Generated comprehensive report for faculty {faculty_id} ({rendered.page_count} pages)")
    return {
        "success": True,
        "message": "Comprehensive faculty report generated successfully",
        "data": {
            "facultyName": data.profile["F_name"],
            "facultyId": faculty_id,
            "generatedAt": _now_iso(),
            "filename": faculty_documents.comprehensive_filename(faculty_id, today),
            "pdfBase64": base64.b64encode(rendered.content).decode("ascii"),
            "tableData": to_jsonable(data.table_data()),
            "columns": faculty_documents.COMPREHENSIVE_COLUMNS,
        },
    }


async def _hod_lookup(conn: AsyncConnection, prober: SchemaProber, faculty_id: Optional[int]) -> dict:
    if faculty_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Faculty ID is required")
    try:
        hod_name = await report_repo.lookup_hod_name(conn, prober, faculty_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning(f"HOD lookup for faculty {faculty_id} failed, using default: {e}")
        hod_name = None
    return {"success": True, "hodName": hod_name or settings.DEFAULT_HOD_NAME}


@router.post("/reports", tags=["reports"])
async def generate_report(
    request: Request,
    body: ReportRequest,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    if body.requestType == "hod-lookup":
        return await _hod_lookup(conn, prober, body.facultyId)

    try:
        department = await report_repo.resolve_department_name(conn, body.departmentId)
        data = await institute_reports.load_institute_report(conn, prober, body.reportType, department)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Loading {body.reportType} report failed: {e}", exc_info=True)
        raise database_http_error(e)

    department_label = body.departmentId if body.departmentId not in (None, "") else "all"
    if body.format == "json":
        return {
            "success": True,
            "message": "Report data retrieved successfully",
            "data": {
                "reportType": body.reportType,
                "departmentId": department_label,
                "generatedAt": _now_iso(),
                **institute_reports.table_data(data),
            },
        }

    today = datetime.date.today()
    rendered = await _render(request, institute_reports.render_institute_report, data, today)
    logger.info(f"User {current_user.id} generated {body.reportType} report for {department_label} ({rendered.page_count} pages)")
    return {
        "success": True,
        "message": "Report generated successfully",
        "data": {
            "reportType": body.reportType,
            "departmentId": department_label,
            "generatedAt": _now_iso(),
            "filename": institute_reports.report_filename(body.reportType, department, today),
            "pdfBase64": base64.b64encode(rendered.content).decode("ascii"),
        },
    }


@router.get("/reports", tags=["reports"])
async def download_report(
    request: Request,
    id: Optional[str] = Query(None, description="Department id or name; 'all' for every department"),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    """The faculty report as a raw PDF download."""
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Report ID is required")
    try:
        department = await report_repo.resolve_department_name(conn, id)
        data = await institute_reports.load_institute_report(conn, prober, "faculty", department)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Loading report {id} failed: {e}", exc_info=True)
        raise database_http_error(e)

    today = datetime.date.today()
    rendered = await _render(request, institute_reports.render_institute_report, data, today)
    filename = institute_reports.report_filename("faculty", department, today)
    return Response(
        content=rendered.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
