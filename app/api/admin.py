import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncConnection
import sqlalchemy.exc

from app.api.deps import database_http_error
from app.core.config import settings
from app.db.connection import get_db
from app.db.sql_guard import find_blocked_keyword
from app.repositories import admin_repo
from app.repositories.base import RepositoryError
from app.schemas.reports import AdminQueryRequest
from app.security import CurrentUser, require_roles

logger = logging.getLogger(__name__)

router = APIRouter()

BLOCKED_QUERY_MESSAGE = (
    "For safety, this demo only allows SELECT operations. "
    "Modify, delete, and structure operations are disabled."
)


@router.post("/admin/database/query", tags=["admin"])
async def run_query(
    body: AdminQueryRequest,
    conn: AsyncConnection = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("admin")),
):
    """Run one statement from the admin SQL console."""
    sql = (body.query or "").strip()
    if not sql:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SQL query is required")

    keyword = find_blocked_keyword(sql)
    if keyword:
        logger.warning(f"User {current_user.id} console query blocked on keyword {keyword}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=BLOCKED_QUERY_MESSAGE)

    try:
        results = await admin_repo.run_console_query(conn, sql)
    except RepositoryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Query execution failed: {e}")
    logger.info(f"User {current_user.id} console query returned {len(results)} rows")
    return {"success": True, "results": results}


@router.get("/admin/database/tables", tags=["admin"])
async def list_tables(
    conn: AsyncConnection = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("admin")),
):
    """Every table with its columns and a preview of its rows."""
    try:
        tables = await admin_repo.list_tables_with_rows(conn, settings.ADMIN_TABLE_PREVIEW_ROWS)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Failed to describe database tables: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "tables": tables}
