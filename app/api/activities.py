import logging
from typing import Optional

import sqlalchemy.exc
from fastapi import APIRouter, Depends, Path, Query
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
from app.repositories import activity_repo
from app.repositories.base import RepositoryError
from app.schemas.faculty import (
    ContributionCreate,
    MembershipCreate,
    MembershipUpdate,
    ResearchProjectCreate,
    ResearchProjectUpdate,
    WorkshopCreate,
    WorkshopUpdate,
)
from app.security import CurrentUser, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/faculty/memberships", tags=["memberships"])
async def list_memberships(
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        memberships = await activity_repo.list_memberships(conn, prober, faculty_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Listing memberships for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "memberships": memberships}


@router.post("/faculty/memberships", tags=["memberships"])
async def create_membership(
    body: MembershipCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, body.facultyId)
    try:
        membership_id = await activity_repo.create_membership(
            conn, prober, faculty_id, body.model_dump(exclude={"facultyId"})
        )
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Creating membership for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Membership added successfully", "membershipId": membership_id}


@router.put("/faculty/memberships/{membership_id}", tags=["memberships"])
async def update_membership(
    body: MembershipUpdate,
    membership_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await activity_repo.update_membership(conn, prober, membership_id, owner_id, body.model_dump(exclude_unset=True))
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating membership {membership_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Membership updated successfully"}


@router.delete("/faculty/memberships/{membership_id}", tags=["memberships"])
async def delete_membership(
    membership_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await activity_repo.delete_membership(conn, prober, membership_id, owner_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting membership {membership_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Membership deleted successfully"}


@router.get("/faculty/contributions", tags=["contributions"])
async def list_contributions(
    f_id: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, f_id)
    try:
        contributions = await activity_repo.list_contributions(conn, prober, faculty_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Listing contributions for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "contributions": contributions}


@router.post("/faculty/contributions", tags=["contributions"])
async def create_contribution(
    body: ContributionCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, body.f_id)
    try:
        contribution_id = await activity_repo.create_contribution(
            conn, prober, faculty_id, body.model_dump(exclude={"f_id"})
        )
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Creating contribution for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Contribution added successfully", "contributionId": contribution_id}


@router.get("/faculty/research-projects", tags=["research-projects"])
async def list_research_projects(
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        projects = await activity_repo.list_research_projects(conn, prober, faculty_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Listing research projects for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "data": projects}


@router.post("/faculty/research-projects", tags=["research-projects"])
async def create_research_project(
    body: ResearchProjectCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, body.faculty_id)
    values = body.model_dump(exclude={"faculty_id"})
    try:
        project_id = await activity_repo.create_research_project(conn, prober, faculty_id, values)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Creating research project for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {
        "success": True,
        "message": "Research project added successfully",
        "data": {"id": project_id, "faculty_id": faculty_id, **values},
    }


@router.put("/faculty/research-projects/{project_id}", tags=["research-projects"])
async def update_research_project(
    body: ResearchProjectUpdate,
    project_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await activity_repo.update_research_project(
            conn, prober, project_id, owner_id, body.model_dump(exclude_unset=True)
        )
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating research project {project_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Research project updated successfully"}


@router.delete("/faculty/research-projects/{project_id}", tags=["research-projects"])
async def delete_research_project(
    project_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await activity_repo.delete_research_project(conn, prober, project_id, owner_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting research project {project_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Research project deleted successfully"}


@router.get("/faculty/workshops", tags=["workshops"])
async def list_workshops(
    facultyId: Optional[int] = Query(None),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(get_current_user),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, facultyId)
    try:
        workshops = await activity_repo.list_workshops(conn, prober, faculty_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Listing workshops for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "data": workshops}


@router.post("/faculty/workshops", tags=["workshops"])
async def create_workshop(
    body: WorkshopCreate,
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    faculty_id = await resolve_faculty_scope(conn, current_user, body.faculty_id)
    values = body.model_dump(exclude={"faculty_id"})
    try:
        workshop_id = await activity_repo.create_workshop(conn, prober, faculty_id, values)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Creating workshop for faculty {faculty_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {
        "success": True,
        "message": "Workshop added successfully",
        "data": {"id": workshop_id, "faculty_id": faculty_id, **values},
    }


@router.put("/faculty/workshops/{workshop_id}", tags=["workshops"])
async def update_workshop(
    body: WorkshopUpdate,
    workshop_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await activity_repo.update_workshop(conn, prober, workshop_id, owner_id, body.model_dump(exclude_unset=True))
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Updating workshop {workshop_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Workshop updated successfully"}


@router.delete("/faculty/workshops/{workshop_id}", tags=["workshops"])
async def delete_workshop(
    workshop_id: int = Path(...),
    conn: AsyncConnection = Depends(get_db),
    prober: SchemaProber = Depends(get_schema_prober),
    current_user: CurrentUser = Depends(require_activity_writer),
):
    owner_id = await resolve_owner_scope(conn, current_user)
    try:
        await activity_repo.delete_workshop(conn, prober, workshop_id, owner_id)
    except RepositoryError as e:
        raise repository_http_error(e)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(f"Deleting workshop {workshop_id} failed: {e}", exc_info=True)
        raise database_http_error(e)
    return {"success": True, "message": "Workshop deleted successfully"}
