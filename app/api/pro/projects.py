"""Project route table. /stats is registered ahead of /{project_id}."""

from fastapi import Response

from app.api.deps import CurrentUserDep, DbDep, PageDep
from app.api.routing import Route, build_router
from app.core.permissions import Permission
from app.schemas.common import Page
from app.schemas.project import (
    ProjectBudget,
    ProjectClose,
    ProjectCreate,
    ProjectMetrics,
    ProjectOut,
    ProjectStats,
    ProjectStatus,
    ProjectStatusChange,
    ProjectTimeline,
    ProjectUpdate,
)
from app.services import projects as projects_service

RESOURCE = "projects"


def list_projects(
    db: DbDep,
    page: PageDep,
    status: ProjectStatus | None = None,
    manager_id: int | None = None,
    search: str | None = None,
) -> Page[ProjectOut]:
    return projects_service.list_projects(
        db, page, status=status, manager_id=manager_id, search=search
    )


def get_stats(db: DbDep) -> ProjectStats:
    return projects_service.get_stats(db)


def get_project(project_id: int, db: DbDep) -> ProjectOut:
    return projects_service.get_project(db, project_id)


def create_project(body: ProjectCreate, db: DbDep, current_user: CurrentUserDep) -> ProjectOut:
    """Create a project in planning status; the code is generated when omitted."""
    return projects_service.create_project(db, body, current_user)


def update_project(project_id: int, body: ProjectUpdate, db: DbDep) -> ProjectOut:
    return projects_service.update_project(db, project_id, body)


def delete_project(project_id: int, db: DbDep) -> Response:
    projects_service.delete_project(db, project_id)
    return Response(status_code=204)


def get_metrics(project_id: int, db: DbDep) -> ProjectMetrics:
    return projects_service.get_metrics(db, project_id)


def change_status(
    project_id: int, body: ProjectStatusChange, db: DbDep, current_user: CurrentUserDep
) -> ProjectOut:
    """Apply a status transition; transitions outside the workflow return 409."""
    return projects_service.change_status(db, project_id, body, current_user)


def get_timeline(project_id: int, db: DbDep) -> ProjectTimeline:
    """Gantt data: one row per task and one link per dependency."""
    return projects_service.get_timeline(db, project_id)


def get_budget(project_id: int, db: DbDep) -> ProjectBudget:
    return projects_service.get_budget(db, project_id)


def close_project(
    project_id: int,
    db: DbDep,
    current_user: CurrentUserDep,
    body: ProjectClose | None = None,
) -> ProjectOut:
    return projects_service.close_project(db, project_id, body or ProjectClose(), current_user)


ROUTES = (
    Route("GET", "", Permission(RESOURCE, "read"), list_projects),
    Route("GET", "/stats", Permission(RESOURCE, "read"), get_stats),
    Route("GET", "/{project_id}", Permission(RESOURCE, "read"), get_project),
    Route("POST", "", Permission(RESOURCE, "create"), create_project, status_code=201),
    Route("PUT", "/{project_id}", Permission(RESOURCE, "update"), update_project),
    Route("DELETE", "/{project_id}", Permission(RESOURCE, "delete"), delete_project, status_code=204),
    Route("GET", "/{project_id}/metrics", Permission(RESOURCE, "read"), get_metrics),
    Route("POST", "/{project_id}/status", Permission(RESOURCE, "update"), change_status),
    Route("GET", "/{project_id}/timeline", Permission(RESOURCE, "read"), get_timeline),
    Route("GET", "/{project_id}/budget", Permission(RESOURCE, "read"), get_budget),
    Route("POST", "/{project_id}/close", Permission(RESOURCE, "update"), close_project),
)

router = build_router(ROUTES)
