"""Task route table. /project/{project_id} is registered ahead of /{task_id}."""

from fastapi import Response

from app.api.deps import CurrentUserDep, DbDep, PageDep
from app.api.routing import Route, build_router
from app.core.permissions import Permission
from app.schemas.common import Page
from app.schemas.task import (
    DependencyCreate,
    TaskAssign,
    TaskComplete,
    TaskCreate,
    TaskDependencies,
    TaskOut,
    TaskPriority,
    TaskUpdate,
)
from app.services import tasks as tasks_service

RESOURCE = "tasks"


def list_tasks(
    db: DbDep,
    page: PageDep,
    project_id: int | None = None,
    status: str | None = None,
    assignee_id: int | None = None,
    priority: TaskPriority | None = None,
) -> Page[TaskOut]:
    return tasks_service.list_tasks(
        db,
        page,
        project_id=project_id,
        status=status,
        assignee_id=assignee_id,
        priority=priority,
    )


def list_by_project(project_id: int, db: DbDep) -> list[TaskOut]:
    """All active tasks of one project, unpaginated."""
    return tasks_service.list_by_project(db, project_id)


def get_task(task_id: int, db: DbDep) -> TaskOut:
    return tasks_service.get_task(db, task_id)


def create_task(body: TaskCreate, db: DbDep) -> TaskOut:
    return tasks_service.create_task(db, body)


def update_task(task_id: int, body: TaskUpdate, db: DbDep) -> TaskOut:
    return tasks_service.update_task(db, task_id, body)


def delete_task(task_id: int, db: DbDep) -> Response:
    tasks_service.delete_task(db, task_id)
    return Response(status_code=204)


def assign_task(
    task_id: int, body: TaskAssign, db: DbDep, current_user: CurrentUserDep
) -> TaskOut:
    return tasks_service.assign_task(db, task_id, body, current_user)


def start_task(task_id: int, db: DbDep, current_user: CurrentUserDep) -> TaskOut:
    """Start a pending task whose dependencies are all completed."""
    return tasks_service.start_task(db, task_id, current_user)


def complete_task(
    task_id: int,
    db: DbDep,
    current_user: CurrentUserDep,
    body: TaskComplete | None = None,
) -> TaskOut:
    return tasks_service.complete_task(db, task_id, body or TaskComplete(), current_user)


def get_dependencies(task_id: int, db: DbDep) -> TaskDependencies:
    return tasks_service.get_dependencies(db, task_id)


def add_dependency(task_id: int, body: DependencyCreate, db: DbDep) -> TaskDependencies:
    """Make task_id wait for depends_on_id. Self, cross-project, duplicate and cyclic links are refused."""
    return tasks_service.add_dependency(db, task_id, body.depends_on_id)


ROUTES = (
    Route("GET", "", Permission(RESOURCE, "read"), list_tasks),
    Route("GET", "/project/{project_id}", Permission(RESOURCE, "read"), list_by_project),
    Route("GET", "/{task_id}", Permission(RESOURCE, "read"), get_task),
    Route("POST", "", Permission(RESOURCE, "create"), create_task, status_code=201),
    Route("PUT", "/{task_id}", Permission(RESOURCE, "update"), update_task),
    Route("DELETE", "/{task_id}", Permission(RESOURCE, "delete"), delete_task, status_code=204),
    Route("POST", "/{task_id}/assign", Permission(RESOURCE, "update"), assign_task),
    Route("POST", "/{task_id}/start", Permission(RESOURCE, "update"), start_task),
    Route("POST", "/{task_id}/complete", Permission(RESOURCE, "update"), complete_task),
    Route("GET", "/{task_id}/dependencies", Permission(RESOURCE, "read"), get_dependencies),
    Route(
        "POST",
        "/{task_id}/dependencies",
        Permission(RESOURCE, "update"),
        add_dependency,
        status_code=201,
    ),
)

router = build_router(ROUTES)
