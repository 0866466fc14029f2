"""Project tasks: CRUD, assignment, start/complete workflow and dependencies."""

import logging
from collections import deque

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.timeutils import ensure_utc, utcnow
from app.models import Project, Task, TaskDependency, User
from app.schemas.auth import CurrentUser
from app.schemas.common import Page, PageParams
from app.schemas.task import (
    TaskAssign,
    TaskComplete,
    TaskCreate,
    TaskDependencies,
    TaskDependencyOut,
    TaskOut,
    TaskUpdate,
)
from app.services.crud import apply_updates, get_or_404, paginate, round2, soft_delete

logger = logging.getLogger(__name__)

CLOSED_TASK_STATUSES = ("completed", "cancelled")


def list_tasks(
    db: Session,
    params: PageParams,
    project_id: int | None = None,
    status: str | None = None,
    assignee_id: int | None = None,
    priority: str | None = None,
) -> Page[TaskOut]:
    query = db.query(Task).filter(Task.is_active.is_(True))
    if project_id is not None:
        query = query.filter(Task.project_id == project_id)
    if status:
        query = query.filter(Task.status == status)
    if assignee_id is not None:
        query = query.filter(Task.assignee_id == assignee_id)
    if priority:
        query = query.filter(Task.priority == priority)
    return paginate(query.order_by(Task.id), params, TaskOut)


def get_task(db: Session, task_id: int) -> Task:
    return get_or_404(db, Task, task_id, "Task")


def _active_project(db: Session, project_id: int) -> Project:
    return get_or_404(db, Project, project_id, "Project")


def _active_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None or user.status != "active":
        raise NotFoundError("Assignee not found.", {"assignee_id": user_id})
    return user


def list_by_project(db: Session, project_id: int) -> list[Task]:
    project = _active_project(db, project_id)
    return (
        db.query(Task)
        .filter(Task.project_id == project.id, Task.is_active.is_(True))
        .order_by(Task.id)
        .all()
    )


def create_task(db: Session, body: TaskCreate) -> Task:
    project = _active_project(db, body.project_id)
    if project.status in ("completed", "cancelled"):
        raise ConflictError(
            f"Cannot add tasks to a project that is {project.status}.",
            {"status": project.status},
        )
    if body.assignee_id is not None:
        _active_user(db, body.assignee_id)
    task = Task(**body.model_dump(), status="pending", progress=0, actual_hours=0.0)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, task_id: int, body: TaskUpdate) -> Task:
    task = get_task(db, task_id)
    if task.status in CLOSED_TASK_STATUSES:
        raise ConflictError(f"Cannot update a task that is {task.status}.", {"status": task.status})
    changes = body.model_dump(exclude_unset=True)
    start = ensure_utc(changes.get("planned_start", task.planned_start))
    end = ensure_utc(changes.get("planned_end", task.planned_end))
    if start and end and end < start:
        raise ValidationError("planned_end must be on or after planned_start.")
    apply_updates(task, changes)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task_id: int) -> None:
    task = get_task(db, task_id)
    if task.status == "in_progress":
        raise ConflictError("Cannot delete a task in progress.", {"status": task.status})
    soft_delete(db, task)


def assign_task(db: Session, task_id: int, body: TaskAssign, actor: CurrentUser) -> Task:
    task = get_task(db, task_id)
    if task.status in CLOSED_TASK_STATUSES:
        raise ConflictError(f"Cannot assign a task that is {task.status}.", {"status": task.status})
    _active_user(db, body.assignee_id)
    task.assignee_id = body.assignee_id
    db.commit()
    db.refresh(task)
    logger.info(
        "Task assigned",
        extra={"task_id": task.id, "assignee_id": body.assignee_id, "user_id": actor.id},
    )
    return task


def _dependency_rows(db: Session, task_id: int) -> list[TaskDependency]:
    return (
        db.query(TaskDependency)
        .filter(TaskDependency.task_id == task_id)
        .order_by(TaskDependency.id)
        .all()
    )


def start_task(db: Session, task_id: int, actor: CurrentUser) -> Task:
    """pending -> in_progress, only once every dependency is completed."""
    task = get_task(db, task_id)
    if task.status != "pending":
        raise ConflictError("Only pending tasks can be started.", {"status": task.status})
    blocking = [
        dep.depends_on_id
        for dep in _dependency_rows(db, task.id)
        if dep.depends_on.is_active and dep.depends_on.status != "completed"
    ]
    if blocking:
        raise ConflictError(
            "Task has unfinished dependencies.", {"blocking_tasks": blocking}
        )
    task.status = "in_progress"
    task.actual_start = utcnow()
    project = task.project
    if project.status == "planning":
        # first started task moves the project along
        project.status = "in_progress"
        project.actual_start = project.actual_start or task.actual_start
    db.commit()
    db.refresh(task)
    logger.info("Task started", extra={"task_id": task.id, "user_id": actor.id})
    return task


def complete_task(db: Session, task_id: int, body: TaskComplete, actor: CurrentUser) -> Task:
    task = get_task(db, task_id)
    if task.status != "in_progress":
        raise ConflictError("Only tasks in progress can be completed.", {"status": task.status})
    now = utcnow()
    task.status = "completed"
    task.progress = 100
    task.actual_end = now
    if body.actual_hours is not None:
        task.actual_hours = body.actual_hours
    elif task.actual_start is not None:
        elapsed = (now - ensure_utc(task.actual_start)).total_seconds() / 3600
        task.actual_hours = round2(elapsed)
    if body.notes:
        task.description = f"{task.description}\n{body.notes}" if task.description else body.notes
    db.commit()
    db.refresh(task)
    logger.info(
        "Task completed",
        extra={"task_id": task.id, "actual_hours": task.actual_hours, "user_id": actor.id},
    )
    return task


def get_dependencies(db: Session, task_id: int) -> TaskDependencies:
    task = get_task(db, task_id)
    rows = [d for d in _dependency_rows(db, task.id) if d.depends_on.is_active]
    blocking = [
        dep_task_id
        for (dep_task_id,) in db.query(TaskDependency.task_id)
        .join(Task, Task.id == TaskDependency.task_id)
        .filter(TaskDependency.depends_on_id == task.id, Task.is_active.is_(True))
        .order_by(TaskDependency.task_id)
        .all()
    ]
    return TaskDependencies(
        task_id=task.id,
        depends_on=[
            TaskDependencyOut(
                task_id=task.id,
                depends_on_id=d.depends_on_id,
                depends_on_name=d.depends_on.name,
                depends_on_status=d.depends_on.status,
            )
            for d in rows
        ],
        blocking=blocking,
        ready=all(d.depends_on.status == "completed" for d in rows),
    )


def _reaches(db: Session, start_id: int, target_id: int) -> bool:
    """True if target_id is reachable from start_id following depends_on edges."""
    seen = {start_id}
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        if current == target_id:
            return True
        for (nxt,) in db.query(TaskDependency.depends_on_id).filter(
            TaskDependency.task_id == current
        ):
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return False


def add_dependency(db: Session, task_id: int, depends_on_id: int) -> TaskDependencies:
    task = get_task(db, task_id)
    if depends_on_id == task.id:
        raise ValidationError("A task cannot depend on itself.")
    other = get_or_404(db, Task, depends_on_id, "Dependency task")
    if other.project_id != task.project_id:
        raise ValidationError(
            "Dependencies must belong to the same project.",
            {"project_id": task.project_id, "depends_on_project_id": other.project_id},
        )
    exists = (
        db.query(TaskDependency.id)
        .filter(TaskDependency.task_id == task.id, TaskDependency.depends_on_id == other.id)
        .first()
    )
    if exists is not None:
        raise ConflictError("Dependency already exists.", {"depends_on_id": other.id})
    if _reaches(db, other.id, task.id):
        raise ConflictError(
            "Dependency would create a cycle.", {"task_id": task.id, "depends_on_id": other.id}
        )
    db.add(TaskDependency(task_id=task.id, depends_on_id=other.id))
    db.commit()
    return get_dependencies(db, task.id)
