"""Projects: CRUD, status workflow, closing, metrics, timeline and budget views."""

import logging
from collections import Counter

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.timeutils import ensure_utc, utcnow
from app.models import Project, Task, TaskDependency, User
from app.schemas.auth import CurrentUser
from app.schemas.common import Page, PageParams
from app.schemas.project import (
    ProjectBudget,
    ProjectClose,
    ProjectCreate,
    ProjectMetrics,
    ProjectOut,
    ProjectStats,
    ProjectStatusChange,
    ProjectTimeline,
    ProjectUpdate,
    TimelineLink,
    TimelineTask,
)
from app.services.crud import (
    apply_updates,
    get_or_404,
    next_sequence_code,
    paginate,
    round2,
    soft_delete,
)

logger = logging.getLogger(__name__)

PROJECT_CODE_PREFIX = "PRJ"
PROJECT_CODE_WIDTH = 4
PROJECT_STATUSES = ("planning", "in_progress", "on_hold", "completed", "cancelled")
TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled")

# status -> statuses reachable through POST /{id}/status
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "planning": frozenset({"in_progress", "on_hold", "cancelled"}),
    "in_progress": frozenset({"on_hold", "completed", "cancelled"}),
    "on_hold": frozenset({"in_progress", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}

OPEN_TASK_STATUSES = ("pending", "in_progress")


def list_projects(
    db: Session,
    params: PageParams,
    status: str | None = None,
    manager_id: int | None = None,
    search: str | None = None,
) -> Page[ProjectOut]:
    query = db.query(Project).filter(Project.is_active.is_(True))
    if status:
        query = query.filter(Project.status == status)
    if manager_id is not None:
        query = query.filter(Project.manager_id == manager_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(Project.name.ilike(like) | Project.code.ilike(like))
    return paginate(query.order_by(Project.id.desc()), params, ProjectOut)


def get_project(db: Session, project_id: int) -> Project:
    return get_or_404(db, Project, project_id, "Project")


def _ensure_manager(db: Session, manager_id: int | None) -> None:
    if manager_id is None:
        return
    manager = db.get(User, manager_id)
    if manager is None or manager.status != "active":
        raise NotFoundError("Manager not found.", {"manager_id": manager_id})


def create_project(db: Session, body: ProjectCreate, actor: CurrentUser) -> Project:
    _ensure_manager(db, body.manager_id)
    code = (body.code or "").strip().upper() or next_sequence_code(
        db, Project.code, PROJECT_CODE_PREFIX, PROJECT_CODE_WIDTH
    )
    duplicate = (
        db.query(Project.id)
        .filter(Project.code == code, Project.is_active.is_(True))
        .first()
    )
    if duplicate is not None:
        raise ConflictError("Project code already in use.", {"code": code})
    project = Project(
        **body.model_dump(exclude={"code"}),
        code=code,
        status="planning",
        actual_cost=0.0,
        created_by=actor.id,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Project created", extra={"project_id": project.id, "code": code})
    return project


def update_project(db: Session, project_id: int, body: ProjectUpdate) -> Project:
    project = get_project(db, project_id)
    if project.status in ("completed", "cancelled"):
        raise ConflictError(
            f"Cannot update a project that is {project.status}.", {"status": project.status}
        )
    changes = body.model_dump(exclude_unset=True)
    if "manager_id" in changes:
        _ensure_manager(db, changes["manager_id"])
    start = ensure_utc(changes.get("planned_start", project.planned_start))
    end = ensure_utc(changes.get("planned_end", project.planned_end))
    if start and end and end < start:
        raise ValidationError("planned_end must be on or after planned_start.")
    apply_updates(project, changes)
    db.commit()
    db.refresh(project)
    return project


def _active_tasks(db: Session, project_id: int) -> list[Task]:
    return (
        db.query(Task)
        .filter(Task.project_id == project_id, Task.is_active.is_(True))
        .order_by(Task.id)
        .all()
    )


def delete_project(db: Session, project_id: int) -> None:
    project = get_project(db, project_id)
    if project.status == "in_progress":
        raise ConflictError("Cannot delete a project in progress.", {"status": project.status})
    for task in _active_tasks(db, project.id):
        task.is_active = False
    soft_delete(db, project)
    logger.info("Project deactivated", extra={"project_id": project.id})


def change_status(
    db: Session, project_id: int, body: ProjectStatusChange, actor: CurrentUser
) -> Project:
    project = get_project(db, project_id)
    allowed = STATUS_TRANSITIONS.get(project.status, frozenset())
    if body.status not in allowed:
        raise ConflictError(
            f"Cannot change project status from {project.status} to {body.status}.",
            {"status": project.status, "allowed": sorted(allowed)},
        )
    previous = project.status
    project.status = body.status
    now = utcnow()
    if body.status == "in_progress" and project.actual_start is None:
        project.actual_start = now
    if body.status in ("completed", "cancelled"):
        project.actual_end = now
    db.commit()
    db.refresh(project)
    logger.info(
        "Project status changed",
        extra={
            "project_id": project.id,
            "from_status": previous,
            "to_status": body.status,
            "user_id": actor.id,
            "reason": body.reason,
        },
    )
    return project


def close_project(db: Session, project_id: int, body: ProjectClose, actor: CurrentUser) -> Project:
    """
    Mark a project completed.

    Refused while tasks are still open unless force is set; forcing cancels them.
    """
    project = get_project(db, project_id)
    if project.status not in ("in_progress", "on_hold"):
        raise ConflictError(
            "Only projects in progress or on hold can be closed.", {"status": project.status}
        )
    open_tasks = [t for t in _active_tasks(db, project.id) if t.status in OPEN_TASK_STATUSES]
    if open_tasks and not body.force:
        raise ConflictError(
            "Project has open tasks.",
            {"open_tasks": [t.id for t in open_tasks]},
        )
    now = utcnow()
    for task in open_tasks:
        task.status = "cancelled"
    project.status = "completed"
    project.actual_end = now
    db.commit()
    db.refresh(project)
    logger.info(
        "Project closed",
        extra={
            "project_id": project.id,
            "forced": body.force,
            "cancelled_tasks": len(open_tasks),
            "user_id": actor.id,
        },
    )
    return project


def _progress_pct(tasks: list[Task]) -> float:
    counted = [t for t in tasks if t.status != "cancelled"]
    if not counted:
        return 0.0
    return sum(100 if t.status == "completed" else t.progress for t in counted) / len(counted)


def progress_label(pct: float) -> str:
    if pct >= 100:
        return "completed"
    if pct >= 75:
        return "finishing"
    if pct >= 25:
        return "in_progress"
    if pct > 0:
        return "started"
    return "not_started"


def get_metrics(db: Session, project_id: int) -> ProjectMetrics:
    project = get_project(db, project_id)
    tasks = _active_tasks(db, project.id)
    by_status = {s: 0 for s in TASK_STATUSES}
    by_status.update(Counter(t.status for t in tasks))
    estimated = sum(t.estimated_hours for t in tasks)
    actual = sum(t.actual_hours for t in tasks)
    progress = _progress_pct(tasks)
    return ProjectMetrics(
        project_id=project.id,
        total_tasks=len(tasks),
        tasks_by_status=by_status,
        estimated_hours=round2(estimated),
        actual_hours=round2(actual),
        time_efficiency_pct=round2(estimated / actual * 100) if actual else None,
        budget=project.budget,
        actual_cost=project.actual_cost,
        budget_utilization_pct=(
            round2(project.actual_cost / project.budget * 100) if project.budget else None
        ),
        budget_balance=round2(project.budget - project.actual_cost),
        progress_pct=round2(progress),
        progress_label=progress_label(progress),
    )


def get_timeline(db: Session, project_id: int) -> ProjectTimeline:
    """Gantt rows for every active task plus dependency links between them."""
    project = get_project(db, project_id)
    tasks = _active_tasks(db, project.id)
    ids = {t.id for t in tasks}
    links = (
        db.query(TaskDependency)
        .filter(TaskDependency.task_id.in_(ids))
        .order_by(TaskDependency.id)
        .all()
        if ids
        else []
    )
    return ProjectTimeline(
        project_id=project.id,
        tasks=[
            TimelineTask(
                id=t.id,
                text=t.name,
                start=t.actual_start or t.planned_start,
                end=t.actual_end or t.planned_end,
                progress=1.0 if t.status == "completed" else round(t.progress / 100, 2),
                status=t.status,
                assignee_id=t.assignee_id,
            )
            for t in tasks
        ],
        links=[
            TimelineLink(source=link.depends_on_id, target=link.task_id)
            for link in links
            if link.depends_on_id in ids
        ],
    )


def get_budget(db: Session, project_id: int) -> ProjectBudget:
    project = get_project(db, project_id)
    tasks = _active_tasks(db, project.id)
    return ProjectBudget(
        project_id=project.id,
        budget=project.budget,
        actual_cost=project.actual_cost,
        balance=round2(project.budget - project.actual_cost),
        utilization_pct=(
            round2(project.actual_cost / project.budget * 100) if project.budget else None
        ),
        estimated_hours=round2(sum(t.estimated_hours for t in tasks)),
        actual_hours=round2(sum(t.actual_hours for t in tasks)),
        over_budget=project.actual_cost > project.budget,
    )


def get_stats(db: Session) -> ProjectStats:
    projects = db.query(Project).filter(Project.is_active.is_(True)).all()
    now = utcnow()
    by_status = {s: 0 for s in PROJECT_STATUSES}
    by_status.update(Counter(p.status for p in projects))
    return ProjectStats(
        total=len(projects),
        by_status=by_status,
        total_budget=round2(sum(p.budget for p in projects)),
        total_actual_cost=round2(sum(p.actual_cost for p in projects)),
        overdue=sum(
            1
            for p in projects
            if p.status in ("planning", "in_progress", "on_hold")
            and p.planned_end is not None
            and ensure_utc(p.planned_end) < now
        ),
    )
