"""Schemas for projects and their derived views (metrics, timeline, budget)."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import PartialUpdate, UtcDateTime

ProjectStatus = Literal["planning", "in_progress", "on_hold", "completed", "cancelled"]


class ProjectCreate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    client_name: str | None = Field(default=None, max_length=255)
    manager_id: int | None = None
    planned_start: UtcDateTime | None = None
    planned_end: UtcDateTime | None = None
    budget: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def check_dates(self) -> "ProjectCreate":
        if self.planned_start and self.planned_end and self.planned_end < self.planned_start:
            raise ValueError("planned_end must be on or after planned_start")
        return self


class ProjectUpdate(PartialUpdate):
    """Partial update; status changes go through POST /{id}/status."""

    nullable_fields = frozenset(
        {"description", "client_name", "manager_id", "planned_start", "planned_end"}
    )

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    client_name: str | None = Field(default=None, max_length=255)
    manager_id: int | None = None
    planned_start: UtcDateTime | None = None
    planned_end: UtcDateTime | None = None
    budget: float | None = Field(default=None, ge=0)
    actual_cost: float | None = Field(default=None, ge=0)


class ProjectStatusChange(BaseModel):
    status: ProjectStatus
    reason: str | None = Field(default=None, max_length=500)


class ProjectClose(BaseModel):
    force: bool = False
    notes: str | None = None


class ProjectOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    code: str
    name: str
    description: str | None
    client_name: str | None
    manager_id: int | None
    status: str
    planned_start: UtcDateTime | None
    planned_end: UtcDateTime | None
    actual_start: UtcDateTime | None
    actual_end: UtcDateTime | None
    budget: float
    actual_cost: float
    created_at: UtcDateTime
    updated_at: UtcDateTime


class ProjectMetrics(BaseModel):
    project_id: int
    total_tasks: int
    tasks_by_status: dict[str, int]
    estimated_hours: float
    actual_hours: float
    time_efficiency_pct: float | None
    budget: float
    actual_cost: float
    budget_utilization_pct: float | None
    budget_balance: float
    progress_pct: float
    progress_label: str


class TimelineTask(BaseModel):
    id: int
    text: str
    start: UtcDateTime | None
    end: UtcDateTime | None
    progress: float
    status: str
    assignee_id: int | None


class TimelineLink(BaseModel):
    source: int
    target: int


class ProjectTimeline(BaseModel):
    project_id: int
    tasks: list[TimelineTask]
    links: list[TimelineLink]


class ProjectBudget(BaseModel):
    project_id: int
    budget: float
    actual_cost: float
    balance: float
    utilization_pct: float | None
    estimated_hours: float
    actual_hours: float
    over_budget: bool


class ProjectStats(BaseModel):
    total: int
    by_status: dict[str, int]
    total_budget: float
    total_actual_cost: float
    overdue: int
