"""Schemas for project tasks, assignment and dependencies."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import PartialUpdate, UtcDateTime

TaskPriority = Literal["low", "normal", "high", "urgent"]


class TaskCreate(BaseModel):
    project_id: int
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    assignee_id: int | None = None
    priority: TaskPriority = "normal"
    planned_start: UtcDateTime | None = None
    planned_end: UtcDateTime | None = None
    estimated_hours: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def check_dates(self) -> "TaskCreate":
        if self.planned_start and self.planned_end and self.planned_end < self.planned_start:
            raise ValueError("planned_end must be on or after planned_start")
        return self


class TaskUpdate(PartialUpdate):
    nullable_fields = frozenset({"description", "planned_start", "planned_end"})

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    priority: TaskPriority | None = None
    planned_start: UtcDateTime | None = None
    planned_end: UtcDateTime | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    progress: int | None = Field(default=None, ge=0, le=100)


class TaskAssign(BaseModel):
    assignee_id: int


class TaskComplete(BaseModel):
    actual_hours: float | None = Field(default=None, ge=0)
    notes: str | None = None


class DependencyCreate(BaseModel):
    depends_on_id: int


class TaskOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    project_id: int
    name: str
    description: str | None
    assignee_id: int | None
    status: str
    priority: str
    planned_start: UtcDateTime | None
    planned_end: UtcDateTime | None
    actual_start: UtcDateTime | None
    actual_end: UtcDateTime | None
    estimated_hours: float
    actual_hours: float
    progress: int
    created_at: UtcDateTime
    updated_at: UtcDateTime


class TaskDependencyOut(BaseModel):
    task_id: int
    depends_on_id: int
    depends_on_name: str
    depends_on_status: str


class TaskDependencies(BaseModel):
    task_id: int
    depends_on: list[TaskDependencyOut]
    blocking: list[int] = Field(
        default_factory=list, description="Ids of tasks that depend on this one"
    )
    ready: bool = Field(description="True when every dependency is completed")
