"""Schemas for work centers, their capacity and schedule views."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import PartialUpdate, UtcDateTime

WorkCenterKind = Literal["manual", "automatic", "semiautomatic", "service"]


def _validate_working_days(value: list[int] | None) -> list[int] | None:
    if value is None:
        return None
    if not value:
        raise ValueError("working_days must contain at least one weekday")
    if any(d < 0 or d > 6 for d in value):
        raise ValueError("working_days must be weekday numbers 0 (Monday) to 6 (Sunday)")
    return sorted(set(value))


class WorkCenterCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    kind: WorkCenterKind = "manual"
    department: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=255)
    capacity_hours_per_day: float = Field(default=8.0, gt=0, le=24)
    operator_capacity: int = Field(default=1, gt=0)
    hourly_cost: float = Field(default=0.0, ge=0)
    setup_cost: float = Field(default=0.0, ge=0)
    efficiency_pct: float = Field(default=85.0, ge=0, le=100)
    availability_pct: float = Field(default=90.0, ge=0, le=100)
    working_days: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    available: bool = True
    notes: str | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("working_days")
    @classmethod
    def check_working_days(cls, v: list[int]) -> list[int]:
        return _validate_working_days(v)


class WorkCenterUpdate(PartialUpdate):
    nullable_fields = frozenset({"description", "department", "location", "notes"})

    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    kind: WorkCenterKind | None = None
    department: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=255)
    capacity_hours_per_day: float | None = Field(default=None, gt=0, le=24)
    operator_capacity: int | None = Field(default=None, gt=0)
    hourly_cost: float | None = Field(default=None, ge=0)
    setup_cost: float | None = Field(default=None, ge=0)
    efficiency_pct: float | None = Field(default=None, ge=0, le=100)
    availability_pct: float | None = Field(default=None, ge=0, le=100)
    working_days: list[int] | None = None
    available: bool | None = None
    notes: str | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str | None) -> str | None:
        return v.strip().upper() if v is not None else None

    @field_validator("working_days")
    @classmethod
    def check_working_days(cls, v: list[int] | None) -> list[int] | None:
        return _validate_working_days(v)


class WorkCenterOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    code: str
    name: str
    description: str | None
    kind: str
    department: str | None
    location: str | None
    capacity_hours_per_day: float
    operator_capacity: int
    hourly_cost: float
    setup_cost: float
    efficiency_pct: float
    availability_pct: float
    working_days: list[int]
    available: bool
    notes: str | None
    created_at: UtcDateTime
    updated_at: UtcDateTime


class CapacityDay(BaseModel):
    date: date
    working_day: bool
    available_hours: float


class WorkCenterCapacity(BaseModel):
    work_center_id: int
    code: str
    start_date: date
    end_date: date
    theoretical_hours_per_day: float
    effective_hours_per_day: float
    available_hours: float
    current_load_hours: float
    load_pct: float
    active_orders: int
    days: list[CapacityDay]


class ScheduleEntry(BaseModel):
    order_id: int
    order_number: str
    product_code: str
    status: str
    priority: str
    planned_quantity: float
    planned_start: UtcDateTime | None
    planned_end: UtcDateTime | None
    estimated_hours: float


class WorkCenterSchedule(BaseModel):
    work_center_id: int
    start_date: date
    end_date: date
    total_orders: int
    total_hours: float
    entries: list[ScheduleEntry]


class WorkCenterStats(BaseModel):
    total: int
    available: int
    unavailable: int
    avg_capacity_hours: float
    avg_efficiency_pct: float
    avg_hourly_cost: float
    by_kind: dict[str, int]
