"""Schemas for production orders, their lifecycle actions and statistics."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.common import PartialUpdate, UtcDateTime

OrderStatus = Literal["planned", "released", "in_production", "completed", "cancelled"]
OrderPriority = Literal["low", "normal", "high", "urgent"]


class ProductionOrderCreate(BaseModel):
    bom_id: int
    work_center_id: int | None = None
    order_number: str | None = Field(default=None, min_length=1, max_length=20)
    planned_quantity: float = Field(..., gt=0)
    status: Literal["planned", "released"] = "planned"
    priority: OrderPriority = "normal"
    planned_start: UtcDateTime | None = None
    planned_end: UtcDateTime | None = None
    notes: str | None = None

    @field_validator("order_number")
    @classmethod
    def normalize_number(cls, v: str | None) -> str | None:
        return v.strip().upper() if v is not None else None

    @model_validator(mode="after")
    def check_dates(self) -> "ProductionOrderCreate":
        if self.planned_start and self.planned_end and self.planned_end < self.planned_start:
            raise ValueError("planned_end must be on or after planned_start")
        return self


class ProductionOrderUpdate(PartialUpdate):
    nullable_fields = frozenset({"work_center_id", "planned_start", "planned_end", "notes"})

    work_center_id: int | None = None
    planned_quantity: float | None = Field(default=None, gt=0)
    status: OrderStatus | None = None
    priority: OrderPriority | None = None
    planned_start: UtcDateTime | None = None
    planned_end: UtcDateTime | None = None
    notes: str | None = None


class FinishRequest(BaseModel):
    produced_quantity: float | None = Field(default=None, ge=0)
    notes: str | None = None


class MaterialConsumptionIn(BaseModel):
    component_code: str = Field(..., min_length=1, max_length=50)
    quantity: float = Field(..., gt=0)
    unit_cost: float = Field(default=0.0, ge=0)

    @field_validator("component_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class MaterialsRequest(BaseModel):
    materials: list[MaterialConsumptionIn] = Field(..., min_length=1)


class MaterialConsumptionOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    component_code: str
    quantity: float
    unit_cost: float
    consumed_at: UtcDateTime
    recorded_by: int | None


class ProductionOrderOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    order_number: str
    bom_id: int
    work_center_id: int | None
    product_code: str
    planned_quantity: float
    produced_quantity: float
    status: str
    priority: str
    planned_start: UtcDateTime | None
    planned_end: UtcDateTime | None
    actual_start: UtcDateTime | None
    actual_end: UtcDateTime | None
    material_cost: float
    notes: str | None
    consumptions: list[MaterialConsumptionOut]
    created_at: UtcDateTime
    updated_at: UtcDateTime


class OperationProgress(BaseModel):
    sequence: int
    description: str
    work_center_id: int | None
    progress_pct: float


class ProductionOrderProgress(BaseModel):
    order_id: int
    order_number: str
    status: str
    planned_quantity: float
    produced_quantity: float
    progress_pct: float
    operations: list[OperationProgress]


class WorkCenterBreakdown(BaseModel):
    work_center_id: int | None
    orders: int
    planned_quantity: float


class ProductionOrderStats(BaseModel):
    total: int
    by_status: dict[str, int]
    planned_quantity: float
    produced_quantity: float
    overdue: int
    by_work_center: list[WorkCenterBreakdown]
