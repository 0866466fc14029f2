"""Schemas for quality inspections and quality reports."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import PartialUpdate, UtcDateTime

InspectionType = Literal["receiving", "process", "final", "shipping"]
InspectionOutcome = Literal["approved", "rejected", "conditional"]


class QualityControlCreate(BaseModel):
    product_code: str = Field(..., min_length=1, max_length=50)
    production_order_id: int | None = None
    lot: str | None = Field(default=None, max_length=50)
    inspection_type: InspectionType = "final"
    inspected_quantity: float = Field(default=1.0, gt=0)
    scheduled_at: UtcDateTime | None = None
    responsible_id: int | None = None
    notes: str | None = None

    @field_validator("product_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class QualityControlUpdate(PartialUpdate):
    nullable_fields = frozenset({"lot", "scheduled_at", "responsible_id", "notes"})

    lot: str | None = Field(default=None, max_length=50)
    inspection_type: InspectionType | None = None
    inspected_quantity: float | None = Field(default=None, gt=0)
    scheduled_at: UtcDateTime | None = None
    responsible_id: int | None = None
    notes: str | None = None


class InspectionResultIn(BaseModel):
    parameter_name: str = Field(..., min_length=1, max_length=100)
    measured_value: str | None = Field(default=None, max_length=100)
    approved: bool
    notes: str | None = None


class InspectRequest(BaseModel):
    results: list[InspectionResultIn] = Field(..., min_length=1)
    overall_result: InspectionOutcome
    notes: str | None = None


class InspectionResultOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    parameter_name: str
    measured_value: str | None
    approved: bool
    notes: str | None


class NonConformityOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    description: str
    severity: str
    category: str
    affected_quantity: float
    status: str


class QualityControlOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    product_code: str
    production_order_id: int | None
    lot: str | None
    inspection_type: str
    inspected_quantity: float
    scheduled_at: UtcDateTime | None
    responsible_id: int | None
    status: str
    result: str | None
    inspected_at: UtcDateTime | None
    inspector_id: int | None
    inspection_notes: str | None
    notes: str | None
    results: list[InspectionResultOut]
    non_conformities: list[NonConformityOut]
    created_at: UtcDateTime
    updated_at: UtcDateTime


class ProductQuality(BaseModel):
    product_code: str
    inspections: int
    approved: int
    rejected: int
    approval_rate: float


class QualityReport(BaseModel):
    total_inspections: int
    pending: int
    approved: int
    rejected: int
    conditional: int
    approval_rate: float
    by_product: list[ProductQuality]
    by_inspection_type: dict[str, int]
    non_conformities_by_category: dict[str, int]
