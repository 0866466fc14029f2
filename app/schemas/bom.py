"""Schemas for bills of materials, explosion and cost calculation."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import PartialUpdate, UtcDateTime

BomKind = Literal["production", "engineering", "cost", "planning"]
BomItemType = Literal["component", "raw_material", "semi_finished", "tool"]


class BomItemIn(BaseModel):
    component_code: str = Field(..., min_length=1, max_length=50)
    quantity: float = Field(..., gt=0)
    unit: str = Field(default="UN", min_length=1, max_length=10)
    item_type: BomItemType = "component"
    required: bool = True
    position: int | None = Field(default=None, ge=0)
    scrap_pct: float = Field(default=0.0, ge=0, le=100)
    unit_cost: float = Field(default=0.0, ge=0)

    @field_validator("component_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class BomOperationIn(BaseModel):
    sequence: int = Field(..., ge=1)
    description: str = Field(..., min_length=1, max_length=255)
    work_center_id: int | None = None
    setup_minutes: float = Field(default=0.0, ge=0)
    run_minutes: float = Field(default=0.0, ge=0)


class BomCreate(BaseModel):
    product_code: str = Field(..., min_length=1, max_length=50)
    version: str = Field(default="1.0", min_length=1, max_length=20)
    kind: BomKind = "production"
    description: str | None = None
    effective_date: date | None = None
    production_hours: float = Field(default=1.0, gt=0)
    setup_hours: float = Field(default=0.0, ge=0)
    yield_pct: float = Field(default=100.0, gt=0, le=100)
    notes: str | None = None
    items: list[BomItemIn] = Field(default_factory=list)
    operations: list[BomOperationIn] = Field(default_factory=list)

    @field_validator("product_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class BomUpdate(PartialUpdate):
    """Partial update; items/operations, when sent, replace the existing lists."""

    nullable_fields = frozenset({"description", "effective_date", "notes"})

    version: str | None = Field(default=None, min_length=1, max_length=20)
    kind: BomKind | None = None
    description: str | None = None
    effective_date: date | None = None
    production_hours: float | None = Field(default=None, gt=0)
    setup_hours: float | None = Field(default=None, ge=0)
    yield_pct: float | None = Field(default=None, gt=0, le=100)
    notes: str | None = None
    items: list[BomItemIn] | None = None
    operations: list[BomOperationIn] | None = None


class BomItemOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    component_code: str
    quantity: float
    unit: str
    item_type: str
    required: bool
    position: int
    scrap_pct: float
    unit_cost: float


class BomOperationOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    sequence: int
    description: str
    work_center_id: int | None
    setup_minutes: float
    run_minutes: float


class BomOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    product_code: str
    version: str
    kind: str
    description: str | None
    effective_date: date | None
    production_hours: float
    setup_hours: float
    yield_pct: float
    notes: str | None
    items: list[BomItemOut]
    operations: list[BomOperationOut]
    created_at: UtcDateTime
    updated_at: UtcDateTime


class ExplodedItem(BaseModel):
    level: int
    component_code: str
    quantity: float
    total_quantity: float
    unit: str
    item_type: str
    sub_bom_id: int | None = None
    cycle: bool = False
    children: list["ExplodedItem"] = Field(default_factory=list)


class BomExplosion(BaseModel):
    bom_id: int
    product_code: str
    version: str
    levels: int
    items: list[ExplodedItem]
    flat: dict[str, float] = Field(
        default_factory=dict,
        description="Total quantity per leaf component across the whole tree",
    )


class CostCalcRequest(BaseModel):
    quantity: float = Field(default=1.0, gt=0)


class MaterialCostLine(BaseModel):
    component_code: str
    quantity: float
    scrap_pct: float
    unit_cost: float
    total_cost: float


class LabourCostLine(BaseModel):
    sequence: int
    description: str
    work_center_id: int | None
    hourly_cost: float
    setup_cost: float
    run_cost: float
    total_cost: float


class BomCost(BaseModel):
    bom_id: int
    quantity: float
    material_cost: float
    labour_cost: float
    overhead_cost: float
    total_cost: float
    unit_cost: float
    materials: list[MaterialCostLine]
    operations: list[LabourCostLine]
