"""ORM models for bills of materials, their items and routing operations."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class Bom(Base, TimestampMixin, SoftDeleteMixin):
    """Bill of materials for one version of a product."""

    __tablename__ = "prd_boms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_code = Column(String(50), nullable=False, index=True)
    version = Column(String(20), nullable=False, default="1.0")
    kind = Column(String(32), nullable=False, default="production")
    description = Column(Text, nullable=True)
    effective_date = Column(Date, nullable=True)
    production_hours = Column(Float, nullable=False, default=1.0)
    setup_hours = Column(Float, nullable=False, default=0.0)
    yield_pct = Column(Float, nullable=False, default=100.0)
    notes = Column(Text, nullable=True)

    items = relationship(
        "BomItem",
        back_populates="bom",
        cascade="all, delete-orphan",
        order_by="BomItem.position",
    )
    operations = relationship(
        "BomOperation",
        back_populates="bom",
        cascade="all, delete-orphan",
        order_by="BomOperation.sequence",
    )


class BomItem(Base):
    """One component line of a BOM (quantity per unit of the parent product)."""

    __tablename__ = "prd_bom_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bom_id = Column(
        Integer, ForeignKey("prd_boms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_code = Column(String(50), nullable=False, index=True)
    quantity = Column(Float, nullable=False)
    unit = Column(String(10), nullable=False, default="UN")
    item_type = Column(String(32), nullable=False, default="component")
    required = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)
    scrap_pct = Column(Float, nullable=False, default=0.0)
    unit_cost = Column(Float, nullable=False, default=0.0)

    bom = relationship("Bom", back_populates="items")


class BomOperation(Base):
    """Routing step of a BOM executed on a work center."""

    __tablename__ = "prd_bom_operations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bom_id = Column(
        Integer, ForeignKey("prd_boms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence = Column(Integer, nullable=False)
    description = Column(String(255), nullable=False)
    work_center_id = Column(Integer, ForeignKey("prd_work_centers.id"), nullable=True)
    setup_minutes = Column(Float, nullable=False, default=0.0)
    run_minutes = Column(Float, nullable=False, default=0.0)

    bom = relationship("Bom", back_populates="operations")
    work_center = relationship("WorkCenter")
