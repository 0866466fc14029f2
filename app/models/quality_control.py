"""ORM models for quality inspections, their results and non-conformities."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class QualityControl(Base, TimestampMixin, SoftDeleteMixin):
    """
    Scheduled inspection of a product lot.

    status: pending until inspected; result: approved, rejected or conditional
    """

    __tablename__ = "prd_quality_controls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_code = Column(String(50), nullable=False, index=True)
    production_order_id = Column(
        Integer, ForeignKey("prd_production_orders.id"), nullable=True, index=True
    )
    lot = Column(String(50), nullable=True)
    inspection_type = Column(String(32), nullable=False, default="final")
    inspected_quantity = Column(Float, nullable=False, default=1.0)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    responsible_id = Column(Integer, ForeignKey("auth_users.id"), nullable=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    result = Column(String(32), nullable=True, index=True)
    inspected_at = Column(DateTime(timezone=True), nullable=True)
    inspector_id = Column(Integer, ForeignKey("auth_users.id"), nullable=True)
    inspection_notes = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    production_order = relationship("ProductionOrder")
    results = relationship(
        "InspectionResult",
        back_populates="quality_control",
        cascade="all, delete-orphan",
        order_by="InspectionResult.id",
    )
    non_conformities = relationship(
        "NonConformity",
        back_populates="quality_control",
        cascade="all, delete-orphan",
        order_by="NonConformity.id",
    )


class InspectionResult(Base):
    """Measured value of one inspected parameter."""

    __tablename__ = "prd_inspection_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quality_control_id = Column(
        Integer,
        ForeignKey("prd_quality_controls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parameter_name = Column(String(100), nullable=False)
    measured_value = Column(String(100), nullable=True)
    approved = Column(Boolean, nullable=False)
    notes = Column(Text, nullable=True)

    quality_control = relationship("QualityControl", back_populates="results")


class NonConformity(Base, TimestampMixin):
    """Deviation raised when an inspection is rejected."""

    __tablename__ = "prd_non_conformities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quality_control_id = Column(
        Integer,
        ForeignKey("prd_quality_controls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, default="medium")
    category = Column(String(32), nullable=False, default="process")
    affected_quantity = Column(Float, nullable=False, default=0.0)
    status = Column(String(16), nullable=False, default="open")

    quality_control = relationship("QualityControl", back_populates="non_conformities")
