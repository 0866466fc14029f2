"""ORM models for production orders and their material consumption."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.timeutils import utcnow
from app.models.base import Base, SoftDeleteMixin, TimestampMixin

ACTIVE_ORDER_STATUSES = ("planned", "released", "in_production")


class ProductionOrder(Base, TimestampMixin, SoftDeleteMixin):
    """
    Order to produce planned_quantity of a BOM's product.

    status: planned -> released -> in_production -> completed, or cancelled
    """

    __tablename__ = "prd_production_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(20), nullable=False, index=True)
    bom_id = Column(Integer, ForeignKey("prd_boms.id"), nullable=False, index=True)
    work_center_id = Column(
        Integer, ForeignKey("prd_work_centers.id"), nullable=True, index=True
    )
    product_code = Column(String(50), nullable=False, index=True)
    planned_quantity = Column(Float, nullable=False)
    produced_quantity = Column(Float, nullable=False, default=0.0)
    status = Column(String(32), nullable=False, default="planned", index=True)
    priority = Column(String(16), nullable=False, default="normal")
    planned_start = Column(DateTime(timezone=True), nullable=True)
    planned_end = Column(DateTime(timezone=True), nullable=True)
    actual_start = Column(DateTime(timezone=True), nullable=True)
    actual_end = Column(DateTime(timezone=True), nullable=True)
    material_cost = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("auth_users.id"), nullable=True)

    bom = relationship("Bom")
    work_center = relationship("WorkCenter")
    consumptions = relationship(
        "MaterialConsumption",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="MaterialConsumption.id",
    )


class MaterialConsumption(Base):
    """Material actually consumed by an in-production order."""

    __tablename__ = "prd_material_consumptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    production_order_id = Column(
        Integer,
        ForeignKey("prd_production_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    component_code = Column(String(50), nullable=False)
    quantity = Column(Float, nullable=False)
    unit_cost = Column(Float, nullable=False, default=0.0)
    consumed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    recorded_by = Column(Integer, ForeignKey("auth_users.id"), nullable=True)

    order = relationship("ProductionOrder", back_populates="consumptions")
