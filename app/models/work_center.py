"""ORM model for production work centers."""

from sqlalchemy import Boolean, Column, Float, Integer, String, Text

from app.models.base import Base, JSONType, SoftDeleteMixin, TimestampMixin


class WorkCenter(Base, TimestampMixin, SoftDeleteMixin):
    """
    A machine, line or team that production operations run on.

    working_days: weekday numbers (Monday=0) the center operates.
    """

    __tablename__ = "prd_work_centers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    kind = Column(String(32), nullable=False, default="manual")
    department = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    capacity_hours_per_day = Column(Float, nullable=False, default=8.0)
    operator_capacity = Column(Integer, nullable=False, default=1)
    hourly_cost = Column(Float, nullable=False, default=0.0)
    setup_cost = Column(Float, nullable=False, default=0.0)
    efficiency_pct = Column(Float, nullable=False, default=85.0)
    availability_pct = Column(Float, nullable=False, default=90.0)
    working_days = Column(JSONType, nullable=False, default=lambda: [0, 1, 2, 3, 4])
    available = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
