"""ORM model for projects."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class Project(Base, TimestampMixin, SoftDeleteMixin):
    """
    Project with planned dates, budget and a task breakdown.

    status: planning, in_progress, on_hold, completed or cancelled
    """

    __tablename__ = "pro_projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    client_name = Column(String(255), nullable=True)
    manager_id = Column(Integer, ForeignKey("auth_users.id"), nullable=True)
    status = Column(String(32), nullable=False, default="planning", index=True)
    planned_start = Column(DateTime(timezone=True), nullable=True)
    planned_end = Column(DateTime(timezone=True), nullable=True)
    actual_start = Column(DateTime(timezone=True), nullable=True)
    actual_end = Column(DateTime(timezone=True), nullable=True)
    budget = Column(Float, nullable=False, default=0.0)
    actual_cost = Column(Float, nullable=False, default=0.0)
    created_by = Column(Integer, ForeignKey("auth_users.id"), nullable=True)

    manager = relationship("User", foreign_keys=[manager_id])
    tasks = relationship("Task", back_populates="project", order_by="Task.id")
