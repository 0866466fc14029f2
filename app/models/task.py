"""ORM models for project tasks and the dependencies between them."""

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class Task(Base, TimestampMixin, SoftDeleteMixin):
    """
    Unit of work inside a project.

    status: pending -> in_progress -> completed, or cancelled
    """

    __tablename__ = "pro_tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(
        Integer, ForeignKey("pro_projects.id"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    assignee_id = Column(Integer, ForeignKey("auth_users.id"), nullable=True, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    priority = Column(String(16), nullable=False, default="normal")
    planned_start = Column(DateTime(timezone=True), nullable=True)
    planned_end = Column(DateTime(timezone=True), nullable=True)
    actual_start = Column(DateTime(timezone=True), nullable=True)
    actual_end = Column(DateTime(timezone=True), nullable=True)
    estimated_hours = Column(Float, nullable=False, default=0.0)
    actual_hours = Column(Float, nullable=False, default=0.0)
    progress = Column(Integer, nullable=False, default=0)

    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assignee_id])
    dependencies = relationship(
        "TaskDependency",
        foreign_keys="TaskDependency.task_id",
        back_populates="task",
        cascade="all, delete-orphan",
    )


class TaskDependency(Base):
    """task_id cannot start until depends_on_id is completed."""

    __tablename__ = "pro_task_dependencies"
    __table_args__ = (
        UniqueConstraint("task_id", "depends_on_id", name="uq_pro_task_dependency"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(
        Integer, ForeignKey("pro_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    depends_on_id = Column(
        Integer, ForeignKey("pro_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    task = relationship("Task", foreign_keys=[task_id], back_populates="dependencies")
    depends_on = relationship("Task", foreign_keys=[depends_on_id])
