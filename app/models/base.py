"""SQLAlchemy declarative Base and shared column helpers."""

from sqlalchemy import JSON, Boolean, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

from app.core.timeutils import utcnow

# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


class TimestampMixin:
    """created_at/updated_at maintained on the Python side, always UTC."""

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class SoftDeleteMixin:
    """Business rows are never removed by the API; is_active flips to False."""

    is_active = Column(Boolean, nullable=False, default=True, index=True)
