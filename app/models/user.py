"""ORM models for application users and their explicit permission grants."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.models.base import Base, JSONType, TimestampMixin


class User(Base, TimestampMixin):
    """
    User account for authentication and role-based access control.

    role: admin, manager, user or viewer
    status: active, inactive or suspended (users are never physically deleted)
    """

    __tablename__ = "auth_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(32), nullable=False, default="user")
    status = Column(String(32), nullable=False, default="active", index=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    reset_password_token = Column(String(128), nullable=True, index=True)
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)
    preferences = Column(JSONType, nullable=False, default=dict)

    sessions = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan"
    )
    permissions = relationship(
        "UserPermission", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserPermission(Base):
    """Explicit resource.action grant on top of the role matrix."""

    __tablename__ = "auth_user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "resource", "action", name="uq_auth_user_permission"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource = Column(String(64), nullable=False)
    action = Column(String(32), nullable=False)

    user = relationship("User", back_populates="permissions")

    @property
    def key(self) -> str:
        return f"{self.resource}.{self.action}"
