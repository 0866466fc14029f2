"""Role/permission matrix and the pure authorisation predicate."""

from collections.abc import Collection
from dataclasses import dataclass
from typing import Protocol

ROLES = ("admin", "manager", "user", "viewer")

# Higher level may administer lower levels (status and role changes).
ROLE_HIERARCHY: dict[str, int] = {
    "admin": 4,
    "manager": 3,
    "user": 2,
    "viewer": 1,
}

BUSINESS_RESOURCES = (
    "bom",
    "production_orders",
    "quality_control",
    "work_centers",
    "projects",
    "tasks",
)


def _business_matrix() -> dict[str, tuple[str, ...]]:
    matrix: dict[str, tuple[str, ...]] = {}
    for resource in BUSINESS_RESOURCES:
        matrix[f"{resource}.read"] = ROLES
        matrix[f"{resource}.create"] = ("admin", "manager", "user")
        matrix[f"{resource}.update"] = ("admin", "manager", "user")
        matrix[f"{resource}.delete"] = ("admin", "manager")
    return matrix


# "resource.action" -> roles allowed
PERMISSIONS: dict[str, tuple[str, ...]] = {
    **_business_matrix(),
    "users.create": ("admin",),
    "users.read": ("admin", "manager"),
    "users.update": ("admin", "manager"),
    "users.delete": ("admin",),
}


@dataclass(frozen=True)
class Permission:
    """A (resource, action) pair required by a route."""

    resource: str
    action: str

    @property
    def key(self) -> str:
        return f"{self.resource}.{self.action}"


class Identity(Protocol):
    """Minimal view of an authenticated principal needed for authorisation."""

    role: str
    grants: Collection[str]


def has_permission(identity: Identity, resource: str, action: str) -> bool:
    """True when the role matrix or an explicit grant allows resource.action."""
    key = f"{resource}.{action}"
    if identity.role in PERMISSIONS.get(key, ()):
        return True
    return key in identity.grants


def get_role_permissions(role: str) -> list[str]:
    """All resource.action keys granted to a role by the static matrix."""
    return sorted(key for key, roles in PERMISSIONS.items() if role in roles)


def outranks(actor_role: str, target_role: str) -> bool:
    """True when actor_role sits strictly above target_role in the hierarchy."""
    return ROLE_HIERARCHY.get(actor_role, 0) > ROLE_HIERARCHY.get(target_role, 0)
