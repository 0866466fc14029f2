"""Declarative route tables mounted behind the authentication and permission gates."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Depends

from app.api.gates import get_current_user, require_permission
from app.core.permissions import Permission


class RouteOrderError(ValueError):
    """A route would never be reached because an earlier route captures its path."""


@dataclass(frozen=True)
class Route:
    """One entry of a route table: method, path, required permission, handler."""

    method: str
    path: str
    permission: Permission
    handler: Callable[..., Any]
    status_code: int = 200
    summary: str | None = None


def _segments(path: str) -> list[str]:
    return [s for s in path.strip("/").split("/") if s]


def _is_param(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def captures(earlier: str, later: str) -> bool:
    """
    True when every concrete path matched by `later` is also matched by
    `earlier`, i.e. `later` is unreachable if registered after `earlier`.
    """
    a, b = _segments(earlier), _segments(later)
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x == y or _is_param(x):
            continue
        return False
    return True


def validate_order(routes: Iterable[Route]) -> None:
    """Raise RouteOrderError if a route is shadowed by one registered before it."""
    seen: list[Route] = []
    for route in routes:
        for prior in seen:
            if prior.method == route.method and captures(prior.path, route.path):
                raise RouteOrderError(
                    f"{route.method} {route.path or '/'} is unreachable: "
                    f"{prior.method} {prior.path or '/'} is registered first"
                )
        seen.append(route)


def build_router(routes: Iterable[Route]) -> APIRouter:
    """
    Mount a route table on a new APIRouter.

    Every route runs get_current_user (router dependency) and then its own
    permission gate before the handler. Routes are added in table order.
    """
    table = list(routes)
    validate_order(table)
    router = APIRouter(dependencies=[Depends(get_current_user)])
    for route in table:
        router.add_api_route(
            route.path,
            route.handler,
            methods=[route.method],
            status_code=route.status_code,
            summary=route.summary,
            dependencies=[
                Depends(require_permission(route.permission.resource, route.permission.action))
            ],
        )
    return router
