"""Work center route table. /stats is registered ahead of /{work_center_id}."""

from datetime import date

from fastapi import Response, status

from app.api.deps import DbDep, PageDep
from app.api.routing import Route, build_router
from app.core.permissions import Permission
from app.schemas.common import Page
from app.schemas.work_center import (
    WorkCenterCapacity,
    WorkCenterCreate,
    WorkCenterKind,
    WorkCenterOut,
    WorkCenterSchedule,
    WorkCenterStats,
    WorkCenterUpdate,
)
from app.services import work_centers as wc_service

RESOURCE = "work_centers"


def list_work_centers(
    db: DbDep,
    page: PageDep,
    search: str | None = None,
    kind: WorkCenterKind | None = None,
    available: bool | None = None,
) -> Page[WorkCenterOut]:
    return wc_service.list_work_centers(db, page, search=search, kind=kind, available=available)


def get_stats(db: DbDep) -> WorkCenterStats:
    return wc_service.get_stats(db)


def get_work_center(work_center_id: int, db: DbDep) -> WorkCenterOut:
    return wc_service.get_work_center(db, work_center_id)


def create_work_center(body: WorkCenterCreate, db: DbDep) -> WorkCenterOut:
    return wc_service.create_work_center(db, body)


def update_work_center(work_center_id: int, body: WorkCenterUpdate, db: DbDep) -> WorkCenterOut:
    return wc_service.update_work_center(db, work_center_id, body)


def delete_work_center(work_center_id: int, db: DbDep) -> Response:
    wc_service.delete_work_center(db, work_center_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def get_capacity(
    work_center_id: int,
    db: DbDep,
    start_date: date | None = None,
    end_date: date | None = None,
) -> WorkCenterCapacity:
    """Available hours per day against the load of active orders (default: next 7 days)."""
    return wc_service.get_capacity(db, work_center_id, start_date=start_date, end_date=end_date)


def get_schedule(
    work_center_id: int,
    db: DbDep,
    start_date: date | None = None,
    end_date: date | None = None,
) -> WorkCenterSchedule:
    return wc_service.get_schedule(db, work_center_id, start_date=start_date, end_date=end_date)


ROUTES = (
    Route("GET", "", Permission(RESOURCE, "read"), list_work_centers),
    Route("GET", "/stats", Permission(RESOURCE, "read"), get_stats),
    Route("GET", "/{work_center_id}", Permission(RESOURCE, "read"), get_work_center),
    Route("POST", "", Permission(RESOURCE, "create"), create_work_center, status_code=201),
    Route("PUT", "/{work_center_id}", Permission(RESOURCE, "update"), update_work_center),
    Route(
        "DELETE",
        "/{work_center_id}",
        Permission(RESOURCE, "delete"),
        delete_work_center,
        status_code=204,
    ),
    Route("GET", "/{work_center_id}/capacity", Permission(RESOURCE, "read"), get_capacity),
    Route("GET", "/{work_center_id}/schedule", Permission(RESOURCE, "read"), get_schedule),
)

router = build_router(ROUTES)
