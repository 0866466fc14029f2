"""Quality control route table. /reports is registered ahead of /{qc_id}."""

from datetime import date

from fastapi import Response

from app.api.deps import CurrentUserDep, DbDep, PageDep
from app.api.routing import Route, build_router
from app.core.permissions import Permission
from app.schemas.common import Page
from app.schemas.quality_control import (
    InspectionOutcome,
    InspectionType,
    InspectRequest,
    QualityControlCreate,
    QualityControlOut,
    QualityControlUpdate,
    QualityReport,
)
from app.services import quality_control as qc_service

RESOURCE = "quality_control"


def list_inspections(
    db: DbDep,
    page: PageDep,
    status: str | None = None,
    result: InspectionOutcome | None = None,
    inspection_type: InspectionType | None = None,
    product_code: str | None = None,
) -> Page[QualityControlOut]:
    return qc_service.list_inspections(
        db,
        page,
        status=status,
        result=result,
        inspection_type=inspection_type,
        product_code=product_code,
    )


def get_reports(
    db: DbDep,
    start_date: date | None = None,
    end_date: date | None = None,
    product_code: str | None = None,
    inspection_type: InspectionType | None = None,
) -> QualityReport:
    """Approval rates and breakdowns over the selected period."""
    return qc_service.get_reports(
        db,
        start_date=start_date,
        end_date=end_date,
        product_code=product_code,
        inspection_type=inspection_type,
    )


def get_inspection(qc_id: int, db: DbDep) -> QualityControlOut:
    return qc_service.get_inspection(db, qc_id)


def create_inspection(body: QualityControlCreate, db: DbDep) -> QualityControlOut:
    return qc_service.create_inspection(db, body)


def update_inspection(qc_id: int, body: QualityControlUpdate, db: DbDep) -> QualityControlOut:
    return qc_service.update_inspection(db, qc_id, body)


def delete_inspection(qc_id: int, db: DbDep) -> Response:
    qc_service.delete_inspection(db, qc_id)
    return Response(status_code=204)


def inspect(
    qc_id: int, body: InspectRequest, db: DbDep, current_user: CurrentUserDep
) -> QualityControlOut:
    """Record results of a pending inspection; rejection opens a non-conformity."""
    return qc_service.inspect(db, qc_id, body, current_user)


ROUTES = (
    Route("GET", "", Permission(RESOURCE, "read"), list_inspections),
    Route("GET", "/reports", Permission(RESOURCE, "read"), get_reports),
    Route("GET", "/{qc_id}", Permission(RESOURCE, "read"), get_inspection),
    Route("POST", "", Permission(RESOURCE, "create"), create_inspection, status_code=201),
    Route("PUT", "/{qc_id}", Permission(RESOURCE, "update"), update_inspection),
    Route("DELETE", "/{qc_id}", Permission(RESOURCE, "delete"), delete_inspection, status_code=204),
    Route("POST", "/{qc_id}/inspect", Permission(RESOURCE, "update"), inspect),
)

router = build_router(ROUTES)
