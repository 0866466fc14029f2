"""Production order route table. /stats is registered ahead of /{order_id}."""

from fastapi import Response

from app.api.deps import CurrentUserDep, DbDep, PageDep
from app.api.routing import Route, build_router
from app.core.permissions import Permission
from app.schemas.common import Page
from app.schemas.production_order import (
    FinishRequest,
    MaterialsRequest,
    OrderPriority,
    OrderStatus,
    ProductionOrderCreate,
    ProductionOrderOut,
    ProductionOrderProgress,
    ProductionOrderStats,
    ProductionOrderUpdate,
)
from app.services import production_orders as orders_service

RESOURCE = "production_orders"


def list_orders(
    db: DbDep,
    page: PageDep,
    status: OrderStatus | None = None,
    priority: OrderPriority | None = None,
    work_center_id: int | None = None,
    product_code: str | None = None,
) -> Page[ProductionOrderOut]:
    return orders_service.list_orders(
        db,
        page,
        status=status,
        priority=priority,
        work_center_id=work_center_id,
        product_code=product_code,
    )


def get_stats(db: DbDep) -> ProductionOrderStats:
    """Counts per status, quantities, overdue orders and per-work-center breakdown."""
    return orders_service.get_stats(db)


def get_order(order_id: int, db: DbDep) -> ProductionOrderOut:
    return orders_service.get_order(db, order_id)


def create_order(
    body: ProductionOrderCreate, db: DbDep, current_user: CurrentUserDep
) -> ProductionOrderOut:
    """Create an order for an active BOM; the order number is generated when omitted."""
    return orders_service.create_order(db, body, current_user)


def update_order(order_id: int, body: ProductionOrderUpdate, db: DbDep) -> ProductionOrderOut:
    return orders_service.update_order(db, order_id, body)


def delete_order(order_id: int, db: DbDep) -> Response:
    orders_service.delete_order(db, order_id)
    return Response(status_code=204)


def start_order(order_id: int, db: DbDep, current_user: CurrentUserDep) -> ProductionOrderOut:
    """Move a released order into production. Any other status returns 409."""
    return orders_service.start_order(db, order_id, current_user)


def finish_order(
    order_id: int,
    db: DbDep,
    current_user: CurrentUserDep,
    body: FinishRequest | None = None,
) -> ProductionOrderOut:
    return orders_service.finish_order(db, order_id, body or FinishRequest(), current_user)


def get_progress(order_id: int, db: DbDep) -> ProductionOrderProgress:
    return orders_service.get_progress(db, order_id)


def record_materials(
    order_id: int, body: MaterialsRequest, db: DbDep, current_user: CurrentUserDep
) -> ProductionOrderOut:
    """Record material consumed by an order in production."""
    return orders_service.record_materials(db, order_id, body, current_user)


ROUTES = (
    Route("GET", "", Permission(RESOURCE, "read"), list_orders),
    Route("GET", "/stats", Permission(RESOURCE, "read"), get_stats),
    Route("GET", "/{order_id}", Permission(RESOURCE, "read"), get_order),
    Route("POST", "", Permission(RESOURCE, "create"), create_order, status_code=201),
    Route("PUT", "/{order_id}", Permission(RESOURCE, "update"), update_order),
    Route("DELETE", "/{order_id}", Permission(RESOURCE, "delete"), delete_order, status_code=204),
    Route("POST", "/{order_id}/start", Permission(RESOURCE, "update"), start_order),
    Route("POST", "/{order_id}/finish", Permission(RESOURCE, "update"), finish_order),
    Route("GET", "/{order_id}/progress", Permission(RESOURCE, "read"), get_progress),
    Route("POST", "/{order_id}/materials", Permission(RESOURCE, "update"), record_materials),
)

router = build_router(ROUTES)
