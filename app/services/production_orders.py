"""Production order lifecycle: CRUD, start/finish, material consumption and stats."""

import logging
from collections import Counter, defaultdict

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.timeutils import ensure_utc, utcnow
from app.models import Bom, MaterialConsumption, ProductionOrder, WorkCenter
from app.schemas.auth import CurrentUser
from app.schemas.common import Page, PageParams
from app.schemas.production_order import (
    FinishRequest,
    MaterialsRequest,
    OperationProgress,
    ProductionOrderCreate,
    ProductionOrderOut,
    ProductionOrderProgress,
    ProductionOrderStats,
    ProductionOrderUpdate,
    WorkCenterBreakdown,
)
from app.services.crud import (
    apply_updates,
    get_or_404,
    next_sequence_code,
    paginate,
    round2,
    soft_delete,
)

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "OP"
ORDER_NUMBER_WIDTH = 6
ORDER_STATUSES = ("planned", "released", "in_production", "completed", "cancelled")

# Estimated completion of each operation by order status.
OPERATION_PROGRESS = {
    "completed": 100.0,
    "in_production": 50.0,
}


def list_orders(
    db: Session,
    params: PageParams,
    status: str | None = None,
    priority: str | None = None,
    work_center_id: int | None = None,
    product_code: str | None = None,
) -> Page[ProductionOrderOut]:
    query = db.query(ProductionOrder).filter(ProductionOrder.is_active.is_(True))
    if status:
        query = query.filter(ProductionOrder.status == status)
    if priority:
        query = query.filter(ProductionOrder.priority == priority)
    if work_center_id is not None:
        query = query.filter(ProductionOrder.work_center_id == work_center_id)
    if product_code:
        query = query.filter(ProductionOrder.product_code == product_code.strip().upper())
    query = query.order_by(ProductionOrder.id.desc())
    return paginate(query, params, ProductionOrderOut)


def get_order(db: Session, order_id: int) -> ProductionOrder:
    return get_or_404(db, ProductionOrder, order_id, "Production order")


def _active_bom(db: Session, bom_id: int) -> Bom:
    bom = db.query(Bom).filter(Bom.id == bom_id, Bom.is_active.is_(True)).first()
    if bom is None:
        raise NotFoundError("BOM not found.", {"bom_id": bom_id})
    return bom


def _active_work_center(db: Session, work_center_id: int) -> WorkCenter:
    wc = (
        db.query(WorkCenter)
        .filter(WorkCenter.id == work_center_id, WorkCenter.is_active.is_(True))
        .first()
    )
    if wc is None:
        raise NotFoundError("Work center not found.", {"work_center_id": work_center_id})
    return wc


def create_order(db: Session, body: ProductionOrderCreate, actor: CurrentUser) -> ProductionOrder:
    bom = _active_bom(db, body.bom_id)
    if body.work_center_id is not None:
        _active_work_center(db, body.work_center_id)

    number = body.order_number or next_sequence_code(
        db, ProductionOrder.order_number, ORDER_NUMBER_PREFIX, ORDER_NUMBER_WIDTH
    )
    duplicate = (
        db.query(ProductionOrder.id)
        .filter(ProductionOrder.order_number == number, ProductionOrder.is_active.is_(True))
        .first()
    )
    if duplicate is not None:
        raise ConflictError("Order number already in use.", {"order_number": number})

    order = ProductionOrder(
        **body.model_dump(exclude={"order_number"}),
        order_number=number,
        product_code=bom.product_code,
        produced_quantity=0.0,
        material_cost=0.0,
        created_by=actor.id,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info(
        "Production order created",
        extra={"order_id": order.id, "order_number": number, "user_id": actor.id},
    )
    return order


def update_order(db: Session, order_id: int, body: ProductionOrderUpdate) -> ProductionOrder:
    order = get_order(db, order_id)
    changes = body.model_dump(exclude_unset=True)
    if order.status in ("completed", "cancelled"):
        raise ConflictError(
            f"Cannot update an order that is {order.status}.", {"status": order.status}
        )
    new_status = changes.get("status")
    if order.status == "in_production" and new_status and new_status != "in_production":
        raise ConflictError(
            "Status of an order in production changes only through finish.",
            {"status": order.status},
        )
    if new_status in ("in_production", "completed"):
        raise ConflictError(
            "Use the start and finish actions to move an order into production or completion.",
            {"requested_status": new_status},
        )
    if changes.get("work_center_id") is not None:
        _active_work_center(db, changes["work_center_id"])

    start = ensure_utc(changes.get("planned_start", order.planned_start))
    end = ensure_utc(changes.get("planned_end", order.planned_end))
    if start and end and end < start:
        raise ValidationError("planned_end must be on or after planned_start.")

    apply_updates(order, changes)
    db.commit()
    db.refresh(order)
    return order


def delete_order(db: Session, order_id: int) -> None:
    order = get_order(db, order_id)
    if order.status == "in_production":
        raise ConflictError("Cannot delete an order in production.", {"status": order.status})
    soft_delete(db, order)
    logger.info("Production order deactivated", extra={"order_id": order.id})


def start_order(db: Session, order_id: int, actor: CurrentUser) -> ProductionOrder:
    """released -> in_production; any other status is a conflict."""
    order = get_order(db, order_id)
    if order.status != "released":
        raise ConflictError(
            "Only released orders can be started.", {"status": order.status}
        )
    order.status = "in_production"
    order.actual_start = utcnow()
    db.commit()
    db.refresh(order)
    logger.info(
        "Production order started",
        extra={"order_id": order.id, "order_number": order.order_number, "user_id": actor.id},
    )
    return order


def finish_order(
    db: Session, order_id: int, body: FinishRequest, actor: CurrentUser
) -> ProductionOrder:
    """in_production -> completed; records produced quantity and material cost."""
    order = get_order(db, order_id)
    if order.status != "in_production":
        raise ConflictError(
            "Only orders in production can be finished.", {"status": order.status}
        )
    order.status = "completed"
    order.actual_end = utcnow()
    order.produced_quantity = (
        body.produced_quantity if body.produced_quantity is not None else order.planned_quantity
    )
    order.material_cost = round2(sum(c.quantity * c.unit_cost for c in order.consumptions))
    if body.notes:
        order.notes = f"{order.notes}\n{body.notes}" if order.notes else body.notes
    db.commit()
    db.refresh(order)
    logger.info(
        "Production order finished",
        extra={
            "order_id": order.id,
            "produced_quantity": order.produced_quantity,
            "user_id": actor.id,
        },
    )
    return order


def record_materials(
    db: Session, order_id: int, body: MaterialsRequest, actor: CurrentUser
) -> ProductionOrder:
    order = get_order(db, order_id)
    if order.status != "in_production":
        raise ConflictError(
            "Materials can only be recorded while the order is in production.",
            {"status": order.status},
        )
    now = utcnow()
    for material in body.materials:
        order.consumptions.append(
            MaterialConsumption(
                component_code=material.component_code,
                quantity=material.quantity,
                unit_cost=material.unit_cost,
                consumed_at=now,
                recorded_by=actor.id,
            )
        )
    db.commit()
    db.refresh(order)
    return order


def get_progress(db: Session, order_id: int) -> ProductionOrderProgress:
    order = get_order(db, order_id)
    per_operation = OPERATION_PROGRESS.get(order.status, 0.0)
    operations = [
        OperationProgress(
            sequence=op.sequence,
            description=op.description,
            work_center_id=op.work_center_id,
            progress_pct=per_operation,
        )
        for op in (order.bom.operations if order.bom is not None else [])
    ]
    if operations:
        overall = sum(o.progress_pct for o in operations) / len(operations)
    else:
        overall = per_operation
    if order.status == "completed":
        overall = 100.0
    return ProductionOrderProgress(
        order_id=order.id,
        order_number=order.order_number,
        status=order.status,
        planned_quantity=order.planned_quantity,
        produced_quantity=order.produced_quantity,
        progress_pct=round2(overall),
        operations=operations,
    )


def get_stats(db: Session) -> ProductionOrderStats:
    orders = db.query(ProductionOrder).filter(ProductionOrder.is_active.is_(True)).all()
    now = utcnow()
    by_status = {status: 0 for status in ORDER_STATUSES}
    by_status.update(Counter(o.status for o in orders))
    overdue = sum(
        1
        for o in orders
        if o.status in ("released", "in_production")
        and o.planned_end is not None
        and ensure_utc(o.planned_end) < now
    )
    per_center: dict[int | None, list[ProductionOrder]] = defaultdict(list)
    for o in orders:
        per_center[o.work_center_id].append(o)
    return ProductionOrderStats(
        total=len(orders),
        by_status=by_status,
        planned_quantity=round2(sum(o.planned_quantity for o in orders)),
        produced_quantity=round2(sum(o.produced_quantity for o in orders)),
        overdue=overdue,
        by_work_center=[
            WorkCenterBreakdown(
                work_center_id=wc_id,
                orders=len(group),
                planned_quantity=round2(sum(o.planned_quantity for o in group)),
            )
            for wc_id, group in sorted(per_center.items(), key=lambda kv: (kv[0] is None, kv[0] or 0))
        ],
    )
