"""Work center CRUD plus capacity, schedule and statistics views."""

import logging
from collections import Counter
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ValidationError
from app.core.timeutils import ensure_utc, utcnow
from app.models import Bom, ProductionOrder, WorkCenter
from app.models.production_order import ACTIVE_ORDER_STATUSES
from app.schemas.common import Page, PageParams
from app.schemas.work_center import (
    CapacityDay,
    ScheduleEntry,
    WorkCenterCapacity,
    WorkCenterCreate,
    WorkCenterOut,
    WorkCenterSchedule,
    WorkCenterStats,
    WorkCenterUpdate,
)
from app.services.crud import apply_updates, get_or_404, paginate, round2, soft_delete

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 366


def list_work_centers(
    db: Session,
    params: PageParams,
    search: str | None = None,
    kind: str | None = None,
    available: bool | None = None,
) -> Page[WorkCenterOut]:
    query = db.query(WorkCenter).filter(WorkCenter.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(WorkCenter.code.ilike(like) | WorkCenter.name.ilike(like))
    if kind:
        query = query.filter(WorkCenter.kind == kind)
    if available is not None:
        query = query.filter(WorkCenter.available.is_(available))
    return paginate(query.order_by(WorkCenter.code), params, WorkCenterOut)


def get_work_center(db: Session, work_center_id: int) -> WorkCenter:
    return get_or_404(db, WorkCenter, work_center_id, "Work center")


def _ensure_code_free(db: Session, code: str, exclude_id: int | None = None) -> None:
    query = db.query(WorkCenter.id).filter(
        WorkCenter.code == code, WorkCenter.is_active.is_(True)
    )
    if exclude_id is not None:
        query = query.filter(WorkCenter.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Work center code already in use.", {"code": code})


def create_work_center(db: Session, body: WorkCenterCreate) -> WorkCenter:
    _ensure_code_free(db, body.code)
    wc = WorkCenter(**body.model_dump())
    db.add(wc)
    db.commit()
    db.refresh(wc)
    return wc


def update_work_center(db: Session, work_center_id: int, body: WorkCenterUpdate) -> WorkCenter:
    wc = get_work_center(db, work_center_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("code") and changes["code"] != wc.code:
        _ensure_code_free(db, changes["code"], exclude_id=wc.id)
    apply_updates(wc, changes)
    db.commit()
    db.refresh(wc)
    return wc


def _active_orders(db: Session, work_center_id: int) -> list[ProductionOrder]:
    return (
        db.query(ProductionOrder)
        .filter(
            ProductionOrder.work_center_id == work_center_id,
            ProductionOrder.is_active.is_(True),
            ProductionOrder.status.in_(ACTIVE_ORDER_STATUSES),
        )
        .all()
    )


def delete_work_center(db: Session, work_center_id: int) -> None:
    wc = get_work_center(db, work_center_id)
    active = len(_active_orders(db, wc.id))
    if active:
        raise ConflictError(
            "Work center has active production orders.", {"active_orders": active}
        )
    soft_delete(db, wc)
    logger.info("Work center deactivated", extra={"work_center_id": wc.id, "code": wc.code})


def effective_hours_per_day(wc: WorkCenter) -> float:
    """Capacity discounted by availability and efficiency."""
    return wc.capacity_hours_per_day * (wc.availability_pct / 100) * (wc.efficiency_pct / 100)


def order_hours(order: ProductionOrder, bom: Bom | None) -> float:
    """Estimated hours: BOM hours per unit times planned quantity, plus setup."""
    if bom is None:
        return 0.0
    return bom.production_hours * order.planned_quantity + (bom.setup_hours or 0.0)


def _window(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    start = start_date or utcnow().date()
    end = end_date or start + timedelta(days=DEFAULT_WINDOW_DAYS - 1)
    if end < start:
        raise ValidationError("end_date must be on or after start_date.")
    if (end - start).days + 1 > MAX_WINDOW_DAYS:
        raise ValidationError(f"Date range cannot exceed {MAX_WINDOW_DAYS} days.")
    return start, end


def get_capacity(
    db: Session,
    work_center_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> WorkCenterCapacity:
    wc = get_work_center(db, work_center_id)
    start, end = _window(start_date, end_date)
    effective = effective_hours_per_day(wc)
    working_days = set(wc.working_days or [])

    days: list[CapacityDay] = []
    total_available = 0.0
    current = start
    while current <= end:
        is_working = current.weekday() in working_days and bool(wc.available)
        hours = effective if is_working else 0.0
        total_available += hours
        days.append(
            CapacityDay(date=current, working_day=is_working, available_hours=round2(hours))
        )
        current += timedelta(days=1)

    orders = _active_orders(db, wc.id)
    load = sum(order_hours(o, o.bom) for o in orders)
    load_pct = (load / total_available * 100) if total_available else 0.0
    return WorkCenterCapacity(
        work_center_id=wc.id,
        code=wc.code,
        start_date=start,
        end_date=end,
        theoretical_hours_per_day=round2(wc.capacity_hours_per_day),
        effective_hours_per_day=round2(effective),
        available_hours=round2(total_available),
        current_load_hours=round2(load),
        load_pct=round2(load_pct),
        active_orders=len(orders),
        days=days,
    )


def get_schedule(
    db: Session,
    work_center_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> WorkCenterSchedule:
    wc = get_work_center(db, work_center_id)
    start, end = _window(start_date, end_date)
    window_start = datetime.combine(start, time.min, tzinfo=UTC)
    window_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=UTC)
    orders = (
        db.query(ProductionOrder)
        .filter(
            ProductionOrder.work_center_id == wc.id,
            ProductionOrder.is_active.is_(True),
            ProductionOrder.status != "cancelled",
            ProductionOrder.planned_start >= window_start,
            ProductionOrder.planned_start < window_end,
        )
        .order_by(ProductionOrder.planned_start, ProductionOrder.id)
        .all()
    )
    entries = [
        ScheduleEntry(
            order_id=o.id,
            order_number=o.order_number,
            product_code=o.product_code,
            status=o.status,
            priority=o.priority,
            planned_quantity=o.planned_quantity,
            planned_start=ensure_utc(o.planned_start),
            planned_end=ensure_utc(o.planned_end),
            estimated_hours=round2(order_hours(o, o.bom)),
        )
        for o in orders
    ]
    return WorkCenterSchedule(
        work_center_id=wc.id,
        start_date=start,
        end_date=end,
        total_orders=len(entries),
        total_hours=round2(sum(e.estimated_hours for e in entries)),
        entries=entries,
    )


def get_stats(db: Session) -> WorkCenterStats:
    centers = db.query(WorkCenter).filter(WorkCenter.is_active.is_(True)).all()
    total = len(centers)
    available = sum(1 for c in centers if c.available)

    def _avg(values: list[float]) -> float:
        return round2(sum(values) / len(values)) if values else 0.0

    return WorkCenterStats(
        total=total,
        available=available,
        unavailable=total - available,
        avg_capacity_hours=_avg([c.capacity_hours_per_day for c in centers]),
        avg_efficiency_pct=_avg([c.efficiency_pct for c in centers]),
        avg_hourly_cost=_avg([c.hourly_cost for c in centers]),
        by_kind=dict(Counter(c.kind for c in centers)),
    )
