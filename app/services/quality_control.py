"""Quality control records, inspections and quality reports."""

import logging
from collections import Counter, defaultdict
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.core.timeutils import utcnow
from app.models import (
    InspectionResult,
    NonConformity,
    ProductionOrder,
    QualityControl,
)
from app.schemas.auth import CurrentUser
from app.schemas.common import Page, PageParams
from app.schemas.quality_control import (
    InspectRequest,
    ProductQuality,
    QualityControlCreate,
    QualityControlOut,
    QualityControlUpdate,
    QualityReport,
)
from app.services.crud import apply_updates, get_or_404, paginate, round2, soft_delete

logger = logging.getLogger(__name__)


def list_inspections(
    db: Session,
    params: PageParams,
    status: str | None = None,
    result: str | None = None,
    inspection_type: str | None = None,
    product_code: str | None = None,
) -> Page[QualityControlOut]:
    query = db.query(QualityControl).filter(QualityControl.is_active.is_(True))
    if status:
        query = query.filter(QualityControl.status == status)
    if result:
        query = query.filter(QualityControl.result == result)
    if inspection_type:
        query = query.filter(QualityControl.inspection_type == inspection_type)
    if product_code:
        query = query.filter(QualityControl.product_code == product_code.strip().upper())
    return paginate(query.order_by(QualityControl.id.desc()), params, QualityControlOut)


def get_inspection(db: Session, qc_id: int) -> QualityControl:
    return get_or_404(db, QualityControl, qc_id, "Quality control record")


def create_inspection(db: Session, body: QualityControlCreate) -> QualityControl:
    if body.production_order_id is not None:
        order = (
            db.query(ProductionOrder)
            .filter(
                ProductionOrder.id == body.production_order_id,
                ProductionOrder.is_active.is_(True),
            )
            .first()
        )
        if order is None:
            raise NotFoundError(
                "Production order not found.",
                {"production_order_id": body.production_order_id},
            )
    qc = QualityControl(**body.model_dump(), status="pending")
    db.add(qc)
    db.commit()
    db.refresh(qc)
    return qc


def _ensure_pending(qc: QualityControl, action: str) -> None:
    if qc.status != "pending":
        raise ConflictError(
            f"Cannot {action} a record that was already inspected.",
            {"status": qc.status, "result": qc.result},
        )


def update_inspection(db: Session, qc_id: int, body: QualityControlUpdate) -> QualityControl:
    qc = get_inspection(db, qc_id)
    _ensure_pending(qc, "update")
    apply_updates(qc, body.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(qc)
    return qc


def delete_inspection(db: Session, qc_id: int) -> None:
    qc = get_inspection(db, qc_id)
    _ensure_pending(qc, "delete")
    soft_delete(db, qc)


def inspect(db: Session, qc_id: int, body: InspectRequest, actor: CurrentUser) -> QualityControl:
    """
    Record inspection results on a pending record.

    A rejected outcome opens a high-severity process non-conformity covering
    the whole inspected quantity.
    """
    qc = get_inspection(db, qc_id)
    _ensure_pending(qc, "inspect")
    for r in body.results:
        qc.results.append(InspectionResult(**r.model_dump()))
    qc.status = "inspected"
    qc.result = body.overall_result
    qc.inspected_at = utcnow()
    qc.inspector_id = actor.id
    qc.inspection_notes = body.notes

    if body.overall_result == "rejected":
        failed = [r.parameter_name for r in body.results if not r.approved]
        description = "Inspection rejected"
        if failed:
            description += f": {', '.join(failed)}"
        qc.non_conformities.append(
            NonConformity(
                description=description,
                severity="high",
                category="process",
                affected_quantity=qc.inspected_quantity,
                status="open",
            )
        )
    db.commit()
    db.refresh(qc)
    logger.info(
        "Inspection recorded",
        extra={"qc_id": qc.id, "result": qc.result, "user_id": actor.id},
    )
    return qc


def get_reports(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
    product_code: str | None = None,
    inspection_type: str | None = None,
) -> QualityReport:
    query = db.query(QualityControl).filter(QualityControl.is_active.is_(True))
    if start_date:
        query = query.filter(
            QualityControl.created_at >= datetime.combine(start_date, time.min, tzinfo=UTC)
        )
    if end_date:
        query = query.filter(
            QualityControl.created_at
            < datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=UTC)
        )
    if product_code:
        query = query.filter(QualityControl.product_code == product_code.strip().upper())
    if inspection_type:
        query = query.filter(QualityControl.inspection_type == inspection_type)
    records = query.all()

    results = Counter(r.result for r in records if r.status == "inspected")
    inspected = sum(results.values())

    per_product: dict[str, list[QualityControl]] = defaultdict(list)
    for r in records:
        per_product[r.product_code].append(r)
    by_product = []
    for code, group in sorted(per_product.items()):
        done = [r for r in group if r.status == "inspected"]
        approved = sum(1 for r in done if r.result == "approved")
        by_product.append(
            ProductQuality(
                product_code=code,
                inspections=len(group),
                approved=approved,
                rejected=sum(1 for r in done if r.result == "rejected"),
                approval_rate=round2(approved / len(done) * 100) if done else 0.0,
            )
        )

    categories = Counter(nc.category for r in records for nc in r.non_conformities)
    return QualityReport(
        total_inspections=len(records),
        pending=sum(1 for r in records if r.status == "pending"),
        approved=results.get("approved", 0),
        rejected=results.get("rejected", 0),
        conditional=results.get("conditional", 0),
        approval_rate=round2(results.get("approved", 0) / inspected * 100) if inspected else 0.0,
        by_product=by_product,
        by_inspection_type=dict(Counter(r.inspection_type for r in records)),
        non_conformities_by_category=dict(categories),
    )
