"""Bill of materials CRUD, multi-level explosion and cost calculation."""

import logging
from collections import defaultdict

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models import Bom, BomItem, BomOperation, ProductionOrder, WorkCenter
from app.models.production_order import ACTIVE_ORDER_STATUSES
from app.schemas.bom import (
    BomCost,
    BomCreate,
    BomExplosion,
    BomItemIn,
    BomOperationIn,
    BomOut,
    BomUpdate,
    ExplodedItem,
    LabourCostLine,
    MaterialCostLine,
)
from app.schemas.common import Page, PageParams
from app.services.crud import apply_updates, get_or_404, paginate, round2, soft_delete

logger = logging.getLogger(__name__)

MAX_EXPLOSION_LEVELS = 99
# Share of material + labour added as overhead in cost calculations.
OVERHEAD_RATE = 0.15


def list_boms(
    db: Session,
    params: PageParams,
    product_code: str | None = None,
    kind: str | None = None,
) -> Page[BomOut]:
    query = db.query(Bom).filter(Bom.is_active.is_(True))
    if product_code:
        query = query.filter(Bom.product_code == product_code.strip().upper())
    if kind:
        query = query.filter(Bom.kind == kind)
    return paginate(query.order_by(Bom.product_code, Bom.version), params, BomOut)


def get_bom(db: Session, bom_id: int) -> Bom:
    return get_or_404(db, Bom, bom_id, "BOM")


def _ensure_version_free(
    db: Session, product_code: str, version: str, exclude_id: int | None = None
) -> None:
    query = db.query(Bom.id).filter(
        Bom.product_code == product_code,
        Bom.version == version,
        Bom.is_active.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(Bom.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(
            "A BOM with this version already exists for the product.",
            {"product_code": product_code, "version": version},
        )


def _ensure_work_centers_exist(db: Session, operations: list[BomOperationIn]) -> None:
    ids = {op.work_center_id for op in operations if op.work_center_id is not None}
    if not ids:
        return
    found = {
        wc_id
        for (wc_id,) in db.query(WorkCenter.id)
        .filter(WorkCenter.id.in_(ids), WorkCenter.is_active.is_(True))
        .all()
    }
    missing = sorted(ids - found)
    if missing:
        raise NotFoundError("Work center not found.", {"work_center_ids": missing})


def _build_items(items: list[BomItemIn]) -> list[BomItem]:
    return [
        BomItem(
            component_code=item.component_code,
            quantity=item.quantity,
            unit=item.unit,
            item_type=item.item_type,
            required=item.required,
            position=item.position if item.position is not None else index + 1,
            scrap_pct=item.scrap_pct,
            unit_cost=item.unit_cost,
        )
        for index, item in enumerate(items)
    ]


def _build_operations(operations: list[BomOperationIn]) -> list[BomOperation]:
    return [BomOperation(**op.model_dump()) for op in operations]


def create_bom(db: Session, body: BomCreate) -> Bom:
    _ensure_version_free(db, body.product_code, body.version)
    _ensure_work_centers_exist(db, body.operations)
    bom = Bom(**body.model_dump(exclude={"items", "operations"}))
    bom.items = _build_items(body.items)
    bom.operations = _build_operations(body.operations)
    db.add(bom)
    db.commit()
    db.refresh(bom)
    return bom


def update_bom(db: Session, bom_id: int, body: BomUpdate) -> Bom:
    bom = get_bom(db, bom_id)
    changes = body.model_dump(exclude_unset=True, exclude={"items", "operations"})
    if changes.get("version") and changes["version"] != bom.version:
        _ensure_version_free(db, bom.product_code, changes["version"], exclude_id=bom.id)
    apply_updates(bom, changes)
    if body.items is not None:
        bom.items = _build_items(body.items)
    if body.operations is not None:
        _ensure_work_centers_exist(db, body.operations)
        bom.operations = _build_operations(body.operations)
    db.commit()
    db.refresh(bom)
    return bom


def delete_bom(db: Session, bom_id: int) -> None:
    bom = get_bom(db, bom_id)
    active = (
        db.query(ProductionOrder)
        .filter(
            ProductionOrder.bom_id == bom.id,
            ProductionOrder.is_active.is_(True),
            ProductionOrder.status.in_(ACTIVE_ORDER_STATUSES),
        )
        .count()
    )
    if active:
        raise ConflictError(
            "BOM is referenced by active production orders.", {"active_orders": active}
        )
    soft_delete(db, bom)
    logger.info("BOM deactivated", extra={"bom_id": bom.id, "product_code": bom.product_code})


def _sub_bom(db: Session, product_code: str, cache: dict[str, Bom | None]) -> Bom | None:
    """Newest active BOM producing product_code, if the component is itself manufactured."""
    if product_code not in cache:
        cache[product_code] = (
            db.query(Bom)
            .filter(Bom.product_code == product_code, Bom.is_active.is_(True))
            .order_by(Bom.id.desc())
            .first()
        )
    return cache[product_code]


def _explode(
    db: Session,
    bom: Bom,
    parent_total: float,
    level: int,
    max_levels: int,
    ancestry: frozenset[str],
    cache: dict[str, Bom | None],
    flat: dict[str, float],
) -> list[ExplodedItem]:
    nodes: list[ExplodedItem] = []
    for item in bom.items:
        total = item.quantity * parent_total
        node = ExplodedItem(
            level=level,
            component_code=item.component_code,
            quantity=item.quantity,
            total_quantity=round(total, 6),
            unit=item.unit,
            item_type=item.item_type,
        )
        sub = _sub_bom(db, item.component_code, cache)
        if sub is not None:
            node.sub_bom_id = sub.id
            if item.component_code in ancestry:
                # component re-enters its own ancestry; expanding again would never end
                node.cycle = True
            elif level < max_levels:
                node.children = _explode(
                    db,
                    sub,
                    total,
                    level + 1,
                    max_levels,
                    ancestry | {item.component_code},
                    cache,
                    flat,
                )
        if not node.children:
            flat[item.component_code] += total
        nodes.append(node)
    return nodes


def explode_bom(db: Session, bom_id: int, levels: int = MAX_EXPLOSION_LEVELS) -> BomExplosion:
    """
    Expand a BOM into its full component tree.

    Components that are themselves produced from an active BOM expand into
    that BOM's items, with quantities multiplied down the tree, up to `levels`
    deep. `flat` totals every leaf component.
    """
    bom = get_bom(db, bom_id)
    flat: dict[str, float] = defaultdict(float)
    items = _explode(
        db,
        bom,
        1.0,
        1,
        levels,
        frozenset({bom.product_code}),
        {bom.product_code: bom},
        flat,
    )
    return BomExplosion(
        bom_id=bom.id,
        product_code=bom.product_code,
        version=bom.version,
        levels=levels,
        items=items,
        flat={code: round(qty, 6) for code, qty in sorted(flat.items())},
    )


def calculate_cost(db: Session, bom_id: int, quantity: float = 1.0) -> BomCost:
    """Material (with scrap), labour per operation and overhead for `quantity` units."""
    bom = get_bom(db, bom_id)

    materials: list[MaterialCostLine] = []
    for item in bom.items:
        needed = item.quantity * (1 + item.scrap_pct / 100) * quantity
        materials.append(
            MaterialCostLine(
                component_code=item.component_code,
                quantity=round(needed, 6),
                scrap_pct=item.scrap_pct,
                unit_cost=item.unit_cost,
                total_cost=round2(needed * item.unit_cost),
            )
        )

    operations: list[LabourCostLine] = []
    for op in bom.operations:
        hourly = op.work_center.hourly_cost if op.work_center is not None else 0.0
        setup_cost = op.setup_minutes / 60 * hourly
        run_cost = op.run_minutes / 60 * hourly * quantity
        operations.append(
            LabourCostLine(
                sequence=op.sequence,
                description=op.description,
                work_center_id=op.work_center_id,
                hourly_cost=hourly,
                setup_cost=round2(setup_cost),
                run_cost=round2(run_cost),
                total_cost=round2(setup_cost + run_cost),
            )
        )

    material_cost = sum(m.total_cost for m in materials)
    labour_cost = sum(o.total_cost for o in operations)
    overhead = (material_cost + labour_cost) * OVERHEAD_RATE
    total = material_cost + labour_cost + overhead
    return BomCost(
        bom_id=bom.id,
        quantity=quantity,
        material_cost=round2(material_cost),
        labour_cost=round2(labour_cost),
        overhead_cost=round2(overhead),
        total_cost=round2(total),
        unit_cost=round2(total / quantity),
        materials=materials,
        operations=operations,
    )
