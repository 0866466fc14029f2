"""Shared query helpers for resource services: lookup, pagination, soft delete."""

import math
from typing import Any, TypeVar

from sqlalchemy.orm import Query, Session

from app.core.exceptions import NotFoundError
from app.schemas.common import Page, PageParams, Pagination

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: type[ModelT], obj_id: int, label: str) -> ModelT:
    """Return the active row with this id or raise NotFoundError."""
    obj = (
        db.query(model)
        .filter(model.id == obj_id, model.is_active.is_(True))
        .first()
    )
    if obj is None:
        raise NotFoundError(f"{label} not found.", {"id": obj_id})
    return obj


def paginate(query: Query, params: PageParams, schema: Any) -> Page:
    """Run query for one page and wrap the rows as {data, pagination}."""
    total = query.order_by(None).count()
    rows = query.offset(params.offset).limit(params.limit).all()
    return Page(
        data=[schema.model_validate(r) for r in rows],
        pagination=Pagination(
            page=params.page,
            limit=params.limit,
            total=total,
            pages=math.ceil(total / params.limit) if total else 0,
        ),
    )


def apply_updates(obj: Any, changes: dict[str, Any]) -> None:
    """Copy already-validated fields onto an ORM object."""
    for field, value in changes.items():
        setattr(obj, field, value)


def soft_delete(db: Session, obj: Any) -> None:
    obj.is_active = False
    db.commit()


def next_sequence_code(db: Session, column: Any, prefix: str, width: int) -> str:
    """
    Next code like OP000001 / PRJ0001: one above the highest numeric suffix in use.

    Inactive rows count too, so a soft-deleted code is never reissued.
    """
    highest = 0
    for (code,) in db.query(column).filter(column.like(f"{prefix}%")).all():
        suffix = code[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:0{width}d}"


def round2(value: float | None) -> float:
    return round(value or 0.0, 2)
