"""BOM route table: CRUD, explosion and cost calculation."""

from typing import Annotated

from fastapi import Query, Response, status

from app.api.deps import DbDep, PageDep
from app.api.routing import Route, build_router
from app.core.permissions import Permission
from app.schemas.bom import (
    BomCost,
    BomCreate,
    BomExplosion,
    BomKind,
    BomOut,
    BomUpdate,
    CostCalcRequest,
)
from app.schemas.common import Page
from app.services import bom as bom_service

RESOURCE = "bom"


def list_boms(
    db: DbDep,
    page: PageDep,
    product_code: str | None = None,
    kind: BomKind | None = None,
) -> Page[BomOut]:
    """List active BOMs, optionally filtered by product code and kind."""
    return bom_service.list_boms(db, page, product_code=product_code, kind=kind)


def get_bom(bom_id: int, db: DbDep) -> BomOut:
    return bom_service.get_bom(db, bom_id)


def create_bom(body: BomCreate, db: DbDep) -> BomOut:
    """Create a BOM with its items and operations. Version is unique per product."""
    return bom_service.create_bom(db, body)


def update_bom(bom_id: int, body: BomUpdate, db: DbDep) -> BomOut:
    return bom_service.update_bom(db, bom_id, body)


def delete_bom(bom_id: int, db: DbDep) -> Response:
    bom_service.delete_bom(db, bom_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def explode_bom(
    bom_id: int,
    db: DbDep,
    levels: Annotated[int, Query(ge=1, le=bom_service.MAX_EXPLOSION_LEVELS)] = (
        bom_service.MAX_EXPLOSION_LEVELS
    ),
) -> BomExplosion:
    """Multi-level explosion of the BOM into its component tree."""
    return bom_service.explode_bom(db, bom_id, levels=levels)


def calculate_cost(bom_id: int, db: DbDep, body: CostCalcRequest | None = None) -> BomCost:
    """Material, labour and overhead cost for the requested quantity (default 1)."""
    quantity = body.quantity if body is not None else 1.0
    return bom_service.calculate_cost(db, bom_id, quantity=quantity)


ROUTES = (
    Route("GET", "", Permission(RESOURCE, "read"), list_boms),
    Route("GET", "/{bom_id}", Permission(RESOURCE, "read"), get_bom),
    Route("POST", "", Permission(RESOURCE, "create"), create_bom, status_code=201),
    Route("PUT", "/{bom_id}", Permission(RESOURCE, "update"), update_bom),
    Route("DELETE", "/{bom_id}", Permission(RESOURCE, "delete"), delete_bom, status_code=204),
    Route("GET", "/{bom_id}/explode", Permission(RESOURCE, "read"), explode_bom),
    Route("POST", "/{bom_id}/cost-calc", Permission(RESOURCE, "read"), calculate_cost),
)

router = build_router(ROUTES)
