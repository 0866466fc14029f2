"""HTTP routes: auth, health and the prd/pro route tables."""

from fastapi import APIRouter

from app.api import auth, health
from app.api.prd import bom, production_orders, quality_control, work_centers
from app.api.pro import projects, tasks

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(bom.router, prefix="/api/prd/bom", tags=["prd: bom"])
router.include_router(
    production_orders.router,
    prefix="/api/prd/production-orders",
    tags=["prd: production orders"],
)
router.include_router(
    quality_control.router,
    prefix="/api/prd/quality-control",
    tags=["prd: quality control"],
)
router.include_router(
    work_centers.router, prefix="/api/prd/work-centers", tags=["prd: work centers"]
)
router.include_router(projects.router, prefix="/api/pro/projects", tags=["pro: projects"])
router.include_router(tasks.router, prefix="/api/pro/tasks", tags=["pro: tasks"])
