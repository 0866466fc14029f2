"""Create production tables: work centers, BOMs, production orders, quality control.

Revision ID: 20251001100000
Revises: 20251001000000
Create Date: 2025-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20251001100000"
down_revision: Union[str, None] = "20251001000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def _is_active() -> sa.Column:
    return sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true())


def upgrade() -> None:
    op.create_table(
        "prd_work_centers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("kind", sa.String(length=32), nullable=False, server_default="manual"),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("capacity_hours_per_day", sa.Float(), nullable=False, server_default="8"),
        sa.Column("operator_capacity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("hourly_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("setup_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("efficiency_pct", sa.Float(), nullable=False, server_default="85"),
        sa.Column("availability_pct", sa.Float(), nullable=False, server_default="90"),
        sa.Column("working_days", JSON_TYPE, nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _is_active(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_prd_work_centers_code"), "prd_work_centers", ["code"])
    op.create_index(op.f("ix_prd_work_centers_is_active"), "prd_work_centers", ["is_active"])

    op.create_table(
        "prd_boms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_code", sa.String(length=50), nullable=False),
        sa.Column("version", sa.String(length=20), nullable=False, server_default="1.0"),
        sa.Column("kind", sa.String(length=32), nullable=False, server_default="production"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("effective_date", sa.Date(), nullable=True),
        sa.Column("production_hours", sa.Float(), nullable=False, server_default="1"),
        sa.Column("setup_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("yield_pct", sa.Float(), nullable=False, server_default="100"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _is_active(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_prd_boms_product_code"), "prd_boms", ["product_code"])
    op.create_index(op.f("ix_prd_boms_is_active"), "prd_boms", ["is_active"])

    op.create_table(
        "prd_bom_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("component_code", sa.String(length=50), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False, server_default="UN"),
        sa.Column("item_type", sa.String(length=32), nullable=False, server_default="component"),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scrap_pct", sa.Float(), nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Float(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["bom_id"], ["prd_boms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_prd_bom_items_bom_id"), "prd_bom_items", ["bom_id"])
    op.create_index(op.f("ix_prd_bom_items_component_code"), "prd_bom_items", ["component_code"])

    op.create_table(
        "prd_bom_operations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("work_center_id", sa.Integer(), nullable=True),
        sa.Column("setup_minutes", sa.Float(), nullable=False, server_default="0"),
        sa.Column("run_minutes", sa.Float(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["bom_id"], ["prd_boms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["work_center_id"], ["prd_work_centers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_prd_bom_operations_bom_id"), "prd_bom_operations", ["bom_id"])

    op.create_table(
        "prd_production_orders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_number", sa.String(length=20), nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("work_center_id", sa.Integer(), nullable=True),
        sa.Column("product_code", sa.String(length=50), nullable=False),
        sa.Column("planned_quantity", sa.Float(), nullable=False),
        sa.Column("produced_quantity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="planned"),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="normal"),
        sa.Column("planned_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("planned_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("material_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        _is_active(),
        sa.ForeignKeyConstraint(["bom_id"], ["prd_boms.id"]),
        sa.ForeignKeyConstraint(["work_center_id"], ["prd_work_centers.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["auth_users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("order_number", "bom_id", "work_center_id", "product_code", "status", "is_active"):
        op.create_index(
            op.f(f"ix_prd_production_orders_{column}"), "prd_production_orders", [column]
        )

    op.create_table(
        "prd_material_consumptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("production_order_id", sa.Integer(), nullable=False),
        sa.Column("component_code", sa.String(length=50), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column(
            "consumed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("recorded_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["production_order_id"], ["prd_production_orders.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["recorded_by"], ["auth_users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_prd_material_consumptions_production_order_id"),
        "prd_material_consumptions",
        ["production_order_id"],
    )

    op.create_table(
        "prd_quality_controls",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_code", sa.String(length=50), nullable=False),
        sa.Column("production_order_id", sa.Integer(), nullable=True),
        sa.Column("lot", sa.String(length=50), nullable=True),
        sa.Column("inspection_type", sa.String(length=32), nullable=False, server_default="final"),
        sa.Column("inspected_quantity", sa.Float(), nullable=False, server_default="1"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responsible_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("result", sa.String(length=32), nullable=True),
        sa.Column("inspected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("inspector_id", sa.Integer(), nullable=True),
        sa.Column("inspection_notes", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _is_active(),
        sa.ForeignKeyConstraint(["production_order_id"], ["prd_production_orders.id"]),
        sa.ForeignKeyConstraint(["responsible_id"], ["auth_users.id"]),
        sa.ForeignKeyConstraint(["inspector_id"], ["auth_users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("product_code", "production_order_id", "status", "result", "is_active"):
        op.create_index(
            op.f(f"ix_prd_quality_controls_{column}"), "prd_quality_controls", [column]
        )

    op.create_table(
        "prd_inspection_results",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("quality_control_id", sa.Integer(), nullable=False),
        sa.Column("parameter_name", sa.String(length=100), nullable=False),
        sa.Column("measured_value", sa.String(length=100), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["quality_control_id"], ["prd_quality_controls.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_prd_inspection_results_quality_control_id"),
        "prd_inspection_results",
        ["quality_control_id"],
    )

    op.create_table(
        "prd_non_conformities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("quality_control_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("category", sa.String(length=32), nullable=False, server_default="process"),
        sa.Column("affected_quantity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="open"),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["quality_control_id"], ["prd_quality_controls.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_prd_non_conformities_quality_control_id"),
        "prd_non_conformities",
        ["quality_control_id"],
    )


def downgrade() -> None:
    # Dropping a table drops its indexes with it.
    op.drop_table("prd_non_conformities")
    op.drop_table("prd_inspection_results")
    op.drop_table("prd_quality_controls")
    op.drop_table("prd_material_consumptions")
    op.drop_table("prd_production_orders")
    op.drop_table("prd_bom_operations")
    op.drop_table("prd_bom_items")
    op.drop_table("prd_boms")
    op.drop_table("prd_work_centers")
