"""initial inventory schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from stockroom.models.stock import STOCK_BALANCES_VIEW_SQL


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUM_TYPES = {
    "app_role": ("admin", "manager", "staff"),
    "stock_status": ("draft", "waiting", "ready", "done", "canceled"),
    "movement_type": ("receipt", "delivery", "transfer", "adjustment"),
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; the tables only reference them.
    return postgresql.ENUM(*ENUM_TYPES[name], name=name, create_type=False)


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUM_TYPES.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "identities",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("raw_user_meta_data", sa.JSON(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ux_identities_email_lower", "identities", [sa.text("lower(email)")], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["id"], ["identities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("role", _enum("app_role"), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["identities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
    op.create_index(op.f("ix_user_roles_user_id"), "user_roles", ["user_id"], unique=False)

    op.create_table(
        "warehouses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=30), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("sku", sa.String(length=100), nullable=False),
        sa.Column("category_id", sa.String(length=36), nullable=True),
        sa.Column("unit_of_measure", sa.String(length=30), server_default="unit", nullable=False),
        sa.Column("reorder_level", sa.Numeric(10, 2), server_default="0", nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sku"),
    )
    op.create_index(op.f("ix_products_category_id"), "products", ["category_id"], unique=False)
    op.create_index("ix_products_active_created_at", "products", ["is_active", "created_at"], unique=False)

    for table, counterparty, completed in (
        ("receipts", "supplier_name", "received_date"),
        ("deliveries", "customer_name", "delivered_date"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("reference", sa.String(length=64), nullable=False),
            sa.Column("warehouse_id", sa.String(length=36), nullable=False),
            sa.Column(counterparty, sa.String(length=255), nullable=False),
            sa.Column("status", _enum("stock_status"), server_default="draft", nullable=False),
            sa.Column("scheduled_date", sa.Date(), nullable=True),
            sa.Column(completed, sa.DateTime(timezone=True), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_by", sa.String(length=36), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["created_by"], ["identities.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("reference"),
        )
        op.create_index(op.f(f"ix_{table}_warehouse_id"), table, ["warehouse_id"], unique=False)
        op.create_index(op.f(f"ix_{table}_created_by"), table, ["created_by"], unique=False)
        op.create_index(f"ix_{table}_status_created_at", table, ["status", "created_at"], unique=False)

    for table, parent_table, parent_key, fulfilled in (
        ("receipt_lines", "receipts", "receipt_id", "received_quantity"),
        ("delivery_lines", "deliveries", "delivery_id", "delivered_quantity"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column(parent_key, sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
            sa.Column(fulfilled, sa.Numeric(10, 2), server_default="0", nullable=True),
            *_timestamps(updated=False),
            sa.ForeignKeyConstraint([parent_key], [f"{parent_table}.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
            sa.CheckConstraint("quantity > 0", name=f"ck_{table}_quantity_positive"),
        )
        op.create_index(op.f(f"ix_{table}_{parent_key}"), table, [parent_key], unique=False)
        op.create_index(op.f(f"ix_{table}_product_id"), table, ["product_id"], unique=False)

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("product_id", sa.String(length=36), nullable=False),
        sa.Column("warehouse_id", sa.String(length=36), nullable=False),
        sa.Column("movement_type", _enum("movement_type"), nullable=False),
        sa.Column("reference_id", sa.String(length=36), nullable=True),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
        sa.Column("balance_after", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["created_by"], ["identities.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stock_movements_product_id"), "stock_movements", ["product_id"], unique=False)
    op.create_index(op.f("ix_stock_movements_warehouse_id"), "stock_movements", ["warehouse_id"], unique=False)
    op.create_index(op.f("ix_stock_movements_reference_id"), "stock_movements", ["reference_id"], unique=False)
    op.create_index(
        "ix_stock_movements_product_warehouse_created_at",
        "stock_movements",
        ["product_id", "warehouse_id", "created_at"],
        unique=False,
    )

    op.execute(STOCK_BALANCES_VIEW_SQL)

    warehouses = sa.table(
        "warehouses",
        sa.column("id", sa.String),
        sa.column("name", sa.String),
        sa.column("code", sa.String),
        sa.column("address", sa.Text),
    )
    op.bulk_insert(
        warehouses,
        [
            {
                "id": str(uuid.uuid4()),
                "name": "Main Warehouse",
                "code": "WH-MAIN",
                "address": "123 Warehouse Street",
            }
        ],
    )

    categories = sa.table(
        "categories",
        sa.column("id", sa.String),
        sa.column("name", sa.String),
        sa.column("description", sa.Text),
    )
    op.bulk_insert(
        categories,
        [
            {"id": str(uuid.uuid4()), "name": "Raw Materials", "description": "Basic materials for production"},
            {"id": str(uuid.uuid4()), "name": "Finished Goods", "description": "Ready to ship products"},
            {"id": str(uuid.uuid4()), "name": "Components", "description": "Parts and components"},
        ],
    )


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS stock_balances")
    op.drop_table("stock_movements")
    op.drop_table("delivery_lines")
    op.drop_table("receipt_lines")
    op.drop_table("deliveries")
    op.drop_table("receipts")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("warehouses")
    op.drop_table("user_roles")
    op.drop_table("profiles")
    op.drop_index("ux_identities_email_lower", table_name="identities")
    op.drop_table("identities")

    bind = op.get_bind()
    for name, values in reversed(list(ENUM_TYPES.items())):
        sa.Enum(*values, name=name).drop(bind, checkfirst=True)
