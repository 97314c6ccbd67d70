from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, func, select
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.core.id_utils import generate_id, utcnow
from stockroom.db.base import Base
from stockroom.models.enums import MovementType, db_enum


class StockMovement(Base):
    """
    Append-only ledger. One row per stock change: positive quantity = stock in,
    negative = stock out. Rows are never updated or deleted.
    """
    __tablename__ = "stock_movements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    product_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    warehouse_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    movement_type: Mapped[MovementType] = mapped_column(
        db_enum(MovementType, "movement_type"), nullable=False
    )
    reference_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("identities.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index(
            "ix_stock_movements_product_warehouse_created_at",
            "product_id",
            "warehouse_id",
            "created_at",
        ),
    )


# Live equivalent of the stock_balances SQL view; recomputed on every read.
stock_balances = (
    select(
        StockMovement.product_id.label("product_id"),
        StockMovement.warehouse_id.label("warehouse_id"),
        func.sum(StockMovement.quantity).label("quantity"),
    )
    .group_by(StockMovement.product_id, StockMovement.warehouse_id)
    .subquery("stock_balances")
)

STOCK_BALANCES_VIEW_SQL = """
CREATE VIEW stock_balances AS
SELECT
  product_id,
  warehouse_id,
  SUM(quantity) AS quantity
FROM stock_movements
GROUP BY product_id, warehouse_id
"""
