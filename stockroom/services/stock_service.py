import json
import logging
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from stockroom.core.id_utils import generate_id
from stockroom.core.quantity import ZERO_QUANTITY, to_quantity
from stockroom.db.gateway import DataGateway
from stockroom.models.enums import MovementType
from stockroom.models.stock import StockMovement, stock_balances

logger = logging.getLogger("stockroom.api")


class InsufficientStockError(ValueError):
    def __init__(self, product_id: str, warehouse_id: str, available: Decimal, requested: Decimal):
        super().__init__(
            f"Insufficient stock for product {product_id} in warehouse {warehouse_id}: "
            f"available {available}, requested {requested}"
        )
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.available = available
        self.requested = requested


def get_stock_balance(db: Session, product_id: str, warehouse_id: str) -> Decimal:
    q = select(func.coalesce(func.sum(StockMovement.quantity), 0)).where(
        StockMovement.product_id == product_id,
        StockMovement.warehouse_id == warehouse_id,
    )
    return to_quantity(db.execute(q).scalar_one())


def stock_balances_statement(
    *, product_id: str | None = None, warehouse_id: str | None = None
) -> Select:
    stmt = select(
        stock_balances.c.product_id,
        stock_balances.c.warehouse_id,
        stock_balances.c.quantity,
    )
    if product_id:
        stmt = stmt.where(stock_balances.c.product_id == product_id)
    if warehouse_id:
        stmt = stmt.where(stock_balances.c.warehouse_id == warehouse_id)
    return stmt.order_by(stock_balances.c.product_id, stock_balances.c.warehouse_id)


def list_stock_balances(
    gateway: DataGateway,
    *,
    product_id: str | None = None,
    warehouse_id: str | None = None,
) -> list:
    return gateway.select_view(
        "stock_balances",
        stock_balances_statement(product_id=product_id, warehouse_id=warehouse_id),
    )


def ensure_available(db: Session, *, product_id: str, warehouse_id: str, quantity: Decimal) -> None:
    available = get_stock_balance(db, product_id, warehouse_id)
    requested = to_quantity(quantity)
    if available < requested:
        raise InsufficientStockError(product_id, warehouse_id, available, requested)


def record_movement(
    gateway: DataGateway,
    *,
    product_id: str,
    warehouse_id: str,
    movement_type: MovementType,
    quantity: Decimal | int | float | str,
    reference_id: str | None = None,
    notes: str | None = None,
) -> StockMovement:
    signed_quantity = to_quantity(quantity)
    if signed_quantity == ZERO_QUANTITY:
        raise ValueError("Movement quantity cannot be zero")

    balance_after = get_stock_balance(gateway.db, product_id, warehouse_id) + signed_quantity
    movement = gateway.insert(
        StockMovement,
        {
            "product_id": product_id,
            "warehouse_id": warehouse_id,
            "movement_type": movement_type,
            "reference_id": reference_id,
            "quantity": signed_quantity,
            "balance_after": balance_after,
            "notes": notes,
            "created_by": gateway.caller.user_id,
        },
    )
    logger.info(
        json.dumps(
            {
                "event": "stock_movement_recorded",
                "movement_id": movement.id,
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "movement_type": movement_type.value,
                "quantity": str(signed_quantity),
                "balance_after": str(balance_after),
            }
        )
    )
    return movement


def transfer_stock(
    gateway: DataGateway,
    *,
    product_id: str,
    from_warehouse_id: str,
    to_warehouse_id: str,
    quantity: Decimal,
    notes: str | None = None,
    allow_negative: bool = False,
) -> tuple[StockMovement, StockMovement]:
    if from_warehouse_id == to_warehouse_id:
        raise ValueError("Source and destination warehouses must differ")
    amount = to_quantity(quantity)
    if amount <= ZERO_QUANTITY:
        raise ValueError("Transfer quantity must be positive")
    if not allow_negative:
        ensure_available(gateway.db, product_id=product_id, warehouse_id=from_warehouse_id, quantity=amount)

    transfer_id = generate_id()
    outbound = record_movement(
        gateway,
        product_id=product_id,
        warehouse_id=from_warehouse_id,
        movement_type=MovementType.TRANSFER,
        quantity=-amount,
        reference_id=transfer_id,
        notes=notes,
    )
    inbound = record_movement(
        gateway,
        product_id=product_id,
        warehouse_id=to_warehouse_id,
        movement_type=MovementType.TRANSFER,
        quantity=amount,
        reference_id=transfer_id,
        notes=notes,
    )
    return outbound, inbound
