from decimal import Decimal

from sqlalchemy import func, select

from stockroom.core.config import settings
from stockroom.core.quantity import ZERO_QUANTITY, to_quantity
from stockroom.db.gateway import DataGateway
from stockroom.models.catalog import Product
from stockroom.models.documents import Delivery, Receipt
from stockroom.models.enums import PENDING_STATUSES
from stockroom.models.stock import StockMovement


def _on_hand_by_product(gateway: DataGateway, product_ids: list[str]) -> dict[str, Decimal]:
    if not product_ids:
        return {}
    rows = gateway.select_view(
        "stock_balances",
        select(
            StockMovement.product_id,
            func.coalesce(func.sum(StockMovement.quantity), 0),
        )
        .where(StockMovement.product_id.in_(product_ids))
        .group_by(StockMovement.product_id),
    )
    return {product_id: to_quantity(quantity) for product_id, quantity in rows}


def count_low_stock_products(gateway: DataGateway, products: list[Product]) -> int:
    on_hand = _on_hand_by_product(gateway, [product.id for product in products])
    default_threshold = to_quantity(settings.low_stock_default_threshold)
    low = 0
    for product in products:
        reorder_level = to_quantity(product.reorder_level)
        threshold = reorder_level if reorder_level > ZERO_QUANTITY else default_threshold
        if on_hand.get(product.id, ZERO_QUANTITY) <= threshold:
            low += 1
    return low


def get_summary(gateway: DataGateway) -> dict:
    active_products = gateway.select(Product, where={"is_active": True})
    pending = list(PENDING_STATUSES)
    return {
        "total_products": len(active_products),
        "low_stock_products": count_low_stock_products(gateway, active_products),
        "pending_receipts": gateway.count(Receipt, where={"status": pending}),
        "pending_deliveries": gateway.count(Delivery, where={"status": pending}),
    }
