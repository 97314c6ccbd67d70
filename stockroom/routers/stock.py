from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from stockroom.core.api_docs import error_responses
from stockroom.core.config import settings
from stockroom.core.quantity import ZERO_QUANTITY
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.catalog import Product
from stockroom.models.enums import MovementType
from stockroom.models.stock import StockMovement
from stockroom.models.warehouse import Warehouse
from stockroom.schemas.stock import (
    StockAdjustmentIn,
    StockBalanceListOut,
    StockBalanceOut,
    StockMovementListOut,
    StockMovementOut,
    StockTransferIn,
    StockTransferOut,
)
from stockroom.services.stock_service import (
    ensure_available,
    list_stock_balances,
    record_movement,
    transfer_stock,
)

router = APIRouter(prefix="/stock", tags=["stock"])


def _require_visible(gateway: DataGateway, *, product_id: str, warehouse_ids: list[str]) -> None:
    if not gateway.get(Product, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    for warehouse_id in warehouse_ids:
        if not gateway.get(Warehouse, warehouse_id):
            raise HTTPException(status_code=404, detail="Warehouse not found")


@router.get(
    "/balances",
    response_model=StockBalanceListOut,
    summary="On-hand balances",
    description="Sum of all ledger movements per product and warehouse, computed on read.",
    responses=error_responses(401, 422, 500),
)
def list_balances(
    product_id: Optional[str] = Query(default=None),
    warehouse_id: Optional[str] = Query(default=None),
    gateway: DataGateway = Depends(get_gateway),
):
    rows = list_stock_balances(gateway, product_id=product_id, warehouse_id=warehouse_id)
    return StockBalanceListOut(items=[StockBalanceOut.model_validate(row) for row in rows])


@router.get(
    "/balances/{product_id}/{warehouse_id}",
    response_model=StockBalanceOut,
    summary="On-hand balance for one product in one warehouse",
    description="Returns 0 when the pair has no movements yet.",
    responses=error_responses(401, 500),
)
def get_balance(product_id: str, warehouse_id: str, gateway: DataGateway = Depends(get_gateway)):
    rows = list_stock_balances(gateway, product_id=product_id, warehouse_id=warehouse_id)
    quantity = rows[0].quantity if rows else ZERO_QUANTITY
    return StockBalanceOut(product_id=product_id, warehouse_id=warehouse_id, quantity=quantity)


@router.get(
    "/movements",
    response_model=StockMovementListOut,
    summary="Ledger movements",
    responses=error_responses(401, 422, 500),
)
def list_movements(
    product_id: Optional[str] = Query(default=None),
    warehouse_id: Optional[str] = Query(default=None),
    movement_type: Optional[MovementType] = Query(default=None),
    gateway: DataGateway = Depends(get_gateway),
):
    where = {}
    if product_id:
        where["product_id"] = product_id
    if warehouse_id:
        where["warehouse_id"] = warehouse_id
    if movement_type:
        where["movement_type"] = movement_type
    rows = gateway.select(StockMovement, where=where)
    return StockMovementListOut(items=[StockMovementOut.model_validate(row) for row in rows])


@router.post(
    "/movements",
    response_model=StockMovementOut,
    status_code=201,
    summary="Manual stock adjustment",
    description="Positive quantity adds stock, negative removes it.",
    responses=error_responses(400, 401, 403, 404, 422, 500),
)
def create_adjustment(payload: StockAdjustmentIn, gateway: DataGateway = Depends(get_gateway)):
    _require_visible(gateway, product_id=payload.product_id, warehouse_ids=[payload.warehouse_id])
    try:
        if payload.quantity < 0 and not settings.allow_negative_stock:
            ensure_available(
                gateway.db,
                product_id=payload.product_id,
                warehouse_id=payload.warehouse_id,
                quantity=-payload.quantity,
            )
        movement = record_movement(
            gateway,
            product_id=payload.product_id,
            warehouse_id=payload.warehouse_id,
            movement_type=MovementType.ADJUSTMENT,
            quantity=payload.quantity,
            notes=payload.notes,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    gateway.db.commit()
    return StockMovementOut.model_validate(movement)


@router.post(
    "/transfers",
    response_model=StockTransferOut,
    status_code=201,
    summary="Transfer stock between warehouses",
    description="Writes an outbound and an inbound `transfer` movement sharing one reference.",
    responses=error_responses(400, 401, 403, 404, 422, 500),
)
def create_transfer(payload: StockTransferIn, gateway: DataGateway = Depends(get_gateway)):
    _require_visible(
        gateway,
        product_id=payload.product_id,
        warehouse_ids=[payload.from_warehouse_id, payload.to_warehouse_id],
    )
    try:
        outbound, inbound = transfer_stock(
            gateway,
            product_id=payload.product_id,
            from_warehouse_id=payload.from_warehouse_id,
            to_warehouse_id=payload.to_warehouse_id,
            quantity=payload.quantity,
            notes=payload.notes,
            allow_negative=settings.allow_negative_stock,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    gateway.db.commit()
    return StockTransferOut(
        transfer_id=outbound.reference_id,
        outbound=StockMovementOut.model_validate(outbound),
        inbound=StockMovementOut.model_validate(inbound),
    )
