from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from stockroom.core.api_docs import error_responses
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.warehouse import Warehouse
from stockroom.schemas.warehouse import WarehouseCreate, WarehouseListOut, WarehouseOut, WarehouseUpdate

router = APIRouter(prefix="/warehouses", tags=["warehouses"])


def _visible_warehouse(gateway: DataGateway, warehouse_id: str) -> Warehouse:
    warehouse = gateway.get(Warehouse, warehouse_id)
    if not warehouse:
        raise HTTPException(status_code=404, detail="Warehouse not found")
    return warehouse


@router.get(
    "",
    response_model=WarehouseListOut,
    summary="List warehouses",
    responses=error_responses(401, 422, 500),
)
def list_warehouses(
    is_active: Optional[bool] = Query(default=None),
    gateway: DataGateway = Depends(get_gateway),
):
    where = {"is_active": is_active} if is_active is not None else None
    rows = gateway.select(Warehouse, where=where)
    return WarehouseListOut(items=[WarehouseOut.model_validate(row) for row in rows])


@router.get(
    "/{warehouse_id}",
    response_model=WarehouseOut,
    summary="Get warehouse",
    responses=error_responses(401, 404, 500),
)
def get_warehouse(warehouse_id: str, gateway: DataGateway = Depends(get_gateway)):
    return WarehouseOut.model_validate(_visible_warehouse(gateway, warehouse_id))


@router.post(
    "",
    response_model=WarehouseOut,
    status_code=201,
    summary="Create warehouse",
    description="Admin only.",
    responses=error_responses(401, 403, 409, 422, 500),
)
def create_warehouse(payload: WarehouseCreate, gateway: DataGateway = Depends(get_gateway)):
    warehouse = gateway.insert(Warehouse, payload.model_dump())
    gateway.db.commit()
    return WarehouseOut.model_validate(warehouse)


@router.patch(
    "/{warehouse_id}",
    response_model=WarehouseOut,
    summary="Update warehouse",
    description="Admin only.",
    responses=error_responses(401, 403, 404, 409, 422, 500),
)
def update_warehouse(
    warehouse_id: str,
    payload: WarehouseUpdate,
    gateway: DataGateway = Depends(get_gateway),
):
    warehouse = _visible_warehouse(gateway, warehouse_id)
    gateway.update(warehouse, payload.model_dump(exclude_unset=True))
    gateway.db.commit()
    return WarehouseOut.model_validate(warehouse)
