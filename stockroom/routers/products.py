from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from stockroom.core.api_docs import error_responses
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.catalog import Category, Product
from stockroom.schemas.catalog import ProductCreate, ProductListOut, ProductOut, ProductUpdate

router = APIRouter(prefix="/products", tags=["products"])


def _visible_product(gateway: DataGateway, product_id: str) -> Product:
    product = gateway.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _ensure_category(gateway: DataGateway, category_id: Optional[str]) -> None:
    if category_id and not gateway.get(Category, category_id):
        raise HTTPException(status_code=404, detail="Category not found")


@router.get(
    "",
    response_model=ProductListOut,
    summary="List products",
    responses=error_responses(401, 422, 500),
)
def list_products(
    category_id: Optional[str] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    gateway: DataGateway = Depends(get_gateway),
):
    where = {}
    if category_id:
        where["category_id"] = category_id
    if is_active is not None:
        where["is_active"] = is_active
    rows = gateway.select(Product, where=where)
    return ProductListOut(items=[ProductOut.model_validate(row) for row in rows])


@router.get(
    "/{product_id}",
    response_model=ProductOut,
    summary="Get product",
    responses=error_responses(401, 404, 500),
)
def get_product(product_id: str, gateway: DataGateway = Depends(get_gateway)):
    return ProductOut.model_validate(_visible_product(gateway, product_id))


@router.post(
    "",
    response_model=ProductOut,
    status_code=201,
    summary="Create product",
    description="Admins and managers only. SKUs are unique across the catalog.",
    responses=error_responses(401, 403, 404, 409, 422, 500),
)
def create_product(payload: ProductCreate, gateway: DataGateway = Depends(get_gateway)):
    _ensure_category(gateway, payload.category_id)
    product = gateway.insert(Product, payload.model_dump())
    gateway.db.commit()
    return ProductOut.model_validate(product)


@router.patch(
    "/{product_id}",
    response_model=ProductOut,
    summary="Update product",
    description="Admins and managers only.",
    responses=error_responses(401, 403, 404, 409, 422, 500),
)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    gateway: DataGateway = Depends(get_gateway),
):
    product = _visible_product(gateway, product_id)
    changes = payload.model_dump(exclude_unset=True)
    _ensure_category(gateway, changes.get("category_id"))
    gateway.update(product, changes)
    gateway.db.commit()
    return ProductOut.model_validate(product)
