from fastapi import APIRouter, Depends, HTTPException

from stockroom.core.api_docs import error_responses
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.catalog import Category
from stockroom.schemas.catalog import CategoryCreate, CategoryListOut, CategoryOut, CategoryUpdate
from stockroom.schemas.common import DeletedOut

router = APIRouter(prefix="/categories", tags=["categories"])


def _visible_category(gateway: DataGateway, category_id: str) -> Category:
    category = gateway.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get(
    "",
    response_model=CategoryListOut,
    summary="List categories",
    responses=error_responses(401, 500),
)
def list_categories(gateway: DataGateway = Depends(get_gateway)):
    rows = gateway.select(Category)
    return CategoryListOut(items=[CategoryOut.model_validate(row) for row in rows])


@router.get(
    "/{category_id}",
    response_model=CategoryOut,
    summary="Get category",
    responses=error_responses(401, 404, 500),
)
def get_category(category_id: str, gateway: DataGateway = Depends(get_gateway)):
    return CategoryOut.model_validate(_visible_category(gateway, category_id))


@router.post(
    "",
    response_model=CategoryOut,
    status_code=201,
    summary="Create category",
    description="Admin only.",
    responses=error_responses(401, 403, 409, 422, 500),
)
def create_category(payload: CategoryCreate, gateway: DataGateway = Depends(get_gateway)):
    category = gateway.insert(Category, payload.model_dump())
    gateway.db.commit()
    return CategoryOut.model_validate(category)


@router.patch(
    "/{category_id}",
    response_model=CategoryOut,
    summary="Update category",
    description="Admin only.",
    responses=error_responses(401, 403, 404, 422, 500),
)
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    gateway: DataGateway = Depends(get_gateway),
):
    category = _visible_category(gateway, category_id)
    gateway.update(category, payload.model_dump(exclude_unset=True))
    gateway.db.commit()
    return CategoryOut.model_validate(category)


@router.delete(
    "/{category_id}",
    response_model=DeletedOut,
    summary="Delete category",
    description="Admin only. Products in the category keep existing with no category.",
    responses=error_responses(401, 403, 404, 500),
)
def delete_category(category_id: str, gateway: DataGateway = Depends(get_gateway)):
    gateway.delete(_visible_category(gateway, category_id))
    gateway.db.commit()
    return DeletedOut()
