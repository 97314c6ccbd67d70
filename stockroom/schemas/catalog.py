from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockroom.schemas.common import QuantityOut


def _required(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("value is required")
    return cleaned


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _required(value)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        return _optional(value)


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _required(value)


class CategoryOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryListOut(BaseModel):
    items: list[CategoryOut]


class ProductCreate(BaseModel):
    name: str
    sku: str
    category_id: Optional[str] = None
    unit_of_measure: str = "unit"
    reorder_level: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("name", "sku", "unit_of_measure")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        return _required(value)

    @field_validator("category_id", "description")
    @classmethod
    def normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        return _optional(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Steel Bolt M8",
                "sku": "BOLT-M8",
                "unit_of_measure": "pcs",
                "reorder_level": 100,
            }
        }
    )


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    category_id: Optional[str] = None
    unit_of_measure: Optional[str] = None
    reorder_level: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "sku", "unit_of_measure")
    @classmethod
    def validate_optional_required_text(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _required(value)


class ProductOut(BaseModel):
    id: str
    name: str
    sku: str
    category_id: Optional[str] = None
    unit_of_measure: str
    reorder_level: Optional[QuantityOut] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListOut(BaseModel):
    items: list[ProductOut]
