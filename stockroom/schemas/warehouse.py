from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class WarehouseCreate(BaseModel):
    name: str
    code: str
    address: Optional[str] = None
    is_active: bool = True

    @field_validator("name", "code")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value is required")
        return cleaned

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Overflow Warehouse",
                "code": "WH-OVF",
                "address": "9 Dock Road",
            }
        }
    )


class WarehouseUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "code")
    @classmethod
    def validate_optional_required_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value cannot be blank")
        return cleaned


class WarehouseOut(BaseModel):
    id: str
    name: str
    code: str
    address: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WarehouseListOut(BaseModel):
    items: list[WarehouseOut]
