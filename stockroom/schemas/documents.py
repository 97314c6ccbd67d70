from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockroom.models.enums import StockStatus
from stockroom.schemas.common import OptionalText, QuantityIn, QuantityOut


def _required(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("value is required")
    return cleaned


class _DocumentCreateBase(BaseModel):
    warehouse_id: str
    # Date inputs arrive as "" when left empty in a form.
    scheduled_date: Optional[date] = None
    notes: OptionalText = None
    reference: OptionalText = None

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def blank_date_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ReceiptCreate(_DocumentCreateBase):
    supplier_name: str

    @field_validator("supplier_name")
    @classmethod
    def validate_supplier(cls, value: str) -> str:
        return _required(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "supplier_name": "Acme Metals",
                "warehouse_id": "f3b0e8b2-3c4d-4a64-9a53-6f1e7f1c0a11",
                "scheduled_date": "2026-11-02",
                "notes": "Dock 3",
            }
        }
    )


class DeliveryCreate(_DocumentCreateBase):
    customer_name: str

    @field_validator("customer_name")
    @classmethod
    def validate_customer(cls, value: str) -> str:
        return _required(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customer_name": "Northwind Retail",
                "warehouse_id": "f3b0e8b2-3c4d-4a64-9a53-6f1e7f1c0a11",
                "scheduled_date": "",
            }
        }
    )


class _DocumentUpdateBase(BaseModel):
    warehouse_id: Optional[str] = None
    status: Optional[StockStatus] = None
    scheduled_date: Optional[date] = None
    notes: OptionalText = None

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def blank_date_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


def _required_if_given(value: Optional[str]) -> str:
    # Omitted fields keep their default without validation; an explicit null is rejected.
    if value is None:
        raise ValueError("value is required")
    return _required(value)


class ReceiptUpdate(_DocumentUpdateBase):
    supplier_name: Optional[str] = None

    @field_validator("supplier_name")
    @classmethod
    def validate_supplier(cls, value: Optional[str]) -> str:
        return _required_if_given(value)


class DeliveryUpdate(_DocumentUpdateBase):
    customer_name: Optional[str] = None

    @field_validator("customer_name")
    @classmethod
    def validate_customer(cls, value: Optional[str]) -> str:
        return _required_if_given(value)


class LineCreate(BaseModel):
    product_id: str
    # Positivity is enforced by the lines' CHECK constraint.
    quantity: QuantityIn


class LineUpdate(BaseModel):
    quantity: Optional[QuantityIn] = None
    fulfilled_quantity: Optional[QuantityIn] = Field(default=None, ge=0)


class ReceiptLineOut(BaseModel):
    id: str
    receipt_id: str
    product_id: str
    quantity: QuantityOut
    received_quantity: Optional[QuantityOut] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeliveryLineOut(BaseModel):
    id: str
    delivery_id: str
    product_id: str
    quantity: QuantityOut
    delivered_quantity: Optional[QuantityOut] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptOut(BaseModel):
    id: str
    reference: str
    warehouse_id: str
    supplier_name: str
    status: StockStatus
    scheduled_date: Optional[date] = None
    received_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptDetailOut(ReceiptOut):
    lines: list[ReceiptLineOut] = []


class ReceiptListOut(BaseModel):
    items: list[ReceiptOut]


class DeliveryOut(BaseModel):
    id: str
    reference: str
    warehouse_id: str
    customer_name: str
    status: StockStatus
    scheduled_date: Optional[date] = None
    delivered_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeliveryDetailOut(DeliveryOut):
    lines: list[DeliveryLineOut] = []


class DeliveryListOut(BaseModel):
    items: list[DeliveryOut]
