from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockroom.models.enums import MovementType
from stockroom.schemas.common import OptionalText, QuantityIn, QuantityOut


class StockBalanceOut(BaseModel):
    product_id: str
    warehouse_id: str
    quantity: QuantityOut

    model_config = ConfigDict(from_attributes=True)


class StockBalanceListOut(BaseModel):
    items: list[StockBalanceOut]


class StockMovementOut(BaseModel):
    id: str
    product_id: str
    warehouse_id: str
    movement_type: MovementType
    reference_id: Optional[str] = None
    quantity: QuantityOut
    balance_after: QuantityOut
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockMovementListOut(BaseModel):
    items: list[StockMovementOut]


class StockAdjustmentIn(BaseModel):
    product_id: str
    warehouse_id: str
    quantity: QuantityIn
    notes: OptionalText = None

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise ValueError("quantity cannot be zero")
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "product_id": "0b0b8c9e-7f57-4f0e-9f1b-2d0d5e2b7a10",
                "warehouse_id": "f3b0e8b2-3c4d-4a64-9a53-6f1e7f1c0a11",
                "quantity": -2,
                "notes": "Cycle count correction",
            }
        }
    )


class StockTransferIn(BaseModel):
    product_id: str
    from_warehouse_id: str
    to_warehouse_id: str
    quantity: QuantityIn = Field(gt=0)
    notes: OptionalText = None


class StockTransferOut(BaseModel):
    transfer_id: str
    outbound: StockMovementOut
    inbound: StockMovementOut
