from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorDetailOut(BaseModel):
    code: str
    message: str
    request_id: str
    path: str
    details: list[ValidationIssueOut] | None = None


class ErrorOut(BaseModel):
    error: ErrorDetailOut

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "conflict",
                    "message": "UNIQUE constraint failed: receipts.reference",
                    "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                    "path": "/receipts",
                    "details": None,
                }
            }
        }
    )


class DeletedOut(BaseModel):
    ok: bool = True


def _quantity_to_float(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Quantities are NUMERIC(10,2) in the database and plain numbers on the wire.
QuantityOut = Annotated[float, BeforeValidator(_quantity_to_float)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
# Inputs must fit the column, so out-of-range values fail validation instead of the write.
QuantityIn = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]
