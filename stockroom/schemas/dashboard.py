from pydantic import BaseModel, ConfigDict


class DashboardSummaryOut(BaseModel):
    total_products: int
    low_stock_products: int
    pending_receipts: int
    pending_deliveries: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total_products": 42,
                "low_stock_products": 3,
                "pending_receipts": 5,
                "pending_deliveries": 2,
            }
        }
    )
