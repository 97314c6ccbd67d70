from fastapi import APIRouter, Depends

from stockroom.core.api_docs import error_responses
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.schemas.dashboard import DashboardSummaryOut
from stockroom.services.dashboard_service import get_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/summary",
    response_model=DashboardSummaryOut,
    summary="Get KPI summary",
    responses={
        200: {
            "description": "Dashboard summary",
            "content": {
                "application/json": {
                    "example": {
                        "total_products": 42,
                        "low_stock_products": 3,
                        "pending_receipts": 5,
                        "pending_deliveries": 2,
                    }
                }
            },
        },
        **error_responses(401, 500),
    },
)
def summary(gateway: DataGateway = Depends(get_gateway)):
    return DashboardSummaryOut(**get_summary(gateway))
