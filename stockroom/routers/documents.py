"""
Receipts and deliveries expose the same routes; ``build_document_router``
wires one router per ``DocumentKind``.
"""

from contextlib import contextmanager
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from stockroom.core.api_docs import error_responses
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.catalog import Product
from stockroom.models.enums import StockStatus
from stockroom.models.warehouse import Warehouse
from stockroom.schemas.documents import (
    DeliveryCreate,
    DeliveryDetailOut,
    DeliveryLineOut,
    DeliveryListOut,
    DeliveryOut,
    DeliveryUpdate,
    LineCreate,
    LineUpdate,
    ReceiptCreate,
    ReceiptDetailOut,
    ReceiptLineOut,
    ReceiptListOut,
    ReceiptOut,
    ReceiptUpdate,
)
from stockroom.services import document_service
from stockroom.services.document_service import DELIVERIES, RECEIPTS, DocumentKind


@contextmanager
def _domain_errors():
    try:
        yield
    except ValueError as exc:
        # Covers DocumentStateError and InsufficientStockError.
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def build_document_router(
    kind: DocumentKind,
    *,
    prefix: str,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    out_schema: type[BaseModel],
    detail_schema: type[BaseModel],
    list_schema: type[BaseModel],
    line_out_schema: type[BaseModel],
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])
    label = kind.name.capitalize()

    def visible_document(gateway: DataGateway, document_id: str):
        document = gateway.get(kind.model, document_id)
        if not document:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return document

    def detail_of(gateway: DataGateway, document):
        lines = kind.lines_of(gateway, document.id)
        return detail_schema(
            **out_schema.model_validate(document).model_dump(),
            lines=[line_out_schema.model_validate(line) for line in lines],
        )

    @router.get(
        "",
        response_model=list_schema,
        summary=f"List {prefix.strip('/')}",
        description="Repeat `status` to filter by several statuses.",
        responses=error_responses(401, 422, 500),
    )
    def list_documents(
        status: Optional[list[StockStatus]] = Query(default=None),
        gateway: DataGateway = Depends(get_gateway),
    ):
        rows = document_service.list_documents(gateway, kind, statuses=status)
        return list_schema(items=[out_schema.model_validate(row) for row in rows])

    @router.get(
        "/{document_id}",
        response_model=detail_schema,
        summary=f"Get {kind.name} with lines",
        responses=error_responses(401, 404, 500),
    )
    def get_document(document_id: str, gateway: DataGateway = Depends(get_gateway)):
        return detail_of(gateway, visible_document(gateway, document_id))

    @router.post(
        "",
        response_model=out_schema,
        status_code=201,
        summary=f"Create {kind.name}",
        description=(
            "Starts in `draft`. When `reference` is omitted one is generated as "
            f"`{{PREFIX}}-{{epoch millis}}`; duplicates are rejected with 409."
        ),
        responses=error_responses(401, 403, 404, 409, 422, 500),
    )
    def create_document(payload: create_schema, gateway: DataGateway = Depends(get_gateway)):
        if not gateway.get(Warehouse, payload.warehouse_id):
            raise HTTPException(status_code=404, detail="Warehouse not found")
        document = document_service.create_document(
            gateway,
            kind,
            counterparty=getattr(payload, kind.counterparty_field),
            warehouse_id=payload.warehouse_id,
            scheduled_date=payload.scheduled_date,
            notes=payload.notes,
            reference=payload.reference,
        )
        gateway.db.commit()
        return out_schema.model_validate(document)

    @router.patch(
        "/{document_id}",
        response_model=out_schema,
        summary=f"Update {kind.name} header",
        description="Allowed for the creator, managers and admins.",
        responses=error_responses(400, 401, 403, 404, 409, 422, 500),
    )
    def update_document(
        document_id: str,
        payload: update_schema,
        gateway: DataGateway = Depends(get_gateway),
    ):
        document = visible_document(gateway, document_id)
        with _domain_errors():
            document_service.update_document(
                gateway, kind, document, payload.model_dump(exclude_unset=True)
            )
        gateway.db.commit()
        return out_schema.model_validate(document)

    @router.post(
        "/{document_id}/lines",
        response_model=line_out_schema,
        status_code=201,
        summary=f"Add {kind.name} line",
        responses=error_responses(400, 401, 403, 404, 409, 422, 500),
    )
    def add_line(
        document_id: str,
        payload: LineCreate,
        gateway: DataGateway = Depends(get_gateway),
    ):
        document = visible_document(gateway, document_id)
        if not gateway.get(Product, payload.product_id):
            raise HTTPException(status_code=404, detail="Product not found")
        with _domain_errors():
            line = document_service.add_line(
                gateway,
                kind,
                document,
                product_id=payload.product_id,
                quantity=payload.quantity,
            )
        gateway.db.commit()
        return line_out_schema.model_validate(line)

    @router.patch(
        "/{document_id}/lines/{line_id}",
        response_model=line_out_schema,
        summary=f"Update {kind.name} line",
        description=f"`fulfilled_quantity` sets the line's {kind.fulfilled_field}.",
        responses=error_responses(400, 401, 403, 404, 409, 422, 500),
    )
    def update_line(
        document_id: str,
        line_id: str,
        payload: LineUpdate,
        gateway: DataGateway = Depends(get_gateway),
    ):
        document = visible_document(gateway, document_id)
        line = gateway.get(kind.line_model, line_id)
        if not line or getattr(line, kind.parent_key) != document.id:
            raise HTTPException(status_code=404, detail="Line not found")

        changes = payload.model_dump(exclude_unset=True)
        if "fulfilled_quantity" in changes:
            changes[kind.fulfilled_field] = changes.pop("fulfilled_quantity")
        with _domain_errors():
            document_service.update_line(gateway, kind, document, line, changes)
        gateway.db.commit()
        return line_out_schema.model_validate(line)

    @router.post(
        "/{document_id}/validate",
        response_model=detail_schema,
        summary=f"Validate {kind.name}",
        description=f"Posts every line to the stock ledger and marks the {kind.name} done.",
        responses=error_responses(400, 401, 403, 404, 500),
    )
    def validate_document(document_id: str, gateway: DataGateway = Depends(get_gateway)):
        document = visible_document(gateway, document_id)
        with _domain_errors():
            document_service.validate_document(gateway, kind, document)
        gateway.db.commit()
        return detail_of(gateway, document)

    return router


receipts_router = build_document_router(
    RECEIPTS,
    prefix="/receipts",
    create_schema=ReceiptCreate,
    update_schema=ReceiptUpdate,
    out_schema=ReceiptOut,
    detail_schema=ReceiptDetailOut,
    list_schema=ReceiptListOut,
    line_out_schema=ReceiptLineOut,
)

deliveries_router = build_document_router(
    DELIVERIES,
    prefix="/deliveries",
    create_schema=DeliveryCreate,
    update_schema=DeliveryUpdate,
    out_schema=DeliveryOut,
    detail_schema=DeliveryDetailOut,
    list_schema=DeliveryListOut,
    line_out_schema=DeliveryLineOut,
)
