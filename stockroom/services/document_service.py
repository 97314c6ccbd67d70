"""
Receipts and deliveries share one lifecycle; ``DocumentKind`` carries the
per-kind column names, reference prefix and ledger direction.
"""

import json
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from stockroom.core.config import settings
from stockroom.core.id_utils import utcnow
from stockroom.core.policies import Operation
from stockroom.core.quantity import ZERO_QUANTITY, to_quantity
from stockroom.db.gateway import DataGateway
from stockroom.models.documents import Delivery, DeliveryLine, Receipt, ReceiptLine
from stockroom.models.enums import CLOSED_STATUSES, MovementType, StockStatus
from stockroom.services.reference_service import synthesize_reference
from stockroom.services.stock_service import ensure_available, record_movement

logger = logging.getLogger("stockroom.api")


class DocumentStateError(ValueError):
    pass


@dataclass(frozen=True)
class DocumentKind:
    name: str
    model: type
    line_model: type
    parent_key: str
    counterparty_field: str
    completed_field: str
    fulfilled_field: str
    movement_type: MovementType
    direction: int
    prefix_setting: str

    @property
    def reference_prefix(self) -> str:
        return getattr(settings, self.prefix_setting)

    def lines_of(self, gateway: DataGateway, document_id: str) -> list:
        return gateway.select(
            self.line_model,
            where={self.parent_key: document_id},
            order_by="created_at",
            descending=False,
        )


RECEIPTS = DocumentKind(
    name="receipt",
    model=Receipt,
    line_model=ReceiptLine,
    parent_key="receipt_id",
    counterparty_field="supplier_name",
    completed_field="received_date",
    fulfilled_field="received_quantity",
    movement_type=MovementType.RECEIPT,
    direction=1,
    prefix_setting="receipt_reference_prefix",
)

DELIVERIES = DocumentKind(
    name="delivery",
    model=Delivery,
    line_model=DeliveryLine,
    parent_key="delivery_id",
    counterparty_field="customer_name",
    completed_field="delivered_date",
    fulfilled_field="delivered_quantity",
    movement_type=MovementType.DELIVERY,
    direction=-1,
    prefix_setting="delivery_reference_prefix",
)


def _ensure_open(kind: DocumentKind, document: Any) -> None:
    if StockStatus(document.status) == StockStatus.DONE:
        raise DocumentStateError(f"Cannot modify a completed {kind.name}")


def list_documents(
    gateway: DataGateway,
    kind: DocumentKind,
    *,
    statuses: Iterable[StockStatus] | None = None,
) -> list:
    status_filter = list(statuses or [])
    where = {"status": status_filter} if status_filter else None
    return gateway.select(kind.model, where=where)


def create_document(
    gateway: DataGateway,
    kind: DocumentKind,
    *,
    counterparty: str,
    warehouse_id: str,
    scheduled_date: date | None = None,
    notes: str | None = None,
    reference: str | None = None,
) -> Any:
    return gateway.insert(
        kind.model,
        {
            "reference": reference or synthesize_reference(kind.reference_prefix),
            "warehouse_id": warehouse_id,
            kind.counterparty_field: counterparty,
            "scheduled_date": scheduled_date,
            "notes": notes,
            "status": StockStatus.DRAFT,
            "created_by": gateway.caller.user_id,
        },
    )


def update_document(
    gateway: DataGateway,
    kind: DocumentKind,
    document: Any,
    changes: Mapping[str, Any],
) -> Any:
    _ensure_open(kind, document)
    if changes.get("status") == StockStatus.DONE:
        raise DocumentStateError(f"Use the validate action to complete a {kind.name}")
    return gateway.update(document, changes)


def add_line(
    gateway: DataGateway,
    kind: DocumentKind,
    document: Any,
    *,
    product_id: str,
    quantity: Decimal,
) -> Any:
    _ensure_open(kind, document)
    return gateway.insert(
        kind.line_model,
        {
            kind.parent_key: document.id,
            "product_id": product_id,
            "quantity": to_quantity(quantity),
            kind.fulfilled_field: ZERO_QUANTITY,
        },
    )


def update_line(
    gateway: DataGateway,
    kind: DocumentKind,
    document: Any,
    line: Any,
    changes: Mapping[str, Any],
) -> Any:
    _ensure_open(kind, document)
    normalized = {
        key: to_quantity(value) if isinstance(value, (Decimal, int, float)) else value
        for key, value in changes.items()
    }
    return gateway.update(line, normalized)


def validate_document(
    gateway: DataGateway,
    kind: DocumentKind,
    document: Any,
    *,
    allow_negative_stock: bool | None = None,
) -> Any:
    """
    Complete a document: write back fulfilled quantities, append one ledger
    movement per line and mark the document done. Nothing is committed here.
    """
    status = StockStatus(document.status)
    if status in CLOSED_STATUSES:
        raise DocumentStateError(f"Cannot validate a {status.value} {kind.name}")
    gateway.authorize(document, Operation.UPDATE)

    lines = kind.lines_of(gateway, document.id)
    if not lines:
        raise DocumentStateError(f"Cannot validate a {kind.name} without lines")

    fulfilled_by_line = {}
    for line in lines:
        fulfilled = to_quantity(getattr(line, kind.fulfilled_field))
        fulfilled_by_line[line.id] = fulfilled if fulfilled > ZERO_QUANTITY else to_quantity(line.quantity)

    allow_negative = settings.allow_negative_stock if allow_negative_stock is None else allow_negative_stock
    if kind.direction < 0 and not allow_negative:
        requested: dict[str, Decimal] = defaultdict(lambda: ZERO_QUANTITY)
        for line in lines:
            requested[line.product_id] += fulfilled_by_line[line.id]
        for product_id, quantity in requested.items():
            ensure_available(
                gateway.db,
                product_id=product_id,
                warehouse_id=document.warehouse_id,
                quantity=quantity,
            )

    for line in lines:
        fulfilled = fulfilled_by_line[line.id]
        gateway.update(line, {kind.fulfilled_field: fulfilled})
        record_movement(
            gateway,
            product_id=line.product_id,
            warehouse_id=document.warehouse_id,
            movement_type=kind.movement_type,
            quantity=fulfilled * kind.direction,
            reference_id=document.id,
            notes=document.reference,
        )

    gateway.update(document, {"status": StockStatus.DONE, kind.completed_field: utcnow()})
    logger.info(
        json.dumps(
            {
                "event": "document_validated",
                "kind": kind.name,
                "document_id": document.id,
                "reference": document.reference,
                "lines": len(lines),
            }
        )
    )
    return document
