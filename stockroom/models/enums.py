import enum

from sqlalchemy import Enum


class AppRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class StockStatus(str, enum.Enum):
    DRAFT = "draft"
    WAITING = "waiting"
    READY = "ready"
    DONE = "done"
    CANCELED = "canceled"


class MovementType(str, enum.Enum):
    RECEIPT = "receipt"
    DELIVERY = "delivery"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"


PENDING_STATUSES = (StockStatus.DRAFT, StockStatus.WAITING)
CLOSED_STATUSES = (StockStatus.DONE, StockStatus.CANCELED)


def db_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    # Persist the lowercase values, and keep a CHECK constraint on non-native backends.
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        create_constraint=True,
        validate_strings=True,
    )
