from collections.abc import Mapping
from typing import Any, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from stockroom.core.policies import Caller, Operation, PolicyEngine, policy_engine
from stockroom.services.lifecycle_hooks import ROW_UPDATED, LifecycleHooks, hooks

ModelT = TypeVar("ModelT")

_SET_TYPES = (list, tuple, set, frozenset)


def _table_name(target: Any) -> str:
    return target.__tablename__


class DataGateway:
    """
    Policy-checked CRUD bound to one session and one caller.

    Reads silently drop rows the caller may not see. Writes raise
    ``PolicyDenied`` before touching the session, and updates also re-check the
    modified row so a caller cannot move a row out of their own reach.
    Nothing here commits; the router owns the transaction.
    """

    def __init__(
        self,
        db: Session,
        caller: Caller,
        *,
        engine: PolicyEngine = policy_engine,
        lifecycle: LifecycleHooks = hooks,
    ):
        self.db = db
        self.caller = caller
        self.engine = engine
        self.lifecycle = lifecycle

    def authorize(self, row: Any, operation: Operation) -> None:
        self.engine.authorize(self.caller, _table_name(row), operation, row)

    def select(
        self,
        model: type[ModelT],
        *,
        where: Mapping[str, Any] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[ModelT]:
        stmt = select(model)
        for column_name, value in (where or {}).items():
            column = getattr(model, column_name)
            if isinstance(value, _SET_TYPES):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        order_column = getattr(model, order_by)
        stmt = stmt.order_by(order_column.desc() if descending else order_column.asc())
        rows = self.db.execute(stmt).scalars().all()
        return self.engine.filter_visible(self.caller, _table_name(model), rows)

    def select_view(self, view_name: str, stmt: Select) -> list[Any]:
        rows = self.db.execute(stmt).all()
        return self.engine.filter_visible(self.caller, view_name, rows)

    def get(self, model: type[ModelT], row_id: str) -> ModelT | None:
        row = self.db.get(model, row_id)
        if row is None:
            return None
        if not self.engine.evaluate(self.caller, _table_name(model), Operation.SELECT, row):
            return None
        return row

    def count(self, model: type[ModelT], *, where: Mapping[str, Any] | None = None) -> int:
        return len(self.select(model, where=where))

    def insert(self, model: type[ModelT], values: Mapping[str, Any]) -> ModelT:
        row = model(**dict(values))
        self.engine.authorize(self.caller, _table_name(model), Operation.INSERT, row)
        self.db.add(row)
        self.db.flush()
        return row

    def update(self, row: ModelT, changes: Mapping[str, Any]) -> ModelT:
        table = _table_name(row)
        self.engine.authorize(self.caller, table, Operation.UPDATE, row)
        for field_name, value in changes.items():
            setattr(row, field_name, value)
        self.engine.authorize(self.caller, table, Operation.UPDATE, row)
        self.lifecycle.emit(ROW_UPDATED, self.db, row)
        self.db.flush()
        return row

    def delete(self, row: Any) -> None:
        self.engine.authorize(self.caller, _table_name(row), Operation.DELETE, row)
        self.db.delete(row)
        self.db.flush()
