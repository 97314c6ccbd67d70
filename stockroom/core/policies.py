"""
Row-level access policies.

Every read or write made by the HTTP layer is checked here before it runs.
A row is visible or writable when at least one policy registered for the
table and operation accepts ``(caller, row)``. Policies only ever grant; a
table/operation without a policy is closed to everybody.

The caller's role set is resolved once per request by
``stockroom.services.role_service.load_roles``, a direct lookup that is not
itself subject to these policies.
"""

import enum
import json
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from stockroom.models.enums import AppRole

logger = logging.getLogger("stockroom.api")


class Operation(str, enum.Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


ALL_OPERATIONS = frozenset(Operation)


class PolicyDenied(PermissionError):
    def __init__(self, table: str, operation: Operation):
        super().__init__(f"Permission denied for {operation.value} on {table}")
        self.table = table
        self.operation = operation


@dataclass(frozen=True)
class Caller:
    user_id: str | None
    roles: frozenset[AppRole] = frozenset()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def has_role(self, role: AppRole) -> bool:
        return role in self.roles


Predicate = Callable[[Caller, Any], bool]


@dataclass(frozen=True)
class Policy:
    name: str
    table: str
    operations: frozenset[Operation]
    predicate: Predicate


def authenticated(caller: Caller, row: Any) -> bool:
    return caller.is_authenticated


def is_admin(caller: Caller, row: Any) -> bool:
    return caller.is_authenticated and caller.has_role(AppRole.ADMIN)


def is_admin_or_manager(caller: Caller, row: Any) -> bool:
    return caller.is_authenticated and (
        caller.has_role(AppRole.ADMIN) or caller.has_role(AppRole.MANAGER)
    )


def is_creator_or_privileged(caller: Caller, row: Any) -> bool:
    if not caller.is_authenticated:
        return False
    if row is not None and getattr(row, "created_by", None) == caller.user_id:
        return True
    return is_admin_or_manager(caller, row)


def is_own_profile(caller: Caller, row: Any) -> bool:
    return caller.is_authenticated and row is not None and getattr(row, "id", None) == caller.user_id


def _policy(name: str, table: str, operations: Iterable[Operation], predicate: Predicate) -> Policy:
    return Policy(name=name, table=table, operations=frozenset(operations), predicate=predicate)


SELECT, INSERT, UPDATE, DELETE = Operation.SELECT, Operation.INSERT, Operation.UPDATE, Operation.DELETE

POLICIES: tuple[Policy, ...] = (
    _policy("Users can view own profile", "profiles", [SELECT], is_own_profile),
    _policy("Users can update own profile", "profiles", [UPDATE], is_own_profile),
    _policy("Admins can view all roles", "user_roles", [SELECT], is_admin),
    _policy("Admins can insert roles", "user_roles", [INSERT], is_admin),
    _policy("Admins can delete roles", "user_roles", [DELETE], is_admin),
    _policy("Authenticated users can view warehouses", "warehouses", [SELECT], authenticated),
    _policy("Admins can insert warehouses", "warehouses", [INSERT], is_admin),
    _policy("Admins can update warehouses", "warehouses", [UPDATE], is_admin),
    _policy("Authenticated users can view categories", "categories", [SELECT], authenticated),
    _policy("Admins can manage categories", "categories", ALL_OPERATIONS, is_admin),
    _policy("Authenticated users can view products", "products", [SELECT], authenticated),
    _policy("Managers and admins can insert products", "products", [INSERT], is_admin_or_manager),
    _policy("Managers and admins can update products", "products", [UPDATE], is_admin_or_manager),
    _policy("Authenticated users can view receipts", "receipts", [SELECT], authenticated),
    _policy("Staff can create receipts", "receipts", [INSERT], authenticated),
    _policy(
        "Staff can update own receipts or managers/admins can update all",
        "receipts",
        [UPDATE],
        is_creator_or_privileged,
    ),
    _policy("Authenticated users can view receipt lines", "receipt_lines", [SELECT], authenticated),
    _policy("Users can insert receipt lines", "receipt_lines", [INSERT], authenticated),
    _policy("Users can update receipt lines", "receipt_lines", [UPDATE], authenticated),
    _policy("Authenticated users can view deliveries", "deliveries", [SELECT], authenticated),
    _policy("Staff can create deliveries", "deliveries", [INSERT], authenticated),
    _policy(
        "Staff can update own deliveries or managers/admins can update all",
        "deliveries",
        [UPDATE],
        is_creator_or_privileged,
    ),
    _policy("Authenticated users can view delivery lines", "delivery_lines", [SELECT], authenticated),
    _policy("Users can insert delivery lines", "delivery_lines", [INSERT], authenticated),
    _policy("Users can update delivery lines", "delivery_lines", [UPDATE], authenticated),
    _policy("Authenticated users can view stock movements", "stock_movements", [SELECT], authenticated),
    # Any authenticated caller may append to the ledger.
    _policy("System can insert stock movements", "stock_movements", [INSERT], authenticated),
    _policy("Authenticated users can view stock balances", "stock_balances", [SELECT], authenticated),
)


class PolicyEngine:
    def __init__(self, policies: Iterable[Policy]):
        self._index: dict[tuple[str, Operation], list[Policy]] = defaultdict(list)
        for policy in policies:
            for operation in policy.operations:
                self._index[(policy.table, operation)].append(policy)

    def applicable(self, table: str, operation: Operation) -> list[Policy]:
        return list(self._index.get((table, operation), ()))

    def evaluate(self, caller: Caller, table: str, operation: Operation, row: Any = None) -> bool:
        return any(policy.predicate(caller, row) for policy in self.applicable(table, operation))

    def authorize(self, caller: Caller, table: str, operation: Operation, row: Any = None) -> None:
        if self.evaluate(caller, table, operation, row):
            return
        logger.info(
            json.dumps(
                {
                    "event": "policy_denied",
                    "user_id": caller.user_id,
                    "table": table,
                    "operation": operation.value,
                }
            )
        )
        raise PolicyDenied(table, operation)

    def filter_visible(self, caller: Caller, table: str, rows: Iterable[Any]) -> list[Any]:
        return [row for row in rows if self.evaluate(caller, table, Operation.SELECT, row)]


policy_engine = PolicyEngine(POLICIES)
