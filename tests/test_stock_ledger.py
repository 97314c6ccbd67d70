from decimal import Decimal

import pytest
from sqlalchemy import func, select

from stockroom.core.policies import Caller, PolicyDenied
from stockroom.db.gateway import DataGateway
from stockroom.models.enums import AppRole, MovementType
from stockroom.models.stock import StockMovement
from stockroom.services.stock_service import (
    InsufficientStockError,
    get_stock_balance,
    list_stock_balances,
    record_movement,
    transfer_stock,
)


def _create_warehouse(client, headers, code):
    res = client.post("/warehouses", json={"name": code, "code": code}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["id"]


def test_balance_is_sum_of_movements(test_context, master_data, login_as):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    product, wh = master_data["product_id"], master_data["warehouse_id"]

    plus = client.post(
        "/stock/movements",
        json={"product_id": product, "warehouse_id": wh, "quantity": 50, "notes": "opening count"},
        headers=staff,
    )
    assert plus.status_code == 201, plus.text
    assert plus.json()["movement_type"] == "adjustment"
    assert plus.json()["balance_after"] == 50.0

    minus = client.post(
        "/stock/movements",
        json={"product_id": product, "warehouse_id": wh, "quantity": -20},
        headers=staff,
    )
    assert minus.status_code == 201, minus.text
    assert minus.json()["balance_after"] == 30.0

    balances = client.get("/stock/balances", headers=staff).json()["items"]
    assert balances == [{"product_id": product, "warehouse_id": wh, "quantity": 30.0}]

    pair = client.get(f"/stock/balances/{product}/{wh}", headers=staff).json()
    assert pair["quantity"] == 30.0

    movements = client.get(f"/stock/movements?product_id={product}", headers=staff).json()["items"]
    assert sorted(row["quantity"] for row in movements) == [-20.0, 50.0]


def test_pair_without_movements_has_zero_balance(test_context, master_data):
    client, _ = test_context
    product, wh = master_data["product_id"], master_data["warehouse_id"]

    res = client.get(f"/stock/balances/{product}/{wh}", headers=master_data["admin_headers"])
    assert res.status_code == 200
    assert res.json() == {"product_id": product, "warehouse_id": wh, "quantity": 0.0}
    assert client.get("/stock/balances", headers=master_data["admin_headers"]).json()["items"] == []


def test_adjustment_validation(test_context, master_data, login_as):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    product, wh = master_data["product_id"], master_data["warehouse_id"]

    zero = client.post(
        "/stock/movements", json={"product_id": product, "warehouse_id": wh, "quantity": 0}, headers=staff
    )
    assert zero.status_code == 422
    assert zero.json()["error"]["details"][0]["field"] == "quantity"

    overdraw = client.post(
        "/stock/movements", json={"product_id": product, "warehouse_id": wh, "quantity": -1}, headers=staff
    )
    assert overdraw.status_code == 400

    unknown = client.post(
        "/stock/movements", json={"product_id": "missing", "warehouse_id": wh, "quantity": 1}, headers=staff
    )
    assert unknown.status_code == 404


@pytest.mark.parametrize("quantity", ["1e30", "100000000", "-100000000", "1.005"])
def test_quantities_must_fit_numeric_column(test_context, master_data, login_as, quantity):
    client, session_local = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    product, main = master_data["product_id"], master_data["warehouse_id"]
    annex = _create_warehouse(client, master_data["admin_headers"], "WH-ANX")

    adjustment = client.post(
        "/stock/movements",
        json={"product_id": product, "warehouse_id": main, "quantity": quantity},
        headers=staff,
    )
    assert adjustment.status_code == 422, adjustment.text
    assert adjustment.json()["error"]["details"][0]["field"] == "quantity"

    transfer = client.post(
        "/stock/transfers",
        json={"product_id": product, "from_warehouse_id": main, "to_warehouse_id": annex, "quantity": quantity},
        headers=staff,
    )
    assert transfer.status_code == 422, transfer.text
    assert transfer.json()["error"]["code"] == "validation_error"

    with session_local() as db:
        assert db.execute(select(func.count()).select_from(StockMovement)).scalar_one() == 0


def test_largest_column_quantity_is_accepted(test_context, master_data, login_as):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)

    res = client.post(
        "/stock/movements",
        json={
            "product_id": master_data["product_id"],
            "warehouse_id": master_data["warehouse_id"],
            "quantity": "99999999.99",
        },
        headers=staff,
    )
    assert res.status_code == 201, res.text
    assert res.json()["balance_after"] == 99999999.99


def test_transfer_writes_two_linked_movements(test_context, master_data, login_as):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    product, main = master_data["product_id"], master_data["warehouse_id"]
    annex = _create_warehouse(client, master_data["admin_headers"], "WH-ANX")

    client.post(
        "/stock/movements", json={"product_id": product, "warehouse_id": main, "quantity": 12}, headers=staff
    )
    res = client.post(
        "/stock/transfers",
        json={"product_id": product, "from_warehouse_id": main, "to_warehouse_id": annex, "quantity": 5},
        headers=staff,
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["outbound"]["quantity"] == -5.0
    assert body["inbound"]["quantity"] == 5.0
    assert body["outbound"]["reference_id"] == body["inbound"]["reference_id"] == body["transfer_id"]

    balances = {
        row["warehouse_id"]: row["quantity"]
        for row in client.get(f"/stock/balances?product_id={product}", headers=staff).json()["items"]
    }
    assert balances == {main: 7.0, annex: 5.0}

    transfers = client.get("/stock/movements?movement_type=transfer", headers=staff).json()["items"]
    assert len(transfers) == 2


def test_transfer_rejects_same_warehouse_and_overdraw(test_context, master_data, login_as):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    product, main = master_data["product_id"], master_data["warehouse_id"]
    annex = _create_warehouse(client, master_data["admin_headers"], "WH-ANX")

    same = client.post(
        "/stock/transfers",
        json={"product_id": product, "from_warehouse_id": main, "to_warehouse_id": main, "quantity": 1},
        headers=staff,
    )
    assert same.status_code == 400

    overdraw = client.post(
        "/stock/transfers",
        json={"product_id": product, "from_warehouse_id": main, "to_warehouse_id": annex, "quantity": 1},
        headers=staff,
    )
    assert overdraw.status_code == 400
    assert "Insufficient stock" in overdraw.json()["error"]["message"]


def test_ledger_service_keeps_running_balance(test_context, master_data, login_as):
    _, session_local = test_context
    user_id, _ = login_as("staff@example.com", AppRole.STAFF)
    product, wh = master_data["product_id"], master_data["warehouse_id"]
    caller = Caller(user_id=user_id, roles=frozenset({AppRole.STAFF}))

    with session_local() as db:
        gateway = DataGateway(db, caller)
        for quantity in (10, "2.5", Decimal("-4.25")):
            record_movement(
                gateway,
                product_id=product,
                warehouse_id=wh,
                movement_type=MovementType.ADJUSTMENT,
                quantity=quantity,
            )
        db.commit()

        assert get_stock_balance(db, product, wh) == Decimal("8.25")
        total = db.execute(select(func.sum(StockMovement.quantity))).scalar_one()
        assert Decimal(total) == Decimal("8.25")
        last = db.execute(
            select(StockMovement).order_by(StockMovement.balance_after.asc())
        ).scalars().first()
        assert last.balance_after == Decimal("8.25")

        with pytest.raises(ValueError):
            record_movement(
                gateway, product_id=product, warehouse_id=wh, movement_type=MovementType.ADJUSTMENT, quantity=0
            )
        with pytest.raises(InsufficientStockError):
            transfer_stock(
                gateway,
                product_id=product,
                from_warehouse_id=wh,
                to_warehouse_id="elsewhere",
                quantity=Decimal("9"),
            )


def test_anonymous_caller_cannot_write_or_read_ledger(test_context, master_data):
    _, session_local = test_context
    product, wh = master_data["product_id"], master_data["warehouse_id"]

    with session_local() as db:
        gateway = DataGateway(db, Caller(user_id=None))
        with pytest.raises(PolicyDenied):
            record_movement(
                gateway, product_id=product, warehouse_id=wh, movement_type=MovementType.ADJUSTMENT, quantity=1
            )
        assert list_stock_balances(gateway) == []
