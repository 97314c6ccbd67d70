import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from stockroom.models.catalog import Product
from stockroom.models.enums import AppRole, MovementType
from stockroom.models.stock import StockMovement
from stockroom.models.warehouse import Warehouse


def test_warehouse_crud_is_admin_only(test_context, login_as):
    client, _ = test_context
    _, admin = login_as("admin@example.com", AppRole.ADMIN)
    _, manager = login_as("manager@example.com", AppRole.MANAGER)

    denied = client.post("/warehouses", json={"name": "Annex", "code": "WH-ANX"}, headers=manager)
    assert denied.status_code == 403
    assert denied.json()["error"] == {
        "code": "forbidden",
        "message": "Permission denied",
        "request_id": denied.headers["X-Request-ID"],
        "path": "/warehouses",
        "details": None,
    }

    created = client.post("/warehouses", json={"name": "Annex", "code": "WH-ANX"}, headers=admin)
    assert created.status_code == 201, created.text
    warehouse_id = created.json()["id"]
    assert created.json()["is_active"] is True

    listed = client.get("/warehouses", headers=manager)
    assert [row["code"] for row in listed.json()["items"]] == ["WH-ANX"]

    patched = client.patch(f"/warehouses/{warehouse_id}", json={"is_active": False}, headers=admin)
    assert patched.status_code == 200
    assert patched.json()["is_active"] is False
    assert client.get("/warehouses?is_active=true", headers=admin).json()["items"] == []

    assert client.patch(f"/warehouses/{warehouse_id}", json={"name": "X"}, headers=manager).status_code == 403


def test_duplicate_codes_and_skus_conflict(test_context, master_data):
    client, _ = test_context
    admin = master_data["admin_headers"]

    dup_wh = client.post("/warehouses", json={"name": "Other", "code": "WH-MAIN"}, headers=admin)
    assert dup_wh.status_code == 409
    assert dup_wh.json()["error"]["code"] == "conflict"
    assert "warehouses.code" in dup_wh.json()["error"]["message"]

    dup_sku = client.post("/products", json={"name": "Bolt again", "sku": "BOLT-M8"}, headers=admin)
    assert dup_sku.status_code == 409
    assert "products.sku" in dup_sku.json()["error"]["message"]


def test_products_are_writable_by_managers_not_staff(test_context, master_data, login_as):
    client, _ = test_context
    _, manager = login_as("manager@example.com", AppRole.MANAGER)
    _, staff = login_as("staff@example.com", AppRole.STAFF)

    created = client.post(
        "/products",
        json={"name": "Washer", "sku": "WASH-8", "reorder_level": 5},
        headers=manager,
    )
    assert created.status_code == 201, created.text
    assert created.json()["unit_of_measure"] == "unit"
    assert created.json()["reorder_level"] == 5.0

    assert client.post("/products", json={"name": "Nut", "sku": "NUT-8"}, headers=staff).status_code == 403

    updated = client.patch(
        f"/products/{created.json()['id']}", json={"reorder_level": 12.5}, headers=manager
    )
    assert updated.status_code == 200
    assert updated.json()["reorder_level"] == 12.5

    listed = client.get(f"/products?category_id={master_data['category_id']}", headers=staff)
    assert [row["sku"] for row in listed.json()["items"]] == ["BOLT-M8"]


def test_product_with_unknown_category_is_not_found(test_context, master_data):
    client, _ = test_context
    res = client.post(
        "/products",
        json={"name": "Ghost", "sku": "GHOST", "category_id": "missing"},
        headers=master_data["admin_headers"],
    )
    assert res.status_code == 404


def test_deleting_category_detaches_products(test_context, master_data, login_as):
    client, session_local = test_context
    _, manager = login_as("manager@example.com", AppRole.MANAGER)
    category_id = master_data["category_id"]

    assert client.delete(f"/categories/{category_id}", headers=manager).status_code == 403

    res = client.delete(f"/categories/{category_id}", headers=master_data["admin_headers"])
    assert res.status_code == 200
    assert res.json() == {"ok": True}

    with session_local() as db:
        product = db.get(Product, master_data["product_id"])
        assert product is not None
        assert product.category_id is None


def test_products_and_warehouses_have_no_delete_route(test_context, master_data):
    client, _ = test_context
    res = client.delete(f"/products/{master_data['product_id']}", headers=master_data["admin_headers"])
    assert res.status_code == 405
    assert res.json()["error"]["code"] == "method_not_allowed"


def test_referenced_product_and_warehouse_cannot_be_deleted(test_context, master_data):
    _, session_local = test_context

    with session_local() as db:
        db.add(
            StockMovement(
                product_id=master_data["product_id"],
                warehouse_id=master_data["warehouse_id"],
                movement_type=MovementType.ADJUSTMENT,
                quantity=5,
                balance_after=5,
            )
        )
        db.commit()

    with session_local() as db:
        db.delete(db.get(Product, master_data["product_id"]))
        with pytest.raises(IntegrityError):
            db.commit()

    with session_local() as db:
        db.delete(db.get(Warehouse, master_data["warehouse_id"]))
        with pytest.raises(IntegrityError):
            db.commit()

    with session_local() as db:
        assert db.execute(select(Product.id)).scalars().all() == [master_data["product_id"]]


def test_unknown_ids_are_not_found(test_context, master_data):
    client, _ = test_context
    admin = master_data["admin_headers"]
    assert client.get("/warehouses/missing", headers=admin).status_code == 404
    assert client.get("/categories/missing", headers=admin).status_code == 404
    res = client.get("/products/missing", headers=admin)
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"
