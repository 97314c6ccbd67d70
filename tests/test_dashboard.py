from stockroom.core.config import settings
from stockroom.models.enums import AppRole


def test_dashboard_summary_counts(test_context, master_data, login_as):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    admin = master_data["admin_headers"]
    wh = master_data["warehouse_id"]

    # BOLT-M8 (reorder level 10) gets 25 on hand; WASH-8 (reorder level 5) gets 2.
    washer = client.post("/products", json={"name": "Washer", "sku": "WASH-8", "reorder_level": 5}, headers=admin)
    retired = client.post("/products", json={"name": "Old", "sku": "OLD-1", "is_active": False}, headers=admin)
    assert washer.status_code == 201 and retired.status_code == 201

    for product_id, quantity in ((master_data["product_id"], 25), (washer.json()["id"], 2)):
        res = client.post(
            "/stock/movements",
            json={"product_id": product_id, "warehouse_id": wh, "quantity": quantity},
            headers=staff,
        )
        assert res.status_code == 201, res.text

    drafts = [
        client.post("/receipts", json={"supplier_name": "A", "warehouse_id": wh}, headers=staff).json()["id"]
        for _ in range(2)
    ]
    client.patch(f"/receipts/{drafts[1]}", json={"status": "waiting"}, headers=staff)
    ready = client.post("/receipts", json={"supplier_name": "B", "warehouse_id": wh}, headers=staff).json()["id"]
    client.patch(f"/receipts/{ready}", json={"status": "ready"}, headers=staff)
    client.post("/deliveries", json={"customer_name": "C", "warehouse_id": wh}, headers=staff)

    res = client.get("/dashboard/summary", headers=staff)
    assert res.status_code == 200, res.text
    assert res.json() == {
        "total_products": 2,
        "low_stock_products": 1,
        "pending_receipts": 2,
        "pending_deliveries": 1,
    }


def test_products_without_reorder_level_use_default_threshold(test_context, master_data, monkeypatch):
    client, _ = test_context
    admin = master_data["admin_headers"]
    client.patch(f"/products/{master_data['product_id']}", json={"reorder_level": 0}, headers=admin)

    # Nothing on hand counts as low even with a zero threshold.
    assert client.get("/dashboard/summary", headers=admin).json()["low_stock_products"] == 1

    client.post(
        "/stock/movements",
        json={"product_id": master_data["product_id"], "warehouse_id": master_data["warehouse_id"], "quantity": 3},
        headers=admin,
    )
    assert client.get("/dashboard/summary", headers=admin).json()["low_stock_products"] == 0

    monkeypatch.setattr(settings, "low_stock_default_threshold", 5)
    assert client.get("/dashboard/summary", headers=admin).json()["low_stock_products"] == 1


def test_dashboard_requires_authentication(test_context):
    client, _ = test_context
    res = client.get("/dashboard/summary")
    assert res.status_code == 401
