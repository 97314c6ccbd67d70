import json
import logging

from sqlalchemy.exc import DataError, OperationalError

from stockroom.core.deps import get_db
from stockroom.main import app
from stockroom.models.enums import AppRole


def test_request_id_is_echoed_and_generated(test_context):
    client, _ = test_context

    res = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert res.status_code == 200
    assert res.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_not_found_uses_error_envelope(test_context):
    client, _ = test_context
    res = client.get("/no-such-route", headers={"X-Request-ID": "req-404"})
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"
    assert res.json()["error"]["request_id"] == "req-404"
    assert res.json()["error"]["path"] == "/no-such-route"


def test_unreachable_database_maps_to_503(test_context, login_as):
    client, _ = test_context
    _, headers = login_as("staff@example.com", AppRole.STAFF)

    def broken_db():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        yield  # pragma: no cover

    app.dependency_overrides[get_db] = broken_db
    res = client.get("/warehouses", headers=headers)
    assert res.status_code == 503
    assert res.json()["error"]["code"] == "service_unavailable"


def test_out_of_range_database_values_map_to_409(test_context, login_as):
    client, _ = test_context
    _, headers = login_as("staff@example.com", AppRole.STAFF)

    def overflowing_db():
        raise DataError("INSERT INTO stock_movements", {}, Exception("numeric field overflow"))
        yield  # pragma: no cover

    app.dependency_overrides[get_db] = overflowing_db
    res = client.get("/warehouses", headers=headers)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "conflict"
    assert res.json()["error"]["message"] == "numeric field overflow"


def test_policy_denials_are_logged(test_context, login_as, caplog):
    client, _ = test_context
    _, staff = login_as("staff@example.com", AppRole.STAFF)
    logger = logging.getLogger("stockroom.api")
    logger.addHandler(caplog.handler)
    try:
        res = client.post("/warehouses", json={"name": "Annex", "code": "WH-ANX"}, headers=staff)
    finally:
        logger.removeHandler(caplog.handler)

    assert res.status_code == 403
    events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "stockroom.api"]
    denied = [event for event in events if event.get("event") == "policy_denied"]
    assert denied and denied[0]["table"] == "warehouses"
    assert denied[0]["operation"] == "insert"
