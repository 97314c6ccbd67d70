import json
from pathlib import Path

from stockroom.main import app


def test_openapi_paths_snapshot():
    snapshot_path = Path(__file__).parent / "snapshots" / "openapi_paths_snapshot.json"
    expected_paths = json.loads(snapshot_path.read_text(encoding="utf-8"))
    actual_paths = sorted(app.openapi()["paths"].keys())
    assert actual_paths == expected_paths


def test_openapi_documents_error_envelope():
    schema = app.openapi()
    create_receipt = schema["paths"]["/receipts"]["post"]
    assert {"401", "403", "409", "422"} <= set(create_receipt["responses"])
    assert "ErrorOut" in schema["components"]["schemas"]
