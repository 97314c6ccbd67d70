import pytest
import os
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import stockroom.models  # noqa: F401
from stockroom.core.config import settings
from stockroom.core.deps import get_db
from stockroom.db.base import Base
from stockroom.db.session import enable_sqlite_foreign_keys
from stockroom.main import app
from stockroom.models.enums import AppRole
from stockroom.services.identity_service import find_identity_by_email
from stockroom.services.role_service import grant_role_elevated


@pytest.fixture()
def test_context():
    original_secret = settings.secret_key
    settings.secret_key = "test-secret-key"

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    settings.secret_key = original_secret


@pytest.fixture()
def login_as(test_context):
    """
    Register an identity, grant it roles out of band and return
    ``(user_id, headers)`` for authenticated requests.
    """
    client, session_local = test_context

    def _login_as(email: str, *roles: AppRole, full_name: str = "Test User"):
        res = client.post(
            "/auth/register",
            json={"email": email, "password": "password123", "full_name": full_name},
        )
        assert res.status_code == 200, res.text
        token = res.json()["access_token"]

        with session_local() as db:
            identity = find_identity_by_email(db, email)
            for role in roles:
                grant_role_elevated(db, user_id=identity.id, role=role)
            db.commit()
            user_id = identity.id

        return user_id, {"Authorization": f"Bearer {token}"}

    return _login_as


@pytest.fixture()
def master_data(test_context, login_as):
    """One warehouse, one category and one product created by an admin."""
    client, _ = test_context
    _, admin_headers = login_as("root-admin@example.com", AppRole.ADMIN)

    warehouse = client.post(
        "/warehouses",
        json={"name": "Main Warehouse", "code": "WH-MAIN", "address": "123 Warehouse Street"},
        headers=admin_headers,
    )
    assert warehouse.status_code == 201, warehouse.text
    category = client.post(
        "/categories",
        json={"name": "Components", "description": "Parts and components"},
        headers=admin_headers,
    )
    assert category.status_code == 201, category.text
    product = client.post(
        "/products",
        json={
            "name": "Steel Bolt M8",
            "sku": "BOLT-M8",
            "category_id": category.json()["id"],
            "unit_of_measure": "pcs",
            "reorder_level": 10,
        },
        headers=admin_headers,
    )
    assert product.status_code == 201, product.text

    return {
        "admin_headers": admin_headers,
        "warehouse_id": warehouse.json()["id"],
        "category_id": category.json()["id"],
        "product_id": product.json()["id"],
    }
