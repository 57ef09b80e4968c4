import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from sofa_factory.core.config import settings
from sofa_factory.db.base import Base
from sofa_factory.db.session import get_db
from sofa_factory.main import app


@pytest.fixture()
def client(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(settings, "API_KEY", "")
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", True)
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _seed(client, foam_quantity=12):
    foam = client.post(
        "/api/v1/inventory/materials",
        json={"name": "Foam", "unit": "kg", "quantity": foam_quantity, "cost_per_unit": 100, "min_stock": 5},
    )
    assert foam.status_code == 201
    customer = client.post("/api/v1/customers", json={"name": "Asha", "phone": "123"})
    assert customer.status_code == 201
    return foam.json(), customer.json()


def _order_payload(foam, **overrides):
    payload = {
        "order_kind": "stock",
        "product_name": "Chesterfield",
        "quantity": 5,
        "bill_of_materials": [{"material_id": foam["id"], "quantity_per_unit": 2}],
        "labour_costs": [{"cost_per_piece": 50}],
        "other_costs": [{"amount": 10}],
    }
    payload.update(overrides)
    return payload


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["X-Request-ID"]


def test_stock_order_flow(client):
    foam, _ = _seed(client)
    created = client.post("/api/v1/orders", json=_order_payload(foam))
    assert created.status_code == 201
    order = created.json()
    assert order["total_production_cost"] == pytest.approx(1300.0)
    assert order["status_label"] == "Pending Approval"
    assert order["next_actions"] == ["approve", "cancel"]

    approved = client.post(f"/api/v1/orders/{order['id']}/approve", json={"note": "ok"})
    assert approved.status_code == 200
    assert approved.json()["order"]["status"] == "approved"

    started = client.post(f"/api/v1/orders/{order['id']}/start-production")
    assert started.status_code == 200
    assert started.json()["order"]["status"] == "in_production"
    assert client.get(f"/api/v1/inventory/materials/{foam['id']}").json()["quantity"] == pytest.approx(2.0)

    completed = client.post(f"/api/v1/orders/{order['id']}/complete", json={"selling_price": 500})
    assert completed.status_code == 200
    body = completed.json()
    assert body["order"]["status"] == "completed"
    assert body["finished_product"]["total_value"] == pytest.approx(2500.0)
    models = client.get("/api/v1/inventory/sofa-models").json()
    assert models[0]["stock_quantity"] == 5

    history = client.get(f"/api/v1/orders/{order['id']}").json()["status_history"]
    assert [entry["status"] for entry in history] == ["pending_approval", "approved", "in_production", "completed"]
    assert history[1]["note"] == "ok"
    assert history[1]["actor"] == "local"


def test_insufficient_stock_envelope(client):
    foam, _ = _seed(client, foam_quantity=8)
    order = client.post("/api/v1/orders", json=_order_payload(foam)).json()
    client.post(f"/api/v1/orders/{order['id']}/approve")

    response = client.post(f"/api/v1/orders/{order['id']}/start-production")

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "insufficient_stock"
    assert body["details"]["lines"][0]["shortage"] == pytest.approx(2.0)
    assert client.get(f"/api/v1/orders/{order['id']}").json()["status"] == "approved"


def test_invalid_transition_and_not_found(client):
    foam, _ = _seed(client)
    order = client.post("/api/v1/orders", json=_order_payload(foam)).json()

    conflict = client.post(f"/api/v1/orders/{order['id']}/start-production")
    missing = client.get("/api/v1/orders/9999")

    assert conflict.status_code == 409
    assert conflict.json()["code"] == "invalid_transition"
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


def test_request_validation_uses_envelope(client):
    response = client.post("/api/v1/orders", json={"product_name": "Sofa", "quantity": 0})

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_customer_order_delivery_and_payment(client):
    foam, customer = _seed(client)
    order = client.post(
        "/api/v1/orders",
        json=_order_payload(foam, order_kind="customer", customer_id=customer["id"], unit_price=400),
    ).json()
    for action in ("approve", "start-production", "ready"):
        assert client.post(f"/api/v1/orders/{order['id']}/{action}").status_code == 200

    delivered = client.post(
        f"/api/v1/orders/{order['id']}/deliver",
        json={"delivery_date": "2024-05-01", "notes": "Front desk"},
    )
    assert delivered.status_code == 200
    sale_id = delivered.json()["sale_id"]

    sale = client.get(f"/api/v1/sales/{sale_id}").json()
    assert sale["total_amount"] == pytest.approx(2000.0)
    assert sale["profit"] == pytest.approx(700.0)

    paid = client.post(f"/api/v1/sales/{sale_id}/payments", json={"amount": 500, "method": "cash"})
    assert paid.status_code == 201
    assert paid.json()["payment_status"] == "partial"
    assert client.post(f"/api/v1/sales/{sale_id}/approve").json()["status"] == "approved"

    pending = client.get("/api/v1/notifications").json()
    assert len(pending) == 5
    sent = client.post(f"/api/v1/notifications/{pending[0]['id']}/sent")
    assert sent.json()["status"] == "sent"
    assert len(client.get("/api/v1/notifications?status=all").json()) == 5

    dashboard = client.get("/api/v1/reports/dashboard").json()
    assert dashboard["sales_revenue"] == pytest.approx(2000.0)
    assert dashboard["sales_collected"] == pytest.approx(500.0)


def test_availability_and_low_stock(client):
    foam, _ = _seed(client, foam_quantity=3)

    response = client.post(
        "/api/v1/inventory/availability",
        json={
            "quantity": 2,
            "bill_of_materials": [
                {"material_id": foam["id"], "quantity_per_unit": 2},
                {"material_name": "Tassels", "quantity_per_unit": 1},
            ],
        },
    )

    body = response.json()
    assert body["sufficient"] is False
    assert body["per_line"][0]["shortage"] == pytest.approx(1.0)
    assert [line["material_name"] for line in body["warnings"]] == ["Tassels"]
    low = client.get("/api/v1/inventory/materials/low-stock").json()
    assert [m["name"] for m in low] == ["Foam"]


def test_production_jobs_api(client):
    foam, _ = _seed(client)
    job = client.post(
        "/api/v1/productions",
        json={"product_name": "Ottoman", "quantity": 2, "bill_of_materials": [{"material_id": foam["id"], "quantity_per_unit": 1}]},
    )
    assert job.status_code == 201

    done = client.post(f"/api/v1/productions/{job.json()['id']}/complete")

    assert done.json()["status"] == "completed"
    assert client.get("/api/v1/inventory/sofa-models").json()[0]["stock_quantity"] == 2


def test_api_key_is_enforced_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret")

    assert client.get("/api/v1/customers").status_code == 401
    assert client.get("/api/v1/customers", headers={"X-API-Key": "wrong"}).status_code == 401
    ok = client.get("/api/v1/customers", headers={"X-API-Key": "secret"})
    assert ok.status_code == 200
    assert ok.json() == []
