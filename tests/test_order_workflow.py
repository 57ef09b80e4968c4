import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from sofa_factory.core.context import SessionContext
from sofa_factory.core.exceptions import InsufficientStock, InvalidTransition, NotFound, StorageFailure, ValidationError
from sofa_factory.core.statuses import OrderStatus
from sofa_factory.crud.store import EntityStore
from sofa_factory.db.base import Base
from sofa_factory.services.notifications import QueueNotifier
from sofa_factory.services.order_workflow import OrderWorkflow


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db_session):
    return EntityStore(db_session)


@pytest.fixture()
def workflow(store):
    return OrderWorkflow(store, notifier=QueueNotifier(store, enabled=True, company_name="Test Sofas"))


def _foam(store, quantity):
    return store.add(
        "raw_materials",
        {"name": "Foam", "unit": "kg", "quantity": quantity, "cost_per_unit": 100.0, "min_stock": 1.0},
    )


def _order_spec(foam, **overrides):
    spec = {
        "order_kind": "stock",
        "product_name": "Chesterfield",
        "quantity": 5,
        "bill_of_materials": [{"material_id": foam.id, "quantity_per_unit": 2}],
        "labour_costs": [{"description": "Upholstery", "cost_per_piece": 50}],
        "other_costs": [{"description": "Transport", "amount": 10}],
    }
    spec.update(overrides)
    return spec


def _customer_order(store, workflow, foam):
    customer = store.add("customers", {"name": "Asha", "phone": "+911234567890"})
    order = workflow.create_order(
        _order_spec(foam, order_kind="customer", customer_id=customer.id, unit_price=400)
    )
    return customer, order


def test_create_order_snapshots_costs(store, workflow):
    foam = _foam(store, 8)

    order = workflow.create_order(_order_spec(foam), actor=SessionContext(subject="tester"))

    assert order.status == OrderStatus.PENDING_APPROVAL.value
    assert order.material_cost_per_unit == pytest.approx(200.0)
    assert order.labour_cost_per_unit == pytest.approx(50.0)
    assert order.other_cost_per_unit == pytest.approx(10.0)
    assert order.total_production_cost == pytest.approx(1300.0)
    line = order.bill_of_materials[0]
    assert line["material_name"] == "Foam"
    assert line["unit_cost"] == pytest.approx(100.0)
    assert line["total_needed"] == pytest.approx(10.0)
    assert line["is_custom"] is False
    assert [entry.status for entry in order.status_history] == ["pending_approval"]
    assert order.status_history[0].actor == "tester"
    assert order.order_number.startswith("ORD-")


def test_create_order_validation_happens_before_writes(store, workflow):
    with pytest.raises(ValidationError):
        workflow.create_order({"product_name": "  ", "quantity": 1})
    with pytest.raises(ValidationError):
        workflow.create_order({"product_name": "Sofa", "quantity": 0})
    with pytest.raises(ValidationError):
        workflow.create_order({"order_kind": "customer", "product_name": "Sofa", "quantity": 1})
    with pytest.raises(NotFound):
        workflow.create_order(
            {
                "product_name": "Sofa",
                "quantity": 1,
                "bill_of_materials": [{"material_id": 999, "quantity_per_unit": 1}],
            }
        )

    assert store.get_all("orders") == []
    assert store.get_all("order_status_history") == []


def test_start_production_with_insufficient_stock_changes_nothing(store, workflow):
    foam = _foam(store, 8)
    order = workflow.create_order(_order_spec(foam))
    assert workflow.approve(order.id).ok

    result = workflow.start_production(order.id)

    assert not result.ok
    assert isinstance(result.error, InsufficientStock)
    assert result.error.lines[0]["material_name"] == "Foam"
    assert result.error.lines[0]["shortage"] == pytest.approx(2.0)
    assert "Foam short by 2" in result.error.message
    assert store.get("raw_materials", foam.id).quantity == pytest.approx(8.0)
    order = workflow.get_order(order.id)
    assert order.status == OrderStatus.APPROVED.value
    assert order.status_history[-1].status == order.status


def test_start_production_reports_every_short_line(store, workflow):
    foam = _foam(store, 1)
    fabric = store.add("raw_materials", {"name": "Fabric", "unit": "m", "quantity": 3, "cost_per_unit": 20})
    wood = store.add("raw_materials", {"name": "Wood", "unit": "pcs", "quantity": 100, "cost_per_unit": 5})
    order = workflow.create_order(
        _order_spec(
            foam,
            quantity=2,
            bill_of_materials=[
                {"material_id": foam.id, "quantity_per_unit": 1},
                {"material_id": fabric.id, "quantity_per_unit": 4},
                {"material_id": wood.id, "quantity_per_unit": 4},
            ],
        )
    )
    workflow.approve(order.id)

    result = workflow.start_production(order.id)

    assert [line["material_name"] for line in result.error.lines] == ["Foam", "Fabric"]
    assert store.get("raw_materials", wood.id).quantity == pytest.approx(100.0)


def test_start_production_deducts_stock(store, workflow):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)

    result = workflow.start_production(order.id)

    assert result.ok
    assert result.warnings == ()
    assert store.get("raw_materials", foam.id).quantity == pytest.approx(2.0)
    order = workflow.get_order(order.id)
    assert order.status == OrderStatus.IN_PRODUCTION.value
    assert order.production_started_at
    assert order.status_history[-1].status == OrderStatus.IN_PRODUCTION.value


def test_second_start_production_is_rejected_without_deducting(store, workflow):
    foam = _foam(store, 30)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    assert workflow.start_production(order.id).ok

    again = workflow.start_production(order.id)

    assert isinstance(again.error, InvalidTransition)
    assert again.error.details["status"] == OrderStatus.IN_PRODUCTION.value
    assert store.get("raw_materials", foam.id).quantity == pytest.approx(20.0)


def test_custom_lines_warn_but_do_not_block(store, workflow):
    foam = _foam(store, 12)
    order = workflow.create_order(
        _order_spec(
            foam,
            bill_of_materials=[
                {"material_id": foam.id, "quantity_per_unit": 2},
                {"material_name": "Velvet trim", "quantity_per_unit": 1, "unit": "m", "unit_cost": 30},
            ],
        )
    )
    assert order.material_cost_per_unit == pytest.approx(230.0)
    workflow.approve(order.id)

    result = workflow.start_production(order.id)

    assert result.ok
    assert [line.material_name for line in result.warnings] == ["Velvet trim"]
    assert result.warnings[0].is_custom


def test_complete_stock_order_credits_finished_stock(store, workflow):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    workflow.start_production(order.id)

    result = workflow.complete_stock_order(order.id, 500, photo="chesterfield.jpg")

    product = result.unwrap()
    assert product.order_id == order.id
    assert product.total_value == pytest.approx(2500.0)
    assert product.unit_cost == pytest.approx(260.0)
    assert product.total_cost == pytest.approx(1300.0)
    model = store.get("sofa_models", product.sofa_model_id)
    assert model.name == "Chesterfield"
    assert model.stock_quantity == 5
    assert model.selling_price == pytest.approx(500.0)
    assert len(store.get_all("finished_products", "order_id", order.id)) == 1
    order = workflow.get_order(order.id)
    assert order.status == OrderStatus.COMPLETED.value
    assert order.finished_product_id == product.id
    assert order.next_actions == []


def test_complete_stock_order_adds_to_existing_model(store, workflow):
    foam = _foam(store, 12)
    existing = store.add("sofa_models", {"name": "chesterfield", "stock_quantity": 3, "status": "active"})
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    workflow.start_production(order.id)

    product = workflow.complete_stock_order(order.id, 450).unwrap()

    assert product.sofa_model_id == existing.id
    assert store.get("sofa_models", existing.id).stock_quantity == 8
    assert len(store.get_all("sofa_models")) == 1


def test_complete_stock_order_requires_positive_price(store, workflow):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    workflow.start_production(order.id)

    result = workflow.complete_stock_order(order.id, 0)

    assert isinstance(result.error, ValidationError)
    assert workflow.get_order(order.id).status == OrderStatus.IN_PRODUCTION.value
    assert store.get_all("finished_products") == []
    assert store.get_all("sofa_models") == []


def test_stock_orders_cannot_be_delivered(store, workflow):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    workflow.start_production(order.id)

    assert isinstance(workflow.mark_ready_for_delivery(order.id).error, InvalidTransition)


def test_customer_order_delivery_creates_sale(store, workflow):
    foam = _foam(store, 12)
    customer, order = _customer_order(store, workflow, foam)
    workflow.approve(order.id)
    workflow.start_production(order.id)
    assert isinstance(workflow.complete_stock_order(order.id, 500).error, InvalidTransition)
    assert workflow.mark_ready_for_delivery(order.id).ok

    sale = workflow.confirm_delivery(order.id, "2024-05-01", "Left at door", "door.jpg").unwrap()

    assert sale.order_id == order.id
    assert sale.customer_id == customer.id
    assert sale.total_amount == pytest.approx(2000.0)
    assert sale.due_amount == pytest.approx(2000.0)
    assert sale.paid_amount == pytest.approx(0.0)
    assert sale.payment_status == "unpaid"
    assert sale.status == "pending_approval"
    assert sale.profit == pytest.approx(700.0)
    assert sale.material_cost == pytest.approx(1000.0)
    assert sale.notes == f"Auto-generated from order {order.order_number}"
    assert len(store.get_all("sales", "order_id", order.id)) == 1
    assert store.get_all("sofa_models") == []

    order = workflow.get_order(order.id)
    assert order.status == OrderStatus.DELIVERED.value
    assert order.sale_id == sale.id
    assert order.delivery_date == "2024-05-01"
    assert [entry.status for entry in order.status_history] == [
        "pending_approval",
        "approved",
        "in_production",
        "ready_for_delivery",
        "delivered",
    ]


def test_cancel_only_before_production(store, workflow):
    foam = _foam(store, 30)
    first = workflow.create_order(_order_spec(foam))
    assert workflow.cancel(first.id, note="Customer changed mind").ok
    assert workflow.get_order(first.id).status == OrderStatus.CANCELLED.value
    assert isinstance(workflow.approve(first.id).error, InvalidTransition)

    second = workflow.create_order(_order_spec(foam))
    workflow.approve(second.id)
    workflow.start_production(second.id)
    result = workflow.cancel(second.id)
    assert isinstance(result.error, InvalidTransition)
    assert result.error.details["allowed"] == ["complete_production"]


def test_missing_order_is_reported(workflow):
    result = workflow.approve(404)

    assert isinstance(result.error, NotFound)
    with pytest.raises(NotFound):
        result.unwrap()


def test_status_notifications_are_queued_for_customer_orders(store, workflow):
    foam = _foam(store, 12)
    _, order = _customer_order(store, workflow, foam)
    workflow.approve(order.id)

    queued = store.get_all("notification_queue")

    assert [n.type for n in queued] == ["order_status", "order_status"]
    assert "awaiting approval" in queued[0].message
    assert "Great news, Asha!" in queued[1].message
    assert queued[1].message.endswith("- Test Sofas")
    assert queued[1].recipient_phone == "+911234567890"


def test_notifier_failure_does_not_undo_transition(store):
    class BrokenNotifier:
        def order_status_changed(self, order, status):
            raise RuntimeError("gateway down")

        def production_event(self, production, event):
            raise RuntimeError("gateway down")

    workflow = OrderWorkflow(store, notifier=BrokenNotifier())
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))

    assert workflow.approve(order.id).ok
    assert workflow.get_order(order.id).status == OrderStatus.APPROVED.value


def test_list_orders_filters_by_status(store, workflow):
    foam = _foam(store, 12)
    first = workflow.create_order(_order_spec(foam))
    workflow.create_order(_order_spec(foam))
    workflow.approve(first.id)

    assert [o.id for o in workflow.list_orders("approved")] == [first.id]
    assert len(workflow.list_orders()) == 2
    with pytest.raises(ValidationError):
        workflow.list_orders("shipped")


def test_repeated_material_lines_are_checked_against_their_total(store, workflow, caplog):
    foam = _foam(store, 10)
    order = workflow.create_order(
        _order_spec(
            foam,
            quantity=1,
            bill_of_materials=[
                {"material_id": foam.id, "quantity_per_unit": 6},
                {"material_id": foam.id, "quantity_per_unit": 6},
            ],
        )
    )
    workflow.approve(order.id)

    with caplog.at_level("WARNING", logger="sofa_factory.stock"):
        result = workflow.start_production(order.id)

    assert isinstance(result.error, InsufficientStock)
    assert len(result.error.lines) == 1
    assert result.error.lines[0]["required"] == pytest.approx(12.0)
    assert result.error.lines[0]["shortage"] == pytest.approx(2.0)
    assert store.get("raw_materials", foam.id).quantity == pytest.approx(10.0)
    assert workflow.get_order(order.id).status == OrderStatus.APPROVED.value
    assert not any(record.getMessage() == "stock.clamped" for record in caplog.records)


def _fail_flush(monkeypatch, store, failing_call):
    original = store.db.flush
    calls = {"count": 0}

    def flaky_flush(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == failing_call:
            raise SQLAlchemyError("disk I/O error")
        return original(*args, **kwargs)

    monkeypatch.setattr(store.db, "flush", flaky_flush)


def test_storage_failure_during_start_production_leaves_no_partial_state(store, workflow, monkeypatch):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    # First flush writes the stock deduction, second the order status.
    _fail_flush(monkeypatch, store, 2)

    result = workflow.start_production(order.id)

    assert isinstance(result.error, StorageFailure)
    assert result.error.code == "storage_failure"
    assert store.get("raw_materials", foam.id).quantity == pytest.approx(12.0)
    order = workflow.get_order(order.id)
    assert order.status == OrderStatus.APPROVED.value
    assert order.status_history[-1].status == OrderStatus.APPROVED.value


def test_storage_failure_during_completion_leaves_no_partial_state(store, workflow, monkeypatch):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))
    workflow.approve(order.id)
    workflow.start_production(order.id)
    # Flushes: sofa model, finished product, then the order update fails.
    _fail_flush(monkeypatch, store, 3)

    result = workflow.complete_stock_order(order.id, 500)

    assert isinstance(result.error, StorageFailure)
    assert store.get_all("sofa_models") == []
    assert store.get_all("finished_products") == []
    assert workflow.get_order(order.id).status == OrderStatus.IN_PRODUCTION.value


def test_transition_log_names_system_actor_by_default(store, workflow, caplog):
    foam = _foam(store, 12)
    order = workflow.create_order(_order_spec(foam))

    with caplog.at_level("INFO", logger="sofa_factory.orders"):
        workflow.approve(order.id)

    record = next(r for r in caplog.records if r.getMessage() == "order.transition")
    assert record.extra_data["actor"] == "system"
    assert workflow.get_order(order.id).status_history[-1].actor == "system"
