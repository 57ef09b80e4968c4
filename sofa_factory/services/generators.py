"""Pure builders for records derived from an order.

Neither function touches the database or mutates its inputs; they return the
payload dict that the workflow hands to the entity store. Timestamps and
record numbers come from ``CompletionData`` when given, which keeps tests
deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from ..core.statuses import PaymentStatus, SaleApproval, SaleSource
from ..crud.store import utcnow
from .costing import round_money, to_decimal


def make_number(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:6].upper()}"


@dataclass(frozen=True)
class CompletionData:
    """What the caller supplies when production finishes or goods are delivered."""

    selling_price: float | None = None
    photo: str | None = None
    delivery_date: str | None = None
    notes: str | None = None
    timestamp: str = field(default_factory=utcnow)
    number: str | None = None


def build_finished_product(order: Any, completion: CompletionData) -> dict[str, Any]:
    quantity = int(order.quantity)
    selling_price = round_money(completion.selling_price)
    unit_cost = round_money(
        to_decimal(order.material_cost_per_unit)
        + to_decimal(order.labour_cost_per_unit)
        + to_decimal(order.other_cost_per_unit)
    )
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "sofa_model_id": order.sofa_model_id,
        "product_name": order.product_name,
        "quantity": quantity,
        "selling_price": selling_price,
        "total_value": round_money(to_decimal(selling_price) * quantity),
        "material_cost": round_money(order.material_cost_per_unit),
        "labour_cost": round_money(order.labour_cost_per_unit),
        "other_cost": round_money(order.other_cost_per_unit),
        "unit_cost": unit_cost,
        "total_cost": round_money(order.total_production_cost),
        "photo": completion.photo,
        "completed_at": completion.timestamp,
    }


def build_sale_record(order: Any, completion: CompletionData) -> dict[str, Any]:
    quantity = int(order.quantity)
    total_amount = round_money(to_decimal(order.unit_price) * quantity)
    total_cost = round_money(order.total_production_cost)
    return {
        "sale_number": completion.number or make_number("SALE"),
        "source": SaleSource.ORDER.value,
        "order_id": order.id,
        "customer_id": order.customer_id,
        "customer_name": order.customer_name,
        "sofa_model_id": order.sofa_model_id,
        "product_name": order.product_name,
        "quantity": quantity,
        "unit_price": round_money(order.unit_price),
        "discount": 0.0,
        "total_amount": total_amount,
        "paid_amount": 0.0,
        "due_amount": total_amount,
        "status": SaleApproval.PENDING_APPROVAL.value,
        "payment_status": PaymentStatus.UNPAID.value,
        "material_cost": round_money(to_decimal(order.material_cost_per_unit) * quantity),
        "labour_cost": round_money(to_decimal(order.labour_cost_per_unit) * quantity),
        "other_cost": round_money(to_decimal(order.other_cost_per_unit) * quantity),
        "total_production_cost": total_cost,
        "profit": round_money(to_decimal(total_amount) - to_decimal(total_cost)),
        "delivery_date": completion.delivery_date,
        "delivery_notes": completion.notes,
        "delivery_photo": completion.photo,
        "notes": f"Auto-generated from order {order.order_number}",
    }


__all__ = ["CompletionData", "build_finished_product", "build_sale_record", "make_number"]
