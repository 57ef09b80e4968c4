from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.statuses import TERMINAL_STATUSES, OrderStatus, SaleApproval, status_label
from ..models.inventory import RawMaterial, SofaModel
from ..models.order import Order
from ..models.sale import Sale
from .costing import round_money, to_decimal


def calculate_dashboard_metrics(db: Session) -> Dict[str, Any]:
    """Aggregate order, sales and stock figures for the dashboard."""

    orders = db.execute(select(Order)).scalars().all()
    sales = db.execute(select(Sale)).scalars().all()
    materials = db.execute(select(RawMaterial).order_by(RawMaterial.id)).scalars().all()
    models = db.execute(select(SofaModel).order_by(SofaModel.id)).scalars().all()

    status_counts = Counter(order.status for order in orders)
    orders_by_status = {
        status.value: {"label": status_label(status.value), "count": status_counts.get(status.value, 0)}
        for status in OrderStatus
    }
    terminal = {status.value for status in TERMINAL_STATUSES}
    active_orders = sum(1 for order in orders if order.status not in terminal)

    revenue = Decimal("0")
    collected = Decimal("0")
    receivables = Decimal("0")
    gross_profit = Decimal("0")
    pending_sales = 0
    for sale in sales:
        if sale.status == SaleApproval.REJECTED.value:
            continue
        if sale.status == SaleApproval.PENDING_APPROVAL.value:
            pending_sales += 1
        revenue += to_decimal(sale.total_amount)
        collected += to_decimal(sale.paid_amount)
        receivables += to_decimal(sale.due_amount)
        gross_profit += to_decimal(sale.profit)

    low_stock = [
        {
            "id": material.id,
            "name": material.name,
            "quantity": material.quantity,
            "min_stock": material.min_stock,
            "unit": material.unit,
            "state": material.stock_state,
        }
        for material in materials
        if material.is_low_stock
    ]

    stock_units = sum(int(model.stock_quantity or 0) for model in models)
    stock_value = sum(
        (to_decimal(model.selling_price) * int(model.stock_quantity or 0) for model in models),
        Decimal("0"),
    )

    return {
        "orders_total": len(orders),
        "orders_active": active_orders,
        "orders_by_status": orders_by_status,
        "sales_total": len([sale for sale in sales if sale.status != SaleApproval.REJECTED.value]),
        "sales_pending_approval": pending_sales,
        "sales_revenue": round_money(revenue),
        "sales_collected": round_money(collected),
        "sales_receivables": round_money(receivables),
        "gross_profit": round_money(gross_profit),
        "low_stock_materials": low_stock,
        "finished_stock_units": stock_units,
        "finished_stock_value": round_money(stock_value),
    }


__all__ = ["calculate_dashboard_metrics"]
