from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import InvalidTransition, ValidationError
from ..core.statuses import PaymentStatus, SaleApproval, SaleSource
from ..crud.store import EntityStore, utcnow
from ..models.sale import Sale
from ..schemas.sale import ManualSaleCreate, PaymentIn
from .costing import round_money, to_decimal
from .generators import make_number
from .order_workflow import pydantic_error_details
from .stock_ledger import StockLedger

logger = logging.getLogger("sofa_factory.sales")


def payment_status_for(total: Any, paid: Any) -> str:
    total_d = to_decimal(total)
    paid_d = to_decimal(paid)
    if paid_d <= 0:
        return PaymentStatus.UNPAID.value
    if paid_d >= total_d:
        return PaymentStatus.PAID.value
    return PaymentStatus.PARTIAL.value


class SalesLedger:
    """Manual sales, payments and the approve/reject step for every sale."""

    def __init__(self, store: EntityStore, *, ledger: StockLedger | None = None) -> None:
        self.store = store
        self.ledger = ledger or StockLedger(store)

    def list_sales(self, status: str | None = None) -> list[Sale]:
        if status is not None and status not in {s.value for s in SaleApproval}:
            raise ValidationError(f"unknown sale status: {status}")
        return self.store.get_all("sales", "status", status)

    def get_sale(self, sale_id: int) -> Sale:
        return self.store.require("sales", sale_id)

    def record_manual_sale(self, payload: ManualSaleCreate | Mapping[str, Any]) -> Sale:
        if not isinstance(payload, ManualSaleCreate):
            try:
                payload = ManualSaleCreate.model_validate(dict(payload))
            except PydanticValidationError as exc:
                raise ValidationError("invalid sale", pydantic_error_details(exc)) from exc

        customer = self.store.require("customers", payload.customer_id)
        model = self.store.require("sofa_models", payload.sofa_model_id)
        unit_price = model.selling_price if payload.unit_price is None else payload.unit_price
        subtotal = to_decimal(unit_price) * payload.quantity
        discount = to_decimal(payload.discount)
        if discount > subtotal:
            raise ValidationError("discount cannot exceed the sale subtotal")
        total = round_money(subtotal - discount)
        quantity = payload.quantity
        production_cost = round_money(to_decimal(model.total_cost) * quantity)

        sale = self.store.add(
            "sales",
            {
                "sale_number": make_number("SALE"),
                "source": SaleSource.MANUAL.value,
                "customer_id": customer.id,
                "customer_name": customer.name,
                "sofa_model_id": model.id,
                "product_name": model.name,
                "quantity": quantity,
                "unit_price": round_money(unit_price),
                "discount": round_money(discount),
                "total_amount": total,
                "paid_amount": 0.0,
                "due_amount": total,
                "status": SaleApproval.PENDING_APPROVAL.value,
                "payment_status": PaymentStatus.UNPAID.value,
                "material_cost": round_money(to_decimal(model.material_cost) * quantity),
                "labour_cost": round_money(to_decimal(model.labour_cost) * quantity),
                "other_cost": round_money(to_decimal(model.other_cost) * quantity),
                "total_production_cost": production_cost,
                "profit": round_money(to_decimal(total) - to_decimal(production_cost)),
                "notes": payload.notes,
            },
        )
        logger.info(
            "sale.recorded",
            extra={"extra_data": {"sale_id": sale.id, "sale_number": sale.sale_number, "total": total}},
        )
        return sale

    def record_payment(self, sale_id: int, payment: PaymentIn | Mapping[str, Any]) -> Sale:
        if not isinstance(payment, PaymentIn):
            try:
                payment = PaymentIn.model_validate(dict(payment))
            except PydanticValidationError as exc:
                raise ValidationError("invalid payment", pydantic_error_details(exc)) from exc

        sale = self.store.require("sales", sale_id)
        if sale.status == SaleApproval.REJECTED.value:
            raise ValidationError("payments cannot be recorded against a rejected sale")
        amount = to_decimal(payment.amount)
        due = to_decimal(sale.due_amount)
        if amount > due:
            raise ValidationError(
                f"payment of {round_money(amount)} exceeds the amount due ({round_money(due)})",
                {"amount": round_money(amount), "due_amount": round_money(due)},
            )

        paid = to_decimal(sale.paid_amount) + amount
        with self.store.transaction():
            self.store.add(
                "sale_payments",
                {
                    "sale_id": sale.id,
                    "amount": round_money(amount),
                    "method": payment.method,
                    "note": payment.note,
                    "paid_at": utcnow(),
                },
            )
            self.store.update(
                "sales",
                sale.id,
                {
                    "paid_amount": round_money(paid),
                    "due_amount": round_money(max(Decimal("0"), to_decimal(sale.total_amount) - paid)),
                    "payment_status": payment_status_for(sale.total_amount, paid),
                },
            )
        logger.info(
            "sale.payment_recorded",
            extra={"extra_data": {"sale_id": sale.id, "amount": round_money(amount)}},
        )
        return self.store.require("sales", sale.id)

    def _require_pending(self, sale: Sale, action: str) -> None:
        if sale.status != SaleApproval.PENDING_APPROVAL.value:
            raise InvalidTransition(sale.status, action, [])

    def approve_sale(self, sale_id: int) -> Sale:
        """Approve a pending sale; manual sales take their units out of finished stock."""

        sale = self.store.require("sales", sale_id)
        self._require_pending(sale, "approve")
        with self.store.transaction():
            if sale.source == SaleSource.MANUAL.value and sale.sofa_model_id is not None:
                self.ledger.debit_finished_goods(sale.sofa_model_id, sale.quantity)
            self.store.update(
                "sales",
                sale.id,
                {"status": SaleApproval.APPROVED.value, "approved_at": utcnow()},
            )
        logger.info("sale.approved", extra={"extra_data": {"sale_id": sale.id, "source": sale.source}})
        return self.store.require("sales", sale.id)

    def reject_sale(self, sale_id: int, reason: str | None = None) -> Sale:
        sale = self.store.require("sales", sale_id)
        self._require_pending(sale, "reject")
        sale = self.store.update(
            "sales",
            sale.id,
            {"status": SaleApproval.REJECTED.value, "rejection_reason": reason},
        )
        logger.info("sale.rejected", extra={"extra_data": {"sale_id": sale.id, "reason": reason}})
        return sale


__all__ = ["SalesLedger", "payment_status_for"]
