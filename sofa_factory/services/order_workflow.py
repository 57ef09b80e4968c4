"""The order production-and-inventory workflow.

An order moves ``pending_approval -> approved -> in_production`` and then
either ``completed`` (stock orders) or ``ready_for_delivery -> delivered``
(customer orders). ``cancelled`` is reachable before production starts. The
legal moves live in ``core.statuses.TRANSITIONS``.

Each transition runs inside one store transaction. Within it the writes are
issued in a fixed order:

1. stock / material changes (through ``StockLedger``),
2. the derived record (finished product or sale),
3. the order's new status and its history entry, last.

If the backend ever loses multi-table atomicity, a crash before step 3 leaves
the order in its previous status so the transition can simply be re-run.

Transitions return a ``TransitionResult`` instead of raising for expected
failures (insufficient stock, wrong status, missing record).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Mapping, TypeVar

from pydantic import ValidationError as PydanticValidationError

from ..core.context import SYSTEM_CONTEXT, SessionContext, actor_name
from ..core.exceptions import FactoryError, InsufficientStock, InvalidTransition, ValidationError
from ..core.statuses import OrderEvent, OrderKind, OrderStatus, find_transition
from ..crud.store import EntityStore, utcnow
from ..models.finished_product import FinishedProduct
from ..models.order import Order
from ..models.sale import Sale
from ..schemas.order import OrderCreate
from .costing import compute_order_costs, round_money, to_decimal, with_totals
from .generators import CompletionData, build_finished_product, build_sale_record, make_number
from .notifications import Notifier, NullNotifier
from .stock_ledger import LineAvailability, StockLedger

logger = logging.getLogger("sofa_factory.orders")

T = TypeVar("T")


@dataclass(frozen=True)
class TransitionResult(Generic[T]):
    value: T | None = None
    error: FactoryError | None = None
    warnings: tuple[LineAvailability, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass
class _Outcome:
    value: Any = None
    changes: dict[str, Any] = field(default_factory=dict)
    warnings: tuple[LineAvailability, ...] = ()


def pydantic_error_details(exc: PydanticValidationError) -> dict[str, Any]:
    return {
        "errors": [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
    }


class OrderWorkflow:
    def __init__(
        self,
        store: EntityStore,
        *,
        ledger: StockLedger | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger or StockLedger(store)
        self.notifier = notifier or NullNotifier()

    # -- queries -------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        return self.store.require("orders", order_id)

    def list_orders(self, status: str | None = None) -> list[Order]:
        if status is not None:
            try:
                OrderStatus(status)
            except ValueError:
                raise ValidationError(f"unknown order status: {status}") from None
        return self.store.get_all("orders", "status", status)

    @staticmethod
    def next_actions(order: Order) -> list[str]:
        return order.next_actions

    # -- creation ------------------------------------------------------------

    @staticmethod
    def _coerce(spec: OrderCreate | Mapping[str, Any]) -> OrderCreate:
        if isinstance(spec, OrderCreate):
            return spec
        try:
            return OrderCreate.model_validate(dict(spec))
        except PydanticValidationError as exc:
            raise ValidationError("invalid order", pydantic_error_details(exc)) from exc

    def _resolve_bom(self, spec: OrderCreate) -> list[dict[str, Any]]:
        lines = []
        for line in spec.bill_of_materials:
            data = line.model_dump()
            if line.material_id is not None:
                material = self.store.require("raw_materials", line.material_id)
                data["material_name"] = (data.get("material_name") or "").strip() or material.name
                data["unit"] = data.get("unit") or material.unit
                if data.get("unit_cost") is None:
                    data["unit_cost"] = float(material.cost_per_unit or 0.0)
            else:
                data["material_name"] = data["material_name"].strip()
                data["unit"] = data.get("unit") or ""
                data["unit_cost"] = float(data.get("unit_cost") or 0.0)
            data["is_custom"] = line.material_id is None
            lines.append(data)
        return with_totals(lines, spec.quantity)

    def create_order(
        self,
        spec: OrderCreate | Mapping[str, Any],
        *,
        actor: SessionContext | None = None,
    ) -> Order:
        """Validate, cost and persist a new order in ``pending_approval``.

        Raises ``ValidationError`` or ``NotFound`` before anything is written.
        """

        spec = self._coerce(spec)
        customer = None
        if spec.customer_id is not None:
            customer = self.store.require("customers", spec.customer_id)
        if spec.sofa_model_id is not None:
            self.store.require("sofa_models", spec.sofa_model_id)
        if spec.order_kind == OrderKind.STOCK and customer is not None:
            raise ValidationError("stock orders cannot reference a customer")

        bom = self._resolve_bom(spec)
        labour = [line.model_dump() for line in spec.labour_costs]
        other = [line.model_dump() for line in spec.other_costs]
        costs = compute_order_costs(bom, labour, other, spec.quantity)
        now = utcnow()

        with self.store.transaction():
            order = self.store.add(
                "orders",
                {
                    "order_number": make_number("ORD"),
                    "order_kind": spec.order_kind.value,
                    "customer_id": spec.customer_id,
                    "customer_name": customer.name if customer is not None else None,
                    "sofa_model_id": spec.sofa_model_id,
                    "product_name": spec.product_name,
                    "quantity": spec.quantity,
                    "unit_price": round_money(spec.unit_price),
                    "total_amount": round_money(to_decimal(spec.unit_price) * spec.quantity),
                    "due_date": spec.due_date,
                    "notes": spec.notes,
                    "bill_of_materials": bom,
                    "labour_costs": labour,
                    "other_costs": other,
                    "status": OrderStatus.PENDING_APPROVAL.value,
                    "created_at": now,
                    "updated_at": now,
                    **costs.as_order_fields(),
                },
            )
            self._append_history(order, OrderStatus.PENDING_APPROVAL.value, "Order created", actor, now)

        logger.info(
            "order.created",
            extra={
                "extra_data": {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "kind": order.order_kind,
                    "quantity": order.quantity,
                    "total_production_cost": order.total_production_cost,
                }
            },
        )
        self._notify(order, OrderStatus.PENDING_APPROVAL.value)
        return order

    # -- transitions ---------------------------------------------------------

    def approve(self, order_id: int, *, note: str | None = None, actor: SessionContext | None = None) -> TransitionResult[Order]:
        return self._transition(order_id, OrderEvent.APPROVE, lambda order: _Outcome(value=order), note, actor)

    def cancel(self, order_id: int, *, note: str | None = None, actor: SessionContext | None = None) -> TransitionResult[Order]:
        return self._transition(order_id, OrderEvent.CANCEL, lambda order: _Outcome(value=order), note, actor)

    def start_production(
        self,
        order_id: int,
        *,
        note: str | None = None,
        actor: SessionContext | None = None,
    ) -> TransitionResult[Order]:
        """Deduct every inventory-backed BOM line, or nothing at all.

        Custom (to-purchase) lines never block; they come back as warnings.
        """

        def apply(order: Order) -> _Outcome:
            report = self.ledger.check_availability(order.bill_of_materials or [], order.quantity)
            if not report.sufficient:
                raise InsufficientStock([line.as_dict() for line in report.shortages])
            self.ledger.deduct(order.bill_of_materials or [], order.quantity)
            return _Outcome(
                value=order,
                changes={"production_started_at": utcnow()},
                warnings=tuple(report.warnings),
            )

        return self._transition(order_id, OrderEvent.START_PRODUCTION, apply, note, actor)

    def complete_stock_order(
        self,
        order_id: int,
        selling_price: float,
        photo: str | None = None,
        *,
        note: str | None = None,
        actor: SessionContext | None = None,
    ) -> TransitionResult[FinishedProduct]:
        def apply(order: Order) -> _Outcome:
            if selling_price is None or to_decimal(selling_price) <= 0:
                raise ValidationError("selling_price must be greater than zero")
            completion = CompletionData(selling_price=selling_price, photo=photo)
            model = self.ledger.credit(
                order.quantity,
                sofa_model_id=order.sofa_model_id,
                name=order.product_name,
                fields={
                    "material_cost": round_money(order.material_cost_per_unit),
                    "labour_cost": round_money(order.labour_cost_per_unit),
                    "other_cost": round_money(order.other_cost_per_unit),
                    "total_cost": round_money(order.production_cost_per_unit),
                    "selling_price": round_money(selling_price),
                },
            )
            payload = build_finished_product(order, completion)
            payload["sofa_model_id"] = model.id
            product = self.store.add("finished_products", payload)
            return _Outcome(
                value=product,
                changes={
                    "completed_at": completion.timestamp,
                    "sofa_model_id": model.id,
                    "finished_product_id": product.id,
                },
            )

        return self._transition(order_id, OrderEvent.COMPLETE_PRODUCTION, apply, note, actor)

    def mark_ready_for_delivery(
        self,
        order_id: int,
        *,
        note: str | None = None,
        actor: SessionContext | None = None,
    ) -> TransitionResult[Order]:
        return self._transition(
            order_id,
            OrderEvent.MARK_READY_FOR_DELIVERY,
            lambda order: _Outcome(value=order, changes={"completed_at": utcnow()}),
            note,
            actor,
        )

    def confirm_delivery(
        self,
        order_id: int,
        delivery_date: str | None = None,
        notes: str | None = None,
        photo: str | None = None,
        *,
        actor: SessionContext | None = None,
    ) -> TransitionResult[Sale]:
        def apply(order: Order) -> _Outcome:
            completion = CompletionData(delivery_date=delivery_date, notes=notes, photo=photo)
            sale = self.store.add("sales", build_sale_record(order, completion))
            return _Outcome(
                value=sale,
                changes={
                    "delivered_at": completion.timestamp,
                    "delivery_date": delivery_date or completion.timestamp[:10],
                    "delivery_notes": notes,
                    "delivery_photo": photo,
                    "sale_id": sale.id,
                },
            )

        return self._transition(order_id, OrderEvent.CONFIRM_DELIVERY, apply, notes, actor)

    # -- internals -----------------------------------------------------------

    def _append_history(
        self,
        order: Order,
        status: str,
        note: str | None,
        actor: SessionContext | None,
        timestamp: str | None = None,
    ) -> None:
        self.store.add(
            "order_status_history",
            {
                "order_id": order.id,
                "status": status,
                "note": note,
                "actor": actor_name(actor or SYSTEM_CONTEXT),
                "timestamp": timestamp or utcnow(),
            },
        )

    def _transition(
        self,
        order_id: int,
        event: OrderEvent,
        apply: Callable[[Order], _Outcome],
        note: str | None,
        actor: SessionContext | None,
    ) -> TransitionResult[Any]:
        try:
            order = self.store.require("orders", order_id)
            previous = order.status
            transition = find_transition(order.status, event, order.order_kind)
            if transition is None:
                raise InvalidTransition(order.status, event.value, self.next_actions(order))
            with self.store.transaction():
                outcome = apply(order)
                changes = dict(outcome.changes)
                changes["status"] = transition.target.value
                self.store.update("orders", order.id, changes)
                self._append_history(order, transition.target.value, note, actor)
        except FactoryError as exc:
            logger.info(
                "order.rejected",
                extra={"extra_data": {"order_id": order_id, "event": event.value, "error": exc.code}},
            )
            return TransitionResult(error=exc)

        logger.info(
            "order.transition",
            extra={
                "extra_data": {
                    "order_id": order_id,
                    "event": event.value,
                    "from": previous,
                    "to": transition.target.value,
                    "actor": actor_name(actor or SYSTEM_CONTEXT),
                }
            },
        )
        self._notify(order, transition.target.value)
        return TransitionResult(value=outcome.value, warnings=outcome.warnings)

    def _notify(self, order: Order, status: str) -> None:
        try:
            self.notifier.order_status_changed(order, status)
        except Exception:
            logger.exception(
                "notification.failed",
                extra={"extra_data": {"order_id": order.id, "status": status}},
            )


__all__ = ["OrderWorkflow", "TransitionResult", "pydantic_error_details"]
