"""Shared status constants and the order transition table.

Every screen, router and service imports order statuses from here so labels,
colours and legal next steps are defined exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OrderKind(str, Enum):
    STOCK = "stock"
    CUSTOMER = "customer"


class OrderStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    IN_PRODUCTION = "in_production"
    COMPLETED = "completed"
    READY_FOR_DELIVERY = "ready_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderEvent(str, Enum):
    APPROVE = "approve"
    CANCEL = "cancel"
    START_PRODUCTION = "start_production"
    COMPLETE_PRODUCTION = "complete_production"
    MARK_READY_FOR_DELIVERY = "mark_ready_for_delivery"
    CONFIRM_DELIVERY = "confirm_delivery"


@dataclass(frozen=True)
class StatusInfo:
    label: str
    color: str
    message: str


# ``message`` is the customer-facing notification text; ``{customer}`` and
# ``{order}`` are filled in by the notification service.
ORDER_STATUS_INFO: dict[OrderStatus, StatusInfo] = {
    OrderStatus.PENDING_APPROVAL: StatusInfo(
        "Pending Approval",
        "yellow",
        "Your order #{order} has been received and is awaiting approval. We will notify you when production begins.",
    ),
    OrderStatus.APPROVED: StatusInfo(
        "Approved",
        "blue",
        "Great news, {customer}! Your order #{order} has been approved and will enter production soon.",
    ),
    OrderStatus.IN_PRODUCTION: StatusInfo(
        "In Production",
        "purple",
        "Production has started! Your order #{order} is now being crafted.",
    ),
    OrderStatus.COMPLETED: StatusInfo(
        "Completed",
        "green",
        "Your order #{order} production is complete! We will prepare it for delivery soon.",
    ),
    OrderStatus.READY_FOR_DELIVERY: StatusInfo(
        "Ready for Delivery",
        "orange",
        "Congratulations, {customer}! Your order #{order} is ready for delivery. Please contact us to arrange delivery.",
    ),
    OrderStatus.DELIVERED: StatusInfo(
        "Delivered",
        "emerald",
        "Your order #{order} has been delivered successfully. Thank you for choosing us!",
    ),
    OrderStatus.CANCELLED: StatusInfo(
        "Cancelled",
        "red",
        "Your order #{order} has been cancelled. Please contact us if you have any questions.",
    ),
}


@dataclass(frozen=True)
class Transition:
    source: OrderStatus
    event: OrderEvent
    target: OrderStatus
    kinds: frozenset[OrderKind] = frozenset(OrderKind)


TRANSITIONS: tuple[Transition, ...] = (
    Transition(OrderStatus.PENDING_APPROVAL, OrderEvent.APPROVE, OrderStatus.APPROVED),
    Transition(OrderStatus.PENDING_APPROVAL, OrderEvent.CANCEL, OrderStatus.CANCELLED),
    Transition(OrderStatus.APPROVED, OrderEvent.START_PRODUCTION, OrderStatus.IN_PRODUCTION),
    Transition(OrderStatus.APPROVED, OrderEvent.CANCEL, OrderStatus.CANCELLED),
    Transition(
        OrderStatus.IN_PRODUCTION,
        OrderEvent.COMPLETE_PRODUCTION,
        OrderStatus.COMPLETED,
        frozenset({OrderKind.STOCK}),
    ),
    Transition(
        OrderStatus.IN_PRODUCTION,
        OrderEvent.MARK_READY_FOR_DELIVERY,
        OrderStatus.READY_FOR_DELIVERY,
        frozenset({OrderKind.CUSTOMER}),
    ),
    Transition(
        OrderStatus.READY_FOR_DELIVERY,
        OrderEvent.CONFIRM_DELIVERY,
        OrderStatus.DELIVERED,
        frozenset({OrderKind.CUSTOMER}),
    ),
)

_TRANSITION_INDEX = {(t.source, t.event): t for t in TRANSITIONS}


def find_transition(status: str, event: OrderEvent, kind: str) -> Transition | None:
    """Return the legal transition for ``status``/``event``/``kind`` or ``None``."""

    try:
        current = OrderStatus(status)
        order_kind = OrderKind(kind)
    except ValueError:
        return None
    transition = _TRANSITION_INDEX.get((current, event))
    if transition is None or order_kind not in transition.kinds:
        return None
    return transition


def allowed_events(status: str, kind: str) -> list[OrderEvent]:
    return [t.event for t in TRANSITIONS if find_transition(status, t.event, kind) is t]


def status_label(status: str) -> str:
    try:
        return ORDER_STATUS_INFO[OrderStatus(status)].label
    except ValueError:
        return status


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class SaleApproval(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class SaleSource(str, Enum):
    ORDER = "order"
    MANUAL = "manual"


class ProductionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


__all__ = [
    "NotificationStatus",
    "ORDER_STATUS_INFO",
    "OrderEvent",
    "OrderKind",
    "OrderStatus",
    "PaymentStatus",
    "ProductionStatus",
    "SaleApproval",
    "SaleSource",
    "StatusInfo",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "Transition",
    "allowed_events",
    "find_transition",
    "status_label",
]
