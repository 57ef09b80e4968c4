"""Best-effort customer notifications.

The workflow informs a ``Notifier`` after a transition has been committed.
``QueueNotifier`` renders the customer message for the new status and parks
it in the notification queue; the UI picks pending entries up and sends them.
Nothing here may undo a transition, so callers log and swallow failures.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ..core.config import settings
from ..core.exceptions import ValidationError
from ..core.statuses import ORDER_STATUS_INFO, NotificationStatus, OrderKind, OrderStatus
from ..crud.store import EntityStore, utcnow
from ..models.notification import Notification

logger = logging.getLogger("sofa_factory.notifications")

PRODUCTION_MESSAGES = {
    "production_started": "Production has started for your order #{order} ({product}). Expected completion: {expected}.",
    "production_completed": "Production of your order #{order} ({product}) is complete! We will prepare it for delivery soon.",
}


class Notifier(Protocol):
    def order_status_changed(self, order: Any, status: str) -> Notification | None: ...

    def production_event(self, production: Any, event: str) -> Notification | None: ...


class NullNotifier:
    def order_status_changed(self, order: Any, status: str) -> None:
        return None

    def production_event(self, production: Any, event: str) -> None:
        return None


def render_status_message(status: str, *, customer_name: str | None, order_number: str, company_name: str) -> str:
    try:
        body = ORDER_STATUS_INFO[OrderStatus(status)].message
    except ValueError:
        body = 'The status of your order #{order} has been updated to "{status}".'
    body = body.format(customer=customer_name or "Customer", order=order_number, status=status)
    return f"{body}\n\n- {company_name}"


class QueueNotifier:
    def __init__(self, store: EntityStore, *, enabled: bool | None = None, company_name: str | None = None) -> None:
        self.store = store
        self.enabled = settings.NOTIFICATIONS_ENABLED if enabled is None else enabled
        self.company_name = company_name or settings.COMPANY_NAME

    def _customer_for(self, order: Any):
        if order is None or order.order_kind != OrderKind.CUSTOMER.value or order.customer_id is None:
            return None
        return self.store.get("customers", order.customer_id)

    def _queue(self, kind: str, customer: Any, message: str, related_type: str, related_id: int) -> Notification:
        notification = self.store.add(
            "notification_queue",
            {
                "type": kind,
                "recipient_name": customer.name,
                "recipient_phone": customer.phone,
                "message": message,
                "related_type": related_type,
                "related_id": related_id,
                "status": NotificationStatus.PENDING.value,
            },
        )
        logger.info(
            "notification.queued",
            extra={"extra_data": {"type": kind, "related_type": related_type, "related_id": related_id}},
        )
        return notification

    def order_status_changed(self, order: Any, status: str) -> Notification | None:
        if not self.enabled:
            return None
        customer = self._customer_for(order)
        if customer is None:
            return None
        message = render_status_message(
            status,
            customer_name=customer.name,
            order_number=order.order_number,
            company_name=self.company_name,
        )
        return self._queue("order_status", customer, message, "order", order.id)

    def production_event(self, production: Any, event: str) -> Notification | None:
        if not self.enabled or production.order_id is None or event not in PRODUCTION_MESSAGES:
            return None
        order = self.store.get("orders", production.order_id)
        customer = self._customer_for(order)
        if customer is None:
            return None
        message = PRODUCTION_MESSAGES[event].format(
            order=order.order_number,
            product=production.product_name,
            expected=(production.estimated_completion_date or "soon")[:10],
        )
        return self._queue(event, customer, f"{message}\n\n- {self.company_name}", "production", production.id)


def list_notifications(store: EntityStore, status: str | None = None) -> list[Notification]:
    if status is not None and status not in {s.value for s in NotificationStatus}:
        raise ValidationError(f"unknown notification status: {status}")
    return store.get_all("notification_queue", "status", status)


def mark_sent(store: EntityStore, notification_id: int) -> Notification:
    return store.update(
        "notification_queue",
        notification_id,
        {"status": NotificationStatus.SENT.value, "sent_at": utcnow(), "error": None},
    )


def mark_failed(store: EntityStore, notification_id: int, error: str | None = None) -> Notification:
    return store.update(
        "notification_queue",
        notification_id,
        {"status": NotificationStatus.FAILED.value, "error": error or "delivery failed"},
    )


__all__ = [
    "Notifier",
    "NullNotifier",
    "QueueNotifier",
    "list_notifications",
    "mark_failed",
    "mark_sent",
    "render_status_message",
]
