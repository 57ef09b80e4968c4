"""Production jobs tracked independently from the order workflow.

A job consumes its materials when it starts, credits finished stock when it
completes, and puts the consumed materials back when it is cancelled.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..core.exceptions import InsufficientStock, InvalidTransition, ValidationError
from ..core.statuses import ProductionStatus
from ..crud.store import EntityStore, utcnow
from ..models.production import Production
from ..schemas.production import ProductionCreate
from .costing import with_totals
from .generators import make_number
from .notifications import Notifier, NullNotifier
from .order_workflow import pydantic_error_details
from .stock_ledger import StockLedger

logger = logging.getLogger("sofa_factory.production")

OPEN_STATUSES = {ProductionStatus.PENDING.value, ProductionStatus.IN_PROGRESS.value}


def estimated_completion(start: datetime, lead_days: int | None = None) -> str:
    days = settings.PRODUCTION_LEAD_DAYS if lead_days is None else lead_days
    return (start + timedelta(days=days)).isoformat(timespec="seconds").replace("+00:00", "Z")


class ProductionTracker:
    def __init__(
        self,
        store: EntityStore,
        *,
        ledger: StockLedger | None = None,
        notifier: Notifier | None = None,
        lead_days: int | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger or StockLedger(store)
        self.notifier = notifier or NullNotifier()
        self.lead_days = lead_days

    def list_jobs(self, status: str | None = None) -> list[Production]:
        if status is not None and status not in {s.value for s in ProductionStatus}:
            raise ValidationError(f"unknown production status: {status}")
        return self.store.get_all("productions", "status", status)

    def get_job(self, production_id: int) -> Production:
        return self.store.require("productions", production_id)

    def _resolve_bom(self, payload: ProductionCreate) -> list[dict[str, Any]]:
        lines = []
        for line in payload.bill_of_materials:
            data = line.model_dump()
            if line.material_id is not None:
                material = self.store.require("raw_materials", line.material_id)
                data["material_name"] = data.get("material_name") or material.name
                data["unit"] = data.get("unit") or material.unit
            lines.append(data)
        return with_totals(lines, payload.quantity)

    def start_job(self, payload: ProductionCreate | Mapping[str, Any]) -> Production:
        if not isinstance(payload, ProductionCreate):
            try:
                payload = ProductionCreate.model_validate(dict(payload))
            except PydanticValidationError as exc:
                raise ValidationError("invalid production job", pydantic_error_details(exc)) from exc

        if payload.order_id is not None:
            self.store.require("orders", payload.order_id)
        if payload.sofa_model_id is not None:
            self.store.require("sofa_models", payload.sofa_model_id)
        bom = self._resolve_bom(payload)
        report = self.ledger.check_availability(bom, payload.quantity)
        if not report.sufficient:
            raise InsufficientStock([line.as_dict() for line in report.shortages])

        started = datetime.now(timezone.utc)
        with self.store.transaction():
            model = self.ledger.find_sofa_model(payload.sofa_model_id, payload.product_name)
            if model is None:
                model = self.store.add(
                    "sofa_models",
                    {"name": payload.product_name.strip(), "stock_quantity": 0, "status": "active"},
                )
            consumed = self.ledger.deduct(bom, payload.quantity)
            job = self.store.add(
                "productions",
                {
                    "production_number": make_number("PRD"),
                    "production_type": "order" if payload.order_id is not None else "stock",
                    "sofa_model_id": model.id,
                    "order_id": payload.order_id,
                    "product_name": model.name,
                    "quantity": payload.quantity,
                    "bill_of_materials": bom,
                    "materials_consumed": consumed,
                    "status": ProductionStatus.IN_PROGRESS.value,
                    "start_date": started.isoformat(timespec="seconds").replace("+00:00", "Z"),
                    "estimated_completion_date": estimated_completion(started, self.lead_days),
                    "notes": payload.notes,
                },
            )
        logger.info(
            "production.started",
            extra={
                "extra_data": {
                    "production_id": job.id,
                    "sofa_model_id": job.sofa_model_id,
                    "quantity": job.quantity,
                    "custom_lines": len(report.warnings),
                }
            },
        )
        self._notify(job, "production_started")
        return job

    def _require_open(self, job: Production, action: str) -> None:
        if job.status not in OPEN_STATUSES:
            raise InvalidTransition(job.status, action, [])

    def complete_job(self, production_id: int) -> Production:
        job = self.store.require("productions", production_id)
        self._require_open(job, "complete")
        with self.store.transaction():
            self.ledger.credit(job.quantity, sofa_model_id=job.sofa_model_id, name=job.product_name)
            self.store.update(
                "productions",
                job.id,
                {"status": ProductionStatus.COMPLETED.value, "actual_completion_date": utcnow()},
            )
        logger.info(
            "production.completed",
            extra={"extra_data": {"production_id": job.id, "quantity": job.quantity}},
        )
        job = self.store.require("productions", job.id)
        self._notify(job, "production_completed")
        return job

    def cancel_job(self, production_id: int) -> Production:
        job = self.store.require("productions", production_id)
        self._require_open(job, "cancel")
        with self.store.transaction():
            self.ledger.restore(job.materials_consumed or [])
            self.store.update("productions", job.id, {"status": ProductionStatus.CANCELLED.value})
        logger.info("production.cancelled", extra={"extra_data": {"production_id": job.id}})
        return self.store.require("productions", job.id)

    def _notify(self, job: Production, event: str) -> None:
        try:
            self.notifier.production_event(job, event)
        except Exception:
            logger.exception(
                "notification.failed",
                extra={"extra_data": {"production_id": job.id, "event": event}},
            )


__all__ = ["ProductionTracker", "estimated_completion"]
