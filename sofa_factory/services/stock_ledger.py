"""The only place where raw-material and finished-goods stock changes.

Orders, production jobs and sales all go through ``StockLedger`` so the
under-stock rules live in one spot.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Iterable, Mapping

from sqlalchemy import func, select

from ..core.exceptions import InsufficientStock, ValidationError
from ..crud.store import EntityStore
from ..models.inventory import RawMaterial, SofaModel
from .costing import to_decimal

logger = logging.getLogger("sofa_factory.stock")


@dataclass(frozen=True)
class LineAvailability:
    material_id: int | None
    material_name: str
    unit: str
    required: float
    available: float
    shortage: float
    is_custom: bool
    mark_for_purchase: bool = False

    @property
    def is_available(self) -> bool:
        return self.shortage <= 0

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["is_available"] = self.is_available
        return data


@dataclass(frozen=True)
class AvailabilityReport:
    lines: tuple[LineAvailability, ...]

    @property
    def sufficient(self) -> bool:
        """True when every inventory-backed line can be covered in full."""

        return all(line.is_available for line in self.lines if not line.is_custom)

    @property
    def shortages(self) -> list[LineAvailability]:
        return [line for line in self.lines if not line.is_custom and not line.is_available]

    @property
    def warnings(self) -> list[LineAvailability]:
        """Custom lines: materials that have to be purchased outside inventory."""

        return [line for line in self.lines if line.is_custom]

    def as_dict(self) -> dict[str, Any]:
        return {
            "sufficient": self.sufficient,
            "per_line": [line.as_dict() for line in self.lines],
            "warnings": [line.as_dict() for line in self.warnings],
        }


def _required(line: Mapping[str, Any], order_quantity: int) -> float:
    return float(to_decimal(line.get("quantity_per_unit")) * int(order_quantity))


class StockLedger:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def _material(self, line: Mapping[str, Any]) -> RawMaterial | None:
        material_id = line.get("material_id")
        if material_id is None:
            return None
        return self.store.get("raw_materials", int(material_id))

    def check_availability(self, bom_lines: Iterable[Mapping[str, Any]], order_quantity: int) -> AvailabilityReport:
        """Compare each material's requirement with its stock.

        Lines naming the same stocked material are combined into one entry, so
        the shortage is measured against their total.
        """

        if int(order_quantity) < 1:
            raise ValidationError("order quantity must be at least 1")
        results: list[LineAvailability] = []
        stocked: dict[int, int] = {}
        for line in bom_lines:
            required = _required(line, order_quantity)
            material = self._material(line)
            if material is None:
                # Custom or no-longer-stocked material: always needs purchasing.
                results.append(
                    LineAvailability(
                        material_id=line.get("material_id"),
                        material_name=line.get("material_name") or "Unknown",
                        unit=line.get("unit") or "",
                        required=required,
                        available=0.0,
                        shortage=required,
                        is_custom=True,
                        mark_for_purchase=bool(line.get("mark_for_purchase")),
                    )
                )
                continue
            available = float(material.quantity or 0.0)
            if material.id in stocked:
                index = stocked[material.id]
                previous = results[index]
                total = float(to_decimal(previous.required) + to_decimal(required))
                results[index] = replace(
                    previous,
                    required=total,
                    shortage=max(0.0, float(to_decimal(total) - to_decimal(available))),
                    mark_for_purchase=previous.mark_for_purchase or bool(line.get("mark_for_purchase")),
                )
                continue
            stocked[material.id] = len(results)
            results.append(
                LineAvailability(
                    material_id=material.id,
                    material_name=line.get("material_name") or material.name,
                    unit=line.get("unit") or material.unit or "",
                    required=required,
                    available=available,
                    shortage=max(0.0, float(to_decimal(required) - to_decimal(available))),
                    is_custom=False,
                    mark_for_purchase=bool(line.get("mark_for_purchase")),
                )
            )
        return AvailabilityReport(tuple(results))

    def deduct(self, bom_lines: Iterable[Mapping[str, Any]], order_quantity: int) -> list[dict[str, Any]]:
        """Take each inventory-backed line's requirement out of stock.

        The new quantity is floored at zero. Calling this twice deducts twice;
        callers guard with a status check.
        """

        consumed: list[dict[str, Any]] = []
        for line in bom_lines:
            material = self._material(line)
            if material is None:
                continue
            required = _required(line, order_quantity)
            before = float(material.quantity or 0.0)
            remaining = float(to_decimal(before) - to_decimal(required))
            after = max(0.0, remaining)
            if remaining < 0:
                logger.warning(
                    "stock.clamped",
                    extra={
                        "extra_data": {
                            "material_id": material.id,
                            "material": material.name,
                            "before": before,
                            "required": required,
                        }
                    },
                )
            self.store.update("raw_materials", material.id, {"quantity": after})
            consumed.append(
                {
                    "material_id": material.id,
                    "material_name": material.name,
                    "unit": material.unit,
                    "quantity": float(to_decimal(before) - to_decimal(after)),
                    "before": before,
                    "after": after,
                }
            )
        return consumed

    def restore(self, consumed: Iterable[Mapping[str, Any]]) -> None:
        """Put previously deducted quantities back on the shelf."""

        for entry in consumed:
            material = self._material(entry)
            if material is None:
                logger.warning(
                    "stock.restore_skipped",
                    extra={"extra_data": {"material_id": entry.get("material_id")}},
                )
                continue
            quantity = float(to_decimal(material.quantity) + to_decimal(entry.get("quantity")))
            self.store.update("raw_materials", material.id, {"quantity": quantity})

    def find_sofa_model(self, sofa_model_id: int | None = None, name: str | None = None) -> SofaModel | None:
        if sofa_model_id is not None:
            model = self.store.get("sofa_models", int(sofa_model_id))
            if model is not None:
                return model
        if name and name.strip():
            stmt = (
                select(SofaModel)
                .where(func.lower(SofaModel.name) == name.strip().lower())
                .order_by(SofaModel.id)
            )
            return self.store.db.execute(stmt).scalars().first()
        return None

    def credit(
        self,
        quantity: int,
        *,
        sofa_model_id: int | None = None,
        name: str | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> SofaModel:
        """Add finished units to a sofa model, creating the model if needed.

        ``fields`` (costs, selling price) overwrite the model's current values.
        """

        if int(quantity) < 1:
            raise ValidationError("credited quantity must be at least 1")
        extra = dict(fields or {})
        model = self.find_sofa_model(sofa_model_id, name)
        if model is None:
            if not (name and name.strip()):
                raise ValidationError("a product name is required to create a sofa model")
            data = {"name": name.strip(), "stock_quantity": int(quantity), "status": "active"}
            data.update(extra)
            return self.store.add("sofa_models", data)
        extra["stock_quantity"] = int(model.stock_quantity or 0) + int(quantity)
        return self.store.update("sofa_models", model.id, extra)

    def debit_finished_goods(self, sofa_model_id: int, quantity: int) -> SofaModel:
        if int(quantity) < 1:
            raise ValidationError("debited quantity must be at least 1")
        model = self.store.require("sofa_models", sofa_model_id)
        available = int(model.stock_quantity or 0)
        if available < int(quantity):
            raise InsufficientStock(
                [
                    {
                        "material_id": None,
                        "sofa_model_id": model.id,
                        "material_name": model.name,
                        "unit": "pcs",
                        "required": int(quantity),
                        "available": available,
                        "shortage": int(quantity) - available,
                    }
                ]
            )
        return self.store.update("sofa_models", model.id, {"stock_quantity": available - int(quantity)})

    def low_stock_materials(self) -> list[RawMaterial]:
        return [material for material in self.store.get_all("raw_materials") if material.is_low_stock]


__all__ = ["AvailabilityReport", "LineAvailability", "StockLedger"]
