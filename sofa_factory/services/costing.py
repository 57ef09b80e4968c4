"""Production cost arithmetic for orders.

Costs are computed once, when an order is created, and stored on the order as
a snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

TWOPLACES = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Best-effort conversion of incoming values to Decimal for currency math."""

    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            return Decimal("0")
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return Decimal("0")
    return Decimal("0")


def round_money(value: Any) -> float:
    return float(to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP))


def material_cost_per_unit(bom_lines: Iterable[Mapping[str, Any]]) -> float:
    total = sum(
        (to_decimal(line.get("quantity_per_unit")) * to_decimal(line.get("unit_cost")) for line in bom_lines),
        Decimal("0"),
    )
    return round_money(total)


def labour_cost_per_unit(labour_lines: Iterable[Mapping[str, Any]]) -> float:
    return round_money(sum((to_decimal(line.get("cost_per_piece")) for line in labour_lines), Decimal("0")))


def other_cost_per_unit(other_lines: Iterable[Mapping[str, Any]]) -> float:
    return round_money(sum((to_decimal(line.get("amount")) for line in other_lines), Decimal("0")))


@dataclass(frozen=True)
class OrderCosts:
    material_cost_per_unit: float
    labour_cost_per_unit: float
    other_cost_per_unit: float
    quantity: int

    @property
    def cost_per_unit(self) -> float:
        return round_money(
            to_decimal(self.material_cost_per_unit)
            + to_decimal(self.labour_cost_per_unit)
            + to_decimal(self.other_cost_per_unit)
        )

    @property
    def total_production_cost(self) -> float:
        return round_money(to_decimal(self.cost_per_unit) * self.quantity)

    def as_order_fields(self) -> dict[str, float]:
        return {
            "material_cost_per_unit": self.material_cost_per_unit,
            "labour_cost_per_unit": self.labour_cost_per_unit,
            "other_cost_per_unit": self.other_cost_per_unit,
            "total_production_cost": self.total_production_cost,
        }


def compute_order_costs(
    bom_lines: Iterable[Mapping[str, Any]],
    labour_lines: Iterable[Mapping[str, Any]],
    other_lines: Iterable[Mapping[str, Any]],
    quantity: int,
) -> OrderCosts:
    return OrderCosts(
        material_cost_per_unit=material_cost_per_unit(bom_lines),
        labour_cost_per_unit=labour_cost_per_unit(labour_lines),
        other_cost_per_unit=other_cost_per_unit(other_lines),
        quantity=int(quantity),
    )


def with_totals(bom_lines: Iterable[Mapping[str, Any]], quantity: int) -> list[dict[str, Any]]:
    """Copy BOM lines adding ``total_needed`` (per-unit quantity x order quantity)."""

    lines = []
    for line in bom_lines:
        copy = dict(line)
        copy["total_needed"] = float(to_decimal(line.get("quantity_per_unit")) * int(quantity))
        lines.append(copy)
    return lines
