"""Pydantic schemas that describe order payloads for the API and workflow."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.statuses import OrderKind
from .inventory import LineAvailabilityOut


class BomLineIn(BaseModel):
    """One Bill-of-Materials line: an inventory material or a custom purchase."""

    material_id: Optional[int] = None
    material_name: Optional[str] = None
    quantity_per_unit: float = Field(gt=0)
    unit: Optional[str] = None
    # Inventory lines default to the material's cost; custom lines carry an estimate.
    unit_cost: Optional[float] = Field(default=None, ge=0)
    mark_for_purchase: bool = False

    @model_validator(mode="after")
    def validate_material(self) -> "BomLineIn":
        if self.material_id is None and not (self.material_name and self.material_name.strip()):
            raise ValueError("material_id or material_name is required for each BOM line")
        return self


class LabourLineIn(BaseModel):
    description: str = "Labour"
    labourer_name: Optional[str] = None
    cost_per_piece: float = Field(ge=0)


class OtherCostLineIn(BaseModel):
    description: str = "Other"
    amount: float = Field(ge=0)


class OrderCreate(BaseModel):
    order_kind: OrderKind = OrderKind.STOCK
    customer_id: Optional[int] = None
    sofa_model_id: Optional[int] = None
    product_name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(default=0.0, ge=0)
    due_date: Optional[str] = None
    notes: Optional[str] = None
    bill_of_materials: list[BomLineIn] = Field(default_factory=list)
    labour_costs: list[LabourLineIn] = Field(default_factory=list)
    other_costs: list[OtherCostLineIn] = Field(default_factory=list)

    @field_validator("product_name")
    @classmethod
    def require_product_name(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("product_name is required")
        return value

    @model_validator(mode="after")
    def validate_customer(self) -> "OrderCreate":
        if self.order_kind == OrderKind.CUSTOMER and self.customer_id is None:
            raise ValueError("customer orders require customer_id")
        return self


class TransitionNote(BaseModel):
    note: Optional[str] = None


class CompleteStockOrderIn(BaseModel):
    selling_price: float
    photo: Optional[str] = None
    note: Optional[str] = None


class ConfirmDeliveryIn(BaseModel):
    delivery_date: Optional[str] = None
    notes: Optional[str] = None
    photo: Optional[str] = None


class StatusEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    note: Optional[str] = None
    actor: Optional[str] = None
    timestamp: str


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    order_kind: str
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    sofa_model_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float
    total_amount: float
    due_date: Optional[str] = None
    notes: Optional[str] = None
    bill_of_materials: list[dict] = Field(default_factory=list)
    labour_costs: list[dict] = Field(default_factory=list)
    other_costs: list[dict] = Field(default_factory=list)
    material_cost_per_unit: float
    labour_cost_per_unit: float
    other_cost_per_unit: float
    total_production_cost: float
    status: str
    status_label: str = ""
    next_actions: list[str] = Field(default_factory=list)
    status_history: list[StatusEntryOut] = Field(default_factory=list)
    production_started_at: Optional[str] = None
    completed_at: Optional[str] = None
    delivered_at: Optional[str] = None
    delivery_date: Optional[str] = None
    delivery_notes: Optional[str] = None
    delivery_photo: Optional[str] = None
    finished_product_id: Optional[int] = None
    sale_id: Optional[int] = None
    created_at: str
    updated_at: str


class FinishedProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    order_number: Optional[str] = None
    sofa_model_id: Optional[int] = None
    product_name: str
    quantity: int
    selling_price: float
    total_value: float
    unit_cost: float
    total_cost: float
    expected_profit: float
    photo: Optional[str] = None
    completed_at: str


class TransitionOut(BaseModel):
    order: OrderOut
    finished_product: Optional[FinishedProductOut] = None
    sale_id: Optional[int] = None
    warnings: list[LineAvailabilityOut] = Field(default_factory=list)
