from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RawMaterialCreate(BaseModel):
    name: str = Field(min_length=1)
    unit: str = "pcs"
    category: Optional[str] = None
    quantity: float = Field(default=0.0, ge=0)
    cost_per_unit: float = Field(default=0.0, ge=0)
    min_stock: float = Field(default=0.0, ge=0)


class RawMaterialUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    cost_per_unit: Optional[float] = Field(default=None, ge=0)
    min_stock: Optional[float] = Field(default=None, ge=0)


class RawMaterialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: str
    category: Optional[str] = None
    quantity: float
    cost_per_unit: float
    min_stock: float
    is_low_stock: bool
    stock_state: str
    created_at: str
    updated_at: str


class SofaModelCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    material_cost: float = Field(default=0.0, ge=0)
    labour_cost: float = Field(default=0.0, ge=0)
    other_cost: float = Field(default=0.0, ge=0)
    selling_price: float = Field(default=0.0, ge=0)


class SofaModelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    material_cost: float
    labour_cost: float
    other_cost: float
    total_cost: float
    selling_price: float
    profit_per_unit: float
    stock_quantity: int
    status: str


class AvailabilityLineIn(BaseModel):
    material_id: Optional[int] = None
    material_name: Optional[str] = None
    quantity_per_unit: float = Field(gt=0)
    unit: Optional[str] = None


class AvailabilityRequest(BaseModel):
    quantity: int = Field(ge=1)
    bill_of_materials: list[AvailabilityLineIn]


class LineAvailabilityOut(BaseModel):
    material_id: Optional[int] = None
    material_name: str
    unit: str
    required: float
    available: float
    shortage: float
    is_custom: bool
    is_available: bool
    mark_for_purchase: bool = False


class AvailabilityOut(BaseModel):
    sufficient: bool
    per_line: list[LineAvailabilityOut]
    warnings: list[LineAvailabilityOut]
