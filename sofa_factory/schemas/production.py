from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .order import BomLineIn


class ProductionCreate(BaseModel):
    sofa_model_id: Optional[int] = None
    product_name: Optional[str] = None
    order_id: Optional[int] = None
    quantity: int = Field(ge=1)
    bill_of_materials: list[BomLineIn] = Field(default_factory=list)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_target(self) -> "ProductionCreate":
        if self.sofa_model_id is None and not (self.product_name and self.product_name.strip()):
            raise ValueError("sofa_model_id or product_name is required")
        return self


class ProductionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    production_number: str
    production_type: str
    sofa_model_id: int
    order_id: Optional[int] = None
    product_name: str
    quantity: int
    bill_of_materials: list[dict] = Field(default_factory=list)
    materials_consumed: list[dict] = Field(default_factory=list)
    status: str
    start_date: Optional[str] = None
    estimated_completion_date: Optional[str] = None
    actual_completion_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str
