from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ManualSaleCreate(BaseModel):
    customer_id: int
    sofa_model_id: int
    quantity: int = Field(default=1, ge=1)
    unit_price: Optional[float] = Field(default=None, ge=0)
    discount: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None


class PaymentIn(BaseModel):
    amount: float = Field(gt=0)
    method: str = "cash"
    note: Optional[str] = None


class RejectSaleIn(BaseModel):
    reason: Optional[str] = None


class SalePaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: float
    method: str
    note: Optional[str] = None
    paid_at: str


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sale_number: str
    source: str
    order_id: Optional[int] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    sofa_model_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float
    discount: float
    total_amount: float
    paid_amount: float
    due_amount: float
    status: str
    payment_status: str
    total_production_cost: float
    profit: float
    delivery_date: Optional[str] = None
    delivery_notes: Optional[str] = None
    delivery_photo: Optional[str] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    approved_at: Optional[str] = None
    payments: list[SalePaymentOut] = Field(default_factory=list)
    created_at: str
    updated_at: str
