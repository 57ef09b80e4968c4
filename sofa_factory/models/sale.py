"""Sales and the payments recorded against them."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Sale(Base):
    """A sale generated by a delivered customer order or recorded by hand.

    ``due_amount`` and ``payment_status`` are derived from ``total_amount`` and
    ``paid_amount``; only ``services.sales`` writes them.
    """

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    sale_number = Column(Text, nullable=False, unique=True, index=True)
    source = Column(Text, nullable=False, default="manual")
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = Column(Text, nullable=True)
    sofa_model_id = Column(Integer, ForeignKey("sofa_models.id"), nullable=True, index=True)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False, default=0.0)
    discount = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)
    paid_amount = Column(Float, nullable=False, default=0.0)
    due_amount = Column(Float, nullable=False, default=0.0)
    status = Column(Text, nullable=False, default="pending_approval", index=True)
    payment_status = Column(Text, nullable=False, default="unpaid", index=True)

    material_cost = Column(Float, nullable=False, default=0.0)
    labour_cost = Column(Float, nullable=False, default=0.0)
    other_cost = Column(Float, nullable=False, default=0.0)
    total_production_cost = Column(Float, nullable=False, default=0.0)
    profit = Column(Float, nullable=False, default=0.0)

    delivery_date = Column(Text, nullable=True)
    delivery_notes = Column(Text, nullable=True)
    delivery_photo = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    approved_at = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    payments = relationship(
        "SalePayment",
        back_populates="sale",
        order_by="SalePayment.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class SalePayment(Base):
    __tablename__ = "sale_payments"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    method = Column(Text, nullable=False, default="cash")
    note = Column(Text, nullable=True)
    paid_at = Column(Text, nullable=False)

    sale = relationship("Sale", back_populates="payments")


__all__ = ["Sale", "SalePayment"]
