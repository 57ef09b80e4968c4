"""SQLAlchemy models for production orders and their status history."""

from __future__ import annotations

from sqlalchemy import JSON, Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..core.statuses import allowed_events
from ..core.statuses import status_label as label_for
from ..db.session import Base


class Order(Base):
    """A request to build ``quantity`` units of a product.

    Cost fields are a snapshot taken when the order is created; later changes
    to material prices do not touch them.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(Text, nullable=False, unique=True, index=True)
    order_kind = Column(Text, nullable=False, default="stock")
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = Column(Text, nullable=True)
    sofa_model_id = Column(Integer, ForeignKey("sofa_models.id"), nullable=True, index=True)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)
    due_date = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    bill_of_materials = Column(JSON, nullable=False, default=list)
    labour_costs = Column(JSON, nullable=False, default=list)
    other_costs = Column(JSON, nullable=False, default=list)

    material_cost_per_unit = Column(Float, nullable=False, default=0.0)
    labour_cost_per_unit = Column(Float, nullable=False, default=0.0)
    other_cost_per_unit = Column(Float, nullable=False, default=0.0)
    total_production_cost = Column(Float, nullable=False, default=0.0)

    status = Column(Text, nullable=False, index=True)
    production_started_at = Column(Text, nullable=True)
    completed_at = Column(Text, nullable=True)
    delivered_at = Column(Text, nullable=True)
    delivery_date = Column(Text, nullable=True)
    delivery_notes = Column(Text, nullable=True)
    delivery_photo = Column(Text, nullable=True)
    finished_product_id = Column(Integer, nullable=True)
    sale_id = Column(Integer, nullable=True)

    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    status_history = relationship(
        "OrderStatusEntry",
        back_populates="order",
        order_by="OrderStatusEntry.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def production_cost_per_unit(self) -> float:
        return (
            (self.material_cost_per_unit or 0.0)
            + (self.labour_cost_per_unit or 0.0)
            + (self.other_cost_per_unit or 0.0)
        )

    @property
    def status_label(self) -> str:
        return label_for(self.status)

    @property
    def next_actions(self) -> list[str]:
        return [event.value for event in allowed_events(self.status, self.order_kind)]


class OrderStatusEntry(Base):
    """One append-only row of an order's status history."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(Text, nullable=False)
    note = Column(Text, nullable=True)
    actor = Column(Text, nullable=True)
    timestamp = Column(Text, nullable=False)

    order = relationship("Order", back_populates="status_history")


__all__ = ["Order", "OrderStatusEntry"]
