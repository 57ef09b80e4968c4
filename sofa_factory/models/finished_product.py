from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text

from ..db.session import Base


class FinishedProduct(Base):
    """A batch of finished goods produced by a completed stock order."""

    __tablename__ = "finished_products"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    order_number = Column(Text, nullable=True)
    sofa_model_id = Column(Integer, ForeignKey("sofa_models.id"), nullable=True, index=True)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    selling_price = Column(Float, nullable=False)
    total_value = Column(Float, nullable=False)
    material_cost = Column(Float, nullable=False, default=0.0)
    labour_cost = Column(Float, nullable=False, default=0.0)
    other_cost = Column(Float, nullable=False, default=0.0)
    unit_cost = Column(Float, nullable=False, default=0.0)
    total_cost = Column(Float, nullable=False, default=0.0)
    photo = Column(Text, nullable=True)
    completed_at = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def expected_profit(self) -> float:
        return (self.total_value or 0.0) - (self.total_cost or 0.0)


__all__ = ["FinishedProduct"]
