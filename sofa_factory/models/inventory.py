"""Stock-carrying records: raw materials and sofa models (finished goods)."""

from __future__ import annotations

from sqlalchemy import JSON, Column, Float, Integer, Text

from ..db.session import Base


class RawMaterial(Base):
    __tablename__ = "raw_materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, index=True)
    unit = Column(Text, nullable=False, default="pcs")
    category = Column(Text, nullable=True)
    quantity = Column(Float, nullable=False, default=0.0)
    cost_per_unit = Column(Float, nullable=False, default=0.0)
    min_stock = Column(Float, nullable=False, default=0.0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0.0) <= (self.min_stock or 0.0)

    @property
    def stock_state(self) -> str:
        quantity = self.quantity or 0.0
        if quantity <= 0:
            return "out_of_stock"
        if quantity <= (self.min_stock or 0.0):
            return "low_stock"
        return "in_stock"


class SofaModel(Base):
    """A finished-goods catalog entry with its on-hand stock."""

    __tablename__ = "sofa_models"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=True)
    material_cost = Column(Float, nullable=False, default=0.0)
    labour_cost = Column(Float, nullable=False, default=0.0)
    other_cost = Column(Float, nullable=False, default=0.0)
    total_cost = Column(Float, nullable=False, default=0.0)
    selling_price = Column(Float, nullable=False, default=0.0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    bill_of_materials = Column(JSON, nullable=False, default=list)
    status = Column(Text, nullable=False, default="active", index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def profit_per_unit(self) -> float:
        return (self.selling_price or 0.0) - (self.total_cost or 0.0)


__all__ = ["RawMaterial", "SofaModel"]
