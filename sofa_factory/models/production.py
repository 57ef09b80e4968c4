from __future__ import annotations

from sqlalchemy import JSON, Column, ForeignKey, Integer, Text

from ..db.session import Base


class Production(Base):
    """A production job tracked by the production screen.

    ``materials_consumed`` keeps what was deducted at start so a cancellation
    can put exactly that back.
    """

    __tablename__ = "productions"

    id = Column(Integer, primary_key=True, index=True)
    production_number = Column(Text, nullable=False, unique=True, index=True)
    production_type = Column(Text, nullable=False, default="stock", index=True)
    sofa_model_id = Column(Integer, ForeignKey("sofa_models.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    bill_of_materials = Column(JSON, nullable=False, default=list)
    materials_consumed = Column(JSON, nullable=False, default=list)
    status = Column(Text, nullable=False, default="pending", index=True)
    start_date = Column(Text, nullable=True)
    estimated_completion_date = Column(Text, nullable=True)
    actual_completion_date = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


__all__ = ["Production"]
