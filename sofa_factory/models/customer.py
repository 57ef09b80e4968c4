from __future__ import annotations

from sqlalchemy import Column, Integer, Text

from ..db.session import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, index=True)
    phone = Column(Text, nullable=True, index=True)
    email = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


__all__ = ["Customer"]
