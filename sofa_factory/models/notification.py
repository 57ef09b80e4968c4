from __future__ import annotations

from sqlalchemy import Column, Integer, Text

from ..db.session import Base


class Notification(Base):
    """An outbound customer message waiting to be sent by the UI."""

    __tablename__ = "notification_queue"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(Text, nullable=False, index=True)
    recipient_name = Column(Text, nullable=True)
    recipient_phone = Column(Text, nullable=True)
    message = Column(Text, nullable=False)
    related_type = Column(Text, nullable=True)
    related_id = Column(Integer, nullable=True, index=True)
    status = Column(Text, nullable=False, default="pending", index=True)
    error = Column(Text, nullable=True)
    sent_at = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


__all__ = ["Notification"]
