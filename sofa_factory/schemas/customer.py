from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerOut(CustomerCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: str
    updated_at: str


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    message: str
    related_type: Optional[str] = None
    related_id: Optional[int] = None
    status: str
    error: Optional[str] = None
    sent_at: Optional[str] = None
    created_at: str


class NotificationFailureIn(BaseModel):
    error: Optional[str] = None
