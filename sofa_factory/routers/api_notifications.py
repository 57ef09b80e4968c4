from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..crud.store import EntityStore
from ..deps.auth import require_api_key
from ..deps.services import get_store
from ..schemas.customer import NotificationFailureIn, NotificationOut
from ..services.notifications import list_notifications, mark_failed, mark_sent

router = APIRouter(
    prefix="/api/v1/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_api_key)],
)


@router.get("", response_model=list[NotificationOut])
def api_list_notifications(status: str = "pending", store: EntityStore = Depends(get_store)):
    return list_notifications(store, None if status == "all" else status)


@router.post("/{notification_id}/sent", response_model=NotificationOut)
def api_mark_sent(notification_id: int, store: EntityStore = Depends(get_store)):
    return mark_sent(store, notification_id)


@router.post("/{notification_id}/failed", response_model=NotificationOut)
def api_mark_failed(
    notification_id: int,
    payload: Optional[NotificationFailureIn] = Body(default=None),
    store: EntityStore = Depends(get_store),
):
    return mark_failed(store, notification_id, payload.error if payload else None)
