from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..deps.auth import require_api_key
from ..deps.services import get_tracker
from ..schemas.production import ProductionCreate, ProductionOut
from ..services.production import ProductionTracker

router = APIRouter(prefix="/api/v1/productions", tags=["productions"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=list[ProductionOut])
def api_list_productions(status: Optional[str] = None, tracker: ProductionTracker = Depends(get_tracker)):
    return tracker.list_jobs(status)


@router.post("", response_model=ProductionOut, status_code=201)
def api_start_production_job(payload: ProductionCreate, tracker: ProductionTracker = Depends(get_tracker)):
    return tracker.start_job(payload)


@router.get("/{production_id}", response_model=ProductionOut)
def api_get_production(production_id: int, tracker: ProductionTracker = Depends(get_tracker)):
    return tracker.get_job(production_id)


@router.post("/{production_id}/complete", response_model=ProductionOut)
def api_complete_production(production_id: int, tracker: ProductionTracker = Depends(get_tracker)):
    return tracker.complete_job(production_id)


@router.post("/{production_id}/cancel", response_model=ProductionOut)
def api_cancel_production(production_id: int, tracker: ProductionTracker = Depends(get_tracker)):
    return tracker.cancel_job(production_id)
