from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..core.context import SessionContext
from ..deps.auth import require_api_key
from ..deps.services import get_workflow
from ..schemas.order import (
    CompleteStockOrderIn,
    ConfirmDeliveryIn,
    FinishedProductOut,
    OrderCreate,
    OrderOut,
    TransitionNote,
    TransitionOut,
)
from ..services.order_workflow import OrderWorkflow

router = APIRouter(prefix="/api/v1/orders", tags=["orders"], dependencies=[Depends(require_api_key)])


def _note(payload: Optional[TransitionNote]) -> Optional[str]:
    return payload.note if payload else None


def _transition_out(workflow: OrderWorkflow, order_id: int, result, **extra) -> TransitionOut:
    result.unwrap()
    order = workflow.get_order(order_id)
    return TransitionOut(
        order=OrderOut.model_validate(order),
        warnings=[line.as_dict() for line in result.warnings],
        **extra,
    )


@router.get("", response_model=list[OrderOut])
def api_list_orders(status: Optional[str] = None, workflow: OrderWorkflow = Depends(get_workflow)):
    return workflow.list_orders(status)


@router.post("", response_model=OrderOut, status_code=201)
def api_create_order(
    payload: OrderCreate,
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    return workflow.create_order(payload, actor=ctx)


@router.get("/{order_id}", response_model=OrderOut)
def api_get_order(order_id: int, workflow: OrderWorkflow = Depends(get_workflow)):
    return workflow.get_order(order_id)


@router.post("/{order_id}/approve", response_model=TransitionOut)
def api_approve_order(
    order_id: int,
    payload: Optional[TransitionNote] = Body(default=None),
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    result = workflow.approve(order_id, note=_note(payload), actor=ctx)
    return _transition_out(workflow, order_id, result)


@router.post("/{order_id}/cancel", response_model=TransitionOut)
def api_cancel_order(
    order_id: int,
    payload: Optional[TransitionNote] = Body(default=None),
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    result = workflow.cancel(order_id, note=_note(payload), actor=ctx)
    return _transition_out(workflow, order_id, result)


@router.post("/{order_id}/start-production", response_model=TransitionOut)
def api_start_production(
    order_id: int,
    payload: Optional[TransitionNote] = Body(default=None),
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    result = workflow.start_production(order_id, note=_note(payload), actor=ctx)
    return _transition_out(workflow, order_id, result)


@router.post("/{order_id}/complete", response_model=TransitionOut)
def api_complete_stock_order(
    order_id: int,
    payload: CompleteStockOrderIn,
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    result = workflow.complete_stock_order(
        order_id,
        payload.selling_price,
        payload.photo,
        note=payload.note,
        actor=ctx,
    )
    product = result.unwrap()
    return _transition_out(
        workflow,
        order_id,
        result,
        finished_product=FinishedProductOut.model_validate(product),
    )


@router.post("/{order_id}/ready", response_model=TransitionOut)
def api_mark_ready(
    order_id: int,
    payload: Optional[TransitionNote] = Body(default=None),
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    result = workflow.mark_ready_for_delivery(order_id, note=_note(payload), actor=ctx)
    return _transition_out(workflow, order_id, result)


@router.post("/{order_id}/deliver", response_model=TransitionOut)
def api_confirm_delivery(
    order_id: int,
    payload: Optional[ConfirmDeliveryIn] = Body(default=None),
    workflow: OrderWorkflow = Depends(get_workflow),
    ctx: SessionContext = Depends(require_api_key),
):
    payload = payload or ConfirmDeliveryIn()
    result = workflow.confirm_delivery(
        order_id,
        payload.delivery_date,
        payload.notes,
        payload.photo,
        actor=ctx,
    )
    sale = result.unwrap()
    return _transition_out(workflow, order_id, result, sale_id=sale.id)
