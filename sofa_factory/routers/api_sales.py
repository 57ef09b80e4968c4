from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..deps.auth import require_api_key
from ..deps.services import get_sales
from ..schemas.sale import ManualSaleCreate, PaymentIn, RejectSaleIn, SaleOut
from ..services.sales import SalesLedger

router = APIRouter(prefix="/api/v1/sales", tags=["sales"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=list[SaleOut])
def api_list_sales(status: Optional[str] = None, sales: SalesLedger = Depends(get_sales)):
    return sales.list_sales(status)


@router.post("", response_model=SaleOut, status_code=201)
def api_record_manual_sale(payload: ManualSaleCreate, sales: SalesLedger = Depends(get_sales)):
    return sales.record_manual_sale(payload)


@router.get("/{sale_id}", response_model=SaleOut)
def api_get_sale(sale_id: int, sales: SalesLedger = Depends(get_sales)):
    return sales.get_sale(sale_id)


@router.post("/{sale_id}/payments", response_model=SaleOut, status_code=201)
def api_record_payment(sale_id: int, payload: PaymentIn, sales: SalesLedger = Depends(get_sales)):
    return sales.record_payment(sale_id, payload)


@router.post("/{sale_id}/approve", response_model=SaleOut)
def api_approve_sale(sale_id: int, sales: SalesLedger = Depends(get_sales)):
    return sales.approve_sale(sale_id)


@router.post("/{sale_id}/reject", response_model=SaleOut)
def api_reject_sale(
    sale_id: int,
    payload: Optional[RejectSaleIn] = Body(default=None),
    sales: SalesLedger = Depends(get_sales),
):
    return sales.reject_sale(sale_id, payload.reason if payload else None)
