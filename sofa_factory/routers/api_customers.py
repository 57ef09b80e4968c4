from __future__ import annotations

from fastapi import APIRouter, Depends

from ..crud.store import EntityStore
from ..deps.auth import require_api_key
from ..deps.services import get_store
from ..schemas.customer import CustomerCreate, CustomerOut

router = APIRouter(prefix="/api/v1/customers", tags=["customers"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=list[CustomerOut])
def api_list_customers(store: EntityStore = Depends(get_store)):
    return store.get_all("customers")


@router.post("", response_model=CustomerOut, status_code=201)
def api_create_customer(payload: CustomerCreate, store: EntityStore = Depends(get_store)):
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    return store.add("customers", data)


@router.get("/{customer_id}", response_model=CustomerOut)
def api_get_customer(customer_id: int, store: EntityStore = Depends(get_store)):
    return store.require("customers", customer_id)
