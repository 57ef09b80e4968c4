from __future__ import annotations

from fastapi import APIRouter, Depends

from ..crud.store import EntityStore
from ..deps.auth import require_api_key
from ..deps.services import get_ledger, get_store
from ..schemas.inventory import (
    AvailabilityOut,
    AvailabilityRequest,
    RawMaterialCreate,
    RawMaterialOut,
    RawMaterialUpdate,
    SofaModelCreate,
    SofaModelOut,
)
from ..services.costing import round_money, to_decimal
from ..services.stock_ledger import StockLedger

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"], dependencies=[Depends(require_api_key)])


@router.get("/materials", response_model=list[RawMaterialOut])
def api_list_materials(store: EntityStore = Depends(get_store)):
    return store.get_all("raw_materials")


@router.get("/materials/low-stock", response_model=list[RawMaterialOut])
def api_low_stock_materials(ledger: StockLedger = Depends(get_ledger)):
    return ledger.low_stock_materials()


@router.post("/materials", response_model=RawMaterialOut, status_code=201)
def api_create_material(payload: RawMaterialCreate, store: EntityStore = Depends(get_store)):
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    return store.add("raw_materials", data)


@router.get("/materials/{material_id}", response_model=RawMaterialOut)
def api_get_material(material_id: int, store: EntityStore = Depends(get_store)):
    return store.require("raw_materials", material_id)


@router.patch("/materials/{material_id}", response_model=RawMaterialOut)
def api_update_material(material_id: int, payload: RawMaterialUpdate, store: EntityStore = Depends(get_store)):
    return store.update("raw_materials", material_id, payload.model_dump(exclude_unset=True))


@router.delete("/materials/{material_id}")
def api_delete_material(material_id: int, store: EntityStore = Depends(get_store)):
    store.delete("raw_materials", material_id)
    return {"status": "deleted"}


@router.post("/availability", response_model=AvailabilityOut)
def api_check_availability(payload: AvailabilityRequest, ledger: StockLedger = Depends(get_ledger)):
    lines = [line.model_dump() for line in payload.bill_of_materials]
    return ledger.check_availability(lines, payload.quantity).as_dict()


@router.get("/sofa-models", response_model=list[SofaModelOut])
def api_list_sofa_models(store: EntityStore = Depends(get_store)):
    return store.get_all("sofa_models")


@router.post("/sofa-models", response_model=SofaModelOut, status_code=201)
def api_create_sofa_model(payload: SofaModelCreate, store: EntityStore = Depends(get_store)):
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    data["total_cost"] = round_money(
        to_decimal(payload.material_cost) + to_decimal(payload.labour_cost) + to_decimal(payload.other_cost)
    )
    data["stock_quantity"] = 0
    data["status"] = "active"
    return store.add("sofa_models", data)


@router.get("/sofa-models/{sofa_model_id}", response_model=SofaModelOut)
def api_get_sofa_model(sofa_model_id: int, store: EntityStore = Depends(get_store)):
    return store.require("sofa_models", sofa_model_id)
