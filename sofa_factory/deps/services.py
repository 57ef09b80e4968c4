"""Per-request service wiring on top of the request's database session."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from ..crud.store import EntityStore
from ..db.session import get_db
from ..services.notifications import QueueNotifier
from ..services.order_workflow import OrderWorkflow
from ..services.production import ProductionTracker
from ..services.sales import SalesLedger
from ..services.stock_ledger import StockLedger


def get_store(db: Session = Depends(get_db)) -> EntityStore:
    return EntityStore(db)


def get_ledger(store: EntityStore = Depends(get_store)) -> StockLedger:
    return StockLedger(store)


def get_workflow(store: EntityStore = Depends(get_store)) -> OrderWorkflow:
    return OrderWorkflow(store, notifier=QueueNotifier(store))


def get_sales(store: EntityStore = Depends(get_store)) -> SalesLedger:
    return SalesLedger(store)


def get_tracker(store: EntityStore = Depends(get_store)) -> ProductionTracker:
    return ProductionTracker(store, notifier=QueueNotifier(store))
