"""Generic keyed record storage grouped by collection name.

Every call is atomic on its own: it commits before returning. Inside
``transaction()`` the calls only flush, and the outermost block commits once
(or rolls everything back when an exception escapes).

``update`` never upserts: the record must already exist, otherwise
``NotFound`` is raised.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

from sqlalchemy import inspect, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import FactoryError, NotFound, StorageFailure, StorageUnavailable, ValidationError
from ..models.customer import Customer
from ..models.finished_product import FinishedProduct
from ..models.inventory import RawMaterial, SofaModel
from ..models.notification import Notification
from ..models.order import Order, OrderStatusEntry
from ..models.production import Production
from ..models.sale import Sale, SalePayment

logger = logging.getLogger("sofa_factory.store")

COLLECTIONS: dict[str, type] = {
    "orders": Order,
    "order_status_history": OrderStatusEntry,
    "raw_materials": RawMaterial,
    "sofa_models": SofaModel,
    "finished_products": FinishedProduct,
    "sales": Sale,
    "sale_payments": SalePayment,
    "productions": Production,
    "customers": Customer,
    "notification_queue": Notification,
}


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


class EntityStore:
    def __init__(self, db: Session) -> None:
        self.db = db
        self._depth = 0

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def model_for(collection: str) -> type:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValidationError(f"unknown collection: {collection}") from None

    @staticmethod
    def _fields(model: type) -> set[str]:
        return set(inspect(model).attrs.keys())

    def _check_fields(self, collection: str, model: type, data: Mapping[str, Any]) -> None:
        unknown = sorted(set(data) - self._fields(model))
        if unknown:
            raise ValidationError(
                f"unknown field(s) for {collection}: {', '.join(unknown)}",
                {"collection": collection, "fields": unknown},
            )

    @contextmanager
    def _guard(self, action: str, collection: str) -> Iterator[None]:
        """Translate driver errors into storage errors after rolling back."""

        try:
            yield
        except FactoryError:
            raise
        except OperationalError as exc:
            self.db.rollback()
            logger.exception(
                "store.unavailable",
                extra={"extra_data": {"action": action, "collection": collection}},
            )
            raise StorageUnavailable(f"storage unavailable during {action} on {collection}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "store.failure",
                extra={"extra_data": {"action": action, "collection": collection}},
            )
            raise StorageFailure(f"{action} on {collection} failed") from exc

    def _finish(self) -> None:
        if self._depth:
            self.db.flush()
        else:
            self.db.commit()

    @contextmanager
    def transaction(self) -> Iterator["EntityStore"]:
        """Group several calls into one commit."""

        outermost = self._depth == 0
        self._depth += 1
        try:
            yield self
            if outermost:
                with self._guard("commit", "transaction"):
                    self.db.commit()
        except Exception:
            if outermost:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1

    # -- CRUD ----------------------------------------------------------------

    def add(self, collection: str, record: Mapping[str, Any]) -> Any:
        model = self.model_for(collection)
        data = dict(record)
        data.pop("id", None)
        self._check_fields(collection, model, data)
        fields = self._fields(model)
        now = utcnow()
        if "created_at" in fields:
            data.setdefault("created_at", now)
        if "updated_at" in fields:
            data.setdefault("updated_at", now)
        instance = model(**data)
        with self._guard("add", collection):
            self.db.add(instance)
            self._finish()
            if not self._depth:
                self.db.refresh(instance)
        return instance

    def get(self, collection: str, record_id: int) -> Any | None:
        model = self.model_for(collection)
        if record_id is None:
            return None
        with self._guard("get", collection):
            return self.db.get(model, record_id)

    def require(self, collection: str, record_id: int) -> Any:
        instance = self.get(collection, record_id)
        if instance is None:
            raise NotFound(collection, record_id)
        return instance

    def get_all(self, collection: str, field: str | None = None, value: Any = None) -> list[Any]:
        """Return every record in insertion order, optionally where ``field == value``.

        A ``None`` value disables the filter. The result is always a list.
        """

        model = self.model_for(collection)
        stmt = select(model).order_by(model.id)
        if field is not None:
            if field not in inspect(model).columns.keys():
                raise ValidationError(f"unknown field for {collection}: {field}")
            if value is not None:
                stmt = stmt.where(getattr(model, field) == value)
        with self._guard("get_all", collection):
            return list(self.db.execute(stmt).scalars().all())

    def update(self, collection: str, record_id: int, changes: Mapping[str, Any]) -> Any:
        model = self.model_for(collection)
        data = {key: value for key, value in changes.items() if key != "id"}
        self._check_fields(collection, model, data)
        instance = self.require(collection, record_id)
        for key, value in data.items():
            setattr(instance, key, value)
        if "updated_at" in self._fields(model) and "updated_at" not in data:
            instance.updated_at = utcnow()
        with self._guard("update", collection):
            self._finish()
            if not self._depth:
                self.db.refresh(instance)
        return instance

    def delete(self, collection: str, record_id: int) -> None:
        instance = self.require(collection, record_id)
        with self._guard("delete", collection):
            self.db.delete(instance)
            self._finish()


__all__ = ["COLLECTIONS", "EntityStore", "utcnow"]
