"""Domain error kinds shared by the store, ledger and workflow."""

from __future__ import annotations

from typing import Any


class FactoryError(Exception):
    """Base class for every expected failure raised by the core."""

    code = "factory_error"

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(FactoryError):
    code = "validation_error"


class NotFound(FactoryError):
    code = "not_found"

    def __init__(self, collection: str, record_id: Any) -> None:
        super().__init__(
            f"{collection} record {record_id} not found",
            {"collection": collection, "id": record_id},
        )
        self.collection = collection
        self.record_id = record_id


class InvalidTransition(FactoryError):
    code = "invalid_transition"

    def __init__(self, current: str, event: str, allowed: list[str] | None = None) -> None:
        super().__init__(
            f"cannot {event} from status {current}",
            {"status": current, "event": event, "allowed": allowed or []},
        )
        self.current = current
        self.event = event


class InsufficientStock(FactoryError):
    """Raised/returned with every short line so the caller can list them all."""

    code = "insufficient_stock"

    def __init__(self, lines: list[dict[str, Any]]) -> None:
        parts = []
        for line in lines:
            unit = f" {line['unit']}" if line.get("unit") else ""
            parts.append(f"{line['material_name']} short by {line['shortage']:g}{unit}")
        super().__init__("Insufficient stock: " + ", ".join(parts), {"lines": lines})
        self.lines = lines


class StorageFailure(FactoryError):
    code = "storage_failure"


class StorageUnavailable(StorageFailure):
    code = "storage_unavailable"


__all__ = [
    "FactoryError",
    "InsufficientStock",
    "InvalidTransition",
    "NotFound",
    "StorageFailure",
    "StorageUnavailable",
    "ValidationError",
]
