from __future__ import annotations

from typing import Any, List, Optional


class CoffeeShopError(Exception):
    pass


class OrderValidationError(CoffeeShopError):
    """Rejected input. Always raised before anything is written."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class StorageError(CoffeeShopError):
    """The datastore was unavailable or a write failed."""


class DegradedWriteError(StorageError):
    """A non-atomic write failed part way; the order header is already committed."""

    def __init__(self, message: str, order_id: int) -> None:
        super().__init__(message)
        self.order_id = order_id


class InvalidStatusTransition(CoffeeShopError):
    pass
