"""Cart error taxonomy."""
from typing import Any


class CartError(Exception):
    """Base error for cart operations."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidArgumentError(CartError, ValueError):
    """Malformed identifier, name, price or quantity."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"Please pass a valid {field}.", code="INVALID_ARGUMENT")
        self.field = field


class InvalidItemIdError(CartError, LookupError):
    """The cart has no line with the given itemId."""

    def __init__(self, item_id: Any) -> None:
        super().__init__(f"The cart does not contain itemId {item_id}.", code="INVALID_ITEM_ID")
        self.item_id = item_id


class UnknownModelError(CartError):
    """An association target does not resolve to an importable class."""

    def __init__(self, model: Any) -> None:
        super().__init__(f"The supplied model {model} does not exist.", code="UNKNOWN_MODEL")
        self.model = model


class CartStorageError(CartError):
    """The session backend could not be read or written."""

    def __init__(self, message: str = "Cart storage unavailable") -> None:
        super().__init__(message, code="STORAGE_UNAVAILABLE")
