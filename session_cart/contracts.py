"""Interfaces the cart expects from its host application."""
from typing import Any, Optional, Protocol, runtime_checkable


class SessionStore(Protocol):
    """Key/value session persistence owned by the host."""

    def get(self, key: str) -> Any: ...

    def put(self, key: str, value: Any) -> None: ...

    def has(self, key: str) -> bool: ...

    def remove(self, key: str) -> None: ...

    def forget(self, prefix: str) -> None:
        """Remove every key starting with prefix."""
        ...


class Dispatcher(Protocol):
    """Fire-and-forget event publication."""

    def dispatch(self, event: str, payload: Any) -> None: ...


@runtime_checkable
class HasCart(Protocol):
    """Something that can be put in a cart directly (e.g. a product model)."""

    def get_cart_identifier(self) -> Any: ...

    def get_cart_description(self) -> Optional[str]: ...

    def get_cart_price(self) -> Any: ...


class InteractsWithCart:
    """
    Default HasCart implementation for models.

    Reads the identifier from `pk` or `id`, the description from
    `name`, `title` or `description`, and the price from `price`.
    """

    def get_cart_identifier(self) -> Any:
        pk = getattr(self, "pk", None)
        return pk if pk is not None else getattr(self, "id", None)

    def get_cart_description(self) -> Optional[str]:
        for attr in ("name", "title", "description"):
            if hasattr(self, attr):
                return getattr(self, attr)
        return None

    def get_cart_price(self) -> Any:
        return getattr(self, "price", None)
