"""Session cart package: models, storage, and cart facade."""
from .config import CartConfig, FormatConfig, get_cart_config
from .contracts import HasCart, InteractsWithCart
from .events import ITEM_ADDED, ITEM_REMOVED, ITEM_UPDATED, LOGOUT, EventDispatcher
from .exceptions import (
    CartError,
    CartStorageError,
    InvalidArgumentError,
    InvalidItemIdError,
    UnknownModelError,
)
from .models import CartItem
from .provider import register
from .service import Cart
from .storage import MemorySessionStore, RedisSessionStore

__all__ = [
    "Cart",
    "CartItem",
    "CartConfig",
    "FormatConfig",
    "get_cart_config",
    "HasCart",
    "InteractsWithCart",
    "EventDispatcher",
    "ITEM_ADDED",
    "ITEM_UPDATED",
    "ITEM_REMOVED",
    "LOGOUT",
    "CartError",
    "CartStorageError",
    "InvalidArgumentError",
    "InvalidItemIdError",
    "UnknownModelError",
    "MemorySessionStore",
    "RedisSessionStore",
    "register",
]
