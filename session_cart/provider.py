"""Wire a cart into the host's session and event dispatcher."""
from typing import Any, Optional

from .config import CartConfig, get_cart_config
from .contracts import SessionStore
from .events import LOGOUT, EventDispatcher
from .logging import get_logger
from .service import SESSION_PREFIX, Cart

logger = get_logger(__name__)


def register(
    session: SessionStore,
    dispatcher: EventDispatcher,
    config: Optional[CartConfig] = None,
) -> Cart:
    """
    Build a Cart and hook it to the logout event.

    When `destroy_on_logout` is enabled, a logout on the configured guard
    destroys every cart instance of the session. Logout payloads may carry
    a `guard` attribute or key; payloads without one are treated as the
    configured guard.

    Args:
        session: Session store of the current user
        dispatcher: Dispatcher the host publishes auth events on
        config: Cart config (defaults to get_cart_config())

    Returns:
        Cart bound to the session and dispatcher
    """
    config = config or get_cart_config()

    def on_logout(payload: Any) -> None:
        if not config.destroy_on_logout:
            return
        if isinstance(payload, dict):
            guard = payload.get("guard")
        else:
            guard = getattr(payload, "guard", None)
        if guard is not None and guard != config.guard:
            return
        session.forget(SESSION_PREFIX)
        logger.info("Cart instances destroyed on logout")

    dispatcher.listen(LOGOUT, on_logout)

    return Cart(session, dispatcher, config)


__all__ = ["register"]
