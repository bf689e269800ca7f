"""Session-backed cart."""
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence

from .associations import model_path
from .config import CartConfig
from .contracts import Dispatcher, HasCart, SessionStore
from .events import ITEM_ADDED, ITEM_REMOVED, ITEM_UPDATED, EventDispatcher
from .exceptions import InvalidItemIdError
from .logging import get_logger, sanitize_id_for_logging
from .models import CartItem, normalize_variation, parse_quantity
from .money import format_number, normalize_number, to_decimal

logger = get_logger(__name__)

SESSION_PREFIX = "cart-"


class Cart:
    """
    Shopping cart stored in the user's session.

    Features:
    - Lines are identified by (product id, variation); adding the same pair
      again increases the quantity of the existing line
    - Updating a line into a duplicate of another line merges the two
    - Lines whose quantity drops to zero or below are removed
    - Named instances ("wishlist", ...) are stored under separate keys

    Content is read from the session store on every call and written back
    after every mutation; nothing is cached between calls. Events are
    dispatched before the new content is persisted.
    """

    DEFAULT_SESSION_NAME = "tefo"

    def __init__(
        self,
        session: SessionStore,
        dispatcher: Optional[Dispatcher] = None,
        config: Optional[CartConfig] = None,
    ):
        self._session = session
        self._dispatcher = dispatcher or EventDispatcher()
        self.config = config or CartConfig()
        self._session_name = ""

        self.session()

    # Instances

    def session(self, name: Optional[str] = None) -> "Cart":
        """Switch to the named cart instance (default instance if empty)."""
        self._session_name = f"{SESSION_PREFIX}{name or self.DEFAULT_SESSION_NAME}"
        return self

    def current_session_name(self) -> str:
        return self._session_name[len(SESSION_PREFIX):]

    # Content access

    def _get_content(self) -> Dict[str, CartItem]:
        """Load the current instance's lines from the session store."""
        if not self._session.has(self._session_name):
            return {}

        payload = self._session.get(self._session_name) or {}
        try:
            return {
                item_id: CartItem.from_storage(data, self.config)
                for item_id, data in payload.items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            # Corrupted data - clear it and start over
            logger.warning(f"Corrupted cart data in {self._session_name}: {e}")
            self._session.remove(self._session_name)
            return {}

    def _put_content(self, content: Dict[str, CartItem]) -> None:
        self._session.put(
            self._session_name,
            {item_id: item.to_storage() for item_id, item in content.items()},
        )

    def content(self) -> Dict[str, CartItem]:
        """All lines keyed by itemId, in insertion order."""
        return self._get_content()

    def get(self, item_id: str) -> CartItem:
        """
        Get a line by its itemId.

        Raises:
            InvalidItemIdError: If the cart has no such line
        """
        content = self._get_content()
        if item_id not in content:
            raise InvalidItemIdError(item_id)
        return content[item_id]

    def search(self, predicate: Callable[[CartItem, str], bool]) -> Dict[str, CartItem]:
        """Lines for which predicate(item, item_id) is true, in cart order."""
        return {
            item_id: item
            for item_id, item in self._get_content().items()
            if predicate(item, item_id)
        }

    def count(self) -> Any:
        """Sum of all quantities."""
        quantities = (to_decimal(item.quantity) for item in self._get_content().values())
        return normalize_number(sum(quantities, Decimal("0")))

    # Adding

    def add(
        self,
        items: Sequence[Any],
        options: Optional[Sequence[Mapping]] = None,
        variations: Optional[Sequence[Mapping]] = None,
    ) -> List[CartItem]:
        """
        Add several items; options and variations are matched by position.

        Each item is committed on its own, so a validation error on one item
        leaves the items before it in the cart.
        """
        options = options or []
        variations = variations or []

        cart_items = []
        for index, item in enumerate(items):
            option = options[index] if index < len(options) else None
            variation = variations[index] if index < len(variations) else None
            cart_items.append(self.add_item(item, option or {}, variation or {}))
        return cart_items

    def add_item(
        self,
        item: Any,
        options: Optional[Mapping] = None,
        variation: Optional[Mapping] = None,
    ) -> CartItem:
        """
        Add an item, or increase the quantity of the matching line.

        Args:
            item: Attribute mapping (id, name, price) or HasCart object
            options: Free-form options; `quantity` sets the amount to add
            variation: Attributes that distinguish lines of the same product

        Returns:
            The resulting line

        Raises:
            InvalidArgumentError: If the item does not validate
        """
        options = dict(options or {})
        variation = dict(variation or {})

        cart_item = CartItem(item, options, variation, config=self.config)
        content = self._get_content()

        existing = next(
            (line for line in content.values() if self._is_same_line(line, cart_item)),
            None,
        )
        if existing is not None:
            added = options.get("quantity")
            cart_item.quantity = normalize_number(
                to_decimal(existing.quantity) + to_decimal(1 if added is None else added)
            )
            cart_item.item_id = existing.item_id

        if to_decimal(cart_item.quantity) <= 0:
            # A non-positive result never becomes a line
            if existing is not None:
                self.remove(existing.item_id)
            return cart_item.set_tax_rate(self.config.tax)

        content[cart_item.item_id] = cart_item
        logger.debug(
            f"Cart {self._session_name}: added {sanitize_id_for_logging(cart_item.item_id)} "
            f"quantity={cart_item.quantity}"
        )

        self._dispatcher.dispatch(ITEM_ADDED, cart_item)

        self._put_content(content)

        cart_item.set_tax_rate(self.config.tax)

        return cart_item

    @staticmethod
    def _is_same_line(line: CartItem, candidate: CartItem) -> bool:
        return (
            line.id == candidate.id
            and normalize_variation(line.variation) == normalize_variation(candidate.variation)
        )

    # Updating

    def update_quantity(self, item_id: str, quantity: Any) -> Optional[CartItem]:
        """
        Set the quantity of a line; zero or less removes it.

        Returns:
            The updated line, or None if it was removed

        Raises:
            InvalidItemIdError: If the cart has no such line
            InvalidArgumentError: If quantity is not numeric
        """
        cart_item = self.get(item_id)
        cart_item.quantity = parse_quantity(quantity)

        return self._reconcile(cart_item, cart_item.variation)

    def update(
        self,
        item_id: str,
        item: Any,
        options: Optional[Mapping] = None,
        variation: Optional[Mapping] = None,
    ) -> Optional[CartItem]:
        """
        Update a line from a HasCart object or an attribute mapping.

        Options and variation are replaced. If the line becomes a duplicate
        of another line (same name and variation), the other line's quantity
        is folded into this one and the other line is removed.

        Returns:
            The updated line, or None if its quantity dropped to zero or less

        Raises:
            InvalidItemIdError: If the cart has no such line
            InvalidArgumentError: If the new values do not validate; the
                cart is left untouched
        """
        cart_item = self.get(item_id)
        variation = dict(variation or {})

        if isinstance(item, HasCart):
            cart_item.update_from_has_cart(item, options, variation)
        elif isinstance(item, Mapping):
            cart_item.update_from_dict(item, options, variation)

        return self._reconcile(cart_item, variation)

    def _reconcile(self, cart_item: CartItem, variation: Mapping) -> Optional[CartItem]:
        """Merge collisions, drop empty lines, otherwise persist the line."""
        wanted = normalize_variation(variation)
        duplicate = next(
            iter(
                self.search(
                    lambda line, line_id: line_id != cart_item.item_id
                    and line.name == cart_item.name
                    and normalize_variation(line.variation) == wanted
                ).values()
            ),
            None,
        )

        if duplicate is not None:
            cart_item.quantity = normalize_number(
                to_decimal(cart_item.quantity) + to_decimal(duplicate.quantity)
            )
            self.remove(duplicate.item_id)

        if to_decimal(cart_item.quantity) <= 0:
            self.remove(cart_item.item_id)
            return None

        content = self._get_content()
        content[cart_item.item_id] = cart_item
        logger.debug(
            f"Cart {self._session_name}: updated {sanitize_id_for_logging(cart_item.item_id)} "
            f"quantity={cart_item.quantity}"
        )

        self._dispatcher.dispatch(ITEM_UPDATED, cart_item)

        self._put_content(content)

        return cart_item

    def remove(self, item_id: str) -> None:
        """
        Remove a line.

        Raises:
            InvalidItemIdError: If the cart has no such line
        """
        cart_item = self.get(item_id)
        content = self._get_content()
        content.pop(cart_item.item_id, None)
        logger.debug(f"Cart {self._session_name}: removed {sanitize_id_for_logging(item_id)}")

        self._dispatcher.dispatch(ITEM_REMOVED, cart_item)

        self._put_content(content)

    def associate(self, item_id: str, model: Any) -> None:
        """
        Associate a line with a model class (dotted path, class or instance).

        Raises:
            UnknownModelError: If a dotted path cannot be imported
            InvalidItemIdError: If the cart has no such line
        """
        if isinstance(model, str):
            model_path(model)

        cart_item = self.get(item_id)
        cart_item.associate(model)

        content = self._get_content()
        content[cart_item.item_id] = cart_item
        self._put_content(content)

    def set_tax(self, item_id: str, tax_rate: Any) -> None:
        """
        Override the tax rate (percent) of a line.

        Raises:
            InvalidItemIdError: If the cart has no such line
        """
        cart_item = self.get(item_id)
        cart_item.set_tax_rate(tax_rate)

        content = self._get_content()
        content[cart_item.item_id] = cart_item
        self._put_content(content)

    def destroy(self) -> None:
        """Delete this instance's session entry."""
        self._session.remove(self._session_name)
        logger.debug(f"Cart {self._session_name}: destroyed")

    # Totals

    def _sum(self, value: Callable[[CartItem], Decimal]) -> Decimal:
        return sum((value(item) for item in self._get_content().values()), Decimal("0"))

    def _format(
        self,
        value: Decimal,
        decimals: Optional[int],
        decimal_point: Optional[str],
        thousand_separator: Optional[str],
    ) -> str:
        fmt = self.config.format
        return format_number(
            value,
            fmt.decimals if decimals is None else decimals,
            fmt.decimal_point if decimal_point is None else decimal_point,
            fmt.thousand_separator if thousand_separator is None else thousand_separator,
        )

    def total(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        """Formatted total of all lines including tax."""
        return self._format(self._sum(lambda item: item.total), decimals, decimal_point, thousand_separator)

    def tax(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        """Formatted tax of all lines."""
        return self._format(self._sum(lambda item: item.tax_total), decimals, decimal_point, thousand_separator)

    def subtotal(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        """Formatted total of all lines without tax."""
        return self._format(self._sum(lambda item: item.subtotal), decimals, decimal_point, thousand_separator)
