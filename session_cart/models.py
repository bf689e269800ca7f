"""Cart item model with Decimal-based pricing."""
import json
import secrets
import threading
import time
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from .associations import ModelResolver, find_model, import_model, model_path
from .config import CartConfig
from .contracts import HasCart
from .exceptions import InvalidArgumentError
from .money import (
    format_number,
    multiply,
    normalize_number,
    parse_decimal,
    percent,
    to_json_number,
)

Quantity = Union[int, Decimal]

_id_lock = threading.Lock()
_last_millis = 0
_sequence = 0


def generate_item_id() -> str:
    """
    Generate a time-ordered unique id (UUIDv7 layout).

    48-bit millisecond timestamp, 12-bit sequence within the millisecond,
    62 random bits. Ids created later sort after ids created earlier.
    """
    global _last_millis, _sequence

    with _id_lock:
        millis = time.time_ns() // 1_000_000
        if millis <= _last_millis:
            _sequence += 1
            if _sequence > 0xFFF:
                _last_millis += 1
                _sequence = 0
            millis = _last_millis
        else:
            _sequence = 0
        _last_millis = millis
        sequence = _sequence

    value = (
        (millis & 0xFFFFFFFFFFFF) << 80
        | 0x7 << 76
        | sequence << 64
        | 0b10 << 62
        | secrets.randbits(62)
    )
    return str(uuid.UUID(int=value))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _parse_price(value: Any) -> Decimal:
    try:
        price = parse_decimal(value)
    except ValueError as e:
        raise InvalidArgumentError("price") from e
    if price < 0:
        raise InvalidArgumentError("price")
    return price


def parse_quantity(value: Any) -> Quantity:
    """
    Validate a quantity; zero and negatives are allowed.

    Raises:
        InvalidArgumentError: If value is empty or not numeric
    """
    if _is_blank(value):
        raise InvalidArgumentError("quantity")
    try:
        return normalize_number(parse_decimal(value))
    except ValueError as e:
        raise InvalidArgumentError("quantity") from e


def _option_quantity(options: Mapping) -> Optional[Quantity]:
    if options.get("quantity") is None:
        return None
    return parse_quantity(options["quantity"])


def _require(value: Any, field: str) -> Any:
    if _is_blank(value):
        raise InvalidArgumentError(field)
    return value


def normalize_variation(variation: Optional[Mapping]) -> Any:
    """Variation as it reads back from a JSON session store."""
    return json.loads(json.dumps(dict(variation or {}), default=str))


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return to_json_number(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class CartItem:
    """
    Single line in the cart.

    `item_id` identifies the line, `id` is the external product id. Prices
    and tax are Decimals; tax, subtotal and totals are computed on read.
    """

    def __init__(
        self,
        source: Union[Mapping, HasCart],
        options: Optional[Mapping] = None,
        variation: Optional[Mapping] = None,
        *,
        tax_rate: Any = None,
        config: Optional[CartConfig] = None,
    ):
        self.config = config or CartConfig()
        self._associated_model: Optional[str] = None

        fields = self._read_source(source)
        options = dict(options or {})

        _require(fields.get("id"), "identifier")
        _require(fields.get("name"), "name")
        price = _parse_price(fields.get("price"))

        quantity = _option_quantity(options)

        self.item_id = generate_item_id()
        self.id = fields["id"]
        self.name = fields["name"]
        self.price = price
        self.quantity: Quantity = 1 if quantity is None else quantity
        self.options = options
        self.variation = dict(variation or {})
        self.tax_rate = self.config.tax
        if tax_rate is not None:
            self.set_tax_rate(tax_rate)

    def _read_source(self, source: Any) -> Mapping:
        """Dispatch on the two supported source shapes."""
        if isinstance(source, HasCart):
            self._associated_model = model_path(type(source))
            return {
                "id": source.get_cart_identifier(),
                "name": source.get_cart_description(),
                "price": source.get_cart_price(),
            }
        if isinstance(source, Mapping):
            return source
        raise InvalidArgumentError("identifier")

    # Derived values

    @property
    def tax(self) -> Decimal:
        """Tax for a single unit."""
        return percent(self.price, self.tax_rate)

    @property
    def price_tax(self) -> Decimal:
        """Unit price including tax."""
        return self.price + self.tax

    @property
    def subtotal(self) -> Decimal:
        """Price for the whole line without tax."""
        return multiply(self.price, self.quantity)

    @property
    def total(self) -> Decimal:
        """Price for the whole line with tax."""
        return multiply(self.price_tax, self.quantity)

    @property
    def tax_total(self) -> Decimal:
        """Tax for the whole line."""
        return multiply(self.tax, self.quantity)

    # Formatted values

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

    def format_price(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        """Formatted unit price without tax."""
        return self._format(self.price, decimals, decimal_point, thousand_separator)

    def format_price_tax(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        """Formatted unit price with tax."""
        return self._format(self.price_tax, decimals, decimal_point, thousand_separator)

    def format_subtotal(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        return self._format(self.subtotal, decimals, decimal_point, thousand_separator)

    def format_total(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        return self._format(self.total, decimals, decimal_point, thousand_separator)

    def format_tax(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        return self._format(self.tax, decimals, decimal_point, thousand_separator)

    def format_tax_total(self, decimals=None, decimal_point=None, thousand_separator=None) -> str:
        return self._format(self.tax_total, decimals, decimal_point, thousand_separator)

    # Mutation

    def set_quantity(self, quantity: Any) -> None:
        """
        Replace the quantity.

        Raises:
            InvalidArgumentError: If quantity is empty, zero or not numeric
        """
        parsed = parse_quantity(quantity)
        if parsed == 0:
            raise InvalidArgumentError("quantity")
        self.quantity = parsed

    def set_tax_rate(self, tax_rate: Any) -> "CartItem":
        """Set the tax rate in percent."""
        try:
            self.tax_rate = parse_decimal(tax_rate)
        except ValueError as e:
            raise InvalidArgumentError("tax rate") from e
        return self

    def update_from_has_cart(
        self,
        item: HasCart,
        options: Optional[Mapping] = None,
        variation: Optional[Mapping] = None,
    ) -> "CartItem":
        """
        Take id, name and price from a HasCart object.

        Raises:
            InvalidArgumentError: If a field or the option quantity is
                invalid. The item is left unchanged.
        """
        identifier = _require(item.get_cart_identifier(), "identifier")
        name = _require(item.get_cart_description(), "name")
        price = _parse_price(item.get_cart_price())
        options = dict(options or {})
        _option_quantity(options)

        self.id = identifier
        self.name = name
        self.price = price
        self.options = options
        self.variation = dict(variation or {})
        return self

    def update_from_dict(
        self,
        attributes: Mapping,
        options: Optional[Mapping] = None,
        variation: Optional[Mapping] = None,
    ) -> "CartItem":
        """
        Partial update from a mapping.

        Missing `id`, `name`, `price` and `quantity` (or `qty`) keys keep
        their current values. `options` and `variation` keys in the mapping
        take precedence over the arguments. Everything is validated before
        the item changes.
        """
        identifier = _require(attributes.get("id", self.id), "identifier")
        name = _require(attributes.get("name", self.name), "name")
        price = self.price
        if "price" in attributes:
            price = _parse_price(attributes["price"])
        quantity = self.quantity
        for key in ("quantity", "qty"):
            if key in attributes:
                quantity = parse_quantity(attributes[key])
                break
        options = dict(attributes.get("options", options) or {})
        _option_quantity(options)

        self.id = identifier
        self.name = name
        self.price = price
        self.quantity = quantity
        self.options = options
        self.variation = dict(attributes.get("variation", variation) or {})
        return self

    # Associated model

    def associate(self, model: Any) -> "CartItem":
        """
        Associate the item with a model class.

        Args:
            model: Dotted path, class or instance

        Raises:
            UnknownModelError: If a dotted path cannot be imported
        """
        self._associated_model = model_path(model)
        return self

    @property
    def associated_model(self) -> Optional[str]:
        """Dotted path of the associated model class, if any."""
        return self._associated_model

    def resolve_model(self, resolver: Optional[ModelResolver] = None) -> Any:
        """
        Load the associated model instance for this item's id.

        Args:
            resolver: Callable (model_cls, id) -> model. Defaults to the
                model's own `find` classmethod.
        """
        if self._associated_model is None:
            return None
        model_cls = import_model(self._associated_model)
        return (resolver or find_model)(model_cls, self.id)

    @property
    def model(self) -> Any:
        return self.resolve_model()

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """Public projection of the line."""
        return {
            "itemId": self.item_id,
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
            "options": self.options,
            "variation": self.variation,
            "tax": self.tax,
            "subtotal": self.subtotal,
        }

    def to_json(self, **kwargs) -> str:
        """JSON of to_dict(); integral Decimals are written as ints."""
        kwargs.setdefault("separators", (",", ":"))
        return json.dumps(self.to_dict(), default=_json_default, **kwargs)

    def to_storage(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dict for the session store."""
        return {
            "item_id": self.item_id,
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity if isinstance(self.quantity, int) else str(self.quantity),
            "options": self.options,
            "variation": self.variation,
            "tax_rate": str(self.tax_rate),
            "associated_model": self._associated_model,
        }

    @classmethod
    def from_storage(cls, data: Mapping, config: Optional[CartConfig] = None) -> "CartItem":
        """
        Rebuild an item written by to_storage().

        Stored lines were validated when they were written, so input checks
        are not repeated here.

        Raises:
            KeyError, TypeError, ValueError: If the payload is malformed
        """
        item = cls.__new__(cls)
        item.config = config or CartConfig()
        item.item_id = data["item_id"]
        item.id = data["id"]
        item.name = data["name"]
        item.price = parse_decimal(data["price"])
        item.quantity = normalize_number(parse_decimal(data["quantity"]))
        item.options = dict(data.get("options") or {})
        item.variation = dict(data.get("variation") or {})
        tax_rate = data.get("tax_rate")
        item.tax_rate = item.config.tax if tax_rate is None else parse_decimal(tax_rate)
        item._associated_model = data.get("associated_model")
        return item

    def __repr__(self) -> str:
        return (
            f"CartItem(item_id={self.item_id!r}, id={self.id!r}, name={self.name!r}, "
            f"quantity={self.quantity!r}, price={self.price!r})"
        )
