"""
Cart configuration.

Defaults mirror the packaged cart config: 21% tax, two decimals,
"." as decimal point and "," as thousands separator.
"""
import os
from decimal import Decimal
from functools import cache
from typing import Any, Dict

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "CART_"


class FormatConfig(BaseModel):
    """Default number format for formatted cart values."""
    decimals: int = Field(default=2, ge=0)
    decimal_point: str = "."
    thousand_separator: str = ","


class CartConfig(BaseModel):
    """Cart settings passed to Cart and CartItem."""
    tax: Decimal = Field(default=Decimal("21"), ge=0, le=100)  # percent
    guard: str = "web"  # auth guard whose logout may destroy carts
    destroy_on_logout: bool = False
    format: FormatConfig = Field(default_factory=FormatConfig)


def _read_env() -> Dict[str, Any]:
    """Collect CART_* environment variables into a nested config dict."""
    data: Dict[str, Any] = {}
    fmt: Dict[str, Any] = {}

    for key, field in (("TAX", "tax"), ("GUARD", "guard"), ("DESTROY_ON_LOGOUT", "destroy_on_logout")):
        value = os.environ.get(f"{ENV_PREFIX}{key}")
        if value is not None:
            data[field] = value

    for field in FormatConfig.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}FORMAT_{field.upper()}")
        if value is not None:
            fmt[field] = value

    if fmt:
        data["format"] = fmt
    return data


@cache
def get_cart_config() -> CartConfig:
    """
    Build the cart config from the environment (singleton).

    Loads a .env file first. Recognized variables:
    CART_TAX, CART_GUARD, CART_DESTROY_ON_LOGOUT, CART_FORMAT_DECIMALS,
    CART_FORMAT_DECIMAL_POINT, CART_FORMAT_THOUSAND_SEPARATOR.

    Raises:
        pydantic.ValidationError: If a variable has an invalid value
    """
    load_dotenv()
    return CartConfig.model_validate(_read_env())


__all__ = ["CartConfig", "FormatConfig", "get_cart_config"]
