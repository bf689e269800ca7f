"""
Tests for cart configuration
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from session_cart import CartConfig, FormatConfig, get_cart_config


@pytest.fixture
def clean_env(monkeypatch):
    """No CART_* variables and no .env loading"""
    for name in (
        "CART_TAX",
        "CART_GUARD",
        "CART_DESTROY_ON_LOGOUT",
        "CART_FORMAT_DECIMALS",
        "CART_FORMAT_DECIMAL_POINT",
        "CART_FORMAT_THOUSAND_SEPARATOR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("session_cart.config.load_dotenv", lambda: None)
    get_cart_config.cache_clear()
    yield monkeypatch
    get_cart_config.cache_clear()


def test_defaults():
    """Test the packaged defaults."""
    config = CartConfig()

    assert config.tax == Decimal("21")
    assert config.guard == "web"
    assert config.destroy_on_logout is False
    assert config.format == FormatConfig(decimals=2, decimal_point=".", thousand_separator=",")


def test_nested_mapping():
    """Test building from a nested mapping."""
    config = CartConfig.model_validate({"tax": 19, "format": {"decimal_point": ","}})

    assert config.tax == 19
    assert config.format.decimal_point == ","
    assert config.format.decimals == 2


@pytest.mark.parametrize("data", [{"tax": -1}, {"tax": 101}, {"format": {"decimals": -1}}])
def test_invalid_values(data):
    """Test out-of-range values are rejected."""
    with pytest.raises(ValidationError):
        CartConfig.model_validate(data)


def test_from_environment(clean_env):
    """Test CART_* variables are read."""
    clean_env.setenv("CART_TAX", "9.5")
    clean_env.setenv("CART_DESTROY_ON_LOGOUT", "true")
    clean_env.setenv("CART_FORMAT_DECIMALS", "3")
    clean_env.setenv("CART_FORMAT_THOUSAND_SEPARATOR", "")

    config = get_cart_config()

    assert config.tax == Decimal("9.5")
    assert config.destroy_on_logout is True
    assert config.format.decimals == 3
    assert config.format.thousand_separator == ""
    assert config.format.decimal_point == "."


def test_environment_defaults(clean_env):
    """Test an empty environment gives the defaults."""
    assert get_cart_config() == CartConfig()


def test_config_is_cached(clean_env):
    """Test the config is built once."""
    assert get_cart_config() is get_cart_config()


def test_invalid_environment(clean_env):
    """Test invalid variables raise ValidationError."""
    clean_env.setenv("CART_TAX", "lots")

    with pytest.raises(ValidationError):
        get_cart_config()
