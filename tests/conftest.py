"""Pytest configuration and fixtures"""
import pytest
from unittest.mock import Mock

from session_cart import Cart, CartConfig, EventDispatcher, MemorySessionStore


@pytest.fixture
def session_store():
    """Empty in-memory session"""
    return MemorySessionStore()


@pytest.fixture
def mock_dispatcher():
    """Dispatcher mock for asserting dispatched events"""
    return Mock(spec=EventDispatcher)


@pytest.fixture
def cart_config():
    """Default cart config"""
    return CartConfig()


@pytest.fixture
def cart(session_store, mock_dispatcher, cart_config):
    """Cart on the default instance"""
    return Cart(session_store, mock_dispatcher, cart_config)


def dispatched_events(dispatcher):
    """Event names dispatched on a mock dispatcher, in order."""
    return [c.args[0] for c in dispatcher.dispatch.call_args_list]


@pytest.fixture
def events(mock_dispatcher):
    """Callable returning dispatched event names"""
    return lambda: dispatched_events(mock_dispatcher)
