"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the connection registry, the
signal relay and mocked connections.
"""

import pytest

from tests.mocks.websocket_mocks import create_mock_app, create_mock_connection


@pytest.fixture
def registry():
    """
    Provides an empty ConnectionRegistry.

    Returns:
        ConnectionRegistry: Fresh registry instance
    """
    from relay.managers.connection_registry import ConnectionRegistry

    return ConnectionRegistry()


@pytest.fixture
def relay(registry):
    """
    Provides a SignalRelay over the registry fixture with a short timeout.

    Args:
        registry: Fixture providing the registry

    Returns:
        SignalRelay: Relay instance
    """
    from relay.managers.signal_relay import SignalRelay

    return SignalRelay(registry, send_timeout=0.5)


@pytest.fixture
def open_connections(registry):
    """
    Registers three mocked connections A, B and C, in that order.

    Args:
        registry: Fixture providing the registry

    Returns:
        tuple: The three registered connections
    """
    connections = tuple(create_mock_connection() for _ in range(3))
    for connection in connections:
        registry.connect(connection)
    return connections


@pytest.fixture
def mock_app(registry, relay):
    """
    Provides an application stand-in exposing registry and relay on state.

    Args:
        registry: Fixture providing the registry
        relay: Fixture providing the relay

    Returns:
        SimpleNamespace: Application stand-in
    """
    return create_mock_app(registry, relay)
