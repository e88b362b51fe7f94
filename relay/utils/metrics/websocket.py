"""
Prometheus metrics for the signaling relay.

This module defines metrics for tracking WebSocket connections, relayed
messages, per-recipient delivery failures and broadcast fan-out duration.
"""

from relay.constants import BROADCAST_DURATION_BUCKETS
from relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

# WebSocket Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of open signaling connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total signaling connections",
    ["status"],  # accepted, rejected
)

# Relay Metrics
ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total", "Total signaling messages received"
)

ws_messages_relayed_total = _get_or_create_counter(
    "ws_messages_relayed_total",
    "Total signaling messages delivered to a recipient",
)

ws_delivery_failures_total = _get_or_create_counter(
    "ws_delivery_failures_total",
    "Total failed per-recipient deliveries",
    ["reason"],  # failed, timeout
)

ws_broadcast_duration_seconds = _get_or_create_histogram(
    "ws_broadcast_duration_seconds",
    "Time to fan one message out to all recipients in seconds",
    buckets=BROADCAST_DURATION_BUCKETS,
)


__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_relayed_total",
    "ws_delivery_failures_total",
    "ws_broadcast_duration_seconds",
]
