"""
Prometheus metrics definitions.

All metrics are re-exported here so callers can import them from one place:

    from relay.utils.metrics import ws_messages_received_total
"""

from relay.utils.metrics.websocket import (
    ws_broadcast_duration_seconds,
    ws_connections_active,
    ws_connections_total,
    ws_delivery_failures_total,
    ws_messages_received_total,
    ws_messages_relayed_total,
)

__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_relayed_total",
    "ws_delivery_failures_total",
    "ws_broadcast_duration_seconds",
]
