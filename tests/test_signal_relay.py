"""
Tests for the signal relay broadcast.

This module tests self-exclusion, payload fidelity, per-recipient failure
isolation and the send timeout of SignalRelay.broadcast.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY
from starlette.websockets import WebSocketDisconnect

from relay.api.ws.constants import DeliveryStatus
from relay.managers.signal_relay import SignalRelay
from tests.mocks.websocket_mocks import create_mock_connection


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestBroadcast:
    """Tests for SignalRelay.broadcast."""

    @pytest.mark.asyncio
    async def test_broadcast_excludes_source(self, relay, open_connections):
        """The sender never gets its own message back."""
        a, b, c = open_connections

        outcomes = await relay.broadcast("offer:123", a)

        a.websocket.send_text.assert_not_called()
        b.websocket.send_text.assert_awaited_once_with("offer:123")
        c.websocket.send_text.assert_awaited_once_with("offer:123")
        assert {o.connection_id for o in outcomes} == {
            b.connection_id,
            c.connection_id,
        }
        assert all(o.status is DeliveryStatus.DELIVERED for o in outcomes)

    @pytest.mark.asyncio
    async def test_identical_payloads_from_distinct_sources(
        self, relay, registry
    ):
        """Self-exclusion is by identity, not by payload equality."""
        a = create_mock_connection()
        b = create_mock_connection()
        registry.connect(a)
        registry.connect(b)

        await relay.broadcast("same", a)
        await relay.broadcast("same", b)

        a.websocket.send_text.assert_awaited_once_with("same")
        b.websocket.send_text.assert_awaited_once_with("same")

    @pytest.mark.asyncio
    async def test_broadcast_alone(self, relay, registry):
        a = create_mock_connection()
        registry.connect(a)

        outcomes = await relay.broadcast("hello?", a)

        assert outcomes == []
        a.websocket.send_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcast_empty_registry(self, relay):
        outcomes = await relay.broadcast("nobody", create_mock_connection())

        assert outcomes == []

    @pytest.mark.asyncio
    async def test_payload_is_forwarded_unchanged(
        self, relay, open_connections
    ):
        a, b, c = open_connections
        payload = (
            '{"type": "candidate", "candidate": "a=ice ü 🎥",'
            ' "sdpMid": "0"}\n\t  '
        )

        await relay.broadcast(payload, a)

        sent = b.websocket.send_text.call_args[0][0]
        assert sent == payload
        assert sent.encode("utf-8") == payload.encode("utf-8")

    @pytest.mark.asyncio
    async def test_binary_payload_stays_binary(self, relay, open_connections):
        a, b, c = open_connections
        payload = bytes(range(256))

        await relay.broadcast(payload, a)

        b.websocket.send_bytes.assert_awaited_once_with(payload)
        c.websocket.send_bytes.assert_awaited_once_with(payload)
        b.websocket.send_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_scenario_close_between_messages(
        self, relay, registry, open_connections
    ):
        """A, B, C open; A sends; B closes; A sends again."""
        a, b, c = open_connections

        await relay.broadcast("offer:123", a)
        registry.disconnect(b)
        await relay.broadcast("ice:456", a)

        a.websocket.send_text.assert_not_called()
        b.websocket.send_text.assert_awaited_once_with("offer:123")
        assert [call.args[0] for call in c.websocket.send_text.await_args_list] == [
            "offer:123",
            "ice:456",
        ]

    @pytest.mark.asyncio
    async def test_messages_from_one_source_keep_order(
        self, relay, open_connections
    ):
        a, b, c = open_connections

        for i in range(10):
            await relay.broadcast(f"msg-{i}", a)

        received = [call.args[0] for call in b.websocket.send_text.await_args_list]
        assert received == [f"msg-{i}" for i in range(10)]


class TestFailureIsolation:
    """A broken recipient never stops delivery to the others."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            RuntimeError("Cannot call send once a close message has been sent"),
            WebSocketDisconnect(code=1006),
            ConnectionResetError("reset by peer"),
            TimeoutError("transport write timed out"),
            Exception("unexpected"),
        ],
    )
    async def test_failed_recipient_does_not_abort_broadcast(
        self, relay, registry, open_connections, error
    ):
        a, b, c = open_connections
        b.websocket.send_text = AsyncMock(side_effect=error)

        outcomes = await relay.broadcast("offer:123", a)

        c.websocket.send_text.assert_awaited_once_with("offer:123")
        by_id = {o.connection_id: o for o in outcomes}
        assert by_id[b.connection_id].status is DeliveryStatus.FAILED
        assert by_id[b.connection_id].error
        assert by_id[c.connection_id].status is DeliveryStatus.DELIVERED

    @pytest.mark.asyncio
    async def test_failed_recipient_is_not_evicted(
        self, relay, registry, open_connections
    ):
        """Removing a broken peer is the job of its own close path."""
        a, b, c = open_connections
        b.websocket.send_text = AsyncMock(side_effect=RuntimeError("closed"))

        await relay.broadcast("offer:123", a)

        assert registry.contains(b)
        assert len(registry) == 3

    @pytest.mark.asyncio
    async def test_all_recipients_failing(self, relay, open_connections):
        a, b, c = open_connections
        b.websocket.send_text = AsyncMock(side_effect=RuntimeError("closed"))
        c.websocket.send_text = AsyncMock(side_effect=RuntimeError("closed"))

        outcomes = await relay.broadcast("offer:123", a)

        assert len(outcomes) == 2
        assert not any(o.delivered for o in outcomes)

    @pytest.mark.asyncio
    async def test_slow_recipient_times_out(self, registry, open_connections):
        a, b, c = open_connections
        relay = SignalRelay(registry, send_timeout=0.05)

        async def never_finishes(_payload):
            await asyncio.sleep(10)

        b.websocket.send_text = AsyncMock(side_effect=never_finishes)

        outcomes = await asyncio.wait_for(
            relay.broadcast("offer:123", a), timeout=2
        )

        by_id = {o.connection_id: o for o in outcomes}
        assert by_id[b.connection_id].status is DeliveryStatus.TIMEOUT
        assert by_id[c.connection_id].status is DeliveryStatus.DELIVERED
        c.websocket.send_text.assert_awaited_once_with("offer:123")

    @pytest.mark.asyncio
    async def test_transport_timeout_error_is_a_plain_failure(
        self, registry, open_connections
    ):
        """A TimeoutError raised by the socket is not the send deadline."""
        a, b, c = open_connections
        relay = SignalRelay(registry, send_timeout=5.0)
        b.websocket.send_text = AsyncMock(
            side_effect=TimeoutError("transport write timed out")
        )

        outcomes = await relay.broadcast("offer:123", a)

        by_id = {o.connection_id: o for o in outcomes}
        assert by_id[b.connection_id].status is DeliveryStatus.FAILED
        assert "transport write timed out" in by_id[b.connection_id].error
        assert by_id[c.connection_id].status is DeliveryStatus.DELIVERED

    @pytest.mark.asyncio
    async def test_no_timeout_when_disabled(self, registry, open_connections):
        a, b, c = open_connections
        relay = SignalRelay(registry, send_timeout=None)

        async def slowish(_payload):
            await asyncio.sleep(0.05)

        b.websocket.send_text = AsyncMock(side_effect=slowish)

        outcomes = await relay.broadcast("offer:123", a)

        assert all(o.delivered for o in outcomes)

    @pytest.mark.asyncio
    async def test_registry_change_during_broadcast(
        self, relay, registry, open_connections
    ):
        """Connections may come and go while a fan-out is in flight."""
        a, b, c = open_connections
        late = create_mock_connection()

        async def churn(_payload):
            registry.disconnect(c)
            registry.connect(late)

        b.websocket.send_text = AsyncMock(side_effect=churn)

        outcomes = await relay.broadcast("offer:123", a)

        assert len(outcomes) == 2
        assert registry.contains(late)
        assert not registry.contains(c)


class TestRelayMetrics:
    """Delivery outcomes are reflected in Prometheus counters."""

    @pytest.mark.asyncio
    async def test_relayed_counter(self, relay, open_connections):
        a, _, _ = open_connections
        before = _sample("ws_messages_relayed_total")

        await relay.broadcast("offer:123", a)

        assert _sample("ws_messages_relayed_total") == before + 2

    @pytest.mark.asyncio
    async def test_failure_counter(self, relay, open_connections):
        a, b, _ = open_connections
        b.websocket.send_text = AsyncMock(side_effect=RuntimeError("closed"))
        labels = {"reason": "failed"}
        before = _sample("ws_delivery_failures_total", labels)

        await relay.broadcast("offer:123", a)

        assert _sample("ws_delivery_failures_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_broadcast_duration_observed(self, relay, open_connections):
        a, _, _ = open_connections
        before = _sample("ws_broadcast_duration_seconds_count")

        await relay.broadcast("offer:123", a)

        assert _sample("ws_broadcast_duration_seconds_count") == before + 1

    @pytest.mark.asyncio
    async def test_transport_timeout_counted_as_failed(
        self, relay, open_connections
    ):
        a, b, _ = open_connections
        b.websocket.send_text = AsyncMock(side_effect=TimeoutError("slow link"))
        failed = {"reason": "failed"}
        timeout = {"reason": "timeout"}
        before_failed = _sample("ws_delivery_failures_total", failed)
        before_timeout = _sample("ws_delivery_failures_total", timeout)

        await relay.broadcast("offer:123", a)

        assert _sample("ws_delivery_failures_total", failed) == before_failed + 1
        assert _sample("ws_delivery_failures_total", timeout) == before_timeout
