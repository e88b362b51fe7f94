import asyncio
import time

from relay.api.ws.constants import DeliveryStatus
from relay.exceptions import DeliveryError, DeliveryTimeoutError
from relay.logging import logger
from relay.managers.connection_registry import (
    Connection,
    ConnectionRegistry,
    Payload,
)
from relay.schemas.delivery import DeliveryOutcome
from relay.utils.metrics import (
    ws_broadcast_duration_seconds,
    ws_delivery_failures_total,
    ws_messages_relayed_total,
)


class SignalRelay:
    """
    Fans signaling messages out to every other open connection.

    Payloads are forwarded untouched. Each recipient is sent to in its own
    coroutine with an optional timeout, so one broken or slow peer neither
    aborts nor stalls delivery to the rest. Failing recipients are only
    reported; removing them is left to their own close path.
    """

    def __init__(
        self, registry: ConnectionRegistry, send_timeout: float | None = None
    ) -> None:
        """
        Args:
            registry: The registry of open connections to broadcast over.
            send_timeout: Seconds allowed per recipient send, None for no limit.
        """
        self.registry = registry
        self.send_timeout = send_timeout

    async def _send(self, connection: Connection, payload: Payload) -> None:
        """
        Sends to one recipient, normalizing every failure to DeliveryError.

        Only the relay's own deadline counts as a timeout. A `TimeoutError`
        raised by the transport itself is an ordinary failure.

        Raises:
            DeliveryTimeoutError: If the send outlived `send_timeout`.
            DeliveryError: If the send raised.
        """
        deadline = asyncio.timeout(self.send_timeout)
        try:
            async with deadline:
                await connection.send(payload)
        except TimeoutError as e:
            if deadline.expired():
                raise DeliveryTimeoutError(
                    connection.connection_id,
                    f"send timed out after {self.send_timeout}s",
                ) from e
            raise DeliveryError(connection.connection_id, repr(e)) from e
        except Exception as e:
            # WebSocketDisconnect, RuntimeError (socket already closed),
            # ConnectionError and anything else the transport raises
            raise DeliveryError(connection.connection_id, repr(e)) from e

    async def deliver(
        self, connection: Connection, payload: Payload
    ) -> DeliveryOutcome:
        """
        Delivers a payload to a single recipient and reports the outcome.

        Never raises for transport failures.
        """
        try:
            await self._send(connection, payload)
        except DeliveryError as e:
            status = (
                DeliveryStatus.TIMEOUT
                if isinstance(e, DeliveryTimeoutError)
                else DeliveryStatus.FAILED
            )
            ws_delivery_failures_total.labels(reason=status.value).inc()
            logger.warning(f"{e} ({connection.client})")
            return DeliveryOutcome.failed(
                connection.connection_id, e.reason, status=status
            )

        ws_messages_relayed_total.inc()
        return DeliveryOutcome.ok(connection.connection_id)

    async def broadcast(
        self, payload: Payload, source: Connection
    ) -> list[DeliveryOutcome]:
        """
        Sends payload to every open connection except its source.

        Recipients are taken from a registry snapshot at call time and are
        sent to concurrently.

        Args:
            payload: Opaque text or binary message, forwarded unchanged.
            source: The connection the message arrived from.

        Returns:
            One outcome per attempted recipient, empty if the source is alone.
        """
        recipients = self.registry.peers_of(source)
        if not recipients:
            return []

        start_time = time.time()
        outcomes = await asyncio.gather(
            *[self.deliver(recipient, payload) for recipient in recipients]
        )
        ws_broadcast_duration_seconds.observe(time.time() - start_time)

        failed = sum(1 for outcome in outcomes if not outcome.delivered)
        logger.debug(
            f"Relayed message to {len(outcomes) - failed}/{len(outcomes)} peers"
        )
        return list(outcomes)
