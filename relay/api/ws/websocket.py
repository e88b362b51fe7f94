from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket

from relay.constants import LOG_PAYLOAD_PREVIEW_CHARS
from relay.logging import clear_log_context, logger, set_log_context
from relay.managers.connection_registry import (
    Connection,
    ConnectionRegistry,
    Payload,
)
from relay.managers.signal_relay import SignalRelay
from relay.settings import app_settings
from relay.utils.metrics import (
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
)


class SignalingEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint that relays signaling messages between peers.

    Every accepted connection is registered in the application's
    `ConnectionRegistry`; each message it sends is forwarded verbatim to
    all other registered connections by the application's `SignalRelay`.
    Both objects are created once by the application factory and read
    from `app.state`.
    """

    encoding = None  # Relay text and binary frames as they arrive

    connection: Connection | None = None

    @property
    def registry(self) -> ConnectionRegistry:
        return self.scope["app"].state.registry

    @property
    def relay(self) -> SignalRelay:
        return self.scope["app"].state.relay

    async def dispatch(self) -> None:
        """
        Runs the connection lifecycle: open, receive loop, close.

        `on_disconnect` runs in every case once `on_connect` has succeeded,
        so the registry never keeps a dead connection. If `on_connect`
        raises, the error propagates to the server, which closes the
        socket.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        await self.on_connect(websocket)

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)

    async def decode(
        self, websocket: WebSocket, message: dict[str, Any]
    ) -> Payload:
        """
        Extract the raw payload from an ASGI receive message.

        Text frames yield `str` and binary frames yield `bytes`; nothing is
        parsed, so an empty text frame stays an empty string.
        """
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Accepts the handshake and registers the new connection.

        Raises:
            RegistrationError: If the registry refuses the connection.
        """
        await super().on_connect(websocket)

        self.connection = Connection(websocket)
        set_log_context(
            connection_id=self.connection.connection_id,
            client=self.connection.client,
        )

        try:
            self.registry.connect(self.connection)
        except Exception:
            # Fatal to this connection only; the server closes the socket
            ws_connections_total.labels(status="rejected").inc()
            logger.error("Could not register connection", exc_info=True)
            self.connection = None
            raise

        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()
        logger.info(f"Opening connection from {self.connection.client}")

    async def on_receive(self, websocket: WebSocket, data: Payload) -> None:
        """
        Forwards the payload to every other open connection.

        Messages from a connection that is no longer registered are
        dropped, since they can only come from a close race.
        """
        if self.connection is None or not self.registry.contains(
            self.connection
        ):
            logger.debug("Ignoring message from a closed connection")
            return

        ws_messages_received_total.inc()

        if app_settings.LOG_PAYLOADS:
            logger.info(
                f"Received signal: {data[:LOG_PAYLOAD_PREVIEW_CHARS]!r}"
            )
        else:
            logger.info(f"Received signal of length {len(data)}")

        await self.relay.broadcast(data, self.connection)

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """
        Deregisters the connection.

        Safe to call for a connection that was never registered or has
        already been removed.
        """
        await super().on_disconnect(websocket, close_code)

        if self.connection is not None and self.registry.disconnect(
            self.connection
        ):
            ws_connections_active.dec()

        logger.info(f"Closing connection with code {close_code}")
        clear_log_context()
