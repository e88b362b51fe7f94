import threading
import uuid

from starlette.websockets import WebSocket

from relay.exceptions import RegistrationError
from relay.logging import logger

Payload = str | bytes


class Connection:
    """
    One participant's live WebSocket session.

    Identity is the ``connection_id`` only; two wrappers around the same
    id compare equal, regardless of the payloads they carry.
    """

    def __init__(
        self, websocket: WebSocket, connection_id: str | None = None
    ) -> None:
        self.websocket = websocket
        self.connection_id = connection_id or uuid.uuid4().hex

    @property
    def client(self) -> str:
        """Printable remote address, for log lines only."""
        client = getattr(self.websocket, "client", None)
        if client is None:
            return "unknown"
        return f"{client.host}:{client.port}"

    async def send(self, payload: Payload) -> None:
        """
        Writes the payload to the remote peer unchanged.

        Text payloads go out as text frames, bytes as binary frames.
        """
        if isinstance(payload, bytes):
            await self.websocket.send_bytes(payload)
        else:
            await self.websocket.send_text(payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Connection):
            return NotImplemented
        return self.connection_id == other.connection_id

    def __hash__(self) -> int:
        return hash(self.connection_id)

    def __repr__(self) -> str:
        return f"Connection({self.connection_id[:8]})"


class ConnectionRegistry:
    """
    Registry of currently open connections.

    Keyed by connection id and guarded by a lock that is never held across
    an ``await``, so every operation is safe from concurrent connection
    tasks. Broadcasts iterate over snapshots, which lets connections come
    and go while a fan-out is in flight.
    """

    def __init__(self) -> None:
        """
        Initializes an empty registry.

        The `connections` attribute maps connection ids to their
        `Connection` objects.
        """
        self.connections: dict[str, Connection] = {}
        self._lock = threading.Lock()

    def connect(self, connection: Connection) -> None:
        """
        Adds an open connection to the registry.

        Args:
            connection: The connection that has just been opened.

        Raises:
            RegistrationError: If the connection id is already registered.
        """
        with self._lock:
            if connection.connection_id in self.connections:
                raise RegistrationError(
                    f"Connection {connection.connection_id} is already registered"
                )
            self.connections[connection.connection_id] = connection
            total = len(self.connections)

        logger.debug(
            f"connection {connection.connection_id} added to registry "
            f"({total} open)"
        )

    def disconnect(self, connection: Connection) -> bool:
        """
        Removes a connection from the registry.

        Removing a connection that is not registered is a no-op.

        Args:
            connection: The connection that is closing.

        Returns:
            True if the connection was registered and has been removed.
        """
        with self._lock:
            removed = self.connections.pop(connection.connection_id, None)
            total = len(self.connections)

        if removed is None:
            return False

        logger.debug(
            f"connection {connection.connection_id} removed from registry "
            f"({total} open)"
        )
        return True

    def contains(self, connection: Connection) -> bool:
        with self._lock:
            return connection.connection_id in self.connections

    def snapshot(self) -> list[Connection]:
        """Returns a point-in-time copy of all open connections."""
        with self._lock:
            return list(self.connections.values())

    def peers_of(self, connection: Connection) -> list[Connection]:
        """Returns a snapshot of every open connection except ``connection``."""
        return [c for c in self.snapshot() if c != connection]

    def __len__(self) -> int:
        with self._lock:
            return len(self.connections)
