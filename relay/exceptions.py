"""
Custom exception classes for the relay.

This module defines the exceptions raised around connection bookkeeping
and message delivery.
"""


class RelayError(Exception):
    """
    Base class for relay errors.
    """

    pass


class RegistrationError(RelayError):
    """
    Connection registration failed.

    Raised when a connection cannot be added to the registry. It is fatal
    to the connection being opened and propagates to the transport layer,
    which closes that connection.
    """

    pass


class DeliveryError(RelayError):
    """
    Sending a payload to one recipient failed.

    Raised per recipient inside a broadcast and converted into a delivery
    outcome there. It never aborts the broadcast.
    """

    def __init__(self, connection_id: str, reason: str):
        super().__init__(f"Delivery to {connection_id} failed: {reason}")
        self.connection_id = connection_id
        self.reason = reason


class DeliveryTimeoutError(DeliveryError):
    """
    Sending a payload to one recipient exceeded the send timeout.
    """

    pass
