from enum import Enum


class DeliveryStatus(str, Enum):
    """
    Outcome of sending one broadcast payload to one recipient.

    Attributes:
        DELIVERED: The payload was written to the recipient's transport
        FAILED: The transport raised while sending
        TIMEOUT: The send did not finish within the configured timeout

    Example:
        >>> status = DeliveryStatus.TIMEOUT
        >>> str(status)
        'DeliveryStatus.TIMEOUT<timeout>'
    """

    DELIVERED = "delivered"
    FAILED = "failed"
    TIMEOUT = "timeout"

    def __str__(self):
        """
        Returns a string representation of the enum member in the format example "DeliveryStatus.FAILED<failed>".
        """
        return f"{__class__.__name__}.{self.name}<{self.value}>"
