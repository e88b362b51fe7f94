from pydantic import BaseModel, Field

from relay.api.ws.constants import DeliveryStatus


class DeliveryOutcome(BaseModel):  # type: ignore[misc]
    """Result of one broadcast attempt to one recipient."""

    connection_id: str = Field(frozen=True)
    status: DeliveryStatus = Field(frozen=True)
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED

    @classmethod
    def ok(cls, connection_id: str) -> "DeliveryOutcome":
        return cls(connection_id=connection_id, status=DeliveryStatus.DELIVERED)

    @classmethod
    def failed(
        cls,
        connection_id: str,
        error: str,
        status: DeliveryStatus = DeliveryStatus.FAILED,
    ) -> "DeliveryOutcome":
        return cls(connection_id=connection_id, status=status, error=error)
