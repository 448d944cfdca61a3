from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Literal

from .status import TicketStatus


class Ticket(BaseModel):
    """
    A quality/complaint case linked to a receipt (and through it to an order).
    receipt_id may reference the receipt master, one of its deliveries, or
    the order itself.
    """
    id: str
    receipt_id: str = Field(validation_alias=AliasChoices("receipt_id", "receiptId"))
    subject: str = ""
    status: TicketStatus = TicketStatus.OPEN
    priority: Literal["Normal", "High", "Urgent"] = "Normal"

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        if isinstance(value, str) and value.strip().lower() in ("open", "offen"):
            return TicketStatus.OPEN
        if isinstance(value, str) and value.strip().lower() in ("closed", "geschlossen"):
            return TicketStatus.CLOSED
        return value

    @property
    def is_open(self) -> bool:
        return self.status == TicketStatus.OPEN
