from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional, List

from .status import OrderStatus
from .status_mapping import parse_order_status


class OrderLine(BaseModel):
    """A single SKU line on a Purchase Order."""
    sku: str
    name: Optional[str] = None
    quantity_expected: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("quantity_expected", "quantityExpected"),
    )
    # Aggregate of accepted quantities from all non-cancelled deliveries.
    quantity_received: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("quantity_received", "quantityReceived"),
    )
    is_added_later: bool = Field(
        default=False, validation_alias=AliasChoices("is_added_later", "isAddedLater"),
    )
    is_deleted: bool = Field(
        default=False, validation_alias=AliasChoices("is_deleted", "isDeleted"),
    )


class PurchaseOrder(BaseModel):
    """
    A Purchase Order as supplied by the data-access layer.
    id is the primary key used to link receipts and tickets.
    """
    id: str
    supplier: Optional[str] = None
    status: OrderStatus = OrderStatus.OPEN
    date_created: Optional[str] = Field(            # YYYY-MM-DD
        default=None, validation_alias=AliasChoices("date_created", "dateCreated"),
    )
    expected_delivery_date: Optional[str] = Field(  # YYYY-MM-DD
        default=None, validation_alias=AliasChoices("expected_delivery_date", "expectedDeliveryDate"),
    )
    # Manual override: remaining shortfall accepted, order closed.
    is_force_closed: bool = Field(
        default=False, validation_alias=AliasChoices("is_force_closed", "isForceClosed"),
    )
    is_archived: bool = Field(
        default=False, validation_alias=AliasChoices("is_archived", "isArchived"),
    )
    linked_receipt_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("linked_receipt_id", "linkedReceiptId"),
    )
    lines: List[OrderLine] = Field(
        default_factory=list, validation_alias=AliasChoices("lines", "items"),
    )

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        return parse_order_status(value)

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED

    @property
    def active_lines(self) -> List[OrderLine]:
        """Lines that count toward totals (soft-deleted lines excluded)."""
        return [line for line in self.lines if not line.is_deleted]
