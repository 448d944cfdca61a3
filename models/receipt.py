from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import Optional, List

from .status import ReceiptStatus, RejectionReason
from .status_mapping import parse_receipt_status, parse_rejection_reason


class DeliveryLogItem(BaseModel):
    """One SKU counted on a physical delivery."""
    sku: str
    # Total physical count (accepted + rejected)
    received_qty: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("received_qty", "receivedQty"),
    )
    quantity_accepted: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("quantity_accepted", "quantityAccepted"),
    )
    quantity_rejected: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("quantity_rejected", "quantityRejected"),
    )
    rejection_reason: Optional[RejectionReason] = Field(
        default=None, validation_alias=AliasChoices("rejection_reason", "rejectionReason"),
    )
    damage_flag: bool = Field(
        default=False, validation_alias=AliasChoices("damage_flag", "damageFlag"),
    )
    manual_add_flag: bool = Field(
        default=False, validation_alias=AliasChoices("manual_add_flag", "manualAddFlag"),
    )

    # Snapshot fields written at booking time
    ordered_qty: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("ordered_qty", "orderedQty"),
    )
    previous_received: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("previous_received", "previousReceived"),
    )
    shortfall_qty: int = Field(            # 'offen'
        default=0, ge=0, validation_alias=AliasChoices("shortfall_qty", "offen"),
    )
    overage_qty: int = Field(              # 'zuViel'
        default=0, ge=0, validation_alias=AliasChoices("overage_qty", "zuViel", "zu_viel"),
    )

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def _coerce_reason(cls, value):
        return parse_rejection_reason(value)

    @property
    def accepted_qty(self) -> int:
        if self.quantity_accepted is not None:
            return self.quantity_accepted
        return max(0, self.received_qty - self.quantity_rejected)

    @property
    def is_damaged(self) -> bool:
        return self.damage_flag or (
            self.rejection_reason == RejectionReason.DAMAGED and self.quantity_rejected > 0
        )

    @property
    def is_wrong_item(self) -> bool:
        return self.rejection_reason == RejectionReason.WRONG and self.quantity_rejected > 0

    @property
    def is_rejected(self) -> bool:
        """Rejected for a reason other than damage or wrong item."""
        return self.quantity_rejected > 0 and not (self.is_damaged or self.is_wrong_item)


class DeliveryLog(BaseModel):
    """
    Immutable record of one physical delivery against a receipt master.
    A cancelled delivery contributes nothing to any aggregate.
    """
    id: str
    date: Optional[str] = None              # ISO date or datetime
    delivery_note: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("delivery_note", "lieferscheinNr"),
    )
    is_cancelled: bool = Field(
        default=False, validation_alias=AliasChoices("is_cancelled", "isStorniert"),
    )
    created_by: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("created_by", "createdByName"),
    )
    items: List[DeliveryLogItem] = Field(default_factory=list)


class ReceiptMaster(BaseModel):
    """
    Goods-receipt master for one Purchase Order.
    status is the legacy recorded status, normalised; raw_status keeps the
    legacy text so unknown values can still be displayed.
    """
    id: str
    po_id: str = Field(validation_alias=AliasChoices("po_id", "poId"))
    status: Optional[ReceiptStatus] = None
    raw_status: Optional[str] = None
    deliveries: List[DeliveryLog] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _capture_raw_status(cls, data):
        if isinstance(data, dict) and isinstance(data.get("status"), str):
            data = dict(data)
            data.setdefault("raw_status", data["status"])
            data["status"] = parse_receipt_status(data["status"])
        return data

    @property
    def active_deliveries(self) -> List[DeliveryLog]:
        return [d for d in self.deliveries if not d.is_cancelled]
