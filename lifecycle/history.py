"""
Status history reconstruction.

Receipt masters only keep their current status, so the history shown to
users is inferred from the delivery logs: each booked delivery note is read
as one transition. The result reflects observed facts, not intent.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional, Union

from models.receipt import DeliveryLog
from models.result import Transition
from models.status import ReceiptStatus
from models.status_mapping import is_placeholder_status, parse_receipt_status
from .quantities import sort_deliveries

logger = logging.getLogger(__name__)

PLACEHOLDER_NOTES = ("ausstehend", "pending")
DEFAULT_ACTOR = "system"

REASON_DELIVERY_NOTE = "delivery-note {note}"
REASON_BOOKING_CANCELLED = "booking cancelled"
REASON_STATUS_UPDATE = "status update"


def infer_delivery_status(delivery: DeliveryLog) -> ReceiptStatus:
    """The status a single delivery moved its receipt into."""
    if delivery.is_cancelled:
        return ReceiptStatus.CANCELLED

    items = delivery.items
    damaged = any(i.is_damaged for i in items)
    wrong = any(i.is_wrong_item for i in items)

    if damaged and wrong:
        return ReceiptStatus.DAMAGED_WRONG
    if damaged:
        return ReceiptStatus.DAMAGED
    if wrong:
        return ReceiptStatus.WRONG_ITEM
    if any(i.overage_qty > 0 for i in items):
        return ReceiptStatus.OVERAGE
    if any(i.shortfall_qty > 0 for i in items):
        return ReceiptStatus.PARTIAL_DELIVERY
    return ReceiptStatus.BOOKED


def reconstruct_status_history(
    deliveries: Iterable[DeliveryLog],
    final_status: Union[ReceiptStatus, str, None] = None,
    *,
    now: Optional[datetime] = None,
    placeholder_notes: Iterable[str] = PLACEHOLDER_NOTES,
    default_actor: str = DEFAULT_ACTOR,
) -> list[Transition]:
    """
    Infer the transition list of a receipt, most recent first.

    Deliveries without a delivery note (or with a placeholder note) are not
    bookings and are skipped. When *final_status* differs from the last
    inferred status a synthetic "status update" transition is appended,
    dated *now*. A final status that is not recognised is kept as its text.
    """
    placeholders = {p.strip().lower() for p in placeholder_notes}
    booked = [
        d for d in deliveries
        if (d.delivery_note or "").strip() and d.delivery_note.strip().lower() not in placeholders
    ]
    if not booked:
        return []

    entries: list[Transition] = []
    previous = ReceiptStatus.CREATED
    for delivery in sort_deliveries(booked):
        status = infer_delivery_status(delivery)
        if delivery.is_cancelled:
            reason = REASON_BOOKING_CANCELLED
        else:
            reason = REASON_DELIVERY_NOTE.format(note=delivery.delivery_note.strip())
        entries.append(Transition(
            date=delivery.date,
            from_status=previous,
            to_status=status,
            actor=delivery.created_by or default_actor,
            reason=reason,
        ))
        previous = status

    final: Union[ReceiptStatus, str, None]
    if isinstance(final_status, ReceiptStatus) or final_status is None:
        final = final_status
    elif is_placeholder_status(final_status):
        final = None
    else:
        final = parse_receipt_status(final_status)
        if final is None:
            logger.debug("Keeping unrecognised final status %r as text", final_status)
            final = final_status.strip()

    if final is not None and final != previous:
        entries.append(Transition(
            date=(now or datetime.now()).isoformat(timespec="seconds"),
            from_status=previous,
            to_status=final,
            actor=default_actor,
            reason=REASON_STATUS_UPDATE,
        ))

    entries.reverse()
    return entries
