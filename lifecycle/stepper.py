"""
Three-stage lifecycle stepper: ordered -> goods receipt -> closed.

The stepper is a view over a StatusResult, so it can never disagree with the
canonical status shown next to it.
"""
from datetime import date
from typing import Iterable, Optional

from models.purchase_order import PurchaseOrder
from models.receipt import ReceiptMaster
from models.result import StageResult, StatusResult, StepperResult
from models.status import CanonicalStatus, DateClass, ReceiptStatus, Stage, StageState
from models.ticket import Ticket
from .archive import ArchiveRegistry
from .classifier import classify_order

CAPTION_ORDERED = "Bestellt"
CAPTION_GOODS_RECEIPT = "Wareneingang"
CAPTION_CLOSED = "Abgeschlossen"

_DATE_CAPTIONS = {
    DateClass.OVERDUE:      "Verspätet!",
    DateClass.DUE_TODAY:    "Heute!",
    DateClass.DUE_TOMORROW: "Morgen",
}

_RECEIVING_STATUSES = {ReceiptStatus.AWAITING_DELIVERY, ReceiptStatus.PARTIAL_DELIVERY}


def build_stepper(result: StatusResult) -> StepperResult:
    blocked = result.open_ticket_count > 0 or result.has_quality_issue

    if blocked or result.date_class == DateClass.OVERDUE:
        receipt_state = StageState.ISSUE
    elif result.canonical_status in (CanonicalStatus.CLOSED, CanonicalStatus.COMPLETE):
        receipt_state = StageState.COMPLETED
    elif (
        result.canonical_status in (CanonicalStatus.PARTIAL, CanonicalStatus.OVERAGE)
        or result.receipt_status in _RECEIVING_STATUSES
        or result.date_class in (DateClass.DUE_TODAY, DateClass.DUE_TOMORROW)
    ):
        receipt_state = StageState.CURRENT
    else:
        receipt_state = StageState.PENDING

    if result.canonical_status == CanonicalStatus.COMPLETE and not blocked:
        closed_state = StageState.COMPLETED
    else:
        closed_state = StageState.PENDING

    return StepperResult(stages=[
        StageResult(stage=Stage.ORDERED, state=StageState.COMPLETED, caption=CAPTION_ORDERED),
        StageResult(
            stage=Stage.GOODS_RECEIPT,
            state=receipt_state,
            caption=_DATE_CAPTIONS.get(result.date_class, CAPTION_GOODS_RECEIPT),
        ),
        StageResult(stage=Stage.CLOSED, state=closed_state, caption=CAPTION_CLOSED),
    ])


def stepper_state(
    order: PurchaseOrder,
    receipt: Optional[ReceiptMaster] = None,
    tickets: Optional[Iterable[Ticket]] = None,
    *,
    today: Optional[date] = None,
    archive: Optional[ArchiveRegistry] = None,
) -> StepperResult:
    """Classify *order* and render its stepper."""
    return build_stepper(classify_order(order, receipt, tickets, archive=archive, today=today))
