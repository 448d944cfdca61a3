"""
Status classification.

Derives the canonical lifecycle status and the ordered badge stack of a
purchase order from raw facts: stored line quantities, cancel/force-close
flags, delivery quality flags, open tickets and the delivery-date class.

Canonical status, first match wins:
  1. cancelled     order cancelled
  2. closed        force-closed (shortfall accepted if anything is missing)
  3. issue         open ticket, damaged/wrong/rejected goods, or overdue
  4. complete      received == ordered > 0
  5. overage       received > ordered
  6. partial       0 < received < ordered
  7. due-today / due-tomorrow
  8. open

Badges stack additively, one per category:
  identity -> lifecycle -> receipt process -> delivery timing -> open tickets
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from models.purchase_order import PurchaseOrder
from models.receipt import ReceiptMaster
from models.result import Badge, QuantitySummary, StatusResult
from models.status import (
    BADGE_LABELS, BadgeCategory, BadgeKind, CanonicalStatus, DateClass,
    IssueKind, OrderStatus, ReceiptStatus,
)
from models.ticket import Ticket
from .archive import ArchiveRegistry
from .dates import classify_delivery_date
from .quantities import compute_quantities

logger = logging.getLogger(__name__)

PROJECT_ID_MARKER = "projekt"

# Receipt statuses that carry a quality problem
QUALITY_RECEIPT_STATUSES = {
    ReceiptStatus.DAMAGED,
    ReceiptStatus.WRONG_ITEM,
    ReceiptStatus.DAMAGED_WRONG,
    ReceiptStatus.REJECTED,
}

_RECEIPT_PROCESS_BADGES: dict[ReceiptStatus, BadgeKind] = {
    ReceiptStatus.AWAITING_DELIVERY: BadgeKind.AWAITING_DELIVERY,
    ReceiptStatus.DAMAGED:           BadgeKind.DAMAGED,
    ReceiptStatus.WRONG_ITEM:        BadgeKind.WRONG_ITEM,
    ReceiptStatus.DAMAGED_WRONG:     BadgeKind.DAMAGED_WRONG,
    ReceiptStatus.OVERAGE:           BadgeKind.OVERAGE,
    ReceiptStatus.REJECTED:          BadgeKind.REJECTED,
}

_DATE_BADGES: dict[DateClass, BadgeKind] = {
    DateClass.DUE_TOMORROW: BadgeKind.DUE_TOMORROW,
    DateClass.DUE_TODAY:    BadgeKind.DUE_TODAY,
    DateClass.OVERDUE:      BadgeKind.OVERDUE,
}


@dataclass(frozen=True)
class QualityFlags:
    """
    Receipt quality signals. This is the one definition of "quality issue"
    shared by the classifier, the stepper and the receipt categories.
    """
    damaged: bool = False
    wrong_item: bool = False
    rejected: bool = False

    @property
    def has_issue(self) -> bool:
        return self.damaged or self.wrong_item or self.rejected

    @property
    def issue_kind(self) -> Optional[IssueKind]:
        if self.damaged and self.wrong_item:
            return IssueKind.DAMAGED_WRONG
        if self.damaged:
            return IssueKind.DAMAGED
        if self.wrong_item:
            return IssueKind.WRONG_ITEM
        if self.rejected:
            return IssueKind.REJECTED
        return None


def quality_flags(receipt: Optional[ReceiptMaster]) -> QualityFlags:
    """Combine item-level flags of accepted deliveries with the recorded receipt status."""
    if receipt is None:
        return QualityFlags()

    items = [item for d in receipt.active_deliveries for item in d.items]
    status = receipt.status
    flags = QualityFlags(
        damaged=any(i.is_damaged for i in items)
        or status in (ReceiptStatus.DAMAGED, ReceiptStatus.DAMAGED_WRONG),
        wrong_item=any(i.is_wrong_item for i in items)
        or status in (ReceiptStatus.WRONG_ITEM, ReceiptStatus.DAMAGED_WRONG),
        rejected=any(i.is_rejected for i in items)
        or status == ReceiptStatus.REJECTED,
    )
    if flags.has_issue:
        logger.debug("Receipt %s has quality flags: %s", receipt.id, flags)
    return flags


def is_project_order(order: PurchaseOrder, marker: str = PROJECT_ID_MARKER) -> bool:
    return order.status == OrderStatus.PROJECT or (bool(marker) and marker.lower() in order.id.lower())


def effective_receipt_status(
    order: PurchaseOrder,
    receipt: Optional[ReceiptMaster],
    quantities: QuantitySummary,
) -> Optional[ReceiptStatus]:
    """
    The status the date evaluator judges against. Cancelled and force-closed
    orders win over whatever the receipt still records; otherwise the
    receipt's own status, otherwise one derived from the quantities.
    """
    if order.is_cancelled:
        return ReceiptStatus.CANCELLED
    if order.is_force_closed:
        return ReceiptStatus.CLOSED
    if receipt is not None and receipt.status is not None:
        return receipt.status
    ordered, received = quantities.total_ordered, quantities.total_received
    if ordered > 0 and received == ordered:
        return ReceiptStatus.CLOSED
    if received > 0:
        return ReceiptStatus.PARTIAL_DELIVERY
    return None


class StatusClassifier:
    """
    Classifies purchase orders.

    Usage:
        classifier = StatusClassifier(archive=registry)
        result = classifier.classify(order, receipt, tickets)
    """

    def __init__(
        self,
        archive: Optional[ArchiveRegistry] = None,
        today: Optional[date] = None,
        show_ticket_badge: bool = False,
        project_marker: str = PROJECT_ID_MARKER,
    ):
        self.archive = archive
        self.today = today
        self.show_ticket_badge = show_ticket_badge
        self.project_marker = project_marker

    def classify(
        self,
        order: PurchaseOrder,
        receipt: Optional[ReceiptMaster] = None,
        tickets: Optional[Iterable[Ticket]] = None,
    ) -> StatusResult:
        """Run the priority chain and build the badge stack."""
        quantities = compute_quantities(order)
        ordered, received = quantities.total_ordered, quantities.total_received
        open_tickets = sum(1 for t in (tickets or ()) if t.is_open)
        flags = quality_flags(receipt)
        status = effective_receipt_status(order, receipt, quantities)
        date_class = classify_delivery_date(order.expected_delivery_date, status, self.today)

        canonical, issue = self._canonical(order, ordered, received, open_tickets, flags, date_class)
        logger.debug(
            "Order %s: ordered=%d received=%d tickets=%d flags=%s date=%s -> %s",
            order.id, ordered, received, open_tickets, flags, date_class.value, canonical.value,
        )

        return StatusResult(
            order_id=order.id,
            canonical_status=canonical,
            issue=issue,
            badges=self._badges(order, receipt, ordered, received, date_class, open_tickets),
            date_class=date_class,
            receipt_status=status,
            total_ordered=ordered,
            total_received=received,
            open_ticket_count=open_tickets,
            has_damage=flags.damaged,
            has_wrong_item=flags.wrong_item,
            has_rejection=flags.rejected,
            shortfall_accepted=order.is_force_closed and not order.is_cancelled and received < ordered,
        )

    # ------------------------------------------------------------------
    # Canonical status
    # ------------------------------------------------------------------

    @staticmethod
    def _canonical(
        order: PurchaseOrder,
        ordered: int,
        received: int,
        open_tickets: int,
        flags: QualityFlags,
        date_class: DateClass,
    ) -> tuple[CanonicalStatus, Optional[IssueKind]]:
        if order.is_cancelled:
            return CanonicalStatus.CANCELLED, None
        if order.is_force_closed:
            return CanonicalStatus.CLOSED, None

        overdue = date_class == DateClass.OVERDUE
        if open_tickets or flags.has_issue or overdue:
            issue = flags.issue_kind
            if issue is None:
                issue = IssueKind.OVERDUE if overdue else IssueKind.OPEN_TICKET
            return CanonicalStatus.ISSUE, issue

        if ordered > 0 and received == ordered:
            return CanonicalStatus.COMPLETE, None
        if received > ordered:
            return CanonicalStatus.OVERAGE, None
        if 0 < received < ordered:
            return CanonicalStatus.PARTIAL, None
        if date_class == DateClass.DUE_TODAY:
            return CanonicalStatus.DUE_TODAY, None
        if date_class == DateClass.DUE_TOMORROW:
            return CanonicalStatus.DUE_TOMORROW, None
        return CanonicalStatus.OPEN, None

    # ------------------------------------------------------------------
    # Badges
    # ------------------------------------------------------------------

    def _badges(
        self,
        order: PurchaseOrder,
        receipt: Optional[ReceiptMaster],
        ordered: int,
        received: int,
        date_class: DateClass,
        open_tickets: int,
    ) -> list[Badge]:
        badges: list[Badge] = []

        identity = BadgeKind.PROJECT if is_project_order(order, self.project_marker) else BadgeKind.WAREHOUSE_STOCK
        badges.append(_badge(BadgeCategory.IDENTITY, identity))

        process = self._receipt_process_badge(receipt, ordered, received)
        quality_badge = process is not None and receipt.status in QUALITY_RECEIPT_STATUSES

        lifecycle = self._lifecycle_badge(order, ordered, received, quality_badge)
        if lifecycle is not None:
            badges.append(lifecycle)
        if process is not None:
            badges.append(process)

        if date_class in _DATE_BADGES:
            badges.append(_badge(BadgeCategory.DELIVERY_TIMING, _DATE_BADGES[date_class]))

        if self.show_ticket_badge and open_tickets > 0:
            badges.append(Badge(
                category=BadgeCategory.TICKETS,
                kind=BadgeKind.OPEN_TICKETS,
                label=f"{open_tickets} {BADGE_LABELS[BadgeKind.OPEN_TICKETS]}",
                count=open_tickets,
            ))

        return badges

    def _lifecycle_badge(
        self,
        order: PurchaseOrder,
        ordered: int,
        received: int,
        quality_badge: bool,
    ) -> Optional[Badge]:
        if order.is_archived or (self.archive is not None and self.archive.is_archived(order.id)):
            return _badge(BadgeCategory.LIFECYCLE, BadgeKind.ARCHIVED)
        if order.is_cancelled:
            return _badge(BadgeCategory.LIFECYCLE, BadgeKind.CANCELLED)
        if order.is_force_closed:
            return _badge(BadgeCategory.LIFECYCLE, BadgeKind.CLOSED, muted=received < ordered)
        if received == 0:
            return _badge(BadgeCategory.LIFECYCLE, BadgeKind.OPEN)
        if received < ordered:
            # The quality badge already tells the story
            return None if quality_badge else _badge(BadgeCategory.LIFECYCLE, BadgeKind.PARTIAL)
        if received == ordered:
            return _badge(BadgeCategory.LIFECYCLE, BadgeKind.DONE)
        return _badge(BadgeCategory.LIFECYCLE, BadgeKind.OVERAGE)

    @staticmethod
    def _receipt_process_badge(
        receipt: Optional[ReceiptMaster],
        ordered: int,
        received: int,
    ) -> Optional[Badge]:
        if receipt is None or receipt.status not in _RECEIPT_PROCESS_BADGES:
            return None
        kind = _RECEIPT_PROCESS_BADGES[receipt.status]
        if kind == BadgeKind.OVERAGE and received > ordered:
            return None  # lifecycle badge already shows the overage
        return _badge(BadgeCategory.RECEIPT_PROCESS, kind)


def _badge(category: BadgeCategory, kind: BadgeKind, muted: bool = False) -> Badge:
    return Badge(category=category, kind=kind, label=BADGE_LABELS[kind], muted=muted)


def classify_order(
    order: PurchaseOrder,
    receipt: Optional[ReceiptMaster] = None,
    tickets: Optional[Iterable[Ticket]] = None,
    *,
    archive: Optional[ArchiveRegistry] = None,
    today: Optional[date] = None,
    show_ticket_badge: bool = False,
    project_marker: str = PROJECT_ID_MARKER,
) -> StatusResult:
    """Classify a single order. See StatusClassifier."""
    classifier = StatusClassifier(
        archive=archive, today=today,
        show_ticket_badge=show_ticket_badge, project_marker=project_marker,
    )
    return classifier.classify(order, receipt, tickets)
