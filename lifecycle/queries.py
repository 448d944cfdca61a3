"""
Order book: one consistent snapshot of orders, receipts and tickets.

Resolves the links between records (order -> receipt -> deliveries, tickets
by lineage) and answers the list queries and per-order derivations used by
the CLI and the dashboard. The book never mutates its records; rebuild it
after the underlying data changes.
"""
import logging
from datetime import date, datetime
from typing import Iterable, Optional

from config import Config
from models.purchase_order import PurchaseOrder
from models.receipt import ReceiptMaster
from models.result import (
    OrderCounts, QuantitySummary, ReceiptCounts, SkuQuantity, Snapshot,
    StatusResult, StepperResult, Transition,
)
from models.status import OrderFilter, ReceiptCategory, ReceiptStatus
from models.ticket import Ticket
from .archive import ArchiveRegistry, JsonArchiveRegistry
from .classifier import StatusClassifier, quality_flags
from .dates import parse_date
from .history import reconstruct_status_history
from .loader import LifecycleSnapshot, load_orders_csv, load_snapshot
from .quantities import compute_delivery_snapshots, compute_quantities
from .stepper import build_stepper

logger = logging.getLogger(__name__)

COMPLETED_RECEIPT_STATUSES = {ReceiptStatus.BOOKED, ReceiptStatus.CLOSED}


# ------------------------------------------------------------------
# Order predicates (stored line aggregates)
# ------------------------------------------------------------------

def is_order_complete(order: PurchaseOrder) -> bool:
    if order.is_cancelled:
        return False
    if order.is_force_closed:
        return True
    q = compute_quantities(order)
    return q.total_ordered > 0 and q.total_received == q.total_ordered


def is_order_open(order: PurchaseOrder) -> bool:
    if order.is_force_closed or order.is_cancelled:
        return False
    q = compute_quantities(order)
    return q.total_received < q.total_ordered


def is_order_late(order: PurchaseOrder, today: Optional[date] = None) -> bool:
    if not is_order_open(order):
        return False
    expected = parse_date(order.expected_delivery_date)
    return expected is not None and expected < (today or date.today())


class OrderBook:
    """
    Usage:
        book = OrderBook.from_snapshot(load_snapshot(path), archive=registry)
        result = book.classify("PO-2024-001")
        rows = book.list_orders(OrderFilter.LATE, search="acme")
    """

    def __init__(
        self,
        orders: Iterable[PurchaseOrder],
        receipts: Iterable[ReceiptMaster] = (),
        tickets: Iterable[Ticket] = (),
        archive: Optional[ArchiveRegistry] = None,
        today: Optional[date] = None,
        config: Optional[Config] = None,
    ):
        self.config = config or Config()
        self.archive = archive
        self._today = today

        self.orders: dict[str, PurchaseOrder] = {}
        for order in orders:
            key = order.id.upper()
            if key in self.orders:
                logger.warning(
                    "Duplicate order id %s (already loaded as %s), keeping the later record",
                    order.id, self.orders[key].id,
                )
            self.orders[key] = order
        self.receipts: list[ReceiptMaster] = list(receipts)
        self.tickets: list[Ticket] = list(tickets)

        self._receipts_by_id = {r.id.upper(): r for r in self.receipts}
        self._receipts_by_po: dict[str, ReceiptMaster] = {}
        for receipt in self.receipts:
            self._receipts_by_po.setdefault(receipt.po_id.upper(), receipt)

        logger.debug(
            "Order book: %d orders, %d receipts, %d tickets",
            len(self.orders), len(self.receipts), len(self.tickets),
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LifecycleSnapshot,
        archive: Optional[ArchiveRegistry] = None,
        today: Optional[date] = None,
        config: Optional[Config] = None,
    ) -> "OrderBook":
        return cls(snapshot.orders, snapshot.receipts, snapshot.tickets,
                   archive=archive, today=today, config=config)

    @classmethod
    def from_config(cls, config: Optional[Config] = None, today: Optional[date] = None) -> "OrderBook":
        """
        Load the data named by *config*: the JSON snapshot when it exists,
        otherwise the orders CSV pair (orders only, no receipts or tickets).
        Raises SnapshotError for unreadable files.
        """
        config = config or Config()
        archive = JsonArchiveRegistry(config.archive_path)
        if config.snapshot_path.exists():
            snapshot = load_snapshot(config.snapshot_path)
            return cls.from_snapshot(snapshot, archive=archive, today=today, config=config)

        logger.warning("Snapshot not found: %s, falling back to orders CSV", config.snapshot_path)
        orders = load_orders_csv(config.orders_csv, config.order_lines_csv)
        return cls(orders, archive=archive, today=today, config=config)

    @property
    def today(self) -> date:
        return self._today or self.config.today()

    @property
    def classifier(self) -> StatusClassifier:
        return StatusClassifier(
            archive=self.archive,
            today=self.today,
            show_ticket_badge=self.config.show_ticket_badge,
            project_marker=self.config.project_id_marker,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Optional[PurchaseOrder]:
        return self.orders.get(order_id.strip().upper())

    def require_order(self, order_id: str) -> PurchaseOrder:
        """Like get_order, but raises KeyError for unknown ids."""
        order = self.get_order(order_id)
        if order is None:
            raise KeyError(order_id)
        return order

    def receipt_for(self, order: PurchaseOrder) -> Optional[ReceiptMaster]:
        if order.linked_receipt_id:
            receipt = self._receipts_by_id.get(order.linked_receipt_id.upper())
            if receipt is not None:
                return receipt
            logger.debug("Order %s links unknown receipt %s", order.id, order.linked_receipt_id)
        return self._receipts_by_po.get(order.id.upper())

    def tickets_for(self, order: PurchaseOrder) -> list[Ticket]:
        """Tickets whose receipt_id is the order, its receipt, or one of its deliveries."""
        keys = {order.id.upper()}
        receipt = self.receipt_for(order)
        if receipt is not None:
            keys.update(_receipt_keys(receipt))
        return [t for t in self.tickets if t.receipt_id.upper() in keys]

    def tickets_for_receipt(self, receipt: ReceiptMaster) -> list[Ticket]:
        keys = _receipt_keys(receipt) | {receipt.po_id.upper()}
        return [t for t in self.tickets if t.receipt_id.upper() in keys]

    def is_archived(self, order: PurchaseOrder) -> bool:
        return order.is_archived or (self.archive is not None and self.archive.is_archived(order.id))

    def is_receipt_archived(self, receipt: ReceiptMaster) -> bool:
        """Archived in the registry, or closed after one of its bookings was cancelled."""
        if self.archive is not None and self.archive.is_archived(receipt.id):
            return True
        return receipt.status == ReceiptStatus.CLOSED and any(d.is_cancelled for d in receipt.deliveries)

    # ------------------------------------------------------------------
    # Per-order derivations
    # ------------------------------------------------------------------

    def classify(self, order_id: str) -> StatusResult:
        order = self.require_order(order_id)
        return self.classifier.classify(order, self.receipt_for(order), self.tickets_for(order))

    def quantities(self, order_id: str) -> QuantitySummary:
        """Reconciled from delivery logs when a receipt exists, else from stored aggregates."""
        order = self.require_order(order_id)
        receipt = self.receipt_for(order)
        return compute_quantities(order, receipt.deliveries if receipt is not None else None)

    def snapshots(self, order_id: str) -> dict[str, dict[str, Snapshot]]:
        receipt = self.receipt_for(self.require_order(order_id))
        if receipt is None:
            return {}
        return compute_delivery_snapshots(receipt.deliveries)

    def history(self, order_id: str, now: Optional[datetime] = None) -> list[Transition]:
        receipt = self.receipt_for(self.require_order(order_id))
        if receipt is None:
            return []
        return reconstruct_status_history(
            receipt.deliveries,
            receipt.raw_status if receipt.raw_status is not None else receipt.status,
            now=now,
            placeholder_notes=self.config.placeholder_delivery_notes,
            default_actor=self.config.default_actor,
        )

    def stepper(self, order_id: str) -> StepperResult:
        return build_stepper(self.classify(order_id))

    def receipt_category(self, order_id: str) -> Optional[ReceiptCategory]:
        """issues / completed / pending for the order's receipt; None without one."""
        order = self.require_order(order_id)
        receipt = self.receipt_for(order)
        if receipt is None:
            return None
        return _categorise(receipt, self.tickets_for(order))

    def line_issues(self, order_id: str) -> dict[str, SkuQuantity]:
        """SKUs with damaged, wrong or surplus quantities across the delivery logs."""
        per_sku = self.quantities(order_id).per_sku
        return {sku: entry for sku, entry in per_sku.items() if entry.has_issues}

    # ------------------------------------------------------------------
    # List queries
    # ------------------------------------------------------------------

    def counts(self) -> OrderCounts:
        """Tab counts over non-archived orders."""
        active = [o for o in self.orders.values() if not self.is_archived(o)]
        today = self.today
        return OrderCounts(
            all=len(active),
            open=sum(1 for o in active if is_order_open(o)),
            late=sum(1 for o in active if is_order_late(o, today)),
            completed=sum(1 for o in active if is_order_complete(o)),
        )

    def list_orders(
        self,
        order_filter: OrderFilter = OrderFilter.ALL,
        search: Optional[str] = None,
        include_archived: bool = False,
    ) -> list[PurchaseOrder]:
        """Orders matching the filter and search term, newest first."""
        today = self.today
        term = (search or "").strip().lower()

        rows = []
        for order in self.orders.values():
            if not include_archived and self.is_archived(order):
                continue
            if order_filter == OrderFilter.OPEN and not is_order_open(order):
                continue
            if order_filter == OrderFilter.LATE and not is_order_late(order, today):
                continue
            if order_filter == OrderFilter.COMPLETED and not is_order_complete(order):
                continue
            if term and term not in order.id.lower() and term not in (order.supplier or "").lower():
                continue
            rows.append(order)

        rows.sort(key=lambda o: parse_date(o.date_created) or date.min, reverse=True)
        return rows

    def list_receipts(
        self,
        category: Optional[ReceiptCategory] = None,
        include_archived: bool = False,
    ) -> list[tuple[ReceiptMaster, ReceiptCategory]]:
        """Receipt groups with their category, in snapshot order."""
        rows = []
        for receipt in self.receipts:
            if not include_archived and self.is_receipt_archived(receipt):
                continue
            receipt_category = _categorise(receipt, self.tickets_for_receipt(receipt))
            if category is not None and receipt_category != category:
                continue
            rows.append((receipt, receipt_category))
        return rows

    def receipt_counts(self) -> ReceiptCounts:
        """Category counts over non-archived receipt groups, plus the archived total."""
        tally = {c: 0 for c in ReceiptCategory}
        for _, receipt_category in self.list_receipts():
            tally[receipt_category] += 1
        return ReceiptCounts(
            issues=tally[ReceiptCategory.ISSUES],
            pending=tally[ReceiptCategory.PENDING],
            completed=tally[ReceiptCategory.COMPLETED],
            archived=sum(1 for r in self.receipts if self.is_receipt_archived(r)),
        )


def _receipt_keys(receipt: ReceiptMaster) -> set[str]:
    return {receipt.id.upper(), *(d.id.upper() for d in receipt.deliveries)}


def _categorise(receipt: ReceiptMaster, tickets: Iterable[Ticket]) -> ReceiptCategory:
    if any(t.is_open for t in tickets) or quality_flags(receipt).has_issue:
        return ReceiptCategory.ISSUES
    if receipt.status in COMPLETED_RECEIPT_STATUSES:
        return ReceiptCategory.COMPLETED
    return ReceiptCategory.PENDING
