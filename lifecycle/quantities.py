"""
Quantity aggregation.

Sums ordered vs. received quantities per order and per SKU, and replays a
delivery sequence in date order to produce pre/current/post running totals
for every SKU on every delivery.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from models.purchase_order import PurchaseOrder
from models.receipt import DeliveryLog
from models.result import QuantitySummary, SkuQuantity, Snapshot
from .dates import parse_timestamp

logger = logging.getLogger(__name__)


def _delivery_sort_key(delivery: DeliveryLog) -> datetime:
    # Unparseable dates sort last
    return parse_timestamp(delivery.date) or datetime.max


def sort_deliveries(deliveries: Iterable[DeliveryLog]) -> list[DeliveryLog]:
    """Date ascending; ties keep their insertion order."""
    return sorted(deliveries, key=_delivery_sort_key)


def compute_quantities(
    order: PurchaseOrder,
    deliveries: Optional[Iterable[DeliveryLog]] = None,
) -> QuantitySummary:
    """
    Reconcile ordered against received quantities.

    With *deliveries* given, received quantities are the accepted quantities
    of every non-cancelled delivery. Without, the stored per-line
    quantity_received aggregates are used. Delivery items for SKUs that are
    not on the order are kept as ad-hoc lines and count toward the totals.
    """
    per_sku: dict[str, SkuQuantity] = {}
    for line in order.active_lines:
        entry = per_sku.setdefault(line.sku, SkuQuantity(sku=line.sku, name=line.name))
        entry.ordered += line.quantity_expected
        if deliveries is None:
            entry.received += line.quantity_received

    if deliveries is not None:
        for delivery in deliveries:
            if delivery.is_cancelled:
                continue
            for item in delivery.items:
                entry = per_sku.get(item.sku)
                if entry is None:
                    logger.debug(
                        "Order %s: delivery %s references SKU %s not on the order",
                        order.id, delivery.id, item.sku,
                    )
                    entry = per_sku[item.sku] = SkuQuantity(sku=item.sku, in_order=False)
                entry.received += item.accepted_qty
                entry.rejected += item.quantity_rejected
                if item.is_damaged:
                    entry.damaged += item.quantity_rejected
                elif item.is_wrong_item:
                    entry.wrong += item.quantity_rejected

    return QuantitySummary(
        total_ordered=sum(line.quantity_expected for line in order.active_lines),
        total_received=sum(entry.received for entry in per_sku.values()),
        per_sku=per_sku,
    )


def compute_delivery_snapshots(
    deliveries: Iterable[DeliveryLog],
) -> dict[str, dict[str, Snapshot]]:
    """
    Replay *deliveries* in date order and return
    {delivery_id: {sku: Snapshot(pre, current, post)}}.

    current is the delivery's received quantity (zero for a cancelled
    delivery); post = pre + current becomes the next delivery's pre.
    """
    running: dict[str, int] = {}
    snapshots: dict[str, dict[str, Snapshot]] = {}

    for delivery in sort_deliveries(deliveries):
        per_delivery = snapshots.setdefault(delivery.id, {})
        for item in delivery.items:
            current = 0 if delivery.is_cancelled else item.received_qty
            pre = running.get(item.sku, 0)
            post = pre + current
            running[item.sku] = post

            existing = per_delivery.get(item.sku)
            if existing is not None:
                # Same SKU twice on one delivery note: fold into one snapshot
                per_delivery[item.sku] = Snapshot(
                    pre=existing.pre, current=existing.current + current, post=post,
                )
            else:
                per_delivery[item.sku] = Snapshot(pre=pre, current=current, post=post)

    return snapshots
