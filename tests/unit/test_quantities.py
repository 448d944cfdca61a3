"""
Unit tests for quantity aggregation and delivery snapshots.
"""
import pytest

from lifecycle.quantities import compute_delivery_snapshots, compute_quantities, sort_deliveries
from models.purchase_order import OrderLine, PurchaseOrder
from models.result import Snapshot


@pytest.mark.unit
class TestComputeQuantities:
    """Tests for compute_quantities."""

    def test_stored_aggregates(self, make_order):
        q = compute_quantities(make_order(ordered=10, received=4))
        assert q.total_ordered == 10
        assert q.total_received == 4
        assert q.per_sku["SKU-A"].pending == 6

    def test_deleted_lines_are_excluded(self):
        order = PurchaseOrder(id="PO-1", lines=[
            OrderLine(sku="A", quantity_expected=5, quantity_received=5),
            OrderLine(sku="B", quantity_expected=3, quantity_received=0, is_deleted=True),
        ])
        q = compute_quantities(order)
        assert q.total_ordered == 5
        assert "B" not in q.per_sku

    def test_from_deliveries_skips_cancelled(self, make_order, make_delivery):
        order = make_order(ordered=10)
        deliveries = [
            make_delivery("D-1", received=3),
            make_delivery("D-2", received=4, cancelled=True),
        ]
        q = compute_quantities(order, deliveries)
        assert q.total_received == 3

    def test_accepted_quantity_counts_not_physical(self, make_order, make_delivery):
        order = make_order(ordered=10)
        delivery = make_delivery(received=5, quantity_rejected=2, rejection_reason="Damaged")
        entry = compute_quantities(order, [delivery]).per_sku["SKU-A"]
        assert entry.received == 3
        assert entry.damaged == 2
        assert entry.rejected == 2
        assert entry.has_issues

    def test_wrong_item_tally(self, make_order, make_delivery):
        delivery = make_delivery(received=4, quantity_rejected=1, rejection_reason="Wrong")
        entry = compute_quantities(make_order(ordered=4), [delivery]).per_sku["SKU-A"]
        assert entry.wrong == 1
        assert entry.damaged == 0

    def test_unknown_sku_is_ad_hoc_line(self, make_order, make_delivery):
        order = make_order(ordered=10)
        q = compute_quantities(order, [make_delivery(sku="EXTRA", received=2)])
        assert q.per_sku["EXTRA"].in_order is False
        assert q.per_sku["EXTRA"].ordered == 0
        assert q.total_received == 2
        assert q.total_ordered == 10

    def test_overage(self, make_order, make_delivery):
        q = compute_quantities(make_order(ordered=2), [make_delivery(received=5)])
        assert q.per_sku["SKU-A"].overage == 3
        assert q.per_sku["SKU-A"].pending == 0
        dumped = q.model_dump(mode="json")["per_sku"]["SKU-A"]
        assert (dumped["overage"], dumped["pending"]) == (3, 0)

    def test_empty_order(self):
        q = compute_quantities(PurchaseOrder(id="PO-EMPTY"))
        assert q.total_ordered == 0
        assert q.total_received == 0
        assert q.per_sku == {}


@pytest.mark.unit
class TestDeliverySnapshots:
    """Tests for compute_delivery_snapshots."""

    def test_running_totals(self, make_delivery):
        """Deliveries of 3, 5 and 2 units build pre/current/post in date order."""
        deliveries = [
            make_delivery("D-3", day="2024-03-12", received=2),
            make_delivery("D-1", day="2024-03-01", received=3),
            make_delivery("D-2", day="2024-03-05", received=5),
        ]
        snaps = compute_delivery_snapshots(deliveries)
        assert snaps["D-1"]["SKU-A"] == Snapshot(pre=0, current=3, post=3)
        assert snaps["D-2"]["SKU-A"] == Snapshot(pre=3, current=5, post=8)
        assert snaps["D-3"]["SKU-A"] == Snapshot(pre=8, current=2, post=10)

    def test_post_feeds_next_pre(self, make_delivery):
        deliveries = [make_delivery(f"D-{i}", day=f"2024-03-0{i}", received=i) for i in range(1, 6)]
        snaps = compute_delivery_snapshots(deliveries)
        ordered = [snaps[f"D-{i}"]["SKU-A"] for i in range(1, 6)]
        for earlier, later in zip(ordered, ordered[1:]):
            assert later.pre == earlier.post
        assert all(s.post == s.pre + s.current for s in ordered)

    def test_cancelled_delivery_contributes_zero(self, make_delivery):
        deliveries = [
            make_delivery("D-1", day="2024-03-01", received=3),
            make_delivery("D-2", day="2024-03-02", received=4, cancelled=True),
            make_delivery("D-3", day="2024-03-03", received=1),
        ]
        snaps = compute_delivery_snapshots(deliveries)
        assert snaps["D-2"]["SKU-A"] == Snapshot(pre=3, current=0, post=3)
        assert snaps["D-3"]["SKU-A"].pre == 3

    def test_repeated_sku_in_one_delivery(self):
        from models.receipt import DeliveryLog, DeliveryLogItem

        delivery = DeliveryLog(id="D-1", date="2024-03-01", items=[
            DeliveryLogItem(sku="A", received_qty=2),
            DeliveryLogItem(sku="A", received_qty=3),
        ])
        assert compute_delivery_snapshots([delivery])["D-1"]["A"] == Snapshot(pre=0, current=5, post=5)

    def test_empty(self):
        assert compute_delivery_snapshots([]) == {}


@pytest.mark.unit
class TestSortDeliveries:

    def test_stable_on_ties_and_unparseable_last(self, make_delivery):
        deliveries = [
            make_delivery("D-X", day="unknown"),
            make_delivery("D-B", day="2024-03-02"),
            make_delivery("D-A1", day="2024-03-01"),
            make_delivery("D-A2", day="2024-03-01"),
        ]
        assert [d.id for d in sort_deliveries(deliveries)] == ["D-A1", "D-A2", "D-B", "D-X"]
