"""
API tests for the dashboard read endpoints.
"""
import json

import pytest
from fastapi.testclient import TestClient

import dashboard.app as dashboard_app
from lifecycle import LifecycleSnapshot, OrderBook


@pytest.fixture
def client(book, monkeypatch):
    """TestClient with the sample order book installed."""
    monkeypatch.setattr(dashboard_app, "_book", book)
    return TestClient(dashboard_app.app)


@pytest.mark.api
class TestOrderEndpoints:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["loaded"] is True

    def test_stats(self, client):
        assert client.get("/api/stats").json() == {"all": 6, "open": 3, "late": 2, "completed": 2}

    def test_list_orders(self, client):
        rows = client.get("/api/orders").json()
        assert [r["id"] for r in rows][:2] == ["PO-1007", "PO-1005-PROJEKT"]
        first = next(r for r in rows if r["id"] == "PO-1001")
        assert first["status"] == "issue:overdue"
        assert [b["kind"] for b in first["badges"]] == [
            "warehouse-stock", "open", "awaiting-delivery", "overdue",
        ]

    def test_list_orders_filter_and_search(self, client):
        rows = client.get("/api/orders", params={"filter": "late", "search": "acme"}).json()
        assert [r["id"] for r in rows] == ["PO-1001"]

    def test_list_orders_include_archived(self, client):
        rows = client.get("/api/orders", params={"include_archived": "true"}).json()
        archived = next(r for r in rows if r["id"] == "PO-1006")
        assert archived["archived"] is True

    def test_bad_filter(self, client):
        response = client.get("/api/orders", params={"filter": "bogus"})
        assert response.status_code == 400

    def test_order_detail(self, client):
        response = client.get("/api/orders/po-1002")
        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["canonical_status"] == "closed"
        assert data["result"]["shortfall_accepted"] is True
        assert [s["state"] for s in data["stepper"]["stages"]] == ["completed", "completed", "pending"]
        assert data["connectors"] == [True, False]
        assert data["receipt_id"] is None

    def test_order_detail_with_issues(self, client):
        data = client.get("/api/orders/PO-1007").json()
        assert data["receipt_category"] == "issues"
        assert data["line_issues"]["GLASS"]["damaged"] == 1
        assert data["line_issues"]["GLASS"]["pending"] == 1
        assert data["line_issues"]["GLASS"]["overage"] == 0

    def test_order_detail_line_overage(self, book, sample_snapshot, test_config, monkeypatch):
        sample_snapshot["orders"].append({
            "id": "PO-1008", "supplier": "Zeta KG", "dateCreated": "2024-03-11",
            "items": [{"sku": "SCREW", "quantityExpected": 2, "quantityReceived": 5}],
        })
        sample_snapshot["receipts"].append({
            "id": "R-1008", "poId": "PO-1008", "status": "Gebucht",
            "deliveries": [{
                "id": "D-81", "date": "2024-03-12", "lieferscheinNr": "LS-81",
                "items": [{"sku": "SCREW", "receivedQty": 5, "quantityAccepted": 5}],
            }],
        })
        bigger = OrderBook.from_snapshot(
            LifecycleSnapshot.model_validate(sample_snapshot), today=book.today, config=test_config,
        )
        monkeypatch.setattr(dashboard_app, "_book", bigger)

        data = TestClient(dashboard_app.app).get("/api/orders/PO-1008").json()
        screw = data["line_issues"]["SCREW"]
        assert (screw["damaged"], screw["wrong"]) == (0, 0)
        assert screw["overage"] == 3
        assert screw["pending"] == 0
        assert data["quantities"]["per_sku"]["SCREW"]["overage"] == 3

    def test_unknown_order(self, client):
        assert client.get("/api/orders/PO-0000").status_code == 404
        assert client.get("/api/orders/PO-0000/history").status_code == 404
        assert client.get("/api/orders/PO-0000/snapshots").status_code == 404

    def test_history(self, client):
        history = client.get("/api/orders/PO-1003/history").json()
        assert [(t["from_status"], t["to_status"]) for t in history] == [
            ("booked", "closed"), ("created", "booked"),
        ]

    def test_snapshots(self, client):
        snaps = client.get("/api/orders/PO-1005-PROJEKT/snapshots").json()
        assert snaps["D-51"]["BEAM"] == {"pre": 0, "current": 3, "post": 3}
        assert snaps["D-52"]["BEAM"] == {"pre": 3, "current": 2, "post": 5}

    def test_statuses(self, client):
        statuses = {s["key"]: s for s in client.get("/api/statuses").json()}
        assert statuses["booked"]["display_name"] == "Gebucht"
        assert statuses["damaged"]["action_text"] == "Reklamation bearbeiten"


@pytest.mark.api
class TestReload:

    def test_reload_from_disk(self, test_config, snapshot_file, monkeypatch):
        monkeypatch.setenv("SNAPSHOT_PATH", str(test_config.snapshot_path))
        monkeypatch.setenv("ARCHIVE_PATH", str(test_config.archive_path))
        monkeypatch.setattr(dashboard_app, "_book", None)
        client = TestClient(dashboard_app.app)

        response = client.post("/api/reload")
        assert response.status_code == 200
        assert response.json() == {"status": "reloaded", "orders": 7}
        assert client.get("/api/stats").json()["all"] == 6

    def test_unreadable_snapshot_is_503(self, temp_dir, monkeypatch):
        broken = temp_dir / "broken.json"
        broken.write_text("{")
        monkeypatch.setenv("SNAPSHOT_PATH", str(broken))
        monkeypatch.setattr(dashboard_app, "_book", None)
        client = TestClient(dashboard_app.app)

        assert client.get("/api/stats").status_code == 503

    def test_reload_picks_up_archive_changes(self, test_config, snapshot_file, monkeypatch):
        monkeypatch.setenv("SNAPSHOT_PATH", str(test_config.snapshot_path))
        monkeypatch.setenv("ARCHIVE_PATH", str(test_config.archive_path))
        monkeypatch.setattr(dashboard_app, "_book", None)
        client = TestClient(dashboard_app.app)
        assert client.get("/api/stats").json()["all"] == 6

        test_config.archive_path.write_text(json.dumps({"archived": ["PO-1006", "PO-1003", "R-1005"]}))
        assert client.post("/api/reload").status_code == 200
        assert client.get("/api/stats").json()["all"] == 5
        assert client.get("/api/receipts/stats").json()["archived"] == 1


@pytest.mark.api
class TestReceiptEndpoints:

    def test_list_receipts(self, client):
        rows = {r["id"]: r for r in client.get("/api/receipts").json()}
        assert set(rows) == {"R-1001", "R-1003", "R-1005", "R-1007"}
        assert rows["R-1001"]["category"] == "issues"
        assert rows["R-1005"]["raw_status"] == "Teillieferung"
        assert rows["R-1005"]["deliveries"] == 2

    def test_filter_by_category(self, client):
        rows = client.get("/api/receipts", params={"category": "completed"}).json()
        assert [r["id"] for r in rows] == ["R-1003"]

    def test_bad_category(self, client):
        assert client.get("/api/receipts", params={"category": "bogus"}).status_code == 400

    def test_receipt_stats(self, client):
        assert client.get("/api/receipts/stats").json() == {
            "issues": 2, "pending": 1, "completed": 1, "archived": 0,
        }
