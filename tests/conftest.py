"""
Pytest configuration and shared fixtures for the order lifecycle test suite.
"""
import copy
import json
import os
import shutil
import tempfile
from datetime import date
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)

# Fixed evaluation date for every date-dependent test
TODAY = date(2024, 3, 15)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="po_lifecycle_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def test_config(temp_dir: Path) -> "Config":
    """Provide a test configuration with isolated paths."""
    from config import Config

    config = Config()
    config.snapshot_path = temp_dir / "data" / "snapshot.json"
    config.orders_csv = temp_dir / "data" / "orders.csv"
    config.order_lines_csv = temp_dir / "data" / "order_lines.csv"
    config.archive_path = temp_dir / "data" / "archive.json"
    config.show_ticket_badge = False
    config.today_override = None

    # Ensure data directory exists
    config.snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    return config


@pytest.fixture
def make_order():
    """Factory for a single-line PurchaseOrder."""
    from models.purchase_order import OrderLine, PurchaseOrder

    def _make(order_id: str = "PO-1", ordered: int = 10, received: int = 0, **kwargs) -> PurchaseOrder:
        return PurchaseOrder(
            id=order_id,
            lines=[OrderLine(sku="SKU-A", name="Widget", quantity_expected=ordered, quantity_received=received)],
            **kwargs,
        )

    return _make


@pytest.fixture
def make_delivery():
    """Factory for a single-item DeliveryLog."""
    from models.receipt import DeliveryLog, DeliveryLogItem

    def _make(delivery_id: str = "D-1", day: str = "2024-03-10", received: int = 1,
              sku: str = "SKU-A", note: str | None = "LS-1", cancelled: bool = False,
              **item_kwargs) -> DeliveryLog:
        return DeliveryLog(
            id=delivery_id,
            date=day,
            delivery_note=note,
            is_cancelled=cancelled,
            items=[DeliveryLogItem(sku=sku, received_qty=received, **item_kwargs)],
        )

    return _make


_SAMPLE_SNAPSHOT = {
    "orders": [
        {   # ticket + expected yesterday, nothing received
            "id": "PO-1001", "supplier": "Acme Supplies", "status": "Offen",
            "dateCreated": "2024-03-01", "expectedDeliveryDate": "2024-03-14",
            "linkedReceiptId": "R-1001",
            "items": [{"sku": "CHAIR", "name": "Office chair", "quantityExpected": 10, "quantityReceived": 0}],
        },
        {   # force-closed with shortfall
            "id": "PO-1002", "supplier": "Beta GmbH", "status": "Teilweise geliefert",
            "dateCreated": "2024-02-01", "expectedDeliveryDate": "2024-03-01",
            "isForceClosed": True,
            "items": [{"sku": "DESK", "name": "Desk", "quantityExpected": 10, "quantityReceived": 6}],
        },
        {   # fully received, one booked delivery, receipt closed
            "id": "PO-1003", "supplier": "Acme Supplies", "status": "Abgeschlossen",
            "dateCreated": "2024-02-15", "expectedDeliveryDate": "2024-03-10",
            "linkedReceiptId": "R-1003",
            "items": [{"sku": "LAMP", "name": "Desk lamp", "quantityExpected": 5, "quantityReceived": 5}],
        },
        {   # cancelled
            "id": "PO-1004", "supplier": "Gamma AG", "status": "Storniert",
            "dateCreated": "2024-01-20", "expectedDeliveryDate": "2024-03-01",
            "items": [{"sku": "CABLE", "quantityExpected": 3, "quantityReceived": 0}],
        },
        {   # project order, partially delivered twice
            "id": "PO-1005-PROJEKT", "supplier": "Delta Bau", "status": "Projekt",
            "dateCreated": "2024-03-05", "expectedDeliveryDate": "2024-03-20",
            "items": [{"sku": "BEAM", "quantityExpected": 10, "quantityReceived": 5}],
        },
        {   # archived through the registry
            "id": "PO-1006", "supplier": "Acme Supplies", "status": "Offen",
            "dateCreated": "2024-01-01", "expectedDeliveryDate": "2024-01-10",
            "items": [{"sku": "OLD", "quantityExpected": 2, "quantityReceived": 0}],
        },
        {   # damaged goods
            "id": "PO-1007", "supplier": "Epsilon Ltd", "status": "Offen",
            "dateCreated": "2024-03-10", "expectedDeliveryDate": "2024-03-10",
            "linkedReceiptId": "R-1007",
            "items": [{"sku": "GLASS", "quantityExpected": 4, "quantityReceived": 3}],
        },
    ],
    "receipts": [
        {"id": "R-1001", "poId": "PO-1001", "status": "Wartet auf Lieferung", "deliveries": []},
        {
            "id": "R-1003", "poId": "PO-1003", "status": "Abgeschlossen",
            "deliveries": [{
                "id": "D-31", "date": "2024-03-10", "lieferscheinNr": "LS-42", "createdByName": "M. Weber",
                "items": [{"sku": "LAMP", "receivedQty": 5, "quantityAccepted": 5}],
            }],
        },
        {
            "id": "R-1005", "poId": "PO-1005-PROJEKT", "status": "Teillieferung",
            "deliveries": [
                {
                    "id": "D-52", "date": "2024-03-12", "lieferscheinNr": "LS-7",
                    "items": [{"sku": "BEAM", "receivedQty": 2, "offen": 5}],
                },
                {
                    "id": "D-51", "date": "2024-03-08", "lieferscheinNr": "LS-6",
                    "items": [{"sku": "BEAM", "receivedQty": 3, "offen": 7}],
                },
            ],
        },
        {
            "id": "R-1007", "poId": "PO-1007", "status": "Schaden",
            "deliveries": [{
                "id": "D-71", "date": "2024-03-10", "lieferscheinNr": "LS-99",
                "items": [{
                    "sku": "GLASS", "receivedQty": 4, "quantityAccepted": 3, "quantityRejected": 1,
                    "rejectionReason": "Damaged", "damageFlag": True,
                }],
            }],
        },
    ],
    "tickets": [
        {"id": "T-1", "receiptId": "R-1001", "subject": "Lieferung überfällig", "status": "Open"},
        {"id": "T-2", "receiptId": "D-71", "subject": "Glasbruch", "status": "Closed", "priority": "High"},
    ],
}


@pytest.fixture
def sample_snapshot() -> dict:
    """Return a sample snapshot document (legacy camelCase field names)."""
    return copy.deepcopy(_SAMPLE_SNAPSHOT)


@pytest.fixture
def snapshot_file(test_config, sample_snapshot) -> Path:
    """Write the sample snapshot and archive registry where test_config expects them."""
    test_config.snapshot_path.write_text(json.dumps(sample_snapshot), encoding="utf-8")
    test_config.archive_path.write_text(json.dumps({"archived": ["PO-1006"]}), encoding="utf-8")
    return test_config.snapshot_path


@pytest.fixture
def book(test_config, sample_snapshot) -> "OrderBook":
    """Provide an OrderBook over the sample snapshot, evaluated as of TODAY."""
    from lifecycle import LifecycleSnapshot, OrderBook, StaticArchiveRegistry

    snapshot = LifecycleSnapshot.model_validate(sample_snapshot)
    return OrderBook.from_snapshot(
        snapshot,
        archive=StaticArchiveRegistry(["PO-1006"]),
        today=TODAY,
        config=test_config,
    )


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")
    config.addinivalue_line("markers", "slow: Slow tests")
