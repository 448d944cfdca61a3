"""
Snapshot loading.

Reads a consistent set of orders, receipts and tickets from disk:
  - a JSON snapshot document  {"orders": [...], "receipts": [...], "tickets": [...]}
  - or two CSV files:
      orders.csv       id, supplier, status, date_created, expected_delivery_date,
                       is_force_closed, linked_receipt_id
      order_lines.csv  order_id, sku, name, quantity_expected, quantity_received,
                       is_added_later
"""
import csv
import json
import logging
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, ValidationError

from models.purchase_order import OrderLine, PurchaseOrder
from models.receipt import ReceiptMaster
from models.ticket import Ticket

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "y", "ja", "x"}


class SnapshotError(ValueError):
    """Raised when a snapshot file cannot be read or does not match the schema."""


class LifecycleSnapshot(BaseModel):
    orders: List[PurchaseOrder] = Field(default_factory=list)
    receipts: List[ReceiptMaster] = Field(default_factory=list)
    tickets: List[Ticket] = Field(default_factory=list)


def load_snapshot(path: str | Path) -> LifecycleSnapshot:
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot file not found: {path}") from exc
    except (OSError, ValueError) as exc:
        raise SnapshotError(f"Cannot read snapshot {path}: {exc}") from exc

    try:
        snapshot = LifecycleSnapshot.model_validate(data)
    except ValidationError as exc:
        raise SnapshotError(f"Invalid snapshot {path}: {exc}") from exc

    logger.info(
        "Loaded snapshot %s: %d orders, %d receipts, %d tickets",
        path.name, len(snapshot.orders), len(snapshot.receipts), len(snapshot.tickets),
    )
    return snapshot


def load_orders_csv(orders_csv: str | Path, lines_csv: str | Path) -> list[PurchaseOrder]:
    """
    Load order headers and lines from CSV. A missing orders file yields no
    orders; a missing lines file yields orders without lines.
    """
    orders_path, lines_path = Path(orders_csv), Path(lines_csv)
    if not orders_path.exists():
        logger.warning("Orders CSV not found: %s, no orders loaded", orders_path)
        return []

    orders: dict[str, PurchaseOrder] = {}
    try:
        with open(orders_path, newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                order = PurchaseOrder(
                    id=row["id"].strip(),
                    supplier=_text(row.get("supplier")),
                    status=_text(row.get("status")),
                    date_created=_text(row.get("date_created")),
                    expected_delivery_date=_text(row.get("expected_delivery_date")),
                    is_force_closed=_flag(row.get("is_force_closed")),
                    linked_receipt_id=_text(row.get("linked_receipt_id")),
                )
                orders[order.id.upper()] = order

        if lines_path.exists():
            with open(lines_path, newline="", encoding="utf-8") as f:
                for row in csv.DictReader(f):
                    key = row["order_id"].strip().upper()
                    if key not in orders:
                        logger.warning("Order line references unknown order: %s", key)
                        continue
                    orders[key].lines.append(OrderLine(
                        sku=row["sku"].strip(),
                        name=_text(row.get("name")),
                        quantity_expected=int(row.get("quantity_expected") or 0),
                        quantity_received=int(row.get("quantity_received") or 0),
                        is_added_later=_flag(row.get("is_added_later")),
                    ))
        else:
            logger.info("No order lines CSV found at %s, orders have no lines", lines_path)
    except (KeyError, ValueError) as exc:
        raise SnapshotError(f"Malformed orders CSV: {exc}") from exc

    logger.info(
        "Loaded %d orders (%d with lines)",
        len(orders), sum(1 for o in orders.values() if o.lines),
    )
    return list(orders.values())


def _text(value) -> str | None:
    return (value or "").strip() or None


def _flag(value) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES
