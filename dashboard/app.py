"""
Order Lifecycle Dashboard — FastAPI backend.

Read-only API over the current order snapshot. Every response is derived on
request from the loaded OrderBook; nothing is written back.

Endpoints
---------
  GET  /api/health                      → liveness check
  GET  /api/stats                       → tab counts (all / open / late / completed)
  GET  /api/orders                      → order summaries (supports ?filter=, ?search=, ?include_archived=)
  GET  /api/orders/{order_id}           → full classification, quantities, stepper
  GET  /api/orders/{order_id}/history   → inferred status transitions, most recent first
  GET  /api/orders/{order_id}/snapshots → per-delivery pre/current/post running totals
  GET  /api/receipts                    → receipt groups with category (supports ?category=, ?include_archived=)
  GET  /api/receipts/stats              → receipt category counts (issues / pending / completed / archived)
  GET  /api/statuses                    → receipt status catalog (display names, actions)
  POST /api/reload                      → re-read snapshot and archive registry
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from config import Config
from lifecycle import OrderBook, SnapshotError
from models.purchase_order import PurchaseOrder
from models.status import STATUS_INFO, OrderFilter, ReceiptCategory
from dashboard.models import OrderDetail, OrderSummary, ReceiptSummary

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Order book (lazy: loaded on first request so startup doesn't fail if the
# snapshot hasn't been exported yet)
# ---------------------------------------------------------------------------
_book: Optional[OrderBook] = None


def get_book() -> OrderBook:
    global _book
    if _book is None:
        try:
            _book = OrderBook.from_config(Config())
        except SnapshotError as exc:
            logger.warning("Order snapshot unavailable: %s", exc)
            raise HTTPException(status_code=503, detail=f"Order snapshot unavailable: {exc}")
    return _book


def _order_or_404(book: OrderBook, order_id: str) -> PurchaseOrder:
    order = book.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
    return order


def _summary(book: OrderBook, order: PurchaseOrder) -> OrderSummary:
    result = book.classify(order.id)
    return OrderSummary(
        id=order.id,
        supplier=order.supplier,
        date_created=order.date_created,
        expected_delivery_date=order.expected_delivery_date,
        status=result.label,
        canonical_status=result.canonical_status,
        badges=result.badges,
        archived=book.is_archived(order),
    )


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Order Lifecycle Dashboard", docs_url=None, redoc_url=None)


# ── Routes ───────────────────────────────────────────────────────────────────

@app.get("/api/health")
def health():
    config = Config()
    return {
        "status": "ok",
        "snapshot_path":   str(config.snapshot_path),
        "snapshot_exists": config.snapshot_path.exists(),
        "archive_path":    str(config.archive_path),
        "loaded":          _book is not None,
    }


@app.get("/api/stats")
def stats():
    return get_book().counts()


@app.get("/api/orders", response_model=list[OrderSummary])
def list_orders(
    filter: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    include_archived: bool = Query(default=False),
):
    try:
        order_filter = OrderFilter(filter) if filter else OrderFilter.ALL
    except ValueError:
        allowed = ", ".join(f.value for f in OrderFilter)
        raise HTTPException(400, f"Filter must be one of: {allowed}")

    book = get_book()
    return [_summary(book, o) for o in book.list_orders(order_filter, search or None, include_archived)]


@app.get("/api/orders/{order_id}", response_model=OrderDetail)
def get_order(order_id: str):
    book = get_book()
    order = _order_or_404(book, order_id)
    result = book.classify(order.id)
    stepper = book.stepper(order.id)
    receipt = book.receipt_for(order)
    return OrderDetail(
        summary=_summary(book, order),
        result=result,
        quantities=book.quantities(order.id),
        stepper=stepper,
        connectors=stepper.connectors,
        receipt_id=receipt.id if receipt is not None else None,
        receipt_category=book.receipt_category(order.id),
        line_issues=book.line_issues(order.id),
        open_tickets=result.open_ticket_count,
    )


@app.get("/api/orders/{order_id}/history")
def get_history(order_id: str):
    book = get_book()
    order = _order_or_404(book, order_id)
    return book.history(order.id)


@app.get("/api/orders/{order_id}/snapshots")
def get_snapshots(order_id: str):
    book = get_book()
    order = _order_or_404(book, order_id)
    return book.snapshots(order.id)


@app.get("/api/receipts", response_model=list[ReceiptSummary])
def list_receipts(
    category: Optional[str] = Query(default=None),
    include_archived: bool = Query(default=False),
):
    try:
        receipt_category = ReceiptCategory(category) if category else None
    except ValueError:
        allowed = ", ".join(c.value for c in ReceiptCategory)
        raise HTTPException(400, f"Category must be one of: {allowed}")

    book = get_book()
    return [
        ReceiptSummary(
            id=receipt.id,
            po_id=receipt.po_id,
            status=receipt.status,
            raw_status=receipt.raw_status,
            category=found,
            deliveries=len(receipt.deliveries),
            archived=book.is_receipt_archived(receipt),
        )
        for receipt, found in book.list_receipts(receipt_category, include_archived)
    ]


@app.get("/api/receipts/stats")
def receipt_stats():
    return get_book().receipt_counts()


@app.get("/api/statuses")
def list_statuses():
    return list(STATUS_INFO.values())


@app.post("/api/reload")
def reload():
    """Drop the cached order book and load it again from disk."""
    global _book
    _book = None
    book = get_book()
    logger.info("Order book reloaded: %d orders", len(book.orders))
    return {"status": "reloaded", "orders": len(book.orders)}
