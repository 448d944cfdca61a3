#!/usr/bin/env python3
"""
Purchase-order lifecycle engine — CLI entry point.

Usage examples:
  python main.py check                              # Verify data files and settings
  python main.py orders                             # List all non-archived orders
  python main.py orders --filter late --search acme
  python main.py status PO-2024-001                 # Canonical status + badges
  python main.py status PO-2024-001 --json
  python main.py history PO-2024-001                # Inferred status transitions
  python main.py snapshots PO-2024-001              # Per-delivery running totals
  python main.py stepper PO-2024-001                # Three-stage progress

  python main.py --snapshot data/snapshot.json --today 2024-03-15 orders
"""
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from config import Config
from lifecycle import OrderBook, SnapshotError
from models.status import OrderFilter, StageState

_STAGE_ICONS = {
    StageState.COMPLETED: "✓",
    StageState.CURRENT:   "●",
    StageState.PENDING:   "○",
    StageState.ISSUE:     "✗",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quieten noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _get_book(ctx: click.Context) -> OrderBook:
    """Load the order book once per invocation; report load failures and exit 1."""
    obj = ctx.obj
    if "book" not in obj:
        try:
            obj["book"] = OrderBook.from_config(obj["config"], today=obj["today"])
        except SnapshotError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
    return obj["book"]


def _require(book: OrderBook, order_id: str):
    order = book.get_order(order_id)
    if order is None:
        click.echo(f"Error: order '{order_id}' not found.", err=True)
        sys.exit(1)
    return order


def _dump(ctx: click.Context, data) -> None:
    indent = 2 if ctx.obj["config"].pretty_json else None
    click.echo(json.dumps(data, indent=indent, ensure_ascii=False))


def _status_text(status) -> str:
    """Enum value, or the recorded text for an unrecognised status."""
    return getattr(status, "value", status)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--snapshot", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Path to the JSON snapshot (default: SNAPSHOT_PATH or data/snapshot.json)")
@click.option("--archive", default=None, type=click.Path(dir_okay=False),
              help="Path to the archive registry JSON")
@click.option("--today", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Evaluate as of this date (YYYY-MM-DD)")
@click.option("--no-pretty", is_flag=True, help="Output compact (non-indented) JSON")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    snapshot: str | None,
    archive: str | None,
    today: datetime | None,
    no_pretty: bool,
) -> None:
    """Purchase-order lifecycle engine — reconcile, classify and explain order status."""
    _setup_logging(verbose)
    config = Config()
    if snapshot:
        config.snapshot_path = Path(snapshot)
    if archive:
        config.archive_path = Path(archive)
    if no_pretty:
        config.pretty_json = False

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    ctx.obj["today"] = today.date() if today else None


# --------------------------------------------------------------------
# check command
# --------------------------------------------------------------------

@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify that the data files are present and loadable."""
    config: Config = ctx.obj["config"]

    click.echo("\n=== Lifecycle Setup Check ===\n")
    for label, path in [
        ("snapshot", config.snapshot_path),
        ("orders csv", config.orders_csv),
        ("order lines csv", config.order_lines_csv),
        ("archive registry", config.archive_path),
    ]:
        tick = "✓" if path.exists() else "✗"
        click.echo(f"  {label:<20} {tick}  {path}")

    book = _get_book(ctx)
    click.echo()
    click.echo(f"  Orders loaded:       {len(book.orders)}")
    click.echo(f"  Receipts loaded:     {len(book.receipts)}")
    click.echo(f"  Tickets loaded:      {len(book.tickets)}")
    click.echo(f"  Archived keys:       {len(book.archive) if book.archive is not None else 0}")
    click.echo(f"  Evaluation date:     {book.today.isoformat()}")
    click.echo()


# --------------------------------------------------------------------
# orders command
# --------------------------------------------------------------------

@cli.command()
@click.option("--filter", "order_filter", default=OrderFilter.ALL.value,
              type=click.Choice([f.value for f in OrderFilter]), help="Tab filter")
@click.option("--search", "-s", default=None, help="Match on order id or supplier")
@click.option("--include-archived", is_flag=True, help="Include archived orders")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def orders(
    ctx: click.Context,
    order_filter: str,
    search: str | None,
    include_archived: bool,
    as_json: bool,
) -> None:
    """List orders with their canonical status, newest first."""
    book = _get_book(ctx)
    rows = book.list_orders(OrderFilter(order_filter), search, include_archived)

    if as_json:
        _dump(ctx, {
            "counts": book.counts().model_dump(),
            "orders": [
                {
                    "id": o.id,
                    "supplier": o.supplier,
                    "date_created": o.date_created,
                    "status": book.classify(o.id).label,
                }
                for o in rows
            ],
        })
        return

    counts = book.counts()
    click.echo(
        f"\n  All: {counts.all}   Open: {counts.open}   "
        f"Late: {counts.late}   Completed: {counts.completed}\n"
    )
    if not rows:
        click.echo("  (no matching orders)")
    for order in rows:
        result = book.classify(order.id)
        click.echo(
            f"  {order.id:<20} {(order.supplier or '-'):<28} "
            f"{(order.date_created or '-'):<12} {result.label}"
        )
    click.echo()


# --------------------------------------------------------------------
# status command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id")
@click.option("--json", "as_json", is_flag=True, help="Print the full StatusResult as JSON")
@click.pass_context
def status(ctx: click.Context, order_id: str, as_json: bool) -> None:
    """Show the canonical status and badge stack of ORDER_ID."""
    book = _get_book(ctx)
    order = _require(book, order_id)
    result = book.classify(order.id)

    if as_json:
        _dump(ctx, {**result.model_dump(mode="json"), "label": result.label})
        return

    click.echo()
    click.echo(f"  Order:       {order.id}")
    click.echo(f"  Supplier:    {order.supplier or '(unknown)'}")
    click.echo(f"  Status:      {result.label}")
    click.echo(f"  Badges:      {' · '.join(b.label for b in result.badges)}")
    click.echo(f"  Received:    {result.total_received} / {result.total_ordered}")
    click.echo(f"  Expected:    {order.expected_delivery_date or '(none)'}  [{result.date_class.value}]")
    if result.shortfall_accepted:
        click.echo("  ⚠ Closed with accepted shortfall")
    if result.open_ticket_count:
        click.echo(f"  ⚠ {result.open_ticket_count} open ticket(s)")

    issues = book.line_issues(order.id)
    if issues:
        click.echo(f"\n  Line issues ({len(issues)}):")
        for sku, entry in issues.items():
            click.echo(
                f"    ✗ {sku}: damaged {entry.damaged}, wrong {entry.wrong}, overage {entry.overage}"
            )
    click.echo()


# --------------------------------------------------------------------
# history command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id")
@click.option("--json", "as_json", is_flag=True, help="Print transitions as JSON")
@click.pass_context
def history(ctx: click.Context, order_id: str, as_json: bool) -> None:
    """Show the inferred status history of ORDER_ID's receipt, most recent first."""
    book = _get_book(ctx)
    order = _require(book, order_id)
    transitions = book.history(order.id)

    if as_json:
        _dump(ctx, [t.model_dump(mode="json") for t in transitions])
        return

    click.echo()
    if not transitions:
        click.echo("  (no booked deliveries)")
    for t in transitions:
        click.echo(
            f"  {(t.date or '-'):<20} {t.from_status.value:>18} → {_status_text(t.to_status):<18} "
            f"{t.actor}  ({t.reason})"
        )
    click.echo()


# --------------------------------------------------------------------
# snapshots command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id")
@click.option("--json", "as_json", is_flag=True, help="Print snapshots as JSON")
@click.pass_context
def snapshots(ctx: click.Context, order_id: str, as_json: bool) -> None:
    """Show pre/current/post running totals per delivery for ORDER_ID."""
    book = _get_book(ctx)
    order = _require(book, order_id)
    per_delivery = book.snapshots(order.id)

    if as_json:
        _dump(ctx, {
            delivery_id: {sku: snap.model_dump() for sku, snap in per_sku.items()}
            for delivery_id, per_sku in per_delivery.items()
        })
        return

    click.echo()
    if not per_delivery:
        click.echo("  (no deliveries)")
    for delivery_id, per_sku in per_delivery.items():
        click.echo(f"  Delivery {delivery_id}")
        for sku, snap in per_sku.items():
            click.echo(f"    {sku:<20} {snap.pre:>6} + {snap.current:<6} = {snap.post}")
    click.echo()


# --------------------------------------------------------------------
# stepper command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id")
@click.option("--json", "as_json", is_flag=True, help="Print stages as JSON")
@click.pass_context
def stepper(ctx: click.Context, order_id: str, as_json: bool) -> None:
    """Show the three-stage lifecycle progress of ORDER_ID."""
    book = _get_book(ctx)
    order = _require(book, order_id)
    result = book.stepper(order.id)

    if as_json:
        _dump(ctx, {**result.model_dump(mode="json"), "connectors": result.connectors})
        return

    click.echo()
    click.echo("  " + "  ──  ".join(f"{_STAGE_ICONS[s.state]} {s.caption}" for s in result.stages))
    click.echo()


if __name__ == "__main__":
    cli()
