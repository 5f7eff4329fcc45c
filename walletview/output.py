"""Output format routing for walletview.

Converts snapshots and result dicts to the requested format: json or table.

Design rules:
- JSON: 2-space indent, deterministic key order, utf-8
- Table: Rich-formatted transaction page with page label and nav hints
- Transaction values are rendered from the integer wei amount, never a float

All functions return strings. The caller writes to stdout.
"""

from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from rich.console import Console
from rich.table import Table

from walletview.models import Connected, Snapshot, Transaction

VALID_FORMATS = {"json", "table"}


def format_output(data: Any, fmt: str, color: bool = False) -> str:
    """
    Format data for stdout output.

    Args:
        data: A Snapshot, or any JSON-serialisable value.
        fmt: "json" | "table"

    Returns:
        Formatted string ready to write to stdout.

    Raises:
        ValueError: If fmt is not a recognised format.
    """
    fmt = fmt.lower()
    if fmt not in VALID_FORMATS:
        raise ValueError(f"Unknown format {fmt!r}. Valid: {sorted(VALID_FORMATS)}")

    if isinstance(data, Snapshot):
        return format_snapshot(data, fmt, color=color)
    if fmt == "table":
        return format_table(data, color=color)
    return format_json(data)


def format_snapshot(snapshot: Snapshot, fmt: str = "table", color: bool = False) -> str:
    """Render one explorer frame."""
    if fmt == "json":
        return format_json(snapshot.to_dict())
    return render_snapshot_table(snapshot, color=color)


# ── JSON ─────────────────────────────────────────────────────────────────────


def format_json(data: Any) -> str:
    """Pretty-print data as JSON (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False)


# ── Table ────────────────────────────────────────────────────────────────────


def format_table(data: Any, color: bool = False) -> str:
    """Generic fallback: dump as JSON through Rich."""
    buf = io.StringIO()
    console = Console(file=buf, highlight=False, markup=True, width=120, no_color=not color)
    console.print_json(json.dumps(data))
    return buf.getvalue()


def render_snapshot_table(snapshot: Snapshot, color: bool = False) -> str:
    buf = io.StringIO()
    console = Console(file=buf, highlight=False, markup=True, width=200, no_color=not color)

    if isinstance(snapshot.connection, Connected):
        console.print(f"Connected Account: [bold cyan]{snapshot.connection.address}[/bold cyan]")

    if snapshot.message:
        console.print(snapshot.message)

    page = snapshot.page
    if page.page_items:
        table = Table(
            title="Transactions",
            show_header=True,
            header_style="bold blue",
        )
        table.add_column("Transaction Hash", style="cyan", no_wrap=True)
        table.add_column("From", no_wrap=True)
        table.add_column("To", no_wrap=True)
        table.add_column("Value (ETH)", justify="right")
        table.add_column("Time Stamp")

        for tx in page.page_items:
            table.add_row(
                short_hash(tx.tx_hash),
                tx.from_addr,
                tx.to_addr or "(contract creation)",
                format_value(tx),
                format_timestamp(tx.timestamp),
            )
        console.print(table)

    if page.page_count:
        prev_hint = "[bold]<[/bold]" if page.can_previous else "[dim]<[/dim]"
        next_hint = "[bold]>[/bold]" if page.can_next else "[dim]>[/dim]"
        console.print(
            f"{prev_hint} {next_hint}  {page.label}  "
            f"(showing {page.page_size} per page, {page.total_items} total)"
        )

    return buf.getvalue()


# ── Utility ──────────────────────────────────────────────────────────────────


def short_hash(tx_hash: str) -> str:
    """'0xabcdef…123456' for long hashes, unchanged otherwise."""
    if len(tx_hash) > 18:
        return f"{tx_hash[:10]}…{tx_hash[-6:]}"
    return tx_hash


def format_value(tx: Transaction) -> str:
    """Wei → ETH as an exact decimal string, trailing zeros trimmed."""
    eth = Decimal(tx.value).scaleb(-18)
    return format(eth.normalize(), "f") if eth else "0"


def format_timestamp(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def mask_api_key(key: str) -> str:
    """
    Mask an API key for safe display.

    'abcdefg123' → 'abcd****'
    '' → '****'
    """
    if not key:
        return "****"
    if len(key) <= 4:
        return "****"
    return key[:4] + "****"
