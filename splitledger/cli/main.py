# splitledger/cli/main.py
"""
CLI for creating, funding, paying out and auditing proportional-payment ledgers.
"""

import os
import csv
import json
import sqlite3
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from splitledger.chain.trail import AuditTrail
from splitledger.core.errors import (
    LedgerError,
    NothingDueError,
    NotBeneficiaryError,
    TransferFailedError,
)
from splitledger.splitter.ledger import PaymentLedger
from splitledger.storage import SQLiteEventStore
from splitledger.verify.verifier import AuditVerifier

app = typer.Typer(
    name="splitledger",
    help="Create, fund, release and audit proportional-payment ledgers",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def get_db_path(db_flag: Optional[Path] = None) -> Path:
    """Resolve DB path in this order:
    1. --db flag
    2. SPLITLEDGER_DB_PATH environment variable
    3. Default: ~/.splitledger/ledgers.db
    """
    if db_flag:
        path = db_flag.resolve()
    else:
        env_path = os.environ.get("SPLITLEDGER_DB_PATH")
        if env_path:
            path = Path(env_path).resolve()
        else:
            path = Path.home() / ".splitledger" / "ledgers.db"

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _open_storage(ctx: typer.Context, db: Optional[Path], must_exist: bool = True) -> SQLiteEventStore:
    db_path = get_db_path(db or (ctx.obj or {}).get("db"))

    if must_exist and not db_path.exists():
        console.print(f"[red]Database file not found: {db_path}[/]")
        console.print("[yellow]To get started:[/]")
        console.print("  • Create a ledger first: splitledger create <id> --payees a,b --shares 1,1")
        console.print("  • Set env var: export SPLITLEDGER_DB_PATH=/path/to/your.db")
        raise typer.Exit(1)

    try:
        return SQLiteEventStore(db_path)
    except Exception as e:
        console.print(f"[red]Failed to open database: {str(e)}[/]")
        raise typer.Exit(1)


def _open_ledger(storage: SQLiteEventStore, ledger_id: str) -> PaymentLedger:
    try:
        events = storage.load_events(ledger_id)
    except Exception as e:
        console.print(f"[red]Failed to load ledger '{ledger_id}': {str(e)}[/]")
        raise typer.Exit(1)

    if not events:
        console.print(f"[red]Ledger '{ledger_id}' not found[/]")
        raise typer.Exit(1)

    trail = AuditTrail(ledger_id, events=events, storage=storage)
    try:
        return PaymentLedger.restore(trail)
    except Exception as e:
        console.print(f"[red]Could not replay ledger '{ledger_id}': {str(e)}[/]")
        console.print("  Run 'splitledger verify' to inspect the trail.")
        raise typer.Exit(1)


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Path to SQLite database (overrides SPLITLEDGER_DB_PATH env var)",
    ),
):
    """Manage proportional-payment ledgers."""
    ctx.obj = {"db": db}


@app.command()
def create(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Identifier of the new ledger"),
    payees: str = typer.Option(..., "--payees", "-p", help="Comma-separated beneficiary accounts"),
    shares: str = typer.Option(..., "--shares", "-s", help="Comma-separated share weights (must match payees)"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Register a new ledger with a fixed set of beneficiaries."""
    accounts = _split_csv(payees)
    try:
        weights = [int(s) for s in _split_csv(shares)]
    except ValueError:
        console.print(f"[red]Shares must be integers: {shares}[/]")
        raise typer.Exit(1)

    storage = _open_storage(ctx, db, must_exist=False)
    if storage.get_event_count(ledger_id):
        console.print(f"[red]Ledger '{ledger_id}' already exists[/]")
        raise typer.Exit(1)

    trail = AuditTrail(ledger_id, storage=storage)
    try:
        ledger = PaymentLedger(accounts, weights, trail=trail)
    except LedgerError as e:
        console.print(f"[red]Invalid registry: {e}[/]")
        raise typer.Exit(1)

    table = Table(title=f"Ledger {ledger_id}")
    table.add_column("#")
    table.add_column("Account")
    table.add_column("Shares")
    table.add_column("%")
    for i, entry in enumerate(ledger.beneficiaries):
        pct = entry.shares / ledger.total_shares * 100
        table.add_row(str(i), entry.account, str(entry.shares), f"{pct:.2f}%")

    console.print(table)
    console.print(f"[green]Created ledger '{ledger_id}' with {ledger.beneficiary_count} beneficiaries[/]")


@app.command()
def deposit(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Ledger to fund"),
    amount: int = typer.Argument(..., help="Amount in smallest units"),
    depositor: str = typer.Option("anonymous", "--from", help="Depositor identity for the audit trail"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Deposit funds into a ledger's pool."""
    storage = _open_storage(ctx, db)
    ledger = _open_ledger(storage, ledger_id)

    try:
        ledger.deposit(amount, depositor=depositor)
    except LedgerError as e:
        console.print(f"[red]Deposit rejected: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Deposited {amount} from {depositor}[/]")
    console.print(f"  Pool balance: {ledger.pool_balance}")


@app.command()
def release(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Ledger to pay out from"),
    account: str = typer.Argument(..., help="Beneficiary to pay"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Release everything a beneficiary is currently owed."""
    storage = _open_storage(ctx, db)
    ledger = _open_ledger(storage, ledger_id)

    try:
        paid = ledger.release(account)
    except NotBeneficiaryError:
        console.print(f"[red]'{account}' is not a beneficiary of ledger '{ledger_id}'[/]")
        raise typer.Exit(1)
    except NothingDueError:
        console.print(f"[yellow]Nothing due for '{account}' right now.[/]")
        console.print("  Try again after further deposits.")
        return
    except TransferFailedError as e:
        console.print(f"[red]Transfer failed, nothing was released: {e}[/]")
        raise typer.Exit(1)
    except LedgerError as e:
        console.print(f"[red]Release rejected: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Released {paid} to {account}[/]")
    console.print(f"  Total released to {account}: {ledger.released_of(account)}")


@app.command()
def info(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Ledger to display"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Show totals and per-beneficiary balances."""
    storage = _open_storage(ctx, db)
    ledger = _open_ledger(storage, ledger_id)
    snap = ledger.snapshot()

    summary = Table(title=f"Ledger {ledger_id}")
    summary.add_column("Property")
    summary.add_column("Value")
    summary.add_row("Beneficiaries", str(len(snap.beneficiaries)))
    summary.add_row("Total shares", str(snap.total_shares))
    summary.add_row("Total received", str(snap.total_received))
    summary.add_row("Total released", str(snap.total_released))
    summary.add_row("Pool balance", str(snap.pool_balance))
    console.print(summary)

    table = Table(title="Beneficiaries")
    table.add_column("#")
    table.add_column("Account")
    table.add_column("Shares")
    table.add_column("%")
    table.add_column("Released")
    table.add_column("Releasable")
    for i, entry in enumerate(snap.beneficiaries):
        pct = entry.shares / snap.total_shares * 100
        table.add_row(
            str(i),
            entry.account,
            str(entry.shares),
            f"{pct:.2f}%",
            str(snap.released[entry.account]),
            str(ledger.releasable(entry.account)),
        )
    console.print(table)


@app.command()
def ledgers(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """List all recorded ledgers with event counts and last activity."""
    storage = _open_storage(ctx, db)

    try:
        ledger_list = storage.list_ledgers()
    except sqlite3.OperationalError as e:
        console.print(f"[yellow]Database is empty or schema missing: {str(e)}[/]")
        raise typer.Exit(0)

    if not ledger_list:
        console.print("[yellow]No ledgers found in database.[/]")
        return

    table = Table(title="Recorded Ledgers")
    table.add_column("Ledger ID")
    table.add_column("Events")
    table.add_column("Last Activity")

    for lid in ledger_list:
        count = storage.get_event_count(lid)
        last_ts = storage.get_latest_timestamp(lid) or "—"
        table.add_row(lid, str(count), last_ts)

    console.print(table)


@app.command()
def history(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Ledger to display"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of recent events to show"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Show the most recent events of a ledger."""
    storage = _open_storage(ctx, db)

    events = storage.query_events(ledger_id, limit=limit)
    if not events:
        console.print(f"[yellow]No events found for ledger '{ledger_id}'[/]")
        return

    for ev in events:
        console.print(f"[bold cyan]{ev.sequence:4d} | {ev.timestamp} | {ev.kind.upper():10} | {ev.account}[/]")
        label = "shares" if ev.kind == "registered" else "amount"
        console.print(f"  {label}: {ev.amount}")


@app.command()
def verify(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Ledger to verify"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Verify the integrity of a ledger (hash chain + payout accounting)."""
    storage = _open_storage(ctx, db)

    result = AuditVerifier().verify_from_storage(ledger_id, storage)

    if result.is_valid:
        console.print(f"[green]✓ Ledger '{ledger_id}' is valid[/]")
        console.print(f"  {result.message}")
    else:
        console.print(f"[red]✗ Verification failed for ledger '{ledger_id}'[/]")
        for failure in result.failures:
            console.print(f"  • [{failure.index}] {failure.category}: {failure.message}")
        raise typer.Exit(1)


@app.command()
def export(
    ctx: typer.Context,
    ledger_id: str = typer.Argument(..., help="Ledger to export"),
    fmt: str = typer.Option("jsonl", "--format", "-f", help="Export format (jsonl|csv)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: <ledger_id>.<format>)"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Export a ledger's audit trail as JSONL or CSV."""
    if fmt not in ("jsonl", "csv"):
        console.print(f"[red]Unknown format '{fmt}' (use jsonl or csv)[/]")
        raise typer.Exit(1)

    storage = _open_storage(ctx, db)

    try:
        events = storage.load_events(ledger_id)
    except Exception as e:
        console.print(f"[red]Failed to load ledger '{ledger_id}': {str(e)}[/]")
        raise typer.Exit(1)

    if not events:
        console.print(f"[yellow]No events found for ledger '{ledger_id}'[/]")
        raise typer.Exit(0)

    out_path = output or Path(f"{ledger_id}.{fmt}")
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        if fmt == "jsonl":
            for ev in events:
                json.dump(ev.to_dict(), f, separators=(",", ":"))
                f.write("\n")
        else:
            fields = list(events[0].to_dict().keys())
            writer = csv.DictWriter(f, fieldnames=fields)
            writer.writeheader()
            for ev in events:
                writer.writerow(ev.to_dict())

    console.print(f"[green]Exported {len(events)} events to {out_path}[/]")


if __name__ == "__main__":
    app()
