"""
app/commands.py — Flask CLI commands.

  flask process-pending   settle every non-PAID transaction, oldest month
                          first, committing after each one
  flask seed              create demo services, members, subscriptions and
                          a few months of bills in an empty database

Both commands go through the service layer exactly like the routes do:
call the service, commit, and roll back on AppError.
"""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext
from rich import box
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from subpool.app.errors import AppError
from subpool.app.extensions import db
from subpool.app.models.member import Member
from subpool.app.services import (
    billing_service,
    ledger_service,
    roster_service,
    settlement_service,
)

console = Console(highlight=False)


# ── process-pending ────────────────────────────────────────────────────────

def process_all_pending(session) -> list[dict]:
    """
    Runs process_payments() on every non-PAID transaction, one commit each.

    A failure on one transaction is rolled back and reported; the loop moves
    on. Re-running is safe because settlement is idempotent.
    """
    reports = []
    for transaction_id in billing_service.list_unpaid_transaction_ids(session):
        try:
            result = settlement_service.process_payments(transaction_id, session)
            session.commit()
        except AppError as exc:
            session.rollback()
            current_app.logger.warning(
                "Skipped transaction %s: %s (%s)", transaction_id, exc.message, exc.code,
            )
            reports.append({"transaction_id": transaction_id, "error": exc.code})
            continue
        reports.append(result)
    return reports


def _render_reports(reports: list[dict]) -> Table:
    tbl = Table(
        title="Pending transactions", title_justify="left",
        box=box.ROUNDED, show_header=True, header_style="bold dim",
    )
    tbl.add_column("Transaction", justify="right")
    tbl.add_column("Status", justify="center")
    tbl.add_column("Paid", justify="center")
    tbl.add_column("Pending", justify="center")

    for report in reports:
        if "error" in report:
            tbl.add_row(str(report["transaction_id"]), f"[red]{report['error']}[/]", "-", "-")
            continue
        summary = report["summary"]
        colour = "green" if report["status"] == "PAID" else "yellow"
        tbl.add_row(
            str(report["transaction_id"]),
            f"[{colour}]{report['status']}[/]",
            str(summary["paid_count"]),
            str(summary["pending_count"]),
        )
    return tbl


@click.command("process-pending")
@with_appcontext
def process_pending_command():
    """Settle every unpaid transaction from member balances."""
    reports = process_all_pending(db.session)
    if not reports:
        console.print("No unpaid transactions.")
        return
    console.print(_render_reports(reports))


# ── seed ───────────────────────────────────────────────────────────────────

DEMO_SERVICES = [
    ("spotify", "Spotify Premium", 6),
    ("youtube", "YouTube Premium", 6),
]

# (name, opening balance, services)
DEMO_MEMBERS = [
    ("alice",   60541,  ["spotify"]),
    ("bob",     37093,  ["spotify"]),
    ("carol",   14584,  ["spotify"]),
    ("dave",    21320,  ["spotify", "youtube"]),
    ("erin",    6476,   ["spotify", "youtube"]),
    ("frank",   0,      ["youtube"]),
    ("grace",   -11677, ["youtube"]),
]

DEMO_BILLS = {
    "spotify": [("2025-03", 16626), ("2025-04", 17026), ("2025-05", 16151)],
    "youtube": [("2025-03", 12666), ("2025-04", 12860), ("2025-05", 20745)],
}


@click.command("seed")
@with_appcontext
def seed_command():
    """Create demo services, members, subscriptions and bills."""
    session = db.session
    if session.execute(select(Member.id).limit(1)).first() is not None:
        raise click.ClickException("The database already has members; seed only runs on an empty one.")

    service_ids = {}
    for name, display_name, max_members in DEMO_SERVICES:
        service = roster_service.create_service(name, display_name, max_members, session)
        service_ids[name] = service["id"]

    for name, balance, services in DEMO_MEMBERS:
        member = ledger_service.create_member(name, session, initial_balance=balance)
        for service_name in services:
            roster_service.subscribe(member["id"], service_ids[service_name], session)

    bill_count = 0
    for service_name, bills in DEMO_BILLS.items():
        for month, amount in bills:
            billing_service.create_transaction(service_ids[service_name], month, amount, session)
            bill_count += 1

    session.commit()
    console.print(
        f"Seeded {len(DEMO_SERVICES)} services, {len(DEMO_MEMBERS)} members "
        f"and {bill_count} transactions."
    )
