# Overview: Flask CLI command groups for bootstrap, inspection, and ledger verification.

# backend/tillcore/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to tillcore (PowerShell: $env:FLASK_APP="tillcore").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--unit "Main Store"] [--owner "Owner"]
#   Idempotent bootstrap: creates the default business unit and an owner.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shift inspection:
# - python -m flask shifts list --unit-id 1 --status open --limit 20
#   List recent shifts with optional filters.
#
# Ledger verification:
# - python -m flask ledger verify [--customer-id 7]
#   Replay credit ledgers and compare against customer balances.
#   Exits non-zero if any customer is inconsistent. Nothing is repaired.
#
# Alerts:
# - python -m flask alerts list --unit-id 1 [--unread]

import sys

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import BusinessUnit, Customer, Staff
from .services import alert_service, credit_ledger_service, shift_service
from .services.reconciliation_service import format_cents
from .validation import ConsistencyError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--unit', 'unit_name', default="Main Store", show_default=True)
@click.option('--code', 'unit_code', default="MAIN", show_default=True)
@click.option('--owner', 'owner_name', default="Owner", show_default=True)
@with_appcontext
def init_command(unit_name: str, unit_code: str, owner_name: str):
    """Create default business unit and owner if missing."""
    db.create_all()

    unit = db.session.query(BusinessUnit).filter_by(code=unit_code).first()
    if unit:
        click.echo(f"Business unit exists: {unit.name} (id={unit.id})")
    else:
        unit = BusinessUnit(name=unit_name, code=unit_code, is_active=True)
        db.session.add(unit)
        db.session.flush()
        click.echo(f"Created business unit: {unit.name} (id={unit.id})")

    owner = db.session.query(Staff).filter_by(business_unit_id=unit.id, role="owner").first()
    if owner:
        click.echo(f"Owner exists: {owner.name} (id={owner.id})")
    else:
        owner = Staff(name=owner_name, role="owner", business_unit_id=unit.id, is_active=True)
        db.session.add(owner)
        db.session.flush()
        click.echo(f"Created owner: {owner.name} (id={owner.id})")

    db.session.commit()


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help="Confirm destructive reset")
@with_appcontext
def reset_db_command(yes: bool):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("Refusing to reset without --yes")
        sys.exit(1)
    db.drop_all()
    db.create_all()
    click.echo("Database reset complete")


@click.group('shifts')
def shifts_group():
    """Shift inspection commands."""


@shifts_group.command('list')
@click.option('--unit-id', type=int, required=True)
@click.option('--status', type=click.Choice(["open", "closed"]), default=None)
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_shifts_command(unit_id: int, status: str | None, limit: int):
    """List recent shifts for a business unit."""
    try:
        shifts = shift_service.list_shift_history(unit_id, status=status, limit=limit)
    except ValidationError as e:
        raise click.ClickException(str(e))

    if not shifts:
        click.echo("No shifts found")
        return

    for s in shifts:
        discrepancy = format_cents(s.discrepancy_cents) if s.discrepancy_cents is not None else "-"
        click.echo(
            f"{s.id:>6}  {s.status:<6}  {s.staff_name:<20}  "
            f"opening={format_cents(s.opening_cash_cents)}  "
            f"sales={format_cents(s.total_sales_cents)}  "
            f"cash={format_cents(s.cash_sales_cents)}  "
            f"discrepancy={discrepancy}"
        )


@click.group('ledger')
def ledger_group():
    """Credit ledger verification commands."""


@ledger_group.command('verify')
@click.option('--customer-id', type=int, default=None, help="Verify a single customer")
@with_appcontext
def verify_ledger_command(customer_id: int | None):
    """Replay credit ledgers and report customers whose balance has drifted."""
    query = db.session.query(Customer)
    if customer_id is not None:
        query = query.filter_by(id=customer_id)
    customers = query.order_by(Customer.id).all()

    failures = 0
    for customer in customers:
        try:
            result = credit_ledger_service.verify_customer_ledger(customer.id)
            click.echo(
                f"OK    customer={customer.id}  entries={result.entry_count}  "
                f"balance={format_cents(result.current_balance_cents)}"
            )
        except ConsistencyError as e:
            failures += 1
            click.echo(f"FAIL  customer={customer.id}  {e}", err=True)
            for detail in e.details:
                click.echo(f"      {detail}", err=True)
            alert_service.on_consistency_failure(customer.id, customer.business_unit_id, str(e))

    click.echo(f"Checked {len(customers)} customer(s), {failures} inconsistent")
    if failures:
        sys.exit(1)


@click.group('alerts')
def alerts_group():
    """Alert inspection commands."""


@alerts_group.command('list')
@click.option('--unit-id', type=int, default=None)
@click.option('--unread', is_flag=True)
@with_appcontext
def list_alerts_command(unit_id: int | None, unread: bool):
    alerts = alert_service.list_alerts(unit_id, unread_only=unread)
    if not alerts:
        click.echo("No alerts")
        return
    for a in alerts:
        marker = " " if a.is_read else "*"
        click.echo(f"{marker} {a.id:>6}  {a.alert_type:<18}  {a.message}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(shifts_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(alerts_group)
