# Overview: Flask CLI command groups for bootstrap and inspection.

# cashdesk/cli.py
# Commands Legend:
# - Set FLASK_APP=cashdesk
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent; use migrations for upgrades).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Drawer inspection/bootstrap:
# - python -m flask drawers list --tenant acme [--status OPEN]
#   List drawers with current balances.
# - python -m flask drawers create --tenant acme --owner u-42 --name "Front till" --location "Main floor"
#   Create a CLOSED drawer for an operator.
#
# Transfer inspection:
# - python -m flask transfers list --tenant acme --status PENDING
#   List transfer requests, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import drawer_service, ledger_query_service, transfer_service
from .services.permission_service import ActorContext

# Actor used for CLI-initiated writes
CLI_ACTOR_ID = "cli"
CLI_ROLE = "superadmin"


def _format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@with_appcontext
@click.option('--yes', is_flag=True, help='Confirm dropping all data')
def reset_db(yes):
    """Drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('drawers')
def drawers_group():
    """Cash drawer inspection and bootstrap."""


@drawers_group.command('list')
@with_appcontext
@click.option('--tenant', 'tenant_id', required=True, help='Tenant ID')
@click.option('--status', default=None, help='CLOSED, OPEN or SUSPENDED')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive drawers')
def list_drawers(tenant_id, status, include_inactive):
    """List drawers and balances for a tenant."""
    drawers = ledger_query_service.list_drawers(tenant_id, status=status, include_inactive=include_inactive)
    if not drawers:
        click.echo("No drawers found")
        return
    for d in drawers:
        click.echo(
            f"#{d.id:<5} {d.status:<10} owner={d.owner_id:<16} "
            f"balance={_format_cents(d.current_balance_cents):>12}  {d.drawer_name}"
        )


@drawers_group.command('create')
@with_appcontext
@click.option('--tenant', 'tenant_id', required=True, help='Tenant ID')
@click.option('--owner', 'owner_id', required=True, help='Operator who owns the drawer')
@click.option('--name', 'drawer_name', default=None, help='Display name')
@click.option('--location', 'location_name', default=None, help='Physical location')
def create_drawer(tenant_id, owner_id, drawer_name, location_name):
    """Create a CLOSED drawer for an operator."""
    actor = ActorContext(actor_id=CLI_ACTOR_ID, tenant_id=tenant_id, role=CLI_ROLE)
    drawer = drawer_service.create_drawer(
        actor,
        owner_id=owner_id,
        drawer_name=drawer_name,
        location_name=location_name,
    )
    click.echo(f"PASS Created drawer #{drawer.id} for {owner_id} in {tenant_id}")


@click.group('transfers')
def transfers_group():
    """Transfer request inspection."""


@transfers_group.command('list')
@with_appcontext
@click.option('--tenant', 'tenant_id', required=True, help='Tenant ID')
@click.option('--status', default=None, help='PENDING, APPROVED, REJECTED or CANCELLED')
@click.option('--limit', default=50, show_default=True, type=int)
def list_transfers(tenant_id, status, limit):
    """List transfer requests, newest first."""
    transfers = transfer_service.list_transfers(tenant_id, status=status, limit=limit)
    if not transfers:
        click.echo("No transfer requests found")
        return
    for t in transfers:
        target = f"drawer #{t.to_drawer_id}" if t.to_drawer_id else f"account {t.to_external_account_id}"
        reason = f" [{t.rejection_reason}]" if t.rejection_reason else ""
        click.echo(
            f"{t.reference_number:<10} {t.status:<10}{reason} {_format_cents(t.amount_cents):>12} "
            f"drawer #{t.from_drawer_id} -> {target}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(drawers_group)
    app.cli.add_command(transfers_group)
