# Overview: Flask CLI command groups for bootstrap, maintenance and expiration alerts.

# backend/pharmacy/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Items:
# - python -m flask items seed
#   Insert a small demo catalog (idempotent by item name).
# - python -m flask items retire-expired [--today 2026-01-31]
#   Soft-delete every active item whose expiration date has passed.
# - python -m flask items alerts [--today 2026-01-31] [--threshold-days 30]
#   Print expired and near-expiry items.

import click
from datetime import timedelta
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import items_service, reporting_service
from .time_utils import local_today


DEMO_ITEMS = (
    # name, description, unit_price_cents, stock, days until expiration (None = never)
    ("Paracetamol 500mg", "Box of 20 tablets", 350, 120, 365),
    ("Ibuprofen 400mg", "Box of 10 tablets", 480, 80, 20),
    ("Amoxicillin 500mg", "Box of 12 capsules", 1250, 40, 180),
    ("Saline Solution 500ml", None, 600, 25, -3),
    ("Cotton Swabs", "Pack of 100", 220, 60, None),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask items seed' to load demo items.")


@click.group('items')
def items_group():
    """Item catalog maintenance commands."""


@items_group.command('seed')
@with_appcontext
def seed_items():
    """Insert the demo catalog; existing names are left untouched."""
    today = local_today()
    created = 0
    for name, description, price_cents, stock, days in DEMO_ITEMS:
        if items_service.find_item_by_name(name) is not None:
            click.echo(f"SKIP {name} (already exists)")
            continue
        items_service.create_item(patch={
            "name": name,
            "description": description,
            "unit_price_cents": price_cents,
            "stock": stock,
            "expiration_date": None if days is None else today + timedelta(days=days),
        })
        created += 1
        click.echo(f"PASS Created {name}")
    click.echo(f"PASS Seed complete: {created} item(s) created.")


@items_group.command('retire-expired')
@click.option('--today', type=click.DateTime(formats=["%Y-%m-%d"]), help='Business date (defaults to today)')
@with_appcontext
def retire_expired(today):
    """Soft-delete every active, expired item."""
    day = today.date() if today else local_today()
    retired = items_service.retire_expired_items(day)
    click.echo(f"PASS Retired {retired} expired item(s) as of {day.isoformat()}.")


@items_group.command('alerts')
@click.option('--today', type=click.DateTime(formats=["%Y-%m-%d"]), help='Business date (defaults to today)')
@click.option('--threshold-days', type=int, default=None, help='Near-expiry window in days')
@with_appcontext
def expiration_alerts(today, threshold_days):
    """Print expired and near-expiry items."""
    day = today.date() if today else local_today()
    if threshold_days is None:
        threshold_days = current_app.config.get("NEAR_EXPIRY_THRESHOLD_DAYS", 30)

    report = reporting_service.expiration_alerts(day, threshold_days)

    click.echo("\n" + "=" * 72)
    click.echo(f"EXPIRATION ALERTS as of {report['today']} (window: {threshold_days} days)")
    click.echo("=" * 72)
    if not report["count"]:
        click.echo("PASS No expired or near-expiry items.")
        return

    for entry in report["expired"]:
        click.echo(f"EXPIRED  {entry['name']:<32} {entry['expiration_date']}  ({-entry['days_until_expiration']} day(s) ago)  stock={entry['stock']}")
    for entry in report["near_expiry"]:
        click.echo(f"SOON     {entry['name']:<32} {entry['expiration_date']}  (in {entry['days_until_expiration']} day(s))  stock={entry['stock']}")
    click.echo("=" * 72 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(items_group)
