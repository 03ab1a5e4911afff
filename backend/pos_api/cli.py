# Overview: Flask CLI command groups for bootstrap, inspection, and reports.

# backend/pos_api/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Product inspection/bootstrap:
# - python -m flask products list
#   List all products with price, cost and stock.
# - python -m flask products seed
#   Insert a small demo catalogue (existing barcodes are skipped).
#
# Reports:
# - python -m flask reports daily --date 2026-03-05
#   Print the daily summary (defaults to today, UTC).
# - python -m flask reports export --start 2026-03-01 --end 2026-03-31 --output march.csv
#   Write completed transactions as CSV (stdout when --output is omitted).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Product
from .services import reporting_service
from .services.reporting_service import ReportError, parse_report_date


DEMO_PRODUCTS = [
    ("8850001000011", "Drinking Water 600ml", 7.0, 4.5, 120),
    ("8850001000028", "Instant Noodles", 6.0, 4.0, 200),
    ("8850001000035", "Canned Tuna", 35.0, 26.0, 48),
    ("8850001000042", "Fresh Milk 1L", 52.0, 41.0, 24),
    ("8850001000059", "Bread Loaf", 29.0, 20.0, 15),
    ("8850001000066", "Laundry Detergent", 89.0, 67.0, 8),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create any missing tables."""
    db.create_all()
    click.echo("PASS Database tables ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm that all data will be deleted')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


# =============================================================================
# PRODUCT COMMANDS
# =============================================================================

@click.group('products')
def products_group():
    """Product inspection and bootstrap commands."""


@products_group.command('list')
@with_appcontext
def list_products_cli():
    """List all products."""
    products = db.session.query(Product).order_by(Product.name.asc()).all()

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Barcode':<16} {'Name':<30} {'Price':>10} {'Cost':>10} {'Stock':>6}")
    click.echo("="*80)

    for p in products:
        click.echo(f"{p.id:<5} {p.barcode:<16} {p.name[:30]:<30} {p.price:>10.2f} {p.cost:>10.2f} {p.stock:>6}")

    click.echo("="*80 + "\n")


@products_group.command('seed')
@with_appcontext
def seed_products():
    """Insert the demo catalogue."""
    unit = current_app.config.get("DEFAULT_UNIT", "pcs")
    created = 0
    for barcode, name, price, cost, stock in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(barcode=barcode).first():
            click.echo(f"WARN  Barcode {barcode} already exists, skipping...")
            continue
        db.session.add(Product(barcode=barcode, name=name, price=price, cost=cost, unit=unit, stock=stock))
        created += 1

    db.session.commit()
    click.echo(f"PASS Created {created} products")


# =============================================================================
# REPORT COMMANDS
# =============================================================================

@click.group('reports')
def reports_group():
    """Sales report commands."""


@reports_group.command('daily')
@click.option('--date', 'date_str', default=None, help='YYYY-MM-DD (default: today, UTC)')
@with_appcontext
def daily_report_cli(date_str):
    """Print the daily sales summary."""
    try:
        report = reporting_service.daily_report(on_date=parse_report_date(date_str))
    except ReportError as e:
        raise click.BadParameter(str(e), param_hint="--date")

    click.echo(f"Date:           {report['date']}")
    click.echo(f"Bills:          {report['bill_count']}")
    click.echo(f"Total sales:    {report['total_sales']:.2f}")
    click.echo(f"Total discount: {report['total_discount']:.2f}")
    click.echo(f"Profit:         {report['profit']:.2f}")
    for row in report["by_payment_method"]:
        click.echo(f"  {row['payment_method']:<12} {row['count']:>5} {row['total']:>12.2f}")


@reports_group.command('export')
@click.option('--start', 'start_str', default=None, help='First day, YYYY-MM-DD')
@click.option('--end', 'end_str', default=None, help='Last day, YYYY-MM-DD')
@click.option('--output', type=click.Path(dir_okay=False, writable=True), default=None)
@with_appcontext
def export_cli(start_str, end_str, output):
    """Export completed transactions as CSV."""
    try:
        body = reporting_service.export_transactions_csv(
            start_date=parse_report_date(start_str, field="start"),
            end_date=parse_report_date(end_str, field="end"),
        )
    except ReportError as e:
        raise click.UsageError(str(e))

    if output is None:
        click.echo(body, nl=False)
        return

    with open(output, "w", encoding="utf-8", newline="") as fh:
        fh.write(body)
    click.echo(f"PASS Wrote {body.count(chr(10)) - 1} transactions to {output}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(reports_group)
