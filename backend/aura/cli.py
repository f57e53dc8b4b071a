# Overview: Flask CLI command groups for bootstrap, seeding, and maintenance.

# backend/aura/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the admin accounts listed in ADMIN_EMAILS / ADMIN_PHONES.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog seeding:
# - python -m flask catalog seed products.json [--replace]
#   Insert products (with variants) from a JSON list.
# - python -m flask catalog seed-offers inventory-offers.json
#   Replace all inventory offers; accepts the spreadsheet export keys (Category, Item, Size, QTY, MRP, Offer).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create-admin --email owner@example.com [--phone +919876543210] [--name "Owner"]
#   Create an admin account, or promote an existing one.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked session tokens older than 30 days.

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import auth_service, catalog_service, offer_service, session_service
from .validation import ValidationError


def _load_json_file(path: str):
    with open(path, "r", encoding="utf-8") as fh:
        try:
            return json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"{path} is not valid JSON: {e}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the storefront database.

    Creates:
    - All tables (if missing)
    - Admin accounts for every ADMIN_EMAILS / ADMIN_PHONES entry (if missing)

    Admins sign in with a one-time code like everyone else.
    """
    click.echo("START Initializing Aura storefront...")

    db.create_all()
    click.echo("PASS Tables created")

    click.echo("\nUSERS Ensuring admin accounts...")
    for email in current_app.config.get("ADMIN_EMAILS", []):
        user = auth_service.create_admin(email=email)
        click.echo(f"PASS Admin: {user.email} (ID: {user.id})")
    for phone in current_app.config.get("ADMIN_PHONES", []):
        user = auth_service.create_admin(phone=phone)
        click.echo(f"PASS Admin: {user.phone} (ID: {user.id})")

    click.echo("\nPASS Initialization complete.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('catalog')
def catalog_group():
    """Catalog and inventory offer seeding."""


@catalog_group.command('seed')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--replace', is_flag=True, help='Delete the existing catalog first')
@with_appcontext
def seed_catalog(path, replace):
    """Insert products from a JSON list of product records."""
    records = _load_json_file(path)
    try:
        count = catalog_service.seed_products(records, replace=replace)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Seeded {count} products")


@catalog_group.command('seed-offers')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def seed_offers(path):
    """Replace all inventory offers with the records in a JSON list."""
    records = _load_json_file(path)
    try:
        summary = offer_service.seed_offers(records)
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Seeded {sum(summary.values())} inventory offers")
    for category, count in sorted(summary.items()):
        click.echo(f"  - {category}: {count} items")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Phone':<16} {'Role':<10} {'Active'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(
            f"{user.id:<5} {user.name[:20]:<20} {(user.email or '-'):<30} "
            f"{(user.phone or '-'):<16} {user.role:<10} {active_str}"
        )

    click.echo("="*100 + "\n")


@users_group.command('create-admin')
@click.option('--email', default=None, help='Admin email address')
@click.option('--phone', default=None, help='Admin phone number')
@click.option('--name', default=None, help='Display name')
@with_appcontext
def create_admin_cli(email, phone, name):
    """Create an admin account, or promote an existing account to admin."""
    try:
        user = auth_service.create_admin(email=email, phone=phone, name=name)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Admin ready: {user.name} (ID: {user.id})")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} session tokens.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
