# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/minipos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to minipos (PowerShell: $env:FLASK_APP="minipos").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--store "Main Store"]
#   Idempotent bootstrap: creates tables, a default store and the admin/manager/cashier users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User bootstrap:
# - python -m flask users create --username alice --password "Password123" --role cashier [--store-id 1]
#   Create a user (prompts if options are omitted).
#
# Register inspection:
# - python -m flask registers sessions --status OPEN --limit 20
#   List recent register sessions with optional filters.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User, RegisterSession
from .models.auth import ROLES
from .money import format_cents
from .services.auth_service import create_user
from .validation import POSError


@click.group("system")
def system_group():
    """System bootstrap and repair commands."""


@system_group.command("init")
@click.option("--store", "store_name", default="Main Store", help="Default store name")
@with_appcontext
def init_system(store_name):
    """
    Initialize MiniPOS: tables, default store and default users.

    Creates:
    - All tables (no-op when they exist)
    - Default store
    - Users: admin, manager, cashier
    - All passwords default to: "Password123"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing MiniPOS...")
    db.create_all()

    store = db.session.query(Store).order_by(Store.id.asc()).first()
    if not store:
        store = Store(name=store_name, is_active=True)
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created default store: {store.name} (ID: {store.id})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    default_password = "Password123"
    for username in ROLES:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            create_user(username, default_password, role=username, store_id=store.id)
        except POSError as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{username}': {e}")
            continue
        click.echo(f"PASS Created user: {username} with role '{username}'")

    click.echo("\n" + "=" * 60)
    click.echo("DONE MiniPOS Initialized")
    click.echo("=" * 60)
    click.echo(f"\nStore: {store.name} (ID: {store.id})")
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for username in ROLES:
        click.echo(f"   {username:<9} -> {default_password}")
    click.echo("")


@system_group.command("reset-db")
@click.option("--yes", is_flag=True, help="Skip confirmation")
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


@click.group("users")
def users_group():
    """User management commands."""


@users_group.command("create")
@click.option("--username", prompt=True, help="Username")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Password")
@click.option("--role", type=click.Choice(list(ROLES)), prompt=True, help="Role")
@click.option("--email", default=None, help="Email address")
@click.option("--store-id", type=int, default=None, help="Home store ID")
@with_appcontext
def create_user_cli(username, password, role, email, store_id):
    """
    Create a new user.

    Password must be at least 8 characters with a letter and a digit.
    """
    if store_id is not None and not db.session.get(Store, store_id):
        click.echo(f"FAIL Store ID {store_id} not found")
        return

    try:
        user = create_user(username, password, role=role, email=email, store_id=store_id)
    except POSError as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


@click.group("registers")
def registers_group():
    """Register session inspection commands."""


@registers_group.command("sessions")
@click.option("--store-id", type=int, help="Filter by store ID")
@click.option("--status", type=click.Choice(["OPEN", "CLOSED"]), help="Filter by status")
@click.option("--limit", type=int, default=20, help="Max sessions to show")
@with_appcontext
def list_sessions_cli(store_id, status, limit):
    """
    List register sessions.

    Example:
        flask registers sessions
        flask registers sessions --store-id 1
        flask registers sessions --status OPEN
    """
    query = db.session.query(RegisterSession)

    if store_id:
        query = query.filter_by(store_id=store_id)

    if status:
        query = query.filter_by(status=status)

    sessions = query.order_by(RegisterSession.opened_at.desc()).limit(limit).all()

    if not sessions:
        click.echo("No sessions found.")
        return

    click.echo("\n" + "=" * 100)
    click.echo(f"{'ID':<5} {'Store':<20} {'User':<15} {'Status':<8} {'Opened':<20} {'Balance':<12}")
    click.echo("=" * 100)

    for session in sessions:
        store = db.session.get(Store, session.store_id)
        user = db.session.get(User, session.user_id)

        store_name = store.name if store else "Unknown"
        username = user.username if user else "Unknown"

        click.echo(f"{session.id:<5} {store_name[:20]:<20} {username:<15} {session.status:<8} "
                   f"{str(session.opened_at)[:19]:<20} {format_cents(session.balance_cents()):<12}")

    click.echo("=" * 100 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(registers_group)
