# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/tillpoint/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to tillpoint (PowerShell: $env:FLASK_APP="tillpoint").
# - Use: python -m flask <group> <command> [options]
#
# Store bootstrap/repair:
# - python -m flask store init
#   Idempotent: creates tables and seeds any collection that has no snapshot.
# - python -m flask store reset --yes
#   DEV/TEST only: drop and recreate all tables, then reseed (deletes all data).
# - python -m flask store show products|sales|users
#   Print a persisted collection.
# - python -m flask store retry-pending
#   Persist sales that were applied in memory but failed to save.
#
# User inspection:
# - python -m flask users list
# - python -m flask users set-password cashier1
#   Replace a user's password (prompts, with confirmation).

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .core import get_core
from .extensions import db
from .services import auth_service
from .services.auth_service import PasswordValidationError
from .services.errors import PersistenceFailure
from .services.persistence_service import COLLECTIONS, USERS


@click.group('store')
def store_group():
    """Snapshot store bootstrap and repair commands."""


@store_group.command('init')
@with_appcontext
def init_store():
    """Create tables and seed default products, empty sales, and default users."""
    click.echo("START Initializing store...")
    seeded = get_core().init(bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"])
    if seeded:
        click.echo(f"PASS Seeded: {', '.join(seeded)}")
    else:
        click.echo("PASS All collections already present")


@store_group.command('reset')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_store(yes):
    """
    DANGER: Drop all tables, recreate schema and reseed defaults.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables and seeding defaults...")
    get_core().init(bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"])

    click.echo("PASS Store reset complete.")


@store_group.command('show')
@click.argument('collection', type=click.Choice(COLLECTIONS))
@with_appcontext
def show_collection(collection):
    """Print a persisted collection as JSON (password hashes omitted)."""
    records = get_core().store.load(collection)
    if records is None:
        click.echo(f"WARN No snapshot for {collection}. Run 'python -m flask store init'.")
        return
    if collection == USERS:
        records = [{k: v for k, v in r.items() if k != "passwordHash"} for r in records]
    click.echo(json.dumps(records, indent=2))


@store_group.command('retry-pending')
@with_appcontext
def retry_pending():
    """Retry persistence for sales applied in memory but not yet saved."""
    finalizer = get_core().finalizer
    pending = finalizer.pending()
    if not pending:
        click.echo("PASS Nothing pending")
        return
    for sale_id in pending:
        try:
            finalizer.retry_persist(sale_id)
            click.echo(f"PASS Persisted {sale_id}")
        except PersistenceFailure as e:
            raise click.ClickException(f"FAIL {sale_id}: {e}")


@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List users from the users collection."""
    users = auth_service.load_users(get_core().store)
    click.echo("\n" + "=" * 60)
    click.echo(f"{'ID':<15} {'Username':<25} {'Role'}")
    click.echo("=" * 60)
    for user in users:
        click.echo(f"{user.id:<15} {user.username:<25} {user.role}")
    click.echo("=" * 60 + "\n")


@users_group.command('set-password')
@click.argument('username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def set_password_cli(username, password):
    """Replace a user's password hash."""
    try:
        auth_service.set_password(
            get_core().store, username, password, rounds=current_app.config["BCRYPT_ROUNDS"]
        )
    except PasswordValidationError as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Password updated for {username}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(users_group)
