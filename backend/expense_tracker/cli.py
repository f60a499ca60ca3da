# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/expense_tracker/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to expense_tracker (PowerShell: $env:FLASK_APP="expense_tracker").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for migrated deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email me@mail.com --password "correct horse battery"
# - python -m flask users list
# - python -m flask users delete 3 --yes
#   Deletes the user and, through the cascade, every record they own.
#
# Sessions:
# - python -m flask sessions purge
#   Delete expired sessions.
#
# Recurring expenses:
# - python -m flask recurring run
#   Run one materializer tick now (same work as the scheduled job).

import click
from flask import current_app
from flask.cli import with_appcontext

from .decorators import session_manager
from .errors import ServiceError
from .extensions import db
from .services import auth_service
from .services.recurring_service import RecurringExpenseMaterializer
from .time_utils import to_utc_z, utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db_command():
    """Create any missing tables."""
    db.create_all()
    click.echo("Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset.')
@with_appcontext
def reset_db_command(yes):
    """Drop and recreate all tables."""
    if not yes:
        raise click.UsageError("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_command(email, password):
    """Register a user from the shell."""
    try:
        user = auth_service.register_user(db.session, email, password)
    except ServiceError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"Created user {user.id} <{user.email}>")


@users_group.command('list')
@with_appcontext
def list_users_command():
    """List all users."""
    users = auth_service.list_users(db.session)
    if not users:
        click.echo("No users.")
        return
    for user in users:
        click.echo(f"{user.id}\t{user.email}\t{to_utc_z(user.created_at)}")


@users_group.command('delete')
@click.argument('user_id', type=int)
@click.option('--yes', is_flag=True, help='Confirm deletion.')
@with_appcontext
def delete_user_command(user_id, yes):
    """Delete a user and everything they own."""
    if not yes:
        raise click.UsageError("Refusing to delete without --yes")
    if not auth_service.delete_user(db.session, user_id):
        raise click.ClickException(f"User {user_id} not found")
    click.echo(f"Deleted user {user_id}")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('purge')
@with_appcontext
def purge_sessions_command():
    """Delete every expired session."""
    deleted = session_manager().purge_expired()
    click.echo(f"Deleted {deleted} expired session(s).")


@click.group('recurring')
def recurring_group():
    """Recurring expense commands."""


@recurring_group.command('run')
@with_appcontext
def run_recurring_command():
    """Materialize every due recurring expense once."""
    clock = current_app.config.get("CLOCK") or utcnow
    result = RecurringExpenseMaterializer(db.session, clock=clock).run_once()
    click.echo(f"Materialized {len(result.processed)} recurring expense(s), {len(result.failed)} failed.")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(recurring_group)
