# Overview: Flask CLI command groups for bootstrap, tenant registration, and inspection.

# backend/znpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (safe to re-run).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Business (tenant) management:
# - python -m flask businesses list
#   List all businesses with user and product counts.
# - python -m flask businesses register --name "Corner Shop" --email shop@example.com --username owner
#   Register a business and its admin user (prompts for the password).
#
# User inspection:
# - python -m flask users list [--business-id 1]
#   List users with role and active status.

import click
from flask.cli import with_appcontext

from .decorators import get_storage
from .errors import PosError
from .extensions import db
from .models import Business, Product, User


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask businesses register' to add a tenant.")


# =============================================================================
# BUSINESSES
# =============================================================================

@click.group('businesses')
def businesses_group():
    """Business (tenant) management commands."""


@businesses_group.command('list')
@with_appcontext
def list_businesses():
    """List all businesses."""
    businesses = db.session.query(Business).order_by(Business.id.asc()).all()

    if not businesses:
        click.echo("No businesses found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Email':<30} {'Users':<6} {'Products'}")
    click.echo("="*80)

    for business in businesses:
        user_count = db.session.query(User).filter_by(business_id=business.id).count()
        product_count = db.session.query(Product).filter_by(business_id=business.id).count()
        click.echo(f"{business.id:<5} {business.name:<30} {business.email:<30} {user_count:<6} {product_count}")

    click.echo("="*80 + "\n")


@businesses_group.command('register')
@click.option('--name', required=True, help='Business name')
@click.option('--email', required=True, help='Business email')
@click.option('--tax-rate', default='0.0825', show_default=True, help='Tax rate as a fraction')
@click.option('--currency', default='BDT', show_default=True, help='Currency code')
@click.option('--username', prompt=True, help='Admin username')
@click.option('--admin-email', prompt=True, help='Admin email address')
@click.option('--first-name', prompt=True, help='Admin first name')
@click.option('--last-name', prompt=True, help='Admin last name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
@with_appcontext
def register_business_cli(name, email, tax_rate, currency, username, admin_email, first_name, last_name, password):
    """Register a business together with its admin user."""
    try:
        business, user = get_storage().register_business(
            {"name": name, "email": email, "tax_rate": tax_rate, "currency": currency},
            {
                "username": username,
                "email": admin_email,
                "first_name": first_name,
                "last_name": last_name,
                "password": password,
            },
        )
    except PosError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created business: {business['name']} (ID: {business['id']})")
    click.echo(f"PASS Created admin user: {user['username']} (ID: {user['id']})")


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@click.option('--business-id', type=int, help='Filter by business ID')
@with_appcontext
def list_users(business_id):
    """List users with their roles."""
    query = db.session.query(User)

    if business_id:
        query = query.filter_by(business_id=business_id)

    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Biz':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.business_id:<5} {user.username:<20} {user.email:<30} {active_str:<8} {user.role}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(businesses_group)
    app.cli.add_command(users_group)
