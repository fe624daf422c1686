# Overview: Flask CLI command groups for bootstrap, inspection, and seeding.

# backend/retail_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables (idempotent). Use `flask db upgrade` when running with migrations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --username admin --email admin@store.local --role manager
#   Create a user (prompts if options are omitted). This is how the first manager is made.
# - python -m flask users list
#   List all users with role and active status.
#
# Demo data:
# - python -m flask seed demo [--with-users]
#   Insert a handful of sample products (skips barcodes that already exist).

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import USER_ROLES, Product, User
from .services.auth_service import PasswordValidationError, create_user
from .services.products_service import create_product
from .validation import ConflictError

DEMO_PRODUCTS = [
    {"name": "Bottled Water 500ml", "barcode": "6001001000011", "cost_price": Decimal("0.40"),
     "selling_price": Decimal("1.00"), "stock_quantity": 120, "min_stock_level": 24, "category": "Beverages"},
    {"name": "Orange Juice 1L", "barcode": "6001001000028", "cost_price": Decimal("1.80"),
     "selling_price": Decimal("3.25"), "stock_quantity": 30, "min_stock_level": 10, "category": "Beverages"},
    {"name": "White Bread Loaf", "barcode": "6001001000035", "cost_price": Decimal("0.95"),
     "selling_price": Decimal("1.75"), "stock_quantity": 15, "min_stock_level": 20, "category": "Bakery"},
    {"name": "Cheddar Cheese 250g", "barcode": "6001001000042", "cost_price": Decimal("2.60"),
     "selling_price": Decimal("4.50"), "stock_quantity": 18, "min_stock_level": 5, "category": "Dairy"},
    {"name": "AA Batteries (4 pack)", "barcode": "6001001000059", "cost_price": Decimal("2.10"),
     "selling_price": Decimal("5.99"), "stock_quantity": 40, "min_stock_level": 8, "category": "Household"},
    {"name": "Notebook A5", "barcode": None, "cost_price": Decimal("0.70"),
     "selling_price": Decimal("1.50"), "stock_quantity": 0, "min_stock_level": 5, "category": "Stationery"},
]

DEMO_PASSWORD = "password123"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that don't exist yet."""
    click.echo("START Initializing Retail POS database...")
    db.create_all()
    click.echo("PASS Tables ready.")

    if db.session.query(User).filter(User.role == "manager").count() == 0:
        click.echo("\nNo manager account exists yet. Create one with:")
        click.echo("   python -m flask users create --role manager")


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

    click.echo("PASS Database reset complete. Run 'python -m flask users create' to add a manager.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, email, password, role):
    """Create a new, active user."""
    try:
        user = create_user(username=username, email=email, password=password, role=role)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except ConflictError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {active_str:<8} {user.role}")

    click.echo("="*80 + "\n")


@click.group('seed')
def seed_group():
    """Demo data for local development."""


@seed_group.command('demo')
@click.option('--with-users', is_flag=True, help=f"Also create 'manager' and 'cashier' (password: {DEMO_PASSWORD})")
@with_appcontext
def seed_demo(with_users):
    """Insert sample products, skipping any whose barcode already exists."""
    created = 0
    for data in DEMO_PRODUCTS:
        barcode = data["barcode"]
        if barcode is not None:
            exists = db.session.query(Product.id).filter(Product.barcode == barcode).first()
        else:
            exists = db.session.query(Product.id).filter(Product.name == data["name"]).first()
        if exists:
            click.echo(f"WARN  Product '{data['name']}' already exists, skipping...")
            continue

        create_product(patch=dict(data, description=None))
        created += 1

    click.echo(f"PASS Created {created} demo product(s)")

    if not with_users:
        return

    for role in USER_ROLES:
        if db.session.query(User.id).filter(User.username == role).first():
            click.echo(f"WARN  User '{role}' already exists, skipping...")
            continue
        create_user(username=role, email=f"{role}@store.local", password=DEMO_PASSWORD, role=role)
        click.echo(f"PASS Created user: {role} / {DEMO_PASSWORD}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(seed_group)
