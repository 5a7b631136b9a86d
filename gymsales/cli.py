# CLI commands for gymsales.
#
# Usage (from the repository root):
# - python -m flask --app gymsales gym init-db
#   Create all tables in the configured database.
# - python -m flask --app gymsales gym seed-demo --gym "Demo Gym"
#   Create a gym with a tracked product, a service, a payment method and a client.
# - python -m flask --app gymsales gym low-stock --gym-id 1 --threshold 5
#   List tracked products at or below the threshold.

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .extensions import db
from .models import Gym, ProductCategory, Product, PaymentMethod, Client
from .services.stock_service import get_low_stock_products


@click.group('gym')
def gym_group():
    """Gym sales bootstrap and inspection commands."""


@gym_group.command('init-db')
@with_appcontext
def init_db():
    """Create database tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@gym_group.command('seed-demo')
@click.option('--gym', 'gym_name', default='Demo Gym', help='Gym name')
@with_appcontext
def seed_demo(gym_name):
    """Seed one gym with a small catalog for manual testing."""
    gym = Gym(name=gym_name)
    db.session.add(gym)
    db.session.flush()

    drinks = ProductCategory(gym_id=gym.id, name="Drinks", color="#1E88E5")
    db.session.add(drinks)
    db.session.flush()

    water = Product(
        gym_id=gym.id,
        category_id=drinks.id,
        name="Water 500ml",
        price=Decimal("5.00"),
        stock=10,
        track_inventory="simple",
    )
    towel = Product(
        gym_id=gym.id,
        name="Towel rental",
        price=Decimal("2.50"),
        stock=None,
        track_inventory="none",
    )
    cash = PaymentMethod(gym_id=gym.id, name="Cash", code="cash")
    client = Client(gym_id=gym.id, client_number="C-0001", name="Demo Client")
    db.session.add_all([water, towel, cash, client])
    db.session.commit()

    click.echo(f"PASS Created gym: {gym.name} (ID: {gym.id})")
    click.echo(f"PASS Products: {water.name} (ID: {water.id}, stock {water.stock}), {towel.name} (ID: {towel.id})")
    click.echo(f"PASS Payment method: {cash.name} (ID: {cash.id})")
    click.echo(f"PASS Client: {client.name} (ID: {client.id})")


@gym_group.command('low-stock')
@click.option('--gym-id', type=int, required=True, help='Gym ID')
@click.option('--threshold', type=int, default=10, show_default=True, help='Stock threshold')
@with_appcontext
def low_stock(gym_id, threshold):
    """List tracked products at or below the stock threshold."""
    products = get_low_stock_products(gym_id, threshold)
    if not products:
        click.echo("No products at or below threshold.")
        return

    click.echo(f"{'ID':<6} {'Name':<30} {'Stock':<6}")
    for product in products:
        click.echo(f"{product.id:<6} {product.name:<30} {product.stock:<6}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(gym_group)
