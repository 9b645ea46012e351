"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask seed-demo: Insert a demo seller, buyer, addresses and products
"""

from decimal import Decimal

import click

from marketplace_checkout.database import get_database, unit_of_work
from marketplace_checkout.models import AddressType, AppUser, Product, UserAddress


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables first')
    def init_db_command(drop):
        """Create database tables."""
        database = get_database()
        if drop:
            database.drop_all()
            click.echo(click.style('Dropped all tables.', fg='yellow'))
        database.create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('seed-demo')
    def seed_demo_command():
        """Insert demo data for local development."""
        session = get_database().new_session()
        try:
            if session.query(AppUser).filter_by(username='demo-seller').first():
                click.echo(click.style('Demo data already present.', fg='yellow'))
                return

            with unit_of_work(session):
                seller = AppUser(username='demo-seller', email='seller@example.com')
                buyer = AppUser(username='demo-buyer', email='buyer@example.com')
                session.add_all([seller, buyer])
                session.flush()

                session.add_all([
                    UserAddress(user_id=buyer.id, address_type=AddressType.SHIPPING.value,
                                line1='1 Market St', city='Springfield', postal_code='00001'),
                    UserAddress(user_id=buyer.id, address_type=AddressType.BILLING.value,
                                line1='1 Market St', city='Springfield', postal_code='00001'),
                    Product(seller_id=seller.id, name='Vintage Camera', sku='CAM-001',
                            price=Decimal('120.00'), quantity=3),
                    Product(seller_id=seller.id, name='Film Roll', sku='FILM-035',
                            price=Decimal('9.50'), quantity=40),
                ])

            click.echo(click.style(f'Seeded buyer #{buyer.id} and seller #{seller.id}.', fg='green'))
        finally:
            session.close()
