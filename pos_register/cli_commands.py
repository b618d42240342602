"""
Flask CLI commands for register maintenance.

Commands:
- flask load-pricebook [PATH]: Replace the product table from a TSV pricebook
- flask list-suspended: Show suspended transactions that can be resumed
- flask history: Show transaction history
"""

import click
from flask import current_app

from pos_register.database import get_session
from pos_register.exceptions import RegisterError
from pos_register.services.catalog_service import parse_pricebook
from pos_register.services.persistence_gateway import TransactionGateway


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('load-pricebook')
    @click.argument('path', required=False)
    def load_pricebook(path):
        """Load products from a tab-separated pricebook (code, name, price)."""
        path = path or current_app.config['PRICEBOOK_PATH']
        try:
            products = parse_pricebook(path)
        except OSError as e:
            click.echo(click.style(f'Could not read pricebook {path}: {e}', fg='red'))
            raise SystemExit(1)

        try:
            count = TransactionGateway(get_session()).load_pricebook(products)
        except RegisterError as e:
            click.echo(click.style(f'Error loading pricebook: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'Loaded {count} products from {path}', fg='green'))

    @app.cli.command('list-suspended')
    def list_suspended():
        """List suspended transactions, newest first."""
        gateway = TransactionGateway(get_session())
        ids = gateway.list_suspended()
        if not ids:
            click.echo('No suspended transactions available')
            return
        for transaction_id in ids:
            trans = gateway.get_transaction(transaction_id)
            click.echo(f"Transaction #{trans['id']} - ${trans['total']:,.2f} - {trans['date']:%m/%d/%Y %H:%M}")

    @app.cli.command('history')
    @click.option('--include-voided/--exclude-voided', default=True, help='Show voided transactions')
    @click.option('--include-suspended/--exclude-suspended', default=True, help='Show suspended transactions')
    def history(include_voided, include_suspended):
        """Show transaction history, newest first."""
        rows = TransactionGateway(get_session()).transaction_history(include_voided, include_suspended)
        for trans in rows:
            payment = trans['payment_type'] or '-'
            click.echo(
                f"#{trans['id']:<6} {trans['status']:<10} {payment:<8} "
                f"subtotal ${trans['subtotal']:,.2f}  tax ${trans['tax']:,.2f}  total ${trans['total']:,.2f}"
            )
        click.echo(f'{len(rows)} transaction(s)')
