"""
Flask CLI commands for database setup and numbering.

Commands:
- flask init-db: Create the tables and the company settings row
- flask set-start-number: Configure the first invoice number of a year
"""

import click
from flask import current_app
from invoicing import database
from invoicing.exceptions import InvoicingError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables and the default company settings."""
        from invoicing.services.settings_service import get_company_settings

        database.create_all()
        db_session = database.get_session()
        try:
            get_company_settings(db_session, current_app.config.get('DEFAULT_PAYMENT_DAYS'))
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Error initializing the database: {e}', fg='red'))
            raise click.Abort()

        click.echo(click.style('Database initialized.', fg='green', bold=True))

    @app.cli.command('set-start-number')
    @click.option('--year', type=int, required=True, help='Calendar year, e.g. 2025')
    @click.option('--start', 'start_number', type=int, required=True, help='First invoice number of the year')
    def set_start_number_command(year, start_number):
        """Set the invoice start number of a year (RE-YYYY-NNN)."""
        from invoicing.services.settings_service import set_year_start_number

        try:
            entry = set_year_start_number(database.get_session(), year, start_number)
        except InvoicingError as e:
            click.echo(click.style(f'{e.message}', fg='red'))
            raise click.Abort()

        click.echo(click.style(f'Invoices of {entry.year} start at {entry.start_number}.', fg='green'))
