"""
Flask CLI commands for setting up a POS database.

Commands:
- flask init-db: Create missing tables
- flask create-operator: Create a business (optional) and an operator account
"""

import click
import re
from shoppos.database import get_session, init_schema
from shoppos.models import AppUser, Business


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        init_schema()
        click.echo(click.style('Database schema is up to date.', fg='green'))

    @app.cli.command('create-operator')
    @click.option('--email', prompt=True, help='Operator email address')
    @click.option('--full-name', prompt=True, help='Operator full name')
    @click.option('--business-id', type=int, default=None, help='Existing business ID')
    @click.option('--business-name', default=None, help='Create a new business with this name')
    @click.option('--role', type=click.Choice(['ADMIN', 'SALES']), default='SALES', show_default=True)
    def create_operator(email, full_name, business_id, business_name, role):
        """Create an operator account attached to a business."""
        db_session = get_session()

        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, email):
            click.echo(click.style('Invalid email. Use user@example.com format.', fg='red'))
            return

        if bool(business_id) == bool(business_name):
            click.echo(click.style('Pass exactly one of --business-id or --business-name.', fg='red'))
            return

        if db_session.query(AppUser).filter_by(email=email).first():
            click.echo(click.style(f'An operator with email {email} already exists.', fg='red'))
            return

        try:
            if business_name:
                business = Business(name=business_name.strip())
                db_session.add(business)
                db_session.flush()
            else:
                business = db_session.query(Business).filter_by(id=business_id).first()
                if not business:
                    click.echo(click.style(f'Business {business_id} not found.', fg='red'))
                    return

            user = AppUser(email=email, full_name=full_name.strip(), role=role, business_id=business.id)
            db_session.add(user)
            db_session.commit()

            click.echo(click.style('Operator created.', fg='green', bold=True))
            click.echo(f'   Business: {business.name} (ID {business.id})')
            click.echo(f'   Operator ID: {user.id}')

        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Error creating operator: {str(e)}', fg='red'))
