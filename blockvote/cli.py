# blockvote/cli.py

# Maintenance commands, run as `flask --app blockvote create-admin ...`

import click
from flask import current_app

from blockvote.database.snapshot import dump_state, load_state


def _services():
    return current_app.extensions['blockvote']


def register_commands(app):
    @app.cli.command('create-admin')
    @click.option('--email', default=None, help='Admin email (defaults to BOOTSTRAP_ADMIN_EMAIL).')
    @click.option('--name', default='System Administrator')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option('--reset', is_flag=True, help='Overwrite the password of an existing admin.')
    def create_admin(email, name, password, reset):
        """Create (or reset) an administrator account."""
        email = email or current_app.config['BOOTSTRAP_ADMIN_EMAIL']
        auth = _services().auth
        admin = auth.reset_admin(email, password, name) if reset else auth.bootstrap_admin(email, password, name)
        click.echo(f"Admin ready: {admin.email} ({admin.id})")

    @app.cli.command('export-state')
    @click.argument('path', type=click.Path(dir_okay=False, writable=True))
    def export_state_command(path):
        """Write users, elections and votes to a JSON snapshot."""
        dump_state(_services().repository, path)
        click.echo(f"State exported to {path}")

    @app.cli.command('import-state')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def import_state_command(path):
        """Load a JSON snapshot into the configured store."""
        counts = load_state(_services().repository, path)
        click.echo(
            f"Imported {counts['users']} users, {counts['elections']} elections, {counts['votes']} votes"
        )

    @app.cli.command('clear-data')
    @click.confirmation_option(prompt='Delete all users, elections and votes?')
    def clear_data():
        """Remove every record from the configured store."""
        _services().repository.clear()
        click.echo("All voting system data cleared")
