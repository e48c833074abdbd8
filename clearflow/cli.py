"""
Flask CLI commands
"""

import click
from flask import Flask
from clearflow.seed import seed_departments
from clearflow.services import StatisticsService


def register_commands(app: Flask) -> None:
    """Attach the maintenance commands to app.cli"""

    @app.cli.command('seed-departments')
    def seed_departments_command():
        """Insert the default clearance departments."""
        created = seed_departments()
        click.echo(f"Created {created} departments")

    @app.cli.command('recompute-statistics')
    def recompute_statistics_command():
        """Refresh the cached statistics of every department."""
        refreshed = StatisticsService.recompute_all_statistics()
        click.echo(f"Refreshed statistics for {refreshed} departments")
