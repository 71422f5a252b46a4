"""
Main CLI module - Creates and configures the CLI group
"""

import logging

import click

from release_flow import __version__
from .commands import ALL_COMMANDS

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'


def create_cli_group():
    """
    Creates and returns the CLI group with every command.

    Returns:
        click.Group: Configured CLI group
    """

    @click.group()
    @click.version_option(__version__, prog_name='release-flow')
    @click.option('--verbose', '-v', is_flag=True, help='Show debug logs (git commands, API calls)')
    def cli(verbose):
        """release-flow - Branch based semantic versioning for pull requests"""
        logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)

    for cmd_name, command in ALL_COMMANDS.items():
        cli.add_command(command, cmd_name)

    return cli


main = create_cli_group()
