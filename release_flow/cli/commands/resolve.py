"""
Resolve command - Preview the next version of a pull request.
"""

import click

from release_flow import utils
from release_flow.cli import context
from release_flow.exceptions import ReleaseFlowError
from release_flow.pull_request import PullRequestEvent


@click.command()
@click.option('--event-path', envvar='GITHUB_EVENT_PATH', required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Event payload file (default: $GITHUB_EVENT_PATH)')
@click.option('--event-name', envvar='GITHUB_EVENT_NAME', default='pull_request',
              show_default=True, help='Triggering event (default: $GITHUB_EVENT_NAME)')
def resolve(event_path: str, event_name: str) -> None:
    """
    Compute the next version of a pull request without writing anything.

    Examples:
        release-flow resolve --event-path event.json
    """
    try:
        event = PullRequestEvent.from_file(event_name, event_path)
        result = context.build_manager().resolve(event)
    except ReleaseFlowError as err:
        raise click.ClickException(f"{err.context}: {err.message}")

    click.echo(f"{utils.Color.bold('Merge:')} {event.describe()}")
    click.echo(f"{utils.Color.bold('Base version:')} {result['base_version']}")
    if result['new_version']:
        click.echo(f"{utils.Color.bold('Next version:')} {utils.Color.green(result['new_version'])}")
    else:
        click.echo(utils.Color.blue('No version upgrade needed'))
