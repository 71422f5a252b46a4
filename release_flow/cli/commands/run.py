"""
Run command - Full version automation for a pull request event.

Preview mode while the pull request is open, execution mode (version
commit, tag, push and downstream synchronization) once it is merged.
"""

import click

from release_flow import utils
from release_flow.cli import context
from release_flow.exceptions import ReleaseFlowError
from release_flow.pull_request import read_payload


@click.command()
@click.option('--event-path', envvar='GITHUB_EVENT_PATH', required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Event payload file (default: $GITHUB_EVENT_PATH)')
@click.option('--event-name', envvar='GITHUB_EVENT_NAME', default='pull_request',
              show_default=True, help='Triggering event (default: $GITHUB_EVENT_NAME)')
def run(event_path: str, event_name: str) -> None:
    """
    Resolve the next version and, for a merged pull request, record it.

    Errors are commented on the pull request when a GitHub token is
    available, and the command exits with a non-zero status.

    Examples:
        # In a workflow triggered by pull_request
        release-flow run
    """
    try:
        result = context.build_manager().run(event_name, read_payload(event_path))
    except ReleaseFlowError as err:
        raise click.ClickException(f"{err.context}: {err.message}")

    new_version = result['new_version'] or 'none'
    if result['preview']:
        click.echo(f"🔍 {utils.Color.bold('Preview version:')} {new_version}")
        return
    click.echo(f"✓ {utils.Color.green(f'Version: {new_version}')}")
    for sync_result in result['sync_results']:
        if sync_result.success:
            click.echo(f"✓ {utils.Color.green('Synchronized')}")
        else:
            click.echo(f"⚠ {utils.Color.red(sync_result.error)}")
