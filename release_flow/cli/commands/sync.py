"""
Sync command - Propagate a tagged version to the downstream branches.
"""

import click

from release_flow import utils
from release_flow.cli import context
from release_flow.exceptions import ReleaseFlowError


@click.command()
@click.argument('target_branch')
@click.argument('version')
@click.option('--event-name', envvar='GITHUB_EVENT_NAME', default='pull_request',
              show_default=True, help='Triggering event (default: $GITHUB_EVENT_NAME)')
@click.option('--head-commit-message', default=None,
              help='Head commit message of a push event, automation commits are skipped')
def sync(target_branch: str, version: str, event_name: str, head_commit_message: str) -> None:
    """
    Synchronize the branches downstream of TARGET_BRANCH with VERSION.

    Examples:
        # main was tagged v1.2.0: rebase beta, then merge into alpha
        release-flow sync main v1.2.0
    """
    try:
        results = context.build_manager().sync(target_branch, version, event_name, head_commit_message)
    except ReleaseFlowError as err:
        raise click.ClickException(f"{err.context}: {err.message}")

    if not results:
        click.echo(utils.Color.blue(f'{target_branch} has no downstream branch'))
        return
    failed = [result for result in results if not result.success]
    for result in results:
        if result.success:
            click.echo(f"✓ {utils.Color.green(f'Synchronized {result.version or version}')}")
    if failed:
        raise click.ClickException('; '.join(result.error for result in failed))
