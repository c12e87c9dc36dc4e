"""
Fetch command for labelfixer.

Refreshes the issue snapshot from GitHub.
"""

import click

from ..cli_utils import handle_errors, make_fixer


@click.command('fetch')
@click.pass_context
@handle_errors
def fetch_handler(ctx: click.Context):
    """
    Fetch closed issues and their label timelines from GitHub.

    Replaces the snapshot file (snapshot.path in the config). Nothing is
    saved if any request fails.
    """
    fixer = make_fixer(ctx)
    issues = fixer.issues(refresh=True)
    labeled = sum(1 for issue in issues if issue.timeline)
    click.echo(
        f"Saved {len(issues)} issues ({labeled} with label events) "
        f"to {fixer.run_config.snapshot_path}"
    )
