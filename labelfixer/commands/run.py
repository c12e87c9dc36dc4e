"""
Run command for labelfixer.

Builds the plan and applies it, one issue at a time. Dry run unless
--apply is given or the config sets run.dry_run to false.
"""

import click

from ..cli_utils import add_common_options, handle_errors, make_fixer, output_jsonl
from ..domain import RunSummary
from ..exit_codes import PartialSuccessError


def render_summary(summary: RunSummary) -> None:
    """Display the end-of-run counts."""
    from rich.console import Console

    console = Console()
    mode = "[yellow]DRY RUN[/yellow] " if summary.dry_run else ""
    console.print(
        f"{mode}[bold]Matched:[/bold] {summary.matched}  "
        f"[bold]Unmatched:[/bold] {summary.unmatched}  "
        f"[bold]Mutated:[/bold] {summary.mutated}  "
        f"[bold]Up to date:[/bold] {summary.skipped}  "
        f"[bold]Failed:[/bold] {summary.failed}"
    )
    for error in summary.errors:
        console.print(f"[red]✗ {error}[/red]")


@click.command('run')
@click.option('--apply/--dry-run', 'apply_changes', default=None,
              help='Apply label changes on GitHub (default: config run.dry_run)')
@add_common_options('refresh', 'remove_old', 'json')
@click.pass_context
@handle_errors
def run_handler(ctx: click.Context, apply_changes, refresh: bool, remove_old, output_json: bool):
    """
    Plan and apply label consolidation.

    Each matched issue gets its rule's consolidated label. Issues are
    updated sequentially; a failure on one issue does not stop the rest.

    \b
    Examples:
        # Preview (dry run)
        labelfixer run
        # Apply to GitHub
        labelfixer run --apply
        # Apply and drop the old labels
        labelfixer run --apply --remove-old
    """
    dry_run = None if apply_changes is None else not apply_changes
    fixer = make_fixer(ctx, dry_run=dry_run, remove_superseded=remove_old)

    runner = fixer.run(refresh=refresh)
    while True:
        try:
            message = next(runner)
        except StopIteration as stop:
            summary = stop.value
            break
        if not output_json:
            click.echo(message, err=True)

    if output_json:
        output_jsonl(detail.to_dict() for detail in summary.details)
        output_jsonl([summary.to_dict()])
    else:
        render_summary(summary)

    if not summary.success:
        raise PartialSuccessError(
            f"{summary.failed} issue(s) failed",
            succeeded=summary.mutated + summary.skipped,
            failed=summary.failed,
        )
