"""
Plan command for labelfixer.

Shows which closed issues would get which consolidated label, without
touching GitHub labels.
"""

import click

from ..cli_utils import add_common_options, handle_errors, make_fixer, output_jsonl
from ..domain import PlanResult


def render_plan(plan: PlanResult, title: str = "Label plan") -> None:
    """Display a plan as a formatted table."""
    from rich.console import Console
    from rich.table import Table
    from rich import box

    console = Console()

    if plan.entries:
        table = Table(
            title=f"{title} ({plan.matched} issues)",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )

        table.add_column("Issue", style="cyan", justify="right")
        table.add_column("New label", style="green")
        table.add_column("Priority", justify="right")
        table.add_column("Matched old labels")
        table.add_column("Action")

        for entry in plan.entries:
            if entry.converged:
                action = "[dim]up to date[/dim]"
            else:
                action = ", ".join(
                    [f"+{label}" for label in entry.labels_to_add]
                    + [f"-{label}" for label in entry.labels_to_remove]
                )
            table.add_row(
                f"#{entry.issue_number}",
                entry.winning_rule.result_label,
                str(entry.winning_rule.priority),
                ", ".join(sorted(entry.winning_rule.required_old_labels)),
                action,
            )

        console.print(table)
    else:
        console.print("[yellow]No issues match any consolidation rule.[/yellow]")

    for failure in plan.failures:
        console.print(f"[red]✗ #{failure.issue_number}: {failure.error}[/red]")

    console.print(
        f"[bold]Matched:[/bold] {plan.matched}  "
        f"[bold]Unmatched:[/bold] {plan.unmatched}  "
        f"[bold]Failed:[/bold] {len(plan.failures)}"
    )


@click.command('plan')
@add_common_options('refresh', 'remove_old', 'json')
@click.pass_context
@handle_errors
def plan_handler(ctx: click.Context, refresh: bool, remove_old, output_json: bool):
    """
    Show the label consolidation plan.

    Replays each closed issue's label timeline, matches it against the
    rule table and lists the label each issue would receive.

    \b
    Examples:
        # Plan from the cached snapshot (fetched on first use)
        labelfixer plan
        # Re-fetch issues first
        labelfixer plan --refresh
        # JSONL output for piping
        labelfixer plan --json | jq '.label'
    """
    fixer = make_fixer(ctx, remove_superseded=remove_old)
    plan = fixer.plan(refresh=refresh)

    if output_json:
        output_jsonl(entry.to_dict() for entry in plan.entries)
        output_jsonl(failure.to_dict() for failure in plan.failures)
        output_jsonl([plan.to_dict()])
    else:
        render_plan(plan)
