"""
Rules command for labelfixer.
"""

import click

from ..cli_utils import add_common_options, handle_errors, make_fixer, output_jsonl


@click.command('rules')
@add_common_options('json')
@click.pass_context
@handle_errors
def rules_handler(ctx: click.Context, output_json: bool):
    """
    List the consolidation rules in declaration order.

    Rules come from the 'rules' config section, or the built-in defaults.
    """
    from rich.console import Console
    from rich.table import Table
    from rich import box

    rules = make_fixer(ctx).rules

    if output_json:
        output_jsonl(rule.to_dict() for rule in rules)
        return

    table = Table(
        title=f"Rules ({len(rules)})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Old labels (all required)")
    table.add_column("New label", style="green")
    table.add_column("Priority", justify="right")

    for index, rule in enumerate(rules, start=1):
        table.add_row(
            str(index),
            ", ".join(sorted(rule.required_old_labels)),
            rule.result_label,
            str(rule.priority),
        )

    Console().print(table)
