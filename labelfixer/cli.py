#!/usr/bin/env python3

import click
from pathlib import Path

from labelfixer.commands.config import config_cmd
from labelfixer.commands.fetch import fetch_handler
from labelfixer.commands.plan import plan_handler
from labelfixer.commands.rules import rules_handler
from labelfixer.commands.run import run_handler


@click.group()
@click.version_option(package_name='labelfixer')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Config file (default: $LABELFIXER_CONFIG or ~/.labelfixer/config.yaml)')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """labelfixer - Consolidate GitHub issue labels from their label history.

    Replays the label timeline of every closed issue, matches the labels it
    carried against a rule table, and applies one consolidated priority label.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['verbose'] = verbose


cli.add_command(fetch_handler, name='fetch')
cli.add_command(plan_handler, name='plan')
cli.add_command(run_handler, name='run')
cli.add_command(rules_handler, name='rules')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
