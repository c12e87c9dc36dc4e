"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Dict, Iterable

from .api import LabelFixer
from .config import configure_logging, load_config
from .exit_codes import (
    INTERRUPTED,
    get_exit_code_for_exception, CommandError
)


def handle_errors(func):
    """
    Decorator that provides consistent error handling:
    - CommandError subclasses exit with their own exit code
    - Ctrl+C exits with INTERRUPTED
    - Anything else is reported and mapped by exception type
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(e.exit_code)
        except Exception as e:
            click.echo(f"Command failed: {e}", err=True)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def load_context_config(ctx: click.Context) -> Dict[str, Any]:
    """Load the config for the --config path stored on the click context."""
    obj = ctx.ensure_object(dict)
    if 'config' not in obj:
        config = load_config(obj.get('config_path'))
        configure_logging(config, verbose=obj.get('verbose', False))
        obj['config'] = config
    return obj['config']


def make_fixer(ctx: click.Context, **overrides: Any) -> LabelFixer:
    """Build a LabelFixer from the context config, dropping unset overrides."""
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return LabelFixer(config=load_context_config(ctx), **overrides)


def output_jsonl(items: Iterable[Dict[str, Any]]) -> None:
    """Print dicts as JSONL."""
    for item in items:
        print(json.dumps(item, ensure_ascii=False), flush=True)


# Standard options that several commands share
common_options = {
    'refresh': click.option('--refresh', is_flag=True,
                            help='Fetch a fresh snapshot from GitHub even if one exists'),
    'remove_old': click.option('--remove-old/--keep-old', 'remove_old', default=None,
                               help='Also remove the old labels a winning rule consumed'),
    'json': click.option('--json', 'output_json', is_flag=True,
                         help='Output as JSONL (default: pretty table)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('refresh', 'json')
        def my_command(refresh, output_json):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
