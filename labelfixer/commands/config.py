import click
import json

from ..cli_utils import handle_errors, load_context_config
from ..config import get_config_path, get_default_config, redact_config, save_config
from ..domain import DEFAULT_RULES


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_context
@handle_errors
def show_config(ctx, pretty, path):
    """Show the current configuration with all merges applied.

    The GitHub token is masked.
    """
    if path:
        config_path = ctx.obj.get('config_path') or get_config_path()
        print(json.dumps({"config_path": str(config_path)}))
        return

    config = redact_config(load_context_config(ctx))

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
@handle_errors
def init_config(ctx, force):
    """Write a default configuration file with the built-in rules."""
    config_path = ctx.obj.get('config_path') or get_config_path()
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path} (use --force to overwrite)")
        return

    config = get_default_config()
    config["rules"] = [rule.to_dict() for rule in DEFAULT_RULES]
    written = save_config(config, config_path)
    click.echo(f"Configuration written to {written}")
