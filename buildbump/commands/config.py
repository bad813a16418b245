import click
from buildbump.config import load_config, get_config_path
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--show-secrets", is_flag=True, help="Do not mask the registry password")
def show_config(pretty, show_secrets):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    """
    config = load_config()

    if not show_secrets and config.get("registry", {}).get("password"):
        config["registry"]["password"] = "********"

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("path")
def config_path():
    """Show the config file path being used."""
    print(json.dumps({"config_path": str(get_config_path())}))
