#!/usr/bin/env python3

import click

from buildbump.config import load_config, configure_logging
from buildbump.commands.version import classify_cmd, resolve_cmd, next_cmd
from buildbump.commands.build import run_cmd, event_cmd
from buildbump.commands.config import config_cmd


@click.group()
@click.version_option(package_name="buildbump")
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """buildbump - Conventional-commit versioning and image builds.

    Decides from a commit message whether an application gets a new
    release, computes the next version from the tags already in the
    image registry, and runs the build to completion.
    """
    configure_logging(load_config(), verbose=verbose)


# Version commands (read-only)
cli.add_command(classify_cmd, name='classify')
cli.add_command(resolve_cmd, name='resolve')
cli.add_command(next_cmd, name='next')

# Build commands
cli.add_command(run_cmd, name='run')
cli.add_command(event_cmd, name='event')

# Command groups
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
