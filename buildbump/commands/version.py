"""
Version commands for buildbump.

Read-only commands that never start a build:
- classify: what a commit message does to the version
- resolve: the current version from registry tags
- next: the version a commit would be released as
"""

import click
from rich.console import Console

from ..cli_utils import handle_errors, add_common_options
from ..config import load_config
from ..domain.commit import classify, parse_header
from ..domain.outcome import NOT_RELEASE_TRIGGERING
from ..infra.registry_client import RegistryClient
from ..output import emit
from ..services.orchestrator import Orchestrator
from ..version_manager import parse_tags, resolve

console = Console()


def collect_tags(tags, application):
    """Tags given on the command line, or fetched from the configured registry."""
    if tags:
        return list(tags)
    if not application:
        return []
    return RegistryClient.from_config(load_config()).list_tags(application)


@click.command('classify')
@click.argument('message')
@add_common_options('json')
@handle_errors
def classify_cmd(message, json_output):
    """Classify a commit MESSAGE as none, patch, minor or major.

    Examples:

    \b
        buildbump classify "feat(api): add hello endpoint"
        buildbump classify "$(git log -1 --format=%B)"
    """
    classification = classify(message)
    header = parse_header(message)
    result = {
        'classification': classification.value,
        'release': classification.is_release,
        'type': header.type if header else None,
        'scope': header.scope if header else None,
    }
    if json_output:
        emit([result])
    else:
        style = "green" if classification.is_release else "yellow"
        console.print(f"[{style}]{classification.value}[/{style}]")


@click.command('resolve')
@click.argument('tags', nargs=-1)
@add_common_options('app', 'json')
@click.option('--show-discarded', is_flag=True, help='Also list tags that are not release versions')
@handle_errors
def resolve_cmd(tags, application, json_output, show_discarded):
    """Resolve the current version from TAGS or from the registry.

    Tags are compared numerically, so v1.10.0 is newer than v1.9.0.
    Prints v0.0.0 when no release tag exists.

    Examples:

    \b
        buildbump resolve v1.9.0 v1.10.0 latest
        buildbump resolve --app app-example --show-discarded
    """
    raw_tags = collect_tags(tags, application)
    current = resolve(raw_tags)

    if not show_discarded and not json_output:
        console.print(current.format())
        return

    items = [{'type': 'current', **current.to_dict()}]
    if show_discarded:
        items.extend(
            {'type': 'discarded', 'raw': c.raw}
            for c in parse_tags(raw_tags) if not c.is_release
        )
    emit(items, pretty=not json_output, columns=None if json_output else ['type', 'tag', 'raw'])


@click.command('next')
@click.argument('message')
@add_common_options('tag', 'app', 'json')
@handle_errors
def next_cmd(message, tags, application, json_output):
    """Show the version a commit MESSAGE would be released as.

    Nothing is built. The registry is only queried for release-triggering
    commits.

    Examples:

    \b
        buildbump next "fix: handle empty body" -t v1.0.0
        buildbump next "feat!: drop v1 api" --app app-example
    """
    registry = None
    if application and not tags:
        registry = RegistryClient.from_config(load_config())
    planner = Orchestrator(None, registry=registry)
    classification, current, new_version = planner.plan(
        message, list(tags) if tags else None, application=application,
    )

    if new_version is None:
        result = {'type': 'skipped', 'classification': classification.value,
                  'reason': NOT_RELEASE_TRIGGERING}
    else:
        result = {
            'type': 'next',
            'classification': classification.value,
            'previous_version': current.format(),
            'version': new_version.format(),
        }
    emit([result], pretty=not json_output)

