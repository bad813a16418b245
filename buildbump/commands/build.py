"""
Build commands for buildbump.

- run: handle one change event given on the command line
- event: handle one change event read from a JSON file (or stdin)

Exit codes: 0 when the commit is skipped or the build succeeds,
BUILD_FAILED / BUILD_TIMED_OUT otherwise.
"""

import json
import sys

import click
from rich.console import Console
from rich.panel import Panel

from ..cli_utils import handle_errors, add_common_options
from ..config import load_config
from ..domain.event import ChangeEvent
from ..exit_codes import BUILD_FAILED, BUILD_TIMED_OUT, SUCCESS, ConfigError, PreconditionError
from ..infra.job_client import DEFAULT_BUILDER_IMAGE, KubernetesJobClient
from ..infra.registry_client import RegistryClient
from ..output import emit
from ..services.build_supervisor import BuildSupervisor
from ..services.orchestrator import Orchestrator

console = Console()


def _seconds(build, key, default):
    value = build.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"build.{key} must be a number of seconds, got {value!r}") from e


def build_orchestrator(config, interval=None, timeout=None):
    """Wire the orchestrator to the configured registry and Kubernetes."""
    build = config.get('build', {})
    registry = RegistryClient.from_config(config)

    jobs = KubernetesJobClient(
        git_url=build.get('git_url', ''),
        image_reference=registry.image_reference,
        namespace=build.get('namespace', 'build'),
        kubectl=build.get('kubectl', 'kubectl'),
        builder_image=build.get('builder_image') or DEFAULT_BUILDER_IMAGE,
        backoff_limit=build.get('backoff_limit', 0),
        git_branch=build.get('git_branch') or 'main',
    )
    supervisor = BuildSupervisor(
        jobs,
        poll_interval=interval if interval is not None else _seconds(build, 'poll_interval_seconds', 5),
        timeout=timeout if timeout is not None else _seconds(build, 'timeout_seconds', 300),
    )
    return Orchestrator(supervisor, registry=registry)


def report(outcome, json_output):
    """Print an outcome and return the exit code it maps to."""
    if json_output:
        emit([outcome])
    elif not outcome.built:
        console.print(f"[yellow]Skipped:[/yellow] {outcome.reason}")
    elif outcome.outcome.succeeded:
        console.print(f"[green]Built {outcome.tag}[/green] (job {outcome.job_id})")
    elif outcome.outcome.timed_out:
        console.print(f"[yellow]Build of {outcome.tag} timed out[/yellow] (job {outcome.job_id} left running)")
    else:
        console.print(f"[red]Build of {outcome.tag} failed[/red] (job {outcome.job_id})")
        console.print(Panel(outcome.outcome.logs or "(no logs)", title="build logs", border_style="red"))

    if not outcome.built or outcome.outcome.succeeded:
        return SUCCESS
    if outcome.outcome.timed_out:
        return BUILD_TIMED_OUT
    return BUILD_FAILED


def _timing_options(func):
    func = click.option('--interval', type=float, help='Seconds between build status polls')(func)
    func = click.option('--timeout', type=float, help='Seconds to wait for the build')(func)
    return func


@click.command('run')
@click.option('--message', '-m', required=True, help='Commit message of the push')
@click.option('--source-ref', '-r', required=True, help='Commit SHA or ref to build')
@click.option('--subdirectory', '-d', required=True, help='Application directory, e.g. apps/app-example')
@click.option('--job-id', help='Identifier for the build job (generated if omitted)')
@_timing_options
@add_common_options('tag', 'json')
@handle_errors
def run_cmd(message, source_ref, subdirectory, job_id, timeout, interval, tags, json_output):
    """Version and build one application for a commit.

    Release-triggering commits (feat, fix, breaking changes) are bumped
    from the highest release tag in the registry and built. Everything
    else is skipped.

    Examples:

    \b
        buildbump run -m "fix(app-example): improve error handling" \\
            -r 3f2c1d0 -d apps/app-example
        buildbump run -m "feat: add /api/hello" -r main -d apps/app-example -t v1.0.0
    """
    config = load_config()
    orchestrator = build_orchestrator(config, interval=interval, timeout=timeout)
    outcome = orchestrator.handle(
        message,
        current_tags=list(tags) if tags else None,
        source_ref=source_ref,
        subdirectory=subdirectory,
        job_id=job_id,
    )
    sys.exit(report(outcome, json_output))


@click.command('event')
@click.argument('event_file', type=click.File('r'), default='-')
@_timing_options
@add_common_options('tag', 'json')
@handle_errors
def event_cmd(event_file, timeout, interval, tags, json_output):
    """Handle a change event read from EVENT_FILE (default: stdin).

    The file holds one JSON object:

    \b
        {"commit_message": "fix: ...", "source_ref": "3f2c1d0",
         "subdirectory": "apps/app-example"}
    """
    source = getattr(event_file, 'name', '-')
    try:
        data = json.load(event_file)
    except json.JSONDecodeError as e:
        raise PreconditionError('event_file', source, f"not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PreconditionError('event_file', source, "must contain a JSON object")

    event = ChangeEvent.from_dict(data)
    config = load_config()
    orchestrator = build_orchestrator(config, interval=interval, timeout=timeout)
    outcome = orchestrator.handle_event(event, current_tags=list(tags) if tags else None)
    sys.exit(report(outcome, json_output))
