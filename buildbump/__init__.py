"""
buildbump - Conventional-commit versioning and build orchestration.

Turns a push into a versioned container image build:
classify the commit, resolve the current release from the registry,
bump it, and supervise the build until it succeeds, fails or times out.

Quick Start:
    import buildbump

    buildbump.classify("feat(api): add hello endpoint")
    # -> ChangeClassification.MINOR

    current = buildbump.resolve(["v1.9.0", "v1.10.0", "v2.0.0-rc1"])
    # -> SemVer(major=1, minor=10, patch=0)

    buildbump.bump(current, buildbump.ChangeClassification.PATCH).format()
    # -> "v1.10.1"

    # Full orchestration against your own collaborators
    supervisor = buildbump.BuildSupervisor(job_client, poll_interval=5)
    orchestrator = buildbump.Orchestrator(supervisor, registry=registry_client)
    outcome = orchestrator.handle(
        "fix(app-example): improve error handling",
        source_ref="3f2c1d0",
        subdirectory="apps/app-example",
    )

Domain Objects:
    SemVer - Immutable, numerically ordered version
    TagCandidate - Registry tag with its parse result
    ChangeClassification - NONE / PATCH / MINOR / MAJOR
    BuildRequest / BuildOutcome - One build and how it ended
    Skipped / Built - Result of handling one change event

Services:
    BuildSupervisor - Submit and poll builds with a timeout
    Orchestrator - Classify, resolve, bump, build
"""

__version__ = "0.1.0"

from .domain import (
    SemVer,
    TagCandidate,
    NO_RELEASE,
    ChangeClassification,
    classify,
    BuildRequest,
    BuildOutcome,
    JobStatus,
    SupervisorState,
    Skipped,
    Built,
    ChangeEvent,
)

from .version_manager import resolve, bump, parse_tags

from .services import BuildSupervisor, Orchestrator

from .exit_codes import (
    CommandError,
    PreconditionError,
    InvalidClassification,
    RegistryError,
    WaitCancelled,
)

from .config import load_config, save_config

__all__ = [
    "__version__",
    # Domain objects
    "SemVer",
    "TagCandidate",
    "NO_RELEASE",
    "ChangeClassification",
    "classify",
    "BuildRequest",
    "BuildOutcome",
    "JobStatus",
    "SupervisorState",
    "Skipped",
    "Built",
    "ChangeEvent",
    # Versioning
    "resolve",
    "bump",
    "parse_tags",
    # Services
    "BuildSupervisor",
    "Orchestrator",
    # Errors
    "CommandError",
    "PreconditionError",
    "InvalidClassification",
    "RegistryError",
    "WaitCancelled",
    # Configuration
    "load_config",
    "save_config",
]
