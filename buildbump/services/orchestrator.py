"""
Release orchestration service for buildbump.

Handles one change event end to end:

    classify commit -> resolve current version -> bump -> build

Non-releasing commits are the common case and return Skipped before
the registry or the build system is touched.

Invocations for different applications may run concurrently. Two
invocations for the same application must be serialized by the caller:
resolving and bumping is not atomic, so racing them yields the same
new tag twice.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple, Union

from ..domain.build import BuildRequest
from ..domain.commit import ChangeClassification, classify
from ..domain.event import ChangeEvent
from ..domain.outcome import Built, Skipped
from ..domain.version import SemVer
from ..exit_codes import PreconditionError
from ..infra.job_client import job_name_for
from ..version_manager import bump, resolve
from .build_supervisor import BuildSupervisor

logger = logging.getLogger(__name__)

Outcome = Union[Skipped, Built]

_WHITESPACE = re.compile(r'\s')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def application_for(subdirectory: str) -> str:
    """Application identifier of a subdirectory ("apps/app-example" -> "app-example")."""
    return subdirectory.strip('/').split('/')[-1]


def validate_source_ref(source_ref: str) -> str:
    if not isinstance(source_ref, str) or not source_ref.strip():
        raise PreconditionError('source_ref', source_ref, "must be a non-empty string")
    if _WHITESPACE.search(source_ref):
        raise PreconditionError('source_ref', source_ref, "must not contain whitespace")
    return source_ref


def validate_subdirectory(subdirectory: str) -> str:
    if not isinstance(subdirectory, str) or not subdirectory.strip('/ '):
        raise PreconditionError('subdirectory', subdirectory, "must be a non-empty path")
    if _WHITESPACE.search(subdirectory):
        raise PreconditionError('subdirectory', subdirectory, "must not contain whitespace")
    if subdirectory.startswith('/'):
        raise PreconditionError('subdirectory', subdirectory, "must be relative to the repository root")
    if '..' in subdirectory.split('/'):
        raise PreconditionError('subdirectory', subdirectory, "must not contain '..' segments")
    return subdirectory


class Orchestrator:
    """
    Sequences classification, version resolution, bumping and the build.

    Example:
        orchestrator = Orchestrator(BuildSupervisor(jobs), registry=registry)
        outcome = orchestrator.handle(
            "fix(app-example): improve error handling",
            source_ref="3f2c1d0",
            subdirectory="apps/app-example",
        )
        if outcome.built:
            print(outcome.tag, outcome.outcome.kind.value)
    """

    def __init__(
        self,
        supervisor: Optional[BuildSupervisor],
        registry=None,
        build_timeout: Optional[float] = None,
        application_resolver: Callable[[str], str] = application_for,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize Orchestrator.

        Args:
            supervisor: Build supervisor that runs the builds; only needed by handle()
            registry: Registry collaborator with list_tags(application); only
                needed when tags are not passed in
            build_timeout: Seconds to wait for a build (default: supervisor's)
            application_resolver: Maps a subdirectory to a registry application name
            clock: Wall-clock source for BuildRequest.submitted_at
        """
        self.supervisor = supervisor
        self.registry = registry
        self.build_timeout = build_timeout
        self.application_resolver = application_resolver
        self._clock = clock

    def plan(
        self,
        commit_message: str,
        current_tags: Optional[Iterable[str]] = None,
        application: Optional[str] = None,
    ) -> Tuple[ChangeClassification, Optional[SemVer], Optional[SemVer]]:
        """
        Work out the next version without building anything.

        The registry is queried for the application's tags only when the
        commit triggers a release and current_tags is None.

        Returns:
            (classification, current version, new version); both versions
            are None when the commit does not trigger a release
        """
        classification = classify(commit_message)
        if not classification.is_release:
            return classification, None, None
        if current_tags is None:
            current_tags = self._query_tags(application)
        current = resolve(current_tags)
        return classification, current, bump(current, classification)

    def handle(
        self,
        commit_message: str,
        current_tags: Optional[Iterable[str]] = None,
        source_ref: str = "",
        subdirectory: str = "",
        job_id: Optional[str] = None,
    ) -> Outcome:
        """
        Handle one change event.

        Args:
            commit_message: Latest commit message of the push
            current_tags: Tags already in the registry; queried fresh from
                the registry collaborator when None
            source_ref: Commit or ref to build
            subdirectory: Application directory inside the repository
            job_id: Identifier to submit the build under (generated if omitted)

        Returns:
            Skipped, or Built carrying the new version and the build outcome.
            Failed and timed-out builds are reported, not raised.

        Raises:
            PreconditionError: On malformed source_ref or subdirectory
            RegistryError: If the registry cannot be queried
        """
        validate_source_ref(source_ref)
        validate_subdirectory(subdirectory)

        application = self.application_resolver(subdirectory)
        classification, current, new_version = self.plan(commit_message, current_tags, application)
        if new_version is None:
            logger.info(f"Skipping {subdirectory}: not a release-triggering commit")
            return Skipped()

        target_tag = new_version.format()
        logger.info(f"{application}: {classification.value} change, {current} -> {target_tag}")

        request = BuildRequest(
            source_ref=source_ref,
            subdirectory=subdirectory,
            target_tag=target_tag,
            submitted_at=self._clock(),
            job_id=job_id or self._new_job_id(application, target_tag),
        )
        outcome = self.supervisor.run(request, timeout=self.build_timeout)

        return Built(
            new_version=new_version,
            outcome=outcome,
            previous_version=current,
            job_id=request.job_id,
        )

    def handle_event(self, event: ChangeEvent, current_tags: Optional[Iterable[str]] = None) -> Outcome:
        """Handle a ChangeEvent (see handle())."""
        return self.handle(
            event.commit_message,
            current_tags=current_tags,
            source_ref=event.source_ref,
            subdirectory=event.subdirectory,
            job_id=event.job_id,
        )

    def _query_tags(self, application: Optional[str]) -> List[str]:
        if self.registry is None:
            raise PreconditionError('registry', None, "required when current_tags is not given")
        if not application:
            raise PreconditionError('application', application, "required to query the registry for tags")
        return self.registry.list_tags(application)

    @staticmethod
    def _new_job_id(application: str, target_tag: str) -> str:
        return job_name_for(application, target_tag)
