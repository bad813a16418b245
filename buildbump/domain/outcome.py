"""
Orchestration outcome objects for buildbump.

Every handled change event ends in exactly one of:
- Skipped: the commit does not trigger a release
- Built: a new version was computed and a build ran to a terminal state

A Built outcome is returned even when the build failed or timed out;
the caller decides how to notify.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .build import BuildOutcome
from .version import SemVer

NOT_RELEASE_TRIGGERING = "not a release-triggering commit"


@dataclass(frozen=True)
class Skipped:
    """No build was attempted."""
    reason: str = NOT_RELEASE_TRIGGERING

    @property
    def built(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'skipped',
            'reason': self.reason,
        }


@dataclass(frozen=True)
class Built:
    """
    A build ran for a new version.

    Attributes:
        new_version: Version the build was tagged with
        outcome: Terminal build result
        previous_version: Version resolved from the registry before bumping
        job_id: Identifier the build was submitted under
    """
    new_version: SemVer
    outcome: BuildOutcome
    previous_version: Optional[SemVer] = None
    job_id: Optional[str] = None

    @property
    def built(self) -> bool:
        return True

    @property
    def tag(self) -> str:
        return self.new_version.format()

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': 'built',
            'version': self.tag,
            'build': self.outcome.to_dict(),
        }
        if self.previous_version is not None:
            result['previous_version'] = self.previous_version.format()
        if self.job_id:
            result['job_id'] = self.job_id
        return result
