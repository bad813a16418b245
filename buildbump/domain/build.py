"""
Build domain objects for buildbump.

A BuildRequest describes one image build; a BuildOutcome is the
terminal result reported back once the build job stops being pending.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class JobStatus(Enum):
    """Tri-state status reported by the build-execution system."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SupervisorState(Enum):
    """Lifecycle of one supervised build job."""
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SupervisorState.SUCCEEDED,
            SupervisorState.FAILED,
            SupervisorState.TIMED_OUT,
        )


class BuildOutcomeKind(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class BuildRequest:
    """
    One build of an application subdirectory at a source reference.

    Attributes:
        source_ref: Commit SHA or ref to build from
        subdirectory: Application directory inside the source tree
        target_tag: Image tag to produce (e.g., "v1.0.1")
        submitted_at: When the request was created
        job_id: Caller-supplied identifier correlating request and outcome
    """
    source_ref: str
    subdirectory: str
    target_tag: str
    submitted_at: datetime
    job_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_ref': self.source_ref,
            'subdirectory': self.subdirectory,
            'target_tag': self.target_tag,
            'submitted_at': self.submitted_at.isoformat(),
            'job_id': self.job_id,
        }


@dataclass(frozen=True)
class BuildOutcome:
    """
    Terminal result of a supervised build.

    Use the SUCCEEDED / TIMED_OUT constants and BuildOutcome.failed(logs)
    rather than constructing directly.
    """
    kind: BuildOutcomeKind
    logs: str = ""

    @classmethod
    def failed(cls, logs: str) -> 'BuildOutcome':
        return cls(kind=BuildOutcomeKind.FAILED, logs=logs or "")

    @property
    def succeeded(self) -> bool:
        return self.kind is BuildOutcomeKind.SUCCEEDED

    @property
    def timed_out(self) -> bool:
        return self.kind is BuildOutcomeKind.TIMED_OUT

    @property
    def is_failure(self) -> bool:
        return self.kind is BuildOutcomeKind.FAILED

    def to_dict(self) -> Dict[str, Any]:
        result = {'status': self.kind.value}
        if self.kind is BuildOutcomeKind.FAILED:
            result['logs'] = self.logs
        return result


BuildOutcome.SUCCEEDED = BuildOutcome(BuildOutcomeKind.SUCCEEDED)
BuildOutcome.TIMED_OUT = BuildOutcome(BuildOutcomeKind.TIMED_OUT)
