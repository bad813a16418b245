"""
Domain layer for buildbump.

Contains pure domain objects with no I/O or side effects:
- SemVer / TagCandidate: versions and the registry tags they come from
- ChangeClassification: what a commit does to the version
- BuildRequest / BuildOutcome: one build and how it ended
- Skipped / Built: what handling a change event produced
- ChangeEvent: the inbound event

These objects are immutable and provide to_dict() for JSONL output.
"""

from .version import SemVer, TagCandidate, NO_RELEASE
from .commit import ChangeClassification, ConventionalHeader, classify, parse_header
from .build import (
    BuildRequest,
    BuildOutcome,
    BuildOutcomeKind,
    JobStatus,
    SupervisorState,
)
from .outcome import Skipped, Built
from .event import ChangeEvent

__all__ = [
    'SemVer',
    'TagCandidate',
    'NO_RELEASE',
    'ChangeClassification',
    'ConventionalHeader',
    'classify',
    'parse_header',
    'BuildRequest',
    'BuildOutcome',
    'BuildOutcomeKind',
    'JobStatus',
    'SupervisorState',
    'Skipped',
    'Built',
    'ChangeEvent',
]
