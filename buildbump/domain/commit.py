"""
Commit message classification for buildbump.

Conventional commit headers look like:

    type(scope)!: description

The type decides whether a commit triggers a release and which
version component it bumps:

    feat!: ...  / "BREAKING CHANGE:" in body  -> MAJOR
    feat: ...                                 -> MINOR
    fix: ...                                  -> PATCH
    docs: ..., chore: ..., etc.               -> NONE
    anything else                             -> NONE
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

COMMIT_TYPES = frozenset({
    'feat', 'fix', 'docs', 'style', 'refactor', 'perf',
    'test', 'chore', 'build', 'ci', 'revert',
})

BREAKING_MARKER = "BREAKING CHANGE:"

HEADER_PATTERN = re.compile(
    r'(?P<type>[A-Za-z]+)'
    r'(?:\((?P<scope>[^()\r\n]*)\))?'
    r'(?P<breaking>!)?'
    r': +(?P<description>\S.*)'
)


class ChangeClassification(Enum):
    """How a change affects the released version."""
    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def is_release(self) -> bool:
        return self is not ChangeClassification.NONE


@dataclass(frozen=True)
class ConventionalHeader:
    """Parsed conventional commit header line."""
    type: str
    scope: Optional[str] = None
    breaking: bool = False
    description: str = ""


def parse_header(message: str) -> Optional[ConventionalHeader]:
    """
    Parse the header (first line) of a commit message.

    Args:
        message: Raw commit message, possibly multi-line

    Returns:
        ConventionalHeader if the first line is a conventional commit
        header with a recognized type, otherwise None
    """
    if not message or not message.strip():
        return None

    header = message.strip().splitlines()[0].rstrip()
    match = HEADER_PATTERN.fullmatch(header)
    if not match:
        return None

    commit_type = match.group('type')
    if commit_type not in COMMIT_TYPES:
        return None

    return ConventionalHeader(
        type=commit_type,
        scope=match.group('scope'),
        breaking=match.group('breaking') == '!',
        description=match.group('description'),
    )


def classify(message: str) -> ChangeClassification:
    """
    Classify a commit message into the version bump it requires.

    Args:
        message: Raw commit message, possibly multi-line

    Returns:
        ChangeClassification (NONE when the commit is not release-triggering)
    """
    header = parse_header(message)
    if header is None:
        logger.debug("No conventional commit header found")
        return ChangeClassification.NONE

    if header.breaking or BREAKING_MARKER in message:
        result = ChangeClassification.MAJOR
    elif header.type == 'feat':
        result = ChangeClassification.MINOR
    elif header.type == 'fix':
        result = ChangeClassification.PATCH
    else:
        result = ChangeClassification.NONE

    logger.debug(f"Classified {header.type!r} commit as {result.value}")
    return result
