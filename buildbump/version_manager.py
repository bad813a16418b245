"""
Version resolution and bumping for buildbump.

Resolving reads the release tags already pushed to the image registry
and picks the highest one. Bumping turns that version plus a commit
classification into the next version tag.

Both are pure: the registry is queried by the caller on every event
and nothing here caches a "current version".
"""

import logging
import sys
from typing import Iterable, List

from .domain.commit import ChangeClassification
from .domain.version import SemVer, TagCandidate, NO_RELEASE
from .exit_codes import InvalidClassification

logger = logging.getLogger(__name__)


class VersionBumper:
    """Bump semantic versions."""

    @staticmethod
    def _increment(value: int, name: str) -> int:
        if value >= sys.maxsize:
            raise OverflowError(f"{name} version component {value} cannot be incremented")
        return value + 1

    @staticmethod
    def bump_major(version: SemVer) -> SemVer:
        """Bump major version (X.0.0)."""
        return SemVer(VersionBumper._increment(version.major, 'major'), 0, 0)

    @staticmethod
    def bump_minor(version: SemVer) -> SemVer:
        """Bump minor version (x.Y.0)."""
        return SemVer(version.major, VersionBumper._increment(version.minor, 'minor'), 0)

    @staticmethod
    def bump_patch(version: SemVer) -> SemVer:
        """Bump patch version (x.y.Z)."""
        return SemVer(version.major, version.minor, VersionBumper._increment(version.patch, 'patch'))


BUMPS = {
    ChangeClassification.MAJOR: VersionBumper.bump_major,
    ChangeClassification.MINOR: VersionBumper.bump_minor,
    ChangeClassification.PATCH: VersionBumper.bump_patch,
}


def parse_tags(tags: Iterable[str]) -> List[TagCandidate]:
    """
    Parse raw registry tags, keeping the ones that are not versions.

    Args:
        tags: Tag strings as listed by the registry

    Returns:
        One TagCandidate per input tag, in input order
    """
    candidates = [TagCandidate.from_raw(tag) for tag in tags]
    for candidate in candidates:
        if not candidate.is_release:
            logger.debug(f"Ignoring non-release tag {candidate.raw!r}")
    return candidates


def resolve(tags: Iterable[str]) -> SemVer:
    """
    Determine the current released version from registry tags.

    Tags are compared numerically per component, so v1.10.0 beats
    v1.9.0. Tags with pre-release or build suffixes are ignored.

    Args:
        tags: Tag strings as listed by the registry

    Returns:
        Highest version found, or NO_RELEASE (0.0.0) when none match
    """
    versions = [c.parsed for c in parse_tags(tags) if c.parsed is not None]
    if not versions:
        return NO_RELEASE
    return max(versions)


def bump(current: SemVer, classification: ChangeClassification) -> SemVer:
    """
    Compute the next version for a release-triggering change.

    Args:
        current: Currently released version
        classification: PATCH, MINOR or MAJOR

    Returns:
        New SemVer

    Raises:
        InvalidClassification: If classification is NONE
    """
    bumper = BUMPS.get(classification)
    if bumper is None:
        raise InvalidClassification(classification)
    return bumper(current)
