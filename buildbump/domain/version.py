"""
Semantic version domain objects for buildbump.

Versions are immutable value objects ordered numerically on
(major, minor, patch). Registry tags are parsed into TagCandidate
objects which keep the raw string around for diagnostics.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..exit_codes import PreconditionError

# Optional leading "v", exactly three numeric groups, nothing after.
TAG_PATTERN = re.compile(r'v?([0-9]+)\.([0-9]+)\.([0-9]+)')


@dataclass(frozen=True, order=True)
class SemVer:
    """
    A three-component semantic version.

    Ordering compares (major, minor, patch) as integers, so
    SemVer(1, 10, 0) > SemVer(1, 9, 0).

    Examples:
        SemVer.parse("v1.2.3")  -> SemVer(major=1, minor=2, patch=3)
        SemVer.parse("1.2")     -> None
        str(SemVer(1, 2, 3))    -> "v1.2.3"
    """

    major: int = 0
    minor: int = 0
    patch: int = 0

    def __post_init__(self):
        for name in ('major', 'minor', 'patch'):
            value = getattr(self, name)
            # bool is an int subclass; True is not a version component
            if isinstance(value, bool) or not isinstance(value, int):
                raise PreconditionError(name, value, "version component must be an integer")
            if value < 0:
                raise PreconditionError(name, value, "version component must be non-negative")

    @classmethod
    def parse(cls, tag: str) -> Optional['SemVer']:
        """
        Parse a registry tag into a SemVer.

        Accepts an optional leading "v". Pre-release and build-metadata
        suffixes are rejected.

        Args:
            tag: Raw tag string (e.g., "v1.2.3", "1.2.3")

        Returns:
            SemVer, or None if the tag does not match
        """
        if not isinstance(tag, str):
            return None
        match = TAG_PATTERN.fullmatch(tag)
        if not match:
            return None
        return cls(*(int(group) for group in match.groups()))

    def format(self) -> str:
        """Format as a version tag: v<major>.<minor>.<patch>."""
        return f"v{self.major}.{self.minor}.{self.patch}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'major': self.major,
            'minor': self.minor,
            'patch': self.patch,
            'tag': self.format(),
        }

    def __str__(self) -> str:
        return self.format()


# "No release yet" sentinel returned when no tag matches
NO_RELEASE = SemVer(0, 0, 0)


@dataclass(frozen=True)
class TagCandidate:
    """
    A raw registry tag with its parse result.

    Attributes:
        raw: Tag exactly as returned by the registry
        parsed: Parsed version, or None if the tag is not a release tag
    """

    raw: str
    parsed: Optional[SemVer] = None

    @classmethod
    def from_raw(cls, raw: str) -> 'TagCandidate':
        return cls(raw=raw, parsed=SemVer.parse(raw))

    @property
    def is_release(self) -> bool:
        return self.parsed is not None

    def to_dict(self) -> dict:
        return {
            'raw': self.raw,
            'version': self.parsed.format() if self.parsed else None,
        }
