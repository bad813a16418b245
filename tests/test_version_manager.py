"""
Tests for version resolution and bumping.

Covers SemVer parsing and ordering, resolving the current version
from registry tags, and bump rules per classification.
"""

import sys

import pytest

from buildbump.domain.commit import ChangeClassification
from buildbump.domain.version import SemVer, TagCandidate, NO_RELEASE
from buildbump.exit_codes import InvalidClassification, PreconditionError
from buildbump.version_manager import VersionBumper, bump, parse_tags, resolve


class TestSemVer:
    """Test SemVer value object."""

    def test_parse_with_prefix(self):
        assert SemVer.parse("v1.2.3") == SemVer(1, 2, 3)

    def test_parse_without_prefix(self):
        assert SemVer.parse("1.2.3") == SemVer(1, 2, 3)

    def test_parse_rejects_suffixes(self):
        assert SemVer.parse("v2.0.0-rc1") is None
        assert SemVer.parse("1.0.0+build.5") is None
        assert SemVer.parse("v1.0.0\n") is None

    def test_parse_rejects_other_shapes(self):
        for tag in ["latest", "v1.2", "1", "1.2.3.4", "V1.2.3", "vv1.2.3", "", "v-1.2.3", "main-3f2c1d0"]:
            assert SemVer.parse(tag) is None, tag

    def test_parse_non_string(self):
        assert SemVer.parse(None) is None

    def test_ordering_is_numeric(self):
        assert SemVer(1, 10, 0) > SemVer(1, 9, 0)
        assert SemVer(2, 0, 0) > SemVer(1, 99, 99)
        assert SemVer(1, 2, 10) > SemVer(1, 2, 9)

    def test_format(self):
        assert SemVer(1, 0, 1).format() == "v1.0.1"
        assert str(SemVer(0, 0, 0)) == "v0.0.0"

    def test_negative_component_rejected(self):
        with pytest.raises(PreconditionError) as exc_info:
            SemVer(1, -1, 0)
        assert exc_info.value.field == "minor"
        assert exc_info.value.value == -1
        assert "minor=-1" in str(exc_info.value)

    def test_non_integer_component_rejected(self):
        with pytest.raises(PreconditionError):
            SemVer(1, "2", 3)
        with pytest.raises(PreconditionError):
            SemVer(True, 0, 0)

    def test_immutable(self):
        version = SemVer(1, 2, 3)
        with pytest.raises(AttributeError):
            version.major = 2

    def test_to_dict(self):
        assert SemVer(1, 2, 3).to_dict() == {'major': 1, 'minor': 2, 'patch': 3, 'tag': 'v1.2.3'}


class TestTagCandidate:
    """Test TagCandidate parse results."""

    def test_release_tag(self):
        candidate = TagCandidate.from_raw("v1.4.0")
        assert candidate.is_release
        assert candidate.parsed == SemVer(1, 4, 0)

    def test_non_release_tag_kept(self):
        candidate = TagCandidate.from_raw("latest")
        assert not candidate.is_release
        assert candidate.raw == "latest"
        assert candidate.to_dict() == {'raw': 'latest', 'version': None}


class TestResolve:
    """Test current version resolution from registry tags."""

    def test_numeric_not_lexicographic(self):
        assert resolve(["v1.9.0", "v1.10.0", "v2.0.0-rc1"]) == SemVer(1, 10, 0)

    def test_major_beats_minor(self):
        assert resolve(["v1.9.0", "v2.0.0", "v1.10.0"]) == SemVer(2, 0, 0)

    def test_empty(self):
        assert resolve([]) == SemVer(0, 0, 0)
        assert resolve([]) is NO_RELEASE

    def test_all_non_matching(self):
        assert resolve(["latest", "main", "v1.0.0-beta"]) == NO_RELEASE

    def test_duplicates_with_and_without_prefix(self):
        assert resolve(["v1.2.3", "1.2.3"]) == SemVer(1, 2, 3)

    def test_ignores_noise(self):
        assert resolve(["latest", "v1.3.2", "sha-3f2c1d0", "v1.4.0"]) == SemVer(1, 4, 0)

    def test_accepts_generator(self):
        assert resolve(tag for tag in ["v0.1.0", "v0.2.0"]) == SemVer(0, 2, 0)

    def test_deterministic(self):
        tags = ["v3.1.4", "v3.1.10", "v3.0.99"]
        assert resolve(tags) == resolve(tags) == SemVer(3, 1, 10)

    def test_parse_tags_keeps_order_and_discards(self):
        candidates = parse_tags(["latest", "v1.0.0"])
        assert [c.raw for c in candidates] == ["latest", "v1.0.0"]
        assert [c.is_release for c in candidates] == [False, True]


class TestVersionBumper:
    """Test semantic version bumping logic."""

    def test_bump_major(self):
        assert VersionBumper.bump_major(SemVer(1, 2, 3)) == SemVer(2, 0, 0)
        assert VersionBumper.bump_major(SemVer(0, 0, 0)) == SemVer(1, 0, 0)

    def test_bump_minor_resets_patch(self):
        assert VersionBumper.bump_minor(SemVer(1, 2, 99)) == SemVer(1, 3, 0)

    def test_bump_patch(self):
        assert VersionBumper.bump_patch(SemVer(10, 20, 30)) == SemVer(10, 20, 31)

    def test_overflow_is_fatal(self):
        with pytest.raises(OverflowError):
            VersionBumper.bump_patch(SemVer(0, 0, sys.maxsize))


class TestBump:
    """Test bump() per classification."""

    def test_patch(self):
        assert bump(SemVer(1, 0, 0), ChangeClassification.PATCH) == SemVer(1, 0, 1)

    def test_minor(self):
        assert bump(SemVer(1, 4, 2), ChangeClassification.MINOR) == SemVer(1, 5, 0)

    def test_major(self):
        assert bump(SemVer(1, 4, 0), ChangeClassification.MAJOR) == SemVer(2, 0, 0)

    def test_first_release(self):
        assert bump(NO_RELEASE, ChangeClassification.MINOR) == SemVer(0, 1, 0)

    def test_none_rejected(self):
        with pytest.raises(InvalidClassification) as exc_info:
            bump(SemVer(1, 0, 0), ChangeClassification.NONE)
        assert exc_info.value.field == "classification"

    @pytest.mark.parametrize("classification", [
        ChangeClassification.PATCH,
        ChangeClassification.MINOR,
        ChangeClassification.MAJOR,
    ])
    @pytest.mark.parametrize("current", [SemVer(0, 0, 0), SemVer(1, 9, 9), SemVer(4, 0, 12)])
    def test_bump_strictly_increases(self, current, classification):
        new = bump(current, classification)
        assert new > current
        if classification is ChangeClassification.MAJOR:
            assert (new.minor, new.patch) == (0, 0)
        elif classification is ChangeClassification.MINOR:
            assert new.patch == 0
            assert new.major == current.major

    def test_does_not_mutate_input(self):
        current = SemVer(1, 2, 3)
        bump(current, ChangeClassification.MAJOR)
        assert current == SemVer(1, 2, 3)
