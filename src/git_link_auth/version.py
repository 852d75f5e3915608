"""Parsing and comparison of the version reported by ``git version``."""

from __future__ import annotations

import re
from functools import total_ordering
from typing import Optional, Tuple

_VERSION_PATTERN = re.compile(r"\d+\.\d+(\.\d+)?")


@total_ordering
class GitVersion:
    """A ``major.minor[.patch]`` version, or an invalid one when parsing fails."""

    _major: Optional[int]
    _minor: Optional[int]
    _patch: Optional[int]

    def __init__(self, version: Optional[str] = None) -> None:
        self._major = None
        self._minor = None
        self._patch = None

        if version and _VERSION_PATTERN.fullmatch(version):
            parts = [int(part) for part in version.split(".")]
            self._major = parts[0]
            self._minor = parts[1]
            if len(parts) > 2:
                self._patch = parts[2]

    @classmethod
    def parse(cls, text: str) -> "GitVersion":
        """Return the first version found in free-form tool output."""

        match = _VERSION_PATTERN.search(text or "")
        if match is None:
            return cls()
        return cls(match.group(0))

    @property
    def major(self) -> Optional[int]:
        return self._major

    @property
    def minor(self) -> Optional[int]:
        return self._minor

    @property
    def patch(self) -> Optional[int]:
        return self._patch

    def is_valid(self) -> bool:
        return self._major is not None

    def check_minimum(self, minimum: "GitVersion") -> bool:
        """Return whether this version satisfies ``minimum``.

        An invalid version never satisfies a minimum. A version without a patch
        component satisfies any minimum with the same major and minor.
        """

        if not minimum.is_valid():
            raise ValueError("Argument 'minimum' is not a valid version")
        if not self.is_valid():
            return False

        if self._major != minimum.major:
            return self._major > minimum.major
        if self._minor != minimum.minor:
            return self._minor > minimum.minor
        if self._patch is None:
            return True
        return self._patch >= (minimum.patch or 0)

    def _key(self) -> Tuple[int, int, int]:
        if not self.is_valid():
            raise ValueError("Cannot compare an invalid git version")
        assert self._major is not None and self._minor is not None  # For mypy.
        return (self._major, self._minor, self._patch or 0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GitVersion):
            return NotImplemented
        if not (self.is_valid() and other.is_valid()):
            return self.is_valid() == other.is_valid()
        return self._key() == other._key()

    def __lt__(self, other: "GitVersion") -> bool:
        if not isinstance(other, GitVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        if not self.is_valid():
            return hash(None)
        return hash(self._key())

    def __str__(self) -> str:
        if not self.is_valid():
            return ""
        text = f"{self._major}.{self._minor}"
        if self._patch is not None:
            text = f"{text}.{self._patch}"
        return text

    def __repr__(self) -> str:
        return f"GitVersion({str(self)!r})"


# Auth header not supported before 2.9, wire protocol v2 not supported before 2.18.
MINIMUM_GIT_VERSION = GitVersion("2.18")
