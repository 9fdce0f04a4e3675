import re
from dataclasses import dataclass
from typing import Callable

import semver

from ocm_bootstrap.errors import InvalidConstraintError, MalformedVersionError

_PARTIAL_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*|[xX*])"
    r"(?:\.(?P<minor>0|[1-9]\d*|[xX*]))?"
    r"(?:\.(?P<patch>0|[1-9]\d*|[xX*]))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)
_TERM_RE = re.compile(r"^(?P<op>>=|<=|!=|~>|=>|=<|>|<|=|~|\^)?(?P<version>\S+)$")
_OPERATOR_SPACE_RE = re.compile(r"(>=|<=|!=|~>|=>|=<|>|<|=|~|\^)\s+")
_HYPHEN_RANGE_RE = re.compile(r"(\S+)\s+-\s+(\S+)")
_OPERATOR_ALIASES = {"=>": ">=", "=<": "<=", "~>": "~"}


def parse_version(text: str) -> semver.Version:
    """Parse a version leniently: optional `v` prefix, minor and patch may be omitted."""
    try:
        return semver.Version.parse(text.strip().removeprefix("v"), optional_minor_and_patch=True)
    except (ValueError, TypeError) as e:
        raise MalformedVersionError(f"invalid semantic version {text!r}: {e}") from e


def _segment(value: str | None) -> int | None:
    if value is None or value in ("x", "X", "*"):
        return None
    return int(value)


@dataclass(frozen=True)
class _Partial:
    major: int | None
    minor: int | None
    patch: int | None
    prerelease: str | None

    @classmethod
    def parse(cls, text: str) -> "_Partial":
        match = _PARTIAL_RE.match(text)
        if not match:
            raise InvalidConstraintError(f"invalid version in constraint: {text!r}")
        major = _segment(match.group("major"))
        minor = _segment(match.group("minor")) if major is not None else None
        patch = _segment(match.group("patch")) if minor is not None else None
        return cls(major, minor, patch, match.group("prerelease"))

    @property
    def any(self) -> bool:
        return self.major is None

    @property
    def wildcard(self) -> bool:
        return self.patch is None

    def floor(self) -> semver.Version:
        return semver.Version(self.major or 0, self.minor or 0, self.patch or 0, self.prerelease)

    def ceiling(self) -> semver.Version:
        """Exclusive upper bound of the range a wildcard version stands for."""
        if self.minor is None:
            return semver.Version(self.major + 1, 0, 0)
        return semver.Version(self.major, self.minor + 1, 0)


def _equal(p: _Partial, v: semver.Version) -> bool:
    if p.any:
        return True
    if p.wildcard:
        return p.floor() <= v < p.ceiling()
    return v.compare(p.floor()) == 0


def _greater(p: _Partial, v: semver.Version) -> bool:
    if p.any:
        return False
    if p.wildcard:
        return v >= p.ceiling()
    return v > p.floor()


def _less_or_equal(p: _Partial, v: semver.Version) -> bool:
    if p.any:
        return True
    if p.wildcard:
        return v < p.ceiling()
    return v <= p.floor()


def _tilde(p: _Partial, v: semver.Version) -> bool:
    if p.any:
        return True
    if p.minor is None:
        upper = semver.Version(p.major + 1, 0, 0)
    else:
        upper = semver.Version(p.major, p.minor + 1, 0)
    return p.floor() <= v < upper


def _caret(p: _Partial, v: semver.Version) -> bool:
    if p.any:
        return True
    if p.major > 0 or p.minor is None:
        upper = semver.Version(p.major + 1, 0, 0)
    elif p.minor > 0 or p.patch is None:
        upper = semver.Version(0, p.minor + 1, 0)
    else:
        upper = semver.Version(0, 0, p.patch + 1)
    return p.floor() <= v < upper


_CHECKS: dict[str, Callable[[_Partial, semver.Version], bool]] = {
    "": _equal,
    "=": _equal,
    "!=": lambda p, v: not _equal(p, v),
    ">": _greater,
    ">=": lambda p, v: p.any or v >= p.floor(),
    "<": lambda p, v: not p.any and v < p.floor(),
    "<=": _less_or_equal,
    "~": _tilde,
    "^": _caret,
}


@dataclass(frozen=True)
class _Term:
    operator: str
    version: _Partial

    def check(self, v: semver.Version) -> bool:
        # pre-releases are only eligible for terms that name a pre-release
        if v.prerelease and not self.version.prerelease:
            return False
        return _CHECKS[self.operator](self.version, v)


class VersionConstraint:
    """Semantic version constraint: `||` separated alternatives of AND-ed terms."""

    def __init__(self, text: str, groups: list[list[_Term]]):
        self.text: str = text
        self._groups: list[list[_Term]] = groups

    @classmethod
    def parse(cls, text: str) -> "VersionConstraint":
        if not text or not text.strip():
            raise InvalidConstraintError("empty version constraint")
        groups = []
        for alternative in text.split("||"):
            alternative = _HYPHEN_RANGE_RE.sub(r">=\1 <=\2", alternative.strip())
            alternative = _OPERATOR_SPACE_RE.sub(r"\1", alternative)
            terms = [cls._parse_term(t) for t in re.split(r"[,\s]+", alternative) if t]
            if not terms:
                raise InvalidConstraintError(f"invalid version constraint {text!r}: empty alternative")
            groups.append(terms)
        return cls(text, groups)

    @staticmethod
    def _parse_term(text: str) -> _Term:
        match = _TERM_RE.match(text)
        if not match:
            raise InvalidConstraintError(f"invalid constraint term {text!r}")
        operator = match.group("op") or ""
        return _Term(_OPERATOR_ALIASES.get(operator, operator), _Partial.parse(match.group("version")))

    def check(self, version: semver.Version) -> bool:
        return any(all(term.check(version) for term in group) for group in self._groups)

    def __str__(self) -> str:
        return self.text
