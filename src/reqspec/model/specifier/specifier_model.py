from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from typing_extensions import Self

from reqspec.model.errors import InvalidSpecifier, InvalidVersion
from reqspec.model.version.version_model import Version

# Longest spellings first so that `===` is not read as `==` followed by `=`.
_OPERATOR_SPELLINGS = ("===", "~=", "==", "!=", "<=", ">=", "<", ">")

Candidate = Version | str


class Operator(str, Enum):
    """
    Comparison operators accepted in a version specifier.

    The string value of each member is its spelling in specifier text.
    """
    COMPATIBLE = "~="
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="
    LESS = "<"
    GREATER = ">"
    ARBITRARY = "==="


class PrereleasePolicy(str, Enum):
    """
    Tri-state policy deciding whether pre-release and dev-release candidates may match.

    INCLUDE always lets them through, EXCLUDE always rejects them, and DEFAULT lets them through
    only when the specifier set itself names a pre-release operand (an explicit opt-in), or when
    the set is empty.
    """
    INCLUDE = "include"
    EXCLUDE = "exclude"
    DEFAULT = "default"

    @classmethod
    def coerce(cls, value: PrereleasePolicy | bool | None) -> PrereleasePolicy:
        """
        Maps the loose `True` / `False` / `None` spelling onto a policy.

        Args:
            value (PrereleasePolicy | bool | None): A policy, or True for INCLUDE, False for
                EXCLUDE and None for DEFAULT.

        Returns:
            PrereleasePolicy: The corresponding policy.
        """
        match value:
            case PrereleasePolicy():
                return value
            case None:
                return cls.DEFAULT
            case True:
                return cls.INCLUDE
            case False:
                return cls.EXCLUDE
            case _:
                raise TypeError(f"Invalid pre-release policy: {value!r}")


def _coerce_candidate(candidate: Candidate) -> Candidate:
    """
    Parses candidate text when possible.

    Text that is not a valid version is returned unchanged so that it can still be matched by
    arbitrary equality (`===`), which works on raw text.
    """
    if isinstance(candidate, Version):
        return candidate
    try:
        return Version.parse(candidate)
    except InvalidVersion:
        return candidate


def _same_base(left: Version, right: Version) -> bool:
    """True when both versions share the epoch and release, ignoring trailing zeros."""
    return (Version(epoch=left.epoch, release=left.release)
            == Version(epoch=right.epoch, release=right.release))


def _prefix_match(candidate: Version, prefix: Version) -> bool:
    """
    Checks whether the candidate release starts with the release of `prefix`.

    The candidate release is zero-padded first, so `1` matches the prefix `1.0`. Pre, post, dev
    and local segments of the candidate do not take part in the comparison.
    """
    if candidate.epoch != prefix.epoch:
        return False
    length = len(prefix.release)
    return candidate.release_padded(length)[:length] == prefix.release


def _invalid_combination(operator: Operator, version: Version | None, wildcard: bool) -> str | None:
    """
    Checks an operator / operand / wildcard combination.

    Returns:
        str | None: The reason the combination is illegal, or None when it is valid.
    """
    if operator is not Operator.ARBITRARY and version is None:
        return f"Operator {operator.value} needs a version operand"
    if wildcard:
        if operator not in (Operator.EQUAL, Operator.NOT_EQUAL):
            return f"Operator {operator.value} must not be used with a wildcard (.*) version"
        if version.pre is not None or version.post is not None or version.dev is not None:
            return "A wildcard (.*) must not follow a pre, post or dev release segment"
        if version.local is not None:
            return "A wildcard (.*) must not be combined with a local version"
    if (version is not None and version.local is not None
            and operator not in (Operator.EQUAL, Operator.NOT_EQUAL, Operator.ARBITRARY)):
        return f"Operator {operator.value} must not be used with a local version"
    if operator is Operator.COMPATIBLE and len(version.release) < 2:
        return "Operator ~= needs at least two release components"
    return None


@dataclass(slots=True, frozen=True, kw_only=True, eq=False)
class VersionSpecifier:
    """
    A single `<operator><version>` constraint, such as `>=1.16` or `==2.8.*`.

    Matching (`contains`) is a different relation from version ordering: equality operators ignore
    the candidate's local label unless the operand carries one, strict `<` and `>` exclude
    pre-releases and post releases of the operand's own release, and `===` compares raw text with
    no version semantics at all.

    Attributes:
        operator (Operator): The comparison operator.
        version (Version | None): The parsed operand. Only None for `===` operands that are not
            valid versions.
        operand (str): The operand text. For `===` this is the exact text matched against.
        wildcard (bool): True when the operand ended in `.*`.
    """
    operator: Operator
    version: Version | None
    operand: str = ""
    wildcard: bool = False

    def __post_init__(self) -> None:
        if not self.operand:
            text = "" if self.version is None else str(self.version)
            object.__setattr__(self, "operand", f"{text}.*" if self.wildcard else text)
        reason = _invalid_combination(self.operator, self.version, self.wildcard)
        if reason is not None:
            raise InvalidSpecifier(f"{self.operator.value}{self.operand}", reason)

    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parses a single specifier such as `~=1.4.2`, `!= 1.3.*` or `===foobar`.

        Whitespace is allowed around the operator and the operand but not inside the operand.

        Args:
            text (str): The specifier text.

        Returns:
            VersionSpecifier: The parsed specifier.

        Raises:
            InvalidSpecifier: If the operator is unknown, the operand is missing or is not a valid
                version, or the operator and operand cannot be combined.
        """
        stripped = text.strip()
        offset = len(text) - len(text.lstrip())
        spelling = next((op for op in _OPERATOR_SPELLINGS if stripped.startswith(op)), None)
        if spelling is None:
            raise InvalidSpecifier(
                text,
                "Expected a comparison operator (such as '>=' or '~=')",
                start=offset,
                length=max(len(stripped), 1))
        operator = Operator(spelling)

        rest = stripped[len(spelling):]
        operand = rest.strip()
        operand_start = offset + len(spelling) + (len(rest) - len(rest.lstrip()))
        if not operand:
            raise InvalidSpecifier(text, f"Expected a version after {spelling}", start=operand_start)
        if any(ch.isspace() for ch in operand):
            bad = operand_start + next(i for i, ch in enumerate(operand) if ch.isspace())
            raise InvalidSpecifier(text, "Unexpected whitespace inside the version", start=bad)

        if operator is Operator.ARBITRARY:
            try:
                version: Version | None = Version.parse(operand)
            except InvalidVersion:
                version = None
            return cls(operator=operator, version=version, operand=operand)

        wildcard = operand.endswith(".*")
        version_text = operand[:-2] if wildcard else operand
        try:
            version = Version.parse(version_text)
        except InvalidVersion as err:
            raise InvalidSpecifier(
                text,
                f"Invalid version {version_text!r}: {err.reason}",
                start=operand_start + (err.start or 0),
                length=err.length) from err

        reason = _invalid_combination(operator, version, wildcard)
        if reason is not None:
            raise InvalidSpecifier(text, reason, start=offset, length=len(stripped))
        return cls(operator=operator, version=version, wildcard=wildcard)

    @property
    def opts_into_prereleases(self) -> bool:
        """
        True when the operand is itself a pre-release or dev release.

        Such a specifier signals that the caller wants pre-releases considered. Exclusions (`!=`)
        never signal that.
        """
        if self.operator is Operator.NOT_EQUAL or self.version is None:
            return False
        return self.version.is_prerelease

    def contains(self, candidate: Candidate, prereleases: PrereleasePolicy | bool | None = None) -> bool:
        """
        Decides whether a candidate version satisfies this specifier.

        Args:
            candidate (Version | str): The version to test. Text that is not a valid version can
                only satisfy `===`.
            prereleases (PrereleasePolicy | bool | None): Pre-release policy. Defaults to letting
                pre-releases through only when this specifier's operand is one.

        Returns:
            bool: True when the candidate matches.
        """
        policy = PrereleasePolicy.coerce(prereleases)
        version = _coerce_candidate(candidate)
        if isinstance(version, Version) and version.is_prerelease:
            if policy is PrereleasePolicy.EXCLUDE:
                return False
            if policy is PrereleasePolicy.DEFAULT and not self.opts_into_prereleases:
                return False
        return self.matches(version)

    def matches(self, candidate: Candidate) -> bool:
        """
        Applies the operator without any pre-release filtering.

        Args:
            candidate (Version | str): A parsed version, or raw text that failed to parse.

        Returns:
            bool: True when the operator relation holds.
        """
        if self.operator is Operator.ARBITRARY:
            raw = candidate if isinstance(candidate, str) else (candidate.source or str(candidate))
            return raw.strip() == self.operand
        if not isinstance(candidate, Version):
            return False

        spec = self.version
        match self.operator:
            case Operator.EQUAL:
                return self._equal(candidate)
            case Operator.NOT_EQUAL:
                return not self._equal(candidate)
            case Operator.COMPATIBLE:
                prefix = Version(epoch=spec.epoch, release=spec.release[:-1])
                return candidate.without_local() >= spec and _prefix_match(candidate, prefix)
            case Operator.LESS_EQUAL:
                return candidate.without_local() <= spec
            case Operator.GREATER_EQUAL:
                return candidate.without_local() >= spec
            case Operator.LESS:
                public = candidate.without_local()
                if not public < spec:
                    return False
                # <3.1 must not match 3.1.dev0 unless the operand is a pre-release itself
                return not (not spec.is_prerelease and public.is_prerelease and _same_base(public, spec))
            case Operator.GREATER:
                public = candidate.without_local()
                if not public > spec:
                    return False
                # >3.1 must not match 3.1.post0 unless the operand is a post release itself
                return not (not spec.is_postrelease and public.is_postrelease and _same_base(public, spec))
        raise AssertionError(f"unhandled operator {self.operator!r}")

    def _equal(self, candidate: Version) -> bool:
        if self.wildcard:
            return _prefix_match(candidate, self.version)
        if self.version.local is not None:
            return candidate == self.version
        return candidate.without_local() == self.version

    def _identity(self) -> tuple:
        if self.operator is Operator.ARBITRARY:
            return self.operator, self.operand
        return self.operator, self.version, self.wildcard

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionSpecifier):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __contains__(self, candidate: Candidate) -> bool:
        return self.contains(candidate)

    def __str__(self) -> str:
        if self.operator is Operator.ARBITRARY:
            return f"==={self.operand}"
        version = f"{self.version}.*" if self.wildcard else str(self.version)
        return f"{self.operator.value}{version}"


@dataclass(slots=True, frozen=True, eq=False)
class VersionSpecifiers:
    """
    A conjunction of version specifiers, such as `>=1.16,<2.0`.

    The specifiers are kept in the order written, but the value behaves as a set: equality and
    hashing ignore order and duplicates. An empty set matches every version.

    Pre-release exclusion is decided once for the whole set rather than per specifier: under the
    DEFAULT policy a pre-release candidate is only considered when some specifier in the set
    names a pre-release operand.

    Attributes:
        specifiers (tuple[VersionSpecifier, ...]): The individual constraints.
    """
    specifiers: tuple[VersionSpecifier, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "specifiers", tuple(self.specifiers))

    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parses a comma separated list of specifiers.

        Args:
            text (str): The specifier list, such as `>= 1.0, != 1.3.*, < 2.0`. Empty or
                whitespace-only text yields the empty set.

        Returns:
            VersionSpecifiers: The parsed set.

        Raises:
            InvalidSpecifier: If any element fails to parse (the span points into `text`) or an
                element between two commas is empty.
        """
        if not text.strip():
            return cls(())

        specifiers: list[VersionSpecifier] = []
        start = 0
        for piece in text.split(","):
            if not piece.strip():
                raise InvalidSpecifier(text, "Expected a version specifier between commas", start=start)
            try:
                specifiers.append(VersionSpecifier.parse(piece))
            except InvalidSpecifier as err:
                raise InvalidSpecifier(
                    text,
                    err.reason,
                    start=start + (err.start or 0),
                    length=err.length if err.start is not None else len(piece)) from err
            start += len(piece) + 1
        return cls(tuple(specifiers))

    @property
    def opts_into_prereleases(self) -> bool:
        return any(spec.opts_into_prereleases for spec in self.specifiers)

    def prereleases_allowed(self, prereleases: PrereleasePolicy | bool | None = None) -> bool:
        """
        Resolves the pre-release policy against this set.

        Args:
            prereleases (PrereleasePolicy | bool | None): The requested policy.

        Returns:
            bool: True when pre-release candidates may match.
        """
        match PrereleasePolicy.coerce(prereleases):
            case PrereleasePolicy.INCLUDE:
                return True
            case PrereleasePolicy.EXCLUDE:
                return False
            case _:
                return not self.specifiers or self.opts_into_prereleases

    def contains(self, candidate: Candidate, prereleases: PrereleasePolicy | bool | None = None) -> bool:
        """
        Decides whether a candidate satisfies every specifier in the set.

        Args:
            candidate (Version | str): The version to test. Text that is not a valid version only
                matches `===` specifiers, so the empty set rejects it.
            prereleases (PrereleasePolicy | bool | None): Pre-release policy, see
                `PrereleasePolicy`.

        Returns:
            bool: True when the candidate passes the pre-release filter and every specifier.
        """
        version = _coerce_candidate(candidate)
        if isinstance(version, Version) and version.is_prerelease and not self.prereleases_allowed(prereleases):
            return False
        if not isinstance(version, Version) and not self.specifiers:
            return False
        return all(spec.matches(version) for spec in self.specifiers)

    def filter(
            self,
            candidates: Iterable[Candidate],
            prereleases: PrereleasePolicy | bool | None = None) -> list[Candidate]:
        """
        Selects the candidates that satisfy the set, keeping their input order.

        Under the DEFAULT policy, when pre-releases are not opted into and no final release
        matches, the matching pre-releases are returned instead, so that a project that only
        ever published pre-releases remains installable.

        Args:
            candidates (Iterable[Version | str]): Versions to select from.
            prereleases (PrereleasePolicy | bool | None): Pre-release policy.

        Returns:
            list[Version | str]: The selected candidates, as given.
        """
        policy = PrereleasePolicy.coerce(prereleases)
        if policy is not PrereleasePolicy.DEFAULT or self.prereleases_allowed(policy):
            return [candidate for candidate in candidates if self.contains(candidate, policy)]

        finals: list[Candidate] = []
        held_back: list[Candidate] = []
        for candidate in candidates:
            version = _coerce_candidate(candidate)
            if not all(spec.matches(version) for spec in self.specifiers):
                continue
            if isinstance(version, Version) and version.is_prerelease:
                held_back.append(candidate)
            else:
                finals.append(candidate)
        return finals or held_back

    def __and__(self, other: VersionSpecifiers | str) -> VersionSpecifiers:
        if isinstance(other, str):
            other = VersionSpecifiers.parse(other)
        if not isinstance(other, VersionSpecifiers):
            return NotImplemented
        merged = list(self.specifiers)
        merged.extend(spec for spec in other.specifiers if spec not in merged)
        return VersionSpecifiers(tuple(merged))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionSpecifiers):
            return NotImplemented
        return frozenset(self.specifiers) == frozenset(other.specifiers)

    def __hash__(self) -> int:
        return hash(frozenset(self.specifiers))

    def __iter__(self) -> Iterator[VersionSpecifier]:
        return iter(self.specifiers)

    def __len__(self) -> int:
        return len(self.specifiers)

    def __bool__(self) -> bool:
        return bool(self.specifiers)

    def __contains__(self, candidate: Candidate) -> bool:
        return self.contains(candidate)

    def __str__(self) -> str:
        return ",".join(str(spec) for spec in self.specifiers)

    def __repr__(self) -> str:
        return f"<VersionSpecifiers({str(self)!r})>"
