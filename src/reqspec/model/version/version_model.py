from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from typing_extensions import Self

from reqspec.model.errors import InvalidVersion

VERSION_PATTERN = r"""
    v?
    (?:(?P<epoch>[0-9]+)!)?                         # epoch
    (?P<release>[0-9]+(?:\.[0-9]+)*)                # release segment
    (?P<pre>                                        # pre-release
        [-_.]?
        (?P<pre_l>alpha|a|beta|b|preview|pre|c|rc)
        [-_.]?
        (?P<pre_n>[0-9]+)?
    )?
    (?P<post>                                       # post release
        (?:-(?P<post_n1>[0-9]+))
        |
        (?:
            [-_.]?
            (?P<post_l>post|rev|r)
            [-_.]?
            (?P<post_n2>[0-9]+)?
        )
    )?
    (?P<dev>                                        # dev release
        [-_.]?
        (?P<dev_l>dev)
        [-_.]?
        (?P<dev_n>[0-9]+)?
    )?
    (?:\+(?P<local>[a-z0-9]+(?:[-_.][a-z0-9]+)*))?  # local version
"""

_VERSION_RE = re.compile(r"\s*" + VERSION_PATTERN + r"\s*", re.VERBOSE | re.IGNORECASE | re.ASCII)
_LOCAL_SEPARATOR_RE = re.compile(r"[-_.]")
_LOCAL_SEGMENT_RE = re.compile(r"^[a-z0-9]+$")


class PreReleaseKind(str, Enum):
    """
    Kinds of pre-release markers, in ascending order of maturity.

    Every accepted spelling normalizes onto one of these values: `a`/`alpha` onto ALPHA,
    `b`/`beta` onto BETA, and `rc`/`c`/`pre`/`preview` onto RELEASE_CANDIDATE.
    """
    ALPHA = "a"
    BETA = "b"
    RELEASE_CANDIDATE = "rc"

    @property
    def rank(self) -> int:
        return _PRE_RELEASE_RANK[self]

    @classmethod
    def from_label(cls, label: str) -> PreReleaseKind:
        """
        Maps a pre-release spelling, in any letter case, onto its normalized kind.

        Args:
            label (str): The spelling found in the version text, such as `alpha` or `C`.

        Returns:
            PreReleaseKind: The normalized kind.

        Raises:
            ValueError: If the label is not a recognized pre-release spelling.
        """
        try:
            return _PRE_RELEASE_LABELS[label.lower()]
        except KeyError:
            raise ValueError(f"Unknown pre-release label: {label!r}") from None


_PRE_RELEASE_RANK = {
    PreReleaseKind.ALPHA: 0,
    PreReleaseKind.BETA: 1,
    PreReleaseKind.RELEASE_CANDIDATE: 2,
}

_PRE_RELEASE_LABELS = {
    "a": PreReleaseKind.ALPHA,
    "alpha": PreReleaseKind.ALPHA,
    "b": PreReleaseKind.BETA,
    "beta": PreReleaseKind.BETA,
    "c": PreReleaseKind.RELEASE_CANDIDATE,
    "rc": PreReleaseKind.RELEASE_CANDIDATE,
    "pre": PreReleaseKind.RELEASE_CANDIDATE,
    "preview": PreReleaseKind.RELEASE_CANDIDATE,
}

LocalSegment = int | str
CmpKey = tuple[Any, ...]


def _parse_local(local: str | None) -> tuple[LocalSegment, ...] | None:
    """
    Splits a local version label into normalized segments.

    Separators (`.`, `-`, `_`) are all treated alike. Purely numeric segments become integers
    (which drops leading zeros) and every other segment is lower-cased.

    Args:
        local (str | None): The text following the `+`, or None when absent.

    Returns:
        tuple[int | str, ...] | None: The normalized segments, or None when there is no label.
    """
    if local is None:
        return None
    return tuple(
        int(part) if part.isdigit() else part.lower()
        for part in _LOCAL_SEPARATOR_RE.split(local))


def _cmp_key(
        epoch: int,
        release: tuple[int, ...],
        pre: tuple[PreReleaseKind, int] | None,
        post: int | None,
        dev: int | None,
        local: tuple[LocalSegment, ...] | None) -> CmpKey:
    """
    Computes the sort key implementing the total order over versions.

    The key compares, in order: the epoch; the release with trailing zeros removed (so that
    `1.2` and `1.2.0` compare equal); the pre-release cluster, where a dev release of a final
    version sorts below every pre-release, pre-releases sort below the final release, and the
    final release sorts below post releases; the post number; the dev number (a dev release sorts
    below the same version without one); and finally the local label, where no label sorts
    lowest, numeric segments beat alphanumeric ones, and a shorter prefix sorts first.

    Returns:
        tuple: A key that can be compared with the keys of other versions.
    """
    trimmed = list(release)
    while trimmed and trimmed[-1] == 0:
        trimmed.pop()

    if pre is None and post is None and dev is not None:
        pre_key: tuple[int, ...] = (0,)
    elif pre is None:
        pre_key = (2,)
    else:
        pre_key = (1, pre[0].rank, pre[1])

    post_key = (0,) if post is None else (1, post)
    dev_key = (1,) if dev is None else (0, dev)

    if local is None:
        local_key: tuple[Any, ...] = (0,)
    else:
        local_key = (1, tuple(
            (1, segment, "") if isinstance(segment, int) else (0, 0, segment)
            for segment in local))

    return epoch, tuple(trimmed), pre_key, post_key, dev_key, local_key


@dataclass(slots=True, frozen=True, kw_only=True, eq=False, repr=False)
class Version:
    """
    An immutable, parsed version following the Python packaging version scheme.

    Instances are normally created with `Version.parse`, which accepts every spelling the scheme
    permits (`1.0-ALPHA.2`, `v1.0`, `1.0-1`, ...) and normalizes it. Versions are totally
    ordered and equality is structural after normalization, so `1.2` equals `1.2.0` while
    `1.0+local` is strictly greater than `1.0`.

    Attributes:
        release (tuple[int, ...]): Release components, at least one.
        epoch (int): Version epoch. Defaults to 0.
        pre (tuple[PreReleaseKind, int] | None): Pre-release kind and number.
        post (int | None): Post release number.
        dev (int | None): Development release number.
        local (tuple[int | str, ...] | None): Local version label segments.
        source (str | None): The text this version was parsed from, if any. Not part of
            equality or ordering.
    """
    release: tuple[int, ...]
    epoch: int = 0
    pre: tuple[PreReleaseKind, int] | None = None
    post: int | None = None
    dev: int | None = None
    local: tuple[LocalSegment, ...] | None = None
    source: str | None = None
    _key: CmpKey = field(init=False)

    def __post_init__(self) -> None:
        """
        Validates the fields and precomputes the comparison key.

        Raises:
            ValueError: If the release is empty, or if any number is negative, or if a local
                segment is neither a non-negative integer nor a lowercase alphanumeric string.
        """
        release = tuple(self.release)
        if not release:
            raise ValueError("A version needs at least one release component")
        if any(part < 0 for part in release) or self.epoch < 0:
            raise ValueError(f"Version numbers must not be negative: {release!r}")
        for number in (self.post, self.dev, self.pre[1] if self.pre else None):
            if number is not None and number < 0:
                raise ValueError(f"Version numbers must not be negative: {number!r}")

        local = self.local
        if local is not None:
            local = tuple(local)
            if not local:
                raise ValueError("A local version label needs at least one segment")
            for segment in local:
                if isinstance(segment, int):
                    if segment < 0:
                        raise ValueError(f"Invalid local version segment: {segment!r}")
                elif not _LOCAL_SEGMENT_RE.match(segment):
                    raise ValueError(f"Invalid local version segment: {segment!r}")

        object.__setattr__(self, "release", release)
        object.__setattr__(self, "local", local)
        object.__setattr__(
            self, "_key", _cmp_key(self.epoch, release, self.pre, self.post, self.dev, local))

    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parses version text into a Version.

        Parsing is case-insensitive, tolerates surrounding whitespace and a leading `v`, and
        normalizes alternative spellings and separators. Anything that is not a complete version
        is rejected; there is no partial or fuzzy parsing.

        Args:
            text (str): The version text, such as `1!2.3.4a1.post2.dev3+local.1`.

        Returns:
            Version: The parsed version, with `source` set to `text`.

        Raises:
            InvalidVersion: If `text` is not a valid version.
        """
        if not isinstance(text, str):
            raise TypeError(f"Expected version text, got {type(text).__name__}")

        match = _VERSION_RE.fullmatch(text)
        if match is None:
            raise _describe_failure(text)

        try:
            return cls._from_match(match, text)
        except ValueError as err:
            # oversized digit runs, or segments the validation in __post_init__ refuses
            stripped = len(text) - len(text.lstrip())
            raise InvalidVersion(
                text, f"Invalid version: {err}", start=stripped, length=len(text.strip())) from err

    @classmethod
    def _from_match(cls, match: re.Match[str], text: str) -> Self:
        if match.group("pre"):
            pre = (PreReleaseKind.from_label(match.group("pre_l")), int(match.group("pre_n") or 0))
        else:
            pre = None

        if match.group("post"):
            post: int | None = int(match.group("post_n1") or match.group("post_n2") or 0)
        else:
            post = None

        dev = int(match.group("dev_n") or 0) if match.group("dev") else None

        return cls(
            epoch=int(match.group("epoch") or 0),
            release=tuple(int(part) for part in match.group("release").split(".")),
            pre=pre,
            post=post,
            dev=dev,
            local=_parse_local(match.group("local")),
            source=text)

    # ------------------------------------------------------------------ #
    # Derived views
    # ------------------------------------------------------------------ #

    @property
    def public(self) -> str:
        """The normalized version text without the local label."""
        return str(self).split("+", 1)[0]

    @property
    def base_version(self) -> str:
        """The normalized epoch and release only, such as `1!2.0` for `1!2.0rc1.post3`."""
        release = ".".join(str(part) for part in self.release)
        return f"{self.epoch}!{release}" if self.epoch else release

    @property
    def major(self) -> int:
        return self.release[0]

    @property
    def minor(self) -> int:
        return self.release[1] if len(self.release) > 1 else 0

    @property
    def micro(self) -> int:
        return self.release[2] if len(self.release) > 2 else 0

    @property
    def is_prerelease(self) -> bool:
        """True for pre-releases and for dev releases, which both precede a final release."""
        return self.pre is not None or self.dev is not None

    @property
    def is_postrelease(self) -> bool:
        return self.post is not None

    @property
    def is_devrelease(self) -> bool:
        return self.dev is not None

    def without_local(self) -> Version:
        """
        Returns the same version with the local label removed.

        Returns:
            Version: `self` when there is no local label, otherwise a copy without it.
        """
        if self.local is None:
            return self
        return replace(self, local=None, source=None)

    def release_padded(self, length: int) -> tuple[int, ...]:
        """
        Returns the release components zero-padded (never truncated) to at least `length`.
        """
        return self.release + (0,) * max(length - len(self.release), 0)

    # ------------------------------------------------------------------ #
    # Total order
    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key <= other._key

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key > other._key

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key >= other._key

    def __str__(self) -> str:
        parts = [f"{self.epoch}!" if self.epoch else ""]
        parts.append(".".join(str(part) for part in self.release))
        if self.pre is not None:
            parts.append(f"{self.pre[0].value}{self.pre[1]}")
        if self.post is not None:
            parts.append(f".post{self.post}")
        if self.dev is not None:
            parts.append(f".dev{self.dev}")
        if self.local is not None:
            parts.append("+" + ".".join(str(segment) for segment in self.local))
        return "".join(parts)

    def __repr__(self) -> str:
        return f"<Version({str(self)!r})>"


def _describe_failure(text: str) -> InvalidVersion:
    """
    Builds an InvalidVersion that points at where the text stops being a version.

    Args:
        text (str): The rejected input.

    Returns:
        InvalidVersion: An error whose span covers the unparseable tail of `text`, or the whole
            text when not even a version prefix could be found.
    """
    prefix = _VERSION_RE.match(text)
    stripped = len(text) - len(text.lstrip())
    if prefix is None or not text.strip():
        return InvalidVersion(text, "Expected a version number", start=stripped, length=len(text) - stripped)
    end = prefix.end()
    return InvalidVersion(
        text,
        f"Unexpected text after {text[stripped:end].strip()!r}, which is not part of a valid version",
        start=end,
        length=len(text) - end)
