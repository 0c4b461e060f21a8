from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from typing_extensions import Self

from reqspec.helper.multiformat_serializable_mixin import MultiformatSerializableMixin
from reqspec.helper.name_utils import canonicalize_name
from reqspec.model.errors import InvalidRequirement
from reqspec.model.marker.marker_environment_model import MarkerEnvironment
from reqspec.model.marker.marker_model import Marker, WarningReporter
from reqspec.model.specifier.specifier_model import VersionSpecifiers


@dataclass(slots=True, frozen=True, kw_only=True)
class Requirement(MultiformatSerializableMixin):
    """
    A parsed dependency specifier, such as `requests[security]>=2.8.1; python_version > "3.8"`.

    A requirement pins its project either with a (possibly empty) set of version specifiers or
    with a direct URL, never both. The name and extras are stored in canonical form, so two
    requirements that differ only in the spelling of names compare equal.

    Attributes:
        name (str): The canonical project name.
        raw_name (str): The project name as written. Not part of equality.
        extras (frozenset[str]): The canonical names of the requested extras.
        specifiers (VersionSpecifiers): The version constraints. Empty for URL requirements.
        url (str | None): The direct reference URL, taken verbatim.
        marker (Marker | None): The environment marker deciding whether the requirement applies.
        source (str | None): The text this requirement was parsed from. Not part of equality.
    """
    name: str
    raw_name: str = field(default="", compare=False)
    extras: frozenset[str] = frozenset()
    specifiers: VersionSpecifiers = field(default_factory=VersionSpecifiers)
    url: str | None = None
    marker: Marker | None = None
    source: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.url is not None and self.specifiers:
            raise InvalidRequirement(
                str(self.source or self.name),
                "A requirement can have either version specifiers or a URL, not both")
        object.__setattr__(self, "raw_name", self.raw_name or self.name)
        object.__setattr__(self, "name", canonicalize_name(self.name))
        object.__setattr__(self, "extras", frozenset(canonicalize_name(extra) for extra in self.extras))

    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parses a dependency specifier.

        Raises:
            InvalidRequirement: If the text is not a valid dependency specifier.
        """
        from reqspec.engine.requirement_parser import parse_requirement
        return parse_requirement(text)

    def is_applicable(
            self,
            environment: MarkerEnvironment,
            extras: Iterable[str] = (),
            reporter: WarningReporter | None = None) -> bool:
        """
        Decides whether this requirement applies in an environment.

        Args:
            environment (MarkerEnvironment): The target environment.
            extras (Iterable[str]): The extras active on the dependency edge.
            reporter (WarningReporter | None): Receives marker diagnostics.

        Returns:
            bool: True when there is no marker or the marker holds.
        """
        return self.marker is None or self.marker.evaluate(environment, extras, reporter=reporter)

    def to_mapping(self, *args, **kwargs) -> dict[str, Any]:
        return {
            "name": self.name,
            "raw_name": self.raw_name,
            "extras": sorted(self.extras),
            "specifiers": [str(spec) for spec in self.specifiers],
            "url": self.url,
            "marker": None if self.marker is None else str(self.marker),
        }

    def __str__(self) -> str:
        parts = [self.name]
        if self.extras:
            parts.append(f"[{','.join(sorted(self.extras))}]")
        if self.url is not None:
            parts.append(f" @ {self.url}")
            if self.marker is not None:
                # a URL runs until whitespace, so the marker separator needs a leading space
                parts.append(" ")
        else:
            parts.append(str(self.specifiers))
        if self.marker is not None:
            parts.append(f"; {self.marker}")
        return "".join(parts)

    def __repr__(self) -> str:
        return f"<Requirement({str(self)!r})>"
