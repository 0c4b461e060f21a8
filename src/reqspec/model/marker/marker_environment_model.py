from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any

from typing_extensions import Self

from reqspec.helper.multiformat_deserializable_mixin import MultiformatDeserializableMixin
from reqspec.helper.multiformat_serializable_mixin import MultiformatSerializableMixin
from reqspec.helper.sys_check_utils import current_environment_values
from reqspec.model.marker.marker_model import MarkerVariable


@dataclass(slots=True, frozen=True, kw_only=True)
class MarkerEnvironment(MultiformatSerializableMixin, MultiformatDeserializableMixin):
    """
    The values of the marker variables for one resolution target.

    A resolver typically holds one environment per interpreter and platform combination it
    resolves for. The active extras are not part of the environment, because they differ per
    dependency edge rather than per target.

    Values are plain strings. Version-valued variables such as `python_version` are not validated
    here: a value that is not a valid version simply makes comparisons against it fall back to
    string semantics.

    Attributes:
        implementation_name (str): `sys.implementation.name`, e.g. `cpython`.
        implementation_version (str): The implementation version, e.g. `3.12.1`.
        os_name (str): `os.name`, e.g. `posix`.
        platform_machine (str): `platform.machine()`, e.g. `x86_64`.
        platform_python_implementation (str): `platform.python_implementation()`, e.g. `CPython`.
        platform_release (str): `platform.release()`.
        platform_system (str): `platform.system()`, e.g. `Linux`.
        platform_version (str): `platform.version()`.
        python_full_version (str): `platform.python_version()`, e.g. `3.12.1`.
        python_version (str): The major and minor version, e.g. `3.12`.
        sys_platform (str): `sys.platform`, e.g. `linux`.
    """
    implementation_name: str = ""
    implementation_version: str = ""
    os_name: str = ""
    platform_machine: str = ""
    platform_python_implementation: str = ""
    platform_release: str = ""
    platform_system: str = ""
    platform_version: str = ""
    python_full_version: str = ""
    python_version: str = ""
    sys_platform: str = ""

    @classmethod
    def current(cls) -> Self:
        """
        Builds the environment of the running interpreter.

        Returns:
            MarkerEnvironment: The values reported by `sys`, `os` and `platform`.
        """
        return cls(**current_environment_values())

    def get(self, variable: MarkerVariable | str) -> str:
        """
        Looks up the value of a variable.

        Args:
            variable (MarkerVariable | str): The variable, or its name (deprecated dotted names
                are accepted too).

        Returns:
            str: The value.

        Raises:
            KeyError: If the name is unknown, or the variable is `extra`, which has no value in an
                environment.
        """
        if isinstance(variable, str) and not isinstance(variable, MarkerVariable):
            variable, _ = MarkerVariable.lookup(variable)
        if variable is MarkerVariable.EXTRA:
            raise KeyError("'extra' is supplied as active extras, not by the environment")
        return getattr(self, variable.value)

    def with_values(self, **values: str) -> MarkerEnvironment:
        """Returns a copy with some variables replaced."""
        merged = self.to_mapping()
        merged.update(values)
        return MarkerEnvironment.from_mapping(merged)

    def to_mapping(self, *args, **kwargs) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], **_: Any) -> MarkerEnvironment:
        """
        Builds an environment from a mapping of variable names to values.

        Missing variables default to the empty string. Deprecated dotted names are accepted and
        stored under the current name.

        Args:
            mapping (Mapping[str, Any]): Variable values. Non-string values are converted with
                `str()`.

        Returns:
            MarkerEnvironment: The environment.

        Raises:
            ValueError: If a key is not a marker variable, or is `extra`.
        """
        values: dict[str, str] = {}
        for key, value in mapping.items():
            try:
                variable, _ = MarkerVariable.lookup(str(key))
            except KeyError:
                raise ValueError(f"Unknown marker variable in environment: {key!r}") from None
            if variable is MarkerVariable.EXTRA:
                raise ValueError("'extra' cannot be part of a marker environment")
            values[variable.value] = str(value)
        return cls(**values)


@dataclass(slots=True, frozen=True)
class EnvironmentProfiles(MultiformatSerializableMixin, MultiformatDeserializableMixin):
    """
    Named marker environments, one per resolution target.

    Profiles are usually loaded from a TOML file with one table per target:

        [environments.linux-py312]
        python_version = "3.12"
        sys_platform = "linux"

    Attributes:
        environments (Mapping[str, MarkerEnvironment]): The environments by profile name, in file
            order. Held in a read-only view, so profiles are hashable values.
    """
    environments: Mapping[str, MarkerEnvironment] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "environments", MappingProxyType(dict(self.environments)))

    def __hash__(self) -> int:
        return hash(tuple(self.environments.items()))

    def get(self, name: str) -> MarkerEnvironment:
        """
        Returns the environment of a profile.

        Raises:
            KeyError: If there is no such profile. The message lists the known profiles.
        """
        try:
            return self.environments[name]
        except KeyError:
            known = ", ".join(self.environments) or "none"
            raise KeyError(f"Unknown environment profile {name!r} (known: {known})") from None

    def names(self) -> list[str]:
        return list(self.environments)

    def __iter__(self) -> Iterator[tuple[str, MarkerEnvironment]]:
        return iter(self.environments.items())

    def __len__(self) -> int:
        return len(self.environments)

    def to_mapping(self, *args, **kwargs) -> dict[str, Any]:
        return {"environments": {name: env.to_mapping() for name, env in self.environments.items()}}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], **_: Any) -> EnvironmentProfiles:
        """
        Builds the profiles from a document with an `environments` table.

        Raises:
            ValueError: If `environments` is missing or not a table, a profile is not a table, or
                a profile names an unknown variable.
        """
        tables = mapping.get("environments")
        if not isinstance(tables, Mapping):
            raise ValueError("Environment profiles need an 'environments' table")
        environments: dict[str, MarkerEnvironment] = {}
        for name, table in tables.items():
            if not isinstance(table, Mapping):
                raise ValueError(f"Environment profile {name!r} must be a table")
            environments[str(name)] = MarkerEnvironment.from_mapping(table)
        return cls(environments)
