from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from reqspec.helper.toml_utils import dump_toml_to_str


def _normalize(value: Any) -> Any:
    """
    Converts a mapping produced by `to_mapping` into plain JSON and TOML compatible values.

    Args:
        value (Any): The value to normalize.

    Returns:
        Any: The normalized value:
            - The stored value for Enum members.
            - A dictionary with stringified keys (sorted), minus `None` entries, for mappings.
            - A sorted list for sets and frozensets.
            - A list for lists and tuples, normalized element by element.
            - The value itself otherwise.
    """
    match value:
        case Enum():
            return value.value

        case Mapping():
            return {
                str(k): _normalize(v)
                for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))
                if v is not None
            }

        case set() | frozenset():
            return sorted(_normalize(v) for v in value)

        case list() | tuple():
            return [_normalize(v) for v in value]

        case _:
            return value


class MultiformatSerializableMixin:
    """
    Adds JSON and TOML output to a model.

    Subclasses implement `to_mapping`; the mixin normalizes that mapping (enums to values, sets
    to sorted lists, `None` entries dropped so that TOML can represent the result) and renders it.
    """

    def to_mapping(self, *args, **kwargs) -> Mapping[str, Any]:
        """
        Converts the model into a mapping.

        Raises:
            NotImplementedError: When the subclass does not implement it.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement to_mapping() "
            "to use MultiformatSerializableMixin serialization.")

    def to_json(self, *, indent=2) -> str:
        return json.dumps(_normalize(self.to_mapping()), ensure_ascii=False, indent=indent, sort_keys=True)

    def to_toml(self, *, indent=2) -> str:
        return dump_toml_to_str(_normalize(self.to_mapping()), indent)

    def serialize(self, *, fmt="json", indent=2) -> str:
        """
        Serializes the model to text.

        Args:
            fmt (str): Either 'json' or 'toml'. Defaults to 'json'.
            indent (int): Indentation width. Defaults to 2.

        Returns:
            str: The serialized model.

        Raises:
            ValueError: If the format is not supported.
        """
        match fmt:
            case "json":
                return self.to_json(indent=indent)
            case "toml":
                return self.to_toml(indent=indent)
            case _:
                raise ValueError(f"unrecognized format: {fmt}")
