from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeVar

from reqspec.helper.toml_utils import load_toml_text

T = TypeVar("T", bound="MultiformatDeserializableMixin")


class MultiformatDeserializableMixin:
    """
    Adds JSON and TOML input to a model.

    Subclasses implement `from_mapping`; the mixin parses the text, checks that the document root
    is a table, and hands it over.
    """

    # ---- core contract ----

    @classmethod
    def from_mapping(cls: type[T], mapping: Mapping[str, Any], **_: Any) -> T:
        raise NotImplementedError(
            f"{cls.__name__} must implement from_mapping(mapping, **kwargs) "
            "to use MultiformatDeserializableMixin.")

    # ---- public entrypoints ----

    @classmethod
    def deserialize(cls: type[T], text: str, *, fmt: str = "json", **context: Any) -> T:
        """
        Builds an instance from serialized text.

        Args:
            text (str): The serialized document.
            fmt (str): Either "json" or "toml". Defaults to "json".
            **context (Any): Passed through to `from_mapping`.

        Returns:
            T: The deserialized instance.

        Raises:
            ValueError: If the format is unsupported or the text does not parse.
            TypeError: If the document root is not a table.
        """
        raw = cls._parse_text(text, fmt=fmt)
        mapping = cls._coerce_root_mapping(raw, fmt=fmt, path=None)
        return cls.from_mapping(mapping, **context)

    @classmethod
    def from_json(cls: type[T], text: str, **context: Any) -> T:
        return cls.deserialize(text, fmt="json", **context)

    @classmethod
    def from_toml(cls: type[T], text: str, **context: Any) -> T:
        return cls.deserialize(text, fmt="toml", **context)

    @classmethod
    def from_file(cls: type[T], path: str | Path, fmt: str | None = None, **context: Any) -> T:
        """
        Builds an instance from a JSON or TOML file.

        Args:
            path (str | Path): The file to read.
            fmt (str | None): The format, inferred from the file suffix when None.
            **context (Any): Passed through to `from_mapping`.

        Returns:
            T: The deserialized instance.
        """
        p = Path(path)
        text = p.read_text(encoding="utf-8")
        fmt = fmt or cls._infer_format_from_suffix(p)
        raw = cls._parse_text(text, fmt=fmt)
        mapping = cls._coerce_root_mapping(raw, fmt=fmt, path=p)
        return cls.from_mapping(mapping, **context)

    # ---- overridable hooks ----

    @classmethod
    def _infer_format_from_suffix(cls, path: Path) -> str:
        suffix = path.suffix.lower()
        match suffix:
            case ".json":
                return "json"
            case ".toml":
                return "toml"
            case _:
                raise ValueError(f"Cannot infer format from extension {suffix!r}")

    @classmethod
    def _parse_text(cls, text: str, *, fmt: str) -> Any:
        """
        Parses text in the given format.

        Raises:
            ValueError: If the format is unrecognized. JSON and TOML syntax errors are both
                `ValueError` subclasses as well.
        """
        match fmt.lower():
            case "json":
                return json.loads(text or "{}")
            case "toml":
                return load_toml_text(text or "")
            case _:
                raise ValueError(f"unrecognized format: {fmt!r}")

    @classmethod
    def _coerce_root_mapping(cls, raw: Any, *, fmt: str, path: Path | None) -> Mapping[str, Any]:
        if isinstance(raw, Mapping):
            return raw
        raise TypeError(
            f"{cls.__name__} expected top-level mapping, got {type(raw)!r} "
            f"from {fmt} {str(path) if path else '<inline>'}")
