from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import tomli
import tomli_w


def load_toml_text(text: str) -> dict[str, Any]:
    """
    Parses TOML text, such as the content of an environment profiles file.

    Args:
        text (str): TOML formatted text.

    Returns:
        dict[str, Any]: The parsed document.

    Raises:
        tomli.TOMLDecodeError: If the text is not valid TOML.
    """
    return tomli.loads(text)


def dump_toml_to_str(data: Mapping[str, Any], indent: int = 2) -> str:
    """
    Serializes a mapping into TOML text.

    TOML has no null value, so callers must drop `None` entries before dumping.

    Args:
        data (Mapping[str, Any]): The document to serialize.
        indent (int): Indentation used for arrays. Defaults to 2.

    Returns:
        str: The TOML text.
    """
    return tomli_w.dumps(data, indent=indent)
