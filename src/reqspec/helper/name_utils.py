from __future__ import annotations

import re

_NAME_RE = re.compile(r"""
    ^
    (?:
        [A-Z0-9]                    # single character name
        |
        [A-Z0-9][A-Z0-9._-]*[A-Z0-9]  # runs of [._-] only between alphanumerics
    )
    $
""", re.VERBOSE | re.IGNORECASE)

_SEPARATOR_RUN_RE = re.compile(r"[-_.]+")


def is_valid_name(name: str) -> bool:
    """
    Checks a project or extra name against the allowed character set.

    Names consist of ASCII letters, digits, `.`, `_` and `-`, and must start and end with a
    letter or digit.

    Args:
        name (str): The name as written.

    Returns:
        bool: True when the name is well-formed.
    """
    return _NAME_RE.match(name) is not None


def canonicalize_name(name: str) -> str:
    """
    Normalizes a project or extra name for comparison.

    The name is lower-cased and every run of `.`, `_` and `-` collapses into a single `-`, so
    `Foo.Bar__baz` and `foo-bar-baz` name the same project.

    Args:
        name (str): The name as written. It is not validated here.

    Returns:
        str: The canonical form.
    """
    return _SEPARATOR_RUN_RE.sub("-", name).lower()
