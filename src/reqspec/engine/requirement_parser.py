"""
Parser for dependency specifiers.

    specification = wsp* name wsp* extras? wsp* clause? wsp* (';' marker)? wsp*
    extras        = '[' wsp* (extra (wsp* ',' wsp* extra)*)? wsp* ']'
    clause        = '@' wsp* url              (url runs until whitespace)
                  | '(' specifiers ')'
                  | specifiers                (runs until ';' or end of input)

A marker after a URL must be separated from it by whitespace, since `;` is a legal URL character.
"""
from __future__ import annotations

from reqspec.engine.marker_parser import parse_marker_from
from reqspec.helper.cursor import Cursor
from reqspec.model.errors import InvalidMarker, InvalidRequirement, InvalidSpecifier
from reqspec.model.marker.marker_model import Marker
from reqspec.model.requirement.requirement_model import Requirement
from reqspec.model.specifier.specifier_model import VersionSpecifier, VersionSpecifiers

_SPECIFIER_START = frozenset("<=>~!")


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char in "-_.")


def parse_requirement(text: str) -> Requirement:
    """
    Parses a dependency specifier such as `requests[security]>=2.8.1; python_version > "3.8"`.

    Args:
        text (str): The requirement text.

    Returns:
        Requirement: The parsed requirement, with `source` set to `text`.

    Raises:
        InvalidRequirement: If the text is malformed. The error carries the span of the problem
            within `text`; errors in the specifier or marker clause are chained as the cause.
    """
    cursor = Cursor(text)
    cursor.eat_whitespace()

    raw_name = _parse_name(cursor)
    cursor.eat_whitespace()
    extras = _parse_extras(cursor)
    cursor.eat_whitespace()

    specifiers = VersionSpecifiers()
    url: str | None = None
    char = cursor.peek()
    if char == "@":
        cursor.next()
        url = _parse_url(cursor)
    elif char == "(":
        specifiers = _parse_parenthesized_specifiers(cursor)
    elif char is not None and char in _SPECIFIER_START:
        specifiers = _parse_specifiers(cursor, until=";")
    elif char is not None and char != ";":
        raise InvalidRequirement(
            text,
            f"Expected one of '@', '(', '<', '=', '>', '~', '!', ';', found {char!r}",
            start=cursor.pos)

    cursor.eat_whitespace()
    marker: Marker | None = None
    if cursor.peek() == ";":
        cursor.next()
        try:
            marker = parse_marker_from(cursor)
        except InvalidMarker as err:
            raise InvalidRequirement(text, err.reason, start=err.start, length=err.length) from err

    cursor.eat_whitespace()
    if not cursor.at_end:
        expected = "end of input" if marker is not None else "end of input or ';'"
        if url is not None and marker is None and cursor.remaining().startswith(("<", "=", ">", "~", "!")):
            reason = "A requirement can have either version specifiers or a URL, not both"
        else:
            reason = f"Expected {expected}, found {cursor.peek()!r}"
        raise InvalidRequirement(text, reason, start=cursor.pos, length=len(cursor.remaining()))

    return Requirement(
        name=raw_name,
        extras=frozenset(extras),
        specifiers=specifiers,
        url=url,
        marker=marker,
        source=text)


def _parse_name(cursor: Cursor) -> str:
    text = cursor.text
    start = cursor.pos
    first = cursor.peek()
    if first is None:
        raise InvalidRequirement(text, "Expected a package name, found end of input", start=start)
    if not (first.isascii() and first.isalnum()):
        raise InvalidRequirement(
            text, f"Expected a package name starting with an alphanumeric character, found {first!r}", start=start)
    name, _ = cursor.take_while(_is_name_char)
    if not name[-1].isalnum():
        raise InvalidRequirement(
            text,
            f"Package name must end with an alphanumeric character, not {name[-1]!r}",
            start=start + len(name) - 1)
    return name


def _parse_extras(cursor: Cursor) -> list[str]:
    text = cursor.text
    bracket = cursor.eat("[")
    if bracket is None:
        return []

    extras: list[str] = []
    cursor.eat_whitespace()
    if cursor.eat("]") is not None:
        return extras

    while True:
        cursor.eat_whitespace()
        start = cursor.pos
        first = cursor.peek()
        if first is None:
            raise InvalidRequirement(text, "Missing closing bracket (expected ']', found end of input)", start=bracket)
        if not (first.isascii() and first.isalnum()):
            raise InvalidRequirement(
                text, f"Expected an alphanumeric character starting the extra name, found {first!r}", start=start)
        extra, _ = cursor.take_while(_is_name_char)
        if not extra[-1].isalnum():
            raise InvalidRequirement(
                text,
                f"Extra name must end with an alphanumeric character, not {extra[-1]!r}",
                start=start + len(extra) - 1)
        extras.append(extra)

        following = cursor.peek()
        if following is not None and following not in ",]" and not following.isspace():
            raise InvalidRequirement(
                text,
                "Invalid character in extras name, expected an alphanumeric character, "
                f"'-', '_', '.', ',' or ']', found {following!r}",
                start=cursor.pos)
        cursor.eat_whitespace()
        match cursor.next():
            case ",":
                continue
            case "]":
                return extras
            case None:
                raise InvalidRequirement(
                    text, "Missing closing bracket (expected ']', found end of input)", start=bracket)
            case other:
                raise InvalidRequirement(
                    text,
                    f"Expected either ',' (separating extras) or ']' (ending the extras section), found {other!r}",
                    start=cursor.pos - 1)


def _parse_url(cursor: Cursor) -> str:
    cursor.eat_whitespace()
    url, start = cursor.take_while(lambda c: not c.isspace())
    if not url:
        raise InvalidRequirement(cursor.text, "Expected a URL after '@'", start=start)
    if url.endswith(";"):
        raise InvalidRequirement(
            cursor.text,
            "Missing space before ';', the marker would be read as part of the URL",
            start=start + len(url) - 1)
    return url


def _parse_specifiers(cursor: Cursor, until: str) -> VersionSpecifiers:
    """
    Parses comma separated specifiers up to (not including) a character in `until` or the end.

    Each element is parsed with its own span, so errors point at the offending specifier
    within the whole requirement.
    """
    text = cursor.text
    specifiers: list[VersionSpecifier] = []
    while True:
        piece, start = cursor.take_while(lambda c: c not in until and c != ",")
        if not piece.strip():
            raise InvalidRequirement(text, "Expected a version specifier", start=start)
        if "@" in piece:
            raise InvalidRequirement(
                text,
                "A requirement can have either version specifiers or a URL, not both",
                start=start + piece.index("@"))
        try:
            specifiers.append(VersionSpecifier.parse(piece))
        except InvalidSpecifier as err:
            raise InvalidRequirement(
                text,
                err.reason,
                start=start + (err.start or 0),
                length=err.length if err.start is not None else len(piece)) from err
        if cursor.eat(",") is None:
            return VersionSpecifiers(tuple(specifiers))


def _parse_parenthesized_specifiers(cursor: Cursor) -> VersionSpecifiers:
    text = cursor.text
    paren = cursor.eat("(")
    if ")" not in cursor.remaining():
        raise InvalidRequirement(
            text, "Missing closing parenthesis (expected ')', found end of input)", start=paren)
    specifiers = _parse_specifiers(cursor, until=")")
    cursor.eat(")")
    return specifiers
