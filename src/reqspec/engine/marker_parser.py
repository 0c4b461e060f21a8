"""
Recursive-descent parser for environment markers.

    marker      = marker_or
    marker_or   = marker_and (wsp+ 'or' marker_and)*
    marker_and  = marker_expr (wsp+ 'and' marker_expr)*
    marker_expr = wsp* '(' marker wsp* ')'
                | wsp* operand wsp* operator wsp* operand
    operand     = variable | quoted string | identifier (only against `extra`)
    operator    = '===' | '==' | '!=' | '<=' | '<' | '>=' | '>' | '~=' | 'in' | 'not' wsp+ 'in'
"""
from __future__ import annotations

from reqspec.helper.cursor import Cursor
from reqspec.model.errors import InvalidMarker, ReqspecError
from reqspec.model.marker.marker_model import (
    And,
    Compare,
    Literal,
    Marker,
    MarkerNode,
    MarkerOperator,
    MarkerVariable,
    Operand,
    Or,
    Variable,
)

_SYMBOLIC_OPERATORS = ("===", "==", "!=", "<=", ">=", "~=", "<", ">")
_KEYWORD_STOP = frozenset("<>=!~()'\"")


def parse_marker(text: str) -> Marker:
    """
    Parses a complete marker expression.

    Args:
        text (str): The marker, such as `python_version >= "3.8" and os_name == 'posix'`.

    Returns:
        Marker: The parsed marker.

    Raises:
        InvalidMarker: If the text is not a valid marker. The error points at the offending
            characters.
    """
    cursor = Cursor(text)
    marker = parse_marker_from(cursor, InvalidMarker)
    cursor.eat_whitespace()
    if not cursor.at_end:
        raise InvalidMarker(
            text,
            f"Unexpected character {cursor.peek()!r}, expected 'and', 'or' or end of input",
            start=cursor.pos,
            length=len(cursor.remaining()))
    return marker


def parse_marker_from(cursor: Cursor, error: type[ReqspecError] = InvalidMarker) -> Marker:
    """
    Parses a marker starting at the cursor and stops at the first character that cannot continue it.

    The requirement parser uses this for the clause after `;`, with `error` set to its own error
    class so that spans refer to the full requirement text.

    Args:
        cursor (Cursor): The input position. Advanced past the marker.
        error (type[ReqspecError]): The error class to raise.

    Returns:
        Marker: The parsed marker.
    """
    return Marker(_MarkerParser(cursor, error).parse_or())


class _MarkerParser:

    def __init__(self, cursor: Cursor, error: type[ReqspecError]) -> None:
        self.cursor = cursor
        self.error = error

    def fail(self, reason: str, start: int, length: int = 1) -> ReqspecError:
        return self.error(self.cursor.text, reason, start=start, length=length)

    # ---- boolean structure ----

    def parse_or(self) -> MarkerNode:
        node = self.parse_and()
        while self._eat_keyword("or"):
            node = Or(node, self.parse_and())
        return node

    def parse_and(self) -> MarkerNode:
        node = self.parse_expr()
        while self._eat_keyword("and"):
            node = And(node, self.parse_expr())
        return node

    def _eat_keyword(self, keyword: str) -> bool:
        """Consumes `keyword` when it is the next whitespace-delimited word."""
        cursor = self.cursor
        saved = cursor.pos
        cursor.eat_whitespace()
        word, _ = cursor.peek_while(lambda c: not c.isspace() and c not in "()'\"")
        if word == keyword:
            cursor.pos += len(keyword)
            return True
        cursor.pos = saved
        return False

    def parse_expr(self) -> MarkerNode:
        cursor = self.cursor
        cursor.eat_whitespace()
        open_pos = cursor.eat("(")
        if open_pos is None:
            return self.parse_compare()
        node = self.parse_or()
        cursor.eat_whitespace()
        if cursor.eat(")") is None:
            if cursor.at_end:
                raise self.fail("Missing closing parenthesis (expected ')', found end of input)", open_pos)
            raise self.fail(f"Expected ')' or a boolean operator, found {cursor.peek()!r}", cursor.pos)
        return node

    # ---- comparisons ----

    def parse_compare(self) -> Compare:
        cursor = self.cursor
        cursor.eat_whitespace()
        lhs = self.parse_operand()
        cursor.eat_whitespace()
        operator = self.parse_operator()
        cursor.eat_whitespace()
        rhs = self.parse_operand(bare_allowed=_is_extra(lhs))
        if lhs.bare and not _is_extra(rhs):
            raise self.fail(
                f"Expected a quoted string or a valid marker name, found {lhs.value!r}",
                lhs.start,
                len(lhs.value))
        return Compare(lhs.node, operator, rhs.node)

    def parse_operand(self, bare_allowed: bool = True) -> _ParsedOperand:
        cursor = self.cursor
        start = cursor.pos
        quote = cursor.peek()
        if quote is None:
            raise self.fail("Expected a marker value, found end of input", start)

        if quote in ("'", '"'):
            cursor.next()
            value, _ = cursor.take_while(lambda c: c != quote)
            if cursor.eat(quote) is None:
                raise self.fail(f"Missing closing quote (expected {quote})", start, len(value) + 1)
            return _ParsedOperand(Literal(value), start)

        word, _ = cursor.take_while(lambda c: not c.isspace() and c not in _KEYWORD_STOP)
        if not word:
            raise self.fail(f"Expected a marker value, found {quote!r}", start)
        try:
            variable, deprecated = MarkerVariable.lookup(word)
        except KeyError:
            if bare_allowed:
                return _ParsedOperand(Literal(word), start, bare=True)
            raise self.fail(
                f"Expected a quoted string or a valid marker name, found {word!r}", start, len(word)) from None
        return _ParsedOperand(Variable(variable, word if deprecated else None), start)

    def parse_operator(self) -> MarkerOperator:
        cursor = self.cursor
        start = cursor.pos
        for spelling in _SYMBOLIC_OPERATORS:
            if cursor.eat(spelling) is not None:
                return MarkerOperator(spelling)

        word, _ = cursor.take_while(lambda c: c.isalpha())
        if word == "in":
            return MarkerOperator.IN
        if word == "not":
            if cursor.peek() is None or not cursor.peek().isspace():
                raise self.fail("Expected whitespace after 'not'", cursor.pos)
            cursor.eat_whitespace()
            in_start = cursor.pos
            follow, _ = cursor.take_while(lambda c: c.isalpha())
            if follow != "in":
                raise self.fail("Expected 'in' after 'not'", in_start, max(len(follow), 1))
            return MarkerOperator.NOT_IN

        found, _ = cursor.peek_while(lambda c: not c.isspace() and c not in "'\"")
        found = word + found
        if not found:
            raise self.fail("Expected a marker operator (such as '>=' or 'not in'), found end of input", start)
        raise self.fail(
            f"Expected a valid marker operator (such as '>=' or 'not in'), found {found!r}",
            start,
            len(found))


class _ParsedOperand:
    """An operand together with where it started, for error reporting."""

    __slots__ = ("node", "start", "bare")

    def __init__(self, node: Operand, start: int, bare: bool = False) -> None:
        self.node = node
        self.start = start
        self.bare = bare

    @property
    def value(self) -> str:
        return self.node.value if isinstance(self.node, Literal) else str(self.node)


def _is_extra(operand: _ParsedOperand) -> bool:
    return isinstance(operand.node, Variable) and operand.node.variable is MarkerVariable.EXTRA
