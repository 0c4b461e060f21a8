"""Tests for the environment marker parser and canonical marker text."""

from __future__ import annotations

import pytest

from reqspec.engine.marker_parser import parse_marker
from reqspec.model.errors import InvalidMarker
from reqspec.model.marker.marker_model import (
    And,
    Compare,
    Literal,
    Marker,
    MarkerOperator,
    MarkerVariable,
    Or,
    Variable,
)

PY38 = Compare(Variable(MarkerVariable.PYTHON_VERSION), MarkerOperator.GREATER_EQUAL, Literal("3.8"))
POSIX = Compare(Variable(MarkerVariable.OS_NAME), MarkerOperator.EQUAL, Literal("posix"))
LINUX = Compare(Variable(MarkerVariable.SYS_PLATFORM), MarkerOperator.EQUAL, Literal("linux"))


class TestStructure:

    def test_single_comparison(self) -> None:
        assert parse_marker("python_version >= '3.8'").tree == PY38

    def test_and_binds_tighter_than_or(self) -> None:
        marker = parse_marker("python_version >= '3.8' or os_name == 'posix' and sys_platform == 'linux'")
        assert marker.tree == Or(PY38, And(POSIX, LINUX))

    def test_left_associative(self) -> None:
        marker = parse_marker("python_version >= '3.8' and os_name == 'posix' and sys_platform == 'linux'")
        assert marker.tree == And(And(PY38, POSIX), LINUX)

    def test_parentheses(self) -> None:
        marker = parse_marker("(python_version >= '3.8' or os_name == 'posix') and sys_platform == 'linux'")
        assert marker.tree == And(Or(PY38, POSIX), LINUX)

    def test_redundant_parentheses(self) -> None:
        assert parse_marker("((python_version >= '3.8'))").tree == PY38

    def test_whitespace_is_flexible(self) -> None:
        assert parse_marker("  python_version>='3.8'  ").tree == PY38

    @pytest.mark.parametrize(("text", "operator"), [
        ("os_name == 'a'", MarkerOperator.EQUAL),
        ("os_name != 'a'", MarkerOperator.NOT_EQUAL),
        ("python_version < '3'", MarkerOperator.LESS),
        ("python_version <= '3'", MarkerOperator.LESS_EQUAL),
        ("python_version > '3'", MarkerOperator.GREATER),
        ("python_version >= '3'", MarkerOperator.GREATER_EQUAL),
        ("python_version ~= '3.1'", MarkerOperator.COMPATIBLE),
        ("python_version === '3.1'", MarkerOperator.ARBITRARY),
        ("'linux' in sys_platform", MarkerOperator.IN),
        ("'linux' not   in sys_platform", MarkerOperator.NOT_IN),
    ])
    def test_operators(self, text: str, operator: MarkerOperator) -> None:
        tree = parse_marker(text).tree
        assert isinstance(tree, Compare)
        assert tree.operator is operator

    def test_deprecated_dotted_names(self) -> None:
        tree = parse_marker("os.name == 'nt'").tree
        assert tree.lhs == Variable(MarkerVariable.OS_NAME)
        assert tree.lhs.deprecated_name == "os.name"
        assert str(tree) == 'os_name == "nt"'

    def test_bare_identifier_against_extra(self) -> None:
        assert parse_marker("extra == test").tree.rhs == Literal("test")
        assert parse_marker("test == extra").tree.lhs == Literal("test")

    def test_marker_parse_classmethod(self) -> None:
        assert Marker.parse("python_version >= '3.8'") == parse_marker("python_version >= '3.8'")


class TestCanonicalText:

    @pytest.mark.parametrize(("text", "expected"), [
        ("python_version>='3.8'", 'python_version >= "3.8"'),
        ("os_name == 'a\"b'", "os_name == 'a\"b'"),
        ("'linux' not  in sys_platform", '"linux" not in sys_platform'),
        ("(os_name == 'a' or os_name == 'b') and os_name == 'c'",
         '(os_name == "a" or os_name == "b") and os_name == "c"'),
        ("os_name == 'a' and (os_name == 'b' and os_name == 'c')",
         'os_name == "a" and (os_name == "b" and os_name == "c")'),
        ("os_name == 'a' or (os_name == 'b' or os_name == 'c')",
         'os_name == "a" or (os_name == "b" or os_name == "c")'),
        ("os_name == 'a' or os_name == 'b' and os_name == 'c'",
         'os_name == "a" or os_name == "b" and os_name == "c"'),
        ("extra == test", 'extra == "test"'),
    ])
    def test_rendering(self, text: str, expected: str) -> None:
        assert str(parse_marker(text)) == expected

    @pytest.mark.parametrize("text", [
        "(os_name == 'a' or os_name == 'b') and (os_name == 'c' or os_name == 'd')",
        "os_name == 'a' and (os_name == 'b' and os_name == 'c') or extra == 'x'",
        "python_version ~= '3.8' or platform_machine === 'x86_64'",
    ])
    def test_rendering_reparses_to_same_tree(self, text: str) -> None:
        marker = parse_marker(text)
        assert parse_marker(str(marker)) == marker

    def test_combining_markers(self) -> None:
        left = parse_marker("os_name == 'a'")
        right = parse_marker("os_name == 'b' or os_name == 'c'")
        assert str(left & right) == 'os_name == "a" and (os_name == "b" or os_name == "c")'
        assert str(left | right) == 'os_name == "a" or (os_name == "b" or os_name == "c")'

    def test_comparisons_in_order(self) -> None:
        marker = parse_marker("os_name == 'a' and (sys_platform == 'b' or python_version > '3')")
        assert [str(c.lhs) for c in marker.comparisons()] == ["os_name", "sys_platform", "python_version"]

    def test_repr(self) -> None:
        assert repr(parse_marker("os_name=='nt'")) == "<Marker('os_name == \"nt\"')>"


class TestInvalidMarkers:

    @pytest.mark.parametrize(("text", "fragment"), [
        ("", "found end of input"),
        ("os_name", "found end of input"),
        ("os_name ==", "Expected a marker value"),
        ("python_version >= '3.8", "Missing closing quote"),
        ("(os_name == 'nt'", "Missing closing parenthesis"),
        ("(os_name == 'nt' os_name", "Expected ')'"),
        ("os_name = 'nt'", "Expected a valid marker operator"),
        ("os_name not 'nt'", "Expected 'in' after 'not'"),
        ("os_name == posix", "Expected a quoted string or a valid marker name"),
        ("python_versoin == '3.8'", "Expected a quoted string or a valid marker name"),
        ("os_name == 'nt' xor os_name == 'posix'", "Unexpected character"),
        ("os_name == 'nt' and", "Expected a marker value"),
    ])
    def test_rejected(self, text: str, fragment: str) -> None:
        with pytest.raises(InvalidMarker) as excinfo:
            parse_marker(text)
        assert fragment in excinfo.value.reason

    def test_unknown_variable_span(self) -> None:
        with pytest.raises(InvalidMarker) as excinfo:
            parse_marker("os_name == 'nt' and python_versoin == '3.8'")
        err = excinfo.value
        assert err.start == 20
        assert err.length == len("python_versoin")

    def test_trailing_text_span(self) -> None:
        with pytest.raises(InvalidMarker) as excinfo:
            parse_marker("os_name == 'nt' xor")
        assert excinfo.value.start == 16
