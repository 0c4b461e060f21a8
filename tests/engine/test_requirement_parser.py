"""Tests for the dependency specifier parser."""

from __future__ import annotations

import pytest

from reqspec.engine.requirement_parser import parse_requirement
from reqspec.model.errors import InvalidMarker, InvalidRequirement, InvalidSpecifier
from reqspec.model.specifier.specifier_model import VersionSpecifiers


class TestValidRequirements:

    def test_full_requirement(self) -> None:
        req = parse_requirement('requests[security,tests]>=2.8.1,==2.8.*; python_version > "3.8"')
        assert req.name == "requests"
        assert req.extras == frozenset({"security", "tests"})
        assert req.specifiers == VersionSpecifiers.parse(">=2.8.1,==2.8.*")
        assert req.url is None
        assert str(req.marker) == 'python_version > "3.8"'

    def test_name_only(self) -> None:
        req = parse_requirement("  A  ")
        assert req.name == "a"
        assert not req.specifiers
        assert req.marker is None

    def test_parenthesized_specifiers(self) -> None:
        req = parse_requirement("name (>=1.0, <2.0) ; os_name == 'nt'")
        assert req.specifiers == VersionSpecifiers.parse(">=1.0,<2.0")
        assert str(req.marker) == 'os_name == "nt"'

    def test_url(self) -> None:
        req = parse_requirement("pip @ https://github.com/pypa/pip/archive/1.3.1.zip#sha1=da9234ee")
        assert req.url == "https://github.com/pypa/pip/archive/1.3.1.zip#sha1=da9234ee"
        assert not req.specifiers

    def test_url_with_marker(self) -> None:
        req = parse_requirement("name @ file:///path/to/name.whl ; extra == 'local'")
        assert req.url == "file:///path/to/name.whl"
        assert str(req.marker) == 'extra == "local"'

    def test_url_keeps_inner_semicolons(self) -> None:
        req = parse_requirement("name @ https://example.org/a;b/name.zip")
        assert req.url == "https://example.org/a;b/name.zip"

    def test_marker_without_specifiers(self) -> None:
        req = parse_requirement("name;python_version<'3.9'")
        assert str(req.marker) == 'python_version < "3.9"'

    def test_single_character_names(self) -> None:
        assert parse_requirement("a[b]").extras == frozenset({"b"})


class TestInvalidRequirements:

    @pytest.mark.parametrize(("text", "fragment"), [
        ("", "Expected a package name"),
        ("-foo", "starting with an alphanumeric"),
        ("foo-", "must end with an alphanumeric"),
        ("foo bar", "Expected one of"),
        ("foo[bar", "Missing closing bracket"),
        ("foo[bar,]", "starting the extra name"),
        ("foo[bar baz]", "Expected either ','"),
        ("foo[bar!]", "Invalid character in extras name"),
        ("foo (>=1.0", "Missing closing parenthesis"),
        ("foo>=1.0,", "Expected a version specifier"),
        ("foo @ ", "Expected a URL"),
        ("foo @ https://example.org/foo.zip; os_name == 'nt'", "Missing space before ';'"),
        ("foo @ https://example.org/foo.zip >=1.0", "not both"),
        ("foo>=1.0 @ https://example.org/foo.zip", "not both"),
        ("foo>=1.0; ", "Expected a marker value"),
        ("foo; os_name == 'nt' trailing", "Expected end of input"),
    ])
    def test_rejected(self, text: str, fragment: str) -> None:
        with pytest.raises(InvalidRequirement) as excinfo:
            parse_requirement(text)
        assert fragment in excinfo.value.reason
        assert excinfo.value.text == text

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_requirement("foo[")

    def test_marker_error_is_chained_with_full_span(self) -> None:
        text = "name; python_version >= '3.8' and"
        with pytest.raises(InvalidRequirement) as excinfo:
            parse_requirement(text)
        err = excinfo.value
        assert isinstance(err.__cause__, InvalidMarker)
        assert err.start == len(text)

    def test_unknown_marker_variable_span(self) -> None:
        text = "name; python_versoin >= '3.8'"
        with pytest.raises(InvalidRequirement) as excinfo:
            parse_requirement(text)
        assert excinfo.value.start == text.index("python_versoin")

    def test_specifier_error_is_chained_with_full_span(self) -> None:
        text = "name>=1.0,<2.0.x"
        with pytest.raises(InvalidRequirement) as excinfo:
            parse_requirement(text)
        err = excinfo.value
        assert isinstance(err.__cause__, InvalidSpecifier)
        assert err.start == text.index(".x")

    def test_rendered_error_underlines_the_problem(self) -> None:
        with pytest.raises(InvalidRequirement) as excinfo:
            parse_requirement("foo bar")
        lines = str(excinfo.value).splitlines()
        assert lines[1] == "foo bar"
        assert lines[2] == "    ^"
