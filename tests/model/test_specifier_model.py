"""Tests for version specifiers and specifier sets."""

from __future__ import annotations

import sys

import pytest

from reqspec.model.errors import InvalidSpecifier
from reqspec.model.specifier.specifier_model import (
    Operator,
    PrereleasePolicy,
    VersionSpecifier,
    VersionSpecifiers,
)
from reqspec.model.version.version_model import Version


def contains(specifiers: str, candidate: str, prereleases=None) -> bool:
    return VersionSpecifiers.parse(specifiers).contains(candidate, prereleases)


class TestParsing:

    def test_single_specifier(self) -> None:
        spec = VersionSpecifier.parse(" >= 1.0 ")
        assert spec.operator is Operator.GREATER_EQUAL
        assert spec.version == Version.parse("1.0")
        assert not spec.wildcard
        assert str(spec) == ">=1.0"

    def test_wildcard(self) -> None:
        spec = VersionSpecifier.parse("==1.2.*")
        assert spec.wildcard
        assert spec.version == Version.parse("1.2")
        assert str(spec) == "==1.2.*"

    def test_arbitrary_equality_keeps_text(self) -> None:
        spec = VersionSpecifier.parse("===foobar")
        assert spec.operator is Operator.ARBITRARY
        assert spec.version is None
        assert spec.operand == "foobar"
        assert str(spec) == "===foobar"

    def test_triple_equals_is_not_double_equals(self) -> None:
        assert VersionSpecifier.parse("===1.0").operator is Operator.ARBITRARY

    def test_set_canonical_text(self) -> None:
        assert str(VersionSpecifiers.parse(">= 1.0 , < 2.0")) == ">=1.0,<2.0"
        assert str(VersionSpecifiers.parse("~=1.4.2,!=1.4.5")) == "~=1.4.2,!=1.4.5"

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_text_is_empty_set(self, text: str) -> None:
        specifiers = VersionSpecifiers.parse(text)
        assert len(specifiers) == 0
        assert not specifiers
        assert str(specifiers) == ""

    def test_direct_construction(self) -> None:
        spec = VersionSpecifier(operator=Operator.LESS, version=Version.parse("2.0"))
        assert spec.operand == "2.0"
        assert str(spec) == "<2.0"


class TestParseErrors:

    @pytest.mark.parametrize("text", [
        "1.0",
        "=>1.0",
        "=1.0",
        ">=",
        ">=1.0 .0",
        "<1.0.*",
        ">=1.0.*",
        "~=1.0.*",
        "==1.0a1.*",
        "==1.0.post1.*",
        "==1.0+local.*",
        ">=1.0+local",
        "<1.0+local",
        "~=1.0+local",
        "~=1",
        "==1.0.x",
    ])
    def test_rejected(self, text: str) -> None:
        with pytest.raises(InvalidSpecifier):
            VersionSpecifier.parse(text)

    def test_local_allowed_with_equality(self) -> None:
        assert VersionSpecifier.parse("==1.0+local").version.local == ("local",)
        assert VersionSpecifier.parse("!=1.0+local").version.local == ("local",)

    def test_empty_element_between_commas(self) -> None:
        with pytest.raises(InvalidSpecifier) as excinfo:
            VersionSpecifiers.parse(">=1.0,,<2")
        assert excinfo.value.start == 6

    def test_span_points_into_full_text(self) -> None:
        with pytest.raises(InvalidSpecifier) as excinfo:
            VersionSpecifiers.parse(">=1.0, <2.0.x")
        assert excinfo.value.text == ">=1.0, <2.0.x"
        assert excinfo.value.start == 11

    def test_direct_construction_validates(self) -> None:
        with pytest.raises(InvalidSpecifier):
            VersionSpecifier(operator=Operator.LESS, version=Version.parse("1.0"), wildcard=True)
        with pytest.raises(InvalidSpecifier):
            VersionSpecifier(operator=Operator.EQUAL, version=None)


class TestComparisonOperators:

    @pytest.mark.parametrize(("specifiers", "candidate", "expected"), [
        (">=1.0,<2.0", "1.5", True),
        (">=1.0,<2.0", "2.0", False),
        (">=1.0,<2.0", "0.9", False),
        ("<=1.0", "1.0", True),
        ("<=1.0", "1.0+local", True),
        ("==1.0", "1.0.0", True),
        ("!=1.0", "1.0.1", True),
        ("!=1.0", "1.0", False),
        ("<3.1", "3.0.1", True),
        (">1.7", "1.7.1", True),
        (">1.7", "1.7+local", False),
    ])
    def test_containment(self, specifiers: str, candidate: str, expected: bool) -> None:
        assert contains(specifiers, candidate) is expected

    def test_strict_less_excludes_pre_releases_of_operand(self) -> None:
        assert not contains("<3.1", "3.1.dev0", True)
        assert not contains("<3.1", "3.1rc1", True)
        assert contains("<3.1", "3.0rc1", True)

    def test_strict_less_with_pre_release_operand(self) -> None:
        assert contains("<3.1rc1", "3.1a1")

    def test_strict_greater_excludes_post_releases_of_operand(self) -> None:
        assert not contains(">1.7", "1.7.post1")
        assert contains(">1.7.post2", "1.7.post3")

    def test_candidate_as_version_object(self) -> None:
        assert VersionSpecifiers.parse(">=1.0").contains(Version.parse("1.2"))

    def test_membership_operator(self) -> None:
        assert "1.5" in VersionSpecifiers.parse(">=1.0")
        assert "0.5" not in VersionSpecifier.parse(">=1.0")


class TestLocalVersions:

    def test_equality_ignores_candidate_local_label(self) -> None:
        assert contains("==1.0", "1.0+local")
        assert not contains("!=1.0", "1.0+local")

    def test_local_operand_requires_exact_match(self) -> None:
        assert contains("==1.0+local", "1.0+local")
        assert not contains("==1.0+local", "1.0")
        assert not contains("==1.0+local", "1.0+other")


class TestWildcards:

    @pytest.mark.parametrize(("candidate", "expected"), [
        ("1.2", True),
        ("1.2.0", True),
        ("1.2.5", True),
        ("1.2.5.post1", True),
        ("1.3", False),
        ("1.20", False),
        ("2.1.2", False),
    ])
    def test_prefix_match(self, candidate: str, expected: bool) -> None:
        assert contains("==1.2.*", candidate) is expected
        assert contains("!=1.2.*", candidate) is not expected

    def test_shorter_candidate_is_padded(self) -> None:
        assert contains("==1.0.*", "1")

    def test_pre_release_under_wildcard(self) -> None:
        assert not contains("==1.2.*", "1.2rc1")
        assert contains("==1.2.*", "1.2rc1", True)

    def test_epoch_must_match(self) -> None:
        assert not contains("==1.*", "1!1.0")


class TestCompatibleRelease:

    @pytest.mark.parametrize(("specifiers", "candidate", "expected"), [
        ("~=2.2", "2.2", True),
        ("~=2.2", "2.3", True),
        ("~=2.2", "2.9.9", True),
        ("~=2.2", "3.0", False),
        ("~=2.2", "2.1", False),
        ("~=1.4.5", "1.4.9", True),
        ("~=1.4.5", "1.5.0", False),
        ("~=1.4.5", "1.4.4", False),
        ("~=2.2.post3", "2.3", True),
        ("~=2.2.post3", "2.2", False),
    ])
    def test_compatible(self, specifiers: str, candidate: str, expected: bool) -> None:
        assert contains(specifiers, candidate) is expected

    def test_equivalent_to_ordered_plus_prefix(self) -> None:
        compatible = VersionSpecifiers.parse("~=1.4.5")
        spelled_out = VersionSpecifiers.parse(">=1.4.5,==1.4.*")
        for candidate in ("1.4.4", "1.4.5", "1.4.7", "1.5", "2.0"):
            assert compatible.contains(candidate) == spelled_out.contains(candidate)


class TestArbitraryEquality:

    def test_raw_text_equality(self) -> None:
        assert contains("===1.0", "1.0")
        assert not contains("===1.0", "1.0.0")
        assert not contains("===1.0", "1.0+local")

    def test_unparseable_candidate(self) -> None:
        assert contains("===foobar", "foobar")
        assert not contains("==1.0", "foobar")
        assert not contains(">=0", "foobar")


class TestPrereleasePolicy:

    def test_coerce(self) -> None:
        assert PrereleasePolicy.coerce(None) is PrereleasePolicy.DEFAULT
        assert PrereleasePolicy.coerce(True) is PrereleasePolicy.INCLUDE
        assert PrereleasePolicy.coerce(False) is PrereleasePolicy.EXCLUDE
        assert PrereleasePolicy.coerce(PrereleasePolicy.EXCLUDE) is PrereleasePolicy.EXCLUDE
        with pytest.raises(TypeError):
            PrereleasePolicy.coerce("yes")  # type: ignore[arg-type]

    def test_default_excludes_pre_releases(self) -> None:
        assert not contains(">=1.0", "2.0a1")
        assert not contains(">=1.0", "2.0.dev1")
        assert contains(">=1.0", "2.0a1", True)
        assert contains(">=1.0", "2.0a1", PrereleasePolicy.INCLUDE)

    def test_pre_release_operand_opts_in(self) -> None:
        assert contains(">=1.0a1", "2.0a1")
        assert contains(">=1.0a1,<3", "2.0b2")

    def test_exclusion_does_not_opt_in(self) -> None:
        assert not VersionSpecifier.parse("!=1.0a1").opts_into_prereleases
        assert not contains("!=1.0a1", "2.0b1")

    def test_exclude_wins_over_opt_in(self) -> None:
        assert not contains(">=1.0a1", "2.0a1", False)

    def test_empty_set(self) -> None:
        empty = VersionSpecifiers()
        assert empty.contains("1.0")
        assert empty.contains("1.0a1")
        assert not empty.contains("1.0a1", PrereleasePolicy.EXCLUDE)

    def test_single_specifier_policy(self) -> None:
        spec = VersionSpecifier.parse(">=1.0")
        assert not spec.contains("2.0rc1")
        assert spec.contains("2.0rc1", True)
        assert VersionSpecifier.parse(">=1.0rc1").contains("2.0rc1")


class TestFilter:

    def test_keeps_input_order(self) -> None:
        specifiers = VersionSpecifiers.parse(">=1.0")
        assert specifiers.filter(["2.0", "0.9", "1.0", "1.5a1"]) == ["2.0", "1.0"]

    def test_falls_back_to_pre_releases(self) -> None:
        specifiers = VersionSpecifiers.parse(">=1.0")
        assert specifiers.filter(["0.9", "1.1a1", "1.2b1"]) == ["1.1a1", "1.2b1"]

    def test_no_fallback_when_excluded(self) -> None:
        assert VersionSpecifiers.parse(">=1.0").filter(["0.9", "1.1a1"], prereleases=False) == []

    def test_include(self) -> None:
        specifiers = VersionSpecifiers.parse(">=1.0")
        assert specifiers.filter(["0.9", "1.0", "1.5a1", "2.0"], prereleases=True) == ["1.0", "1.5a1", "2.0"]

    def test_returns_candidates_as_given(self) -> None:
        candidates = [Version.parse("1.0"), Version.parse("2.0")]
        selected = VersionSpecifiers.parse("<2").filter(candidates)
        assert selected == [candidates[0]]
        assert selected[0] is candidates[0]

    def test_unparseable_candidates_are_skipped(self) -> None:
        assert VersionSpecifiers.parse(">=1.0").filter(["foo", "1.1"]) == ["1.1"]

    def test_empty_set_skips_unparseable_candidates(self) -> None:
        assert VersionSpecifiers.parse("").filter(["1.0", "garbage", "1.0a1"]) == ["1.0", "1.0a1"]
        assert not VersionSpecifiers().contains("garbage")
        assert VersionSpecifiers.parse("===garbage").contains("garbage")

    @pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no integer digit limit")
    def test_oversized_candidate_does_not_match(self) -> None:
        assert not VersionSpecifiers.parse(">=1.0").contains("1" * 5000)
        assert VersionSpecifiers.parse(">=1.0").filter(["1" * 5000, "2.0"]) == ["2.0"]


class TestSetBehaviour:

    def test_equality_ignores_order_and_duplicates(self) -> None:
        left = VersionSpecifiers.parse(">=1.0,<2.0")
        right = VersionSpecifiers.parse("<2.0, >=1.0, >=1.0")
        assert left == right
        assert hash(left) == hash(right)

    def test_operand_equality_is_by_version(self) -> None:
        assert VersionSpecifier.parse(">=1.0") == VersionSpecifier.parse(">=1.0.0")
        assert VersionSpecifier.parse("===1.0") != VersionSpecifier.parse("===1.0.0")

    def test_conjunction(self) -> None:
        combined = VersionSpecifiers.parse(">=1.0") & "<2.0"
        assert combined == VersionSpecifiers.parse(">=1.0,<2.0")
        assert len(combined) == 2
        assert len(combined & VersionSpecifiers.parse("<2.0")) == 2

    def test_iteration(self) -> None:
        specifiers = VersionSpecifiers.parse(">=1.0,!=1.5")
        assert [spec.operator for spec in specifiers] == [Operator.GREATER_EQUAL, Operator.NOT_EQUAL]

    def test_repr(self) -> None:
        assert repr(VersionSpecifiers.parse(">=1.0")) == "<VersionSpecifiers('>=1.0')>"
