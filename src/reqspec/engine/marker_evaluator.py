from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from reqspec.helper.name_utils import canonicalize_name
from reqspec.model.errors import InvalidSpecifier, InvalidVersion
from reqspec.model.marker.marker_environment_model import MarkerEnvironment
from reqspec.model.marker.marker_model import (
    And,
    Compare,
    Literal,
    Marker,
    MarkerNode,
    MarkerOperator,
    MarkerVariable,
    MarkerWarning,
    MarkerWarningKind,
    Or,
    Variable,
    WarningReporter,
    iter_comparisons,
)
from reqspec.model.specifier.specifier_model import PrereleasePolicy, VersionSpecifier
from reqspec.model.version.version_model import Version

LOGGER = logging.getLogger("reqspec.marker")

_Warn = Callable[[MarkerWarningKind, str], None]

_ORDERING_OPERATORS = frozenset({
    MarkerOperator.LESS,
    MarkerOperator.LESS_EQUAL,
    MarkerOperator.GREATER,
    MarkerOperator.GREATER_EQUAL,
})


def log_warning(warning: MarkerWarning) -> None:
    """The default reporter: logs each diagnostic at WARNING level."""
    LOGGER.warning("%s", warning)


def evaluate(
        marker: Marker,
        environment: MarkerEnvironment,
        extras: Iterable[str] = (),
        reporter: WarningReporter | None = None) -> bool:
    """
    Evaluates a marker against an environment and a set of active extras.

    Comparisons involving `extra` test membership of the (normalized) extra name in `extras`.
    Every other comparison resolves both operands to strings and then compares them as versions
    when they parse as versions, or as plain strings otherwise. The string fallback orders
    lexicographically, so `"3.10" < "3.9"` holds on that path; each time it is taken on an
    operator where version semantics were plausibly intended, a diagnostic is reported.
    Diagnostics never change the result.

    Args:
        marker (Marker): The marker to evaluate.
        environment (MarkerEnvironment): Values of the environment variables.
        extras (Iterable[str]): The active extras.
        reporter (WarningReporter | None): Receives diagnostics. Defaults to logging them on the
            `reqspec.marker` logger.

    Returns:
        bool: The value of the marker.
    """
    report = reporter or log_warning
    active = frozenset(canonicalize_name(extra) for extra in extras)
    _report_deprecated_names(marker.tree, report)
    return _evaluate_node(marker.tree, environment, active, report)


def evaluate_collect_warnings(
        marker: Marker,
        environment: MarkerEnvironment,
        extras: Iterable[str] = ()) -> tuple[bool, list[MarkerWarning]]:
    """
    Evaluates a marker and returns the diagnostics instead of logging them.

    Returns:
        tuple[bool, list[MarkerWarning]]: The result and the diagnostics, in the order produced.
    """
    warnings: list[MarkerWarning] = []
    result = evaluate(marker, environment, extras, reporter=warnings.append)
    return result, warnings


def evaluate_extras_and_python_versions(
        marker: Marker,
        extras: Iterable[str],
        python_versions: Iterable[Version]) -> bool:
    """
    Partially evaluates a marker using only the extras and a set of candidate Python versions.

    This answers "could this requirement apply in some environment" during universal resolution,
    where the extras are known and the Python versions come from `requires-python`, but the
    platform is not fixed. Only `extra == / != "..."` and `python_version <op> "..."` comparisons
    (in either operand order) are evaluated; a `python_version` comparison holds when any of the
    candidate versions satisfies it. Every other comparison, and any comparison that cannot be
    interpreted, counts as true. No diagnostics are produced.

    Args:
        marker (Marker): The marker.
        extras (Iterable[str]): The active extras.
        python_versions (Iterable[Version]): Candidate values of `python_version`.

    Returns:
        bool: False only when the marker cannot hold for any of the candidates.
    """
    active = frozenset(canonicalize_name(extra) for extra in extras)
    versions = tuple(python_versions)
    return _evaluate_partial(marker.tree, active, versions)


# ------------------------------------------------------------------ #
# Full evaluation
# ------------------------------------------------------------------ #

def _evaluate_node(
        node: MarkerNode,
        environment: MarkerEnvironment,
        extras: frozenset[str],
        report: WarningReporter) -> bool:
    match node:
        case And(left, right):
            left_value = _evaluate_node(left, environment, extras, report)
            right_value = _evaluate_node(right, environment, extras, report)
            return left_value and right_value
        case Or(left, right):
            left_value = _evaluate_node(left, environment, extras, report)
            right_value = _evaluate_node(right, environment, extras, report)
            return left_value or right_value
        case Compare():
            return _evaluate_compare(node, environment, extras, report)
    raise TypeError(f"Not a marker node: {node!r}")


def _report_deprecated_names(node: MarkerNode, report: WarningReporter) -> None:
    for compare in iter_comparisons(node):
        for variable in compare.variables():
            if variable.deprecated_name is not None:
                report(MarkerWarning(
                    MarkerWarningKind.DEPRECATED_MARKER_NAME,
                    f"{variable.deprecated_name} is deprecated in favor of {variable.variable.value}",
                    str(compare)))


def _evaluate_compare(
        compare: Compare,
        environment: MarkerEnvironment,
        extras: frozenset[str],
        report: WarningReporter) -> bool:
    lhs, operator, rhs = compare.lhs, compare.operator, compare.rhs

    def warn(kind: MarkerWarningKind, message: str) -> None:
        report(MarkerWarning(kind, message, str(compare)))

    if _is_extra(lhs) or _is_extra(rhs):
        return _evaluate_extra(compare, extras, warn)

    if isinstance(lhs, Variable) and isinstance(rhs, Variable):
        warn(MarkerWarningKind.MARKER_MARKER_COMPARISON,
             f"Comparing two markers with each other ({lhs} and {rhs}) doesn't make much sense")
    elif isinstance(lhs, Literal) and isinstance(rhs, Literal):
        warn(MarkerWarningKind.STRING_STRING_COMPARISON,
             f"Comparing two quoted strings with each other ({lhs} and {rhs}) doesn't make much sense")

    left = _resolve(lhs, environment)
    right = _resolve(rhs, environment)

    match operator:
        case MarkerOperator.IN:
            return left in right
        case MarkerOperator.NOT_IN:
            return left not in right
        case MarkerOperator.ARBITRARY:
            return left == right

    version_result = _compare_versions(left, operator, right)
    if version_result is not None:
        return version_result

    version_valued = any(
        isinstance(operand, Variable) and operand.variable.is_version_valued for operand in (lhs, rhs))
    if version_valued and (operator in _ORDERING_OPERATORS or operator is MarkerOperator.COMPATIBLE):
        warn(MarkerWarningKind.VERSION_PARSE_FALLBACK,
             f"Expected versions to compare with {operator.value}, found {left!r} and {right!r}; "
             "falling back to string comparison")
    return _compare_strings(left, operator, right, warn)


def _evaluate_extra(compare: Compare, extras: frozenset[str], warn: _Warn) -> bool:
    other = compare.rhs if _is_extra(compare.lhs) else compare.lhs
    if not isinstance(other, Literal):
        warn(MarkerWarningKind.EXTRA_INVALID_COMPARISON,
             "Comparing extra with something other than a quoted string is wrong, evaluating to false")
        return False
    match compare.operator:
        case MarkerOperator.EQUAL:
            return canonicalize_name(other.value) in extras
        case MarkerOperator.NOT_EQUAL:
            return canonicalize_name(other.value) not in extras
    warn(MarkerWarningKind.EXTRA_INVALID_COMPARISON,
         f"Comparing extra with {compare.operator.value} is wrong (only == and != are meaningful), "
         "evaluating to false")
    return False


def _compare_versions(left: str, operator: MarkerOperator, right: str) -> bool | None:
    """
    Compares two operand values with version semantics.

    The operator and the right value are first turned into a specifier, which gives wildcards
    (`== "3.7.*"`) and `~=` their meaning. When that is not possible but both sides are versions,
    the version order is used directly.

    Returns:
        bool | None: The result, or None when the left value is not a version.
    """
    try:
        candidate = Version.parse(left)
    except InvalidVersion:
        return None

    version_operator = operator.version_operator
    try:
        specifier = VersionSpecifier.parse(f"{version_operator.value}{right}")
    except InvalidSpecifier:
        specifier = None
    if specifier is not None:
        return specifier.contains(candidate, PrereleasePolicy.INCLUDE)

    try:
        other = Version.parse(right)
    except InvalidVersion:
        return None
    match operator:
        case MarkerOperator.EQUAL:
            return candidate == other
        case MarkerOperator.NOT_EQUAL:
            return candidate != other
        case MarkerOperator.LESS:
            return candidate < other
        case MarkerOperator.LESS_EQUAL:
            return candidate <= other
        case MarkerOperator.GREATER:
            return candidate > other
        case MarkerOperator.GREATER_EQUAL:
            return candidate >= other
    return None


def _compare_strings(left: str, operator: MarkerOperator, right: str, warn: _Warn) -> bool:
    match operator:
        case MarkerOperator.EQUAL:
            return left == right
        case MarkerOperator.NOT_EQUAL:
            return left != right
        case MarkerOperator.COMPATIBLE:
            warn(MarkerWarningKind.LEXICOGRAPHIC_COMPARISON,
                 f"Can't compare {left!r} and {right!r} with ~=, evaluating to false")
            return False

    warn(MarkerWarningKind.LEXICOGRAPHIC_COMPARISON, f"Comparing {left!r} and {right!r} lexicographically")
    match operator:
        case MarkerOperator.LESS:
            return left < right
        case MarkerOperator.LESS_EQUAL:
            return left <= right
        case MarkerOperator.GREATER:
            return left > right
        case MarkerOperator.GREATER_EQUAL:
            return left >= right
    raise AssertionError(f"unhandled marker operator {operator!r}")


def _resolve(operand: Variable | Literal, environment: MarkerEnvironment) -> str:
    if isinstance(operand, Literal):
        return operand.value
    return environment.get(operand.variable)


def _is_extra(operand: Variable | Literal) -> bool:
    return isinstance(operand, Variable) and operand.variable is MarkerVariable.EXTRA


# ------------------------------------------------------------------ #
# Partial evaluation
# ------------------------------------------------------------------ #

def _evaluate_partial(node: MarkerNode, extras: frozenset[str], versions: tuple[Version, ...]) -> bool:
    match node:
        case And(left, right):
            left_value = _evaluate_partial(left, extras, versions)
            right_value = _evaluate_partial(right, extras, versions)
            return left_value and right_value
        case Or(left, right):
            left_value = _evaluate_partial(left, extras, versions)
            right_value = _evaluate_partial(right, extras, versions)
            return left_value or right_value
        case Compare():
            return _evaluate_partial_compare(node, extras, versions)
    raise TypeError(f"Not a marker node: {node!r}")


def _evaluate_partial_compare(compare: Compare, extras: frozenset[str], versions: tuple[Version, ...]) -> bool:
    lhs, operator, rhs = compare.lhs, compare.operator, compare.rhs

    if _is_extra(lhs) or _is_extra(rhs):
        other = rhs if _is_extra(lhs) else lhs
        if not isinstance(other, Literal):
            return True
        match operator:
            case MarkerOperator.EQUAL:
                return canonicalize_name(other.value) in extras
            case MarkerOperator.NOT_EQUAL:
                return canonicalize_name(other.value) not in extras
        return True

    version_operator = operator.version_operator
    if version_operator is None:
        return True

    if _is_python_version(lhs) and isinstance(rhs, Literal):
        try:
            specifier = VersionSpecifier.parse(f"{version_operator.value}{rhs.value}")
        except InvalidSpecifier:
            return True
        return any(specifier.contains(version, PrereleasePolicy.INCLUDE) for version in versions)

    if isinstance(lhs, Literal) and _is_python_version(rhs):
        try:
            literal = Version.parse(lhs.value)
        except InvalidVersion:
            return True
        for version in versions:
            try:
                specifier = VersionSpecifier(operator=version_operator, version=version)
            except InvalidSpecifier:
                return True
            if specifier.contains(literal, PrereleasePolicy.INCLUDE):
                return True
        return False

    return True


def _is_python_version(operand: Variable | Literal) -> bool:
    return isinstance(operand, Variable) and operand.variable is MarkerVariable.PYTHON_VERSION
