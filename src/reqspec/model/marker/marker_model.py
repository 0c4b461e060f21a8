from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from typing_extensions import Self

from reqspec.model.specifier.specifier_model import Operator

if TYPE_CHECKING:
    from reqspec.model.marker.marker_environment_model import MarkerEnvironment
    from reqspec.model.version.version_model import Version


class MarkerVariable(str, Enum):
    """
    The closed set of variables a marker can refer to.

    Every variable except `extra` is looked up in a MarkerEnvironment. `extra` is resolved against
    the active extras of the dependency edge being evaluated instead.
    """
    IMPLEMENTATION_NAME = "implementation_name"
    IMPLEMENTATION_VERSION = "implementation_version"
    OS_NAME = "os_name"
    PLATFORM_MACHINE = "platform_machine"
    PLATFORM_PYTHON_IMPLEMENTATION = "platform_python_implementation"
    PLATFORM_RELEASE = "platform_release"
    PLATFORM_SYSTEM = "platform_system"
    PLATFORM_VERSION = "platform_version"
    PYTHON_FULL_VERSION = "python_full_version"
    PYTHON_VERSION = "python_version"
    SYS_PLATFORM = "sys_platform"
    EXTRA = "extra"

    @property
    def is_version_valued(self) -> bool:
        """True for the variables whose values are versions, such as `python_version`."""
        return self in _VERSION_VALUED

    @classmethod
    def lookup(cls, name: str) -> tuple[MarkerVariable, bool]:
        """
        Resolves a variable name as written in a marker.

        Args:
            name (str): The name, either a current one or a deprecated dotted one such as
                `sys.platform`.

        Returns:
            tuple[MarkerVariable, bool]: The variable, and whether the name was a deprecated
                spelling.

        Raises:
            KeyError: If the name is not a marker variable.
        """
        if name in _DEPRECATED_NAMES:
            return _DEPRECATED_NAMES[name], True
        try:
            return cls(name), False
        except ValueError:
            raise KeyError(name) from None


_VERSION_VALUED = frozenset({
    MarkerVariable.IMPLEMENTATION_VERSION,
    MarkerVariable.PYTHON_FULL_VERSION,
    MarkerVariable.PYTHON_VERSION,
})

_DEPRECATED_NAMES = {
    "os.name": MarkerVariable.OS_NAME,
    "sys.platform": MarkerVariable.SYS_PLATFORM,
    "platform.machine": MarkerVariable.PLATFORM_MACHINE,
    "platform.python_implementation": MarkerVariable.PLATFORM_PYTHON_IMPLEMENTATION,
    "platform.version": MarkerVariable.PLATFORM_VERSION,
}


class MarkerOperator(str, Enum):
    """
    Comparison operators of the marker language.

    `not in` may be written with any amount of whitespace between the two words; the value here
    is the canonical spelling.
    """
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    COMPATIBLE = "~="
    ARBITRARY = "==="
    IN = "in"
    NOT_IN = "not in"

    @property
    def version_operator(self) -> Operator | None:
        """The specifier operator with the same meaning, or None for `in` and `not in`."""
        return _VERSION_OPERATORS.get(self)


_VERSION_OPERATORS = {
    MarkerOperator.EQUAL: Operator.EQUAL,
    MarkerOperator.NOT_EQUAL: Operator.NOT_EQUAL,
    MarkerOperator.LESS: Operator.LESS,
    MarkerOperator.LESS_EQUAL: Operator.LESS_EQUAL,
    MarkerOperator.GREATER: Operator.GREATER,
    MarkerOperator.GREATER_EQUAL: Operator.GREATER_EQUAL,
    MarkerOperator.COMPATIBLE: Operator.COMPATIBLE,
    MarkerOperator.ARBITRARY: Operator.ARBITRARY,
}


# ------------------------------------------------------------------ #
# Expression tree
# ------------------------------------------------------------------ #

@dataclass(slots=True, frozen=True)
class Variable:
    """
    A reference to a marker variable.

    Attributes:
        variable (MarkerVariable): The referenced variable.
        deprecated_name (str | None): The deprecated dotted spelling used in the source text, if
            any. Not part of equality.
    """
    variable: MarkerVariable
    deprecated_name: str | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.variable.value


@dataclass(slots=True, frozen=True)
class Literal:
    """A quoted string, or the bare identifier compared with `extra`."""
    value: str

    def __str__(self) -> str:
        # there are no escapes in marker strings, so pick the quote that does not occur
        quote = "'" if '"' in self.value else '"'
        return f"{quote}{self.value}{quote}"


Operand = Variable | Literal


@dataclass(slots=True, frozen=True)
class Compare:
    """
    A leaf comparison such as `python_version >= "3.8"`.

    Attributes:
        lhs (Variable | Literal): The left operand.
        operator (MarkerOperator): The comparison.
        rhs (Variable | Literal): The right operand.
    """
    lhs: Operand
    operator: MarkerOperator
    rhs: Operand

    def variables(self) -> Iterator[Variable]:
        for operand in (self.lhs, self.rhs):
            if isinstance(operand, Variable):
                yield operand

    def __str__(self) -> str:
        return f"{self.lhs} {self.operator.value} {self.rhs}"


@dataclass(slots=True, frozen=True)
class And:
    left: MarkerNode
    right: MarkerNode

    def __str__(self) -> str:
        right = f"({self.right})" if isinstance(self.right, (And, Or)) else str(self.right)
        return f"{_wrap_or(self.left)} and {right}"


@dataclass(slots=True, frozen=True)
class Or:
    left: MarkerNode
    right: MarkerNode

    def __str__(self) -> str:
        right = f"({self.right})" if isinstance(self.right, Or) else str(self.right)
        return f"{self.left} or {right}"


MarkerNode = Compare | And | Or


def _wrap_or(node: MarkerNode) -> str:
    return f"({node})" if isinstance(node, Or) else str(node)


def iter_comparisons(node: MarkerNode) -> Iterator[Compare]:
    """Yields the leaf comparisons of a tree from left to right."""
    match node:
        case Compare():
            yield node
        case And(left, right) | Or(left, right):
            yield from iter_comparisons(left)
            yield from iter_comparisons(right)


# ------------------------------------------------------------------ #
# Diagnostics
# ------------------------------------------------------------------ #

class MarkerWarningKind(str, Enum):
    """Categories of advisory diagnostics produced while evaluating markers."""
    DEPRECATED_MARKER_NAME = "deprecated_marker_name"
    EXTRA_INVALID_COMPARISON = "extra_invalid_comparison"
    LEXICOGRAPHIC_COMPARISON = "lexicographic_comparison"
    MARKER_MARKER_COMPARISON = "marker_marker_comparison"
    STRING_STRING_COMPARISON = "string_string_comparison"
    VERSION_PARSE_FALLBACK = "version_parse_fallback"


@dataclass(slots=True, frozen=True)
class MarkerWarning:
    """
    One diagnostic about a suspicious comparison.

    Diagnostics are advisory: evaluation produces the same result whether or not anyone listens.

    Attributes:
        kind (MarkerWarningKind): The category.
        message (str): A human-readable description.
        expression (str): The canonical text of the comparison it refers to.
    """
    kind: MarkerWarningKind
    message: str
    expression: str

    def __str__(self) -> str:
        return f"{self.message} (in `{self.expression}`)"


WarningReporter = Callable[[MarkerWarning], None]


# ------------------------------------------------------------------ #
# Marker
# ------------------------------------------------------------------ #

@dataclass(slots=True, frozen=True)
class Marker:
    """
    A parsed environment marker, such as `python_version < "3.11" and sys_platform == "linux"`.

    A marker is parsed once and then evaluated against any number of environments. `and` binds
    tighter than `or`, and both are left-associative, so `a or b and c` is `Or(a, And(b, c))`
    and `a and b and c` is `And(And(a, b), c)`.

    Attributes:
        tree (Compare | And | Or): The expression tree.
    """
    tree: MarkerNode

    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parses marker text.

        Raises:
            InvalidMarker: If the text is not a valid marker expression.
        """
        from reqspec.engine.marker_parser import parse_marker
        return parse_marker(text)

    def evaluate(
            self,
            environment: MarkerEnvironment,
            extras: Iterable[str] = (),
            reporter: WarningReporter | None = None) -> bool:
        """
        Decides whether the marker holds in an environment.

        Args:
            environment (MarkerEnvironment): Values of the environment variables.
            extras (Iterable[str]): The active extras, consulted only for `extra` comparisons.
            reporter (WarningReporter | None): Receives diagnostics. Defaults to logging them.

        Returns:
            bool: The value of the expression.
        """
        from reqspec.engine.marker_evaluator import evaluate
        return evaluate(self, environment, extras, reporter=reporter)

    def evaluate_collect_warnings(
            self,
            environment: MarkerEnvironment,
            extras: Iterable[str] = ()) -> tuple[bool, list[MarkerWarning]]:
        from reqspec.engine.marker_evaluator import evaluate_collect_warnings
        return evaluate_collect_warnings(self, environment, extras)

    def evaluate_extras_and_python_versions(
            self,
            extras: Iterable[str],
            python_versions: Iterable[Version]) -> bool:
        from reqspec.engine.marker_evaluator import evaluate_extras_and_python_versions
        return evaluate_extras_and_python_versions(self, extras, python_versions)

    def comparisons(self) -> Iterator[Compare]:
        return iter_comparisons(self.tree)

    def __and__(self, other: Marker) -> Marker:
        if not isinstance(other, Marker):
            return NotImplemented
        return Marker(And(self.tree, other.tree))

    def __or__(self, other: Marker) -> Marker:
        if not isinstance(other, Marker):
            return NotImplemented
        return Marker(Or(self.tree, other.tree))

    def __str__(self) -> str:
        return str(self.tree)

    def __repr__(self) -> str:
        return f"<Marker({str(self)!r})>"
