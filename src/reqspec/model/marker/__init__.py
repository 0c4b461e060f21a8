from .marker_environment_model import EnvironmentProfiles, MarkerEnvironment
from .marker_model import (
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
)

__all__ = [
    "And",
    "Compare",
    "EnvironmentProfiles",
    "Literal",
    "Marker",
    "MarkerEnvironment",
    "MarkerNode",
    "MarkerOperator",
    "MarkerVariable",
    "MarkerWarning",
    "MarkerWarningKind",
    "Or",
    "Variable",
    "WarningReporter"
]
