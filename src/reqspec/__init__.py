from .engine.marker_evaluator import evaluate_collect_warnings, evaluate_extras_and_python_versions
from .engine.marker_parser import parse_marker
from .engine.parse_cache import (
    cached_marker,
    cached_requirement,
    cached_specifiers,
    cached_version,
    clear_parse_caches,
    parse_cache_sizes,
)
from .engine.requirement_parser import parse_requirement
from .helper.name_utils import canonicalize_name, is_valid_name
from .model.errors import InvalidMarker, InvalidRequirement, InvalidSpecifier, InvalidVersion, ReqspecError
from .model.marker import EnvironmentProfiles, Marker, MarkerEnvironment, MarkerWarning, MarkerWarningKind
from .model.requirement import Requirement
from .model.specifier import Operator, PrereleasePolicy, VersionSpecifier, VersionSpecifiers
from .model.version import Version

__version__ = "1.0.0"

__all__ = [
    "EnvironmentProfiles",
    "InvalidMarker",
    "InvalidRequirement",
    "InvalidSpecifier",
    "InvalidVersion",
    "Marker",
    "MarkerEnvironment",
    "MarkerWarning",
    "MarkerWarningKind",
    "Operator",
    "PrereleasePolicy",
    "ReqspecError",
    "Requirement",
    "Version",
    "VersionSpecifier",
    "VersionSpecifiers",
    "cached_marker",
    "cached_requirement",
    "cached_specifiers",
    "cached_version",
    "canonicalize_name",
    "clear_parse_caches",
    "evaluate_collect_warnings",
    "evaluate_extras_and_python_versions",
    "is_valid_name",
    "parse_cache_sizes",
    "parse_marker",
    "parse_requirement",
    "__version__"
]
