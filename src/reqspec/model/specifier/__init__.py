from .specifier_model import Operator, PrereleasePolicy, VersionSpecifier, VersionSpecifiers

__all__ = [
    "Operator",
    "PrereleasePolicy",
    "VersionSpecifier",
    "VersionSpecifiers"
]
