from .version_model import VERSION_PATTERN, PreReleaseKind, Version

__all__ = [
    "VERSION_PATTERN",
    "PreReleaseKind",
    "Version"
]
