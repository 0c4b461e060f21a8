from __future__ import annotations

from threading import RLock

from cachetools import LRUCache, cached

from reqspec.engine.marker_parser import parse_marker
from reqspec.engine.requirement_parser import parse_requirement
from reqspec.model.marker.marker_model import Marker
from reqspec.model.requirement.requirement_model import Requirement
from reqspec.model.specifier.specifier_model import VersionSpecifiers
from reqspec.model.version.version_model import Version

_VERSION_CACHE_MAX_SIZE: int = 16_384
_SPECIFIERS_CACHE_MAX_SIZE: int = 4_096
_REQUIREMENT_CACHE_MAX_SIZE: int = 4_096
_MARKER_CACHE_MAX_SIZE: int = 1_024

_version_cache: LRUCache = LRUCache(maxsize=_VERSION_CACHE_MAX_SIZE)
_specifiers_cache: LRUCache = LRUCache(maxsize=_SPECIFIERS_CACHE_MAX_SIZE)
_requirement_cache: LRUCache = LRUCache(maxsize=_REQUIREMENT_CACHE_MAX_SIZE)
_marker_cache: LRUCache = LRUCache(maxsize=_MARKER_CACHE_MAX_SIZE)
_lock = RLock()


@cached(cache=_version_cache, lock=_lock)
def cached_version(text: str) -> Version:
    """
    Memoized `Version.parse`.

    Parsed values are immutable, so the same instance can be handed to any number of callers and
    threads. A failing parse raises every time; failures are never cached.

    Args:
        text (str): The version text.

    Returns:
        Version: The parsed version.

    Raises:
        InvalidVersion: If the text is not a valid version.
    """
    return Version.parse(text)


@cached(cache=_specifiers_cache, lock=_lock)
def cached_specifiers(text: str) -> VersionSpecifiers:
    """Memoized `VersionSpecifiers.parse`. Failures are not cached."""
    return VersionSpecifiers.parse(text)


@cached(cache=_requirement_cache, lock=_lock)
def cached_requirement(text: str) -> Requirement:
    """Memoized `parse_requirement`. Failures are not cached."""
    return parse_requirement(text)


@cached(cache=_marker_cache, lock=_lock)
def cached_marker(text: str) -> Marker:
    """Memoized `parse_marker`. Failures are not cached."""
    return parse_marker(text)


def clear_parse_caches() -> None:
    """Empties every parse cache."""
    with _lock:
        for cache in (_version_cache, _specifiers_cache, _requirement_cache, _marker_cache):
            cache.clear()


def parse_cache_sizes() -> dict[str, int]:
    """
    Reports how many entries each parse cache currently holds.

    Returns:
        dict[str, int]: Entry counts keyed by `version`, `specifiers`, `requirement` and `marker`.
    """
    with _lock:
        return {
            "version": len(_version_cache),
            "specifiers": len(_specifiers_cache),
            "requirement": len(_requirement_cache),
            "marker": len(_marker_cache),
        }
