from __future__ import annotations

import os
import platform
import sys


def check_python_version() -> None:
    """
    Checks that the running interpreter is new enough for reqspec.

    Raises:
        RuntimeError: If the current Python version is below 3.10.
    """
    if sys.version_info < (3, 10):
        raise RuntimeError("Must be using Python 3.10 or higher")


def _implementation_version() -> str:
    """
    Formats `sys.implementation.version` the way environment markers expect it.

    A non-final release level is appended with its serial, so CPython 3.13.0 release candidate 2
    yields `3.13.0rc2`.
    """
    info = sys.implementation.version
    version = f"{info.major}.{info.minor}.{info.micro}"
    if info.releaselevel != "final":
        kind = {"alpha": "a", "beta": "b", "candidate": "rc"}.get(info.releaselevel, info.releaselevel)
        version += f"{kind}{info.serial}"
    return version


def current_environment_values() -> dict[str, str]:
    """
    Collects the marker variable values of the running interpreter.

    Returns:
        dict[str, str]: One entry per marker variable, keyed by variable name.
    """
    major, minor, _ = platform.python_version_tuple()
    return {
        "implementation_name": sys.implementation.name,
        "implementation_version": _implementation_version(),
        "os_name": os.name,
        "platform_machine": platform.machine(),
        "platform_python_implementation": platform.python_implementation(),
        "platform_release": platform.release(),
        "platform_system": platform.system(),
        "platform_version": platform.version(),
        "python_full_version": platform.python_version(),
        "python_version": f"{major}.{minor}",
        "sys_platform": sys.platform,
    }
