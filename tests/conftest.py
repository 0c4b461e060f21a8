"""Shared fixtures for reqspec tests."""

import logging
import pathlib

import pytest

from reqspec.engine.parse_cache import clear_parse_caches
from reqspec.model.marker.marker_environment_model import MarkerEnvironment


@pytest.fixture(autouse=True)
def reset_reqspec_logging():
    """Undo `configure_logging` so that caplog sees records again in later tests."""
    yield
    logger = logging.getLogger("reqspec")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def empty_parse_caches():
    clear_parse_caches()
    yield
    clear_parse_caches()


@pytest.fixture
def linux_env() -> MarkerEnvironment:
    """A CPython 3.12 on Linux x86_64 environment."""
    return MarkerEnvironment(
        implementation_name="cpython",
        implementation_version="3.12.1",
        os_name="posix",
        platform_machine="x86_64",
        platform_python_implementation="CPython",
        platform_release="6.5.0-14-generic",
        platform_system="Linux",
        platform_version="#14-Ubuntu SMP PREEMPT_DYNAMIC",
        python_full_version="3.12.1",
        python_version="3.12",
        sys_platform="linux",
    )


@pytest.fixture
def windows_env() -> MarkerEnvironment:
    """A CPython 3.8 on Windows environment."""
    return MarkerEnvironment(
        implementation_name="cpython",
        implementation_version="3.8.10",
        os_name="nt",
        platform_machine="AMD64",
        platform_python_implementation="CPython",
        platform_release="10",
        platform_system="Windows",
        platform_version="10.0.19045",
        python_full_version="3.8.10",
        python_version="3.8",
        sys_platform="win32",
    )


@pytest.fixture
def profiles_toml(tmp_path: pathlib.Path) -> pathlib.Path:
    """An environment profiles file with a Linux and a Windows target."""
    path = tmp_path / "profiles.toml"
    path.write_text(
        '[environments.linux-py312]\n'
        'python_version = "3.12"\n'
        'python_full_version = "3.12.1"\n'
        'sys_platform = "linux"\n'
        'os_name = "posix"\n'
        '\n'
        '[environments.windows-py38]\n'
        'python_version = "3.8"\n'
        'python_full_version = "3.8.10"\n'
        'sys_platform = "win32"\n'
        'os_name = "nt"\n',
        encoding="utf-8")
    return path
