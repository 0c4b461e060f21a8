"""Tests for interpreter checks and environment collection."""

from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest

from reqspec.helper import sys_check_utils
from reqspec.helper.sys_check_utils import check_python_version, current_environment_values
from reqspec.model.marker.marker_model import MarkerVariable
from reqspec.model.version.version_model import Version


def test_check_python_version_passes() -> None:
    check_python_version()


def test_check_python_version_rejects_old_interpreters(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys_check_utils.sys, "version_info", (3, 9, 18))
    with pytest.raises(RuntimeError, match="3.10"):
        check_python_version()


def test_environment_values_cover_every_variable() -> None:
    values = current_environment_values()
    assert set(values) == {v.value for v in MarkerVariable if v is not MarkerVariable.EXTRA}
    assert values["sys_platform"] == sys.platform
    assert Version.parse(values["python_full_version"]) >= Version.parse(values["python_version"])


def test_implementation_version_of_a_release_candidate(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = SimpleNamespace(
        name="cpython",
        version=SimpleNamespace(major=3, minor=13, micro=0, releaselevel="candidate", serial=2))
    monkeypatch.setattr(sys_check_utils.sys, "implementation", fake)
    assert sys_check_utils._implementation_version() == "3.13.0rc2"
