"""Test configuration for pytest."""

from __future__ import annotations

import os
from typing import Callable

import pytest

from core.config import AppSettings


@pytest.fixture
def settings_factory() -> Callable[..., AppSettings]:
    """Build settings that ignore local .env files."""

    def factory(**overrides) -> AppSettings:
        return AppSettings(_env_file=None, **overrides)

    return factory


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for key in list(os.environ):
        if key.upper().startswith("GH_GQL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
