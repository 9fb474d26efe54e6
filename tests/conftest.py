from __future__ import annotations

from pathlib import Path

import pytest

from odatastitch.config import runtime_defaults as runtime_defaults_mod
from tests.live_test_config import LIVE_TESTS_ENABLED


def pytest_ignore_collect(collection_path, config):  # pragma: no cover - pytest hook
    del config
    if LIVE_TESTS_ENABLED:
        return None
    path = Path(str(collection_path))
    if path.name.startswith("live_"):
        return True
    return None


@pytest.fixture(autouse=True)
def _fresh_runtime_defaults(monkeypatch):
    monkeypatch.delenv("ODATASTITCH_RUNTIME_DEFAULTS_PATH", raising=False)
    runtime_defaults_mod.clear_runtime_defaults_cache()
    runtime_defaults_mod.reset_runtime_defaults_load_telemetry()
    yield
    runtime_defaults_mod.clear_runtime_defaults_cache()
    runtime_defaults_mod.reset_runtime_defaults_load_telemetry()
