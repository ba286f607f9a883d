from __future__ import annotations

import pytest

from pentatrack.config import get_config


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    for name in ("PENTATRACK_CONFIG", "PENTATRACK_SESSIONS_FILE", "PENTATRACK_DATA_DIR"):
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()
