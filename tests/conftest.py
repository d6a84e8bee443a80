"""Shared pytest fixtures."""

import pytest

import stashbox.config as config_module


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Return a fake clock starting at a fixed time."""
    return FakeClock()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Isolate the global configuration from the user's environment."""
    for name in (
        "STASHBOX_BACKEND",
        "STASHBOX_ENABLED",
        "STASHBOX_CACHE_DIR",
        "STASHBOX_TTL",
        "STASHBOX_PROCESS",
        "STASHBOX_MAX_LIFE",
        "STASHBOX_NAMESPACE",
        "STASHBOX_REDIS_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "no-config.json")
    config_module.set_global_config(None)
    yield
    config_module.set_global_config(None)
