from __future__ import annotations

from typing import Callable, List

import pytest

from statusgen.config import StatuslineConfig, SystemMonitoringConfig
from statusgen.generator import ScriptGenerator


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_config() -> Callable[..., StatuslineConfig]:
    """Build configs with system monitoring filled in whenever system tags are selected."""

    def _make(features: List[str], **overrides: object) -> StatuslineConfig:
        if any(tag in features for tag in ("cpu", "memory", "load")):
            overrides.setdefault("system_monitoring", SystemMonitoringConfig())
        return StatuslineConfig(features=list(features), **overrides)

    return _make


@pytest.fixture
def generator() -> ScriptGenerator:
    return ScriptGenerator()
