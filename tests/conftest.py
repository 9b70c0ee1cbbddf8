"""
Shared test fixtures for the light controller tests.

Provides fixtures for:
- Settings with millisecond-scale animation timings
- Loopback transport with a simulated echoing light
- Light controller instances
- Controllable clock
"""
import asyncio
import contextlib
import random
import sys
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from rgblight.config import Settings
from rgblight.control.correlation import CorrelationRegistry
from rgblight.logic.controller import LightController
from rgblight.transport.loopback import LoopbackTransport

COLOR_TOPIC = "test/bulb"
MOTION_TOPIC = "test/motion"
DOOR_TOPIC = "test/door"


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with short animation timings."""
    return Settings(
        topics={"color": COLOR_TOPIC, "motion": MOTION_TOPIC, "door": DOOR_TOPIC},
        motion_animation={"total_animation_length_ms": 200, "single_color_length_ms": 20},
        door_animation={"opened_color_duration_ms": 50},
        log_level="DEBUG",
    )


# ============================================================================
# Transport and Controller Fixtures
# ============================================================================

@pytest.fixture
def loopback() -> LoopbackTransport:
    """Loopback transport whose simulated light echoes immediately."""
    return LoopbackTransport()


@pytest.fixture
def controller(test_settings: Settings, loopback: LoopbackTransport) -> LightController:
    """Light controller on the loopback transport with a seeded RNG."""
    ctrl = LightController(test_settings, loopback, rng=random.Random(1234))
    ctrl.motion.settle_delay = 0.01
    ctrl.bridge.ack_timeout = 0.2
    return ctrl


@pytest.fixture
def running():
    """Async context manager that pumps a transport into a controller."""

    @contextlib.asynccontextmanager
    async def _running(transport, ctrl):
        task = asyncio.create_task(transport.run(ctrl))
        try:
            yield transport
        finally:
            await ctrl.shutdown()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    return _running


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or a timeout passes."""

    async def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if predicate():
                return True
            await asyncio.sleep(interval)
        return predicate()

    return _wait_until


# ============================================================================
# Utility Fixtures
# ============================================================================

@pytest.fixture
def mock_clock():
    """Create a controllable monotonic clock for expiry tests."""

    class MockClock:
        def __init__(self):
            self.current = 1000.0

        def __call__(self) -> float:
            return self.current

        def advance(self, seconds: float):
            self.current += seconds

    return MockClock()


@pytest.fixture
def registry(mock_clock) -> CorrelationRegistry:
    """Correlation registry driven by the mock clock."""
    return CorrelationRegistry(ttl_seconds=30.0, clock=mock_clock)
