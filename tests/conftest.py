import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
TESTS = Path(__file__).resolve().parent

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(TESTS) not in sys.path:
    sys.path.insert(0, str(TESTS))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from fakes import FakeClock  # noqa: E402
from iCropper.cache.handles import HandleRegistry  # noqa: E402
from iCropper.cache.result_cache import CropResultCache  # noqa: E402
from iCropper.events.bus import EventBus  # noqa: E402
from iCropper.session.debounce import KeyedDebouncer  # noqa: E402
from iCropper.settings.manager import SettingsManager  # noqa: E402
from iCropper.state.store import CropperState  # noqa: E402


@pytest.fixture(scope="session")
def qapp() -> QCoreApplication:
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bus():
    event_bus = EventBus()
    yield event_bus
    event_bus.clear()


@pytest.fixture
def settings(bus) -> SettingsManager:
    return SettingsManager(event_bus=bus)


@pytest.fixture
def state() -> CropperState:
    return CropperState()


@pytest.fixture
def handles() -> HandleRegistry:
    return HandleRegistry()


@pytest.fixture
def cache(state, settings, handles, bus) -> CropResultCache:
    result_cache = CropResultCache(state, settings, handles, bus)
    yield result_cache
    result_cache.close()


@pytest.fixture
def debouncer(clock) -> KeyedDebouncer:
    return KeyedDebouncer(500, timer_factory=clock.timer_factory)


@pytest.fixture
def recorder(bus):
    """Collect every published event of the requested types."""

    received = []

    def listen(*event_types):
        for event_type in event_types:
            bus.subscribe(event_type, received.append)
        return received

    return listen
