from .crop_session import CropSession, SessionState
from .debounce import KeyedDebouncer, TimerFactory, qt_timer_factory

__all__ = [
    "CropSession",
    "KeyedDebouncer",
    "SessionState",
    "TimerFactory",
    "qt_timer_factory",
]
