from __future__ import annotations

from iCropper.session.debounce import KeyedDebouncer


def test_bursts_fire_once_after_the_last_event(clock):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)
    calls = []

    debouncer.schedule("a", lambda: calls.append(clock.now))
    clock.advance(100)
    debouncer.schedule("a", lambda: calls.append(clock.now))
    clock.advance(100)
    debouncer.schedule("a", lambda: calls.append(clock.now))

    clock.advance(499)
    assert calls == []
    assert debouncer.is_pending("a")

    clock.advance(1)
    assert calls == [700]
    assert not debouncer.is_pending("a")

    clock.advance(2000)
    assert calls == [700]


def test_keys_are_independent(clock):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)
    fired = []

    debouncer.schedule("a", lambda: fired.append("a"))
    clock.advance(300)
    debouncer.schedule("b", lambda: fired.append("b"))
    clock.advance(200)
    assert fired == ["a"]
    clock.advance(300)
    assert fired == ["a", "b"]


def test_cancel_leaves_no_residue(clock):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)
    fired = []

    debouncer.schedule("a", lambda: fired.append("a"))
    assert debouncer.cancel("a") is True
    assert debouncer.cancel("a") is False
    clock.advance(1000)
    assert fired == []


def test_cancel_all(clock):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)
    fired = []
    for key in ("a", "b", "c"):
        debouncer.schedule(key, lambda key=key: fired.append(key))
    debouncer.cancel_all()
    clock.advance(1000)
    assert fired == []


def test_flush_fires_pending_callback_immediately(clock):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)
    fired = []

    assert debouncer.flush("a") is False
    debouncer.schedule("a", lambda: fired.append(clock.now))
    assert debouncer.flush("a") is True
    assert fired == [0]
    clock.advance(1000)
    assert fired == [0]


def test_latest_callback_wins(clock):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)
    fired = []
    debouncer.schedule("a", lambda: fired.append("first"))
    debouncer.schedule("a", lambda: fired.append("second"))
    clock.advance(500)
    assert fired == ["second"]


def test_failing_callback_is_contained(clock, caplog):
    debouncer = KeyedDebouncer(500, timer_factory=clock.timer_factory)

    def boom():
        raise RuntimeError("boom")

    debouncer.schedule("a", boom)
    clock.advance(500)
    assert "Debounced callback" in caplog.text


def test_qt_timers_fire_on_the_event_loop(qapp):
    from PySide6.QtCore import QEventLoop, QTimer

    debouncer = KeyedDebouncer(20)
    loop = QEventLoop()
    fired = []

    def done():
        fired.append(True)
        loop.quit()

    debouncer.schedule("a", done)
    debouncer.schedule("a", done)
    QTimer.singleShot(2000, loop.quit)
    loop.exec()

    assert fired == [True]
    debouncer.discard("a")
