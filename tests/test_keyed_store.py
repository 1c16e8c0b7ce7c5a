from __future__ import annotations

from iCropper.state.store import CropperState, KeyedStore


def test_set_replaces_whole_value():
    store: KeyedStore[dict] = KeyedStore("configs")
    store.set("a", {"x": 1})
    store.set("a", {"y": 2})
    assert store.get("a") == {"y": 2}
    assert "a" in store
    assert len(store) == 1


def test_listeners_see_sets_and_removals():
    store: KeyedStore[int] = KeyedStore()
    seen = []
    sub = store.subscribe(lambda key, value: seen.append((key, value)))

    store.set("a", 1)
    store.pop("a")
    store.pop("a")
    store.unsubscribe(sub)
    store.set("b", 2)

    assert seen == [("a", 1), ("a", None)]


def test_failing_listener_does_not_block_others(caplog):
    store: KeyedStore[int] = KeyedStore("stats")
    seen = []

    def broken(key, value):
        raise ValueError("listener bug")

    store.subscribe(broken)
    store.subscribe(lambda key, value: seen.append(key))
    store.set("a", 1)

    assert seen == ["a"]
    assert "stats" in caplog.text


def test_snapshot_selects_known_keys():
    store: KeyedStore[int] = KeyedStore()
    store.set("a", 1)
    store.set("b", 2)
    assert store.snapshot(["a", "missing"]) == {"a": 1}
    assert store.snapshot() == {"a": 1, "b": 2}


def test_clear_notifies_each_key():
    store: KeyedStore[int] = KeyedStore()
    removed = []
    store.set("a", 1)
    store.set("b", 2)
    store.subscribe(lambda key, value: removed.append(key))
    store.clear()
    assert sorted(removed) == ["a", "b"]
    assert store.keys() == []


def test_cropper_state_forget():
    state = CropperState()
    state.configs.set("a", object())
    state.stats.set("a", object())
    state.forget("a")
    assert state.configs.get("a") is None
    assert state.stats.get("a") is None
