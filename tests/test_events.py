import pytest

from ah_cli_manager.core.events import EventChannel, ManagerEvent


def test_emit_calls_listeners_in_registration_order():
    channel = EventChannel()
    calls = []
    channel.on(ManagerEvent.PROGRESS, lambda payload: calls.append(("first", payload)))
    channel.on(ManagerEvent.PROGRESS, lambda payload: calls.append(("second", payload)))

    assert channel.emit(ManagerEvent.PROGRESS, 42) == 2
    assert calls == [("first", 42), ("second", 42)]


def test_emit_without_listeners_is_a_noop():
    assert EventChannel().emit(ManagerEvent.ABORT) == 0


def test_events_are_independent():
    channel = EventChannel()
    calls = []
    channel.on(ManagerEvent.ABORT, lambda: calls.append("abort"))

    channel.emit(ManagerEvent.PROGRESS, {"message": "x"})
    channel.emit(ManagerEvent.ABORT)

    assert calls == ["abort"]


def test_off_removes_a_listener():
    channel = EventChannel()
    calls = []

    def listener(payload):
        calls.append(payload)

    channel.on(ManagerEvent.PROGRESS, listener)
    assert channel.off(ManagerEvent.PROGRESS, listener) is True
    assert channel.off(ManagerEvent.PROGRESS, listener) is False

    channel.emit(ManagerEvent.PROGRESS, 1)
    assert calls == []


def test_string_event_names_are_accepted():
    channel = EventChannel()
    channel.on("progress", print)
    assert channel.listener_count(ManagerEvent.PROGRESS) == 1


def test_on_rejects_unknown_events_and_non_callables():
    channel = EventChannel()
    with pytest.raises(ValueError):
        channel.on("finished", print)
    with pytest.raises(TypeError):
        channel.on(ManagerEvent.PROGRESS, "not callable")


def test_listener_added_during_emit_runs_from_next_emit():
    channel = EventChannel()
    calls = []

    def late(payload):
        calls.append(("late", payload))

    def register(payload):
        calls.append(("register", payload))
        channel.on(ManagerEvent.PROGRESS, late)

    channel.on(ManagerEvent.PROGRESS, register)
    channel.emit(ManagerEvent.PROGRESS, 1)
    assert calls == [("register", 1)]

    channel.off(ManagerEvent.PROGRESS, register)
    channel.emit(ManagerEvent.PROGRESS, 2)
    assert calls == [("register", 1), ("late", 2)]
