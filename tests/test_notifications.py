import pytest
from structlog.testing import capture_logs

from spinline.events import Event, EventKind
from spinline.notifications import NotificationManager, Notifier


class Lifecycle:
    def __init__(self):
        self.calls = []
        self.events = []

    def start(self):
        self.calls.append("start")

    def stop(self):
        self.calls.append("stop")

    def close(self):
        self.calls.append("close")

    def notify(self, event):
        self.events.append(event)


class Broken:
    def notify(self, event):
        raise RuntimeError("transport down")

    def start(self):
        raise RuntimeError("cannot connect")


def _event(kind=EventKind.RUN_STARTED):
    return Event(spinner_uuid="u-1", spinner_name="step", kind=kind)


def test_fans_out_to_every_notifier():
    a, b = Lifecycle(), Lifecycle()
    manager = NotificationManager(a, b)
    event = _event()
    manager.notify(event)
    assert a.events == [event]
    assert b.events == [event]


def test_failing_notifier_does_not_block_others():
    good = Lifecycle()
    manager = NotificationManager(Broken(), good)

    with capture_logs() as logs:
        manager.notify(_event())

    assert len(good.events) == 1
    assert logs[0]["event"] == "notifier_failed"
    assert logs[0]["notifier"] == "Broken"
    assert logs[0]["error"] == "transport down"


def test_lifecycle_calls_and_idempotent_close():
    n = Lifecycle()
    manager = NotificationManager(n)
    manager.start()
    manager.start()
    manager.stop()
    manager.close()
    manager.close()
    assert n.calls == ["start", "stop", "close"]


def test_close_stops_a_started_manager():
    n = Lifecycle()
    with NotificationManager(n) as manager:
        assert manager.started
    assert n.calls == ["start", "stop", "close"]


def test_lifecycle_failures_are_absorbed():
    good = Lifecycle()
    manager = NotificationManager(Broken(), good)
    with capture_logs() as logs:
        manager.start()
    assert good.calls == ["start"]
    assert logs[0]["event"] == "notifier_lifecycle_failed"
    assert logs[0]["method"] == "start"


def test_register_after_start_starts_the_notifier():
    manager = NotificationManager()
    manager.start()
    late = Lifecycle()
    manager.register(late)
    assert late.calls == ["start"]
    assert manager.notifiers == [late]


def test_register_after_close_fails():
    manager = NotificationManager()
    manager.close()
    with pytest.raises(RuntimeError):
        manager.register(Lifecycle())


def test_manager_is_callable_and_notifiers_match_protocol():
    n = Lifecycle()
    manager = NotificationManager(n)
    manager(_event(EventKind.RUN_SUCCESS))
    assert [e.kind for e in n.events] == [EventKind.RUN_SUCCESS]
    assert isinstance(n, Notifier)


def test_notifier_name_is_the_protocol_only():
    import spinline
    from spinline import model

    assert spinline.Notifier is Notifier
    assert "Notifier" not in model.__all__
    assert "NotifyFn" in model.__all__
    assert not {"format_duration", "parse_duration"} & set(model.__all__)
