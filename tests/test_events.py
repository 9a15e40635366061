import signal

import pytest

from spinline.events import Event, EventKind, ExitStatus, WaitFailure


def test_fail_event_needs_exit_status():
    with pytest.raises(ValueError):
        Event(spinner_uuid="u", spinner_name="s", kind=EventKind.RUN_FAIL)


def test_plain_events_carry_no_payload():
    with pytest.raises(ValueError):
        Event(spinner_uuid="u", spinner_name="s", kind=EventKind.RUN_SUCCESS, payload=ExitStatus(code=0))


def test_wait_error_payload():
    event = Event(spinner_uuid="u", spinner_name="s", kind=EventKind.RUN_WAIT_ERROR, payload=WaitFailure("ECHILD"))
    assert "ECHILD" in str(event)


def test_str_is_one_line_with_name_kind_and_payload():
    event = Event(spinner_uuid="u", spinner_name="build", kind=EventKind.RUN_FAIL, payload=ExitStatus(code=2))
    line = str(event)
    assert "\n" not in line
    assert "build" in line
    assert "RunFail" in line
    assert "exit=2" in line


def test_events_are_immutable():
    event = Event(spinner_uuid="u", spinner_name="s", kind=EventKind.RUN_STARTED)
    with pytest.raises(AttributeError):
        event.kind = EventKind.RUN_SUCCESS


def test_exit_status_from_returncode():
    assert ExitStatus.from_returncode(3) == ExitStatus(code=3)
    killed = ExitStatus.from_returncode(-signal.SIGKILL)
    assert killed.signal == signal.SIGKILL
    assert killed.code is None
    assert str(killed) == "signal=SIGKILL"


def test_terminal_kinds():
    assert not EventKind.RUN_REQUESTED.terminal
    assert not EventKind.RUN_STARTED.terminal
    assert all(
        k.terminal
        for k in (
            EventKind.RUN_SUCCESS,
            EventKind.RUN_FAIL,
            EventKind.RUN_TIMEOUT,
            EventKind.RUN_ERROR,
            EventKind.RUN_WAIT_ERROR,
        )
    )
