# events.py
from __future__ import annotations

import signal
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from .spinner import Spinner


class EventKind(str, Enum):
    RUN_REQUESTED = "RunRequested"
    RUN_STARTED = "RunStarted"
    RUN_SUCCESS = "RunSuccess"
    RUN_FAIL = "RunFail"
    RUN_TIMEOUT = "RunTimeout"
    RUN_ERROR = "RunError"
    RUN_WAIT_ERROR = "RunWaitError"

    @property
    def terminal(self) -> bool:
        return self not in (EventKind.RUN_REQUESTED, EventKind.RUN_STARTED)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExitStatus:
    """
    How a child ended.

    code is the exit code when the child exited on its own; signal is set
    instead when it was killed by one (Popen reports those as -N).
    """
    code: Optional[int] = None
    signal: Optional[int] = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        if returncode < 0:
            return cls(signal=-returncode)
        return cls(code=returncode)

    def __str__(self) -> str:
        if self.signal is not None:
            try:
                name = signal.Signals(self.signal).name
            except ValueError:
                name = str(self.signal)
            return f"signal={name}"
        return f"exit={self.code}"


@dataclass(frozen=True)
class WaitFailure:
    error: str

    def __str__(self) -> str:
        return f"wait error: {self.error}"


Payload = Union[ExitStatus, WaitFailure, None]

_PAYLOAD_TYPES = {
    EventKind.RUN_FAIL: ExitStatus,
    EventKind.RUN_WAIT_ERROR: WaitFailure,
}


@dataclass(frozen=True)
class Event:
    """One lifecycle transition of a spinner."""
    spinner_uuid: str
    spinner_name: str
    kind: EventKind
    payload: Payload = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        expected = _PAYLOAD_TYPES.get(self.kind)
        if expected is None:
            if self.payload is not None:
                raise ValueError(f"{self.kind} events carry no payload")
        elif not isinstance(self.payload, expected):
            raise ValueError(f"{self.kind} events need a {expected.__name__} payload")

    def __str__(self) -> str:
        line = f"{self.timestamp.isoformat(timespec='milliseconds')} {self.spinner_name} {self.kind}"
        if self.payload is not None:
            line += f" {self.payload}"
        return line


def new_event(spinner: "Spinner", kind: EventKind, payload: Payload = None) -> Event:
    return Event(
        spinner_uuid=spinner.uuid,
        spinner_name=spinner.name,
        kind=kind,
        payload=payload,
    )
