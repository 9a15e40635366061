from __future__ import annotations

import textwrap
from datetime import timedelta
from typing import List, Optional

import pytest
import structlog

from spinline import EventKind, WorkflowOptions, load_workflow_from_bytes


class RecordingNotifier:
    """Keeps every event it is handed."""

    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)

    __call__ = notify

    def kinds(self, spinner_name: Optional[str] = None) -> List[EventKind]:
        return [
            e.kind for e in self.events
            if spinner_name is None or e.spinner_name == spinner_name
        ]

    def names(self) -> List[str]:
        seen = []
        for e in self.events:
            if e.spinner_name not in seen:
                seen.append(e.spinner_name)
        return seen


@pytest.fixture(autouse=True)
def _reset_structlog():
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def recorder():
    return RecordingNotifier()


@pytest.fixture
def make_workflow(recorder):
    def _make(text: str, timeout: Optional[timedelta] = None, notifier=None):
        options = WorkflowOptions(notifier=notifier or recorder)
        if timeout is not None:
            options.timeout = timeout
        return load_workflow_from_bytes(textwrap.dedent(text).encode("utf-8"), options)

    return _make
