# errors.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .events import ExitStatus


class SpinlineError(Exception):
    """Base class for everything spinline raises on purpose."""


class ConfigError(SpinlineError):
    """
    Workflow options missing or malformed, a document that can't be loaded,
    or a step used without its workflow back-reference.

    Always raised before any child process is started.
    """


# ----------------------------------------------------------------------
# Step errors
# ----------------------------------------------------------------------

@dataclass
class TemplateError(SpinlineError):
    step: str
    arg: str
    message: str

    def __str__(self) -> str:
        return f"step {self.step}: cannot render argument {self.arg!r}: {self.message}"


@dataclass
class StartError(SpinlineError):
    step: str
    command: str
    reason: str = ""

    def __str__(self) -> str:
        msg = f"step {self.step}: failed to start {self.command!r}"
        if self.reason:
            msg += f": {self.reason}"
        return msg


@dataclass
class StepTimeoutError(SpinlineError):
    step: str
    timeout: timedelta

    def __str__(self) -> str:
        from .durations import format_duration

        return f"step {self.step} timed out after {format_duration(self.timeout)}"


@dataclass
class ExitError(SpinlineError):
    step: str
    status: "ExitStatus"

    @property
    def exit_code(self) -> Optional[int]:
        return self.status.code

    def __str__(self) -> str:
        return f"step {self.step} failed ({self.status})"


@dataclass
class CancelledError(ExitError):
    """The caller cancelled the run while the child was still alive."""

    def __str__(self) -> str:
        return f"step {self.step} cancelled ({self.status})"


@dataclass
class WaitError(SpinlineError):
    step: str
    reason: str = ""

    def __str__(self) -> str:
        msg = f"step {self.step}: waiting for child failed"
        if self.reason:
            msg += f": {self.reason}"
        return msg


@dataclass
class WorkflowCancelled(SpinlineError):
    """Raised by the sequencer when cancellation is seen at a step boundary."""
    next_step: Optional[str] = None

    def __str__(self) -> str:
        if self.next_step:
            return f"workflow cancelled before step {self.next_step}"
        return "workflow cancelled"
