from .errors import (
    CancelledError,
    ConfigError,
    ExitError,
    SpinlineError,
    StartError,
    StepTimeoutError,
    TemplateError,
    WaitError,
    WorkflowCancelled,
)
from .events import Event, EventKind, ExitStatus, WaitFailure
from .loader import dump_workflow, load_workflow, load_workflow_from_bytes, load_workflow_from_reader
from .logwriter import LogWriter
from .model import Probe, Step, Workflow, WorkflowOptions
from .notifications import NotificationManager, Notifier
from .spinner import Spinner, SpinnerOptions, SpinnerSink
from .workflow import WorkflowResult, run_workflow

__version__ = "0.1.0"

__all__ = [
    "Workflow", "WorkflowOptions", "Step", "Probe", "load_workflow", "load_workflow_from_bytes",
    "load_workflow_from_reader", "dump_workflow", "run_workflow", "WorkflowResult",
    "Spinner", "SpinnerOptions", "SpinnerSink", "LogWriter",
    "Event", "EventKind", "ExitStatus", "WaitFailure", "NotificationManager", "Notifier",
    "SpinlineError", "ConfigError", "TemplateError", "StartError", "StepTimeoutError",
    "ExitError", "CancelledError", "WaitError", "WorkflowCancelled",
]
