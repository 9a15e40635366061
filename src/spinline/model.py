# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from . import settings
from .errors import ConfigError

if TYPE_CHECKING:
    from .events import Event
    from .workflow import WorkflowResult

__all__ = [
    "NotifyFn",
    "WorkflowOptions",
    "Probe",
    "Step",
    "Workflow",
]


NotifyFn = Callable[["Event"], None]


# ----------------------------------------------------------------------
# Workflow document
# ----------------------------------------------------------------------

@dataclass
class WorkflowOptions:
    """
    Options shared by every step of a workflow.

    notifier: called once per lifecycle event. Filled in by the loader when
              left empty.
    timeout:  default step timeout, used when a step has none of its own.
    """
    notifier: Optional[NotifyFn] = None
    timeout: timedelta = field(default_factory=lambda: settings.DEFAULT_TIMEOUT)


@dataclass
class Probe:
    """A secondary command run in the step's working directory."""
    command: str
    args: List[str] = field(default_factory=list)


@dataclass
class Step:
    """One unit of work: a command, its arguments and its failure policy."""
    name: str
    command: str
    args: List[str] = field(default_factory=list)
    workdir: Optional[str] = None
    timeout: Optional[timedelta] = None
    stop_on_fail: bool = False
    probe: Optional[Probe] = None

    # Non-owning back-reference, installed by Workflow.link().
    workflow: Optional["Workflow"] = field(default=None, repr=False, compare=False)

    @property
    def probe_name(self) -> str:
        return f"{self.name}.probe"

    def require_workflow(self) -> "Workflow":
        if self.workflow is None:
            raise ConfigError(f"step {self.name!r} is not attached to a workflow")
        if self.workflow.options is None:
            raise ConfigError(f"workflow of step {self.name!r} has no options")
        return self.workflow

    def effective_timeout(self) -> timedelta:
        if self.timeout is not None:
            return self.timeout
        return self.require_workflow().options.timeout

    def template_context(self) -> Dict[str, Any]:
        """Values visible to argument templates."""
        return {
            "name": self.name,
            "command": self.command,
            "args": list(self.args),
            "workdir": self.workdir or "",
            "timeout": self.effective_timeout(),
            "stop_on_fail": self.stop_on_fail,
            "probe": self.probe,
            "step": self,
            "workflow": self.workflow,
        }


@dataclass
class Workflow:
    version: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)
    steps: List[Step] = field(default_factory=list)

    options: Optional[WorkflowOptions] = field(default=None, repr=False, compare=False)

    def link(self) -> None:
        """Point every step back at this workflow."""
        for step in self.steps:
            step.workflow = self

    def step(self, name: str) -> Step:
        for s in self.steps:
            if s.name == name:
                return s
        raise KeyError(name)

    def run(self, cancel=None, *, logger=None, sink=None) -> "WorkflowResult":
        from .workflow import run_workflow

        return run_workflow(self, cancel=cancel, logger=logger, sink=sink)
