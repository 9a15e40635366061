# workflow.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import structlog

from .errors import CancelledError, ConfigError, SpinlineError, WorkflowCancelled
from .model import Workflow
from .spinner import Spinner, SpinnerOptions, SpinnerSink


@dataclass
class WorkflowResult:
    """Step name -> "ok" | "failed", in the order the steps ran."""
    steps: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, SpinlineError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(status == "ok" for status in self.steps.values())


def run_workflow(
    workflow: Workflow,
    cancel: Optional[threading.Event] = None,
    *,
    logger: Any = None,
    sink: Optional[SpinnerSink] = None,
) -> WorkflowResult:
    """
    Run every step of a workflow, one after the other.

    A failing step with stop_on_fail re-raises its error and nothing after it
    is built. Any other failure is logged and the next step runs. Setting
    `cancel` terminates the running child and stops before the next step.

    Raises:
        ConfigError: workflow has no options or a step can't be prepared
        TemplateError: a step's arguments can't be rendered
        WorkflowCancelled: `cancel` was set between two steps
        SpinlineError: the error of a failing stop_on_fail step, or
                       CancelledError for the step that was interrupted
    """
    if workflow.options is None:
        raise ConfigError("workflow has no options; load it with load_workflow_*()")

    log = logger if logger is not None else structlog.get_logger(__name__)
    options = SpinnerOptions(
        notifier=workflow.options.notifier,
        sink=sink,
        logger=log,
    )

    result = WorkflowResult()
    log.info("workflow_started", version=workflow.version, steps=len(workflow.steps))

    for step in workflow.steps:
        if cancel is not None and cancel.is_set():
            log.warning("workflow_cancelled", next_step=step.name)
            raise WorkflowCancelled(next_step=step.name)

        spinner = Spinner.for_step(step, options)

        try:
            spinner.run(cancel)
        except CancelledError as e:
            result.steps[step.name] = "failed"
            result.errors[step.name] = e
            log.warning("workflow_cancelled", step=step.name)
            raise
        except SpinlineError as e:
            result.steps[step.name] = "failed"
            result.errors[step.name] = e
            if step.stop_on_fail:
                log.error("step_failed", step=step.name, error=str(e), stop_on_fail=True)
                raise
            log.error("step_failed", step=step.name, error=str(e), stop_on_fail=False)
            continue

        result.steps[step.name] = "ok"

    log.info("workflow_finished", ok=result.ok, failed=[n for n, s in result.steps.items() if s != "ok"])
    return result
