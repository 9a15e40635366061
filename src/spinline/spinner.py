# spinner.py
from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, List, Optional, TextIO

import structlog

from . import settings
from .durations import format_duration
from .errors import (
    CancelledError,
    ConfigError,
    ExitError,
    StartError,
    StepTimeoutError,
    TemplateError,
    WaitError,
)
from .events import Event, EventKind, ExitStatus, Payload, WaitFailure, new_event
from .expand import expand_env, expand_env_all, render_args
from .logwriter import LogWriter, drain
from .model import NotifyFn, Step
from .notifications import NotificationManager


# ----------------------------------------------------------------------
# Options
# ----------------------------------------------------------------------

@dataclass
class SpinnerSink:
    """Where human-readable progress lines go."""
    stdout: TextIO
    stderr: TextIO


@dataclass
class SpinnerOptions:
    """
    Options shared by every spinner of a run.

    notifier is required. When it is left out but a notification manager is
    given, events go to the manager.
    """
    notifier: Optional[NotifyFn] = None
    sink: Optional[SpinnerSink] = None
    notification_manager: Optional[NotificationManager] = None
    logger: Any = None
    kill_grace: timedelta = field(default_factory=lambda: settings.KILL_GRACE)
    poll_interval: timedelta = field(default_factory=lambda: settings.POLL_INTERVAL)

    def __post_init__(self) -> None:
        if self.notifier is None and self.notification_manager is not None:
            self.notifier = self.notification_manager.notify
        if self.notifier is None:
            raise ConfigError("spinner options need a notifier")
        if self.poll_interval <= timedelta(0):
            raise ConfigError("spinner poll interval must be positive")


# ----------------------------------------------------------------------
# Spinner
# ----------------------------------------------------------------------

_EXITED = "exited"
_TIMED_OUT = "timed_out"
_CANCELLED = "cancelled"


class Spinner:
    """
    Runs one step (or its probe) as a child process under a deadline.

    A spinner is single-use: build it with for_step() or for_probe(), call
    run() once, throw it away. Everything it will execute is resolved at
    construction; run() only reads it.
    """

    def __init__(self, step: Step, options: SpinnerOptions, *, probe: bool = False):
        if options is None:
            raise ConfigError("spinner options are required")
        step.require_workflow()

        self.uuid = str(uuid.uuid4())
        self.step = step
        self.options = options
        self.logger = options.logger if options.logger is not None else structlog.get_logger(__name__)
        self._ran = False

        if probe:
            if step.probe is None:
                raise ConfigError(f"step {step.name!r} has no probe")
            self.name = step.probe_name
            cmd, args = step.probe.command, list(step.probe.args)
        else:
            self.name = step.name
            cmd, args = step.command, list(step.args)

        self.cmd: str = expand_env(cmd)
        self.args: List[str] = expand_env_all(args)
        self.workdir: str = expand_env(step.workdir) if step.workdir else ""

        self.timeout: timedelta = step.effective_timeout()
        if self.timeout <= timedelta(0):
            raise ConfigError(f"step {step.name!r}: timeout must be positive, got {format_duration(self.timeout)}")

        self.args = render_args(
            self.args,
            step.template_context(),
            on_error=lambda arg, e: TemplateError(step=self.name, arg=arg, message=str(e)),
        )

    @classmethod
    def for_step(cls, step: Step, options: SpinnerOptions) -> "Spinner":
        return cls(step, options)

    @classmethod
    def for_probe(cls, step: Step, options: SpinnerOptions) -> "Spinner":
        return cls(step, options, probe=True)

    @property
    def argv(self) -> List[str]:
        return [self.cmd, *self.args]

    def __repr__(self) -> str:
        return f"Spinner(name={self.name!r}, uuid={self.uuid!r}, argv={self.argv!r})"

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Run the command once.

        Returns None when the child exits 0. Otherwise raises StartError,
        StepTimeoutError, ExitError (CancelledError when `cancel` was set) or
        WaitError, after emitting the matching terminal event.
        """
        if self._ran:
            raise RuntimeError(f"spinner {self.name} has already run")
        self._ran = True

        log = self.logger.bind(spinner=self.uuid, step=self.name)
        self._push(log, EventKind.RUN_REQUESTED)

        deadline = time.monotonic() + self.timeout.total_seconds()

        if not self.cmd:
            self._push(log, EventKind.RUN_ERROR)
            raise StartError(step=self.name, command=self.cmd, reason="empty command")

        out_writer = LogWriter(log, logging.DEBUG, "stdout")
        err_writer = LogWriter(log, logging.ERROR, "stderr")

        try:
            proc = subprocess.Popen(
                self.argv,
                cwd=self.workdir or None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=os.name == "posix",
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            out_writer.close()
            err_writer.close()
            self._push(log, EventKind.RUN_ERROR)
            raise StartError(step=self.name, command=self.cmd, reason=str(e)) from e

        drainers = [
            threading.Thread(
                target=drain,
                args=(proc.stdout, out_writer),
                name=f"spinner-{self.uuid[:8]}-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=drain,
                args=(proc.stderr, err_writer),
                name=f"spinner-{self.uuid[:8]}-stderr",
                daemon=True,
            ),
        ]
        for t in drainers:
            t.start()

        started = time.monotonic()
        self._push(log, EventKind.RUN_STARTED)
        log.info("step_started", pid=proc.pid, command=self.cmd, args=self.args, timeout=format_duration(self.timeout))

        try:
            outcome = self._wait(proc, deadline, cancel)
        except OSError as e:
            self._signal(proc, getattr(signal, "SIGKILL", signal.SIGTERM))
            self._join(log, drainers, self.options.kill_grace)
            self._push(log, EventKind.RUN_WAIT_ERROR, WaitFailure(str(e)))
            raise WaitError(step=self.name, reason=str(e)) from e

        if outcome == _EXITED:
            self._join(log, drainers)
        else:
            self._join(log, drainers, self.options.kill_grace)

        elapsed = round(time.monotonic() - started, 3)

        if outcome == _TIMED_OUT:
            log.warning("step_timed_out", timeout=format_duration(self.timeout), elapsed=elapsed)
            self._push(log, EventKind.RUN_TIMEOUT)
            raise StepTimeoutError(step=self.name, timeout=self.timeout)

        status = ExitStatus.from_returncode(proc.returncode)

        if outcome == _CANCELLED:
            log.warning("step_cancelled", status=str(status), elapsed=elapsed)
            self._push(log, EventKind.RUN_FAIL, status)
            raise CancelledError(step=self.name, status=status)

        if proc.returncode != 0:
            log.info("step_finished", status=str(status), elapsed=elapsed)
            self._push(log, EventKind.RUN_FAIL, status)
            raise ExitError(step=self.name, status=status)

        log.info("step_finished", status=str(status), elapsed=elapsed)
        self._push(log, EventKind.RUN_SUCCESS)

    def _wait(self, proc: subprocess.Popen, deadline: float, cancel: Optional[threading.Event]) -> str:
        poll = self.options.poll_interval.total_seconds()
        while True:
            remaining = deadline - time.monotonic()
            try:
                proc.wait(timeout=max(0.0, min(poll, remaining)))
                return _EXITED
            except subprocess.TimeoutExpired:
                pass

            if time.monotonic() >= deadline:
                self._terminate(proc)
                return _TIMED_OUT
            if cancel is not None and cancel.is_set():
                self._terminate(proc)
                return _CANCELLED

    def _terminate(self, proc: subprocess.Popen) -> None:
        """SIGTERM the child's process group, SIGKILL it after the grace period."""
        self._signal(proc, signal.SIGTERM)
        try:
            proc.wait(timeout=self.options.kill_grace.total_seconds())
        except subprocess.TimeoutExpired:
            self._signal(proc, getattr(signal, "SIGKILL", signal.SIGTERM))
            proc.wait()

    @staticmethod
    def _signal(proc: subprocess.Popen, sig: int) -> None:
        try:
            if os.name == "posix":
                os.killpg(proc.pid, sig)
            else:
                proc.send_signal(sig)
        except (ProcessLookupError, PermissionError):
            # already gone
            pass

    @staticmethod
    def _join(log: Any, drainers: List[threading.Thread], timeout: Optional[timedelta] = None) -> None:
        seconds = timeout.total_seconds() if timeout is not None else None
        for t in drainers:
            t.join(seconds)
            if t.is_alive():
                log.warning("output_drain_incomplete", thread=t.name)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _push(self, log: Any, kind: EventKind, payload: Payload = None) -> Event:
        event = new_event(self, kind, payload)
        try:
            self._write_sink(event)
        except (OSError, ValueError) as e:
            log.warning("sink_write_failed", kind=str(kind), error=str(e))
        try:
            self.options.notifier(event)
        except Exception as e:
            log.warning("notifier_failed", kind=str(kind), error=str(e))
        return event

    def _write_sink(self, event: Event) -> None:
        sink = self.options.sink
        if sink is None:
            return

        kind = event.kind
        if kind == EventKind.RUN_STARTED:
            print(f"▶ {self.name}", file=sink.stdout, flush=True)
        elif kind == EventKind.RUN_SUCCESS:
            print(f"✓ {self.name}", file=sink.stdout, flush=True)
        elif kind == EventKind.RUN_FAIL:
            print(f"✗ {self.name} ({event.payload})", file=sink.stderr, flush=True)
        elif kind == EventKind.RUN_TIMEOUT:
            print(f"✗ {self.name} (timed out after {format_duration(self.timeout)})", file=sink.stderr, flush=True)
        elif kind == EventKind.RUN_ERROR:
            print(f"✗ {self.name} (failed to start {self.cmd!r})", file=sink.stderr, flush=True)
        elif kind == EventKind.RUN_WAIT_ERROR:
            print(f"✗ {self.name} ({event.payload})", file=sink.stderr, flush=True)
