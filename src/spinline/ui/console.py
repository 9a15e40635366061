"""Console output formatting utilities for spinline."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from spinline.events import Event


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            out: Stream for regular output (defaults to sys.stdout at call time)
            err: Stream for errors (defaults to sys.stderr at call time)
        """
        self.debug = debug
        self._out = out
        self._err = err

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}", file=self.out)
        print("-" * len(title), file=self.out)

    def print_run_started(self, workflow: str, version: str, step_count: int) -> None:
        """Print run start information."""
        print("\nRUN STARTED", file=self.out)
        print(f"Workflow: {workflow}", file=self.out)
        if version:
            print(f"Version: {version}", file=self.out)
        print(f"Steps: {step_count}", file=self.out)
        print(file=self.out)

    def print_event(self, event: Event) -> None:
        """Print one lifecycle event as a single line."""
        print(str(event), file=self.out, flush=True)

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40, file=self.out)
        print("RESULTS", file=self.out)
        print("=" * 40, file=self.out)
        for step, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {step}: {status_display}", file=self.out)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=self.err)
        print(f"{message}", file=self.err)
        if details:
            for detail in details:
                print(f"  {detail}", file=self.err)
        if suggestion:
            print(f"\n{suggestion}", file=self.err)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=self.err)
        else:
            print(f"Error: {exc}", file=self.err)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message, file=self.out)


class ConsoleNotifier:
    """Notifier that prints every event as one line on the console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console

    def notify(self, event: Event) -> None:
        (self.console or get_console()).print_event(event)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
