from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path

import click
import structlog

from spinline import __version__, settings
from spinline.durations import format_duration, parse_duration
from spinline.errors import CancelledError, ConfigError, SpinlineError, WorkflowCancelled
from spinline.loader import load_workflow
from spinline.logging_config import configure_logging
from spinline.model import WorkflowOptions
from spinline.notifications import NotificationManager
from spinline.spinner import SpinnerSink
from spinline.ui.console import Console, ConsoleNotifier, get_console, set_console

EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


class DurationType(click.ParamType):
    name = "duration"

    def convert(self, value, param, ctx):
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


def resolve_workflow_file(workflow_arg: str) -> Path:
    """
    Resolve the workflow file given on the command line.

    Args:
        workflow_arg: Path from -f/--file

    Returns:
        Path to workflow file

    Raises:
        SystemExit: If the file cannot be found
    """
    console = get_console()

    workflow_path = Path(workflow_arg).expanduser()
    if not workflow_path.exists():
        for suffix in (".yml", ".yaml"):
            candidate = workflow_path.with_name(workflow_path.name + suffix)
            if candidate.exists():
                return candidate
        console.print_error(
            "Workflow file not found",
            f"Could not find workflow file: {workflow_arg}",
            suggestion="Create a workflow file or specify a different path:\n  spinline run -f workflow.yml",
        )
        sys.exit(EXIT_CONFIG)
    return workflow_path


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and child output)",
)
@click.option(
    "--log-level",
    default=settings.LOG_LEVEL,
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Minimum level for log records",
)
@click.option(
    "--json-logs/--console-logs",
    default=settings.LOG_FORMAT == "json",
    help="Render log records as JSON lines",
)
@click.pass_context
def cli(ctx, debug, log_level, json_logs):
    """spinline: run a sequence of shell steps under timeouts."""
    console = Console(debug=debug)
    set_console(console)
    configure_logging("DEBUG" if debug else log_level, json_logs=json_logs)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option("-f", "--file", "workflow_file", required=True, help="Workflow file to run")
@click.option("--timeout", default=None, type=DurationType(), help="Default step timeout (e.g. 30s, 5m)")
@click.option("--strict", is_flag=True, default=False, help="Exit non-zero when any step failed, even without stopOnFail")
@click.pass_context
def run(ctx, workflow_file, timeout, strict):
    """Run the given workflow."""
    console = get_console()
    log = structlog.get_logger("spinline.cli")
    workflow_path = resolve_workflow_file(workflow_file)

    cancel = threading.Event()
    manager = NotificationManager(ConsoleNotifier(console))

    def _on_signal(signum, frame):
        console.print_info("\nReceived an interrupt, stopping...")
        cancel.set()

    previous = {
        sig: signal.signal(sig, _on_signal)
        for sig in (signal.SIGINT, signal.SIGTERM)
    }

    try:
        options = WorkflowOptions(notifier=manager.notify)
        if timeout is not None:
            options.timeout = timeout
        workflow = load_workflow(workflow_path, options)

        console.print_run_started(
            workflow=workflow_path.name,
            version=workflow.version,
            step_count=len(workflow.steps),
        )

        manager.start()
        result = workflow.run(
            cancel,
            logger=log,
            sink=SpinnerSink(stdout=console.out, stderr=console.err),
        )
        console.print_results(result.steps)

        if strict and not result.ok:
            sys.exit(EXIT_FAILED)

    except (WorkflowCancelled, CancelledError) as e:
        console.print_info(str(e))
        sys.exit(EXIT_INTERRUPTED)
    except ConfigError as e:
        console.print_error("Invalid workflow", str(e), details=[str(workflow_path)])
        sys.exit(EXIT_CONFIG)
    except SpinlineError as e:
        console.print_exception(e)
        sys.exit(EXIT_FAILED)
    except FileNotFoundError as e:
        console.print_error("Workflow file not found", str(e))
        sys.exit(EXIT_CONFIG)
    finally:
        manager.close()
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@cli.command()
@click.option("-f", "--file", "workflow_file", required=True, help="Workflow file to check")
def validate(workflow_file):
    """Load a workflow and print its steps without running anything."""
    console = get_console()
    workflow_path = resolve_workflow_file(workflow_file)

    try:
        workflow = load_workflow(workflow_path, WorkflowOptions())
    except ConfigError as e:
        console.print_error("Invalid workflow", str(e), details=[str(workflow_path)])
        sys.exit(EXIT_CONFIG)

    console.print_header(f"{workflow_path.name} (version {workflow.version or '-'})")
    for step in workflow.steps:
        flags = []
        if step.stop_on_fail:
            flags.append("stopOnFail")
        if step.probe is not None:
            flags.append("probe")
        extra = f" [{', '.join(flags)}]" if flags else ""
        console.print_info(
            f"  {step.name}: {step.command} {' '.join(step.args)}".rstrip()
            + f" (timeout {format_duration(step.effective_timeout())}){extra}"
        )


@cli.command()
def version():
    """Print the spinline version."""
    click.echo(__version__)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
