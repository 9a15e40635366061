"""
Workflow YAML loader, validator and serializer.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Union

import yaml

from .durations import format_duration, parse_duration
from .errors import ConfigError
from .model import Probe, Step, Workflow, WorkflowOptions
from .ui.console import ConsoleNotifier


def load_workflow_from_bytes(data: Union[bytes, str], options: Optional[WorkflowOptions]) -> Workflow:
    """
    Build a Workflow from a YAML document.

    Args:
        data: The document, as bytes or text
        options: Workflow options. A missing notifier is replaced with one
                 that prints each event on stdout.

    Returns:
        A Workflow whose steps all point back at it.

    Raises:
        ConfigError: if options are missing or the document is invalid
    """
    if options is None:
        raise ConfigError("workflow options are required")

    try:
        doc = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e

    workflow = workflow_from_dict(doc)

    if options.notifier is None:
        options.notifier = ConsoleNotifier().notify
    try:
        options.timeout = parse_duration(options.timeout)
    except ValueError as e:
        raise ConfigError(f"default timeout: {e}") from e
    if options.timeout.total_seconds() <= 0:
        raise ConfigError(f"default timeout must be positive, got {format_duration(options.timeout)}")

    workflow.options = options
    workflow.link()
    return workflow


def load_workflow_from_reader(reader: IO[Any], options: Optional[WorkflowOptions]) -> Workflow:
    """Read a whole stream (bytes or text) and load it."""
    return load_workflow_from_bytes(reader.read(), options)


def load_workflow(path: Union[str, Path], options: Optional[WorkflowOptions]) -> Workflow:
    """Load a workflow file from disk."""
    wf_path = Path(path).expanduser()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    with wf_path.open("rb") as f:
        return load_workflow_from_reader(f, options)


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def workflow_from_dict(doc: Any) -> Workflow:
    """Validate a parsed document and turn it into an (unlinked) Workflow."""
    if not doc:
        raise ConfigError("Empty workflow document")

    if not isinstance(doc, dict):
        raise ConfigError("Workflow document must be a mapping")

    version = doc.get("version", "")
    if version is None:
        version = ""
    if not isinstance(version, (str, int, float)) or isinstance(version, bool):
        raise ConfigError("Workflow 'version' must be a string")

    metadata = doc.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ConfigError("Workflow 'metadata' must be a mapping")

    steps = doc.get("steps") or []
    if not isinstance(steps, list):
        raise ConfigError("Workflow 'steps' must be a list")

    validated: List[Step] = []
    seen = set()
    for i, raw in enumerate(steps):
        step = step_from_dict(raw, i)
        if step.name in seen:
            raise ConfigError(f"Step {i} name {step.name!r} is not unique")
        seen.add(step.name)
        validated.append(step)

    return Workflow(
        version=str(version),
        metadata={str(k): "" if v is None else str(v) for k, v in metadata.items()},
        steps=validated,
    )


def step_from_dict(raw: Any, index: int) -> Step:
    """Validate a single step mapping."""
    if not isinstance(raw, dict):
        raise ConfigError(f"Step {index} must be a mapping")

    for key in ("name", "command"):
        if key not in raw:
            raise ConfigError(f"Step {index} missing '{key}'")
        if not isinstance(raw[key], str) or not raw[key]:
            raise ConfigError(f"Step {index} '{key}' must be a non-empty string")

    args = _string_list(raw.get("args"), f"Step {index} 'args'")

    workdir = raw.get("workdir")
    if workdir is not None and not isinstance(workdir, str):
        raise ConfigError(f"Step {index} 'workdir' must be a string")

    timeout = None
    if raw.get("timeout") is not None:
        try:
            timeout = parse_duration(raw["timeout"])
        except ValueError as e:
            raise ConfigError(f"Step {index} 'timeout': {e}") from e
        if timeout.total_seconds() <= 0:
            raise ConfigError(f"Step {index} 'timeout' must be positive")

    stop_on_fail = raw.get("stopOnFail", False)
    if stop_on_fail is None:
        stop_on_fail = False
    if not isinstance(stop_on_fail, bool):
        raise ConfigError(f"Step {index} 'stopOnFail' must be a boolean")

    probe = None
    if raw.get("probe") is not None:
        probe = probe_from_dict(raw["probe"], index)

    return Step(
        name=raw["name"],
        command=raw["command"],
        args=args,
        workdir=workdir or None,
        timeout=timeout,
        stop_on_fail=stop_on_fail,
        probe=probe,
    )


def probe_from_dict(raw: Any, index: int) -> Probe:
    if not isinstance(raw, dict):
        raise ConfigError(f"Step {index} 'probe' must be a mapping")
    command = raw.get("command")
    if not isinstance(command, str) or not command:
        raise ConfigError(f"Step {index} probe 'command' must be a non-empty string")
    return Probe(command=command, args=_string_list(raw.get("args"), f"Step {index} probe 'args'"))


def _string_list(value: Any, what: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list")
    for j, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigError(f"{what} item {j} must be a string")
    return list(value)


# ----------------------------------------------------------------------
# Serialization
# ----------------------------------------------------------------------

def step_to_dict(step: Step) -> Dict[str, Any]:
    """
    Convert a Step to the document form.
    This is the reverse of step_from_dict().
    """
    out: Dict[str, Any] = {
        "name": step.name,
        "command": step.command,
    }
    if step.args:
        out["args"] = list(step.args)
    if step.workdir:
        out["workdir"] = step.workdir
    if step.timeout is not None:
        out["timeout"] = format_duration(step.timeout)
    if step.stop_on_fail:
        out["stopOnFail"] = True
    if step.probe is not None:
        probe: Dict[str, Any] = {"command": step.probe.command}
        if step.probe.args:
            probe["args"] = list(step.probe.args)
        out["probe"] = probe
    return out


def workflow_to_dict(workflow: Workflow) -> Dict[str, Any]:
    return {
        "version": workflow.version,
        "metadata": dict(workflow.metadata),
        "steps": [step_to_dict(s) for s in workflow.steps],
    }


def dump_workflow(workflow: Workflow) -> str:
    """Serialize a workflow back to YAML."""
    return yaml.safe_dump(workflow_to_dict(workflow), sort_keys=False, allow_unicode=True)
