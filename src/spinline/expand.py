# expand.py
from __future__ import annotations

import os
import re
from typing import Any, Callable, Dict, List, Mapping, Optional

import jinja2
from jinja2.sandbox import SandboxedEnvironment

# $NAME or ${NAME}; a lone "$" is left alone
_ENV_TOKEN = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z0-9_]+))")


def expand_env(text: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Replace $NAME and ${NAME} with values from the environment.

    Unknown names expand to the empty string. Text without tokens comes back
    unchanged.
    """
    env = os.environ if environ is None else environ

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1) if match.group(1) is not None else match.group(2)
        return env.get(name, "")

    return _ENV_TOKEN.sub(replace, text)


def expand_env_all(items: List[str], environ: Optional[Mapping[str, str]] = None) -> List[str]:
    return [expand_env(item, environ) for item in items]


# ----------------------------------------------------------------------
# Argument templates
# ----------------------------------------------------------------------

_jinja = SandboxedEnvironment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)

# errors a template can raise while rendering step values
TEMPLATE_FAILURES = (
    jinja2.TemplateError,
    ArithmeticError,
    LookupError,
    TypeError,
    ValueError,
)


def render_arg(arg: str, context: Dict[str, Any]) -> str:
    """Render one argument as a template. Raises TEMPLATE_FAILURES on error."""
    template = _jinja.from_string(arg)
    return template.render(context)


def render_args(
    args: List[str],
    context: Dict[str, Any],
    on_error: Optional[Callable[[str, Exception], Exception]] = None,
) -> List[str]:
    """
    Render every argument with the same context, keeping order and count.

    on_error maps (arg, exception) to the exception that should be raised
    instead; without it the template error propagates as-is.
    """
    out: List[str] = []
    for arg in args:
        try:
            out.append(render_arg(arg, context))
        except TEMPLATE_FAILURES as e:
            if on_error is None:
                raise
            raise on_error(arg, e) from e
    return out
