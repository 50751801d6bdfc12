"""
Failure reporting for check passes that found violations.

Two outcomes, exactly one per failed pass:
- diagnostic sink active: one ERROR record per violation, caller continues
- otherwise: RepInvariantError carrying every violation, in order

The sink is configured explicitly (or through CHECKREP_DIAGNOSTICS) so the
outcome does not depend on whatever handlers happen to be installed.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator

from .errors import RepErrors, RepInvariantError


ENV_VAR = "CHECKREP_DIAGNOSTICS"
DEFAULT_LOGGER_NAME = "checkrep.violations"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}

# Global sink: None means abort mode.
_SINK: logging.Logger | None = None


def enable_diagnostics(logger: logging.Logger | None = None) -> logging.Logger:
    """Route violations to `logger` (default: checkrep.violations) instead of raising."""
    global _SINK
    _SINK = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
    return _SINK


def disable_diagnostics() -> None:
    """Return to abort mode."""
    global _SINK
    _SINK = None


def diagnostic_sink() -> logging.Logger | None:
    return _SINK


def sink_active() -> bool:
    return _SINK is not None and _SINK.isEnabledFor(logging.ERROR)


@contextmanager
def diagnostics(logger: logging.Logger | None = None) -> Iterator[logging.Logger]:
    """Temporarily enable diagnostic mode, restoring the previous sink on exit."""
    global _SINK
    previous = _SINK
    sink = enable_diagnostics(logger)
    try:
        yield sink
    finally:
        _SINK = previous


def configure_from_env(environ: dict[str, str] | None = None) -> logging.Logger | None:
    """
    Enable diagnostics from CHECKREP_DIAGNOSTICS.

    Truthy values select the default logger; any other non-falsy value is
    taken as a logger name.
    """
    env = os.environ if environ is None else environ
    raw = env.get(ENV_VAR, "").strip()
    if raw.lower() in _FALSY:
        return None
    if raw.lower() in _TRUTHY:
        return enable_diagnostics()
    return enable_diagnostics(logging.getLogger(raw))


def report_violations(errors: RepErrors) -> None:
    """Report a non-empty ErrorSet: log each violation, or raise RepInvariantError."""
    sink = _SINK
    if sink is not None and sink.isEnabledFor(logging.ERROR):
        for error in errors:
            sink.error("representation invariant violated: %r", error)
        return
    raise RepInvariantError(errors)
