"""Severity-tagged error logging with request context."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.CRITICAL,
}

logger = logging.getLogger("errors")


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened: which component, doing what."""
    component: str
    action: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def log_error(error: BaseException, context: Optional[ErrorContext] = None, severity: str = "medium") -> None:
    """
    Log an error with its traceback and context.

    Args:
        error: The exception that was caught
        context: Component, action and extra metadata for the log record
        severity: One of low, medium, high, critical
    """
    if severity not in SEVERITY_LEVELS:
        raise ValueError(f"Unknown severity: {severity}")

    context = context or ErrorContext(component="unknown", action="unknown")
    extra = {
        "severity": severity,
        "component": context.component,
        "action": context.action,
        "error_metadata": dict(context.metadata),
    }
    logger.log(
        SEVERITY_LEVELS[severity],
        f"[{severity}] {context.component}/{context.action} failed: "
        f"{type(error).__name__}: {str(error)} {context.metadata}",
        exc_info=(type(error), error, error.__traceback__),
        extra=extra,
    )
