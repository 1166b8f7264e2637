# src/otpimport/common/diagnostics.py

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
ERROR = "error"

_LOG_LEVELS = {INFO: logging.INFO, WARNING: logging.WARNING, ERROR: logging.ERROR}


@dataclass(frozen=True)
class Diagnostic:
    """One structured event emitted while importing (skip, failure, detection)."""
    level: str
    event: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class Reporter:
    """
    Diagnostic sink injected into every parser.

    Reporting is advisory only: nothing sent here changes the records a
    parser returns.
    """

    def report(self, diagnostic: Diagnostic) -> None:
        raise NotImplementedError

    def info(self, event: str, message: str, **context: Any) -> None:
        self.report(Diagnostic(INFO, event, message, context))

    def warning(self, event: str, message: str, **context: Any) -> None:
        self.report(Diagnostic(WARNING, event, message, context))

    def error(self, event: str, message: str, **context: Any) -> None:
        self.report(Diagnostic(ERROR, event, message, context))


class LoggingReporter(Reporter):
    """Forwards diagnostics to the standard logging module."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def report(self, diagnostic: Diagnostic) -> None:
        suffix = ""
        if diagnostic.context:
            suffix = " (" + ", ".join(f"{k}={v}" for k, v in diagnostic.context.items()) + ")"
        self.log.log(
            _LOG_LEVELS.get(diagnostic.level, logging.INFO),
            "%s%s",
            diagnostic.message,
            suffix,
        )


class CollectingReporter(Reporter):
    """Keeps every diagnostic in memory; optionally forwards to another reporter."""

    def __init__(self, forward_to: Optional[Reporter] = None):
        self.diagnostics: List[Diagnostic] = []
        self.forward_to = forward_to

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if self.forward_to is not None:
            self.forward_to.report(diagnostic)

    def events(self, level: Optional[str] = None) -> List[Diagnostic]:
        if level is None:
            return list(self.diagnostics)
        return [d for d in self.diagnostics if d.level == level]

    def count(self, level: str) -> int:
        return len(self.events(level))


def ensure_reporter(reporter: Optional[Reporter]) -> Reporter:
    return reporter if reporter is not None else LoggingReporter()
