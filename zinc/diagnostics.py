from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

WARNING = "warning"
INFO = "info"

_LEVELS = {WARNING: logging.WARNING, INFO: logging.DEBUG}


@dataclass(frozen=True)
class Diagnostic:
    severity: str
    message: str
    line: int = 0
    name: Optional[str] = None


def report(
    logger: logging.Logger,
    diagnostics: Optional[list[Diagnostic]],
    severity: str,
    message: str,
    line: int = 0,
    name: Optional[str] = None,
) -> None:
    """Log a definition-level problem and collect it when a list is given."""
    logger.log(_LEVELS[severity], "line %d: %s", line, message)
    if diagnostics is not None:
        diagnostics.append(Diagnostic(severity, message, line, name))
