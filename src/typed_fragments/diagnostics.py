"""Structured diagnostics reported during a generation run.

Recoverable conditions never raise; they are recorded here and attached to
the run's result. Every diagnostic is also written to the module logger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(Enum):
    """Diagnostic identifiers with their default severity."""

    INVALID_SYNTAX = ("GQLSG001", Severity.ERROR)
    NO_FRAGMENTS = ("GQLSG002", Severity.WARNING)
    INVALID_FRAGMENT_NAME = ("GQLSG003", Severity.ERROR)
    FRAGMENT_SPREAD_NOT_FOUND = ("GQLSG004", Severity.ERROR)
    SCHEMA_FILE_NOT_FOUND = ("GQLSG005", Severity.ERROR)
    INVALID_SCHEMA = ("GQLSG006", Severity.ERROR)
    TYPE_NOT_FOUND = ("GQLSG007", Severity.WARNING)
    FIELD_NOT_FOUND = ("GQLSG008", Severity.WARNING)
    MISSING_TYPENAME = ("GQLSG009", Severity.WARNING)
    INCOMPATIBLE_UNION_FIELD = ("GQLSG010", Severity.INFO)
    SPREAD_CYCLE = ("GQLSG011", Severity.WARNING)
    MISSING_SCHEMA = ("GQLSG012", Severity.INFO)
    NAMING_COLLISION = ("GQLSG013", Severity.ERROR)
    CONFIGURATION_ERROR = ("GQLSG014", Severity.ERROR)

    @property
    def id(self) -> str:
        return self.value[0]

    @property
    def default_severity(self) -> Severity:
        return self.value[1]


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    code: DiagnosticCode
    severity: Severity
    message: str
    fragment: str | None = None

    def __str__(self) -> str:
        where = f" [{self.fragment}]" if self.fragment else ""
        return f"{self.code.id} {self.severity.value}{where}: {self.message}"


class DiagnosticSink:
    """Collects diagnostics in report order."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def report(
        self,
        code: DiagnosticCode,
        message: str,
        fragment: str | None = None,
        severity: Severity | None = None,
    ) -> Diagnostic:
        """Record a diagnostic, using the code's default severity unless overridden."""
        diagnostic = Diagnostic(
            code=code,
            severity=severity or code.default_severity,
            message=message,
            fragment=fragment,
        )
        self.diagnostics.append(diagnostic)
        logger.log(_LOG_LEVELS[diagnostic.severity], "%s", diagnostic)
        return diagnostic

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        """Adopt diagnostics already reported (and logged) elsewhere."""
        self.diagnostics.extend(diagnostics)

    def of_severity(self, severity: Severity) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is severity]

    def has_code(self, code: DiagnosticCode) -> bool:
        return any(d.code is code for d in self.diagnostics)

    def __iter__(self):  # type: ignore
        return iter(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)
