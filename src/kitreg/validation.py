"""Validation result types for kitreg.

Provides simple dataclasses for the issues found while checking kit
metadata files and for the aggregated report of one validation run.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Severity(str, Enum):
    """How an issue affects the outcome of a run."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    """A single problem attributed to one kit metadata file.

    Attributes:
        path: The file the issue was found in.
        message: Human-readable description of the problem.
        severity: ERROR fails the run, WARNING is informational.
    """

    path: Path
    message: str
    severity: Severity = Severity.ERROR

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class ValidationReport:
    """Result of validating a set of kit metadata files.

    Attributes:
        errors: Errors in the order they were found.
        warnings: Warnings in the order they were found.
        file_count: Number of files that were checked.
        unique_slugs: Number of distinct slugs seen across those files.
    """

    errors: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)
    file_count: int = 0
    unique_slugs: int = 0

    @property
    def is_valid(self) -> bool:
        """True when no errors were found. Warnings never fail a run."""
        return not self.errors

    def add(self, issue: Issue) -> None:
        """File an issue under errors or warnings based on its severity."""
        if issue.severity is Severity.WARNING:
            self.warnings.append(issue)
        else:
            self.errors.append(issue)
