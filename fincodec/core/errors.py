"""
Codec error models.

This module defines structured issues and the exception taxonomy shared by
all codecs. Every issue carries a code from the FC-XXX-NNN taxonomy.

Error domains:
- FC-STR-*: Structural errors (missing headers, row counts, missing tags)
- FC-GRM-*: Grammar errors (text does not match a required format)
- FC-CON-*: Constraint errors (fixed-format bounds exceeded)
- FC-VER-*: Unknown or unsupported format versions
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Severity(Enum):
    """Issue severity levels."""

    FATAL = "fatal"  # Cannot continue
    ERROR = "error"  # Output would be rejected downstream
    WARN = "warn"  # Risky, might cause issues
    INFO = "info"  # Informational


class Location(BaseModel, frozen=True):
    """Issue location in the source text."""

    file: str | None = None
    line_no: int | None = None
    column: int | None = None
    row: int | None = None
    field: str | None = None

    def __str__(self) -> str:
        """Format location for display."""
        parts = []
        if self.file:
            parts.append(self.file)
        if self.line_no is not None:
            parts.append(f"line {self.line_no}")
        if self.column is not None:
            parts.append(f"col {self.column}")
        if self.row is not None:
            parts.append(f"row {self.row}")
        if self.field:
            parts.append(f"field '{self.field}'")
        return ", ".join(parts) if parts else "<unknown>"


class CodecIssue(BaseModel, frozen=True):
    """
    Structured codec issue.

    Issues are either raised (wrapped in a CodecError subclass) or returned
    from non-throwing checks such as document consistency.
    """

    code: str = Field(
        pattern=r"^FC-[A-Z]{3}-\d{3}$",
        description="Issue code, e.g., 'FC-GRM-005'",
    )
    severity: Severity
    title: str = Field(description="Short issue title")
    message: str = Field(description="Detailed message including the raw input")
    location: Location = Field(
        default_factory=Location,
        description="Where the issue occurred",
    )
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context (raw value, expected, actual, etc.)",
    )

    # Factory methods for common issue creation patterns

    @classmethod
    def fatal(
        cls,
        code: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        context: dict[str, Any] | None = None,
    ) -> CodecIssue:
        """Create a FATAL severity issue."""
        return cls._create(Severity.FATAL, code, title, message, location, context)

    @classmethod
    def error(
        cls,
        code: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        context: dict[str, Any] | None = None,
    ) -> CodecIssue:
        """Create an ERROR severity issue."""
        return cls._create(Severity.ERROR, code, title, message, location, context)

    @classmethod
    def warn(
        cls,
        code: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        context: dict[str, Any] | None = None,
    ) -> CodecIssue:
        """Create a WARN severity issue."""
        return cls._create(Severity.WARN, code, title, message, location, context)

    @classmethod
    def info(
        cls,
        code: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        context: dict[str, Any] | None = None,
    ) -> CodecIssue:
        """Create an INFO severity issue."""
        return cls._create(Severity.INFO, code, title, message, location, context)

    @classmethod
    def _create(
        cls,
        severity: Severity,
        code: str,
        title: str,
        message: str,
        location: Location | None,
        context: dict[str, Any] | None,
    ) -> CodecIssue:
        return cls(
            code=code,
            severity=severity,
            title=title,
            message=message,
            location=location or Location(),
            context=context or {},
        )

    def __str__(self) -> str:
        """Format issue for display."""
        return f"[{self.code}] {self.severity.value.upper()}: {self.title} - {self.message}"


# =============================================================================
# Exceptions
# =============================================================================


class CodecError(Exception):
    """Base class for all codec errors. Wraps a CodecIssue."""

    def __init__(self, issue: CodecIssue) -> None:
        self.issue = issue
        super().__init__(str(issue))

    @property
    def code(self) -> str:
        return self.issue.code

    @classmethod
    def create(
        cls,
        code: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        context: dict[str, Any] | None = None,
    ) -> CodecError:
        """Build the exception around a FATAL issue."""
        return cls(
            CodecIssue.fatal(code, title, message, location=location, context=context)
        )


class StructuralError(CodecError):
    """Missing header or meta header, wrong row field count, missing tag."""


class GrammarError(CodecError):
    """Text does not match a format's required grammar."""


class ConstraintError(CodecError):
    """Value exceeds a fixed-format bound."""


class UnknownVersionError(CodecError):
    """Format version present but no registered definition matches."""


# =============================================================================
# Error Codes Registry
# =============================================================================

ERROR_CODES: dict[str, str] = {
    # Structural errors
    "FC-STR-001": "Empty input",
    "FC-STR-002": "Row field count differs from reference count",
    "FC-STR-003": "Missing field header line",
    "FC-STR-004": "Missing meta header line",
    "FC-STR-005": "Format marker is not EXTF",
    "FC-STR-006": "Missing required column",
    "FC-STR-007": "Unknown column",
    "FC-STR-008": "Too few lines",
    "FC-STR-009": "Missing required MT940 tag",
    "FC-STR-010": "Invalid line range",
    # Grammar errors
    "FC-GRM-001": "Unexpected enclosure character",
    "FC-GRM-002": "Unclosed enclosure",
    "FC-GRM-003": "Invalid delimiter or enclosure",
    "FC-GRM-004": "Value does not match field pattern",
    "FC-GRM-005": "Invalid MT940 balance",
    "FC-GRM-006": "Invalid MT940 transaction line",
    "FC-GRM-007": "Invalid date",
    "FC-GRM-008": "Invalid code value",
    # Constraint errors
    "FC-CON-001": "MT940 reference exceeds 16 characters",
    "FC-CON-002": "MT940 purpose exceeds segment ?29",
    "FC-CON-003": "Opening and closing balances do not match",
    "FC-CON-004": "Column width must be at least 1",
    "FC-CON-005": "Index out of range",
    # Version errors
    "FC-VER-001": "Unknown format version",
    "FC-VER-002": "Unsupported format category",
}


def get_error_description(code: str) -> str | None:
    """Get the description for an error code."""
    return ERROR_CODES.get(code)
