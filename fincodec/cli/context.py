"""
CLI context.

Exit codes and the report model shared by all commands.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field

from fincodec.core.errors import CodecIssue, Severity


class ExitCode(IntEnum):
    """CLI exit codes following Unix conventions."""

    SUCCESS = 0  # No issues found
    ERROR = 1  # Validation failure
    FATAL = 2  # Fatal error (parse failure, etc.)
    USAGE = 64  # Command line usage error


class Report(BaseModel):
    """Result of one CLI command on one file."""

    file: str
    kind: str = Field(description="csv, datev or mt940")
    summary: dict[str, Any] = Field(default_factory=dict)
    issues: list[CodecIssue] = Field(default_factory=list)

    def has_fatal(self) -> bool:
        return any(i.severity is Severity.FATAL for i in self.issues)

    def has_error(self) -> bool:
        return any(i.severity is Severity.ERROR for i in self.issues)

    def exit_code(self) -> ExitCode:
        return get_exit_code(self.has_fatal(), self.has_error())


def get_exit_code(has_fatal: bool, has_error: bool) -> ExitCode:
    """Determine exit code based on issue severities."""
    if has_fatal:
        return ExitCode.FATAL
    if has_error:
        return ExitCode.ERROR
    return ExitCode.SUCCESS
