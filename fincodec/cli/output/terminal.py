"""
Terminal output adapter.

Renders reports as plain text with optional ANSI colors.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from fincodec.cli.output.base import OutputAdapter, OutputFormat

if TYPE_CHECKING:
    from fincodec.cli.context import Report
    from fincodec.core.errors import CodecIssue


# Check if Unicode is supported
def _supports_unicode() -> bool:
    """Check if terminal supports Unicode."""
    try:
        "✓".encode(sys.stdout.encoding or "utf-8")
        return True
    except (UnicodeEncodeError, LookupError):
        return False


# Severity colors
SEVERITY_COLORS = {
    "fatal": "bold red",
    "error": "red",
    "warn": "yellow",
    "info": "blue",
}

# Unicode and ASCII fallback symbols
SEVERITY_SYMBOLS_UNICODE = {
    "fatal": "✖",
    "error": "✖",
    "warn": "⚠",
    "info": "ℹ",
}

SEVERITY_SYMBOLS_ASCII = {
    "fatal": "X",
    "error": "X",
    "warn": "!",
    "info": "i",
}

SUCCESS_SYMBOL_UNICODE = "✓"
SUCCESS_SYMBOL_ASCII = "OK"

# ANSI color codes
_ANSI_CODES = {
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "bold red": "\033[1;31m",
}
_ANSI_RESET = "\033[0m"


class TerminalOutput(OutputAdapter):
    """Terminal output with ANSI colors on a TTY."""

    format = OutputFormat.TERMINAL

    def __init__(self, stream: TextIO | None = None, color: bool = True):
        super().__init__(stream=stream, color=color)
        self._use_color = color and self._is_tty()
        self._use_unicode = _supports_unicode()
        self._severity_symbols = (
            SEVERITY_SYMBOLS_UNICODE if self._use_unicode else SEVERITY_SYMBOLS_ASCII
        )
        self._success_symbol = SUCCESS_SYMBOL_UNICODE if self._use_unicode else SUCCESS_SYMBOL_ASCII

    def _is_tty(self) -> bool:
        """Check if output is a TTY."""
        return hasattr(self.stream, "isatty") and self.stream.isatty()

    def render_report(self, report: Report) -> str:
        lines = [self._style(report.file, "bold")]

        width = max((len(key) for key in report.summary), default=0)
        for key, value in report.summary.items():
            lines.append(f"  {key.ljust(width)}  {self._format_value(value)}")

        if report.issues:
            lines.append("")
            lines.extend(self._format_issue(issue) for issue in report.issues)
            lines.append("")
            lines.append(f"Found: {len(report.issues)} issue(s)")
        else:
            lines.append(self._style(f"{self._success_symbol} No issues found.", "green"))

        return "\n".join(lines)

    def _format_value(self, value: object) -> str:
        if isinstance(value, list | tuple):
            return ", ".join(str(v) for v in value) if value else "-"
        if value is None:
            return "-"
        return str(value)

    def _format_issue(self, issue: CodecIssue) -> str:
        """Format a single issue."""
        severity = issue.severity.value
        color = SEVERITY_COLORS.get(severity, "")
        symbol = self._severity_symbols.get(severity, "*")

        # Location
        loc_parts = []
        if issue.location.line_no is not None:
            loc_parts.append(f"L{issue.location.line_no}")
        if issue.location.row is not None:
            loc_parts.append(f"R{issue.location.row}")
        if issue.location.column is not None:
            loc_parts.append(f"C{issue.location.column}")
        if issue.location.field:
            loc_parts.append(issue.location.field)

        location_str = ":".join(loc_parts)

        styled_symbol = self._style(symbol, color)
        styled_code = self._style(issue.code, "dim")

        if location_str:
            return f"  {styled_symbol} {location_str}: {issue.message} [{styled_code}]"
        return f"  {styled_symbol} {issue.message} [{styled_code}]"

    def _style(self, text: str, style: str) -> str:
        """Apply style to text if colors are enabled."""
        if not self._use_color:
            return text

        code = _ANSI_CODES.get(style, "")
        if code:
            return f"{code}{text}{_ANSI_RESET}"
        return text
