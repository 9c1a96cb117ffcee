"""
JSON output adapter.

Renders reports as JSON for machine processing.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, TextIO

from fincodec.cli.output.base import OutputAdapter, OutputFormat

if TYPE_CHECKING:
    from fincodec.cli.context import Report


class JsonOutput(OutputAdapter):
    """JSON output adapter."""

    format = OutputFormat.JSON

    def __init__(self, stream: TextIO | None = None, color: bool = False, indent: int = 2):
        super().__init__(stream=stream, color=False)  # Never colorize JSON
        self.indent = indent

    def render_report(self, report: Report) -> str:
        output: dict[str, Any] = report.model_dump(mode="json")
        output["exit_code"] = int(report.exit_code())
        return json.dumps(output, indent=self.indent, default=str, ensure_ascii=False)
