"""
Output adapters for CLI.

Provides the terminal and JSON output formats.
"""

from fincodec.cli.output.base import OutputAdapter, OutputFormat, get_output_adapter
from fincodec.cli.output.json import JsonOutput
from fincodec.cli.output.terminal import TerminalOutput

__all__ = [
    "JsonOutput",
    "OutputAdapter",
    "OutputFormat",
    "TerminalOutput",
    "get_output_adapter",
]
