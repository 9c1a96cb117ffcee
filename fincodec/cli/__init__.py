"""
CLI for fincodec.

Command-line interface for checking CSV files, validating DATEV exports and
inspecting MT940 statements.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fincodec.cli.context import ExitCode, Report

if TYPE_CHECKING:
    from typer import Typer

    app: Typer


def __getattr__(name: str) -> Any:
    if name == "app":
        from fincodec.cli.main import app as _app

        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ExitCode",
    "Report",
    "app",
]
