"""
Main CLI application.

Entry point for the fincodec command.
"""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003
from typing import Annotated, NoReturn

import typer

import fincodec
from fincodec.cli.context import ExitCode, Report
from fincodec.cli.output import OutputAdapter, OutputFormat, get_output_adapter
from fincodec.core.errors import CodecError, CodecIssue, Severity
from fincodec.log import configure_logging

# Create main app
app = typer.Typer(
    name="fincodec",
    help="Codec for CSV, DATEV and MT940 financial text formats",
    add_completion=False,
    no_args_is_help=True,
)

csv_app = typer.Typer(help="Generic delimited files", no_args_is_help=True)
datev_app = typer.Typer(help="DATEV EXTF files", no_args_is_help=True)
mt940_app = typer.Typer(help="SWIFT MT940 statements", no_args_is_help=True)

app.add_typer(csv_app, name="csv")
app.add_typer(datev_app, name="datev")
app.add_typer(mt940_app, name="mt940")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fincodec {fincodec.__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            envvar="FINCODEC_LOG_LEVEL",
            help="Log level: DEBUG, INFO, WARNING, ERROR",
        ),
    ] = "WARNING",
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit log events as JSON lines"),
    ] = False,
) -> None:
    """Codec for CSV, DATEV and MT940 financial text formats."""
    try:
        configure_logging(log_level, json_output=json_logs)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from None


# =============================================================================
# Shared options and helpers
# =============================================================================

FileArgument = Annotated[
    Path,
    typer.Argument(help="Input file", exists=True, dir_okay=False, readable=True),
]
FormatOption = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format: terminal, json"),
]
ColorOption = Annotated[
    bool,
    typer.Option("--color/--no-color", help="Enable/disable colored output"),
]


def _get_adapter(format: str, color: bool) -> OutputAdapter:
    try:
        return get_output_adapter(OutputFormat(format), color=color)
    except ValueError:
        typer.echo(f"Unknown format: {format}", err=True)
        typer.echo("Available formats: terminal, json", err=True)
        raise typer.Exit(ExitCode.USAGE) from None


def _emit(adapter: OutputAdapter, report: Report) -> NoReturn:
    typer.echo(adapter.render_report(report))
    raise typer.Exit(report.exit_code())


def _as_error(issue: CodecIssue) -> CodecIssue:
    """Validation failures are reported as ERROR, not FATAL."""
    return issue.model_copy(update={"severity": Severity.ERROR})


# =============================================================================
# CSV Commands
# =============================================================================


@csv_app.command("check")
def csv_check(
    file: FileArgument,
    delimiter: Annotated[str, typer.Option("--delimiter", "-d", help="Field delimiter")] = ",",
    enclosure: Annotated[str, typer.Option("--enclosure", "-e", help="Quote character")] = '"',
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="First line is data, not a header"),
    ] = False,
    format: FormatOption = "terminal",
    color: ColorOption = True,
) -> None:
    """Report row and column counts and inconsistent rows of a CSV file."""
    from fincodec.core.csv import parse_file
    from fincodec.core.csv.models import check_dialect

    adapter = _get_adapter(format, color)

    try:
        check_dialect(delimiter, enclosure)
    except CodecError as e:
        typer.echo(e.issue.message, err=True)
        raise typer.Exit(ExitCode.USAGE) from None

    try:
        document = parse_file(
            file, delimiter, enclosure, has_header=not no_header, strict=False
        )
    except CodecError as e:
        _emit(adapter, Report(file=str(file), kind="csv", issues=[e.issue]))

    report = Report(
        file=str(file),
        kind="csv",
        summary={
            "rows": document.count_rows(),
            "columns": document.reference_field_count() or 0,
            "header": document.column_names(),
            "inconsistent_rows": document.inconsistent_rows(),
        },
        issues=document.consistency_issues(),
    )
    _emit(adapter, report)


# =============================================================================
# DATEV Commands
# =============================================================================


@datev_app.command("validate")
def datev_validate(
    file: FileArgument,
    format: FormatOption = "terminal",
    color: ColorOption = True,
) -> None:
    """Parse and validate a DATEV EXTF file."""
    from fincodec.core.datev import parse_datev_file

    adapter = _get_adapter(format, color)

    try:
        document = parse_datev_file(file)
    except CodecError as e:
        _emit(adapter, Report(file=str(file), kind="datev", issues=[e.issue]))

    issues = [_as_error(issue) for issue in document.consistency_issues()]
    try:
        document.validate()
    except CodecError as e:
        issues.insert(0, _as_error(e.issue))

    meta = document.meta_header
    summary = {
        "version": meta.version if meta else None,
        "format_category": meta.format_category if meta else None,
        "format_name": meta.format_name if meta else None,
        "rows": document.count_rows(),
        "lock_flag": document.lock_flag().name,
    }
    _emit(adapter, Report(file=str(file), kind="datev", summary=summary, issues=issues))


@datev_app.command("analyze")
def datev_analyze(file: FileArgument) -> None:
    """Print format information of a DATEV file as JSON."""
    from fincodec.core.csv.encoding import read_text
    from fincodec.core.datev import analyze_format

    info = analyze_format(read_text(file))
    typer.echo(json.dumps(info, indent=2, default=str, ensure_ascii=False))
    raise typer.Exit(ExitCode.SUCCESS if info.get("supported") else ExitCode.ERROR)


# =============================================================================
# MT940 Commands
# =============================================================================


@mt940_app.command("show")
def mt940_show(
    file: FileArgument,
    format: FormatOption = "terminal",
    color: ColorOption = True,
) -> None:
    """Print balances and transactions of an MT940 statement."""
    from fincodec.core.csv.encoding import read_text
    from fincodec.core.mt940 import format_amount, parse_mt940

    adapter = _get_adapter(format, color)

    try:
        statement = parse_mt940(read_text(file))
    except CodecError as e:
        _emit(adapter, Report(file=str(file), kind="mt940", issues=[e.issue]))

    summary: dict[str, object] = {
        "reference": statement.reference_id,
        "account": statement.account_id,
        "statement": statement.statement_number,
        "opening": statement.opening_balance.to_mt940(),
        "closing": statement.closing_balance.to_mt940(),
        "transactions": statement.count_transactions(),
    }
    for index, transaction in enumerate(statement.transactions, start=1):
        summary[f"#{index}"] = (
            f"{transaction.date.isoformat()} {transaction.sign}"
            f"{format_amount(transaction.amount)} {transaction.currency} "
            f"{transaction.reference.to_mt940()} {transaction.purpose or ''}"
        ).rstrip()

    _emit(adapter, Report(file=str(file), kind="mt940", summary=summary))


if __name__ == "__main__":
    app()
