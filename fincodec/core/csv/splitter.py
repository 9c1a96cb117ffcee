"""
Logical-line splitter and line tokenizer.

A logical line is one complete CSV record. It may span several physical
lines when a quoted field contains an embedded line break.

Quoting rules shared by the splitter and the tokenizer:
- An enclosure opens a quoted field only at the start of a field.
- Inside a quoted field, doubled enclosures ("") are literal characters.
- An odd opening run is conventional quoting: the first enclosure opens the
  field and the rest are escaped enclosures starting the value. Such a field
  closes on an odd run followed by the delimiter, a line break or the end of
  input.
- An even opening run of two or more is repeated quoting (""value""). Any
  run followed by the delimiter, a line break or the end of input closes it.
- An even run standing alone between delimiters is a field made of
  enclosures only, such as an empty quoted value.
- Any other enclosure inside a quoted field is kept as content.

The splitter is lenient and never raises; malformed quoting surfaces when
the tokenizer processes the logical line.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING

from fincodec.core.errors import GrammarError, Location

from .models import DEFAULT_DELIMITER, DEFAULT_ENCLOSURE, check_dialect

if TYPE_CHECKING:
    from collections.abc import Iterator

_LINE_BREAKS = ("\r", "\n")


class TokenizerState(Enum):
    """State of the tokenizer state machine."""

    FIELD_START = auto()  # At start of a field
    IN_UNQUOTED = auto()  # Inside an unquoted field
    IN_QUOTED = auto()  # Inside a quoted field


def _run_length(text: str, start: int, char: str) -> int:
    """Count consecutive occurrences of char starting at index start."""
    end = start
    while end < len(text) and text[end] == char:
        end += 1
    return end - start


def _closes_field(run: int, open_run: int) -> bool:
    if open_run % 2 == 1:
        return run % 2 == 1
    return True


def _enclosures_only(run: int, at_end: bool) -> bool:
    # An odd run before a delimiter opens a value starting with escaped enclosures
    return at_end or run % 2 == 0


def split_logical_lines(
    text: str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
) -> Iterator[tuple[str, int, int]]:
    """
    Split raw CSV text into logical records.

    Accepts CR, LF and CRLF as record terminators. Line breaks inside quoted
    fields are kept as data. Blank records are skipped.

    Args:
        text: The full text
        delimiter: Field delimiter (needed to recognise closing enclosures)
        enclosure: Quote character

    Yields:
        Tuples of (logical_line, start_line, end_line)
        start_line and end_line are 1-indexed physical line numbers
    """
    check_dialect(delimiter, enclosure)

    state = TokenizerState.FIELD_START
    open_run = 0
    record_start = 0
    line_no = 1
    record_start_line = 1
    length = len(text)
    i = 0

    while i < length:
        char = text[i]

        if state == TokenizerState.IN_QUOTED:
            if char == enclosure:
                run = _run_length(text, i, enclosure)
                j = i + run
                at_boundary = j == length or text[j] == delimiter or text[j] in _LINE_BREAKS
                if at_boundary and _closes_field(run, open_run):
                    state = TokenizerState.IN_UNQUOTED
                i = j
                continue
            # Track physical lines; CRLF counts once (on the LF)
            if char in _LINE_BREAKS and _line_break_width(text, i) == 1:
                line_no += 1
            i += 1
            continue

        if char in _LINE_BREAKS:
            record = text[record_start:i]
            if record.strip():
                yield record, record_start_line, line_no
            i += _line_break_width(text, i)
            line_no += 1
            record_start = i
            record_start_line = line_no
            state = TokenizerState.FIELD_START
            continue

        if char == delimiter:
            state = TokenizerState.FIELD_START
        elif state == TokenizerState.FIELD_START:
            if char == enclosure:
                run = _run_length(text, i, enclosure)
                j = i + run
                at_boundary = j == length or text[j] == delimiter or text[j] in _LINE_BREAKS
                if at_boundary and _enclosures_only(run, j == length):
                    # Field made of enclosures only, e.g. "" or """"
                    state = TokenizerState.IN_UNQUOTED
                else:
                    open_run = run
                    state = TokenizerState.IN_QUOTED
                i = j
                continue
            state = TokenizerState.IN_UNQUOTED
        i += 1

    # Handle final record (also an unclosed quoted field)
    record = text[record_start:]
    if record.strip():
        yield record, record_start_line, line_no


def _line_break_width(text: str, index: int) -> int:
    """Return 2 for CRLF, else 1."""
    if text[index] == "\r" and index + 1 < len(text) and text[index + 1] == "\n":
        return 2
    return 1


def tokenize_line(
    line: str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    line_no: int | None = None,
) -> list[str]:
    """
    Tokenize one logical line into raw field tokens.

    Tokens keep their enclosures and escaping so that CsvField.parse() can
    recover the quoting state. A trailing delimiter yields a trailing empty
    token.

    Args:
        line: The logical line (without terminator)
        delimiter: Field delimiter
        enclosure: Quote character
        line_no: Line number used in error locations

    Returns:
        List of raw field tokens

    Raises:
        GrammarError: Enclosure inside an unquoted field, or unclosed field
    """
    check_dialect(delimiter, enclosure)

    tokens: list[str] = []
    state = TokenizerState.FIELD_START
    open_run = 0
    token_start = 0
    length = len(line)
    i = 0

    while i < length:
        char = line[i]

        if state == TokenizerState.FIELD_START:
            if char == enclosure:
                run = _run_length(line, i, enclosure)
                j = i + run
                if j == length or (line[j] == delimiter and _enclosures_only(run, False)):
                    # Field made of enclosures only
                    tokens.append(line[token_start:j])
                    if j == length:
                        return tokens
                    i = token_start = j + 1
                    continue
                open_run = run
                state = TokenizerState.IN_QUOTED
                i = j
                continue
            if char == delimiter:
                tokens.append("")
                i = token_start = i + 1
                continue
            state = TokenizerState.IN_UNQUOTED
            i += 1

        elif state == TokenizerState.IN_UNQUOTED:
            if char == delimiter:
                tokens.append(line[token_start:i])
                i = token_start = i + 1
                state = TokenizerState.FIELD_START
                continue
            if char == enclosure:
                raise GrammarError.create(
                    "FC-GRM-001",
                    "Unexpected enclosure",
                    f"Unexpected enclosure at index {i} ({line[max(0, i - 10) : i + 10]!r})",
                    location=Location(line_no=line_no, column=i + 1),
                    context={"line": line},
                )
            i += 1

        else:  # IN_QUOTED
            if char == enclosure:
                run = _run_length(line, i, enclosure)
                j = i + run
                at_boundary = j == length or line[j] == delimiter or line[j] in _LINE_BREAKS
                if at_boundary and _closes_field(run, open_run):
                    tokens.append(line[token_start:j])
                    if j == length:
                        return tokens
                    if line[j] != delimiter:
                        raise GrammarError.create(
                            "FC-GRM-001",
                            "Unexpected line break",
                            f"Line break after closing enclosure at index {j}",
                            location=Location(line_no=line_no, column=j + 1),
                            context={"line": line},
                        )
                    i = token_start = j + 1
                    state = TokenizerState.FIELD_START
                    continue
                i = j
                continue
            i += 1

    if state == TokenizerState.IN_QUOTED:
        raise GrammarError.create(
            "FC-GRM-002",
            "Unclosed enclosure",
            f"Field starting at index {token_start} is not closed",
            location=Location(line_no=line_no, column=token_start + 1),
            context={"line": line},
        )

    # Final field; also the trailing empty field after a final delimiter
    tokens.append(line[token_start:])
    return tokens
