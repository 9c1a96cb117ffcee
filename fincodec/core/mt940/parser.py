"""
MT940 parser.

Reads one statement block (:20: ... -) into an Mt940Document.
"""

from __future__ import annotations

import re

import structlog

from fincodec.core.enums import CreditDebit
from fincodec.core.errors import GrammarError, Location, StructuralError

from .document import (
    DEFAULT_REFERENCE_ID,
    DEFAULT_STATEMENT_NUMBER,
    Mt940Document,
    Mt940DocumentBuilder,
)
from .models import (
    DEFAULT_CURRENCY,
    Balance,
    Reference,
    Transaction,
    parse_yymmdd,
    to_amount,
)

logger = structlog.get_logger()

STATEMENT_LINE_PATTERN = re.compile(
    r"^:61:(\d{6})(\d{4})?(R?[CD])(\d+,\d*)([NFS][A-Z0-9]{3})([^/]*)(?://(.*))?$"
)

_LINE_BREAK = re.compile(r"\r\n|\n|\r")


def parse_mt940(text: str) -> Mt940Document:
    """
    Parse an MT940 statement.

    Purpose text is the :86: content followed by the ?NN continuation lines
    (tag stripped), concatenated without separator.

    Raises:
        StructuralError: Missing :25:, opening or closing balance
        GrammarError: Malformed :61: line or balance
        ConstraintError: Opening, transactions and closing do not add up
    """
    lines = _LINE_BREAK.split(text.strip())

    account_id: str | None = None
    reference_id = DEFAULT_REFERENCE_ID
    statement_number = DEFAULT_STATEMENT_NUMBER
    opening: Balance | None = None
    closing: Balance | None = None
    transactions: list[Transaction] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        line_no = i + 1

        if line.startswith(":20:"):
            reference_id = line[4:].strip()
        elif line.startswith(":25:"):
            account_id = line[4:].strip()
        elif line.startswith(":28C:"):
            statement_number = line[5:].strip()
        elif line.startswith((":60F:", ":60M:")):
            opening = _parse_balance(line[5:], line_no)
        elif line.startswith((":62F:", ":62M:")):
            closing = _parse_balance(line[5:], line_no)
        elif line.startswith(":61:"):
            statement_line = line
            i += 1

            purpose: str | None = None
            if i < len(lines) and lines[i].startswith(":86:"):
                segments = [lines[i][4:]]
                i += 1
                while i < len(lines) and lines[i].startswith("?"):
                    segments.append(lines[i][3:])
                    i += 1
                purpose = "".join(segments)

            currency = opening.currency if opening is not None else DEFAULT_CURRENCY
            transactions.append(
                _parse_statement_line(statement_line, purpose, currency, line_no)
            )
            continue
        elif line and line != "-":
            logger.debug("Skipping MT940 line", line_no=line_no, tag=line[:5])

        i += 1

    if not account_id or opening is None or closing is None:
        missing = [
            tag
            for tag, value in ((":25:", account_id), (":60F:", opening), (":62F:", closing))
            if value is None or value == ""
        ]
        raise StructuralError.create(
            "FC-STR-009",
            "Missing required tag",
            f"MT940 block lacks {', '.join(missing)}",
            context={"missing": missing},
        )

    return (
        Mt940DocumentBuilder()
        .with_account_id(account_id)
        .with_reference_id(reference_id)
        .with_statement_number(statement_number)
        .with_opening_balance(opening)
        .with_closing_balance(closing)
        .with_transactions(transactions)
        .build()
    )


def _parse_balance(raw: str, line_no: int) -> Balance:
    try:
        return Balance.parse(raw)
    except GrammarError as e:
        raise GrammarError(
            e.issue.model_copy(update={"location": Location(line_no=line_no)})
        ) from e


def _parse_statement_line(
    line: str,
    purpose: str | None,
    currency: str,
    line_no: int,
) -> Transaction:
    match = STATEMENT_LINE_PATTERN.match(line)
    if match is None:
        raise GrammarError.create(
            "FC-GRM-006",
            "Invalid statement line",
            f"Line {line_no}: invalid MT940 :61: line: {line!r}",
            location=Location(line_no=line_no),
            context={"raw": line},
        )

    yymmdd, valuta, mark, amount, code, reference, bank_reference = match.groups()
    return Transaction(
        date=parse_yymmdd(yymmdd),
        valuta_date=valuta,
        amount=to_amount(amount),
        credit_debit=CreditDebit.from_mt940_code(mark),
        currency=currency,
        reference=Reference(
            transaction_code=code,
            reference=reference,
            bank_reference=bank_reference,
        ),
        purpose=purpose,
    )
