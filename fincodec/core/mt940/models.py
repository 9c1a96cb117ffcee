"""
MT940 value objects.

Balance, Reference and Transaction model the tagged lines of a SWIFT MT940
statement. All amounts are Decimal, rounded half-up to 2 places and always
non-negative; the direction is carried by CreditDebit.
"""

from __future__ import annotations

import datetime as dt
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from fincodec.core.enums import CreditDebit
from fincodec.core.errors import ConstraintError, GrammarError

# Max length of transaction code + customer reference (field 61, subfield 7)
MAX_REFERENCE_LENGTH = 16

# Purpose text: ':86:' line plus ?20..?29 continuation lines, 27 characters each
PURPOSE_SEGMENT_LENGTH = 27
FIRST_CONTINUATION_TAG = 20
LAST_CONTINUATION_TAG = 29

DEFAULT_CURRENCY = "EUR"

BALANCE_PATTERN = re.compile(r"^([CD])(\d{6})([A-Z]{3})([0-9,]+)$")

_CENTS = Decimal("0.01")


# =============================================================================
# Helpers
# =============================================================================


def to_amount(value: Decimal | float | int | str) -> Decimal:
    """Decimal rounded half-up to 2 places. Strings may use a comma decimal."""
    if isinstance(value, float):
        value = repr(value)
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        return Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise GrammarError.create(
            "FC-GRM-005",
            "Invalid amount",
            f"Not a decimal amount: {value!r}",
            context={"raw": str(value)},
        ) from None


def format_amount(amount: Decimal) -> str:
    """'1234.5' -> '1234,50' (no thousands separator)."""
    return f"{amount:.2f}".replace(".", ",")


def parse_yymmdd(raw: str) -> dt.date:
    try:
        return dt.datetime.strptime(raw, "%y%m%d").date()
    except ValueError:
        raise GrammarError.create(
            "FC-GRM-007",
            "Invalid date",
            f"Not a valid YYMMDD date: {raw!r}",
            context={"raw": raw},
        ) from None


def resolve_valuta(mmdd: str, booking_date: dt.date) -> dt.date:
    """
    Resolve a MMDD valuta date against the booking date.

    The year is the one of (booking year - 1, booking year, booking year + 1)
    that puts the valuta date closest to the booking date, so a valuta of
    1231 on a booking of 2 January lands in the previous year.
    """
    if not re.fullmatch(r"\d{4}", mmdd):
        raise GrammarError.create(
            "FC-GRM-007",
            "Invalid valuta date",
            f"Valuta date must be MMDD, got {mmdd!r}",
            context={"raw": mmdd},
        )

    month, day = int(mmdd[:2]), int(mmdd[2:])
    candidates = []
    for year in (booking_date.year - 1, booking_date.year, booking_date.year + 1):
        try:
            candidates.append(dt.date(year, month, day))
        except ValueError:
            continue
    if not candidates:
        raise GrammarError.create(
            "FC-GRM-007",
            "Invalid valuta date",
            f"Not a valid MMDD date: {mmdd!r}",
            context={"raw": mmdd},
        )
    return min(candidates, key=lambda d: abs((d - booking_date).days))


# =============================================================================
# Balance
# =============================================================================


class Balance(BaseModel, frozen=True):
    """Opening or closing balance (:60F: / :62F:)."""

    credit_debit: CreditDebit
    date: dt.date
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=r"^[A-Z]{3}$")
    amount: Decimal = Field(ge=0)

    model_config = {"frozen": True}

    @field_validator("amount", mode="before")
    @classmethod
    def _round_amount(cls, value: Any) -> Decimal:
        return to_amount(value)

    @classmethod
    def parse(cls, raw: str) -> Balance:
        """
        Parse 'C240501EUR1234,56'.

        Raises:
            GrammarError: If raw does not follow the balance grammar
        """
        match = BALANCE_PATTERN.match(raw.strip())
        if match is None:
            raise GrammarError.create(
                "FC-GRM-005",
                "Invalid balance",
                f"Invalid MT940 balance: {raw!r}",
                context={"raw": raw},
            )
        mark, yymmdd, currency, amount = match.groups()
        return cls(
            credit_debit=CreditDebit.from_mt940_code(mark),
            date=parse_yymmdd(yymmdd),
            currency=currency,
            amount=to_amount(amount),
        )

    @property
    def signed_amount(self) -> Decimal:
        return self.amount * self.credit_debit.sign

    def is_credit(self) -> bool:
        return self.credit_debit is CreditDebit.CREDIT

    def is_debit(self) -> bool:
        return self.credit_debit is CreditDebit.DEBIT

    def to_mt940(self) -> str:
        return (
            f"{self.credit_debit.to_mt940_code()}{self.date:%y%m%d}"
            f"{self.currency}{format_amount(self.amount)}"
        )

    def __str__(self) -> str:
        return self.to_mt940()


# =============================================================================
# Reference
# =============================================================================


class Reference(BaseModel, frozen=True):
    """Transaction code plus customer reference of a :61: line."""

    transaction_code: str
    reference: str = ""
    bank_reference: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_length(self) -> Reference:
        combined = self.transaction_code + self.reference
        if len(combined) > MAX_REFERENCE_LENGTH:
            raise ConstraintError.create(
                "FC-CON-001",
                "Reference too long",
                f"MT940 reference exceeds {MAX_REFERENCE_LENGTH} characters: {combined!r}",
                context={"raw": combined, "length": len(combined)},
            )
        return self

    def to_mt940(self) -> str:
        text = self.transaction_code + self.reference
        if self.bank_reference:
            text += f"//{self.bank_reference}"
        return text

    def __str__(self) -> str:
        return self.to_mt940()


# =============================================================================
# Transaction
# =============================================================================


class Transaction(BaseModel, frozen=True):
    """A :61: statement line with its :86: purpose text."""

    date: dt.date
    valuta_date: dt.date | None = None
    amount: Decimal = Field(ge=0)
    credit_debit: CreditDebit
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=r"^[A-Z]{3}$")
    reference: Reference
    purpose: str | None = None

    model_config = {"frozen": True}

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_yymmdd(value)
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _round_amount(cls, value: Any) -> Decimal:
        return to_amount(value)

    @model_validator(mode="before")
    @classmethod
    def _resolve_valuta(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("valuta_date"), str):
            return data
        booking = data.get("date")
        if isinstance(booking, str):
            booking = parse_yymmdd(booking)
        if not isinstance(booking, dt.date):
            return data
        return {**data, "valuta_date": resolve_valuta(data["valuta_date"], booking)}

    @property
    def signed_amount(self) -> Decimal:
        return self.amount * self.credit_debit.sign

    @property
    def sign(self) -> str:
        return self.credit_debit.symbol

    def is_credit(self) -> bool:
        return self.credit_debit is CreditDebit.CREDIT

    def is_debit(self) -> bool:
        return self.credit_debit is CreditDebit.DEBIT

    def purpose_segments(self) -> list[str]:
        """Purpose split into 27-character segments (at least one)."""
        text = self.purpose or ""
        segments = [
            text[i : i + PURPOSE_SEGMENT_LENGTH]
            for i in range(0, len(text), PURPOSE_SEGMENT_LENGTH)
        ]
        return segments or [""]

    def to_mt940_lines(self) -> list[str]:
        """
        :61: line, :86: line and ?NN continuation lines.

        Raises:
            ConstraintError: Purpose needs a continuation tag beyond ?29
        """
        valuta = f"{self.valuta_date:%m%d}" if self.valuta_date is not None else ""
        lines = [
            f":61:{self.date:%y%m%d}{valuta}{self.credit_debit.to_mt940_code()}"
            f"{format_amount(self.amount)}{self.reference.to_mt940()}"
        ]

        first, *continuation = self.purpose_segments()
        max_segments = LAST_CONTINUATION_TAG - FIRST_CONTINUATION_TAG + 1
        if len(continuation) > max_segments:
            raise ConstraintError.create(
                "FC-CON-002",
                "Purpose too long",
                f"Purpose needs {len(continuation)} continuation segments, "
                f"at most {max_segments} (?{FIRST_CONTINUATION_TAG}..?{LAST_CONTINUATION_TAG})",
                context={"length": len(self.purpose or ""), "segments": len(continuation)},
            )

        lines.append(f":86:{first}")
        for tag, segment in enumerate(continuation, start=FIRST_CONTINUATION_TAG):
            lines.append(f"?{tag:02d}{segment}")
        return lines

    def to_mt940(self) -> str:
        return "\r\n".join(self.to_mt940_lines())

    def __str__(self) -> str:
        return self.to_mt940()
