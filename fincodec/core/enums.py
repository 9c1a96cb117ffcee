"""
Shared enumerations.

CreditDebit is used by both DATEV (S/H) and MT940 (C/D).
LockFlag models the DATEV Festschreibung meta header field.
"""

from __future__ import annotations

from enum import Enum

from fincodec.core.errors import GrammarError


class CreditDebit(Enum):
    """Booking direction."""

    CREDIT = "credit"
    DEBIT = "debit"

    def to_mt940_code(self) -> str:
        return "C" if self is CreditDebit.CREDIT else "D"

    @classmethod
    def from_mt940_code(cls, code: str) -> CreditDebit:
        """Accepts C, D and the reversal marks RC, RD."""
        normalized = code.strip().upper()
        if normalized in ("C", "RC"):
            return cls.CREDIT
        if normalized in ("D", "RD"):
            return cls.DEBIT
        raise GrammarError.create(
            "FC-GRM-008",
            "Invalid credit/debit mark",
            f"Unknown MT940 credit/debit mark: {code!r}",
            context={"raw": code},
        )

    def to_datev_code(self) -> str:
        """DATEV Soll/Haben: H (Haben) = credit, S (Soll) = debit."""
        return "H" if self is CreditDebit.CREDIT else "S"

    @classmethod
    def from_datev_code(cls, code: str) -> CreditDebit:
        normalized = code.strip().upper()
        if normalized == "H":
            return cls.CREDIT
        if normalized == "S":
            return cls.DEBIT
        raise GrammarError.create(
            "FC-GRM-008",
            "Invalid Soll/Haben mark",
            f"Unknown DATEV Soll/Haben mark: {code!r}",
            context={"raw": code},
        )

    @property
    def symbol(self) -> str:
        return "+" if self is CreditDebit.CREDIT else "-"

    @property
    def sign(self) -> int:
        return 1 if self is CreditDebit.CREDIT else -1


class LockFlag(Enum):
    """DATEV Festschreibung (posting lock)."""

    NONE = 0
    LOCKED = 1

    @classmethod
    def from_int(cls, value: int) -> LockFlag:
        try:
            return cls(value)
        except ValueError:
            raise GrammarError.create(
                "FC-GRM-008",
                "Invalid lock flag",
                f"Festschreibung must be 0 or 1, got {value!r}",
                context={"raw": value},
            ) from None

    def is_locked(self) -> bool:
        return self is LockFlag.LOCKED

    def is_none(self) -> bool:
        return self is LockFlag.NONE
