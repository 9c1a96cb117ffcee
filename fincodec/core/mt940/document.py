"""
MT940 statement document and builder.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

from fincodec.core.enums import CreditDebit
from fincodec.core.errors import ConstraintError, StructuralError

from .models import Balance, Transaction

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = structlog.get_logger()

DEFAULT_REFERENCE_ID = "COMMON"
DEFAULT_STATEMENT_NUMBER = "00000"
CRLF = "\r\n"


class Mt940Document(BaseModel, frozen=True):
    """One MT940 statement."""

    account_id: str = Field(min_length=1)
    reference_id: str = DEFAULT_REFERENCE_ID
    statement_number: str = DEFAULT_STATEMENT_NUMBER
    opening_balance: Balance
    closing_balance: Balance
    transactions: tuple[Transaction, ...] = Field(default=())

    model_config = {"frozen": True}

    def count_transactions(self) -> int:
        return len(self.transactions)

    def credits(self) -> list[Transaction]:
        return [t for t in self.transactions if t.is_credit()]

    def debits(self) -> list[Transaction]:
        return [t for t in self.transactions if t.is_debit()]

    def net_amount(self) -> Decimal:
        """Sum of signed transaction amounts."""
        return sum((t.signed_amount for t in self.transactions), Decimal("0.00"))

    def to_mt940_lines(self) -> list[str]:
        lines = [
            f":20:{self.reference_id}",
            f":25:{self.account_id}",
            f":28C:{self.statement_number}",
            f":60F:{self.opening_balance.to_mt940()}",
        ]
        for transaction in self.transactions:
            lines.extend(transaction.to_mt940_lines())
        lines.append(f":62F:{self.closing_balance.to_mt940()}")
        lines.append("-")
        return lines

    def to_mt940(self) -> str:
        """Tagged lines joined with CRLF, terminated by CRLF."""
        return CRLF.join(self.to_mt940_lines()) + CRLF

    def __str__(self) -> str:
        return self.to_mt940()


class Mt940DocumentBuilder:
    """
    Immutable builder for Mt940Document.

    Every with_* method returns a new builder. build() fills in a missing
    balance from the other one and the transactions.
    """

    def __init__(
        self,
        account_id: str | None = None,
        reference_id: str = DEFAULT_REFERENCE_ID,
        statement_number: str = DEFAULT_STATEMENT_NUMBER,
        opening_balance: Balance | None = None,
        closing_balance: Balance | None = None,
        transactions: tuple[Transaction, ...] = (),
    ) -> None:
        self._account_id = account_id
        self._reference_id = reference_id
        self._statement_number = statement_number
        self._opening_balance = opening_balance
        self._closing_balance = closing_balance
        self._transactions = tuple(transactions)

    def _copy(self, **changes: object) -> Mt940DocumentBuilder:
        state: dict[str, object] = {
            "account_id": self._account_id,
            "reference_id": self._reference_id,
            "statement_number": self._statement_number,
            "opening_balance": self._opening_balance,
            "closing_balance": self._closing_balance,
            "transactions": self._transactions,
        }
        state.update(changes)
        return Mt940DocumentBuilder(**state)  # type: ignore[arg-type]

    def with_account_id(self, account_id: str) -> Mt940DocumentBuilder:
        return self._copy(account_id=account_id)

    def with_reference_id(self, reference_id: str) -> Mt940DocumentBuilder:
        return self._copy(reference_id=reference_id)

    def with_statement_number(self, statement_number: str) -> Mt940DocumentBuilder:
        return self._copy(statement_number=statement_number)

    def with_transaction(self, transaction: Transaction) -> Mt940DocumentBuilder:
        return self._copy(transactions=(*self._transactions, transaction))

    def with_transactions(self, transactions: Iterable[Transaction]) -> Mt940DocumentBuilder:
        return self._copy(transactions=(*self._transactions, *transactions))

    def with_opening_balance(self, balance: Balance) -> Mt940DocumentBuilder:
        return self._copy(opening_balance=balance)

    def with_closing_balance(self, balance: Balance) -> Mt940DocumentBuilder:
        return self._copy(closing_balance=balance)

    def build(self) -> Mt940Document:
        """
        Build the document.

        Raises:
            StructuralError: No account id, or neither balance given
            ConstraintError: Both balances given but the transactions do not
                lead from the opening amount to the closing amount (the
                balance dates may differ)
        """
        if not self._account_id:
            raise StructuralError.create(
                "FC-STR-009",
                "Missing account",
                "MT940 document needs an account id (:25:)",
            )
        opening, closing = self._opening_balance, self._closing_balance
        if opening is None:
            if closing is None:
                raise StructuralError.create(
                    "FC-STR-009",
                    "Missing balance",
                    "At least one of opening (:60F:) or closing (:62F:) balance is required",
                )
            opening = self._derive_balance(closing, -1)
        elif closing is None:
            closing = self._derive_balance(opening, 1)
        else:
            expected = self._derive_balance(opening, 1)
            if (expected.signed_amount, expected.currency) != (
                closing.signed_amount,
                closing.currency,
            ):
                raise ConstraintError.create(
                    "FC-CON-003",
                    "Balance mismatch",
                    f"Closing balance {closing.to_mt940()} does not match "
                    f"opening balance plus transactions: expected {expected.to_mt940()}",
                    context={"expected": expected.to_mt940(), "actual": closing.to_mt940()},
                )

        logger.debug(
            "MT940 document built",
            account=self._account_id,
            transactions=len(self._transactions),
        )
        return Mt940Document(
            account_id=self._account_id,
            reference_id=self._reference_id,
            statement_number=self._statement_number,
            opening_balance=opening,
            closing_balance=closing,
            transactions=self._transactions,
        )

    def _derive_balance(self, base: Balance, direction: int) -> Balance:
        """
        Balance on the other side of the transactions.

        direction 1 computes closing from opening, -1 opening from closing.
        Date and currency come from the base balance.
        """
        total = base.signed_amount
        for transaction in self._transactions:
            total += direction * transaction.signed_amount
        return Balance(
            credit_debit=CreditDebit.CREDIT if total >= 0 else CreditDebit.DEBIT,
            date=base.date,
            currency=base.currency,
            amount=abs(total),
        )
