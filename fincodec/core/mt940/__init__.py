"""
MT940 codec.

Public API for SWIFT MT940 bank statements.

Usage:
    from fincodec.core.mt940 import parse_mt940

    statement = parse_mt940(text)
    for transaction in statement.transactions:
        print(transaction.date, transaction.sign, transaction.amount)

API Functions:
    parse_mt940(text) -> Mt940Document
"""

from __future__ import annotations

from fincodec.core.enums import CreditDebit

from .document import Mt940Document, Mt940DocumentBuilder
from .models import (
    MAX_REFERENCE_LENGTH,
    PURPOSE_SEGMENT_LENGTH,
    Balance,
    Reference,
    Transaction,
    format_amount,
    resolve_valuta,
    to_amount,
)
from .parser import parse_mt940

# =============================================================================
# Public API Exports
# =============================================================================

__all__ = [
    "MAX_REFERENCE_LENGTH",
    "PURPOSE_SEGMENT_LENGTH",
    "Balance",
    "CreditDebit",
    "Mt940Document",
    "Mt940DocumentBuilder",
    "Reference",
    "Transaction",
    "format_amount",
    "parse_mt940",
    "resolve_valuta",
    "to_amount",
]
