"""
fincodec core library.

This package contains the format codecs:
- csv: Field/Line/Document model, logical-line splitter, column widths
- datev: DATEV EXTF meta header, version registry, booking documents
- mt940: SWIFT MT940 balances, transactions and statements
"""

__all__: list[str] = []
