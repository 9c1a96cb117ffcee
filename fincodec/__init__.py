"""
fincodec: codecs for financial text formats.

A library and CLI tool for reading and writing generic CSV, DATEV EXTF
exports and SWIFT MT940 statements with exact round-trip fidelity.

Usage:
    from fincodec.core.csv import parse_string
    document = parse_string('"a","b"\\n1,2')
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
