"""
CSV dialect model.

Core settings shared by the CSV splitter, lines and documents.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from fincodec.core.errors import GrammarError

DEFAULT_DELIMITER = ","
DEFAULT_ENCLOSURE = '"'


class Dialect(BaseModel, frozen=True):
    """CSV dialect settings."""

    delimiter: str = Field(default=DEFAULT_DELIMITER, description="Field separator")
    enclosure: str = Field(default=DEFAULT_ENCLOSURE, description="Quote character")

    model_config = {"frozen": True}

    def check(self) -> Dialect:
        """Raise a GrammarError unless delimiter and enclosure are usable."""
        check_dialect(self.delimiter, self.enclosure)
        return self


# DATEV files: semicolon separated, double quoted
DATEV_DIALECT = Dialect(delimiter=";", enclosure='"')


def check_dialect(delimiter: str, enclosure: str) -> None:
    """Validate delimiter and enclosure characters."""
    if len(delimiter) != 1 or delimiter in "\r\n":
        raise GrammarError.create(
            "FC-GRM-003",
            "Invalid delimiter",
            f"Delimiter must be exactly one character, got {delimiter!r}",
            context={"delimiter": delimiter},
        )
    if len(enclosure) != 1 or enclosure == delimiter or enclosure in "\r\n":
        raise GrammarError.create(
            "FC-GRM-003",
            "Invalid enclosure",
            f"Enclosure must be one character distinct from the delimiter, got {enclosure!r}",
            context={"enclosure": enclosure, "delimiter": delimiter},
        )
