"""
Column width configuration.

Maximum widths per column (by header name or by index) applied when values
are rendered. Stored field values are never modified.
"""

from __future__ import annotations

from enum import Enum

from fincodec.core.errors import ConstraintError

ColumnKey = str | int

ELLIPSIS = "..."


class TruncationStrategy(Enum):
    """How over-long values are shortened."""

    NONE = "none"  # Leave values unchanged
    TRUNCATE = "truncate"  # Hard cut at width
    ELLIPSIS = "ellipsis"  # Cut at width - 3 and append "..."


class ColumnWidthConfig:
    """
    Column width limits.

    Lookup order: column-specific width, then the default width, then
    unlimited.
    """

    def __init__(
        self,
        default_width: int | None = None,
        strategy: TruncationStrategy = TruncationStrategy.TRUNCATE,
    ) -> None:
        self._widths: dict[ColumnKey, int] = {}
        self._default_width: int | None = None
        self.strategy = strategy
        if default_width is not None:
            self.set_default_width(default_width)

    def set_column_width(self, column: ColumnKey, width: int) -> None:
        """Set the width for a column name or index."""
        _check_width(width)
        self._widths[column] = width

    def set_column_widths(self, widths: dict[ColumnKey, int]) -> None:
        for column, width in widths.items():
            self.set_column_width(column, width)

    def get_column_width(self, column: ColumnKey) -> int | None:
        return self._widths.get(column, self._default_width)

    def set_default_width(self, width: int | None) -> None:
        if width is not None:
            _check_width(width)
        self._default_width = width

    @property
    def default_width(self) -> int | None:
        return self._default_width

    def has_width_config(self) -> bool:
        return bool(self._widths) or self._default_width is not None

    def get_all_column_widths(self) -> dict[ColumnKey, int]:
        return dict(self._widths)

    def truncate_value(self, value: str, column: ColumnKey) -> str:
        """Apply the resolved width of column to value."""
        return truncate(value, self.get_column_width(column), self.strategy)

    def __repr__(self) -> str:
        return (
            f"ColumnWidthConfig(default_width={self._default_width!r}, "
            f"strategy={self.strategy.value!r}, widths={self._widths!r})"
        )


def truncate(
    value: str,
    width: int | None,
    strategy: TruncationStrategy = TruncationStrategy.TRUNCATE,
) -> str:
    """
    Shorten value to width.

    The ellipsis strategy falls back to a hard cut when width <= 3, since
    there is no room for the marker.
    """
    if width is None or strategy == TruncationStrategy.NONE or len(value) <= width:
        return value

    if strategy == TruncationStrategy.ELLIPSIS and width > len(ELLIPSIS):
        return value[: width - len(ELLIPSIS)] + ELLIPSIS

    return value[:width]


def _check_width(width: int) -> None:
    if width < 1:
        raise ConstraintError.create(
            "FC-CON-004",
            "Invalid column width",
            f"Column width must be at least 1 character, got {width}",
            context={"width": width},
        )
