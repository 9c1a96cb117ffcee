"""Tests for CSV lines and column widths."""

import pytest

from fincodec.core.csv import (
    ColumnWidthConfig,
    CsvField,
    DataLine,
    HeaderLine,
    Line,
    TruncationStrategy,
    truncate,
)
from fincodec.core.errors import ConstraintError, StructuralError


class TestLine:
    """Tests for Line parsing and serialization."""

    def test_round_trip_preserves_quoting(self) -> None:
        """Test mixed quoting styles survive a round trip."""
        text = 'a,"b,c",""d"",'
        line = Line.from_string(text)
        assert line.values() == ["a", "b,c", "d", ""]
        assert line.to_string() == text

    def test_from_values(self) -> None:
        """Test building from Python values."""
        line = Line.from_values(["x", 1, None], quoted=True)
        assert line.to_string() == '"x","1",'

    def test_forced_enclosure_repeat(self) -> None:
        """Test enclosure repeat applied to every field."""
        line = Line.from_values(["a", "b"])
        assert line.to_string(enclosure_repeat=2) == '""a"",""b""'

    def test_dialect_override(self) -> None:
        """Test re-serializing with another delimiter."""
        line = Line.from_string('a;b,"c"')
        assert line.to_string(delimiter=";") == '"a;b";"c"'

    def test_enclosure_override(self) -> None:
        """Test re-serializing with another enclosure."""
        line = Line.from_string('"it\'s",b')
        assert line.to_string(enclosure="'") == "'it''s',b"

    def test_get_field_out_of_range(self) -> None:
        """Test index checks."""
        line = Line.from_string("a,b")
        with pytest.raises(ConstraintError) as exc_info:
            line.get_field(2)
        assert exc_info.value.code == "FC-CON-005"

    def test_counts(self) -> None:
        """Test field counts and repeat range."""
        line = Line.from_string('a,"b",""c""')
        assert line.count_fields() == 3
        assert line.count_quoted_fields() == 2
        assert line.enclosure_repeat_range() == (1, 2)
        assert line.enclosure_repeat_range(include_unquoted=True) == (0, 2)

    def test_with_field(self) -> None:
        """Test replacing a field returns a new line."""
        line = Line.from_string("a,b")
        changed = line.with_field(1, CsvField.from_value("z"))
        assert changed.values() == ["a", "z"]
        assert line.values() == ["a", "b"]

    def test_equals(self) -> None:
        """Test value equality ignores quoting."""
        assert Line.from_string('"a",b').equals(Line.from_string("a,b"))
        assert not Line.from_string("a,b").equals(Line.from_string("a,c"))


class TestHeaderAndDataLine:
    """Tests for name-based access."""

    def test_header_lookup(self) -> None:
        """Test index_of and has_column."""
        header = HeaderLine.from_string("id,name")
        assert header.index_of("name") == 1
        assert header.index_of("missing") == -1
        assert header.has_column("id")

    def test_get_value_by_name(self) -> None:
        """Test name access through the header."""
        header = HeaderLine.from_string("id,name")
        row = DataLine.from_string('1,"Doe, John"')
        assert row.get_value("name", header) == "Doe, John"
        assert row.get_value(0) == "1"

    def test_name_without_header(self) -> None:
        """Test names need a header."""
        with pytest.raises(StructuralError) as exc_info:
            DataLine.from_string("1").get_value("id")
        assert exc_info.value.code == "FC-STR-003"

    def test_unknown_column(self) -> None:
        """Test unknown names raise."""
        header = HeaderLine.from_string("id")
        with pytest.raises(StructuralError) as exc_info:
            DataLine.from_string("1").get_value("name", header)
        assert exc_info.value.code == "FC-STR-007"

    def test_get_typed(self) -> None:
        """Test typed access."""
        header = HeaderLine.from_string("amount")
        assert DataLine.from_string('"12,5"').get_typed("amount", header) == 12.5

    def test_as_dict(self) -> None:
        """Test extra fields beyond the header are keyed by index."""
        header = HeaderLine.from_string("a,b")
        assert DataLine.from_string("1,2,3").as_dict(header) == {"a": "1", "b": "2", 2: "3"}


class TestTruncate:
    """Tests for truncation strategies."""

    def test_hard_cut(self) -> None:
        """Test truncate strategy."""
        assert truncate("hello world", 5) == "hello"
        assert truncate("Very Long Text", 10) == "Very Long "

    def test_ellipsis(self) -> None:
        """Test ellipsis strategy."""
        assert truncate("hello world", 10, TruncationStrategy.ELLIPSIS) == "hello w..."
        assert truncate("Very Long Text", 10, TruncationStrategy.ELLIPSIS) == "Very Lo..."

    def test_ellipsis_without_room(self) -> None:
        """Test ellipsis falls back to a hard cut for width <= 3."""
        assert truncate("hello world", 3, TruncationStrategy.ELLIPSIS) == "hel"

    def test_short_values_unchanged(self) -> None:
        """Test values within the width are not modified."""
        assert truncate("hi", 5, TruncationStrategy.ELLIPSIS) == "hi"
        assert truncate("hello world", None) == "hello world"
        assert truncate("hello world", 2, TruncationStrategy.NONE) == "hello world"


class TestColumnWidthConfig:
    """Tests for ColumnWidthConfig."""

    def test_lookup_order(self) -> None:
        """Test column width, then default, then unlimited."""
        config = ColumnWidthConfig()
        assert config.get_column_width("name") is None
        config.set_default_width(8)
        config.set_column_width("name", 4)
        assert config.get_column_width("name") == 4
        assert config.get_column_width("city") == 8
        assert config.has_width_config()

    def test_index_keys(self) -> None:
        """Test widths by column index."""
        config = ColumnWidthConfig()
        config.set_column_widths({0: 2, "b": 3})
        assert config.truncate_value("abcdef", 0) == "ab"
        assert config.get_all_column_widths() == {0: 2, "b": 3}

    @pytest.mark.parametrize("width", [0, -1])
    def test_invalid_width(self, width: int) -> None:
        """Test widths below 1 are rejected."""
        with pytest.raises(ConstraintError) as exc_info:
            ColumnWidthConfig(default_width=width)
        assert exc_info.value.code == "FC-CON-004"

    def test_line_rendering(self) -> None:
        """Test widths apply to rendered values only."""
        config = ColumnWidthConfig(strategy=TruncationStrategy.ELLIPSIS)
        config.set_column_width("text", 10)
        line = DataLine.from_string("1,Very Long Text")
        assert line.to_string(column_widths=config, column_names=["id", "text"]) == "1,Very Lo..."
        assert line.values() == ["1", "Very Long Text"]

    def test_header_never_truncated(self) -> None:
        """Test header names ignore widths."""
        config = ColumnWidthConfig(default_width=2)
        header = HeaderLine.from_string("name,city")
        assert header.to_string(column_widths=config) == "name,city"
