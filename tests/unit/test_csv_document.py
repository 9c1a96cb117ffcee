"""Tests for the CSV document model and parse API."""

from pathlib import Path

import pytest

from fincodec.core.csv import (
    ColumnWidthConfig,
    DataLine,
    DocumentBuilder,
    count_rows,
    parse_bytes,
    parse_file,
    parse_file_range,
    parse_string,
    read_header,
    stream_rows,
)
from fincodec.core.errors import ConstraintError, GrammarError, Severity, StructuralError


class TestParseString:
    """Tests for parse_string."""

    def test_header_and_rows(self, csv_text: str) -> None:
        """Test sample parses into header and three rows."""
        document = parse_string(csv_text)
        assert document.column_names() == ["name", "city", "amount"]
        assert document.count_rows() == 3
        assert document.column_by_name("city") == ["Berlin", "New\nYork", 'Say "hi"']

    def test_round_trip(self, csv_text: str) -> None:
        """Test unmodified document serializes to its source."""
        assert parse_string(csv_text).to_string() == csv_text

    def test_without_header(self) -> None:
        """Test first line as data."""
        document = parse_string("1,2\n3,4", has_header=False)
        assert not document.has_header()
        assert document.column_by_index(1) == ["2", "4"]
        assert document.reference_field_count() == 2

    def test_empty_input(self) -> None:
        """Test empty input is a structural error."""
        with pytest.raises(StructuralError) as exc_info:
            parse_string("  \n ")
        assert exc_info.value.code == "FC-STR-001"

    def test_inconsistent_rows_strict(self) -> None:
        """Test strict parse rejects short rows."""
        with pytest.raises(StructuralError) as exc_info:
            parse_string("a,b,c\n1,2")
        assert exc_info.value.code == "FC-STR-002"

    def test_inconsistent_rows_lenient(self) -> None:
        """Test lenient parse reports short rows."""
        document = parse_string("a,b,c\n1,2\n1,2,3", strict=False)
        assert document.inconsistent_rows() == [0]
        assert not document.is_consistent()
        issue = document.consistency_issues()[0]
        assert issue.severity is Severity.ERROR
        assert issue.context == {"expected": 3, "actual": 2}

    def test_grammar_error_names_line(self) -> None:
        """Test grammar errors carry the physical line and a preview."""
        with pytest.raises(GrammarError) as exc_info:
            parse_string('a,b\n1,x"y')
        assert exc_info.value.code == "FC-GRM-001"
        assert exc_info.value.issue.location.line_no == 2
        assert "Line 2" in exc_info.value.issue.message
        assert 'x"y' in exc_info.value.issue.message

    def test_unclosed_enclosure(self) -> None:
        """Test unclosed quoted field at end of input."""
        with pytest.raises(GrammarError) as exc_info:
            parse_string('a,b\n1,"open')
        assert exc_info.value.code == "FC-GRM-002"

    def test_invalid_dialect(self) -> None:
        """Test multi-character delimiters are rejected."""
        with pytest.raises(GrammarError) as exc_info:
            parse_string("a", delimiter=";;")
        assert exc_info.value.code == "FC-GRM-003"

    def test_repeated_enclosures_preserved(self) -> None:
        """Test ""x"" style fields keep their repeat."""
        text = 'a;b\n""x"";"y"'
        document = parse_string(text, ";")
        row = document.get_row(0)
        assert [f.enclosure_repeat for f in row.fields] == [2, 1]
        assert document.to_string() == text

    def test_values_starting_with_enclosure(self) -> None:
        """Test written values that begin or end with an enclosure parse back."""
        document = (
            DocumentBuilder()
            .set_header(["a", "b"])
            .add_row(['"x",y', "z"])
            .add_row([",", 'say "hi"'])
            .build()
        )
        text = document.to_string()
        assert text == 'a,b\n"""x"",y",z\n",","say ""hi"""'
        parsed = parse_string(text)
        assert parsed.get_row(0).values() == ['"x",y', "z"]
        assert parsed.get_row(1).values() == [",", 'say "hi"']
        assert parsed.to_string() == text

    def test_parse_bytes_detects_encoding(self) -> None:
        """Test bytes input with a BOM."""
        document = parse_bytes("name\nMüller".encode("utf-8-sig"))
        assert document.column_by_name("name") == ["Müller"]

    def test_parse_bytes_explicit_encoding(self) -> None:
        """Test Windows-1252 input."""
        document = parse_bytes("name\nMüller".encode("windows-1252"), encoding="windows-1252")
        assert document.column_by_name("name") == ["Müller"]


class TestDocument:
    """Tests for Document access."""

    def test_get_row_out_of_range(self, csv_text: str) -> None:
        """Test row index checks."""
        with pytest.raises(ConstraintError) as exc_info:
            parse_string(csv_text).get_row(5)
        assert exc_info.value.code == "FC-CON-005"

    def test_unknown_column(self, csv_text: str) -> None:
        """Test unknown column name."""
        with pytest.raises(StructuralError) as exc_info:
            parse_string(csv_text).column_by_name("zip")
        assert exc_info.value.code == "FC-STR-007"

    def test_short_rows_yield_absent_fields(self) -> None:
        """Test column access beyond a short row."""
        document = parse_string("a,b\n1,2\n3", strict=False)
        fields = document.fields_by_index(1)
        assert fields[0].value == "2"
        assert fields[1].is_null

    def test_negative_column_index(self, csv_text: str) -> None:
        """Test negative indices are rejected."""
        with pytest.raises(ConstraintError):
            parse_string(csv_text).fields_by_index(-1)

    def test_to_records(self) -> None:
        """Test rows as dicts."""
        document = parse_string("a,b\n1,2")
        assert document.to_records() == [{"a": "1", "b": "2"}]

    def test_column_widths(self) -> None:
        """Test widths change rendering but not stored values."""
        config = ColumnWidthConfig()
        config.set_column_width("name", 4)
        document = parse_string("name,city\nAlexander,Berlin", column_widths=config)
        assert document.get_value(0, "name") == "Alex"
        assert document.column_by_name("name") == ["Alexander"]
        assert document.to_string() == "name,city\nAlex,Berlin"
        assert document.with_column_widths(None).to_string() == "name,city\nAlexander,Berlin"

    def test_line_ending_and_dialect(self) -> None:
        """Test output line ending and delimiter."""
        document = parse_string("a,b\n1,2")
        assert document.to_string(";", line_ending="\r\n") == "a;b\r\n1;2"

    def test_equals(self) -> None:
        """Test value equality."""
        assert parse_string('a,b\n"1",2').equals(parse_string("a,b\n1,2"))
        assert not parse_string("a,b\n1,2").equals(parse_string("a,b\n1,3"))


class TestDocumentBuilder:
    """Tests for DocumentBuilder."""

    def test_null_versus_empty(self) -> None:
        """Test absent values and empty strings serialize differently when quoted."""
        document = (
            DocumentBuilder()
            .set_header(["a", "b", "c"])
            .add_row([None, "", "x"])
            .add_row(DataLine.from_values([None, "", "x"], quoted=True))
            .build()
        )
        assert document.to_string() == 'a,b,c\n,,x\n,"","x"'

    def test_reorder_columns(self) -> None:
        """Test header and rows are reordered together."""
        builder = DocumentBuilder().set_header(["a", "b", "c"]).add_rows([[1, 2, 3], [4, 5, 6]])
        document = builder.reorder_columns(["c", "a"]).build()
        assert document.to_string() == "c,a\n3,1\n6,4"

    def test_reorder_unknown_column(self) -> None:
        """Test reorder by unknown name."""
        builder = DocumentBuilder().set_header(["a"])
        with pytest.raises(StructuralError) as exc_info:
            builder.reorder_columns(["b"])
        assert exc_info.value.code == "FC-STR-007"

    def test_reorder_without_header(self) -> None:
        """Test reorder needs a header."""
        with pytest.raises(StructuralError) as exc_info:
            DocumentBuilder().reorder_columns(["a"])
        assert exc_info.value.code == "FC-STR-003"

    def test_from_document_changes_dialect(self) -> None:
        """Test rebuilding a document with another delimiter."""
        source = parse_string("a,b\n1,2")
        document = DocumentBuilder.from_document(source, delimiter=";").build()
        assert document.to_string() == "a;b\n1;2"

    def test_inconsistent_rows_kept(self) -> None:
        """Test the builder never drops rows."""
        document = DocumentBuilder().set_header(["a", "b"]).add_row([1]).build()
        assert document.count_rows() == 1
        assert document.inconsistent_rows() == [0]


class TestFileApi:
    """Tests for the file based API."""

    @pytest.fixture
    def numbered_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "numbered.csv"
        path.write_text("h1,h2\na,1\nb,2\nc,3\n", encoding="utf-8")
        return path

    def test_parse_file(self, csv_file: Path, csv_text: str) -> None:
        """Test parsing from disk."""
        assert parse_file(csv_file).to_string() == csv_text

    def test_parse_missing_file(self, tmp_path: Path) -> None:
        """Test missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            parse_file(tmp_path / "missing.csv")

    def test_to_file_round_trip(self, tmp_path: Path, csv_text: str) -> None:
        """Test writing and reading back."""
        path = parse_string(csv_text).to_file(tmp_path / "out.csv")
        assert path.read_text(encoding="utf-8") == csv_text

    def test_parse_file_range(self, numbered_file: Path) -> None:
        """Test rows by physical line range."""
        document = parse_file_range(numbered_file, 3, 4)
        assert document.column_names() == ["h1", "h2"]
        assert document.column_by_name("h1") == ["b", "c"]

    def test_parse_file_range_without_header(self, numbered_file: Path) -> None:
        """Test range without header."""
        document = parse_file_range(numbered_file, 1, 2, include_header=False)
        assert not document.has_header()
        assert document.count_rows() == 2

    def test_invalid_range(self, numbered_file: Path) -> None:
        """Test start after end."""
        with pytest.raises(StructuralError) as exc_info:
            parse_file_range(numbered_file, 4, 2)
        assert exc_info.value.code == "FC-STR-010"

    def test_stream_rows(self, numbered_file: Path) -> None:
        """Test lazy rows with their start lines."""
        rows = list(stream_rows(numbered_file))
        assert [line_no for line_no, _ in rows] == [2, 3, 4]
        assert rows[0][1].values() == ["a", "1"]

    def test_read_header(self, numbered_file: Path) -> None:
        """Test header only."""
        assert read_header(numbered_file).names() == ["h1", "h2"]

    def test_read_header_empty_file(self, tmp_path: Path) -> None:
        """Test empty file has no header."""
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(StructuralError) as exc_info:
            read_header(path)
        assert exc_info.value.code == "FC-STR-003"

    def test_count_rows(self, numbered_file: Path, csv_file: Path) -> None:
        """Test counting logical rows."""
        assert count_rows(numbered_file) == 3
        assert count_rows(numbered_file, has_header=False) == 4
        assert count_rows(csv_file) == 3
