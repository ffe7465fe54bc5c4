"""
Unit tests for delimited-text parsing.

These tests verify that:
1. Headers and cells are trimmed and quoted delimiters stay literal
2. Row shape always matches the header set
3. Blank lines and all-empty rows are skipped
4. Empty and header-less input fail with the right error
"""

import pytest

from bomsync.errors import EmptyInputError, NoHeadersError, ParseError, UnsupportedFileError
from bomsync.parser import BomParser, ParsedTable, parse_text, split_line


# =============================================================================
# SPLITTING
# =============================================================================

class TestSplitLine:
    """Tests for single-line cell splitting."""

    def test_plain_cells_are_trimmed(self):
        assert split_line(" R1 , 10k ,  2 ") == ["R1", "10k", "2"]

    def test_quoted_delimiter_is_literal(self):
        assert split_line('"R1, R2, R3",3') == ["R1, R2, R3", "3"]

    def test_doubled_quote_unescapes(self):
        assert split_line('"5"" screen",1') == ['5" screen', "1"]

    def test_trailing_delimiter_yields_empty_cell(self):
        assert split_line("a,b,") == ["a", "b", ""]

    def test_custom_delimiter(self):
        assert split_line("R1;C1,C2;2", delimiter=";") == ["R1", "C1,C2", "2"]


# =============================================================================
# PARSING
# =============================================================================

class TestParseText:
    """Tests for parse_text()."""

    def test_basic_table(self):
        table = parse_text("Designator,Qty,MPN\nR1,1,RC0603\nC1,1,GRM188")

        assert isinstance(table, ParsedTable)
        assert table.headers == ["Designator", "Qty", "MPN"]
        assert len(table) == 2
        assert table.rows[0] == {"Designator": "R1", "Qty": "1", "MPN": "RC0603"}

    def test_headers_are_trimmed(self):
        table = parse_text("  Designator , Qty \nR1,1")
        assert table.headers == ["Designator", "Qty"]

    def test_quoted_multi_designator_cell(self):
        table = parse_text('Designator,Quantity\n"R1, R2, R3",3')
        assert table.rows == [{"Designator": "R1, R2, R3", "Quantity": "3"}]

    def test_crlf_line_endings(self):
        table = parse_text("Designator,Qty\r\nR1,1\r\nR2,1\r\n")
        assert [row["Designator"] for row in table.rows] == ["R1", "R2"]

    def test_blank_and_empty_rows_skipped(self):
        text = "Designator,Qty\n\nR1,1\n   \n,,\nR2,1\n"
        table = parse_text(text)
        assert [row["Designator"] for row in table.rows] == ["R1", "R2"]

    def test_short_rows_padded(self):
        table = parse_text("Designator,Qty,MPN\nR1")
        assert table.rows == [{"Designator": "R1", "Qty": "", "MPN": ""}]

    def test_extra_cells_discarded(self):
        table = parse_text("Designator,Qty\nR1,1,unexpected,more")
        assert table.rows == [{"Designator": "R1", "Qty": "1"}]

    def test_every_row_has_exactly_header_keys(self):
        table = parse_text("A,B,C\n1\n1,2\n1,2,3,4")
        for row in table.rows:
            assert list(row.keys()) == table.headers

    def test_empty_header_drops_its_column(self):
        table = parse_text("Designator,,Qty\nR1,ignored,3")
        assert table.headers == ["Designator", "Qty"]
        assert table.rows == [{"Designator": "R1", "Qty": "3"}]

    def test_leading_blank_lines_before_header(self):
        table = parse_text("\n\nDesignator,Qty\nR1,1")
        assert table.headers == ["Designator", "Qty"]
        assert len(table) == 1

    def test_header_only_input(self):
        table = parse_text("Designator,Qty\n")
        assert table.headers == ["Designator", "Qty"]
        assert table.rows == []

    def test_semicolon_delimiter(self):
        table = parse_text("Designator;Qty\nR1;1", delimiter=";")
        assert table.rows == [{"Designator": "R1", "Qty": "1"}]


class TestParseErrors:
    """Tests for fatal parse errors."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\n", " , ,\n,,", None])
    def test_empty_input(self, text):
        with pytest.raises(EmptyInputError):
            parse_text(text)

    def test_header_line_without_names(self):
        with pytest.raises(NoHeadersError):
            parse_text(",,\nR1,1")

    def test_errors_are_parse_errors(self):
        assert issubclass(EmptyInputError, ParseError)
        assert issubclass(NoHeadersError, ParseError)
        assert issubclass(ParseError, ValueError)


# =============================================================================
# BomParser
# =============================================================================

class RecordingAdapter:
    """Adapter stub that handles one suffix and returns a fixed table."""

    def __init__(self, suffix, table):
        self.suffix = suffix
        self.table = table
        self.calls = []

    def can_handle(self, file_path):
        return str(file_path).endswith(self.suffix)

    def read(self, file_path):
        self.calls.append(file_path)
        return self.table


class TestBomParser:
    """Tests for adapter dispatch."""

    def test_dispatches_to_first_matching_adapter(self):
        table = ParsedTable(headers=["Designator"], rows=[{"Designator": "R1"}])
        adapter = RecordingAdapter(".bom", table)
        parser = BomParser(adapters=[adapter])

        assert parser.parse("board.bom") is table
        assert adapter.calls == ["board.bom"]

    def test_registered_adapter_is_used(self):
        table = ParsedTable(headers=["Ref"])
        parser = BomParser(adapters=[])
        parser.register_adapter(RecordingAdapter(".txt", table))

        assert parser.parse("export.txt") is table

    def test_unsupported_extension(self):
        parser = BomParser()
        with pytest.raises(UnsupportedFileError) as exc_info:
            parser.parse("drawing.pdf")
        assert exc_info.value.file_path == "drawing.pdf"

    def test_parse_text_delegates(self):
        table = BomParser(adapters=[]).parse_text("Designator\nR1")
        assert table.rows == [{"Designator": "R1"}]
