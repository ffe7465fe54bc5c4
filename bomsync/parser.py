import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import EmptyInputError, NoHeadersError, UnsupportedFileError

logger = logging.getLogger(__name__)

QUOTE = '"'
_LINE_BREAK = re.compile(r'\r\n|\r|\n')


@dataclass
class ParsedTable:
    """Headers plus ordered rows from one BOM source.

    Every row carries exactly the header set as keys, in header order.
    """
    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


def split_line(line: str, delimiter: str = ",") -> List[str]:
    """Split one physical line into trimmed cells.

    A quote toggles quoted mode, inside which the delimiter is literal.
    A doubled quote inside quotes unescapes to a single quote character.

    Args:
        line: A single line of delimited text (no line breaks)
        delimiter: Cell delimiter (default: comma)

    Returns:
        List of cell values, each stripped of surrounding whitespace
    """
    cells = []
    current = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == QUOTE:
            if in_quotes and i + 1 < len(line) and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            cells.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    cells.append("".join(current))
    return [cell.strip() for cell in cells]


def parse_text(text: Optional[str], delimiter: str = ",") -> ParsedTable:
    """Parse delimited BOM text into headers and rows.

    The first non-blank line is the header line. Header cells that are empty
    after trimming are dropped, together with their data column. Data lines
    whose cells are all empty are skipped. Short lines are padded with empty
    strings and extra cells are discarded.

    Args:
        text: Raw delimited text (LF or CRLF line endings)
        delimiter: Cell delimiter (default: comma)

    Returns:
        ParsedTable with trimmed headers and one row per non-blank data line

    Raises:
        EmptyInputError: If the text is empty or only whitespace/delimiters
        NoHeadersError: If the header line yields no column names
    """
    if not text or not text.strip(f" \t\r\n{delimiter}{QUOTE}"):
        raise EmptyInputError("BOM input is empty")

    lines = _LINE_BREAK.split(text)

    # Header line: first line with any content
    header_index = next(i for i, line in enumerate(lines) if line.strip())
    header_cells = split_line(lines[header_index], delimiter)

    # Keep the source column position of every surviving header
    columns = [(position, cell) for position, cell in enumerate(header_cells) if cell]
    if not columns:
        raise NoHeadersError("BOM input has no valid headers")

    headers = [name for _, name in columns]
    rows = []
    skipped = 0

    for line in lines[header_index + 1:]:
        if not line.strip():
            skipped += 1
            continue
        values = split_line(line, delimiter)
        if not any(values):
            skipped += 1
            continue
        rows.append({
            name: values[position] if position < len(values) else ""
            for position, name in columns
        })

    logger.debug(
        f"Parsed {len(rows)} rows with {len(headers)} headers "
        f"({skipped} blank lines skipped)"
    )
    return ParsedTable(headers=headers, rows=rows)


class BomParser:
    """Reads BOM files through registered adapters."""

    def __init__(self, adapters: Optional[list] = None):
        """Initialize the BOM parser.

        Args:
            adapters: Adapter instances with can_handle() and read() methods.
                      Defaults to the CSV and Excel adapters.
        """
        if adapters is None:
            from .adapters.csv_adapter import CsvAdapter
            from .adapters.excel_adapter import ExcelAdapter
            adapters = [CsvAdapter(), ExcelAdapter()]
        self.adapters = list(adapters)

    def register_adapter(self, adapter):
        """Register an additional file adapter.

        Args:
            adapter: Adapter instance with can_handle() and read() methods
        """
        self.adapters.append(adapter)

    def parse(self, file_path: str) -> ParsedTable:
        """Parse a BOM file into headers and rows.

        Args:
            file_path: Path to the BOM file

        Returns:
            ParsedTable for the file

        Raises:
            UnsupportedFileError: If no adapter handles the file
            EmptyInputError, NoHeadersError: If the file content is unusable
        """
        for adapter in self.adapters:
            if adapter.can_handle(file_path):
                return adapter.read(file_path)
        raise UnsupportedFileError(file_path)

    def parse_text(self, text: str, delimiter: str = ",") -> ParsedTable:
        """Parse already-decoded delimited text."""
        return parse_text(text, delimiter=delimiter)
