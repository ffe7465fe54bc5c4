import logging
from pathlib import Path

import chardet

from ..parser import ParsedTable, parse_text
from ..errors import EmptyInputError

logger = logging.getLogger(__name__)


class CsvAdapter:
    """CSV adapter for reading CSV and TSV BOM exports.

    Handles:
    - Multiple encodings (UTF-8, UTF-8-BOM, Windows-1252, ISO-8859-1, etc.)
    - Different delimiters (comma, semicolon, tab)
    - Quoted cells and doubled-quote escapes (one record per physical line)
    """

    FALLBACK_ENCODINGS = ['cp1252', 'latin-1']

    def can_handle(self, file_path: str) -> bool:
        """Check if this adapter can handle the given file."""
        return Path(file_path).suffix.lower() in [".csv", ".tsv"]

    def _detect_encoding(self, raw_data: bytes) -> str:
        """Detect text encoding using chardet with a UTF-8 fallback."""
        # Check for BOM first
        if raw_data.startswith(b'\xef\xbb\xbf'):
            return 'utf-8-sig'

        result = chardet.detect(raw_data[:10000])
        encoding = result.get('encoding') or 'utf-8'

        encoding_lower = encoding.lower()
        if 'utf-8' in encoding_lower or 'utf8' in encoding_lower or encoding_lower == 'ascii':
            return 'utf-8'
        return encoding

    def _detect_delimiter(self, text: str, suffix: str) -> str:
        """Pick the delimiter by counting candidates on the first non-blank line."""
        if suffix == '.tsv':
            return '\t'

        first_line = next((line for line in text.splitlines() if line.strip()), '')
        comma_count = first_line.count(',')
        semicolon_count = first_line.count(';')
        tab_count = first_line.count('\t')

        if tab_count > comma_count and tab_count > semicolon_count:
            return '\t'
        elif semicolon_count > comma_count:
            return ';'
        return ','

    def decode(self, raw_data: bytes) -> str:
        """Decode raw file bytes to text.

        Raises:
            ValueError: If no candidate encoding can decode the bytes
        """
        encoding = self._detect_encoding(raw_data)
        try:
            return raw_data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            logger.warning(f"Decoding as {encoding} failed, trying fallbacks: {e}")
            for fallback_encoding in self.FALLBACK_ENCODINGS:
                try:
                    return raw_data.decode(fallback_encoding)
                except UnicodeDecodeError:
                    continue
            raise ValueError(f"Could not decode BOM data: {e}") from e

    def read(self, file_path: str) -> ParsedTable:
        """Read a CSV/TSV file into headers and rows.

        Args:
            file_path: Path to the CSV/TSV file

        Returns:
            ParsedTable for the file

        Raises:
            FileNotFoundError: If file doesn't exist
            EmptyInputError: If the file is empty
            NoHeadersError: If the header line has no usable names
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        raw_data = path.read_bytes()
        if not raw_data:
            raise EmptyInputError(f"CSV file is empty: {file_path}")

        text = self.decode(raw_data)
        delimiter = self._detect_delimiter(text, path.suffix.lower())
        logger.debug(f"Reading {file_path} with delimiter {delimiter!r}")
        return parse_text(text, delimiter=delimiter)
