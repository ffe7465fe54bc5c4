from pathlib import Path

import openpyxl

from ..errors import EmptyInputError, NoHeadersError, ParseError
from ..parser import ParsedTable


def _cell_text(value) -> str:
    return str(value).strip() if value is not None else ''


class ExcelAdapter:
    """Reads the first worksheet of an .xlsx workbook."""

    def can_handle(self, file_path):
        return Path(file_path).suffix.lower() in [".xlsx", ".xlsm"]

    def read(self, file_path) -> ParsedTable:
        try:
            wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
        except Exception as e:
            raise ParseError(f"Failed to load Excel file: {e}") from e

        try:
            ws = wb.worksheets[0] if wb.worksheets else None
            if ws is None:
                raise EmptyInputError("Excel file has no worksheets")

            row_iter = ws.iter_rows(values_only=True)
            first_row = next(row_iter, None)
            if first_row is None:
                raise EmptyInputError("Excel file is empty")

            # Empty header cells are dropped along with their column
            columns = [
                (position, _cell_text(value))
                for position, value in enumerate(first_row)
                if _cell_text(value)
            ]
            if not columns:
                raise NoHeadersError("Excel file has no valid headers in the first row")

            rows = []
            for values in row_iter:
                row = {
                    name: _cell_text(values[position]) if position < len(values) else ''
                    for position, name in columns
                }
                if any(row.values()):
                    rows.append(row)
        finally:
            wb.close()

        return ParsedTable(headers=[name for _, name in columns], rows=rows)
