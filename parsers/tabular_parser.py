"""
Tabular parser for uploaded price sheets.

Turns raw upload bytes (delimited text or an xlsx workbook) into a header row
plus data rows of trimmed string cells. Knows nothing about prices; the
price sheet parser interprets the columns.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from io import BytesIO
from typing import Optional
import structlog

import pandas as pd

from exceptions import MalformedInputError

logger = structlog.get_logger(__name__)

QUOTE_CHAR = '"'
TAB = "\t"
COMMA = ","

SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm")
# xlsx files are ZIP containers
ZIP_MAGIC = b"PK\x03\x04"

TEXT_ENCODINGS = ("utf-8-sig", "cp1252")


class FileFormat(str, Enum):
    """Supported upload containers."""
    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"


@dataclass
class TabularSheet:
    """Header plus data rows, with the 1-based source row of each data row."""
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    delimiter: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)


def detect_format(filename: Optional[str], content: bytes) -> FileFormat:
    """
    Choose the container format for an upload.

    Spreadsheet when the filename says so or the bytes are a ZIP archive,
    delimited text otherwise.
    """
    if filename and filename.lower().endswith(SPREADSHEET_EXTENSIONS):
        return FileFormat.SPREADSHEET
    if content.startswith(ZIP_MAGIC):
        return FileFormat.SPREADSHEET
    return FileFormat.DELIMITED


def detect_delimiter(header_line: str) -> str:
    """Tab if the header row contains a tab, comma otherwise."""
    return TAB if TAB in header_line else COMMA


def parse(
    content: bytes,
    file_format: Optional[FileFormat] = None,
    filename: Optional[str] = None,
) -> TabularSheet:
    """
    Parse an uploaded file into header and data rows.

    Args:
        content: Raw file bytes
        file_format: Container format (detected from filename/bytes if omitted)
        filename: Original filename, used only for format detection

    Returns:
        TabularSheet with trimmed string cells, blank rows removed

    Raises:
        MalformedInputError: If the file cannot be read or has fewer than
            two non-blank rows
    """
    if not content:
        raise MalformedInputError("Uploaded file is empty")

    file_format = file_format or detect_format(filename, content)
    logger.info(
        "parsing_tabular_file",
        file_format=file_format.value,
        size_bytes=len(content),
        filename=filename
    )

    if file_format == FileFormat.SPREADSHEET:
        numbered_rows = _read_spreadsheet(content)
        delimiter = None
    else:
        text = _decode(content)
        delimiter = detect_delimiter(_header_line(text))
        numbered_rows = split_records(text, delimiter)

    numbered_rows = [
        (number, cells) for number, cells in numbered_rows
        if any(cell for cell in cells)
    ]

    if len(numbered_rows) < 2:
        raise MalformedInputError(
            "File must contain at least a header row and one data row",
            details={"rows_found": len(numbered_rows)}
        )

    _, header = numbered_rows[0]
    sheet = TabularSheet(
        header=header,
        rows=[cells for _, cells in numbered_rows[1:]],
        row_numbers=[number for number, _ in numbered_rows[1:]],
        delimiter=delimiter,
    )

    logger.info(
        "tabular_file_parsed",
        columns=len(sheet.header),
        rows=sheet.row_count,
        delimiter=repr(delimiter) if delimiter else None
    )
    return sheet


def split_records(text: str, delimiter: str, quote: str = QUOTE_CHAR) -> list[tuple[int, list[str]]]:
    """
    Split delimited text into records with a single-pass quote state machine.

    Outside quotes the delimiter ends a cell and a line break ends a record.
    Inside quotes both are literal, and a doubled quote is one quote
    character. Cells are trimmed after tokenizing.

    Returns:
        List of (source line number, cells)

    Raises:
        MalformedInputError: If a quoted field is never closed
    """
    records: list[tuple[int, list[str]]] = []
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    line = 1
    record_line = 1
    quote_line = 1
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char == quote:
            if in_quotes and i + 1 < length and text[i + 1] == quote:
                current.append(quote)
                i += 1
            else:
                in_quotes = not in_quotes
                if in_quotes:
                    quote_line = line
        elif in_quotes:
            if char == "\n":
                line += 1
            current.append(char)
        elif char == delimiter:
            cells.append("".join(current).strip())
            current = []
        elif char in "\r\n":
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            cells.append("".join(current).strip())
            records.append((record_line, cells))
            cells, current = [], []
            line += 1
            record_line = line
        else:
            current.append(char)
        i += 1

    if in_quotes:
        raise MalformedInputError(
            "Unterminated quoted field",
            details={"line": quote_line}
        )

    if current or cells:
        cells.append("".join(current).strip())
        records.append((record_line, cells))

    return records


# ===================
# HELPER FUNCTIONS
# ===================

def _decode(content: bytes) -> str:
    """Decode text, stripping a UTF-8 BOM; fall back to Windows-1252."""
    if b"\x00" in content:
        raise MalformedInputError("File is not a text or spreadsheet file")
    for encoding in TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise MalformedInputError(
        "File encoding not recognized",
        details={"tried": list(TEXT_ENCODINGS)}
    )


def _header_line(text: str) -> str:
    """
    First line holding any cell content.

    Lines made only of delimiters, quotes and whitespace (",,,") are the
    blank rows dropped before the header is taken, so they are skipped here.
    """
    for line in text.splitlines():
        if line.strip(COMMA + TAB + QUOTE_CHAR + " \r\f\v"):
            return line
    return ""


def _read_spreadsheet(content: bytes) -> list[tuple[int, list[str]]]:
    """Read the first sheet as a 2-D array of string cells."""
    try:
        frame = pd.read_excel(
            BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
            engine="openpyxl",
        )
    except Exception as e:
        logger.error("spreadsheet_read_failed", error=str(e))
        raise MalformedInputError(
            "Failed to read spreadsheet",
            details={"original_error": str(e)}
        )

    return [
        (int(index) + 1, [cell_to_str(value) for value in values])
        for index, values in zip(frame.index, frame.itertuples(index=False, name=None))
    ]


def cell_to_str(value) -> str:
    """
    Coerce a spreadsheet cell to the text an operator would have typed.

    110001.0 -> "110001", 29.99 -> "29.99", empty -> "".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if pd.isna(value):
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()
