"""Tabular parsing of uploaded CSV/TSV files and the per-file column index"""
import csv
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.contact_tool.services.errors import (
    CsvDecodeError,
    EmptyFileError,
    FileTooLargeError,
    NoDataRowsError,
)

logger = logging.getLogger(__name__)

SourceRow = Tuple[str, ...]


@dataclass(frozen=True)
class Column:
    id: str
    label: str
    raw_label: str
    index: int


@dataclass(frozen=True)
class ParsedTable:
    header_row: Tuple[str, ...]
    data_rows: Tuple[SourceRow, ...]
    delimiter: str = ","

    @property
    def width(self) -> int:
        return len(self.header_row)


def decode_csv_content(content: bytes) -> str:
    encodings = ["utf-8-sig", "cp932", "shift-jis", "euc-jp"]
    for encoding in encodings:
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
    raise CsvDecodeError()


def detect_delimiter(text: str) -> str:
    first_line = text.split("\n", 1)[0]
    if first_line.count("\t") > first_line.count(","):
        return "\t"
    return ","


def normalize_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def column_id(index: int) -> str:
    return f"col_{index}"


def build_columns(header_row: Sequence[Any], max_width: int = 0) -> List[Column]:
    """One Column per position; blank headers get the label "Column N" (1-based)."""
    width = max(len(header_row), max_width)
    columns = []
    for index in range(width):
        raw = header_row[index] if index < len(header_row) else ""
        raw_label = "" if raw is None else str(raw)
        label = raw_label.strip() or f"Column {index + 1}"
        columns.append(Column(id=column_id(index), label=label, raw_label=raw_label, index=index))
    return columns


def column_lookup(columns: Sequence[Column]) -> Dict[str, Column]:
    return {column.id: column for column in columns}


def parse_rows(rows: Sequence[Sequence[Any]], delimiter: str = ",") -> ParsedTable:
    """Turn already-split rows into a rectangular table.

    Rows whose cells are all blank are dropped. The header is padded with
    blank entries up to the widest row, and short data rows are padded with
    empty cells, so every row can be indexed by any column position.
    """
    cleaned = [[normalize_cell(cell) for cell in row] for row in rows]
    cleaned = [row for row in cleaned if any(cell for cell in row)]
    if not cleaned:
        raise EmptyFileError()

    header, data = cleaned[0], cleaned[1:]
    if not data:
        raise NoDataRowsError()

    width = max(len(row) for row in cleaned)
    if width > len(header):
        logger.info(f"Data rows wider than header: padding header from {len(header)} to {width} columns")

    header_row = tuple(header + [""] * (width - len(header)))
    data_rows = tuple(tuple(row + [""] * (width - len(row))) for row in data)
    return ParsedTable(header_row=header_row, data_rows=data_rows, delimiter=delimiter)


def parse_table(content: bytes, max_bytes: Optional[int] = None) -> ParsedTable:
    if max_bytes is not None and len(content) > max_bytes:
        raise FileTooLargeError()
    if not content.strip():
        raise EmptyFileError()

    text = decode_csv_content(content)
    delimiter = detect_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    table = parse_rows(list(reader), delimiter=delimiter)
    logger.info(f"Parsed CSV: {len(table.data_rows)} data rows, {table.width} columns, delimiter={delimiter!r}")
    return table
