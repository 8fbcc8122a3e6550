"""
Delimited-text parser for operator CSV uploads.

Turns the raw export of a predecessor tool into header names and row
records. No business knowledge lives here: values stay strings until the
row transformer coerces them.

Quoting rules are simple. A token wrapped in matching double
quotes has the quotes stripped; a delimiter inside quotes is NOT protected,
so such lines usually come out ragged and are dropped.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union
import structlog

from config import settings
from exceptions import MalformedInputError

logger = structlog.get_logger(__name__)

# latin-1 maps every byte, so it must stay last
ENCODINGS_TO_TRY = ["utf-8-sig", "cp1252", "latin-1"]


# ===================
# DATA CLASSES
# ===================

@dataclass(frozen=True)
class RawRow:
    """
    One data line as ordered (header, value) pairs.

    row_index is the 1-based position of the line after the header, counted
    before any ragged or blank lines are dropped, so it matches what the
    operator sees in the source file.
    """
    row_index: int
    pairs: tuple[tuple[str, str], ...]

    def get(self, header: str, default: str = "") -> str:
        """Value for header; first occurrence wins on duplicate headers."""
        for name, value in self.pairs:
            if name == header:
                return value
        return default

    def __contains__(self, header: object) -> bool:
        return any(name == header for name, _ in self.pairs)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.pairs)

    @property
    def is_empty(self) -> bool:
        return all(value == "" for _, value in self.pairs)

    def to_dict(self) -> dict[str, str]:
        """Plain mapping for API responses (first occurrence wins)."""
        result: dict[str, str] = {}
        for name, value in self.pairs:
            result.setdefault(name, value)
        return result


@dataclass(frozen=True)
class RawTable:
    """Parsed file: headers plus surviving rows, in file order."""
    headers: tuple[str, ...]
    rows: tuple[RawRow, ...]
    total_lines: int = 0
    dropped_row_indexes: tuple[int, ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def preview(self, limit: int) -> list[dict[str, str]]:
        """First `limit` rows as plain dicts."""
        return [row.to_dict() for row in self.rows[:limit]]

    def to_text(self, delimiter: Optional[str] = None) -> str:
        """
        Re-serialize the table with every value quoted.

        parse_csv(table.to_text()) yields the same headers and row count,
        provided no value contains the delimiter.
        """
        delimiter = delimiter or settings.import_delimiter
        lines = [delimiter.join(_quote(h) for h in self.headers)]
        for row in self.rows:
            lines.append(delimiter.join(_quote(value) for _, value in row.pairs))
        return "\n".join(lines) + "\n"


# ===================
# MAIN PARSER
# ===================

def parse_csv(
    content: Union[str, bytes],
    delimiter: Optional[str] = None,
    max_rows: Optional[int] = None,
) -> RawTable:
    """
    Parse delimited text into a RawTable.

    Args:
        content: Raw file text, or bytes to decode
        delimiter: Field delimiter (defaults to settings.import_delimiter)
        max_rows: Maximum data lines accepted (defaults to settings.import_max_rows)

    Returns:
        RawTable with headers and the rows that survived filtering

    Raises:
        MalformedInputError: If the header line yields no non-empty token,
            or the file exceeds max_rows
    """
    delimiter = delimiter or settings.import_delimiter
    max_rows = max_rows or settings.import_max_rows

    text = _decode(content) if isinstance(content, bytes) else content
    text = text.lstrip("\ufeff")

    lines = text.splitlines()
    if not lines:
        raise MalformedInputError("File is empty")

    headers = tuple(_split_line(lines[0], delimiter))
    if not any(headers):
        raise MalformedInputError(
            message="First line contains no column headers",
            details={"first_line": lines[0][:200]}
        )

    data_lines = lines[1:]
    if len(data_lines) > max_rows:
        raise MalformedInputError(
            message=f"File has {len(data_lines)} rows; the limit is {max_rows}",
            details={"row_count": len(data_lines), "max_rows": max_rows}
        )

    rows: list[RawRow] = []
    dropped: list[int] = []

    for row_index, line in enumerate(data_lines, start=1):
        tokens = _split_line(line, delimiter)

        # Ragged exports are tolerated, not fatal
        if len(tokens) != len(headers):
            logger.debug(
                "csv_row_dropped_ragged",
                row=row_index,
                expected=len(headers),
                found=len(tokens)
            )
            dropped.append(row_index)
            continue

        row = RawRow(row_index=row_index, pairs=tuple(zip(headers, tokens)))
        if row.is_empty:
            dropped.append(row_index)
            continue

        rows.append(row)

    logger.info(
        "csv_parsed",
        columns=len(headers),
        rows=len(rows),
        dropped=len(dropped)
    )

    return RawTable(
        headers=headers,
        rows=tuple(rows),
        total_lines=len(data_lines),
        dropped_row_indexes=tuple(dropped),
    )


# ===================
# HELPER FUNCTIONS
# ===================

def _split_line(line: str, delimiter: str) -> list[str]:
    """Split one line and unwrap quoted tokens."""
    return [_unquote(token.strip()) for token in line.split(delimiter)]


def _unquote(token: str) -> str:
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return token[1:-1].strip()
    return token


def _quote(value: str) -> str:
    return f'"{value}"'


def _decode(content: bytes) -> str:
    """Decode uploaded bytes, trying encodings common in spreadsheet exports."""
    for encoding in ENCODINGS_TO_TRY[:-1]:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            logger.debug("csv_decode_retry", failed_encoding=encoding)
    return content.decode(ENCODINGS_TO_TRY[-1])
