"""
csvfeed table - compact columnar storage of parsed CSV data
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np

from .parser import READ_CHUNK_SIZE, Chunk, Field, StreamingParser

logger = logging.getLogger(__name__)


class CsvTable:
    """
    Parsed CSV data stored in numpy arrays.

    All field bytes are kept back-to-back in one `uint8` array, fields are
    located by offset and length, rows by the index of their first field.
    Python string objects are only created for the fields actually
    accessed.
    """

    __slots__ = ('_data', '_field_offsets', '_field_lengths', '_row_offsets',
                 '_line_numbers', '_row_count', '_encoding', '_errors')

    def __init__(self, data: np.ndarray, field_offsets: np.ndarray,
                 field_lengths: np.ndarray, row_offsets: np.ndarray,
                 line_numbers: np.ndarray, encoding: Optional[str] = 'utf-8',
                 errors: str = 'replace'):
        self._data = data
        self._field_offsets = field_offsets
        self._field_lengths = field_lengths
        self._row_offsets = row_offsets
        self._line_numbers = line_numbers
        self._row_count = len(row_offsets) - 1
        self._encoding = encoding
        self._errors = errors

    def _field(self, field_idx: int) -> Field:
        offset = int(self._field_offsets[field_idx])
        length = int(self._field_lengths[field_idx])
        raw = self._data[offset:offset + length].tobytes()
        if self._encoding is None:
            return raw
        return raw.decode(self._encoding, self._errors)

    def _row_index(self, idx: int) -> int:
        if idx < 0:
            idx = self._row_count + idx
        if idx < 0 or idx >= self._row_count:
            raise IndexError(f"Row index {idx} out of range")
        return idx

    def __len__(self) -> int:
        """Return the number of rows."""
        return self._row_count

    def __getitem__(self, idx: int) -> List[Field]:
        """Get a row by index, decoding fields on demand."""
        idx = self._row_index(idx)
        start = int(self._row_offsets[idx])
        end = int(self._row_offsets[idx + 1])
        return [self._field(i) for i in range(start, end)]

    def __iter__(self) -> Iterator[List[Field]]:
        for i in range(self._row_count):
            yield self[i]

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def field_count(self) -> int:
        """Total number of fields across all rows."""
        return len(self._field_offsets)

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def line_numbers(self) -> np.ndarray:
        """Line number of each row, as reported by the parser."""
        return self._line_numbers

    def to_list(self) -> List[List[Field]]:
        """Convert to a list of lists (materializes all data)."""
        return [self[i] for i in range(self._row_count)]

    def get_field(self, row: int, col: int) -> Field:
        """Get a single field value by row and column index."""
        row = self._row_index(row)
        start = int(self._row_offsets[row])
        end = int(self._row_offsets[row + 1])
        field_idx = start + col
        if col < 0 or field_idx >= end:
            raise IndexError(f"Column index {col} out of range")
        return self._field(field_idx)

    def get_column(self, col: int) -> List[Field]:
        """Get all values in a column, rows without that column give ''."""
        missing: Field = b'' if self._encoding is None else ''
        result = []
        for i in range(self._row_count):
            start = int(self._row_offsets[i])
            end = int(self._row_offsets[i + 1])
            if 0 <= col < end - start:
                result.append(self._field(start + col))
            else:
                result.append(missing)
        return result


class _TableBuilder:
    """Row callback collecting raw fields for a CsvTable."""

    def __init__(self):
        self.data = bytearray()
        self.field_offsets: List[int] = []
        self.field_lengths: List[int] = []
        self.row_offsets: List[int] = [0]
        self.line_numbers: List[int] = []

    def __call__(self, fields: List[bytes], line_no: int) -> None:
        for field in fields:
            self.field_offsets.append(len(self.data))
            self.field_lengths.append(len(field))
            self.data += field
        self.row_offsets.append(len(self.field_offsets))
        self.line_numbers.append(line_no)

    def build(self, encoding: Optional[str], errors: str) -> CsvTable:
        return CsvTable(
            np.frombuffer(bytes(self.data), dtype=np.uint8),
            np.array(self.field_offsets, dtype=np.uint64),
            np.array(self.field_lengths, dtype=np.uint32),
            np.array(self.row_offsets, dtype=np.uint64),
            np.array(self.line_numbers, dtype=np.uint64),
            encoding=encoding,
            errors=errors,
        )


def parse_table(
    content: Chunk,
    delimiter: str = ',',
    comment: str = '',
    trim: str = '',
    *,
    encoding: Optional[str] = 'utf-8',
    errors: str = 'replace',
) -> CsvTable:
    """
    Parse CSV text into a CsvTable.

    With `encoding=None` the table hands out raw bytes fields, str content
    is then encoded as UTF-8.
    """
    builder = _TableBuilder()
    parser = StreamingParser(
        builder, delimiter=delimiter, comment=comment, trim=trim,
        encoding=encoding or 'utf-8', errors=errors, raw=True,
    )
    parser.parse(content)
    return builder.build(encoding, errors)


def parse_file_fast(
    path: Union[str, Path],
    delimiter: str = ',',
    comment: str = '',
    trim: str = '',
    *,
    chunk_size: int = READ_CHUNK_SIZE,
    encoding: Optional[str] = 'utf-8',
    errors: str = 'replace',
) -> CsvTable:
    """
    Parse a CSV file into a CsvTable.

    Avoids creating a Python string per field while parsing, which makes it
    the cheaper choice for large files of which only parts are accessed.

    Example:
        >>> table = parse_file_fast('data.csv')
        >>> len(table)
        1000
        >>> table.get_field(1, 0)
        'value1'

    Raises:
        CsvIOError: If the file cannot be opened or read
    """
    builder = _TableBuilder()
    parser = StreamingParser(
        builder, delimiter=delimiter, comment=comment, trim=trim,
        encoding=encoding or 'utf-8', errors=errors, raw=True,
    )
    parser.parse_file(path, chunk_size=chunk_size)
    table = builder.build(encoding, errors)
    logger.debug("Built CSV table from %s: %d rows, %d fields, %d bytes",
                 path, table.row_count, table.field_count, len(table.data))
    return table
