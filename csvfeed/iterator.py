"""
csvfeed iterator - pull style row-by-row reading of CSV files
"""

import logging
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional, Tuple, Union

from .errors import CsvIOError, CsvValidationError
from .parser import READ_CHUNK_SIZE, Field, StreamingParser

logger = logging.getLogger(__name__)


class CsvIterator:
    """
    Row-by-row iterator for streaming CSV parsing.

    The file is read lazily, one chunk at a time, only when no parsed row
    is pending. Breaking out of the iteration stops reading immediately.

    Example:
        with CsvIterator('/path/to/file.csv') as reader:
            for row in reader:
                print(reader.line_no, row)
                if row[0] == 'stop':
                    break
    """

    def __init__(
        self,
        path: Union[str, Path],
        delimiter: str = ',',
        comment: str = '',
        trim: str = '',
        chunk_size: int = READ_CHUNK_SIZE,
        encoding: str = 'utf-8',
        errors: str = 'replace',
    ):
        if chunk_size <= 0:
            raise CsvValidationError(f"Chunk size must be positive, got {chunk_size}")
        self._pending: Deque[Tuple[List[Field], int]] = deque()
        self._parser = StreamingParser(
            self._on_row, delimiter=delimiter, comment=comment, trim=trim,
            encoding=encoding, errors=errors,
        )
        self._chunk_size = chunk_size
        self._line_no = 0
        self._path = path
        try:
            self._file = open(path, 'rb')
        except OSError as e:
            raise CsvIOError(f"Failed to open CSV file {path}: {e}") from e
        logger.debug("Opened CSV iterator on %s", path)

    def _on_row(self, fields: List[Field], line_no: int) -> None:
        self._pending.append((fields, line_no))

    def _read_chunk(self) -> None:
        try:
            chunk = self._file.read(self._chunk_size)
        except OSError as e:
            raise CsvIOError(f"Not all CSV file data could be read from {self._path}: {e}") from e
        if chunk:
            self._parser.feed(chunk)
            return
        # End of file: flush the last line and release the file, the rows
        # still pending are handed out by further next() calls.
        self._parser.finish()
        self._release()

    def _release(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.debug("Closed CSV iterator on %s after %d rows",
                         self._path, self._parser.rows_emitted)

    @property
    def line_no(self) -> int:
        """Line number of the row returned last (0 before the first row)."""
        return self._line_no

    @property
    def closed(self) -> bool:
        """Whether the file has been released (closed or fully read)."""
        return self._file is None

    def next(self) -> Optional[List[Field]]:
        """Return the next row, or None at the end of the file."""
        while not self._pending:
            if self._file is None:
                return None
            self._read_chunk()
        fields, self._line_no = self._pending.popleft()
        return fields

    def close(self) -> None:
        """Close the iterator, rows not returned yet are discarded."""
        self._pending.clear()
        self._release()

    def __iter__(self) -> 'CsvIterator':
        return self

    def __next__(self) -> List[Field]:
        row = self.next()
        if row is None:
            raise StopIteration
        return row

    def __enter__(self) -> 'CsvIterator':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


def open_iterator(
    path: Union[str, Path],
    delimiter: str = ',',
    comment: str = '',
    trim: str = '',
    **kwargs
) -> CsvIterator:
    """
    Open a CSV file for row-by-row iteration.

    Args:
        path: Path to the CSV file
        delimiter: Field delimiter character (default: ',')
        comment: Header comment lead characters (default: none)
        trim: Characters trimmed off both ends of each field (default: none)

    Returns:
        CsvIterator that can be used with for-loops or as a context manager.

    Raises:
        CsvIOError: If the file cannot be opened
    """
    return CsvIterator(path, delimiter=delimiter, comment=comment, trim=trim, **kwargs)
