"""
csvfeed parser - incremental, callback driven CSV parsing
"""

import codecs
import logging
import re
import stat
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .errors import CsvIOError, CsvValidationError

logger = logging.getLogger(__name__)

# File reading chunk size (default 1MB)
READ_CHUNK_SIZE = 1024 * 1024

_CR = 0x0D
_LF = 0x0A
_QUOTE = 0x22

# Scanner modes, kept between chunks.
_FIELD_START = 0   # a quote here opens a quoted field
_UNQUOTED = 1
_QUOTED = 2
_QUOTE_SEEN = 3    # quote inside a quoted field, escape or close not decided yet

_NEWLINE = re.compile(b'[\r\n]')

Field = Union[str, bytes]
RowCallback = Callable[[List[Field], int], None]
Chunk = Union[bytes, bytearray, memoryview, str]


def _validate_single_char(name: str, value: str) -> None:
    """Validate a delimiter-like single character setting."""
    if not isinstance(value, str):
        raise CsvValidationError(
            f"{name} must be a str, got {type(value).__name__}"
        )
    if not value:
        raise CsvValidationError(f"{name} cannot be empty")
    if len(value) > 1:
        raise CsvValidationError(
            f"{name} must be a single character, got '{value}' "
            f"(length {len(value)}). Multi-character delimiters are not supported."
        )
    if value in ('"', '\r', '\n', '\0'):
        raise CsvValidationError(
            f"{name} cannot be the quote, a line terminator or NUL ({value!r})"
        )


class StreamingParser:
    """
    Incremental CSV parser.

    Chunks are handed in with `feed()`, and every completed record is passed
    to `on_row(fields, line_no)` as soon as its line terminator is seen.
    Unfinished data stays buffered until the next `feed()`, `finish()`
    flushes a last record that has no trailing newline.

    The parser works on bytes. `str` chunks are encoded with `encoding`,
    and finished fields are decoded with it again unless `raw` is set.
    """

    def __init__(
        self,
        on_row: RowCallback,
        delimiter: str = ',',
        comment: Union[str, bytes] = '',
        trim: Union[str, bytes] = '',
        encoding: str = 'utf-8',
        errors: str = 'replace',
        raw: bool = False,
        max_file_size: Optional[int] = None,
    ):
        if not callable(on_row):
            raise CsvValidationError("Row callback must be callable")

        try:
            codecs.lookup(encoding)
        except (LookupError, TypeError):
            raise CsvValidationError(f"Unknown encoding: {encoding!r}") from None

        _validate_single_char('Delimiter', delimiter)

        self._on_row = on_row
        self._encoding = encoding
        self._errors = errors
        self._raw = raw
        self._max_file_size = max_file_size

        self._delimiter = delimiter
        delim = self._encode(delimiter)
        if len(delim) != 1:
            raise CsvValidationError(
                f"Delimiter {delimiter!r} does not encode to a single byte in {encoding}"
            )
        self._delim = delim[0]
        self._comment = self._encode(comment)
        self._trim = self._encode(trim)
        self._field_end = re.compile(b'[' + re.escape(delim) + b'\r\n]')

        self.clear()

    def _encode(self, text: Union[str, bytes]) -> bytes:
        if isinstance(text, str):
            try:
                return text.encode(self._encoding)
            except UnicodeEncodeError as e:
                raise CsvValidationError(f"Cannot encode {text!r} as {self._encoding}: {e}") from e
        return bytes(text)

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def comment(self) -> bytes:
        """Header comment lead characters."""
        return self._comment

    @property
    def trim(self) -> bytes:
        """Characters trimmed off both ends of every field."""
        return self._trim

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def max_file_size(self) -> Optional[int]:
        """File size limit of `parse_file`, None for no limit."""
        return self._max_file_size

    @property
    def line_no(self) -> int:
        """Number of line terminators seen since the last `clear()`."""
        return self._line_no

    @property
    def rows_emitted(self) -> int:
        return self._n_rows

    def clear(self) -> 'StreamingParser':
        """
        Reset the internal state (but not the construction settings),
        so that a new CSV data set can be processed.
        """
        self._buffer = bytearray()
        self._fields: List[Tuple[int, int]] = []
        self._field_start = 0
        self._line_no = 0
        self._n_rows = 0
        self._mode = _FIELD_START
        self._pending_cr = False
        self._in_comment = False
        self._in_header = bool(self._comment)
        return self

    def feed(self, chunk: Chunk) -> 'StreamingParser':
        """
        Parse a chunk of CSV data.

        Invokes the row callback for every line completed by this chunk and
        keeps the unfinished rest for the next call. Call `finish()` after
        the last chunk so that a final line without newline is not lost.

        Args:
            chunk: CSV data, bytes-like or str

        Returns:
            The parser itself.
        """
        if isinstance(chunk, str):
            chunk = chunk.encode(self._encoding)
        elif not isinstance(chunk, bytes):
            chunk = bytes(chunk)
        if chunk:
            self._push(chunk)
        return self

    def finish(self) -> 'StreamingParser':
        """
        Flush the buffered record in case the input did not end with a
        newline. An unterminated quoted field is closed as it is.
        """
        if self._mode == _QUOTED:
            self._mode = _UNQUOTED
        self._push(b'\n')
        return self

    def parse(self, text: Chunk) -> None:
        """Parse a complete CSV text (`clear()`, `feed()`, `finish()`)."""
        self.clear()
        self.feed(text)
        self.finish()

    def _validate_file_path(self, path: Union[str, Path]) -> Path:
        """
        Check that the path names a regular file within the size limit.

        Device files, FIFOs and sockets are refused, symlinks are followed
        to their target.
        """
        file_path = Path(path)

        if not file_path.exists():
            raise CsvIOError(f"File not found: {path}")

        real_path = file_path.resolve()

        try:
            file_stat = real_path.stat()
        except OSError as e:
            raise CsvIOError(f"Cannot access file {path}: {e}") from e

        if stat.S_ISBLK(file_stat.st_mode) or stat.S_ISCHR(file_stat.st_mode):
            raise CsvIOError(f"Cannot parse device file: {path}")
        if stat.S_ISFIFO(file_stat.st_mode):
            raise CsvIOError(f"Cannot parse FIFO/pipe: {path}")
        if stat.S_ISSOCK(file_stat.st_mode):
            raise CsvIOError(f"Cannot parse socket: {path}")
        if not stat.S_ISREG(file_stat.st_mode):
            raise CsvIOError(f"Path is not a regular file: {path}")

        if self._max_file_size is not None and file_stat.st_size > self._max_file_size:
            raise CsvIOError(
                f"File too large: {file_stat.st_size} bytes "
                f"(max {self._max_file_size} bytes). "
                f"Increase max_file_size if this is intentional."
            )

        return real_path

    def parse_file(
        self,
        path: Union[str, Path],
        chunk_size: int = READ_CHUNK_SIZE,
        validate_path: bool = True,
    ) -> None:
        """
        Read and parse a CSV file chunk by chunk.

        Args:
            path: Path to the CSV file
            chunk_size: Number of bytes read per chunk
            validate_path: If True (default), refuses non-regular files and
                           files larger than `max_file_size` when one is set.

        Raises:
            CsvIOError: If the file cannot be opened or read
        """
        if chunk_size <= 0:
            raise CsvValidationError(f"Chunk size must be positive, got {chunk_size}")

        self.clear()
        if validate_path:
            path = self._validate_file_path(path)

        logger.debug("Parsing %s in %d byte chunks", path, chunk_size)
        try:
            fis = open(path, 'rb')
        except OSError as e:
            raise CsvIOError(f"Failed to open CSV file {path}: {e}") from e

        with fis:
            while True:
                try:
                    chunk = fis.read(chunk_size)
                except OSError as e:
                    raise CsvIOError(f"Not all CSV file data could be read from {path}: {e}") from e
                if not chunk:
                    break
                self._push(chunk)
        self.finish()
        logger.debug("Parsed %d rows (%d lines) from %s", self._n_rows, self._line_no, path)

    def _push(self, data: bytes) -> None:
        # NUL ends the chunk, the remainder is dropped.
        end = data.find(b'\0')
        if end < 0:
            end = len(data)
        pos = 0
        while pos < end:
            if self._pending_cr:
                self._pending_cr = False
                if data[pos] == _LF:
                    pos += 1
                    continue
            if self._in_header:
                pos = self._skip_header(data, pos, end)
                continue
            mode = self._mode
            if mode == _FIELD_START:
                pos = self._scan_field_start(data, pos, end)
            elif mode == _UNQUOTED:
                pos = self._consume_unquoted(data, pos, end)
            elif mode == _QUOTED:
                pos = self._consume_quoted(data, pos, end)
            elif data[pos] == _QUOTE:
                # _QUOTE_SEEN: RFC4180 double-quote escape.
                self._buffer.append(_QUOTE)
                self._mode = _QUOTED
                pos += 1
            else:
                self._mode = _UNQUOTED

    def _skip_header(self, data: bytes, pos: int, end: int) -> int:
        if self._in_comment:
            m = _NEWLINE.search(data, pos, end)
            if m is None:
                return end
            self._in_comment = False
            return m.start()
        c = data[pos]
        if c == _CR or c == _LF:
            self._line_no += 1
            self._pending_cr = c == _CR
            return pos + 1
        if c in self._comment:
            self._in_comment = True
            return pos + 1
        self._in_header = False
        return pos

    def _scan_field_start(self, data: bytes, pos: int, end: int) -> int:
        c = data[pos]
        if c == self._delim:
            self._push_field()
            return pos + 1
        if c == _CR or c == _LF:
            # RFC4180 specifies CRLF, but CR, LF, or CRLF are accepted.
            self._pending_cr = c == _CR
            self._line_no += 1
            self._finish_line()
            return pos + 1
        if c == _QUOTE:
            self._mode = _QUOTED
            return pos + 1
        self._mode = _UNQUOTED
        return self._consume_unquoted(data, pos, end)

    def _consume_unquoted(self, data: bytes, pos: int, end: int) -> int:
        # Quotes are only registered directly after the delimiter or at the
        # start of line, inside the field they are normal characters.
        m = self._field_end.search(data, pos, end)
        stop = end if m is None else m.start()
        if stop > pos:
            self._buffer += data[pos:stop]
        if m is not None:
            self._mode = _FIELD_START
        return stop

    def _consume_quoted(self, data: bytes, pos: int, end: int) -> int:
        q = data.find(b'"', pos, end)
        if q < 0:
            self._buffer += data[pos:end]
            return end
        self._buffer += data[pos:q]
        self._mode = _QUOTE_SEEN
        return q + 1

    def _push_field(self) -> None:
        end = len(self._buffer)
        self._fields.append((self._field_start, end))
        self._field_start = end

    def _finish_line(self) -> bool:
        if not self._buffer and not self._fields:
            return False
        self._push_field()
        buffer = self._buffer
        trim = self._trim
        if self._raw:
            record = [bytes(buffer[s:e].strip(trim)) for s, e in self._fields]
        else:
            encoding, errors = self._encoding, self._errors
            record = [buffer[s:e].strip(trim).decode(encoding, errors) for s, e in self._fields]
        self._on_row(record, self._line_no)
        self._buffer = bytearray()
        self._fields = []
        self._field_start = 0
        self._n_rows += 1
        return True


def parse_string(
    content: Chunk,
    delimiter: str = ',',
    comment: str = '',
    trim: str = '',
    **kwargs
) -> List[List[Field]]:
    """Parse a CSV string and return all rows."""
    rows: List[List[Field]] = []
    parser = StreamingParser(
        lambda fields, line_no: rows.append(fields),
        delimiter=delimiter, comment=comment, trim=trim, **kwargs
    )
    parser.parse(content)
    return rows


def parse_file(
    path: Union[str, Path],
    delimiter: str = ',',
    comment: str = '',
    trim: str = '',
    chunk_size: int = READ_CHUNK_SIZE,
    validate_path: bool = True,
    **kwargs
) -> List[List[Field]]:
    """Parse a CSV file and return all rows."""
    rows: List[List[Field]] = []
    parser = StreamingParser(
        lambda fields, line_no: rows.append(fields),
        delimiter=delimiter, comment=comment, trim=trim, **kwargs
    )
    parser.parse_file(path, chunk_size=chunk_size, validate_path=validate_path)
    return rows


def count_rows(path: Union[str, Path], chunk_size: int = READ_CHUNK_SIZE, **kwargs) -> int:
    """Count the data rows of a CSV file (blank lines and header comments excluded)."""
    kwargs.pop('raw', None)
    parser = StreamingParser(lambda fields, line_no: None, raw=True, **kwargs)
    parser.parse_file(path, chunk_size=chunk_size)
    return parser.rows_emitted
