"""
csvfeed composer - builds CSV lines from field sequences
"""

import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence

from .errors import CsvRowShapeError, CsvValidationError
from .parser import _validate_single_char

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]


class RowComposer:
    """
    CSV line composer.

    The number of columns is set once with `define_columns()`, then every
    `feed()` composes one line: fields of forced-quote columns are always
    quoted, all others only when `escape()` finds it necessary. The line,
    including the newline sequence, is passed to `on_line`.

    Example:
        >>> out = []
        >>> composer = RowComposer(out.append, ',', '\\n')
        >>> _ = composer.define_columns(3, [1]).feed(['id', 'a b', 'x,y'])
        >>> out
        ['"id",a b,"x,y"\\n']
    """

    def __init__(
        self,
        on_line: Optional[LineCallback] = None,
        delimiter: str = ',',
        newline: str = '\r\n',
    ):
        if on_line is not None and not callable(on_line):
            raise CsvValidationError("Line callback must be callable")
        _validate_single_char('Delimiter', delimiter)
        if not isinstance(newline, str) or not newline:
            raise CsvValidationError("Newline sequence cannot be empty")

        self._on_line = on_line if on_line is not None else self.no_output
        self._delimiter = delimiter
        self._newline = newline
        # Non-printable or non-ASCII characters, quotes and the delimiter.
        self._needs_quote = re.compile(r'[^\x20-\x7e]|["' + re.escape(delimiter) + ']')
        self._quote_cols: List[bool] = []
        self._num_cols = 0

    @staticmethod
    def no_output(line: str) -> None:
        pass

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def newline(self) -> str:
        return self._newline

    @property
    def num_columns(self) -> int:
        """Defined column count, 0 if not defined yet."""
        return self._num_cols

    @staticmethod
    def quote(field_text: str) -> str:
        """
        Quote a text, irrespective if it needs to be: enclose it in `"`
        and replace every `"` with the CSV escape sequence `""`.
        """
        return '"' + field_text.replace('"', '""') + '"'

    def escape(self, field_text: str) -> str:
        """
        Quote a text if it:
         - contains non-printable characters (also newlines and tabs),
         - or characters outside the ASCII range,
         - or the delimiter of this composer,
         - or quotes (`"`),
         - or starts or ends with a space.
        Otherwise the text is returned as it is.
        """
        if field_text and (
            field_text[0] == ' '
            or field_text[-1] == ' '
            or self._needs_quote.search(field_text) is not None
        ):
            return self.quote(field_text)
        return field_text

    def clear(self) -> 'RowComposer':
        """
        Reset the column definition, so that a new data set can be
        started with `define_columns()`.
        """
        self._quote_cols = []
        self._num_cols = 0
        return self

    def define_columns(self, num_cols: int, forced_quote_indices: Iterable[int] = ()) -> 'RowComposer':
        """
        Define the number of expected columns, and which of them (indexing
        1 to N, not 0 to N-1) are always quoted.

        Args:
            num_cols: Number of columns every fed row must have
            forced_quote_indices: 1-based indices of always quoted columns

        Raises:
            CsvValidationError: If the columns are already defined, the count
                                is not positive or an index is out of range
        """
        if self._num_cols > 0:
            raise CsvValidationError("CSV columns are already defined.")
        if num_cols <= 0:
            raise CsvValidationError("CSV column count definition is invalid.")
        quote_cols = [False] * num_cols
        for i in forced_quote_indices:
            if i <= 0 or i > num_cols:
                raise CsvValidationError(
                    f"CSV forced quote index {i} out of range (use 1 to {num_cols})."
                )
            quote_cols[i - 1] = True
        self._quote_cols = quote_cols
        self._num_cols = num_cols
        logger.debug("Defined %d CSV columns, forced quoting: %s", num_cols,
                     [i + 1 for i, q in enumerate(quote_cols) if q])
        return self

    def feed(self, fields: Iterable[str]) -> 'RowComposer':
        """
        Compose one row and pass the line to the line callback.

        Raises:
            CsvRowShapeError: If the number of fields does not match the
                              defined column count
        """
        fields = list(fields)
        if self._num_cols == 0:
            raise CsvRowShapeError("CSV columns are not defined.")
        if len(fields) > self._num_cols:
            raise CsvRowShapeError(
                f"CSV row feed exceeds the number of defined columns "
                f"({len(fields)} > {self._num_cols})."
            )
        if len(fields) < self._num_cols:
            raise CsvRowShapeError(
                f"CSV row feed is missing columns ({len(fields)} < {self._num_cols})."
            )
        line = self._delimiter.join(
            self.quote(field) if forced else self.escape(field)
            for field, forced in zip(fields, self._quote_cols)
        )
        self._on_line(line + self._newline)
        return self


def compose_string(
    rows: Iterable[Sequence[str]],
    delimiter: str = ',',
    newline: str = '\r\n',
    forced_quote: Iterable[int] = (),
) -> str:
    """Compose rows into CSV text, the column count is taken from the first row."""
    lines: List[str] = []
    composer = RowComposer(lines.append, delimiter=delimiter, newline=newline)
    forced_quote = list(forced_quote)
    for row in rows:
        row = list(row)
        if composer.num_columns == 0:
            composer.define_columns(len(row), forced_quote)
        composer.feed(row)
    return ''.join(lines)
