"""
csvfeed - incremental CSV parser and composer

Chunks of CSV data are fed to a StreamingParser, which hands every
completed row to a callback as soon as its line ends. RowComposer does the
opposite and builds quoted/escaped CSV lines from field sequences.
"""

import logging

from .errors import (
    CsvError,
    CsvValidationError,
    CsvRowShapeError,
    CsvIOError,
)
from .parser import (
    StreamingParser,
    parse_file,
    parse_string,
    count_rows,
    READ_CHUNK_SIZE,
)
from .composer import RowComposer, compose_string
from .iterator import CsvIterator, open_iterator
from .table import CsvTable, parse_table, parse_file_fast

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = '0.1.0'
__all__ = [
    'StreamingParser',
    'RowComposer',
    'CsvIterator',
    'CsvTable',
    'parse_file',
    'parse_file_fast',
    'parse_string',
    'parse_table',
    'compose_string',
    'count_rows',
    'open_iterator',
    'CsvError',
    'CsvValidationError',
    'CsvRowShapeError',
    'CsvIOError',
    'READ_CHUNK_SIZE',
]
