"""
Exception types raised by csvfeed.
"""


class CsvError(Exception):
    """Base exception for csvfeed errors."""
    pass


class CsvValidationError(CsvError, ValueError):
    """Raised when a parser or composer configuration is invalid."""
    pass


class CsvRowShapeError(CsvError, ValueError):
    """Raised when a composed row does not match the defined columns."""
    pass


class CsvIOError(CsvError, OSError):
    """Raised when a CSV file cannot be opened or read."""
    pass
