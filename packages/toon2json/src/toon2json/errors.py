"""Errors raised while decoding TOON text."""


class ToonDecodeError(ValueError):
    """Base class for all TOON decoding failures."""

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        super().__init__(message)


class MissingColonError(ToonDecodeError):
    """A key-value line has no unquoted colon."""


class InvalidArrayHeaderError(ToonDecodeError):
    """A line carries a length marker but is not a well-formed array header."""


class ArrayLengthMismatchError(ToonDecodeError):
    """Declared count differs from the parsed items, rows or row values."""

    def __init__(self, message: str, expected: int, actual: int, line_number: int | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message, line_number)


class BlankLineInArrayError(ToonDecodeError):
    """A blank line interrupts an array with a declared length."""


class PathExpansionConflictError(ToonDecodeError):
    """A dotted key collides with an existing non-object value."""

    def __init__(self, path: str, line_number: int | None = None):
        self.path = path
        super().__init__(f"Path expansion conflict at '{path}'", line_number)


class InvalidEscapeSequenceError(ToonDecodeError):
    """A quoted string contains an unsupported backslash escape."""
