"""String utilities for TOON encoding/decoding."""

import re
from typing import TYPE_CHECKING

from .errors import InvalidEscapeSequenceError

if TYPE_CHECKING:
    from .types import Delimiter

# TOON only allows these 5 escape sequences
ESCAPE_MAP = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

UNESCAPE_MAP = {
    "\\": "\\",
    '"': '"',
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

# Reserved literals that can't be unquoted strings
RESERVED_LITERALS = {"true", "false", "null"}

# Structural characters that require quoting
STRUCTURAL_CHARS = frozenset(":[]{}")

# Characters that force a key to be quoted
KEY_SPECIAL_CHARS = frozenset(':[]{}"\\\n\r\t.')

NUMERIC_LITERAL_PATTERN = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")

# Pattern for valid identifier segments (used by "safe" path expansion)
IDENTIFIER_SEGMENT_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def escape_string(value: str) -> str:
    """
    Escape a string for use in TOON quoted strings.

    Only the 5 valid TOON escape sequences are produced:
    - \\\\ (backslash)
    - \\" (double quote)
    - \\n (newline)
    - \\r (carriage return)
    - \\t (tab)

    Args:
        value: The string to escape.

    Returns:
        The escaped string (without surrounding quotes).
    """
    return "".join(ESCAPE_MAP.get(char, char) for char in value)


def unescape_string(value: str) -> str:
    """
    Unescape a TOON string that was inside quotes.

    Args:
        value: The string content (without surrounding quotes).

    Returns:
        The unescaped string.

    Raises:
        InvalidEscapeSequenceError: If an unknown escape or a trailing backslash is found.
    """
    result = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == "\\":
            if i + 1 >= len(value):
                raise InvalidEscapeSequenceError("Backslash at end of string")
            next_char = value[i + 1]
            if next_char not in UNESCAPE_MAP:
                raise InvalidEscapeSequenceError(f"Invalid escape sequence: \\{next_char}")
            result.append(UNESCAPE_MAP[next_char])
            i += 2
        else:
            result.append(char)
            i += 1
    return "".join(result)


def is_numeric_literal(value: str) -> bool:
    """Check if a string is spelled like a TOON number."""
    return bool(NUMERIC_LITERAL_PATTERN.match(value))


def needs_quoting(value: str, delimiter: "Delimiter" = ",") -> bool:
    """
    Check if a string value must be quoted to survive a round trip.

    A string needs quotes if it:
    - Is empty, or differs from its stripped form
    - Contains the active delimiter, a quote, a backslash or a control char
    - Contains a structural character (: [ ] { })
    - Starts with '-' (list marker / negative number)
    - Is a reserved literal or a numeric literal
    - Is a lone '|' (block literal marker)

    Args:
        value: The string to check.
        delimiter: The active delimiter character.

    Returns:
        True if the string needs quotes.
    """
    if not value:
        return True

    if delimiter in value:
        return True

    if '"' in value or "\\" in value:
        return True

    if "\n" in value or "\r" in value or "\t" in value:
        return True

    if any(c in STRUCTURAL_CHARS for c in value):
        return True

    if value.startswith("-"):
        return True

    if value in RESERVED_LITERALS or is_numeric_literal(value):
        return True

    if value != value.strip():
        return True

    return value == "|"


def quote_string(value: str, delimiter: "Delimiter" = ",") -> str:
    """Quote a string value if needed."""
    if needs_quoting(value, delimiter):
        return f'"{escape_string(value)}"'
    return value


def needs_key_quoting(key: str, delimiter: "Delimiter | None" = None) -> bool:
    """
    Check if an object key must be quoted.

    Keys are never type-ambiguous, so only structural characters, dots
    (path separators), whitespace at the edges and a leading '-' matter.
    When a delimiter is given (tabular field lists), it must be quoted too.
    """
    if not key:
        return True
    if any(c in KEY_SPECIAL_CHARS for c in key):
        return True
    if delimiter is not None and delimiter in key:
        return True
    if key != key.strip():
        return True
    return key.startswith("-")


def quote_key(key: str, delimiter: "Delimiter | None" = None) -> str:
    """Quote an object key if needed."""
    if needs_key_quoting(key, delimiter):
        return f'"{escape_string(key)}"'
    return key


def is_valid_identifier_segment(segment: str) -> bool:
    """
    Check if a string is a valid identifier segment for safe path expansion.

    Valid segments:
    - Start with letter or underscore
    - Only letters, digits, underscores
    """
    return bool(IDENTIFIER_SEGMENT_PATTERN.match(segment))


def find_closing_quote(s: str, start: int) -> int:
    """
    Find the closing quote in a string.

    Args:
        s: The string to search.
        start: The position of the opening quote.

    Returns:
        Index of the closing quote, or -1 if not found.
    """
    i = start + 1
    while i < len(s):
        char = s[i]
        if char == "\\":
            # Skip escape sequence
            i += 2
            continue
        elif char == '"':
            return i
        i += 1
    return -1


def find_unquoted(line: str, target: str, start: int = 0) -> int:
    """
    Find the first occurrence of a character outside quoted spans.

    Returns:
        Index of the character, or -1 if not found.
    """
    in_quotes = False
    i = start
    while i < len(line):
        char = line[i]
        if char == "\\" and in_quotes and i + 1 < len(line):
            i += 2
            continue
        elif char == '"':
            in_quotes = not in_quotes
        elif char == target and not in_quotes:
            return i
        i += 1
    return -1


def find_unquoted_colon(line: str) -> int:
    """Find the position of the first unquoted colon in a line, or -1."""
    return find_unquoted(line, ":")


def split_by_delimiter(value: str, delimiter: str) -> list[str]:
    """
    Split a string by delimiter, respecting quoted sections.

    Args:
        value: The string to split.
        delimiter: The delimiter character.

    Returns:
        List of stripped values (still containing quotes if originally quoted).
        An empty input yields an empty list.
    """
    result: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(value):
        char = value[i]
        if char == "\\" and in_quotes and i + 1 < len(value):
            # Keep escape sequence intact
            current.append(char)
            current.append(value[i + 1])
            i += 2
            continue
        elif char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == delimiter and not in_quotes:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    if current or result:
        result.append("".join(current).strip())
    return result


def unquote_key(key: str) -> str:
    """Strip and unescape a possibly quoted key."""
    key = key.strip()
    if len(key) >= 2 and key.startswith('"') and key.endswith('"'):
        return unescape_string(key[1:-1])
    return key


def delimiter_symbol(delimiter: "Delimiter") -> str:
    """Symbol written inside array brackets (comma is implicit)."""
    return "" if delimiter == "," else delimiter


def detect_delimiter(symbol: str | None) -> "Delimiter":
    """Inverse of delimiter_symbol."""
    if symbol == "\t":
        return "\t"
    if symbol == "|":
        return "|"
    return ","
