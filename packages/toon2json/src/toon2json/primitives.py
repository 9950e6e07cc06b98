"""Primitive value encoding and parsing for TOON."""

import math
import re
from typing import TYPE_CHECKING

from .errors import InvalidArrayHeaderError
from .string_utils import (
    delimiter_symbol,
    detect_delimiter,
    escape_string,
    find_closing_quote,
    find_unquoted,
    is_numeric_literal,
    quote_key,
    quote_string,
    split_by_delimiter,
    unescape_string,
    unquote_key,
)
from .types import ArrayHeader

if TYPE_CHECKING:
    from .types import Delimiter, JsonPrimitive

# Length marker inside an array header: [N] or [N<tab>] or [N|]
BRACKET_PATTERN = re.compile(r"\[(?P<length>\d+)(?P<delim>[\t|])?\]")


def encode_primitive(
    value: "JsonPrimitive", delimiter: "Delimiter" = ",", force_quote: bool = False
) -> str:
    """
    Encode a primitive value to TOON format.

    Args:
        value: The primitive value (str, int, float, bool, or None).
        delimiter: The active delimiter for quoting checks.
        force_quote: Always quote strings (used for mixed-type arrays).

    Returns:
        The encoded string representation.
    """
    if value is None:
        return "null"

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, (int, float)):
        return format_number(value)

    if isinstance(value, str):
        if force_quote:
            return f'"{escape_string(value)}"'
        return quote_string(value, delimiter)

    raise TypeError(f"Cannot encode value of type {type(value).__name__}")


def normalize_number(value: int | float) -> int | float:
    """Collapse -0.0 to 0."""
    if isinstance(value, float) and value == 0.0:
        return 0
    return value


def format_number(value: int | float) -> str:
    """Render a number with the shortest round-trip representation."""
    value = normalize_number(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return "null"
        s = repr(value)
        # Remove unnecessary .0 for whole numbers
        if s.endswith(".0"):
            return s[:-2]
        return s

    return str(value)


def parse_primitive(
    token: str, preserve_numbers: bool = True, preserve_booleans: bool = True
) -> "JsonPrimitive":
    """
    Parse a primitive token to a Python value.

    Quoted tokens are always strings, even when they spell a literal
    ("true", "123"). Unquoted tokens are tried as booleans, null and
    numbers before falling back to the raw text.

    Args:
        token: The token string.
        preserve_numbers: Convert numeric tokens to int/float.
        preserve_booleans: Convert true/false to bool.

    Returns:
        The parsed Python value.

    Raises:
        InvalidEscapeSequenceError: For bad escapes inside a quoted token.
    """
    token = token.strip()

    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return unescape_string(token[1:-1])

    if preserve_booleans:
        if token == "true":
            return True
        if token == "false":
            return False

    if token == "null":
        return None

    if preserve_numbers and is_numeric_literal(token):
        number = _parse_number(token)
        if number is not None:
            return number

    return token


def _parse_number(token: str) -> int | float | None:
    """Convert a numeric literal, rejecting non-finite results."""
    if "." not in token and "e" not in token.lower():
        return int(token)

    value = float(token)
    if not math.isfinite(value):
        return None
    return normalize_number(value)


def format_array_header(
    length: int,
    key: str | None = None,
    fields: list[str] | None = None,
    delimiter: "Delimiter" = ",",
) -> str:
    """
    Format an array header line.

    Args:
        length: The array length.
        key: Optional pre-encoded key (None for root arrays or list items).
        fields: Optional field names for tabular format.
        delimiter: The delimiter (included in bracket if not comma).

    Returns:
        The formatted header string.
    """
    bracket = f"[{length}{delimiter_symbol(delimiter)}]"

    fields_part = ""
    if fields:
        encoded_fields = [quote_key(f, delimiter) for f in fields]
        fields_part = "{" + delimiter.join(encoded_fields) + "}"

    return f"{key or ''}{bracket}{fields_part}:"


def parse_array_header(content: str) -> tuple[ArrayHeader, str] | None:
    """
    Parse an array header at the start of a line.

    Recognizes ``key[N<delim?>]{fields}: rest`` where the key is optional
    (possibly quoted or a dotted path) and the field list is optional.

    Args:
        content: The stripped line content (or the text after "- ").

    Returns:
        The header and the inline text after the colon, or None when the
        line is not an array header.

    Raises:
        InvalidArrayHeaderError: If a length marker is present but the
            header around it is malformed.
    """
    bracket_pos = _find_key_end(content)
    if bracket_pos == -1:
        return None

    match = BRACKET_PATTERN.match(content, bracket_pos)
    if not match:
        return None

    raw_key = content[:bracket_pos].strip()
    delimiter = detect_delimiter(match.group("delim"))
    pos = match.end()

    fields = None
    if pos < len(content) and content[pos] == "{":
        close = find_unquoted(content, "}", pos + 1)
        if close == -1:
            raise InvalidArrayHeaderError(f"Unterminated field list in array header: {content}")
        fields = [unquote_key(f) for f in split_by_delimiter(content[pos + 1 : close], delimiter)]
        if not fields:
            raise InvalidArrayHeaderError(f"Empty field list in array header: {content}")
        pos = close + 1

    if pos >= len(content) or content[pos] != ":":
        raise InvalidArrayHeaderError(f"Expected ':' after array header: {content}")

    header = ArrayHeader(
        length=int(match.group("length")),
        delimiter=delimiter,
        fields=fields,
        key=unquote_key(raw_key) if raw_key else None,
        raw_key=raw_key or None,
    )
    return header, content[pos + 1 :].strip()


def _find_key_end(content: str) -> int:
    """
    Locate the '[' that would open a length marker.

    Scans the key portion outside quotes. Returns -1 if an unquoted
    colon comes first (a plain key-value line) or there is no bracket.
    """
    i = 0
    while i < len(content):
        char = content[i]
        if char == '"':
            end = find_closing_quote(content, i)
            if end == -1:
                return -1
            i = end + 1
            continue
        if char == ":":
            return -1
        if char == "[":
            return i
        i += 1
    return -1
