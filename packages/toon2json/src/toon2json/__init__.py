"""
toon2json - JSON <-> TOON (Token-Oriented Object Notation) converter

TOON is a compact, indentation-based notation for the JSON data model.
Uniform arrays of objects become tables, primitive arrays stay on one
line and single-key object chains fold into dotted keys.

Usage:
    import toon2json

    data = {"users": [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]}
    text = toon2json.encode(data)
    # users[2]{id,name}:
    #   1,Alice
    #   2,Bob

    assert toon2json.decode(text) == data

    # With options
    from toon2json import DecodeOptions, EncodeOptions

    text = toon2json.encode(data, EncodeOptions(indent=4, delimiter="tab"))
    value = toon2json.decode(text, DecodeOptions(strict=False, expand_paths="safe"))
"""

__version__ = "1.0.0"

from .converter import ToonConverter, json_to_toon, toon_to_json
from .decode import decode, decode_lines
from .encode import encode, encode_lines
from .errors import (
    ArrayLengthMismatchError,
    BlankLineInArrayError,
    InvalidArrayHeaderError,
    InvalidEscapeSequenceError,
    MissingColonError,
    PathExpansionConflictError,
    ToonDecodeError,
)
from .primitives import parse_primitive
from .string_utils import (
    escape_string,
    needs_quoting,
    quote_key,
    split_by_delimiter,
    unescape_string,
)
from .types import (
    ArrayHeader,
    DecodeOptions,
    Delimiter,
    EncodeOptions,
    JsonValue,
    ParsedLine,
    ValidationResult,
)

__all__ = [
    # Version
    "__version__",
    # Main API
    "encode",
    "encode_lines",
    "decode",
    "decode_lines",
    # Facade
    "ToonConverter",
    "json_to_toon",
    "toon_to_json",
    # Options
    "EncodeOptions",
    "DecodeOptions",
    # Types
    "JsonValue",
    "Delimiter",
    "ArrayHeader",
    "ParsedLine",
    "ValidationResult",
    # Errors
    "ToonDecodeError",
    "MissingColonError",
    "InvalidArrayHeaderError",
    "ArrayLengthMismatchError",
    "BlankLineInArrayError",
    "PathExpansionConflictError",
    "InvalidEscapeSequenceError",
    # Lexical helpers
    "needs_quoting",
    "quote_key",
    "escape_string",
    "unescape_string",
    "parse_primitive",
    "split_by_delimiter",
]
