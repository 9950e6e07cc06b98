"""Type definitions for the TOON encoder/decoder."""

from dataclasses import dataclass
from typing import Literal

# JSON type aliases
JsonPrimitive = str | int | float | bool | None
JsonArray = list["JsonValue"]
JsonObject = dict[str, "JsonValue"]
JsonValue = JsonPrimitive | JsonArray | JsonObject

# Delimiter options
Delimiter = Literal[",", "\t", "|"]

DELIMITERS: dict[str, Delimiter] = {
    "comma": ",",
    "tab": "\t",
    "pipe": "|",
}


def _resolve_delimiter(value: str) -> Delimiter:
    """Accept either a delimiter symbol or its name."""
    if value in DELIMITERS.values():
        return value  # type: ignore[return-value]
    if value in DELIMITERS:
        return DELIMITERS[value]
    raise ValueError(f"Unsupported delimiter: {value!r}")


@dataclass
class EncodeOptions:
    """Options for TOON encoding."""

    indent: int = 2
    """Number of spaces per indentation level."""

    delimiter: Delimiter = ","
    """Delimiter for inline arrays and tabular rows ("comma", "tab" and "pipe" also accepted)."""

    enable_key_folding: bool = True
    """Whether to fold single-key object chains into dotted paths."""

    flatten_depth: int | None = None
    """Maximum number of segments in a folded key. None means unlimited."""

    def __post_init__(self) -> None:
        if not isinstance(self.indent, int) or isinstance(self.indent, bool) or self.indent < 1:
            raise ValueError(f"indent must be a positive integer, got {self.indent!r}")
        self.delimiter = _resolve_delimiter(self.delimiter)


@dataclass
class DecodeOptions:
    """Options for TOON decoding."""

    preserve_numbers: bool = True
    """Parse numeric tokens as numbers (otherwise keep their literal text)."""

    preserve_booleans: bool = True
    """Parse true/false as booleans (otherwise keep their literal text)."""

    expand_paths: bool | Literal["safe"] = True
    """Expand dotted keys into nested objects. "safe" only expands identifier segments."""

    strict: bool = True
    """Raise on count mismatches, blank lines in arrays and malformed lines."""

    def __post_init__(self) -> None:
        if self.expand_paths not in (True, False, "safe"):
            raise ValueError(f"expand_paths must be a bool or 'safe', got {self.expand_paths!r}")


@dataclass
class ParsedLine:
    """A parsed line with indentation info."""

    raw: str
    """Original line content."""

    content: str
    """Content after stripping indentation and trailing whitespace."""

    indent: int
    """Number of leading spaces."""

    depth: int
    """Indentation level (indent // indent_size)."""

    line_number: int
    """1-based line number."""

    @property
    def is_blank(self) -> bool:
        return not self.content


@dataclass
class ArrayHeader:
    """Parsed array header information."""

    length: int
    """Declared array length."""

    delimiter: Delimiter = ","
    """Delimiter for this array's values."""

    fields: list[str] | None = None
    """Field names for tabular format (None for non-tabular)."""

    key: str | None = None
    """Decoded key the array is attached to (None for root arrays and list items)."""

    raw_key: str | None = None
    """Key as written in the source, used for path expansion."""

    @property
    def is_tabular(self) -> bool:
        return self.fields is not None


@dataclass
class ValidationResult:
    """Outcome of validating a TOON document."""

    valid: bool
    error: str | None = None
    error_type: str | None = None
    line_number: int | None = None
