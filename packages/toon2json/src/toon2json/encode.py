"""TOON encoder implementation."""

import math
from collections.abc import Generator
from typing import Any

from .primitives import encode_primitive, format_array_header
from .string_utils import quote_key
from .types import EncodeOptions, JsonValue

# Minimum number of lines for a string to be written as a block literal
MULTILINE_THRESHOLD = 3


def encode(value: Any, options: EncodeOptions | None = None) -> str:
    """
    Encode a Python value to TOON format.

    Args:
        value: The value to encode (dict, list, or primitive).
        options: Encoding options.

    Returns:
        The TOON-formatted string.
    """
    opts = options or EncodeOptions()
    return "\n".join(encode_lines(value, opts))


def encode_lines(
    value: Any, options: EncodeOptions | None = None
) -> Generator[str, None, None]:
    """
    Encode a Python value to TOON format, yielding lines.

    Args:
        value: The value to encode.
        options: Encoding options.

    Yields:
        Lines of TOON output (without trailing newlines).
    """
    opts = options or EncodeOptions()
    normalized = _normalize_value(value)

    if isinstance(normalized, list) and _uses_list_format(normalized):
        # Root list: bare hyphen items, no header
        yield from _encode_list_items(normalized, opts, 0)
    else:
        yield from _encode_value(normalized, opts, 0, None)


def _encode_value(
    value: JsonValue, opts: EncodeOptions, depth: int, key: str | None
) -> Generator[str, None, None]:
    """
    Encode any value at a depth.

    ``key`` is the already-encoded key (possibly a folded dotted path),
    or None for root values.
    """
    if isinstance(value, dict):
        yield from _encode_object(value, opts, depth, key)
    elif isinstance(value, list):
        yield from _encode_array(value, opts, depth, key)
    elif isinstance(value, str) and _is_block_literal(value):
        yield from _encode_block_literal(value, opts, depth, key)
    else:
        yield _make_line(opts, depth, key, encode_primitive(value, opts.delimiter))


def _encode_object(
    obj: dict, opts: EncodeOptions, depth: int, key: str | None
) -> Generator[str, None, None]:
    """Encode an object's key-value pairs."""
    indent = _indent(opts, depth)

    if not obj:
        yield f"{indent}{key}: {{}}" if key is not None else f"{indent}{{}}"
        return

    if key is not None:
        yield f"{indent}{key}:"
        depth += 1

    for name, value in obj.items():
        yield from _encode_property(name, value, opts, depth)


def _encode_property(
    name: str, value: JsonValue, opts: EncodeOptions, depth: int
) -> Generator[str, None, None]:
    """Encode one object property, folding single-key chains when enabled."""
    path = [name]
    if opts.enable_key_folding:
        path, value = _fold_chain(name, value, opts)

    key = ".".join(quote_key(segment) for segment in path)
    yield from _encode_value(value, opts, depth, key)


def _fold_chain(name: str, value: JsonValue, opts: EncodeOptions) -> tuple[list[str], JsonValue]:
    """
    Walk down a chain of single-key objects.

    Stops at the first value that is not a single-key object (primitive,
    array, empty or multi-key object) or when flatten_depth segments
    have been collected.
    """
    path = [name]
    max_segments = opts.flatten_depth if opts.flatten_depth is not None else math.inf

    while isinstance(value, dict) and len(value) == 1 and len(path) < max_segments:
        next_key, next_value = next(iter(value.items()))
        path.append(next_key)
        value = next_value

    return path, value


def _encode_array(
    arr: list, opts: EncodeOptions, depth: int, key: str | None
) -> Generator[str, None, None]:
    """Encode an array with the best format."""
    indent = _indent(opts, depth)

    if not arr:
        yield indent + format_array_header(0, key, delimiter=opts.delimiter)
    elif _is_inline_primitive_array(arr):
        header = format_array_header(len(arr), key, delimiter=opts.delimiter)
        force_quote = _has_mixed_primitive_types(arr)
        values = [encode_primitive(v, opts.delimiter, force_quote) for v in arr]
        yield f"{indent}{header} " + opts.delimiter.join(values)
    elif _is_tabular_array(arr):
        fields = list(arr[0].keys())
        yield indent + format_array_header(len(arr), key, fields, opts.delimiter)
        for row in arr:
            yield _encode_tabular_row(row, fields, opts, depth + 1)
    elif key is not None:
        # List format: header carries no count
        yield f"{indent}{key}:"
        yield from _encode_list_items(arr, opts, depth + 1)
    else:
        # Keyless list (nested inside another list item)
        yield indent + format_array_header(len(arr), delimiter=opts.delimiter)
        yield from _encode_list_items(arr, opts, depth + 1)


def _encode_list_items(
    arr: list, opts: EncodeOptions, depth: int
) -> Generator[str, None, None]:
    """Encode list items (after the - marker) at a depth."""
    indent = _indent(opts, depth)
    force_quote = _has_list_mixed_types(arr)

    for item in arr:
        if isinstance(item, dict):
            yield from _encode_object_list_item(item, opts, depth)
        elif isinstance(item, list):
            if _is_inline_primitive_array(item) or not item:
                yield f"{indent}- {_encode_bracket_array(item)}"
            else:
                yield from _hyphenate(_encode_array(item, opts, depth, None), opts, depth)
        else:
            yield f"{indent}- {encode_primitive(item, opts.delimiter, force_quote)}"


def _encode_bracket_array(arr: list) -> str:
    """Inline bracket syntax for a primitive array nested in a list: [a,b,c]."""
    force_quote = _has_mixed_primitive_types(arr)
    return "[" + ",".join(encode_primitive(v, ",", force_quote) for v in arr) + "]"


def _encode_object_list_item(
    obj: dict, opts: EncodeOptions, depth: int
) -> Generator[str, None, None]:
    """Encode an object as a list item with first field on hyphen line."""
    if not obj:
        yield f"{_indent(opts, depth)}-"
        return

    items = list(obj.items())
    first_key, first_value = items[0]

    # The first field is laid out as if it sat at depth + 1, then its
    # opening line is moved onto the hyphen line.
    yield from _hyphenate(_encode_property(first_key, first_value, opts, depth + 1), opts, depth)

    for key, value in items[1:]:
        yield from _encode_property(key, value, opts, depth + 1)


def _hyphenate(
    lines: Generator[str, None, None], opts: EncodeOptions, depth: int
) -> Generator[str, None, None]:
    """Prefix the first generated line with a list marker at depth."""
    indent = _indent(opts, depth)
    first = True
    for line in lines:
        if first:
            yield f"{indent}- {line.lstrip(' ')}"
            first = False
        else:
            yield line


def _encode_tabular_row(row: dict, fields: list[str], opts: EncodeOptions, depth: int) -> str:
    """Encode a single tabular row."""
    values = [encode_primitive(row[f], opts.delimiter) for f in fields]
    return _indent(opts, depth) + opts.delimiter.join(values)


def _encode_block_literal(
    value: str, opts: EncodeOptions, depth: int, key: str | None
) -> Generator[str, None, None]:
    """Encode a multi-line string after a | marker, one raw line per source line."""
    yield _make_line(opts, depth, key, "|")
    child_indent = _indent(opts, depth + 1)
    for line in value.split("\n"):
        yield f"{child_indent}{line}" if line else ""


def _is_block_literal(value: str) -> bool:
    """
    Check if a string should be written as a block literal.

    Requires at least MULTILINE_THRESHOLD lines, non-empty first and last
    lines, and no line with leading/trailing whitespace (those cannot be
    recovered from indented text).
    """
    lines = value.split("\n")
    if len(lines) < MULTILINE_THRESHOLD:
        return False
    if not lines[0] or not lines[-1]:
        return False
    return all(line == line.strip() for line in lines)


def _make_line(opts: EncodeOptions, depth: int, key: str | None, value: str) -> str:
    """Create a line with key and value."""
    if key is not None:
        return f"{_indent(opts, depth)}{key}: {value}"
    return f"{_indent(opts, depth)}{value}"


def _indent(opts: EncodeOptions, depth: int) -> str:
    return " " * (opts.indent * depth)


def _uses_list_format(arr: list) -> bool:
    return bool(arr) and not _is_inline_primitive_array(arr) and not _is_tabular_array(arr)


def _is_inline_primitive_array(arr: list) -> bool:
    """Check if array can use inline primitive format."""
    if not arr:
        return False
    return all(_is_primitive(v) for v in arr)


def _is_tabular_array(arr: list) -> bool:
    """
    Check if array can use tabular format.

    Every element must be a non-empty object, all with the same key set,
    and every value must be a primitive.
    """
    if not arr:
        return False

    if not all(isinstance(v, dict) for v in arr):
        return False

    first_keys = set(arr[0].keys())
    if not first_keys:
        return False

    for item in arr[1:]:
        if set(item.keys()) != first_keys:
            return False

    return all(_is_primitive(v) for item in arr for v in item.values())


def _primitive_kind(value: JsonValue) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def _has_mixed_primitive_types(arr: list) -> bool:
    """Check if a primitive array mixes strings, numbers, booleans and nulls."""
    return len({_primitive_kind(v) for v in arr}) > 1


def _has_list_mixed_types(arr: list) -> bool:
    """Check if a list mixes primitives with objects/arrays."""
    has_primitives = any(_is_primitive(v) for v in arr)
    has_complex = any(not _is_primitive(v) for v in arr)
    return has_primitives and has_complex


def _is_primitive(value: JsonValue) -> bool:
    """Check if value is a primitive (not dict or list)."""
    return not isinstance(value, (dict, list))


def _normalize_value(value: Any) -> JsonValue:
    """
    Normalize a value for JSON compatibility.

    Converts:
    - NaN/Infinity to None, -0.0 to 0
    - Tuples, sets and other iterables to lists
    - Date-like objects (isoformat()) to ISO strings
    - Anything else to its str()

    Args:
        value: The value to normalize.

    Returns:
        A JSON-compatible value.
    """
    if value is None or isinstance(value, (bool, str)):
        return value

    if isinstance(value, (int, float)):
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                return None
            if value == 0.0:
                return 0
        return value

    if isinstance(value, dict):
        return {str(k): _normalize_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]

    if isinstance(value, (set, frozenset)):
        return [_normalize_value(v) for v in sorted(value, key=str)]

    if hasattr(value, "isoformat"):
        return value.isoformat()

    if hasattr(value, "__iter__"):
        return [_normalize_value(v) for v in value]

    return str(value)


