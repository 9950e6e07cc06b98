"""TOON decoder implementation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from .errors import (
    ArrayLengthMismatchError,
    BlankLineInArrayError,
    InvalidArrayHeaderError,
    InvalidEscapeSequenceError,
    MissingColonError,
    PathExpansionConflictError,
)
from .primitives import parse_array_header, parse_primitive
from .string_utils import (
    find_unquoted,
    find_unquoted_colon,
    is_valid_identifier_segment,
    split_by_delimiter,
    unquote_key,
)
from .types import ArrayHeader, DecodeOptions, JsonObject, JsonValue, ParsedLine

logger = logging.getLogger(__name__)

DEFAULT_INDENT_SIZE = 2


def decode(text: str, options: DecodeOptions | None = None) -> JsonValue:
    """
    Decode TOON text to a Python value.

    Args:
        text: The TOON-formatted string.
        options: Decoding options.

    Returns:
        The decoded Python value (None for empty input).

    Raises:
        ToonDecodeError: A subclass describing the structural violation
            (strict mode), a bad escape sequence or a path conflict.
    """
    opts = options or DecodeOptions()
    return decode_lines(text.split("\n"), opts)


def decode_lines(lines: Iterable[str], options: DecodeOptions | None = None) -> JsonValue:
    """
    Decode TOON from pre-split lines.

    Args:
        lines: Iterable of line strings.
        options: Decoding options.

    Returns:
        The decoded Python value.
    """
    opts = options or DecodeOptions()
    parsed_lines, indent_size = _parse_lines(lines)

    if all(line.is_blank for line in parsed_lines):
        return None

    cursor = _Cursor(parsed_lines, indent_size, opts)
    return _decode_root(cursor)


class _Cursor:
    """Forward-only cursor over the parsed lines of one decode call."""

    def __init__(self, lines: list[ParsedLine], indent_size: int, options: DecodeOptions):
        self.lines = lines
        self.indent_size = indent_size
        self.options = options
        self.pos = 0

    @property
    def strict(self) -> bool:
        return self.options.strict

    def peek(self) -> ParsedLine | None:
        """Look at the next non-blank line without advancing."""
        i = self.pos
        while i < len(self.lines):
            if not self.lines[i].is_blank:
                return self.lines[i]
            i += 1
        return None

    def advance(self) -> ParsedLine | None:
        """Consume the next non-blank line (and any blanks before it)."""
        line = self.peek()
        if line:
            self.pos = line.line_number
        return line

    def blank_before_next(self) -> ParsedLine | None:
        """Return the first blank line if blanks precede the next content line."""
        if self.pos < len(self.lines) and self.lines[self.pos].is_blank:
            return self.lines[self.pos]
        return None

    def parse_value(self, token: str) -> JsonValue:
        return parse_primitive(
            token, self.options.preserve_numbers, self.options.preserve_booleans
        )


def _parse_lines(lines: Iterable[str]) -> tuple[list[ParsedLine], int]:
    """Parse raw lines into ParsedLine objects with depths; also return the indent size."""
    parsed = []
    for i, raw in enumerate(lines, start=1):
        raw = raw.rstrip("\r\n")
        stripped = raw.lstrip(" ")
        parsed.append(
            ParsedLine(
                raw=raw,
                content=stripped.strip(),
                indent=len(raw) - len(stripped),
                depth=0,
                line_number=i,
            )
        )

    indent_size = _detect_indent_size(parsed)
    for line in parsed:
        line.depth = line.indent // indent_size
    return parsed, indent_size


def _detect_indent_size(lines: list[ParsedLine]) -> int:
    """
    Derive the indentation step from the first indented non-blank line.

    A field on a hyphen line that opens a child block puts that block two
    levels below the hyphen, so the measured width is halved there.
    """
    previous = None
    for line in lines:
        if line.is_blank:
            continue
        if line.indent > 0:
            size = line.indent
            if previous is not None and size % 2 == 0 and _opens_item_field_block(previous.content):
                size //= 2
            return size
        previous = line
    return DEFAULT_INDENT_SIZE


def _opens_item_field_block(content: str) -> bool:
    """Check for `- key:`, `- key: |` or a non-empty `- key[N]...:` with nothing inline."""
    if not content.startswith("- "):
        return False
    item = content[2:].strip()
    try:
        parsed = parse_array_header(item)
    except InvalidArrayHeaderError:
        return False
    if parsed is not None:
        header, rest = parsed
        return header.key is not None and header.length > 0 and not rest
    colon = find_unquoted_colon(item)
    if colon <= 0:
        return False
    return item[colon + 1 :].strip() in ("", "|")


@contextmanager
def _line_context(line: ParsedLine) -> Iterator[None]:
    """Attach the line number to lexical errors raised without one."""
    try:
        yield
    except (InvalidEscapeSequenceError, InvalidArrayHeaderError) as exc:
        if exc.line_number is not None:
            raise
        raise type(exc)(str(exc), line.line_number) from exc


def _decode_root(cursor: _Cursor) -> JsonValue:
    """Decode the root value."""
    line = cursor.peek()
    content = line.content

    if content in ("{}", "[]"):
        cursor.advance()
        return _check_root_end(cursor, {} if content == "{}" else [])

    if _is_list_item(content):
        return _check_root_end(cursor, _decode_list_items(cursor, line.depth, None, None))

    if content.startswith("["):
        with _line_context(line):
            parsed = _match_header(cursor, content)
            if parsed is not None:
                cursor.advance()
                header, rest = parsed
                return _check_root_end(cursor, _decode_array(cursor, header, rest, line, line.depth))

    if find_unquoted_colon(content) != -1:
        return _decode_object(cursor, line.depth)

    cursor.advance()
    if content == "|":
        return _check_root_end(cursor, _decode_block_literal(cursor, line.depth + 1))

    with _line_context(line):
        value = cursor.parse_value(content)
    return _check_root_end(cursor, value)


def _check_root_end(cursor: _Cursor, value: JsonValue) -> JsonValue:
    """Reject content left over after a root value that is not an object."""
    extra = cursor.peek()
    if extra is not None:
        if cursor.strict:
            raise MissingColonError(
                f"Expected key: value after root value, got {extra.content!r}", extra.line_number
            )
        logger.debug("Ignoring content after root value at line %d", extra.line_number)
    return value


def _decode_object(cursor: _Cursor, depth: int, result: JsonObject | None = None) -> JsonObject:
    """Decode the fields of an object at the given depth."""
    if result is None:
        result = {}

    while True:
        line = cursor.peek()
        if line is None or line.depth < depth:
            break

        cursor.advance()
        if line.depth > depth:
            logger.debug("Skipping orphan line %d at depth %d", line.line_number, line.depth)
            continue

        with _line_context(line):
            _decode_field(cursor, line, line.content, depth, result)

    return result


def _decode_field(
    cursor: _Cursor, line: ParsedLine, content: str, depth: int, result: JsonObject
) -> None:
    """
    Decode one field whose text sits at ``depth`` and store it in ``result``.

    ``content`` is the line content, or the text after "- " for the first
    field of an object list item.
    """
    parsed = _match_header(cursor, content)
    if parsed is not None:
        header, rest = parsed
        value = _decode_array(cursor, header, rest, line, depth)
        if header.key is None:
            logger.debug("Dropping keyless array inside object at line %d", line.line_number)
            return
        _assign(cursor, result, header.raw_key, header.key, value, line)
        return

    colon = find_unquoted_colon(content)
    if colon == -1:
        if cursor.strict:
            raise MissingColonError(f"Missing colon in key-value line: {content}", line.line_number)
        logger.debug("Skipping line %d without colon", line.line_number)
        return

    raw_key = content[:colon].strip()
    value_part = content[colon + 1 :].strip()
    key = unquote_key(raw_key)

    if value_part == "{}":
        value: JsonValue = {}
    elif value_part == "[]":
        value = []
    elif value_part == "|":
        value = _decode_block_literal(cursor, depth + 1)
    elif value_part:
        value = cursor.parse_value(value_part)
    else:
        value = _decode_nested(cursor, depth)

    _assign(cursor, result, raw_key, key, value, line)


def _decode_nested(cursor: _Cursor, depth: int) -> JsonValue:
    """Decode the block under a `key:` line: a headerless list or an object."""
    next_line = cursor.peek()
    if next_line is None or next_line.depth <= depth:
        return {}

    if next_line.depth == depth + 1 and _is_list_item(next_line.content):
        return _decode_list_items(cursor, depth + 1, None, None)

    return _decode_object(cursor, depth + 1)


def _decode_block_literal(cursor: _Cursor, depth: int) -> str:
    """Collect the lines of a block literal at ``depth`` or deeper until a dedent."""
    collected: list[str] = []
    prefix = depth * cursor.indent_size

    while True:
        line = cursor.peek()
        if line is None or line.depth < depth:
            break
        blank = cursor.blank_before_next()
        if blank is not None and collected:
            collected.extend([""] * (line.line_number - blank.line_number))
        cursor.advance()
        collected.append(line.raw[prefix:].rstrip())

    return "\n".join(collected)


def _decode_array(
    cursor: _Cursor, header: ArrayHeader, rest: str, line: ParsedLine, depth: int
) -> list:
    """Decode the body of an array whose header sits at ``depth``."""
    if header.is_tabular:
        return _decode_tabular_rows(cursor, header, depth + 1, line)

    if rest:
        return _decode_inline_values(cursor, rest, header, line)

    if header.length == 0:
        return []

    return _decode_list_items(cursor, depth + 1, header.length, line)


def _decode_inline_values(
    cursor: _Cursor, values_str: str, header: ArrayHeader, line: ParsedLine
) -> list:
    """Decode inline primitive array values."""
    values = [cursor.parse_value(v) for v in split_by_delimiter(values_str, header.delimiter)]
    _check_count(cursor, header.length, len(values), "items", line.line_number)
    return values


def _decode_tabular_rows(
    cursor: _Cursor, header: ArrayHeader, depth: int, header_line: ParsedLine
) -> list[dict]:
    """Decode tabular array rows."""
    rows = []
    fields = header.fields

    # Strict mode reads past the declared length so extra rows are reported
    while cursor.strict or len(rows) < header.length:
        line = cursor.peek()
        if line is None or line.depth < depth:
            break

        if line.depth > depth:
            cursor.advance()
            logger.debug("Skipping over-indented row at line %d", line.line_number)
            continue

        _check_blank(cursor, rows)
        cursor.advance()

        with _line_context(line):
            values = split_by_delimiter(line.content, header.delimiter)
            if len(values) != len(fields):
                if cursor.strict:
                    raise ArrayLengthMismatchError(
                        f"Row has {len(values)} values, expected {len(fields)}",
                        len(fields),
                        len(values),
                        line.line_number,
                    )
                logger.debug("Padding/truncating row at line %d", line.line_number)
                values = (values + [""] * len(fields))[: len(fields)]

            rows.append({field: cursor.parse_value(value) for field, value in zip(fields, values)})

    _check_count(cursor, header.length, len(rows), "rows", header_line.line_number)
    return rows


def _decode_list_items(
    cursor: _Cursor, depth: int, expected: int | None, header_line: ParsedLine | None
) -> list:
    """
    Decode list items (lines starting with -) at ``depth``.

    ``expected`` is the declared length, or None for headerless lists,
    which run until the first line that is not a list item.
    """
    items: list[JsonValue] = []
    limit = None if cursor.strict else expected

    while limit is None or len(items) < limit:
        line = cursor.peek()
        if line is None or line.depth < depth:
            break

        if line.depth > depth:
            cursor.advance()
            logger.debug("Skipping orphan line %d in list", line.line_number)
            continue

        if not _is_list_item(line.content):
            if expected is None or cursor.strict:
                break
            cursor.advance()
            logger.debug("Skipping non-item line %d in list", line.line_number)
            continue

        if expected is not None:
            _check_blank(cursor, items)
        cursor.advance()

        with _line_context(line):
            items.append(_decode_list_item(cursor, line, depth))

    if expected is not None:
        _check_count(cursor, expected, len(items), "items", header_line.line_number)
    return items


def _decode_list_item(cursor: _Cursor, line: ParsedLine, depth: int) -> JsonValue:
    """Decode a single list item whose hyphen sits at ``depth``."""
    item = line.content[1:].strip()

    if not item:
        return {}

    if item.startswith("[") and item.endswith("]"):
        values = split_by_delimiter(item[1:-1], ",")
        return [cursor.parse_value(v) for v in values]

    if item.startswith("["):
        parsed = _match_header(cursor, item)
        if parsed is not None:
            header, rest = parsed
            return _decode_array(cursor, header, rest, line, depth)

    if find_unquoted_colon(item) != -1:
        # First field on the hyphen line, the rest one level below it
        result: JsonObject = {}
        _decode_field(cursor, line, item, depth + 1, result)
        return _decode_object(cursor, depth + 1, result)

    return cursor.parse_value(item)


def _match_header(cursor: _Cursor, content: str) -> tuple[ArrayHeader, str] | None:
    """Parse an array header, tolerating malformed ones outside strict mode."""
    try:
        return parse_array_header(content)
    except InvalidArrayHeaderError:
        if cursor.strict:
            raise
        logger.debug("Ignoring malformed array header: %s", content)
        return None


def _check_count(
    cursor: _Cursor, expected: int, actual: int, what: str, line_number: int | None
) -> None:
    if actual == expected:
        return
    if cursor.strict:
        raise ArrayLengthMismatchError(
            f"Array declared {expected} {what} but found {actual}", expected, actual, line_number
        )
    logger.debug("Array declared %d %s but found %d", expected, what, actual)


def _check_blank(cursor: _Cursor, parsed_so_far: list) -> None:
    blank = cursor.blank_before_next()
    if blank is not None and parsed_so_far and cursor.strict:
        raise BlankLineInArrayError("Blank line inside array", blank.line_number)


def _is_list_item(content: str) -> bool:
    return content == "-" or content.startswith("- ")


def _assign(
    cursor: _Cursor,
    result: JsonObject,
    raw_key: str | None,
    key: str,
    value: JsonValue,
    line: ParsedLine,
) -> None:
    """Store a decoded field, expanding dotted keys when enabled."""
    mode = cursor.options.expand_paths
    if not mode:
        result[key] = value
        return

    segments = _expandable_segments(raw_key or "", mode)
    if segments is not None:
        _set_path(cursor, result, segments, value, line)
    elif key in result:
        _merge_into(cursor, result, key, value, key, line)
    else:
        result[key] = value


def _expandable_segments(raw_key: str, mode: bool | str) -> list[str] | None:
    """Split a raw key into path segments, or None if it should stay whole."""
    if find_unquoted(raw_key, ".") == -1:
        return None

    raw_segments = split_by_delimiter(raw_key, ".")
    if not all(raw_segments):
        return None
    if mode == "safe" and not all(is_valid_identifier_segment(s) for s in raw_segments):
        return None

    return [unquote_key(s) for s in raw_segments]


def _set_path(
    cursor: _Cursor, result: JsonObject, path: list[str], value: JsonValue, line: ParsedLine
) -> None:
    """Set a value at a nested path, creating intermediate objects."""
    target = result
    for i, segment in enumerate(path[:-1]):
        if segment not in target:
            target[segment] = {}
        elif not isinstance(target[segment], dict):
            conflict = ".".join(path[: i + 1])
            if cursor.strict:
                raise PathExpansionConflictError(conflict, line.line_number)
            logger.debug("Overwriting %s during path expansion", conflict)
            target[segment] = {}
        target = target[segment]

    final_key = path[-1]
    if final_key in target:
        _merge_into(cursor, target, final_key, value, ".".join(path), line)
    else:
        target[final_key] = value


def _merge_into(
    cursor: _Cursor, target: JsonObject, key: str, value: JsonValue, path: str, line: ParsedLine
) -> None:
    """Merge a value into an existing key: objects deep-merge, anything else conflicts."""
    existing = target[key]
    if isinstance(existing, dict) and isinstance(value, dict):
        for sub_key, sub_value in value.items():
            if sub_key in existing:
                _merge_into(cursor, existing, sub_key, sub_value, f"{path}.{sub_key}", line)
            else:
                existing[sub_key] = sub_value
        return

    if cursor.strict:
        raise PathExpansionConflictError(path, line.line_number)
    logger.debug("Overwriting %s during path expansion", path)
    target[key] = value
