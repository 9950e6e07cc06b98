"""Tests for TOON encoder."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from toon2json import EncodeOptions, encode, encode_lines


class TestPrimitives:
    """Test encoding of primitive values."""

    def test_null(self):
        assert encode(None) == "null"

    def test_true(self):
        assert encode(True) == "true"

    def test_false(self):
        assert encode(False) == "false"

    def test_integer(self):
        assert encode(42) == "42"
        assert encode(-17) == "-17"
        assert encode(0) == "0"

    def test_float(self):
        assert encode(3.14) == "3.14"
        assert encode(-2.5) == "-2.5"
        assert encode(0.0) == "0"
        assert encode(-0.0) == "0"
        assert encode(2.0) == "2"

    def test_float_special_values(self):
        assert encode(float("nan")) == "null"
        assert encode(float("inf")) == "null"
        assert encode(float("-inf")) == "null"

    def test_simple_string(self):
        assert encode("hello") == "hello"

    def test_string_with_spaces(self):
        assert encode("hello world") == "hello world"

    def test_string_needs_quotes(self):
        assert encode("key: value") == '"key: value"'
        assert encode("array[0]") == '"array[0]"'
        assert encode("line1\nline2") == '"line1\\nline2"'
        assert encode("col1\tcol2") == '"col1\\tcol2"'
        assert encode("- item") == '"- item"'
        assert encode(" padded ") == '" padded "'
        assert encode("|") == '"|"'

    def test_reserved_literals(self):
        assert encode("true") == '"true"'
        assert encode("false") == '"false"'
        assert encode("null") == '"null"'

    def test_numeric_strings(self):
        assert encode("123") == '"123"'
        assert encode("-45") == '"-45"'
        assert encode("3.14") == '"3.14"'
        assert encode("007") == '"007"'

    def test_empty_string(self):
        assert encode("") == '""'


class TestObjects:
    """Test encoding of objects."""

    def test_empty_object(self):
        assert encode({}) == "{}"

    def test_simple_object(self):
        result = encode({"name": "Alice", "age": 30, "active": True})
        assert result == "name: Alice\nage: 30\nactive: true"

    def test_nested_object(self):
        result = encode({"user": {"name": "Bob", "role": "admin"}})
        assert result == "user:\n  name: Bob\n  role: admin"

    def test_empty_nested_object(self):
        assert encode({"data": {}}) == "data: {}"

    def test_quoted_key(self):
        assert encode({"key with spaces": "value"}) == "key with spaces: value"
        assert encode({"a:b": 1}) == '"a:b": 1'
        assert encode({"": 1}) == '"": 1'

    def test_dotted_key_is_quoted(self):
        assert encode({"a.b": 1}) == '"a.b": 1'

    def test_message_with_quotes(self):
        assert encode({"message": 'Hello "World"'}) == 'message: "Hello \\"World\\""'


class TestArraysInline:
    """Test inline primitive array encoding."""

    def test_string_array(self):
        assert encode({"tags": ["admin", "ops", "dev"]}) == "tags[3]: admin,ops,dev"

    def test_number_array(self):
        assert encode({"nums": [1, 2, 3]}) == "nums[3]: 1,2,3"

    def test_mixed_primitives_force_quote_strings(self):
        result = encode({"mix": [1, "two", True, None]})
        assert result == 'mix[4]: 1,"two",true,null'

    def test_empty_array(self):
        assert encode({"items": []}) == "items[0]:"

    def test_value_with_delimiter_is_quoted(self):
        assert encode({"items": ["a,b", "c"]}) == 'items[2]: "a,b",c'


class TestArraysTabular:
    """Test tabular array encoding."""

    def test_simple_tabular(self):
        data = {
            "users": [
                {"id": 1, "name": "Alice", "role": "admin"},
                {"id": 2, "name": "Bob", "role": "user"},
            ]
        }
        assert encode(data) == "users[2]{id,name,role}:\n  1,Alice,admin\n  2,Bob,user"

    def test_tabular_with_quoted_values(self):
        result = encode({"data": [{"key": "a,b"}, {"key": "c,d"}]})
        assert result == 'data[2]{key}:\n  "a,b"\n  "c,d"'

    def test_rows_follow_header_field_order(self):
        result = encode({"rows": [{"a": 1, "b": 2}, {"b": 3, "a": 4}]})
        assert result == "rows[2]{a,b}:\n  1,2\n  4,3"

    def test_different_keys_use_list(self):
        result = encode({"rows": [{"a": 1}, {"b": 2}]})
        assert result == "rows:\n  - a: 1\n  - b: 2"

    def test_nested_values_use_list(self):
        result = encode({"rows": [{"a": [1]}, {"a": [2]}]})
        assert result == "rows:\n  - a[1]: 1\n  - a[1]: 2"


class TestArraysList:
    """Test list format array encoding."""

    def test_nested_objects_folded(self):
        result = encode({"items": [{"a": {"b": 1}}, {"a": {"b": 2}}]})
        assert result == "items:\n  - a.b: 1\n  - a.b: 2"

    def test_nested_objects_unfolded(self):
        result = encode(
            {"items": [{"a": {"b": 1, "c": 2}}]},
            EncodeOptions(enable_key_folding=False),
        )
        assert result == "items:\n  - a:\n      b: 1\n      c: 2"

    def test_mixed_types(self):
        result = encode({"items": [1, {"x": 2}, "three"]})
        assert result == 'items:\n  - 1\n  - x: 2\n  - "three"'

    def test_empty_object_item(self):
        assert encode({"items": [{}, 1]}) == "items:\n  -\n  - 1"

    def test_object_item_sibling_fields(self):
        result = encode({"items": [{"id": 1, "tags": ["x", "y"]}, {"id": 2}]})
        assert result == "items:\n  - id: 1\n    tags[2]: x,y\n  - id: 2"

    def test_nested_primitive_arrays(self):
        assert encode({"matrix": [[1, 2], [3, 4]]}) == "matrix:\n  - [1,2]\n  - [3,4]"

    def test_nested_empty_array(self):
        assert encode({"matrix": [[], [1]]}) == "matrix:\n  - []\n  - [1]"

    def test_nested_complex_array(self):
        result = encode({"groups": [[{"a": 1}, {"a": 2}]]})
        assert result == "groups:\n  - [2]{a}:\n    1\n    2"

    def test_first_field_tabular(self):
        result = encode({"teams": [{"members": [{"id": 1}, {"id": 2}], "name": "core"}]})
        assert result == "teams:\n  - members[2]{id}:\n      1\n      2\n    name: core"


class TestRootArray:
    """Test root-level array encoding."""

    def test_root_inline(self):
        assert encode([1, 2, 3]) == "[3]: 1,2,3"

    def test_root_empty(self):
        assert encode([]) == "[0]:"

    def test_root_tabular(self):
        assert encode([{"a": 1}, {"a": 2}]) == "[2]{a}:\n  1\n  2"

    def test_root_list(self):
        result = encode([{"a": {"b": 1, "c": 2}}, "x"])
        assert result == '- a:\n    b: 1\n    c: 2\n- "x"'

    def test_root_list_first_field_empty_array(self):
        assert encode([{"tags": [], "id": 1}]) == "- tags[0]:\n  id: 1"


class TestBlockLiterals:
    """Test multi-line string encoding."""

    def test_two_lines_are_quoted(self):
        assert encode({"text": "one\ntwo"}) == 'text: "one\\ntwo"'

    def test_three_lines_use_block(self):
        result = encode({"text": "one\ntwo\nthree"})
        assert result == "text: |\n  one\n  two\n  three"

    def test_inner_blank_lines(self):
        result = encode({"text": "a\n\nb"})
        assert result == "text: |\n  a\n\n  b"

    def test_indented_lines_are_quoted(self):
        content = """def hello():
    print("Hello, World!")
    return True"""
        result = encode({"code": content})
        assert result == 'code: "def hello():\\n    print(\\"Hello, World!\\")\\n    return True"'

    def test_trailing_newline_is_quoted(self):
        assert encode({"text": "a\nb\nc\n"}) == 'text: "a\\nb\\nc\\n"'

    def test_block_in_list_item(self):
        result = encode({"items": [{"text": "a\nb\nc", "n": {"x": 1, "y": 2}}]})
        assert result == "items:\n  - text: |\n      a\n      b\n      c\n    n:\n      x: 1\n      y: 2"


class TestEscapeSequences:
    """Test string escape sequence encoding."""

    def test_newline_escape(self):
        assert encode({"content": "line1\nline2"}) == 'content: "line1\\nline2"'

    def test_tab_escape(self):
        assert encode({"content": "col1\tcol2"}) == 'content: "col1\\tcol2"'

    def test_carriage_return_escape(self):
        assert encode({"content": "line1\rline2"}) == 'content: "line1\\rline2"'

    def test_backslash_escape(self):
        assert encode({"path": "C:\\Users\\name"}) == 'path: "C:\\\\Users\\\\name"'

    def test_multiple_escapes(self):
        result = encode({"text": 'Line 1\nLine 2\twith "quotes"'})
        assert result == 'text: "Line 1\\nLine 2\\twith \\"quotes\\""'


class TestKeyFolding:
    """Test key folding (dotted paths)."""

    def test_folding_by_default(self):
        assert encode({"a": {"b": {"c": 1}}}) == "a.b.c: 1"

    def test_folding_disabled(self):
        result = encode({"a": {"b": {"c": 1}}}, EncodeOptions(enable_key_folding=False))
        assert result == "a:\n  b:\n    c: 1"

    def test_folding_stops_at_multiple_keys(self):
        assert encode({"a": {"b": 1, "c": 2}}) == "a:\n  b: 1\n  c: 2"

    def test_folding_into_array(self):
        data = {"a": {"b": {"c": {"items": [{"v": 1}, {"v": 2}]}}}}
        assert encode(data) == "a.b.c.items[2]{v}:\n  1\n  2"

    def test_folding_into_empty_object(self):
        assert encode({"a": {"b": {}}}) == "a.b: {}"

    def test_flatten_depth(self):
        result = encode({"a": {"b": {"c": 1}}}, EncodeOptions(flatten_depth=2))
        assert result == "a.b:\n  c: 1"

    def test_flatten_depth_one_disables(self):
        result = encode({"a": {"b": 1}}, EncodeOptions(flatten_depth=1))
        assert result == "a:\n  b: 1"

    def test_folded_segments_are_quoted(self):
        assert encode({"a": {"x y": 1}}) == "a.x y: 1"
        assert encode({"a": {"b.c": 1}}) == 'a."b.c": 1'


class TestDelimiters:
    """Test delimiter options."""

    def test_tab_delimiter(self):
        result = encode({"items": [1, 2, 3]}, EncodeOptions(delimiter="\t"))
        assert result == "items[3\t]: 1\t2\t3"

    def test_pipe_delimiter(self):
        result = encode({"items": [1, 2, 3]}, EncodeOptions(delimiter="|"))
        assert result == "items[3|]: 1|2|3"

    @pytest.mark.parametrize("name,symbol", [("comma", ","), ("tab", "\t"), ("pipe", "|")])
    def test_delimiter_names(self, name, symbol):
        assert EncodeOptions(delimiter=name).delimiter == symbol

    def test_unknown_delimiter(self):
        with pytest.raises(ValueError, match="Unsupported delimiter"):
            EncodeOptions(delimiter=";")

    def test_pipe_does_not_quote_commas(self):
        result = encode({"items": ["a,b", "c"]}, EncodeOptions(delimiter="pipe"))
        assert result == "items[2|]: a,b|c"

    def test_tabular_tab(self):
        result = encode({"users": [{"id": 1, "name": "A"}]}, EncodeOptions(delimiter="tab"))
        assert result == "users[1\t]{id\tname}:\n  1\tA"

    def test_nested_bracket_arrays_use_comma(self):
        result = encode({"m": [[1, 2]]}, EncodeOptions(delimiter="|"))
        assert result == "m:\n  - [1,2]"


class TestIndentation:
    """Test indentation options."""

    def test_default_indent(self):
        assert encode({"a": {"b": 1, "c": 2}}) == "a:\n  b: 1\n  c: 2"

    def test_custom_indent(self):
        result = encode({"a": {"b": 1, "c": 2}}, EncodeOptions(indent=4))
        assert result == "a:\n    b: 1\n    c: 2"

    @pytest.mark.parametrize("indent", [0, -2, True])
    def test_invalid_indent(self, indent):
        with pytest.raises(ValueError, match="indent"):
            EncodeOptions(indent=indent)


class TestNormalization:
    """Test value normalization."""

    def test_tuple_to_list(self):
        assert encode({"items": (1, 2, 3)}) == "items[3]: 1,2,3"

    def test_set_to_list(self):
        # Sets are sorted by string representation
        assert encode({"items": {3, 1, 2}}) == "items[3]: 1,2,3"

    def test_datetime_to_isoformat(self):
        dt = datetime(2024, 1, 15, 10, 30, 0)
        assert encode({"timestamp": dt}) == 'timestamp: "2024-01-15T10:30:00"'

    def test_non_string_keys(self):
        assert encode({1: "a", 2: "b"}) == "1: a\n2: b"


class TestEncodeLines:
    """Test the line generator."""

    def test_yields_lines(self):
        assert list(encode_lines({"a": 1, "b": [1, 2]})) == ["a: 1", "b[2]: 1,2"]

    def test_matches_encode(self):
        data = {"users": [{"id": 1}, {"id": 2}], "meta": {"v": "1.0"}}
        assert "\n".join(encode_lines(data)) == encode(data)
