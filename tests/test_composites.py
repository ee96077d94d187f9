from __future__ import annotations

import pytest

from tests.support.harness import (
    ErrorKind,
    JsonInt,
    JsonList,
    JsonObject,
    TranslationError,
    evaluate,
    expand_literal,
    expect_error,
    py,
    unparse,
)


# ---------- Arrays ----------


def test_array_keeps_order() -> None:
    assert py('[3, "two", 1.0, null, true]') == [3, "two", 1.0, None, True]


def test_empty_composites() -> None:
    assert evaluate("[]") == JsonList([])
    assert evaluate("{}") == JsonObject({})
    assert unparse("[]") == "__json__.JsonList([])"
    assert unparse("{}") == "__json__.JsonObject({})"


def test_array_trailing_comma_is_accepted() -> None:
    assert evaluate("[1, 2,]") == JsonList([JsonInt(1), JsonInt(2)])


def test_array_generated_code() -> None:
    assert unparse("[1, 2]") == "__json__.JsonList([__json__.JsonInt(1), __json__.JsonInt(2)])"


@pytest.mark.parametrize(
    "body, message, column",
    [
        pytest.param("[,]", "unexpected `,` in JSON", 2, id="lone-comma"),
        pytest.param("[1,,2]", "unexpected `,` in JSON", 4, id="double-comma"),
        pytest.param("[1, [2, x]]", "unexpected `x` in JSON", 9, id="nested-bad-leaf"),
    ],
)
def test_array_unexpected_element(body: str, message: str, column: int) -> None:
    err = expect_error(body)
    assert err.kind == ErrorKind.UNEXPECTED_TOKEN
    assert err.message == message
    assert (err.line, err.column) == (1, column)


def test_array_missing_comma_points_at_token() -> None:
    err = expect_error("[1 2]")
    assert err.kind == ErrorKind.MALFORMED_ARRAY_SEPARATOR
    assert err.message == "expected `,` but found: `2`"
    assert (err.line, err.column) == (1, 4)


def test_array_missing_comma_before_group_points_at_array() -> None:
    err = expect_error("[1 [2]]")
    assert err.kind == ErrorKind.MALFORMED_ARRAY_SEPARATOR
    assert err.message == "expected `,` but found: `[2]`"
    assert (err.line, err.column) == (1, 1)


def test_error_position_across_lines() -> None:
    err = expect_error("{\n  \"a\": [1\n  2]\n}")
    assert err.kind == ErrorKind.MALFORMED_ARRAY_SEPARATOR
    assert (err.line, err.column) == (3, 3)


# ---------- Objects ----------


def test_object_generated_code() -> None:
    assert unparse('{"a": 1}') == "__json__.JsonObject({'a': __json__.JsonInt(1)})"


def test_object_keeps_source_order() -> None:
    assert list(py('{"b": 1, "a": 2, "c": 3}')) == ["b", "a", "c"]


def test_object_trailing_comma_is_accepted() -> None:
    assert py('{"a": 1,}') == {"a": 1}


def test_object_duplicate_key_keeps_last_value() -> None:
    assert py('{"k": 1, "k": 2}') == {"k": 2}


def test_object_keys_use_string_escapes() -> None:
    assert py(r'{"a\tb": 1, r"\d": 2}') == {"a\tb": 1, "\\d": 2}


def test_nested_literal() -> None:
    body = '{"name": "x", "tags": ["a", "b"], "meta": {"n": [1, {"deep": null}]}}'
    assert py(body) == {
        "name": "x",
        "tags": ["a", "b"],
        "meta": {"n": [1, {"deep": None}]},
    }
    assert repr(evaluate('[{"a": [1, 2]}, null]')) == '[{"a": [1, 2]}, null]'


@pytest.mark.parametrize(
    "body, message, column",
    [
        pytest.param('{a: 1}', "expected string literal but found: `a`", 2, id="ident-key"),
        pytest.param('{1: 1}', "expected string literal but found: `1`", 2, id="int-key"),
        pytest.param('{b"k": 1}', 'expected string literal but found: `b"k"`', 2, id="bytes-key"),
        pytest.param('{("k"): 1}', 'expected string literal but found: `("k")`', 1, id="group-key"),
        pytest.param('{"a" 1}', "expected `:` but found: `1`", 6, id="missing-colon"),
        pytest.param('{"a"}', "found name but no colon-value afterwards", 2, id="key-only"),
        pytest.param('{"a": }', "found `:` but no value afterwards", 5, id="missing-value"),
        pytest.param('{"a": 1 "b": 2}', "expected `,` but found: `\"b\"`", 9, id="missing-comma"),
        pytest.param('{"a": -1}', "expected `,` but found: `1`", 8, id="negative-value"),
        pytest.param('{"a": 1, "b"}', "found name but no colon-value afterwards", 10, id="second-key-only"),
        pytest.param('{,}', "expected string literal but found: `,`", 2, id="lone-comma"),
    ],
)
def test_malformed_object_entries(body: str, message: str, column: int) -> None:
    err = expect_error(body)
    assert err.kind == ErrorKind.MALFORMED_OBJECT_ENTRY
    assert err.message == message
    assert (err.line, err.column) == (1, column)


def test_object_value_error_comes_from_value() -> None:
    err = expect_error('{"a": nope}')
    assert err.kind == ErrorKind.UNEXPECTED_TOKEN
    assert err.message == "unexpected `nope` in JSON"
    assert (err.line, err.column) == (1, 7)


# ---------- Unsupported and empty ----------


def test_repetition_sequence_is_unsupported() -> None:
    err = expect_error("[$(x)*]")
    assert err.kind == ErrorKind.UNSUPPORTED_CONSTRUCT
    assert err.message == "unexpected repetition sequence in JSON"
    assert (err.line, err.column) == (1, 2)


@pytest.mark.parametrize("body", ["", "   ", "# only a comment\n"])
def test_empty_body(body: str) -> None:
    with pytest.raises(TranslationError) as exc_info:
        expand_literal(body)

    err = exc_info.value
    assert err.kind == ErrorKind.EMPTY_LITERAL
    assert err.message == "expected JSON literal"


def test_extra_trees_after_literal_are_ignored(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="json_macros.expand"):
        value = evaluate("[1] 2 3")

    assert value == JsonList([JsonInt(1)])
    assert "ignoring 2 token tree(s)" in caplog.text


def test_first_error_wins() -> None:
    with pytest.raises(TranslationError) as exc_info:
        expand_literal("[x, y]")
    assert exc_info.value.message == "unexpected `x` in JSON"
