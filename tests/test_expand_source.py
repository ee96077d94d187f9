from __future__ import annotations

from pathlib import Path

from json_macros.expand import expand_file, find_invocations
from json_macros.value import to_python
from tests.support.harness import (
    ErrorKind,
    JsonInt,
    Options,
    expand_source,
    run_expanded,
)

IMPORT = "import json_macros.value as __json__\n"


def test_invocation_is_replaced_and_runtime_bound() -> None:
    result = expand_source("x = json!([1, 2])\n")

    assert result.ok
    assert result.expanded == 1
    assert result.source == (
        IMPORT + "x = (__json__.JsonList([__json__.JsonInt(1), __json__.JsonInt(2)]))\n"
    )


def test_source_without_invocations_is_untouched() -> None:
    source = "x = [1, 2]\n"
    result = expand_source(source)

    assert result.source == source
    assert result.expanded == 0


def test_import_goes_after_docstring_and_future_imports() -> None:
    source = '"""Doc."""\nfrom __future__ import annotations\nv = json!(null)\n'
    lines = expand_source(source).source.splitlines(keepends=True)

    assert lines[:2] == ['"""Doc."""\n', "from __future__ import annotations\n"]
    assert lines[2] == IMPORT
    assert lines[3] == "v = (__json__.JsonNull())\n"


def test_import_keeps_shebang_first() -> None:
    source = "#!/usr/bin/env python\nv = json!(true)\n"
    lines = expand_source(source).source.splitlines(keepends=True)

    assert lines[0] == "#!/usr/bin/env python\n"
    assert lines[1] == IMPORT


def test_import_is_not_repeated() -> None:
    source = IMPORT + "v = json!(1)\n"
    assert expand_source(source).source.count(IMPORT) == 1


def test_strings_and_comments_are_skipped() -> None:
    source = 's = "json!(1)"  # json!(2)\nt = """\njson!(3)\n"""\nv = json!(4)\n'
    result = expand_source(source)

    assert result.expanded == 1
    scope = run_expanded(source)
    assert scope["s"] == "json!(1)"
    assert scope["t"] == "\njson!(3)\n"
    assert scope["v"] == JsonInt(4)


def test_attribute_and_longer_names_do_not_match() -> None:
    source = "a = obj.json!(1)\nb = myjson!(2)\nc = json!(3)\n"
    assert [source[start:paren] for start, paren in find_invocations(source)] == ["json!"]


def test_expanded_module_runs() -> None:
    source = (
        "def make(n):\n"
        "    return json!({\"n\": (n), \"items\": [1, (n * 2)]})\n"
        "\n"
        "value = make(4)\n"
    )
    scope = run_expanded(source)
    assert to_python(scope["value"]) == {"n": 4, "items": [1, 8]}


def test_line_numbers_are_preserved() -> None:
    source = (
        "v = json!({\n"
        '    "a": 1,\n'
        '    "b": [\n'
        "        2,\n"
        "    ],\n"
        "})\n"
        "y = 1\n"
    )
    result = expand_source(source)

    assert result.ok
    out = result.source.splitlines()
    # One extra line for the runtime import.
    assert out.index("y = 1") == source.splitlines().index("y = 1") + 1


def test_failed_literal_becomes_placeholder() -> None:
    result = expand_source("a = json!([1 2])\n")

    assert not result.ok
    assert "a = (None)" in result.source
    assert len(result.errors) == 1
    err = result.errors[0]
    assert err.kind == ErrorKind.MALFORMED_ARRAY_SEPARATOR
    assert (err.line, err.column) == (1, 14)


def test_every_literal_reports_its_own_error() -> None:
    result = expand_source('a = json!([1 2])\nb = json!({"k" 1})\nc = json!(3)\n')

    assert [(e.kind, e.line) for e in result.errors] == [
        (ErrorKind.MALFORMED_ARRAY_SEPARATOR, 1),
        (ErrorKind.MALFORMED_OBJECT_ENTRY, 2),
    ]
    assert result.expanded == 3
    assert "c = (__json__.JsonInt(3))" in result.source


def test_error_position_inside_multiline_invocation() -> None:
    result = expand_source("x = 1\ny = json!([\n  1\n  2\n])\n")

    assert len(result.errors) == 1
    assert (result.errors[0].line, result.errors[0].column) == (4, 3)


def test_empty_invocation() -> None:
    result = expand_source("v = json!()\n")

    assert len(result.errors) == 1
    err = result.errors[0]
    assert err.kind == ErrorKind.EMPTY_LITERAL
    assert err.message == "expected JSON literal"
    assert (err.line, err.column) == (1, 5)
    assert "v = (None)" in result.source


def test_tokenize_failure_is_reported_and_scanning_continues() -> None:
    source = 'v = json!("abc)\nw = json!(2)\n'
    result = expand_source(source)

    assert [e.kind for e in result.errors] == [ErrorKind.TOKENIZE_FAILURE]
    assert result.errors[0].message == "unterminated string"
    assert (result.errors[0].line, result.errors[0].column) == (1, 11)
    assert "w = (__json__.JsonInt(2))" in result.source


def test_nested_invocation_in_source() -> None:
    scope = run_expanded('v = json!([(json!({"a": 1}))])\n')
    assert to_python(scope["v"]) == [{"a": 1}]


def test_nested_invocation_error_position() -> None:
    result = expand_source("x = json!([(json!([1 2]))])\n")

    assert len(result.errors) == 1
    err = result.errors[0]
    assert err.kind == ErrorKind.MALFORMED_ARRAY_SEPARATOR
    assert (err.line, err.column) == (1, 22)


def test_nested_invocation_error_position_on_later_line() -> None:
    result = expand_source("x = json!([\n    1,\n    (json!([1 2])),\n])\n")

    assert len(result.errors) == 1
    assert (result.errors[0].line, result.errors[0].column) == (3, 15)


def test_nested_invocation_failure_fails_enclosing_literal() -> None:
    result = expand_source('x = json!({"a": (json!({"b" 1}))})\ny = json!(2)\n')

    assert [e.kind for e in result.errors] == [ErrorKind.MALFORMED_OBJECT_ENTRY]
    assert "x = (None)" in result.source
    assert "to_json" not in result.source
    assert "y = (__json__.JsonInt(2))" in result.source


def test_deeply_nested_literal_does_not_stop_other_literals() -> None:
    deep = "[" * 1000 + "]" * 1000
    source = f"a = json!([1 2])\nx = json!({deep})\nb = json!(3)\n"

    result = expand_source(source)

    assert [(e.kind, e.line, e.column) for e in result.errors] == [
        (ErrorKind.MALFORMED_ARRAY_SEPARATOR, 1, 14),
        (ErrorKind.NESTING_TOO_DEEP, 2, 5),
    ]
    assert "x = (None)" in result.source
    assert "b = (__json__.JsonInt(3))" in result.source


def test_moderately_deep_literal_keeps_sibling_diagnostics() -> None:
    deep = "[" * 150 + "]" * 150
    result = expand_source(f"a = json!([1 2])\nx = json!({deep})\n")

    assert result.errors[0].kind == ErrorKind.MALFORMED_ARRAY_SEPARATOR
    assert result.errors[0].line == 1
    assert result.source.splitlines()[-1].startswith("x = (")


def test_custom_macro_and_runtime_names() -> None:
    options = Options(macro_name="j", runtime_name="rt")
    result = expand_source("v = j!([1])\nw = json!(2)\n", options)

    assert result.expanded == 1
    assert "import json_macros.value as rt\n" in result.source
    assert "v = (rt.JsonList([rt.JsonInt(1)]))" in result.source
    assert "w = json!(2)" in result.source


def test_expand_file(tmp_path: Path) -> None:
    path = tmp_path / "mod.py"
    path.write_text('CONFIG = json!({"debug": false})\n', encoding="utf-8")

    result = expand_file(path)

    assert result.ok
    assert "CONFIG = (__json__.JsonObject({'debug': __json__.JsonBool(False)}))" in result.source
