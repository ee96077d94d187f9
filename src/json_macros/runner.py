from __future__ import annotations

import ast
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import Options, debug_enabled
from .diagnostics import TranslationError
from .expand import expand_literal, expand_source, literal
from .lexer import LexError

USAGE = """\
usage: json-macros [--literal | --eval] [--wrap] [--runtime-name NAME]
                   [--macro NAME] [--debug] [FILE | - | SOURCE]

Expand json!( ... ) literals in Python source and print the result.
  --literal        treat the input as a literal body; print the generated expression
  --eval           treat the input as a literal body; print the evaluated value
  --wrap           wrap integer literals that overflow 64 bits instead of failing
  --runtime-name   alias the generated code uses for json_macros.value
  --macro          invocation name to expand (default: json)
  --debug          log token trees and diagnostics
"""


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.exists():
        return candidate.read_text(encoding="utf-8")

    return arg


def _source_name(arg: Optional[str]) -> str:
    if arg is None or arg == "-":
        return "<stdin>"
    if Path(arg).exists():
        return arg
    return "<arg>"


def _report(errors: Sequence[TranslationError], filename: str) -> None:
    for err in errors:
        print(err.format(filename), file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    mode = "source"
    debug = debug_enabled()
    overrides = {}
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token in ("-h", "--help"):
            print(USAGE, end="")
            return 0

        if token == "--literal":
            mode = "literal"
            continue

        if token == "--eval":
            mode = "eval"
            continue

        if token == "--wrap":
            overrides["int_overflow"] = "wrap"
            continue

        if token == "--debug":
            debug = True
            continue

        if token in ("--runtime-name", "--macro"):
            key = "runtime_name" if token == "--runtime-name" else "macro_name"
            try:
                overrides[key] = next(it)
            except StopIteration:
                raise SystemExit(f"{token} flag requires a name") from None
            continue

        if token.startswith("--runtime-name="):
            overrides["runtime_name"] = token.split("=", 1)[1]
            continue

        if token.startswith("--macro="):
            overrides["macro_name"] = token.split("=", 1)[1]
            continue

        if token.startswith("--"):
            raise SystemExit(f"Unknown option: {token}\n\n{USAGE}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    configure_logging(debug)

    try:
        options = Options.from_env().with_overrides(**overrides)
    except ValueError as exc:
        raise SystemExit(str(exc)) from None

    source = _load_source(arg)
    filename = _source_name(arg)

    if mode == "source":
        result = expand_source(source, options)
        _report(result.errors, filename)
        sys.stdout.write(result.source)
        return 0 if result.ok else 1

    try:
        if mode == "literal":
            print(ast.unparse(expand_literal(source, options)))
        else:
            print(repr(literal(source, options=options)))
    except TranslationError as exc:
        _report([exc], filename)
        return 1
    except LexError as exc:
        print(f"{filename}: error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
