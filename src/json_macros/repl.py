"""Interactive REPL for json! literals, powered by prompt_toolkit."""

from __future__ import annotations

import ast
import re
import sys
from typing import Dict, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .config import Options, debug_enabled
from .diagnostics import TranslationError
from .expand import expand_literal, literal
from .lexer import LexError, tokenize
from .repl_highlight import LiteralHighlighter
from .runner import configure_logging
from .token_types import CLOSERS, OPENERS

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/wrap": ("Wrap integers that overflow 64 bits instead of failing", "[on|off]"),
    "/expr": ("Show the generated Python expression", "[on|off]"),
}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


def _open_depth(text: str) -> int:
    """Unclosed delimiter depth of *text*; 0 when it cannot be tokenized."""
    try:
        tokens = tokenize(text)
    except LexError:
        return 0

    depth = 0
    for tok in tokens:
        if tok.type in OPENERS:
            depth += 1
        elif tok.type in CLOSERS:
            depth = max(depth - 1, 0)
    return depth


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(arg: str, current: bool) -> Optional[bool]:
    arg = arg.lower()
    if arg in _ON:
        return True
    if arg in _OFF:
        return False
    if arg == "":
        return not current
    return None


def _handle_slash(line: str, state: Dict[str, object]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/wrap":
        options = state["options"]
        assert isinstance(options, Options)
        wrap = _toggle(arg, options.int_overflow == "wrap")
        if wrap is None:
            print("Usage: /wrap [on|off]", file=sys.stderr)
            return True
        state["options"] = options.with_overrides(int_overflow="wrap" if wrap else "error")
        print(f"Integer wrapping: {'on' if wrap else 'off'}")
        return True

    if cmd == "/expr":
        show = _toggle(arg, bool(state["show_expr"]))
        if show is None:
            print("Usage: /expr [on|off]", file=sys.stderr)
            return True
        state["show_expr"] = show
        print(f"Show expression: {'on' if show else 'off'}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def repl() -> None:
    """Interactive read-translate-print loop with prompt_toolkit."""
    configure_logging(debug_enabled())
    state: Dict[str, object] = {"options": Options.from_env(), "show_expr": True}
    namespace: Dict[str, object] = {}

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        # Keep reading while a bracket is still open.
        if _open_depth(buf.text) > 0:
            buf.insert_text("\n" + "  " * _open_depth(buf.text))
            return
        buf.validate_and_handle()

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=LiteralHighlighter(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("json! repl: type a literal body, Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt("json> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if _handle_slash(text, state):
            continue

        options = state["options"]
        assert isinstance(options, Options)

        try:
            if state["show_expr"]:
                print(ast.unparse(expand_literal(text, options)))
            print(repr(literal(text, namespace, options)))
        except (LexError, TranslationError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
        except Exception as exc:
            # Escapes run arbitrary Python.
            print(f"Error in escape: {type(exc).__name__}: {exc}", file=sys.stderr)


if __name__ == "__main__":
    repl()
