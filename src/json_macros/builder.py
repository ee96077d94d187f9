"""Expression builders for the generated code.

Each helper returns an ``ast.expr`` that calls a constructor from
``json_macros.value`` through the configured runtime alias.
"""

from __future__ import annotations

import ast
from typing import List, Sequence, Tuple


class ExprBuilder:
    def __init__(self, runtime_name: str = "__json__"):
        self.runtime_name = runtime_name

    def _ctor(self, name: str, *args: ast.expr) -> ast.expr:
        func = ast.Attribute(
            value=ast.Name(id=self.runtime_name, ctx=ast.Load()),
            attr=name,
            ctx=ast.Load(),
        )
        return ast.Call(func=func, args=list(args), keywords=[])

    def null(self) -> ast.expr:
        return self._ctor("JsonNull")

    def boolean(self, value: bool) -> ast.expr:
        return self._ctor("JsonBool", ast.Constant(value=value))

    def integer(self, value: int) -> ast.expr:
        return self._ctor("JsonInt", ast.Constant(value=value))

    def float_(self, value: float) -> ast.expr:
        return self._ctor("JsonFloat", ast.Constant(value=value))

    def string(self, value: str) -> ast.expr:
        return self._ctor("JsonString", ast.Constant(value=value))

    def list_(self, items: Sequence[ast.expr]) -> ast.expr:
        return self._ctor("JsonList", ast.List(elts=list(items), ctx=ast.Load()))

    def object_(self, pairs: Sequence[Tuple[ast.expr, ast.expr]]) -> ast.expr:
        # A dict display inserts in source order; a repeated key keeps the last value.
        keys: List[ast.expr] = [k for k, _ in pairs]
        values: List[ast.expr] = [v for _, v in pairs]
        return self._ctor("JsonObject", ast.Dict(keys=keys, values=values))

    def to_json(self, expr: ast.expr) -> ast.expr:
        return self._ctor("to_json", expr)

    def placeholder(self) -> ast.expr:
        return ast.Constant(value=None)
