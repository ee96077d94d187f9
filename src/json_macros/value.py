"""Runtime structured values built by expanded ``json!`` literals.

Generated code calls these constructors through a module alias (by default
``__json__``), e.g. ``__json__.JsonList([__json__.JsonInt(1)])``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Union
from typing_extensions import TypeAlias, TypeGuard

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class JsonConversionError(TypeError, ValueError):
    """A Python value has no structured-value equivalent."""


# ---------- Value Model ----------

@dataclass
class JsonNull:
    def __repr__(self) -> str:
        return "null"

@dataclass
class JsonBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass
class JsonInt:
    value: int
    def __post_init__(self) -> None:
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise JsonConversionError(f"integer {self.value} does not fit in 64 bits")
    def __repr__(self) -> str:
        return str(self.value)

@dataclass
class JsonFloat:
    value: float
    def __repr__(self) -> str:
        return repr(self.value)

@dataclass
class JsonString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass
class JsonList:
    items: List['JsonValue']
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass
class JsonObject:
    fields: Dict[str, 'JsonValue']
    def __repr__(self) -> str:
        pairs = []

        for k, v in self.fields.items():
            pairs.append(f'"{k}": {repr(v)}')

        return "{" + ", ".join(pairs) + "}"


JsonValue: TypeAlias = Union[JsonNull, JsonBool, JsonInt, JsonFloat, JsonString, JsonList, JsonObject]

_JSON_TYPES = (JsonNull, JsonBool, JsonInt, JsonFloat, JsonString, JsonList, JsonObject)


def is_json_value(value: Any) -> TypeGuard[JsonValue]:
    return isinstance(value, _JSON_TYPES)


def to_json(value: Any) -> JsonValue:
    """
    Convert an arbitrary Python value into a structured value.

    Used by parenthesized escapes inside a literal. Objects may take part by
    defining a ``to_json()`` method.
    """
    if is_json_value(value):
        return value

    hook = getattr(value, "to_json", None)
    if callable(hook):
        return to_json(hook())

    if value is None:
        return JsonNull()
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return JsonBool(value)
    if isinstance(value, int):
        return JsonInt(value)
    if isinstance(value, float):
        return JsonFloat(value)
    if isinstance(value, str):
        return JsonString(value)
    if isinstance(value, Mapping):
        fields: Dict[str, JsonValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise JsonConversionError(
                    f"object keys must be strings, got {type(key).__name__}"
                )
            fields[key] = to_json(item)
        return JsonObject(fields)
    if isinstance(value, (list, tuple)):
        return JsonList([to_json(item) for item in value])

    raise JsonConversionError(f"cannot convert {type(value).__name__} to a JSON value")


def to_python(value: JsonValue) -> Any:
    """Unwrap a structured value into plain Python data."""
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, JsonList):
        return [to_python(item) for item in value.items]
    if isinstance(value, JsonObject):
        return {k: to_python(v) for k, v in value.fields.items()}
    if is_json_value(value):
        return value.value

    raise JsonConversionError(f"not a JSON value: {type(value).__name__}")
