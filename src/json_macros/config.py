from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

INT_OVERFLOW_POLICIES = ("error", "wrap")

_ENV_PREFIX = "JSON_MACROS_"


def debug_enabled() -> bool:
    """True when JSON_MACROS_DEBUG asks for debug logging."""
    return os.environ.get(_ENV_PREFIX + "DEBUG", "").lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Options:
    """Knobs shared by the translator, the source expander and the CLI."""

    # Name the generated code uses for json_macros.value.
    runtime_name: str = "__json__"
    # Invocation name recognized by expand_source: `json!( ... )`.
    macro_name: str = "json"
    # What to do with integer literals outside the signed 64-bit range.
    int_overflow: str = "error"

    def __post_init__(self) -> None:
        if self.int_overflow not in INT_OVERFLOW_POLICIES:
            raise ValueError(
                f"int_overflow must be one of {INT_OVERFLOW_POLICIES}, got {self.int_overflow!r}"
            )
        for field_name in ("runtime_name", "macro_name"):
            value = getattr(self, field_name)
            if not value.isidentifier():
                raise ValueError(f"{field_name} must be an identifier, got {value!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Options:
        env = os.environ if environ is None else environ
        overrides = {}

        for field_name in ("runtime_name", "macro_name", "int_overflow"):
            raw = env.get(_ENV_PREFIX + field_name.upper())
            if raw:
                overrides[field_name] = raw.strip()

        return cls(**overrides)

    def with_overrides(self, **overrides: str) -> Options:
        return replace(self, **overrides)
