from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from json_macros.config import Options  # noqa: E402


@pytest.fixture
def wrap_options() -> Options:
    """Options that wrap overflowing integer literals into 64 bits."""
    return Options(int_overflow="wrap")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep JSON_MACROS_* settings from the outer shell out of the tests."""
    for name in ("DEBUG", "RUNTIME_NAME", "MACRO_NAME", "INT_OVERFLOW"):
        monkeypatch.delenv(f"JSON_MACROS_{name}", raising=False)


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if pytest ever generates duplicate node IDs."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        if item.nodeid in seen:
            duplicates.append(item.nodeid)
            continue
        seen[item.nodeid] = 1

    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
        raise pytest.UsageError(
            "Duplicate pytest nodeids detected during collection:\n" f"{lines}"
        )
