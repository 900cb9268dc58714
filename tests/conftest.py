"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite ledger: ``DATABASE_URL`` points at a
fresh database under ``tmp_path`` and cached engines are disposed afterwards,
so rows never leak between tests. Variables that would switch on the AI parse
path or change CLI defaults are cleared, and the working directory is moved to
``tmp_path`` so the CLI cannot pick up a developer's ``.env``.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make the workspace packages importable without an editable install
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import dispose_engines  # noqa: E402

from tests.helpers.db import bootstrap_sqlite_db  # noqa: E402

_ISOLATED_ENV = (
    "OPENAI_API_KEY",
    "SMART_LEDGER_MODEL",
    "SMART_LEDGER_AI_TIMEOUT",
    "SMART_LEDGER_OWNER",
    "SMART_LEDGER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Per-test SQLite database; also exported as ``DATABASE_URL``."""

    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    monkeypatch.setenv("DATABASE_URL", url)
    yield url
    dispose_engines()
