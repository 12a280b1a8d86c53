from __future__ import annotations

import os
from pathlib import Path

import pytest

_ISOLATED_PREFIXES = ("NAVCADDY_", "OLLAMA_", "OPENAI_")


@pytest.fixture(autouse=True)
def _isolate_navcaddy_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Developer .env values must never leak into tests; every test gets its own DB file.
    for name in list(os.environ):
        if name.startswith(_ISOLATED_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NAVCADDY_DB_PATH", str(tmp_path / "navcaddy-db"))
