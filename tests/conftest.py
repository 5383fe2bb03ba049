"""Shared test configuration for patch-mcp tests.

Provides:
- Settings and engine fixtures confined to a per-test temporary directory
- A file factory that writes exact bytes (no newline translation)
- Isolation from any user-level patch config
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from patch_mcp.engine import PatchEngine, PatchSettings
from patch_mcp.engine.patch_config import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def isolate_user_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep ~/.patch-mcp/config.yml and PATCH_MCP_CONFIG out of tests."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def settings(tmp_path: Path) -> PatchSettings:
    return PatchSettings(working_dir=tmp_path)


@pytest.fixture
def engine(settings: PatchSettings) -> PatchEngine:
    return PatchEngine(settings=settings)


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Create a file under tmp_path with exactly the given text."""

    def _make(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    return _make
