"""Tests for PatchSettings and PatchConfigLoader."""

import logging
from pathlib import Path

import pytest

from patch_mcp.engine.patch_config import CONFIG_ENV_VAR, PatchConfigLoader, PatchSettings

CONFIG_YAML = """\
whitespace:
  trim_trailing_whitespace: false
similarity_threshold: 0.9
block_chunk_size: 200
protected_markers:
  - DO NOT EDIT
"""


def write_config(path: Path, text: str = CONFIG_YAML) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestPatchSettings:
    def test_defaults(self) -> None:
        settings = PatchSettings()
        assert settings.similarity_threshold == 0.8
        assert settings.block_chunk_size == 100
        assert settings.block_similarity_threshold == 0.3
        assert settings.diff_similarity_threshold == 0.5
        assert settings.hunk_similarity_threshold == 0.3
        assert settings.max_line_length == 10000
        assert settings.block_length_bounds == (0.5, 2.0)
        assert settings.diff_search_window == 50
        assert settings.protected_markers == ["TODO", "IMPORTANT"]
        assert settings.max_file_size_bytes == 50 * 1024 * 1024
        assert settings.working_dir is None
        assert settings.whitespace.default_indentation == "    "

    def test_invalid_threshold(self) -> None:
        with pytest.raises(ValueError):
            PatchSettings(similarity_threshold=1.5)

    def test_invalid_length_bounds(self) -> None:
        with pytest.raises(ValueError, match="block_length_bounds"):
            PatchSettings(block_length_bounds=(2.0, 1.0))

    def test_working_dir_expanded(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        assert PatchSettings(working_dir="~/proj").working_dir == tmp_path / "proj"


class TestPatchConfigLoader:
    def test_defaults_without_file(self) -> None:
        loader = PatchConfigLoader()
        assert loader.get_config_path() is None
        assert loader.load_config() == PatchSettings()

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "patch.yml")
        settings = PatchConfigLoader(path).load_config()

        assert settings.similarity_threshold == 0.9
        assert settings.block_chunk_size == 200
        assert settings.protected_markers == ["DO NOT EDIT"]
        assert settings.whitespace.trim_trailing_whitespace is False
        assert settings.whitespace.preserve_indentation is True

    def test_missing_explicit_path_falls_back(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            settings = PatchConfigLoader(tmp_path / "nope.yml").load_config()
        assert settings == PatchSettings()
        assert "does not exist" in caplog.text

    def test_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = write_config(tmp_path / "env.yml")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert PatchConfigLoader().get_config_path() == path
        assert PatchConfigLoader().load_config().similarity_threshold == 0.9

    def test_standard_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        path = write_config(tmp_path / ".patch-mcp" / "config.yml")
        assert PatchConfigLoader().get_config_path() == path

    def test_explicit_path_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        explicit = write_config(tmp_path / "explicit.yml")
        env = write_config(tmp_path / "env.yml", "similarity_threshold: 0.5\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env))
        assert PatchConfigLoader(explicit).load_config().similarity_threshold == 0.9

    def test_empty_file_means_defaults(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "empty.yml", "")
        assert PatchConfigLoader(path).load_config() == PatchSettings()

    def test_result_cached(self, tmp_path: Path) -> None:
        loader = PatchConfigLoader(write_config(tmp_path / "patch.yml"))
        assert loader.load_config() is loader.load_config()

    @pytest.mark.parametrize(
        "text",
        [
            "- just\n- a list\n",
            "similarity_threshold: 2.0\n",
            "block_chunk_size: [unclosed\n",
        ],
    )
    def test_invalid_config(self, tmp_path: Path, text: str) -> None:
        path = write_config(tmp_path / "bad.yml", text)
        with pytest.raises(ValueError, match="Failed to load patch config"):
            PatchConfigLoader(path).load_config()
