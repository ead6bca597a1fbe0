"""Unit tests for the command-line entry point."""

import logging
import pytest
from pathlib import Path
from click.testing import CliRunner

from vibeplayer import __version__
from vibeplayer.main import main


@pytest.fixture
def config_file(temp_data_dir):
    path = Path(temp_data_dir) / "vibeplayer.yaml"
    path.write_text(
        f"storage:\n  home_directory: {temp_data_dir}\n"
        "agent:\n  api_key_env: VIBEPLAYER_TEST_MISSING_KEY\n",
        encoding="utf-8"
    )
    yield path
    logging.getLogger().handlers.clear()


@pytest.mark.unit
class TestMain:
    """Test cases for the click command."""

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_config_file(self, temp_data_dir):
        result = CliRunner().invoke(main, ["--config", str(Path(temp_data_dir) / "nope.yaml")])
        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_missing_api_key(self, config_file, temp_data_dir, monkeypatch):
        monkeypatch.delenv("VIBEPLAYER_TEST_MISSING_KEY", raising=False)

        result = CliRunner().invoke(main, ["--config", str(config_file), "--log-level", "debug"])

        assert result.exit_code == 1
        assert "VIBEPLAYER_TEST_MISSING_KEY environment variable not set" in result.output
        assert (Path(temp_data_dir) / "vibeplayer.log").exists()

    def test_corrupt_library_reported(self, config_file, temp_data_dir, monkeypatch):
        monkeypatch.setenv("VIBEPLAYER_TEST_MISSING_KEY", "sk-test")
        (Path(temp_data_dir) / "library.json").write_text("{broken", encoding="utf-8")

        result = CliRunner().invoke(main, ["--config", str(config_file)])

        assert result.exit_code == 1
        assert "Failed to load library" in result.output
