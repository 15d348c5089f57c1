"""Tests for CLI commands."""

import pytest
from click.testing import CliRunner

from modes_decode import config
from modes_decode.cli import cli
from modes_decode.config import load_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def hex_file(tmp_path):
    """Create a sample hex frame file."""
    frames = [
        "# sample capture",
        "8D4840D6202CC371C32CE0576098",  # Identification: KLM1023
        "*8D40621D58C382D690C8AC2863A7;",  # Position even (dump1090 framing)
        "8D40621D58C386435CC412692AD6",  # Position odd
        "8D485020994409940838175B284F",  # Velocity (header only)
        "",
        "8D4840D6202CC3",  # Too short
    ]
    f = tmp_path / "test_frames.txt"
    f.write_text("\n".join(frames) + "\n")
    return str(f)


class TestDecodeCommand:
    def test_decode_args(self, runner):
        result = runner.invoke(cli, ["decode", "8D4840D6202CC371C32CE0576098"])
        assert result.exit_code == 0
        assert "4840D6" in result.output
        assert "KLM1023" in result.output
        assert "Summary" in result.output

    def test_decode_file(self, runner, hex_file):
        result = runner.invoke(cli, ["decode", "--file", hex_file])
        assert result.exit_code == 0
        assert "40621D" in result.output
        assert "Position decodes: 1" in result.output
        assert "InvalidMessageLengthError" in result.output

    def test_decode_with_ref(self, runner, hex_file):
        result = runner.invoke(cli, ["decode", "--file", hex_file, "--ref-lat", "52.0", "--ref-lon", "4.0"])
        assert result.exit_code == 0
        assert "Position decodes: 2" in result.output

    def test_require_payload(self, runner):
        result = runner.invoke(cli, ["decode", "--require-payload", "8D485020994409940838175B284F"])
        assert result.exit_code == 0
        assert "UnsupportedTypeCodeError" in result.output

    def test_invalid_hex_reported(self, runner):
        result = runner.invoke(cli, ["decode", "8D4840D6202CC371C32CE057609Z"])
        assert result.exit_code == 0
        assert "InvalidHexEncodingError" in result.output

    def test_no_input(self, runner):
        result = runner.invoke(cli, ["decode"])
        assert result.exit_code != 0

    def test_decode_nonexistent_file(self, runner):
        result = runner.invoke(cli, ["decode", "--file", "/nonexistent/file.txt"])
        assert result.exit_code != 0

    def test_ref_with_scalar_receiver_entry(self, runner, hex_file):
        config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        config.CONFIG_FILE.write_text("receiver: x\n")

        result = runner.invoke(cli, ["decode", "--file", hex_file, "--ref-lat", "52.0", "--ref-lon", "4.0"])
        assert result.exit_code == 0, result.output
        assert "Position decodes: 2" in result.output

    def test_scalar_receiver_entry_without_ref(self, runner):
        config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        config.CONFIG_FILE.write_text("receiver: x\n")

        result = runner.invoke(cli, ["decode", "8D4840D6202CC371C32CE0576098"])
        assert result.exit_code == 0, result.output

    def test_verbose(self, runner):
        result = runner.invoke(cli, ["-v", "decode", "8D4840D6202CC371C32CE0576098"])
        assert result.exit_code == 0


class TestConfigCommand:
    def test_show(self, runner):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "cpr.pair_window" in result.output

    def test_set_reference(self, runner):
        result = runner.invoke(cli, ["config", "--ref-lat", "52.3", "--ref-lon", "4.76", "--pair-window", "8"])
        assert result.exit_code == 0
        assert "Config saved" in result.output

        cfg = load_config()
        assert cfg["receiver"]["lat"] == 52.3
        assert cfg["receiver"]["lon"] == 4.76
        assert cfg["cpr"]["pair_window"] == 8.0

    def test_set_over_scalar_section(self, runner):
        config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        config.CONFIG_FILE.write_text("receiver: x\ncpr: 3\n")

        result = runner.invoke(cli, ["config", "--ref-lat", "52.3", "--pair-window", "8"])
        assert result.exit_code == 0, result.output

        cfg = load_config()
        assert cfg["receiver"]["lat"] == 52.3
        assert cfg["cpr"]["pair_window"] == 8.0


class TestVersionFlag:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
