"""Tests for the borderid command line."""

import cv2
import numpy as np
from click.testing import CliRunner

from borderid.cli.main import cli

SAMPLE_UUID = "12345678-1234-4234-8234-123456789abc"


class TestCommands:
    def test_generate(self):
        result = CliRunner().invoke(cli, ["generate"])
        assert result.exit_code == 0
        assert len(result.output.strip()) == 36

    def test_info(self):
        result = CliRunner().invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "Total segments:   148" in result.output
        assert "Parity bytes:     16" in result.output

    def test_encode_then_decode(self, tmp_path):
        out = str(tmp_path / "border.png")
        runner = CliRunner()
        result = runner.invoke(cli, ["encode", SAMPLE_UUID, "-o", out,
                                     "--width", "740", "--height", "80"])
        assert result.exit_code == 0, result.output
        assert SAMPLE_UUID in result.output
        assert cv2.imread(out).shape == (80, 740, 3)

        result = runner.invoke(cli, ["decode", out, "--details"])
        assert result.exit_code == 0, result.output
        assert SAMPLE_UUID in result.output
        assert "end_marker=yes" in result.output

    def test_encode_random(self, tmp_path):
        out = str(tmp_path / "border.png")
        result = CliRunner().invoke(cli, ["encode", "-o", out])
        assert result.exit_code == 0, result.output
        value = result.output.strip().splitlines()[-1]

        result = CliRunner().invoke(cli, ["decode", out])
        assert result.exit_code == 0
        assert result.output.strip() == value

    def test_encode_invalid_uuid(self, tmp_path):
        result = CliRunner().invoke(cli, ["encode", "nope", "-o",
                                          str(tmp_path / "x.png")])
        assert result.exit_code != 0
        assert "invalid UUID" in result.output

    def test_decode_blank_image(self, tmp_path):
        path = str(tmp_path / "blank.png")
        cv2.imwrite(path, np.full((40, 400, 3), 255, dtype=np.uint8))
        result = CliRunner().invoke(cli, ["decode", path])
        assert result.exit_code == 1

    def test_diagnose(self, tmp_path):
        out = str(tmp_path / "border.png")
        runner = CliRunner()
        runner.invoke(cli, ["encode", SAMPLE_UUID, "-o", out, "--width", "592"])
        result = runner.invoke(cli, ["diagnose", out, "--row", "2"])
        assert result.exit_code == 0, result.output
        assert "start+end" in result.output
        assert f"Decoded: {SAMPLE_UUID}" in result.output

    def test_diagnose_failure(self, tmp_path):
        path = str(tmp_path / "blank.png")
        cv2.imwrite(path, np.full((40, 400, 3), 255, dtype=np.uint8))
        result = CliRunner().invoke(cli, ["diagnose", path])
        assert result.exit_code == 1
        assert "Decode failed: InsufficientContrast" in result.output

    def test_config_file(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text("[codec]\nredundancy_factor = 1.5\n")
        result = CliRunner().invoke(cli, ["--config", str(cfg), "info"])
        assert result.exit_code == 0
        assert "Total segments:   116" in result.output

    def test_encode_save(self, tmp_path):
        cfg = tmp_path / "config.toml"
        out = str(tmp_path / "border.png")
        result = CliRunner().invoke(cli, ["-c", str(cfg), "encode", "-o", out,
                                          "--border", "12", "--save"])
        assert result.exit_code == 0, result.output
        assert "border_px = 12" in cfg.read_text()
