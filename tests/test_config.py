"""Tests for TOML configuration loading and saving."""

import pytest

from borderid.cli.config import AppConfig, load_config, save_config
from borderid.visual.codec import PaletteMode


class TestAppConfig:
    def test_defaults(self):
        config = AppConfig()
        codec = config.to_codec_config()
        assert codec.redundancy_factor == 2.0
        assert codec.palette_mode is PaletteMode.RGB
        assert codec.total_segments == 148
        assert config.to_renderer_config().border_px == 8
        assert config.to_decoder_config().tolerance == 20.0

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.toml") == AppConfig()

    def test_load_sections(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[codec]\n"
            "redundancy_factor = 3\n"
            'palette_mode = "gray4"\n'
            "\n"
            "[render]\n"
            "border_px = 12\n"
            "\n"
            "[decode]\n"
            "samples_per_segment = 3\n"
            "recalibrate = false\n"
            "\n"
            "[log]\n"
            'level = "DEBUG"\n'
        )
        config = load_config(path)
        assert config.codec_redundancy_factor == 3.0
        assert isinstance(config.codec_redundancy_factor, float)
        assert config.to_codec_config().palette_mode is PaletteMode.GRAY4
        assert config.render_border_px == 12
        assert config.decode_samples_per_segment == 3
        assert config.decode_recalibrate is False
        assert config.log_level == "DEBUG"

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[codec]\nshiny = 1\n")
        assert load_config(path) == AppConfig()

    def test_bad_palette_mode(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[codec]\npalette_mode = "cmyk"\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_save_load_roundtrip(self, tmp_path):
        path = tmp_path / "sub" / "config.toml"
        config = AppConfig(codec_interleave_stride=4, render_border_radius=16,
                           decode_recalibrate=False, log_level="WARNING")
        save_config(config, path)
        assert "[codec]" in path.read_text()
        assert load_config(path) == config
