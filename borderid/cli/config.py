"""Configuration management - load/save TOML config files."""

from __future__ import annotations

import typing
from dataclasses import dataclass, fields
from pathlib import Path

from ..visual.codec import CodecConfig, PaletteMode
from ..visual.decoder import DecoderConfig
from ..visual.renderer import RendererConfig

DEFAULT_CONFIG_PATH = Path("~/.config/borderid/config.toml").expanduser()


@dataclass
class AppConfig:
    """Top-level application configuration."""

    # Segment codec
    codec_redundancy_factor: float = 2.0
    codec_palette_mode: str = PaletteMode.RGB.value
    codec_interleave_stride: int = 0

    # Renderer
    render_width: int = 1184
    render_height: int = 200
    render_border_px: int = 8
    render_border_radius: int = 0

    # Decoder
    decode_tolerance: float = 20.0
    decode_min_range: float = 10.0
    decode_samples_per_segment: int = 1
    decode_recalibrate: bool = True

    # Logging
    log_level: str = "INFO"

    def to_codec_config(self) -> CodecConfig:
        return CodecConfig(
            redundancy_factor=self.codec_redundancy_factor,
            palette_mode=PaletteMode(self.codec_palette_mode),
            interleave_stride=self.codec_interleave_stride,
        )

    def to_renderer_config(self) -> RendererConfig:
        return RendererConfig(
            border_px=self.render_border_px,
            border_radius=self.render_border_radius,
        )

    def to_decoder_config(self) -> DecoderConfig:
        return DecoderConfig(
            tolerance=self.decode_tolerance,
            min_range=self.decode_min_range,
            samples_per_segment=self.decode_samples_per_segment,
            recalibrate=self.decode_recalibrate,
        )


def load_config(path: Path | str | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if the file doesn't exist.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    path = Path(path)

    config = AppConfig()

    if not path.exists():
        return config

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(path, "rb") as f:
        data = tomllib.load(f)

    # Flatten nested sections
    flat = _flatten_toml(data)

    # annotations are strings under `from __future__ import annotations`
    hints = typing.get_type_hints(AppConfig)
    for fld in fields(AppConfig):
        if fld.name in flat:
            kind = hints[fld.name]
            value = flat[fld.name]
            setattr(config, fld.name, kind(value)
                    if kind in (int, float, str, bool) else value)

    PaletteMode(config.codec_palette_mode)  # reject unknown modes early
    return config


def _toml_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def save_config(config: AppConfig, path: Path | str | None = None) -> None:
    """Save configuration to a TOML file, one section per field prefix."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)

    sections: dict[str, list[str]] = {}
    for fld in fields(AppConfig):
        section, key = fld.name.split("_", 1)
        sections.setdefault(section, []).append(
            f"{key} = {_toml_value(getattr(config, fld.name))}")

    lines = ["# borderid configuration", ""]
    for section, entries in sections.items():
        lines.append(f"[{section}]")
        lines.extend(entries)
        lines.append("")

    with open(path, "w") as f:
        f.write("\n".join(lines))


def _flatten_toml(data: dict, prefix: str = "") -> dict:
    """Flatten nested TOML dict to a flat dict."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result.update(_flatten_toml(value, f"{prefix}{key}_"))
        else:
            result[f"{prefix}{key}"] = value
    return result
