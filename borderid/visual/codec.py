"""Segment codec: map a UUID to an ordered sequence of border colors.

An encoded border edge is a row of equal-width color segments:

    [start marker: 6] [calibration block: 8] [data: 4 per byte] [end marker: 6]

The data is the 16-byte identifier followed by its Reed-Solomon parity
(148 segments with the default 2x redundancy).

Palettes (selected by PaletteMode):
- RGB   → 8 colors, each channel base ± offset; bit0=R, bit1=G, bit2=B
- GRAY8 → 8 grey levels, luminance only
- GRAY4 → 4 widely spaced grey levels, 2 bits per segment

RGB and GRAY8 spend two segments per hex digit: ``(digit >> 3) & 1`` and
``digit & 7``.  GRAY4 spends four 2-bit symbols per byte.
"""

from __future__ import annotations

import uuid as uuidlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Sequence

import numpy as np

from .ecc import ECCCodec, ECCConfig, EncodingError, calculate_parity_bytes

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

IDENTIFIER_BYTES = 16

MARKER_START_PATTERN = (1, 1, 1, 0, 1, 2)
MARKER_END_PATTERN = (2, 1, 0, 1, 1, 1)
MARKER_SEGMENTS = len(MARKER_START_PATTERN)
CALIBRATION_SEGMENTS = 8
SEGMENTS_PER_BYTE = 4

CALIBRATION_START = MARKER_SEGMENTS                          # 6
DATA_START = CALIBRATION_START + CALIBRATION_SEGMENTS        # 14

BASE_LEVEL = 133
CHANNEL_OFFSET = 12
NEUTRAL_GRAY = (BASE_LEVEL, BASE_LEVEL, BASE_LEVEL)


class RGB(NamedTuple):
    r: int
    g: int
    b: int


class PaletteMode(str, Enum):
    RGB = "rgb"
    GRAY8 = "gray8"
    GRAY4 = "gray4"


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@dataclass
class CodecConfig:
    """Configuration for the segment codec."""
    redundancy_factor: float = 2.0
    palette_mode: PaletteMode = PaletteMode.RGB
    interleave_stride: int = 0      # 0 or 1 disables byte interleaving
    base: int = BASE_LEVEL          # RGB: neutral channel value
    offset: int = CHANNEL_OFFSET    # RGB: ± per channel (121 / 145)
    gray_base: int = 80             # GRAY8: level 0
    gray_step: int = 14             # GRAY8: distance between levels
    gray_min: int = 60              # GRAY4: darkest level
    gray_max: int = 200             # GRAY4: brightest level

    def __post_init__(self):
        self.palette_mode = PaletteMode(self.palette_mode)

    @property
    def ecc_config(self) -> ECCConfig:
        return ECCConfig(redundancy_factor=self.redundancy_factor)

    @property
    def parity_bytes(self) -> int:
        return calculate_parity_bytes(IDENTIFIER_BYTES, self.redundancy_factor)

    @property
    def total_bytes(self) -> int:
        return IDENTIFIER_BYTES + self.parity_bytes

    @property
    def total_segments(self) -> int:
        return calculate_total_segments(self)

    @property
    def end_marker_start(self) -> int:
        return DATA_START + SEGMENTS_PER_BYTE * self.total_bytes

    @property
    def palette(self) -> "Palette":
        return make_palette(self)


def calculate_total_segments(config: CodecConfig | None = None) -> int:
    """6 + 8 + 4 * (16 + parity) + 6."""
    config = config or CodecConfig()
    return (MARKER_SEGMENTS + CALIBRATION_SEGMENTS
            + SEGMENTS_PER_BYTE * config.total_bytes + MARKER_SEGMENTS)


DEFAULT_CONFIG = CodecConfig()
TOTAL_SEGMENTS = calculate_total_segments(DEFAULT_CONFIG)


# ---------------------------------------------------------------------------
# Palettes
# ---------------------------------------------------------------------------

class Palette(ABC):
    """Index ↔ color mapping plus the nominal (uncalibrated) classifier."""

    mode: PaletteMode
    colors: tuple[RGB, ...]
    calibration_indices: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.colors)

    def color(self, index: int) -> RGB:
        return self.colors[index % len(self.colors)]

    def marker_indices(self, pattern: Sequence[int]) -> list[int]:
        return [i % len(self.colors) for i in pattern]

    def byte_to_indices(self, byte: int) -> list[int]:
        high, low = (byte >> 4) & 0xF, byte & 0xF
        return [*hex_digit_to_indices(high), *hex_digit_to_indices(low)]

    def indices_to_byte(self, indices: Sequence[int]) -> int:
        s0, s1, s2, s3 = indices
        return (indices_to_hex_digit(s0, s1) << 4) | indices_to_hex_digit(s2, s3)

    @abstractmethod
    def nominal_index(self, color: Sequence[float],
                      tolerance: float) -> Optional[int]:
        """Palette index of *color*, or None if it doesn't look encoded."""
        raise NotImplementedError

    @abstractmethod
    def classify_nominal(self, color: Sequence[float]) -> int:
        """Palette index of *color* without any encoded/not-encoded check."""
        raise NotImplementedError

    @abstractmethod
    def encoded_mask(self, rgb: np.ndarray, tolerance: float) -> np.ndarray:
        """Vectorised ``nominal_index(...) is not None`` over an (..., 3) RGB array."""
        raise NotImplementedError


class ChannelPalette(Palette):
    """8 colors; each index bit pushes one channel above or below base."""

    mode = PaletteMode.RGB

    def __init__(self, base: int = BASE_LEVEL, offset: int = CHANNEL_OFFSET):
        self.base = base
        self.offset = offset
        self.low = base - offset
        self.high = base + offset
        self.colors = tuple(
            RGB(base + (offset if i & 1 else -offset),
                base + (offset if i & 2 else -offset),
                base + (offset if i & 4 else -offset))
            for i in range(8))
        self.calibration_indices = tuple(range(8))

    def _bits(self, color: Sequence[float]) -> int:
        r, g, b = color[:3]
        return ((1 if r > self.base else 0)
                | (2 if g > self.base else 0)
                | (4 if b > self.base else 0))

    def nominal_index(self, color, tolerance):
        for v in color[:3]:
            if abs(v - self.low) >= tolerance and abs(v - self.high) >= tolerance:
                return None
        return self._bits(color)

    def classify_nominal(self, color):
        return self._bits(color)

    def encoded_mask(self, rgb, tolerance):
        v = rgb.astype(np.int16)
        near = (np.abs(v - self.low) < tolerance) | (np.abs(v - self.high) < tolerance)
        return near.all(axis=-1)


class GrayPalette(Palette):
    """Grey levels; classification by luminance only."""

    def __init__(self, levels: Sequence[int], mode: PaletteMode,
                 calibration_indices: Sequence[int]):
        self.mode = mode
        self.levels = tuple(int(round(v)) for v in levels)
        self.colors = tuple(RGB(v, v, v) for v in self.levels)
        self.calibration_indices = tuple(calibration_indices)

    def byte_to_indices(self, byte):
        if len(self.levels) == 4:
            return [(byte >> 6) & 3, (byte >> 4) & 3, (byte >> 2) & 3, byte & 3]
        return super().byte_to_indices(byte)

    def indices_to_byte(self, indices):
        if len(self.levels) == 4:
            s0, s1, s2, s3 = indices
            return ((s0 & 3) << 6) | ((s1 & 3) << 4) | ((s2 & 3) << 2) | (s3 & 3)
        return super().indices_to_byte(indices)

    def _nearest(self, lum: float) -> tuple[int, float]:
        dists = [abs(lum - v) for v in self.levels]
        idx = int(np.argmin(dists))
        return idx, dists[idx]

    def nominal_index(self, color, tolerance):
        r, g, b = color[:3]
        if max(r, g, b) - min(r, g, b) >= tolerance:
            return None
        idx, dist = self._nearest((r + g + b) / 3)
        if dist >= tolerance:
            return None
        return idx

    def classify_nominal(self, color):
        r, g, b = color[:3]
        return self._nearest((r + g + b) / 3)[0]

    def encoded_mask(self, rgb, tolerance):
        v = rgb.astype(np.int16)
        spread = v.max(axis=-1) - v.min(axis=-1)
        lum = v.mean(axis=-1)
        levels = np.array(self.levels, dtype=np.float64)
        dist = np.abs(lum[..., None] - levels).min(axis=-1)
        return (spread < tolerance) & (dist < tolerance)


def make_palette(config: CodecConfig | None = None) -> Palette:
    config = config or CodecConfig()
    if config.palette_mode is PaletteMode.GRAY8:
        levels = [config.gray_base + i * config.gray_step for i in range(8)]
        return GrayPalette(levels, PaletteMode.GRAY8, range(8))
    if config.palette_mode is PaletteMode.GRAY4:
        step = (config.gray_max - config.gray_min) / 3
        levels = [config.gray_min + i * step for i in range(4)]
        return GrayPalette(levels, PaletteMode.GRAY4, [0, 1, 2, 3, 0, 1, 2, 3])
    return ChannelPalette(config.base, config.offset)


INDEX_COLORS = ChannelPalette().colors


# ---------------------------------------------------------------------------
# Digit / byte helpers
# ---------------------------------------------------------------------------

def hex_digit_to_indices(digit: int) -> tuple[int, int]:
    """Hex digit (0-15) → (high index 0-1, low index 0-7)."""
    return (digit >> 3) & 1, digit & 7


def indices_to_hex_digit(high: int, low: int) -> int:
    return ((high & 1) << 3) | (low & 7)


def hex_digit_to_colors(digit: int) -> tuple[RGB, RGB]:
    high, low = hex_digit_to_indices(digit)
    return INDEX_COLORS[high], INDEX_COLORS[low]


def interleave_bytes(data: bytes, stride: int = 4) -> bytes:
    """Reorder so that bytes ``stride`` apart end up adjacent.

    Bytes 0..7 with stride 4 become 0,4,1,5,2,6,3,7, so a burst of
    corrupted segments is spread over several RS symbols.
    """
    if stride <= 1:
        return bytes(data)
    groups = -(-len(data) // stride)
    out = bytearray()
    for offset in range(stride):
        for group in range(groups):
            src = group * stride + offset
            if src < len(data):
                out.append(data[src])
    return bytes(out)


def deinterleave_bytes(data: bytes, stride: int = 4) -> bytes:
    """Inverse of :func:`interleave_bytes`."""
    if stride <= 1:
        return bytes(data)
    groups = -(-len(data) // stride)
    out = bytearray(len(data))
    pos = 0
    for offset in range(stride):
        for group in range(groups):
            dst = group * stride + offset
            if dst < len(data):
                out[dst] = data[pos]
                pos += 1
    return bytes(out)


# ---------------------------------------------------------------------------
# UUID helpers
# ---------------------------------------------------------------------------

def uuid_to_bytes(value: str) -> bytes:
    try:
        return uuidlib.UUID(hex=value.strip()).bytes
    except (ValueError, AttributeError) as exc:
        raise EncodingError(f"invalid UUID {value!r}") from exc


def bytes_to_uuid(data: bytes) -> str:
    if len(data) != IDENTIFIER_BYTES:
        raise EncodingError(f"UUID must be exactly {IDENTIFIER_BYTES} bytes")
    return str(uuidlib.UUID(bytes=bytes(data)))


def generate_uuid() -> str:
    """Random version-4 UUID string."""
    return str(uuidlib.uuid4())


# ---------------------------------------------------------------------------
# Encoder
# ---------------------------------------------------------------------------

def encode_codeword(identifier: bytes, config: CodecConfig | None = None) -> bytes:
    """RS-encode (and optionally interleave) the 16-byte identifier."""
    config = config or CodecConfig()
    if len(identifier) != IDENTIFIER_BYTES:
        raise EncodingError(
            f"identifier must be exactly {IDENTIFIER_BYTES} bytes, got {len(identifier)}")
    ecc = ECCCodec.for_payload(IDENTIFIER_BYTES, config.ecc_config)
    codeword = ecc.encode(bytes(identifier))
    if config.interleave_stride > 1:
        codeword = interleave_bytes(codeword, config.interleave_stride)
    return codeword


def identifier_to_indices(identifier: bytes,
                          config: CodecConfig | None = None) -> list[int]:
    """Palette indices for every segment of the border."""
    config = config or CodecConfig()
    palette = config.palette
    indices = palette.marker_indices(MARKER_START_PATTERN)
    indices.extend(palette.calibration_indices)
    for byte in encode_codeword(identifier, config):
        indices.extend(palette.byte_to_indices(byte))
    indices.extend(palette.marker_indices(MARKER_END_PATTERN))
    return indices


def encode_identifier(identifier: bytes,
                      config: CodecConfig | None = None) -> list[RGB]:
    """Ordered segment colors for a 16-byte identifier."""
    config = config or CodecConfig()
    palette = config.palette
    return [palette.color(i) for i in identifier_to_indices(identifier, config)]


def uuid_to_color_sequence(value: str,
                           config: CodecConfig | None = None) -> list[RGB]:
    return encode_identifier(uuid_to_bytes(value), config)
