"""Border renderer: paint an encoded border into a BGR image using numpy/OpenCV."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import cv2
import numpy as np

from .codec import NEUTRAL_GRAY, RGB, CodecConfig, encode_identifier
from .ecc import EncodingError

log = logging.getLogger(__name__)


@dataclass
class RendererConfig:
    border_px: int = 8                      # thickness of every edge
    border_radius: int = 0                  # rounded corners; segments only on the straight part
    background: tuple = (255, 255, 255)     # interior fill (RGB)
    neutral: tuple = NEUTRAL_GRAY           # non-encoded edges (RGB)


def _bgr(color: Sequence[int]) -> tuple[int, int, int]:
    r, g, b = color[:3]
    return int(b), int(g), int(r)


def _fill_rounded_rect(img: np.ndarray, x0: int, y0: int, x1: int, y1: int,
                       radius: int, color: tuple) -> None:
    """Filled rectangle [x0, x1) x [y0, y1) with rounded corners, in place."""
    if x1 <= x0 or y1 <= y0:
        return
    r = max(0, min(radius, (x1 - x0) // 2, (y1 - y0) // 2))
    if r == 0:
        img[y0:y1, x0:x1] = color
        return
    img[y0:y1, x0 + r:x1 - r] = color
    img[y0 + r:y1 - r, x0:x1] = color
    for cx, cy in ((x0 + r, y0 + r), (x1 - 1 - r, y0 + r),
                   (x0 + r, y1 - 1 - r), (x1 - 1 - r, y1 - 1 - r)):
        cv2.circle(img, (cx, cy), r, color, thickness=-1, lineType=cv2.LINE_8)


def segment_width_for(width: int, codec_cfg: CodecConfig | None = None,
                      renderer_cfg: Optional[RendererConfig] = None) -> int:
    """Whole pixels per segment for an image *width* pixels wide."""
    codec_cfg = codec_cfg or CodecConfig()
    cfg = renderer_cfg or RendererConfig()
    straight = width - 2 * cfg.border_radius
    return straight // codec_cfg.total_segments


def encoded_region(width: int, codec_cfg: CodecConfig | None = None,
                   renderer_cfg: Optional[RendererConfig] = None) -> tuple[int, int]:
    """(region_start, region_width) of the encoding on the top edge."""
    codec_cfg = codec_cfg or CodecConfig()
    cfg = renderer_cfg or RendererConfig()
    seg = segment_width_for(width, codec_cfg, cfg)
    return cfg.border_radius, seg * codec_cfg.total_segments


def render_strip(colors: Sequence[RGB], segment_px: int, height: int = 1,
                 fill_to: Optional[int] = None) -> np.ndarray:
    """Bare strip of segments, *segment_px* wide each.

    With *fill_to*, the strip is padded to that width with the last color.
    """
    if segment_px < 1:
        raise EncodingError("segment width must be at least 1 px")
    bgr = np.array([_bgr(c) for c in colors], dtype=np.uint8)
    row = np.repeat(bgr, segment_px, axis=0)
    if fill_to is not None and fill_to > row.shape[0]:
        pad = np.repeat(bgr[-1:], fill_to - row.shape[0], axis=0)
        row = np.concatenate([row, pad], axis=0)
    return np.repeat(row[None, :, :], height, axis=0)


def render_border(identifier: bytes, width: int, height: int,
                  codec_cfg: CodecConfig | None = None,
                  renderer_cfg: Optional[RendererConfig] = None) -> np.ndarray:
    """Image of *width* x *height* whose top border edge encodes *identifier*.

    Returns a BGR uint8 array (OpenCV convention).
    """
    codec_cfg = codec_cfg or CodecConfig()
    cfg = renderer_cfg or RendererConfig()
    colors = encode_identifier(identifier, codec_cfg)

    seg = segment_width_for(width, codec_cfg, cfg)
    if seg < 1:
        raise EncodingError(
            f"width {width} too small for {len(colors)} segments "
            f"(radius {cfg.border_radius})")
    if height <= 2 * cfg.border_px:
        raise EncodingError(f"height {height} too small for a {cfg.border_px}px border")

    img = np.full((height, width, 3), _bgr(cfg.background), dtype=np.uint8)
    r = cfg.border_radius
    b = cfg.border_px
    _fill_rounded_rect(img, 0, 0, width, height, r, _bgr(cfg.neutral))
    _fill_rounded_rect(img, b, b, width - b, height - b, max(0, r - b),
                       _bgr(cfg.background))

    strip = render_strip(colors, seg, height=b, fill_to=width - 2 * r)
    img[0:b, r:width - r] = strip

    log.debug("Rendered %dx%d border: %d segments x %dpx, radius %d",
              width, height, len(colors), seg, r)
    return img
