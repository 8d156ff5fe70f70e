"""Image scanner: find and decode encoded border rows anywhere in an image.

Every row is checked with a vectorised mask of encoded-looking pixels; rows
with enough of them are handed to the BorderDecoder over the span between
the first and last such pixel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .codec import CodecConfig
from .decoder import BorderDecoder, DecodeResult, DecoderConfig, ImageRowSource

logger = logging.getLogger(__name__)

NEAR_HIT_ROWS = 3


@dataclass
class ScanHit:
    row: int
    region_start: int
    region_width: int
    result: DecodeResult

    @property
    def uuid(self) -> str:
        return self.result.uuid


def candidate_rows(image: np.ndarray, codec_cfg: CodecConfig | None = None,
                   decoder_cfg: Optional[DecoderConfig] = None,
                   ) -> list[tuple[int, int, int]]:
    """(row, first, last + 1) for rows with at least one pixel per segment."""
    codec_cfg = codec_cfg or CodecConfig()
    decoder_cfg = decoder_cfg or DecoderConfig()
    rgb = image[:, :, :3][:, :, ::-1] if image.ndim == 3 else \
        np.repeat(image[:, :, None], 3, axis=2)
    mask = codec_cfg.palette.encoded_mask(rgb, decoder_cfg.tolerance)
    counts = mask.sum(axis=1)

    rows = []
    for y in np.nonzero(counts >= codec_cfg.total_segments)[0]:
        xs = np.nonzero(mask[y])[0]
        rows.append((int(y), int(xs[0]), int(xs[-1]) + 1))
    return rows


def scan_image(image: np.ndarray, codec_cfg: CodecConfig | None = None,
               decoder_cfg: Optional[DecoderConfig] = None,
               max_hits: Optional[int] = None) -> list[ScanHit]:
    """Decode every distinct identifier found in *image* (BGR)."""
    codec_cfg = codec_cfg or CodecConfig()
    decoder = BorderDecoder(codec_cfg, decoder_cfg)

    hits: list[ScanHit] = []
    seen: set[bytes] = set()
    last_hit_row: Optional[int] = None

    rows = candidate_rows(image, codec_cfg, decoder.cfg)
    logger.debug("%d candidate rows", len(rows))
    for y, first, end in rows:
        if last_hit_row is not None and abs(y - last_hit_row) <= NEAR_HIT_ROWS:
            continue
        result = decoder.decode(ImageRowSource(image, y), first, end - first)
        if result is None:
            continue
        last_hit_row = y
        if result.identifier in seen:
            continue
        seen.add(result.identifier)
        logger.debug("row %d: %s (confidence %.2f)", y, result.uuid, result.confidence)
        hits.append(ScanHit(y, first, end - first, result))
        if max_hits is not None and len(hits) >= max_hits:
            break
    return hits
