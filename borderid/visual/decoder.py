"""Border decoder: recover the identifier from a row of pixels.

Steps:
1. Scan the row into color runs (nominal palette classification)
2. Locate the encoding from its start marker, end marker or calibration block
3. Calibrate thresholds from the calibration block
4. Recalibrate position/width at sub-pixel resolution
5. Verify the start marker, sample the data segments, check the end marker
6. Reed-Solomon correct the codeword

The decoder needs no knowledge of how the border was drawn: it only asks a
PixelSource for the color at an x coordinate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol, Sequence, Union

import numpy as np

from .codec import (
    CALIBRATION_SEGMENTS,
    CALIBRATION_START,
    DATA_START,
    IDENTIFIER_BYTES,
    MARKER_END_PATTERN,
    MARKER_SEGMENTS,
    MARKER_START_PATTERN,
    RGB,
    SEGMENTS_PER_BYTE,
    CodecConfig,
    GrayPalette,
    Palette,
    bytes_to_uuid,
    deinterleave_bytes,
)
from .ecc import ECCCodec, ReedSolomonError

logger = logging.getLogger(__name__)


class DecodeFailure(Exception):
    """The border could not be located or read."""


class MarkerNotFound(DecodeFailure):
    pass


class InsufficientContrast(DecodeFailure):
    """Calibration samples are too close together to separate the palette."""


class MarkerMismatch(DecodeFailure):
    pass


@dataclass
class DecoderConfig:
    tolerance: float = 20.0            # nominal match distance per channel
    min_range: float = 10.0            # RGB: min high-low median per channel
    min_level_gap: float = 3.0         # gray: min distance between levels
    start_marker_min: int = 4          # of 6
    end_marker_min: int = 4            # of 6
    recalibration_min: float = 5.0     # of 8
    ratio_tolerance: float = 0.3       # merged marker runs
    single_run_tolerance: float = 0.5  # single-segment marker runs
    calibration_max_mismatch: int = 1
    recalibrate: bool = True
    samples_per_segment: int = 1
    search_segments: float = 1.5       # recalibration offset range
    width_tolerance: float = 0.15      # recalibration / refinement width range
    width_step: float = 0.0125
    min_segment_px: float = 1.0
    max_candidates: int = 6


# ---------------------------------------------------------------------------
# Pixel sources
# ---------------------------------------------------------------------------

class PixelSource(Protocol):
    def sample(self, x: float) -> Optional[RGB]:
        """Color at column *x*, or None outside the image."""
        ...


class ListPixelSource:
    """Pixels from a sequence of (r, g, b) triples."""

    def __init__(self, pixels: Sequence[Sequence[int]]):
        self.pixels = pixels

    @property
    def width(self) -> int:
        return len(self.pixels)

    def sample(self, x: float) -> Optional[RGB]:
        i = int(np.floor(x))
        if i < 0 or i >= len(self.pixels):
            return None
        r, g, b = self.pixels[i][:3]
        return RGB(int(r), int(g), int(b))


class CallablePixelSource:
    """Wraps ``fn(x) -> (r, g, b) | None``."""

    def __init__(self, fn: Callable[[int], Optional[Sequence[int]]],
                 width: Optional[int] = None):
        self.fn = fn
        self.width = width

    def sample(self, x: float) -> Optional[RGB]:
        i = int(np.floor(x))
        if i < 0 or (self.width is not None and i >= self.width):
            return None
        value = self.fn(i)
        if value is None:
            return None
        r, g, b = value[:3]
        return RGB(int(r), int(g), int(b))


class ImageRowSource:
    """One row of an OpenCV image (BGR by default, grayscale accepted)."""

    def __init__(self, image: np.ndarray, y: int, bgr: bool = True):
        row = image[y]
        if row.ndim == 1:
            row = np.repeat(row[:, None], 3, axis=1)
        row = row[:, :3]
        if bgr:
            row = row[:, ::-1]
        self.row = row.astype(np.int16)
        self.y = y

    @property
    def width(self) -> int:
        return self.row.shape[0]

    def sample(self, x: float) -> Optional[RGB]:
        i = int(np.floor(x))
        if i < 0 or i >= self.row.shape[0]:
            return None
        r, g, b = self.row[i]
        return RGB(int(r), int(g), int(b))


SourceLike = Union[PixelSource, Callable, Sequence]


def as_pixel_source(obj: SourceLike) -> PixelSource:
    if hasattr(obj, "sample"):
        return obj
    if callable(obj):
        return CallablePixelSource(obj)
    return ListPixelSource(obj)


# ---------------------------------------------------------------------------
# Run scanning
# ---------------------------------------------------------------------------

@dataclass
class ColorRun:
    start: int
    end: int      # exclusive
    index: int

    @property
    def length(self) -> int:
        return self.end - self.start


def scan_runs(source: PixelSource, x0: float, x1: float, palette: Palette,
              tolerance: float = 20.0) -> list[ColorRun]:
    """Runs of equal nominal index over pixels [x0, x1).

    Pixels that don't look encoded end the current run.  Short glitches
    between two longer runs (anti-aliased boundaries) are split between
    their neighbours.
    """
    runs: list[ColorRun] = []
    current: Optional[ColorRun] = None
    for x in range(int(np.floor(x0)), int(np.ceil(x1))):
        color = source.sample(x)
        index = None if color is None else palette.nominal_index(color, tolerance)
        if index is None:
            current = None
            continue
        if current is not None and current.index == index and current.end == x:
            current.end = x + 1
        else:
            current = ColorRun(x, x + 1, index)
            runs.append(current)
    return _absorb_glitches(runs)


def _absorb_glitches(runs: list[ColorRun]) -> list[ColorRun]:
    if len(runs) < 3:
        return runs
    median = float(np.median([r.length for r in runs]))
    if median < 3:
        return runs
    limit = max(1, int(median // 4))

    out: list[ColorRun] = [ColorRun(runs[0].start, runs[0].end, runs[0].index)]
    i = 1
    while i < len(runs):
        run = runs[i]
        prev = out[-1]
        nxt = runs[i + 1] if i + 1 < len(runs) else None
        if (nxt is not None and run.length <= limit
                and prev.end == run.start and run.end == nxt.start
                and prev.length > 2 * run.length and nxt.length > 2 * run.length):
            if prev.index == nxt.index:
                prev.end = nxt.end
            else:
                mid = (run.start + run.end) // 2
                prev.end = mid
                out.append(ColorRun(mid, nxt.end, nxt.index))
            i += 2
            continue
        if prev.index == run.index and prev.end == run.start:
            prev.end = run.end
        else:
            out.append(ColorRun(run.start, run.end, run.index))
        i += 1
    return out


# ---------------------------------------------------------------------------
# Marker localization
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Geometry:
    start_x: float
    segment_width: float
    strategy: str

    def end_x(self, total_segments: int) -> float:
        return self.start_x + self.segment_width * total_segments


def _collapse(pattern: Sequence[int]) -> list[tuple[int, int]]:
    """[1,1,1,0,1,2] → [(1,3),(0,1),(1,1),(2,1)]."""
    out: list[tuple[int, int]] = []
    for idx in pattern:
        if out and out[-1][0] == idx:
            out[-1] = (idx, out[-1][1] + 1)
        else:
            out.append((idx, 1))
    return out


def _pattern_variants(pattern: Sequence[int]) -> list[list[tuple[int, int]]]:
    merged = _collapse(pattern)
    separate = [(idx, 1) for idx in pattern]
    return [merged] if merged == separate else [merged, separate]


def _match_runs(window: Sequence[ColorRun], pattern: Sequence[tuple[int, int]],
                cfg: DecoderConfig, open_first: bool = False,
                open_last: bool = False) -> Optional[tuple[float, float, float]]:
    """Check a window of runs against a collapsed marker pattern.

    Open ends may run longer than the marker (merged with a neighbouring
    segment of the same index).  Returns (unit, left, right) or None.
    """
    if len(window) != len(pattern):
        return None
    if any(run.index != idx for run, (idx, _) in zip(window, pattern)):
        return None

    lo = 1 if open_first else 0
    hi = len(window) - 1 if open_last else len(window)
    if lo >= hi:
        return None
    covered = sum(count for _, count in pattern[lo:hi])
    unit = (window[hi - 1].end - window[lo].start) / covered
    if unit < cfg.min_segment_px:
        return None

    for a, b in zip(window, window[1:]):
        if b.start - a.end > max(1.0, 0.5 * unit):
            return None

    def ratio_ok(run: ColorRun, count: int) -> bool:
        tol = cfg.ratio_tolerance if count > 1 else cfg.single_run_tolerance
        return abs(run.length / (count * unit) - 1) <= tol

    for k in range(lo, hi):
        if not ratio_ok(window[k], pattern[k][1]):
            return None

    left = float(window[0].start)
    right = float(window[-1].end)
    if open_first:
        run, count = window[0], pattern[0][1]
        tol = cfg.ratio_tolerance if count > 1 else cfg.single_run_tolerance
        if run.length < count * unit * (1 - tol):
            return None
        if not ratio_ok(run, count):
            left = window[0].end - count * unit
    if open_last:
        run, count = window[-1], pattern[-1][1]
        tol = cfg.ratio_tolerance if count > 1 else cfg.single_run_tolerance
        if run.length < count * unit * (1 - tol):
            return None
        if not ratio_ok(run, count):
            right = window[-1].start + count * unit
    return unit, left, right


def _find_pattern(runs: list[ColorRun], pattern: Sequence[int], cfg: DecoderConfig,
                  open_first: bool = False, open_last: bool = False,
                  backward: bool = False) -> Iterator[tuple[float, float, float]]:
    for variant in _pattern_variants(pattern):
        size = len(variant)
        starts = range(len(runs) - size + 1)
        if backward:
            starts = reversed(starts)
        for i in starts:
            hit = _match_runs(runs[i:i + size], variant, cfg, open_first, open_last)
            if hit is not None:
                yield hit


def _find_calibration_block(runs: list[ColorRun], expected: Sequence[int],
                            cfg: DecoderConfig) -> Iterator[tuple[float, float]]:
    """(unit, start_of_block) for every 8-run window that looks like calibration."""
    n = len(expected)
    for i in range(len(runs) - n + 1):
        window = runs[i:i + n]
        mismatches = sum(1 for run, idx in zip(window, expected) if run.index != idx)
        if mismatches > cfg.calibration_max_mismatch:
            continue
        unit = (window[-1].end - window[0].start) / n
        if unit < cfg.min_segment_px:
            continue
        if all(abs(run.length / unit - 1) <= cfg.single_run_tolerance
               for run in window):
            yield unit, float(window[0].start)


def _refine_width(runs: list[ColorRun], left: float, right: float,
                  anchor_left: bool, codec_cfg: CodecConfig,
                  cfg: DecoderConfig) -> Optional[float]:
    """Segment width from both markers, given one end fixed.

    Looks for the opposite marker within width_tolerance of where the
    fixed marker predicts it.
    """
    total = codec_cfg.total_segments
    palette = codec_cfg.palette
    predicted = right - left
    best: Optional[tuple[float, float]] = None
    if anchor_left:
        pattern = palette.marker_indices(MARKER_END_PATTERN)
        hits = _find_pattern(runs, pattern, cfg, open_first=True, open_last=True)
        edges = (hit[2] for hit in hits)
        spans = (edge - left for edge in edges)
    else:
        pattern = palette.marker_indices(MARKER_START_PATTERN)
        hits = _find_pattern(runs, pattern, cfg, open_first=True)
        edges = (hit[1] for hit in hits)
        spans = (right - edge for edge in edges)
    for span in spans:
        err = abs(span - predicted)
        if err <= cfg.width_tolerance * predicted and (best is None or err < best[0]):
            best = (err, span)
    if best is None:
        return None
    return best[1] / total


def find_candidates(source: PixelSource, region_start: float, region_width: float,
                    codec_cfg: CodecConfig | None = None,
                    cfg: DecoderConfig | None = None,
                    include_fallback: bool = True) -> list[Geometry]:
    """Candidate geometries, most trusted first."""
    codec_cfg = codec_cfg or CodecConfig()
    cfg = cfg or DecoderConfig()
    palette = codec_cfg.palette
    total = codec_cfg.total_segments

    margin = 0.1 * region_width
    runs = scan_runs(source, region_start - margin,
                     region_start + region_width + margin, palette, cfg.tolerance)
    logger.debug("scanned %d runs over [%.1f, %.1f)", len(runs),
                 region_start, region_start + region_width)

    candidates: list[Geometry] = []

    def add(geom: Geometry) -> None:
        for c in candidates:
            if (abs(c.start_x - geom.start_x) < 0.5
                    and abs(c.segment_width - geom.segment_width) * total < 0.5):
                return
        candidates.append(geom)

    start_pattern = palette.marker_indices(MARKER_START_PATTERN)
    for unit, left, _ in _find_pattern(runs, start_pattern, cfg):
        width = _refine_width(runs, left, left + unit * total, True, codec_cfg, cfg)
        if width is not None:
            add(Geometry(left, width, "start+end"))
        add(Geometry(left, unit, "start"))

    end_pattern = palette.marker_indices(MARKER_END_PATTERN)
    for unit, _, right in _find_pattern(runs, end_pattern, cfg,
                                        open_first=True, backward=True):
        width = _refine_width(runs, right - unit * total, right, False, codec_cfg, cfg)
        if width is not None:
            add(Geometry(right - width * total, width, "end+start"))
        add(Geometry(right - unit * total, unit, "end"))

    for unit, block_start in _find_calibration_block(
            runs, palette.calibration_indices, cfg):
        add(Geometry(block_start - CALIBRATION_START * unit, unit, "calibration"))

    candidates = candidates[:cfg.max_candidates]
    if include_fallback and region_width > 0:
        add(Geometry(float(region_start), region_width / total, "region"))
    return candidates


def find_encoding_by_markers(source: SourceLike, region_start: float,
                             region_width: float,
                             codec_cfg: CodecConfig | None = None,
                             cfg: DecoderConfig | None = None) -> Optional[Geometry]:
    """Best marker-derived geometry, or None when no marker is visible."""
    candidates = find_candidates(as_pixel_source(source), region_start,
                                 region_width, codec_cfg, cfg,
                                 include_fallback=False)
    return candidates[0] if candidates else None


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------

class ChannelCalibration:
    """Per-channel thresholds midway between the low and high medians."""

    def __init__(self, thresholds: Sequence[float], ranges: Sequence[float]):
        self.thresholds = tuple(thresholds)
        self.ranges = tuple(ranges)

    def classify(self, color: Sequence[float]) -> int:
        index = 0
        for bit in range(3):
            if color[bit] > self.thresholds[bit]:
                index |= 1 << bit
        return index

    def __repr__(self) -> str:
        return (f"ChannelCalibration(thresholds={self.thresholds}, "
                f"ranges={self.ranges})")


class LevelCalibration:
    """Observed luminance of each grey level; nearest level wins."""

    def __init__(self, levels: Sequence[float]):
        self.levels = tuple(levels)

    def classify(self, color: Sequence[float]) -> int:
        lum = (color[0] + color[1] + color[2]) / 3
        return int(np.argmin([abs(lum - v) for v in self.levels]))

    def __repr__(self) -> str:
        return f"LevelCalibration(levels={self.levels})"


Calibration = Union[ChannelCalibration, LevelCalibration]


def build_calibrated_index(samples: Sequence[Optional[Sequence[float]]],
                           palette: Palette,
                           cfg: DecoderConfig | None = None) -> Calibration:
    """Calibrate against the 8 calibration-block samples.

    Raises InsufficientContrast if the palette can't be separated.
    """
    cfg = cfg or DecoderConfig()
    pairs = [(idx, s) for idx, s in zip(palette.calibration_indices, samples)
             if s is not None]

    if isinstance(palette, GrayPalette):
        levels = []
        for level in range(len(palette)):
            lums = [sum(s[:3]) / 3 for idx, s in pairs if idx == level]
            if not lums:
                raise InsufficientContrast(f"no calibration sample for level {level}")
            levels.append(float(np.mean(lums)))
        for a, b in zip(levels, levels[1:]):
            if b - a < cfg.min_level_gap:
                raise InsufficientContrast(f"grey levels too close: {levels}")
        return LevelCalibration(levels)

    thresholds, ranges = [], []
    for bit in range(3):
        low = [s[bit] for idx, s in pairs if not idx & (1 << bit)]
        high = [s[bit] for idx, s in pairs if idx & (1 << bit)]
        if not low or not high:
            raise InsufficientContrast(f"channel {bit} missing calibration samples")
        low_med, high_med = float(np.median(low)), float(np.median(high))
        spread = high_med - low_med
        if spread < cfg.min_range:
            raise InsufficientContrast(
                f"channel {bit} range {spread:.1f} < {cfg.min_range}")
        thresholds.append((low_med + high_med) / 2)
        ranges.append(spread)
    return ChannelCalibration(thresholds, ranges)


def find_index_calibrated(color: Sequence[float], calibration: Calibration) -> int:
    return calibration.classify(color)


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

@dataclass
class DecodeResult:
    identifier: bytes
    end_marker_matched: bool
    errors_corrected: bool
    confidence: float
    geometry: Geometry

    @property
    def uuid(self) -> str:
        return bytes_to_uuid(self.identifier)


class BorderDecoder:
    """Decodes an encoded border edge from a pixel source."""

    def __init__(self, codec_cfg: CodecConfig | None = None,
                 decoder_cfg: Optional[DecoderConfig] = None):
        self.codec_cfg = codec_cfg or CodecConfig()
        self.cfg = decoder_cfg or DecoderConfig()
        self.palette = self.codec_cfg.palette
        self.ecc = ECCCodec.for_payload(IDENTIFIER_BYTES, self.codec_cfg.ecc_config)
        self.total = self.codec_cfg.total_segments
        self._start = self.palette.marker_indices(MARKER_START_PATTERN)
        self._end = self.palette.marker_indices(MARKER_END_PATTERN)
        self._end_offset = self.codec_cfg.end_marker_start

    def decode(self, source: SourceLike, region_start: float = 0,
               region_width: Optional[float] = None) -> Optional[DecodeResult]:
        """Returns the decoded result, or None if nothing could be read."""
        try:
            return self.decode_or_raise(source, region_start, region_width)
        except (DecodeFailure, ReedSolomonError) as exc:
            logger.debug("decode failed: %s", exc)
            return None

    def decode_or_raise(self, source: SourceLike, region_start: float = 0,
                        region_width: Optional[float] = None) -> DecodeResult:
        source = as_pixel_source(source)
        if region_width is None:
            region_width = getattr(source, "width", None)
            if region_width is None:
                raise ValueError("region_width is required for this source")
            region_width -= region_start

        candidates = find_candidates(source, region_start, region_width,
                                     self.codec_cfg, self.cfg)
        if not candidates:
            raise MarkerNotFound("no marker, calibration block or region to try")

        last_error: Exception = MarkerNotFound("no candidate decoded")
        for geom in candidates:
            try:
                result = self._decode_geometry(source, geom)
            except (DecodeFailure, ReedSolomonError) as exc:
                logger.debug("candidate %s failed: %s", geom, exc)
                last_error = exc
                continue
            logger.debug("decoded %s via %s", result.uuid, geom.strategy)
            return result
        raise last_error

    # -- sampling --------------------------------------------------------

    def _sample_segment(self, source: PixelSource, start: float, width: float,
                        segment: int) -> Optional[tuple[float, float, float]]:
        n = max(1, self.cfg.samples_per_segment)
        if n == 1:
            color = source.sample(start + (segment + 0.5) * width)
            return None if color is None else tuple(float(c) for c in color)
        got = []
        for k in range(n):
            # spread over the central half of the segment
            x = start + (segment + 0.25 + 0.5 * (k + 0.5) / n) * width
            color = source.sample(x)
            if color is not None:
                got.append(color)
        if not got:
            return None
        return tuple(float(v) for v in np.mean(np.array(got, dtype=np.float64), axis=0))

    def _calibration_samples(self, source, start, width):
        return [self._sample_segment(source, start, width, CALIBRATION_START + i)
                for i in range(CALIBRATION_SEGMENTS)]

    # -- recalibration ---------------------------------------------------

    def _score(self, source, start, width, classify) -> tuple[float, int]:
        cal = 0.0
        for i, expected in enumerate(self.palette.calibration_indices):
            color = self._sample_segment(source, start, width, CALIBRATION_START + i)
            if color is None:
                continue
            got = classify(color)
            if got == expected:
                cal += 1
            elif abs(got - expected) == 1:
                cal += 0.5
        end = 0
        for i, expected in enumerate(self._end):
            color = self._sample_segment(source, start, width, self._end_offset + i)
            if color is not None and classify(color) == expected:
                end += 1
        return cal, end

    def _recalibrate(self, source, geom: Geometry,
                     calibration: Optional[Calibration]) -> Geometry:
        classify = (calibration.classify if calibration is not None
                    else self.palette.classify_nominal)
        w = geom.segment_width
        initial = self._score(source, geom.start_x, w, classify)
        if initial == (float(CALIBRATION_SEGMENTS), MARKER_SEGMENTS):
            return geom

        step = max(0.5, w / 8)
        reach = int(np.floor(self.cfg.search_segments * w / step))
        offsets = sorted((k * step for k in range(-reach, reach + 1)), key=abs)
        wsteps = int(round(self.cfg.width_tolerance / self.cfg.width_step))
        scales = sorted((k * self.cfg.width_step for k in range(-wsteps, wsteps + 1)),
                        key=abs)

        best, best_score = geom, initial
        for scale in scales:
            width = w * (1 + scale)
            if width < self.cfg.min_segment_px:
                continue
            for offset in offsets:
                score = self._score(source, geom.start_x + offset, width, classify)
                if score > best_score:
                    best_score = score
                    best = Geometry(geom.start_x + offset, width, geom.strategy)

        if best is not geom and best_score[0] >= self.cfg.recalibration_min \
                and best_score > initial:
            logger.debug("recalibrated %s -> %s (score %s -> %s)",
                         geom, best, initial, best_score)
            return best
        return geom

    # -- full decode -----------------------------------------------------

    def _decode_geometry(self, source: PixelSource, geom: Geometry) -> DecodeResult:
        try:
            calibration: Optional[Calibration] = build_calibrated_index(
                self._calibration_samples(source, geom.start_x, geom.segment_width),
                self.palette, self.cfg)
        except InsufficientContrast as exc:
            logger.debug("initial calibration at %s: %s", geom, exc)
            calibration = None

        if self.cfg.recalibrate:
            refined = self._recalibrate(source, geom, calibration)
            if refined is not geom or calibration is None:
                geom = refined
                calibration = build_calibrated_index(
                    self._calibration_samples(source, geom.start_x,
                                              geom.segment_width),
                    self.palette, self.cfg)
        elif calibration is None:
            raise InsufficientContrast(f"calibration failed at {geom}")
        logger.debug("geometry %s calibration %r", geom, calibration)

        start, width = geom.start_x, geom.segment_width

        def read(segment: int) -> Optional[int]:
            color = self._sample_segment(source, start, width, segment)
            return None if color is None else calibration.classify(color)

        start_hits = sum(1 for i, exp in enumerate(self._start) if read(i) == exp)
        if start_hits < self.cfg.start_marker_min:
            raise MarkerMismatch(
                f"start marker {start_hits}/{MARKER_SEGMENTS} at {geom}")

        cal_hits = sum(1 for i, exp in enumerate(self.palette.calibration_indices)
                       if read(CALIBRATION_START + i) == exp)

        n_bytes = self.codec_cfg.total_bytes
        indices = []
        for i in range(SEGMENTS_PER_BYTE * n_bytes):
            idx = read(DATA_START + i)
            indices.append(0 if idx is None else idx)
        received = bytes(
            self.palette.indices_to_byte(indices[i:i + SEGMENTS_PER_BYTE])
            for i in range(0, len(indices), SEGMENTS_PER_BYTE))

        end_hits = sum(1 for i, exp in enumerate(self._end)
                       if read(self._end_offset + i) == exp)
        end_ok = end_hits >= self.cfg.end_marker_min

        stride = self.codec_cfg.interleave_stride
        if stride > 1:
            received = deinterleave_bytes(received, stride)

        corrected = self.ecc.correct(received)
        n_errors = sum(1 for a, b in zip(received, corrected) if a != b)

        capacity = max(1, self.ecc.nsym // 2)
        quality = (start_hits / MARKER_SEGMENTS + cal_hits / CALIBRATION_SEGMENTS
                   + end_hits / MARKER_SEGMENTS) / 3
        confidence = round(quality * (1 - 0.5 * min(1.0, n_errors / capacity)), 3)

        return DecodeResult(
            identifier=corrected[:IDENTIFIER_BYTES],
            end_marker_matched=end_ok,
            errors_corrected=n_errors > 0,
            confidence=confidence,
            geometry=geom,
        )


def decode_from_pixel_row(source: SourceLike, region_start: float,
                          region_width: float,
                          config: CodecConfig | None = None,
                          decoder_config: Optional[DecoderConfig] = None,
                          ) -> Optional[DecodeResult]:
    """Decode one border edge; None if it can't be read."""
    return BorderDecoder(config, decoder_config).decode(
        source, region_start, region_width)
