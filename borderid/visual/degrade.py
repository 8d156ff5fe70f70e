"""Degradation simulator: what happens to a border between render and decode.

Pipeline, each step optional via DegradeConfig:
  1. Brightness / contrast shift
  2. Gaussian blur
  3. Resize (screenshot at another zoom level)
  4. Gaussian noise
  5. JPEG re-encode
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

_INTERPOLATION = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "area": cv2.INTER_AREA,
    "cubic": cv2.INTER_CUBIC,
}


@dataclass
class DegradeConfig:
    """Configuration for degradation effects. None / 0 disables a step."""

    brightness: float = 0.0           # additive, all channels
    contrast: float = 1.0             # multiplier around mid-grey 128

    blur_sigma: float = 0.0

    scale: Optional[float] = None     # resize factor
    interpolation: str = "area"

    noise_sigma: float = 0.0

    jpeg_quality: Optional[int] = None

    # Random seed for reproducibility
    seed: int = 42


class Degrader:
    """Applies DegradeConfig to BGR images."""

    def __init__(self, config: DegradeConfig | None = None):
        self.config = config or DegradeConfig()
        self._rng = np.random.RandomState(self.config.seed)

    def apply(self, image: np.ndarray) -> np.ndarray:
        cfg = self.config
        img = image.copy()

        if cfg.brightness or cfg.contrast != 1.0:
            img = self._apply_levels(img)
        if cfg.blur_sigma > 0:
            img = self._apply_blur(img)
        if cfg.scale is not None and cfg.scale != 1.0:
            img = self._apply_resize(img)
        if cfg.noise_sigma > 0:
            img = self._apply_noise(img)
        if cfg.jpeg_quality is not None:
            img = jpeg_roundtrip(img, cfg.jpeg_quality)
        return img

    def _apply_levels(self, img: np.ndarray) -> np.ndarray:
        result = (img.astype(np.float64) - 128.0) * self.config.contrast + 128.0
        result += self.config.brightness
        return np.clip(np.round(result), 0, 255).astype(np.uint8)

    def _apply_blur(self, img: np.ndarray) -> np.ndarray:
        sigma = self.config.blur_sigma
        ksize = max(int(sigma * 4) | 1, 3)  # odd
        return cv2.GaussianBlur(img, (ksize, ksize), sigma)

    def _apply_resize(self, img: np.ndarray) -> np.ndarray:
        factor = self.config.scale
        h, w = img.shape[:2]
        new_w = max(1, int(round(w * factor)))
        new_h = max(1, int(round(h * factor)))
        interp = _INTERPOLATION[self.config.interpolation]
        return cv2.resize(img, (new_w, new_h), interpolation=interp)

    def _apply_noise(self, img: np.ndarray) -> np.ndarray:
        noise = self._rng.normal(0, self.config.noise_sigma, img.shape)
        result = img.astype(np.float64) + noise
        return np.clip(result, 0, 255).astype(np.uint8)


def jpeg_roundtrip(image: np.ndarray, quality: int) -> np.ndarray:
    """Encode to JPEG in memory and decode again."""
    ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise RuntimeError("JPEG encode failed")
    return cv2.imdecode(buf, cv2.IMREAD_COLOR)
