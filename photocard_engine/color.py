"""Highlight detection: is a line's text printed in color rather than black/gray?

The decision only looks at "dark" pixels (candidate glyph pixels) inside the
line's box and asks what share of them is red, blue, green or otherwise
saturated. Pure function of the pixels and the thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
from PIL import Image

from .types import ColorSample, NormalizedRect, OCRLine, PositionedLine
from .utils import clamp_int

DEFAULT_DARK_BRIGHTNESS = 0.65
DEFAULT_MIN_DARK_SAMPLES = 5
DEFAULT_COLORED_RATIO = 0.30
DEFAULT_MAX_SAMPLES = 2000


def region_to_pixels(box: NormalizedRect, width: int, height: int) -> tuple[int, int, int, int] | None:
    """Map a bottom-left normalized box to a clamped top-left pixel box (x0, y0, x1, y1).

    Returns None when nothing of the box lies inside the image.
    """
    px = int(box.x * width)
    py = int((1.0 - box.y - box.height) * height)
    pw = max(1, int(box.width * width))
    ph = max(1, int(box.height * height))

    x0 = clamp_int(px, 0, width)
    y0 = clamp_int(py, 0, height)
    x1 = clamp_int(px + pw, 0, width)
    y1 = clamp_int(py + ph, 0, height)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def sample_colors(
    rgba: np.ndarray,
    *,
    dark_brightness: float = DEFAULT_DARK_BRIGHTNESS,
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> ColorSample:
    """Count dark pixels and colored-among-dark pixels of an RGB(A) pixel array.

    Large regions are visited with a fixed stride so at most ~max_samples
    pixels are inspected.
    """
    arr = np.asarray(rgba)
    if arr.size == 0:
        return ColorSample(dark_count=0, colored_count=0)
    pixels = arr.reshape(-1, arr.shape[-1])[:, :3].astype(np.float64)

    stride = max(1, pixels.shape[0] // max(1, int(max_samples)))
    sampled = pixels[::stride]

    brightness = sampled.sum(axis=1) / (3 * 255)
    dark = sampled[brightness < dark_brightness]
    r, g, b = dark[:, 0], dark[:, 1], dark[:, 2]

    red = (r > 120) & (r > 1.6 * g) & (r > 1.6 * b)
    blue = (b > 120) & (b > 1.4 * r) & (b > 1.3 * g)
    green = (g > 100) & (g > 1.4 * r) & (g > 1.4 * b)

    mx = np.maximum(np.maximum(r, g), b)
    mn = np.minimum(np.minimum(r, g), b)
    saturation = (mx - mn) / np.maximum(mx, 1.0)
    vivid = (saturation > 0.4) & (mx > 100)

    colored = red | blue | green | vivid
    return ColorSample(dark_count=int(dark.shape[0]), colored_count=int(colored.sum()))


@dataclass
class ColorClassifier:
    color_cfg: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._dark_brightness = float(self.color_cfg.get("dark_brightness", DEFAULT_DARK_BRIGHTNESS))
        self._min_dark_samples = int(self.color_cfg.get("min_dark_samples", DEFAULT_MIN_DARK_SAMPLES))
        self._colored_ratio = float(self.color_cfg.get("colored_ratio", DEFAULT_COLORED_RATIO))
        self._max_samples = int(self.color_cfg.get("max_samples", DEFAULT_MAX_SAMPLES))

    def is_highlighted(self, sample: ColorSample) -> bool:
        # Both bounds are strict: exactly min_dark_samples or exactly the ratio is not enough.
        if sample.dark_count <= self._min_dark_samples:
            return False
        return sample.ratio > self._colored_ratio

    def sample_region(self, rgba: np.ndarray, box: NormalizedRect) -> ColorSample | None:
        h, w = rgba.shape[0], rgba.shape[1]
        rect = region_to_pixels(box, w, h)
        if rect is None:
            return None
        x0, y0, x1, y1 = rect
        return sample_colors(
            rgba[y0:y1, x0:x1],
            dark_brightness=self._dark_brightness,
            max_samples=self._max_samples,
        )

    def _classify(self, rgba: np.ndarray, box: NormalizedRect) -> bool:
        sample = self.sample_region(rgba, box)
        return sample is not None and self.is_highlighted(sample)

    def classify_line(self, image: Image.Image, box: NormalizedRect) -> bool:
        return self._classify(np.asarray(image.convert("RGBA")), box)

    def classify_lines(self, image: Image.Image | None, lines: Sequence[OCRLine]) -> list[PositionedLine]:
        """Tag every line with its highlight flag, keeping the input order."""
        if image is None:
            return [PositionedLine(text=l.text, box=l.box, highlighted=False) for l in lines]

        rgba = np.asarray(image.convert("RGBA"))
        return [PositionedLine(text=l.text, box=l.box, highlighted=self._classify(rgba, l.box)) for l in lines]
