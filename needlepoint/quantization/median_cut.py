# needlepoint/quantization/median_cut.py
from __future__ import annotations
import logging
from typing import List, Tuple
import numpy as np

from ..errors import InvalidArgumentError

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


class ColorBox:
    """
    Axis-aligned bounding region over a subset of pixels in RGB space.
    Pixel order inside the box is kept as given; split() relies on it.
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels, dtype=np.int64).reshape(-1, 3)
        if pixels.shape[0] == 0:
            raise InvalidArgumentError("ColorBox needs at least one pixel")
        self.pixels = pixels
        self.mins = pixels.min(axis=0)
        self.maxs = pixels.max(axis=0)
        ranges = self.maxs - self.mins
        self.r_range, self.g_range, self.b_range = (int(v) for v in ranges)

    def __len__(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        return (f"ColorBox(n={len(self)}, ranges=({self.r_range}, {self.g_range}, "
                f"{self.b_range}))")

    @property
    def volume(self) -> int:
        # Zero for a flat box, even when it holds many pixels
        return self.r_range * self.g_range * self.b_range

    @property
    def longest_axis(self) -> int:
        """0, 1 or 2 for R, G, B. Ties go to R, then G."""
        r, g, b = self.r_range, self.g_range, self.b_range
        if r >= g and r >= b:
            return 0
        if g >= r and g >= b:
            return 1
        return 2

    def split(self) -> Tuple["ColorBox", "ColorBox"]:
        """
        Stable-sort pixels on the longest axis and cut at n // 2.
        Pixels equal on that axis keep their relative order.
        """
        n = len(self)
        if n < 2:
            raise InvalidArgumentError("Cannot split a single-pixel ColorBox")
        axis = self.longest_axis
        order = np.argsort(self.pixels[:, axis], kind="stable")
        ordered = self.pixels[order]
        mid = n // 2
        return ColorBox(ordered[:mid]), ColorBox(ordered[mid:])

    def average(self) -> RGB:
        """Per-channel mean rounded half-up, in exact integer arithmetic."""
        n = len(self)
        sums = self.pixels.sum(axis=0)
        avg = (2 * sums + n) // (2 * n)
        return (int(avg[0]), int(avg[1]), int(avg[2]))


def check_max_colors(max_colors) -> int:
    if isinstance(max_colors, bool) or not isinstance(max_colors, (int, np.integer)):
        raise InvalidArgumentError(f"max_colors must be an integer, got {max_colors!r}")
    if max_colors < 1:
        raise InvalidArgumentError(f"max_colors must be >= 1, got {max_colors}")
    return int(max_colors)


def _pick_box(boxes: List[ColorBox]) -> int:
    # First box wins ties: only a strictly greater volume replaces the pick.
    best_idx = -1
    best_volume = -1
    for i, box in enumerate(boxes):
        if len(box) > 1 and box.volume > best_volume:
            best_volume = box.volume
            best_idx = i
    return best_idx


def median_cut(pixels: np.ndarray, max_colors: int) -> List[RGB]:
    """
    Median-cut palette for a row-major (N, 3) pixel buffer.
    Returns up to max_colors averaged colors in final box order (not sorted).
    Fewer colors come back when every box is down to a single pixel.
    """
    max_colors = check_max_colors(max_colors)
    pixels = np.asarray(pixels, dtype=np.int64).reshape(-1, 3)
    if pixels.shape[0] == 0:
        return []

    boxes: List[ColorBox] = [ColorBox(pixels)]
    while len(boxes) < max_colors:
        idx = _pick_box(boxes)
        if idx == -1:
            logger.debug("median_cut: no splittable box left at %d boxes", len(boxes))
            break
        first, second = boxes[idx].split()
        boxes[idx:idx + 1] = [first, second]

    palette = [box.average() for box in boxes]
    logger.debug("median_cut: %d pixels -> %d palette entries (max_colors=%d)",
                 pixels.shape[0], len(palette), max_colors)
    return palette
