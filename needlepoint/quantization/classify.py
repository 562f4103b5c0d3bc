from __future__ import annotations
from typing import Sequence, Tuple
import numpy as np

from ..errors import InvalidArgumentError

RGB = Tuple[int, int, int]

# Upper bound on pixel x palette distances held at once
MAX_BLOCK = 1 << 20


def nearest_color(pixel: Sequence[int], palette: Sequence[RGB]) -> RGB:
    """
    Nearest palette entry by squared Euclidean distance in RGB.
    Only a strictly smaller distance replaces the current pick, so the
    first of several equidistant entries wins (exact matches included).
    """
    if len(palette) == 0:
        raise InvalidArgumentError("Cannot classify against an empty palette")
    r, g, b = (int(c) for c in pixel)
    best = tuple(int(c) for c in palette[0])
    best_d2 = None
    for pr, pg, pb in palette:
        d2 = (r - pr) ** 2 + (g - pg) ** 2 + (b - pb) ** 2
        if best_d2 is None or d2 < best_d2:
            best_d2 = d2
            best = (int(pr), int(pg), int(pb))
            if d2 == 0:
                break
    return best


def classify_pixels(
    pixels: np.ndarray,   # (N, 3) integer RGB
    palette: Sequence[RGB],
    chunk: int = 4096,
) -> np.ndarray:
    """
    Returns the palette index for every pixel. Vectorized and chunked over
    pixels to bound memory, with smaller chunks for large palettes.
    np.argmin reports the first minimal index, which is the same tie rule
    as nearest_color().
    """
    pixels = np.asarray(pixels, dtype=np.int64).reshape(-1, 3)
    K = pixels.shape[0]
    out = np.empty((K,), dtype=np.int64)
    if K == 0:
        return out
    if len(palette) == 0:
        raise InvalidArgumentError("Cannot classify against an empty palette")

    pal = np.asarray(palette, dtype=np.int64).reshape(-1, 3)  # (P, 3)
    step = max(1, min(chunk, MAX_BLOCK // pal.shape[0]))
    for s in range(0, K, step):
        e = min(s + step, K)
        # (k,1,3) - (1,P,3) -> (k,P,3)
        diff = pixels[s:e, None, :] - pal[None, :, :]
        d2 = (diff * diff).sum(axis=2)   # (k, P)
        out[s:e] = np.argmin(d2, axis=1)
    return out


def classify_to_colors(pixels: np.ndarray, palette: Sequence[RGB], chunk: int = 4096) -> np.ndarray:
    """Same as classify_pixels() but returns the chosen (N, 3) RGB values."""
    idx = classify_pixels(pixels, palette, chunk=chunk)
    if idx.size == 0:
        return np.empty((0, 3), dtype=np.int64)
    return np.asarray(palette, dtype=np.int64).reshape(-1, 3)[idx]
