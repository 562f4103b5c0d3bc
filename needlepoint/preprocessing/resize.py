from typing import Literal, Sequence, Tuple
import math
import numpy as np
import cv2

from needlepoint.config import BACKGROUND_RGB, MIN_DIMENSION, MAX_DIMENSION
from needlepoint.errors import InvalidArgumentError

Driver = Literal["rows", "cols"]

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def clamp(value: int, lo: int = MIN_DIMENSION, hi: int = MAX_DIMENSION) -> int:
    return max(lo, min(hi, value))

def flatten_alpha(img_rgba: np.ndarray, background: Sequence[int] = BACKGROUND_RGB) -> np.ndarray:
    """Composite an RGBA image onto an opaque background; RGB passes through."""
    if img_rgba.ndim == 2:
        return cv2.cvtColor(img_rgba, cv2.COLOR_GRAY2RGB)
    if img_rgba.shape[2] == 3:
        return img_rgba
    rgb = img_rgba[..., :3].astype(np.float32)
    alpha = img_rgba[..., 3:4].astype(np.float32) / 255.0
    bg = np.asarray(background, dtype=np.float32).reshape(1, 1, 3)
    out = rgb * alpha + bg * (1.0 - alpha)
    return np.clip(np.round(out), 0, 255).astype(np.uint8)

def recalculate_dimensions(
    rows: int,
    cols: int,
    aspect: float,
    driver: Driver = "rows",
) -> Tuple[int, int]:
    """
    Keep the grid at the image aspect ratio (aspect = width / height).
    The driver dimension is kept as is; the other is derived and clamped.
    """
    if aspect <= 0:
        raise InvalidArgumentError(f"aspect must be positive, got {aspect}")
    if driver == "rows":
        return rows, clamp(_round_half_up(rows * aspect))
    if driver == "cols":
        return clamp(_round_half_up(cols / aspect)), cols
    raise ValueError(f"Unknown driver dimension: {driver}")

def resize_to_grid(
    img_rgb: np.ndarray,
    rows: int,
    cols: int,
    interpolation: int = cv2.INTER_AREA,
) -> np.ndarray:
    """
    Resample to exactly rows x cols pixels, one pixel per stitch.
    Aspect is not preserved here; pick rows/cols with recalculate_dimensions().
    """
    if rows < 1 or cols < 1:
        raise InvalidArgumentError(f"Grid must be at least 1x1, got {rows}x{cols}")
    img_rgb = flatten_alpha(img_rgb)
    h, w = img_rgb.shape[:2]
    if (h, w) == (rows, cols):
        return img_rgb
    if rows > h or cols > w:
        # upsampling: INTER_AREA degrades to nearest, use cubic instead
        interpolation = cv2.INTER_CUBIC
    return cv2.resize(img_rgb, (cols, rows), interpolation=interpolation)

def to_pixel_buffer(img_rgb: np.ndarray) -> Tuple[np.ndarray, int, int]:
    """Flatten an (H, W, 3) image to a row-major (H*W, 3) buffer."""
    h, w = img_rgb.shape[:2]
    return img_rgb.reshape(h * w, 3).astype(np.uint8), h, w
