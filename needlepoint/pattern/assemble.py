# needlepoint/pattern/assemble.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple
import numpy as np

from ..errors import InvalidArgumentError
from ..quantization.median_cut import check_max_colors, median_cut
from ..quantization.classify import classify_to_colors

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
Grid = Tuple[Tuple[str, ...], ...]


def rgb_to_hex(rgb: Sequence[int]) -> str:
    r, g, b = (int(c) for c in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(hex_color: str) -> RGB:
    h = hex_color.lstrip("#")
    if len(h) != 6:
        raise InvalidArgumentError(f"Expected #RRGGBB, got {hex_color!r}")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def format_code(index: int) -> str:
    """0 -> 'C01', 1 -> 'C02', ... 99 -> 'C100'."""
    return f"C{index + 1:02d}"


def code_sort_key(code: str) -> int:
    return int(code[1:])


@dataclass(frozen=True)
class PatternResult:
    """
    Stitch pattern: a rows x cols grid of codes, plus code -> hex color and
    code -> stitch count. Codes are ordered by descending count.
    """
    grid: Grid
    color_map: Mapping[str, str]
    color_counts: Mapping[str, int]
    num_colors: int
    rows: int
    cols: int
    palette: Tuple[RGB, ...] = field(default=(), compare=False)

    def codes(self) -> List[str]:
        return sorted(self.color_map, key=code_sort_key)

    def rgb_of(self, code: str) -> RGB:
        return hex_to_rgb(self.color_map[code])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grid": [list(row) for row in self.grid],
            "colorMap": dict(self.color_map),
            "colorCounts": dict(self.color_counts),
            "numColors": self.num_colors,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PatternResult":
        grid = tuple(tuple(str(code) for code in row) for row in data["grid"])
        color_map = {str(k): str(v) for k, v in data["colorMap"].items()}
        color_counts = {str(k): int(v) for k, v in data["colorCounts"].items()}
        rows = len(grid)
        cols = len(grid[0]) if rows else 0
        return cls(
            grid=grid,
            color_map=MappingProxyType(color_map),
            color_counts=MappingProxyType(color_counts),
            # Re-derived rather than trusted from the stored payload
            num_colors=len(color_map),
            rows=rows,
            cols=cols,
        )


def _check_dim(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must be >= 0, got {value}")
    return int(value)


def validate_pixel_buffer(pixels, rows: int, cols: int) -> np.ndarray:
    """
    Check a row-major pixel buffer against rows x cols and return it as an
    (N, 3) int64 array. Accepts (N, 3) sequences or an (rows, cols, 3) image.
    """
    rows = _check_dim("rows", rows)
    cols = _check_dim("cols", cols)
    expected = rows * cols

    arr = np.asarray(pixels)
    if arr.size == 0:
        if expected != 0:
            raise InvalidArgumentError(
                f"Pixel buffer is empty but rows*cols = {expected}")
        return np.empty((0, 3), dtype=np.int64)

    if arr.ndim not in (2, 3) or arr.shape[-1] != 3:
        raise InvalidArgumentError(
            f"Pixels must be RGB triples, got array of shape {arr.shape}")
    if arr.ndim == 3 and arr.shape[:2] != (rows, cols):
        raise InvalidArgumentError(
            f"Image of shape {arr.shape[:2]} does not match a {rows}x{cols} grid")
    arr = arr.reshape(-1, 3)

    if arr.dtype.kind == "f":
        if not np.all(np.isfinite(arr)) or not np.all(arr == np.floor(arr)):
            raise InvalidArgumentError("Channel values must be integers")
    elif arr.dtype.kind not in "iu":
        raise InvalidArgumentError(f"Unsupported pixel dtype: {arr.dtype}")

    if arr.shape[0] != expected:
        raise InvalidArgumentError(
            f"Pixel buffer has {arr.shape[0]} pixels, expected rows*cols = {expected}")
    if arr.min() < 0 or arr.max() > 255:
        raise InvalidArgumentError("Channel values must lie in [0, 255]")
    return arr.astype(np.int64)


def assemble_pattern(
    classified: np.ndarray,  # (N, 3) chosen palette color per pixel, row-major
    rows: int,
    cols: int,
    palette: Sequence[RGB] = (),
) -> PatternResult:
    """
    Tally classified colors by RGB value (boxes that averaged to the same
    color collapse here), order them by descending count with first-seen
    order breaking ties, assign codes and reshape to the grid.
    """
    classified = np.asarray(classified, dtype=np.int64).reshape(-1, 3)
    K = classified.shape[0]
    if K != rows * cols:
        raise InvalidArgumentError(
            f"{K} classified pixels do not fill a {rows}x{cols} grid")

    if K == 0:
        return PatternResult(
            grid=tuple(() for _ in range(rows)),
            color_map=MappingProxyType({}),
            color_counts=MappingProxyType({}),
            num_colors=0,
            rows=rows,
            cols=cols,
            palette=tuple(palette),
        )

    keys = (classified[:, 0] << 16) | (classified[:, 1] << 8) | classified[:, 2]
    uniq, first_idx, inverse, counts = np.unique(
        keys, return_index=True, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)

    # Primary key: count descending. Secondary: first row-major occurrence.
    order = np.lexsort((first_idx, -counts))
    rank = np.empty_like(order)
    rank[order] = np.arange(order.size)

    codes = [format_code(i) for i in range(order.size)]
    color_map: Dict[str, str] = {}
    color_counts: Dict[str, int] = {}
    for pos, u in enumerate(order):
        key = int(uniq[u])
        color_map[codes[pos]] = rgb_to_hex(((key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF))
        color_counts[codes[pos]] = int(counts[u])

    cell_codes = np.asarray(codes, dtype=object)[rank[inverse]].reshape(rows, cols)
    grid = tuple(tuple(row) for row in cell_codes.tolist())

    return PatternResult(
        grid=grid,
        color_map=MappingProxyType(color_map),
        color_counts=MappingProxyType(color_counts),
        num_colors=len(color_map),
        rows=rows,
        cols=cols,
        palette=tuple(palette),
    )


def build_pattern(pixels, rows: int, cols: int, max_colors: int) -> PatternResult:
    """
    Full pipeline: median-cut palette -> nearest-color classification ->
    code grid. All arguments are validated before partitioning starts.
    """
    max_colors = check_max_colors(max_colors)
    buf = validate_pixel_buffer(pixels, rows, cols)

    palette = median_cut(buf, max_colors)
    if buf.shape[0] == 0:
        return assemble_pattern(buf, rows, cols, palette)

    classified = classify_to_colors(buf, palette)
    result = assemble_pattern(classified, rows, cols, palette)
    logger.info("Built %dx%d pattern: %d palette entries, %d distinct colors",
                rows, cols, len(palette), result.num_colors)
    return result
