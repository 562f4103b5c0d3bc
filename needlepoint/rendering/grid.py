# needlepoint/rendering/grid.py
from __future__ import annotations
from typing import Tuple
import numpy as np
import cv2

from ..pattern.assemble import PatternResult, hex_to_rgb

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
GRID_LINE_ALPHA = 0.3

def luminance(hex_color: str) -> float:
    """BT.601 luma in [0, 1]."""
    r, g, b = hex_to_rgb(hex_color)
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255.0

def text_color(hex_color: str) -> Tuple[int, int, int]:
    return BLACK if luminance(hex_color) > 0.5 else WHITE

def code_index_map(result: PatternResult) -> Tuple[np.ndarray, np.ndarray]:
    """
    Returns (index_map[R,C], colors[K,3]) where colors[k] is the RGB of the
    k-th code in code order. Vectorized lookups start from here.
    """
    codes = result.codes()
    lookup = {code: k for k, code in enumerate(codes)}
    colors = np.array([result.rgb_of(c) for c in codes], dtype=np.uint8).reshape(-1, 3)
    idx = np.array([[lookup[c] for c in row] for row in result.grid], dtype=np.int32)
    return idx.reshape(result.rows, result.cols), colors

def render_preview(result: PatternResult) -> np.ndarray:
    """Quantized image with one pixel per stitch, (rows, cols, 3) uint8 RGB."""
    if result.rows == 0 or result.cols == 0:
        return np.zeros((result.rows, result.cols, 3), dtype=np.uint8)
    idx_map, colors = code_index_map(result)
    return colors[idx_map]

def render_pattern(
    result: PatternResult,
    cell_size: int = 20,
    show_codes: bool = True,
    show_grid_lines: bool = True,
) -> np.ndarray:
    """
    Printable chart: every stitch drawn as a cell_size square in its color,
    optionally outlined and labelled with its code.
    """
    preview = render_preview(result)
    R, C = result.rows, result.cols
    if R == 0 or C == 0:
        return np.zeros((R * cell_size, C * cell_size, 3), dtype=np.uint8)

    # (R,C,3) -> (R*cs, C*cs, 3)
    out = np.repeat(np.repeat(preview, cell_size, axis=0), cell_size, axis=1)

    if show_grid_lines:
        edge = np.zeros((cell_size,), dtype=bool)
        edge[0] = True
        edge[-1] = True
        rows_mask = np.tile(edge, R)
        cols_mask = np.tile(edge, C)
        mask = rows_mask[:, None] | cols_mask[None, :]
        darker = (out[mask].astype(np.float32) * (1.0 - GRID_LINE_ALPHA)).astype(np.uint8)
        out[mask] = darker

    if show_codes:
        font = cv2.FONT_HERSHEY_SIMPLEX
        # ~40% of the cell height, never below a readable minimum
        scale = max(6, cell_size * 0.4) / 22.0
        thickness = 1
        labels = {}
        for code in result.color_map:
            (tw, th), _ = cv2.getTextSize(code, font, scale, thickness)
            labels[code] = (tw, th, text_color(result.color_map[code]))
        for r, row in enumerate(result.grid):
            for c, code in enumerate(row):
                tw, th, color = labels[code]
                x = c * cell_size + (cell_size - tw) // 2
                y = r * cell_size + (cell_size + th) // 2
                cv2.putText(out, code, (x, y), font, scale, color, thickness, cv2.LINE_AA)
    return out

def draw_grid_overlay(img_rgb: np.ndarray, rows: int, cols: int, color=(0, 255, 0), thickness: int = 1) -> np.ndarray:
    """
    Draw thin lines over the source image where stitch boundaries fall,
    to show how the picture will be sampled.
    """
    h, w = img_rgb.shape[:2]
    out_bgr = cv2.cvtColor(img_rgb, cv2.COLOR_RGB2BGR).copy()
    bgr = (int(color[2]), int(color[1]), int(color[0]))
    for i in range(1, rows):
        y = int(round(i * h / rows))
        cv2.line(out_bgr, (0, y), (w, y), bgr, thickness)
    for j in range(1, cols):
        x = int(round(j * w / cols))
        cv2.line(out_bgr, (x, 0), (x, h), bgr, thickness)
    return cv2.cvtColor(out_bgr, cv2.COLOR_BGR2RGB)
