from __future__ import annotations
from dataclasses import dataclass
from typing import List
import numpy as np
import cv2

from needlepoint.config import SIZE_PRESETS, COMPLEXITY_SAMPLE_SIZE, COMPLEXITY_BUCKET

@dataclass(frozen=True)
class SizePreset:
    name: str
    width: int   # cols
    height: int  # rows

    @property
    def aspect(self) -> float:
        return self.width / self.height

PRESETS: List[SizePreset] = [SizePreset(n, w, h) for n, w, h in SIZE_PRESETS]

def get_preset(name: str) -> SizePreset:
    for p in PRESETS:
        if p.name.lower() == name.lower():
            return p
    raise ValueError(f"Unknown preset: {name} (choose from {', '.join(p.name for p in PRESETS)})")

def find_best_preset(aspect: float) -> SizePreset:
    """Preset whose width/height is closest to aspect; earlier presets win ties."""
    best = PRESETS[0]
    best_diff = abs(aspect - best.aspect)
    for p in PRESETS[1:]:
        diff = abs(aspect - p.aspect)
        if diff < best_diff:
            best, best_diff = p, diff
    return best

# (unique bucket upper bound, suggested colors)
_COMPLEXITY_STEPS = [(30, 10), (60, 15), (100, 20), (150, 25)]

def estimate_color_complexity(img_rgb: np.ndarray) -> int:
    """
    Suggest a palette size from a coarse count of distinct colors.
    Samples at 50x50 and buckets each channel into 32 levels.
    """
    size = COMPLEXITY_SAMPLE_SIZE
    sample = cv2.resize(img_rgb, (size, size), interpolation=cv2.INTER_AREA)
    q = (sample.reshape(-1, 3) // COMPLEXITY_BUCKET).astype(np.int32)
    keys = (q[:, 0] << 10) | (q[:, 1] << 5) | q[:, 2]
    unique_colors = int(np.unique(keys).size)
    for bound, colors in _COMPLEXITY_STEPS:
        if unique_colors < bound:
            return colors
    return 30
