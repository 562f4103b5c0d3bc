# needlepoint/metrics/similarity.py
from __future__ import annotations
import numpy as np
from skimage.metrics import structural_similarity as ssim

# skimage derives an 11px window from sigma=1.5 when gaussian_weights=True
_GAUSSIAN_WINDOW = 11

def mse(a: np.ndarray, b: np.ndarray) -> float:
    a32 = a.astype(np.float32)
    b32 = b.astype(np.float32)
    return float(np.mean((a32 - b32) ** 2))

def ssim_rgb(a: np.ndarray, b: np.ndarray) -> float:
    """SSIM between two RGB images; nan when the image is too small for any window."""
    a_f = (a.astype(np.float32) / 255.0).clip(0, 1)
    b_f = (b.astype(np.float32) / 255.0).clip(0, 1)
    side = min(a.shape[:2])
    if side >= _GAUSSIAN_WINDOW:
        val = ssim(a_f, b_f, channel_axis=2, data_range=1.0, gaussian_weights=True, use_sample_covariance=False)
        return float(val)
    win = side if side % 2 == 1 else side - 1
    if win < 3:
        return float("nan")
    val = ssim(a_f, b_f, channel_axis=2, data_range=1.0, win_size=win)
    return float(val)

def quantization_report(source_rgb: np.ndarray, preview_rgb: np.ndarray) -> dict:
    """Fidelity of a quantized preview against the resized source it came from."""
    return {
        "mse": round(mse(source_rgb, preview_rgb), 3),
        "ssim": round(ssim_rgb(source_rgb, preview_rgb), 4),
    }
