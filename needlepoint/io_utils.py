from pathlib import Path
from typing import Union
import cv2
import numpy as np

from needlepoint.config import BACKGROUND_RGB, DEFAULT_JPEG_QUALITY
from needlepoint.preprocessing.resize import flatten_alpha

# cv2 loads BGR(A); convert to RGB to keep consistency across the codebase.
def load_image(path: Union[str, Path]) -> np.ndarray:
    """Read an image as opaque RGB; transparent areas are composited onto white."""
    path = Path(path)
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    if img.dtype != np.uint8:
        # 16-bit PNG/TIFF
        img = (img / 257).astype(np.uint8)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    if img.shape[2] == 4:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
        return flatten_alpha(rgba, BACKGROUND_RGB)
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

def save_image_rgb(path: Union[str, Path], img_rgb: np.ndarray, quality: int = DEFAULT_JPEG_QUALITY) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    ext = path.suffix.lower()
    img_bgr = cv2.cvtColor(img_rgb, cv2.COLOR_RGB2BGR)
    if ext in [".jpg", ".jpeg"]:
        cv2.imwrite(str(path), img_bgr, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    elif ext == ".png":
        cv2.imwrite(str(path), img_bgr)  # use default compression
    else:
        # fallback to PNG
        path = path.with_suffix(".png")
        cv2.imwrite(str(path), img_bgr)
    return path
