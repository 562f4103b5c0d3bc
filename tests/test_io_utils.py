import numpy as np
import cv2
import pytest
from needlepoint.config import DEFAULT_JPEG_QUALITY
from needlepoint.io_utils import load_image, save_image_rgb

def test_save_and_load_png(tmp_path):
    img = np.zeros((6, 4, 3), dtype=np.uint8)
    img[..., 0] = 200  # red in RGB
    path = save_image_rgb(tmp_path / "nested" / "img.png", img)
    assert path.exists()
    back = load_image(path)
    assert back.shape == (6, 4, 3)
    assert back[0, 0].tolist() == [200, 0, 0]

def test_unknown_extension_falls_back_to_png(tmp_path):
    img = np.zeros((3, 3, 3), dtype=np.uint8)
    path = save_image_rgb(tmp_path / "img.xyz", img)
    assert path.suffix == ".png" and path.exists()

def test_transparent_png_is_flattened_onto_white(tmp_path):
    bgra = np.zeros((2, 2, 4), dtype=np.uint8)
    bgra[0, 0] = (0, 0, 255, 255)   # opaque red
    path = tmp_path / "alpha.png"
    cv2.imwrite(str(path), bgra)
    img = load_image(path)
    assert img.shape == (2, 2, 3)
    assert img[0, 0].tolist() == [255, 0, 0]
    assert img[1, 1].tolist() == [255, 255, 255]

def test_missing_image(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "nope.png")

def test_jpeg_default_quality(tmp_path):
    rng = np.random.default_rng(5)
    img = rng.integers(0, 256, size=(32, 32, 3), dtype=np.uint8)
    default = save_image_rgb(tmp_path / "a.jpg", img)
    explicit = save_image_rgb(tmp_path / "b.jpg", img, quality=DEFAULT_JPEG_QUALITY)
    assert default.read_bytes() == explicit.read_bytes()
