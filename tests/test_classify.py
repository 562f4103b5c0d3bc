import numpy as np
import pytest
from needlepoint.errors import InvalidArgumentError
from needlepoint.quantization.classify import nearest_color, classify_pixels, classify_to_colors
from needlepoint.quantization.median_cut import median_cut

def test_nearest_color_picks_closest():
    palette = [(0, 0, 0), (255, 128, 128)]
    assert nearest_color((255, 255, 255), palette) == (255, 128, 128)
    assert nearest_color((255, 0, 0), palette) == (255, 128, 128)
    assert nearest_color((10, 10, 10), palette) == (0, 0, 0)

def test_equidistant_first_entry_wins():
    palette = [(10, 5, 5), (0, 5, 5)]
    assert nearest_color((5, 5, 5), palette) == (10, 5, 5)
    assert classify_pixels(np.array([(5, 5, 5)]), palette).tolist() == [0]

def test_exact_match_is_not_displaced():
    palette = [(1, 1, 1), (9, 9, 9), (1, 1, 1)]
    assert classify_pixels(np.array([(1, 1, 1), (9, 9, 9)]), palette).tolist() == [0, 1]

def test_vectorized_matches_scalar_across_chunks():
    rng = np.random.default_rng(3)
    pixels = rng.integers(0, 256, size=(37, 3), dtype=np.uint8)
    palette = [(0, 0, 0), (255, 255, 255), (128, 0, 0), (0, 128, 0), (0, 0, 128), (128, 128, 128)]
    idx = classify_pixels(pixels, palette, chunk=5)
    expected = [palette.index(nearest_color(p, palette)) for p in pixels]
    assert idx.tolist() == expected
    assert classify_to_colors(pixels, palette).tolist() == [list(nearest_color(p, palette)) for p in pixels]

def test_palette_classifies_to_itself():
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(200, 3), dtype=np.uint8)
    palette = median_cut(pixels, 9)
    out = classify_to_colors(np.array(palette), palette)
    assert [tuple(c) for c in out.tolist()] == palette

def test_empty_pixels_need_no_palette():
    assert classify_pixels(np.empty((0, 3)), []).shape == (0,)

def test_empty_palette_rejected():
    with pytest.raises(InvalidArgumentError):
        classify_pixels(np.array([(1, 2, 3)]), [])
    with pytest.raises(InvalidArgumentError):
        nearest_color((1, 2, 3), [])

def test_large_palette_uses_smaller_chunks(monkeypatch):
    import needlepoint.quantization.classify as classify
    monkeypatch.setattr(classify, "MAX_BLOCK", 64)
    rng = np.random.default_rng(3)
    palette = [tuple(int(c) for c in p) for p in rng.integers(0, 256, size=(40, 3))]
    pixels = rng.integers(0, 256, size=(25, 3))
    idx = classify.classify_pixels(pixels, palette)
    assert [palette[i] for i in idx] == [nearest_color(p, palette) for p in pixels]
