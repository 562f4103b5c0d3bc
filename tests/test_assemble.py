import numpy as np
import pytest
from needlepoint.errors import InvalidArgumentError
from needlepoint.quantization.classify import classify_to_colors
from needlepoint.pattern.assemble import (
    PatternResult, assemble_pattern, build_pattern, format_code, code_sort_key, rgb_to_hex, hex_to_rgb,
)

SCENARIO = [(0, 0, 0), (255, 255, 255), (0, 0, 0), (255, 0, 0)]

def test_two_by_two_scenario():
    res = build_pattern(SCENARIO, 2, 2, 2)
    assert res.palette == ((0, 0, 0), (255, 128, 128))
    assert res.grid == (("C01", "C02"), ("C01", "C02"))
    assert dict(res.color_map) == {"C01": "#000000", "C02": "#FF8080"}
    assert dict(res.color_counts) == {"C01": 2, "C02": 2}
    assert res.num_colors == 2
    assert (res.rows, res.cols) == (2, 2)

def test_codes_follow_descending_count_then_first_seen():
    classified = np.array([(9, 9, 9), (1, 1, 1), (1, 1, 1), (5, 5, 5), (9, 9, 9), (1, 1, 1)])
    res = assemble_pattern(classified, 2, 3)
    assert dict(res.color_map) == {"C01": "#010101", "C02": "#090909", "C03": "#050505"}
    assert dict(res.color_counts) == {"C01": 3, "C02": 2, "C03": 1}
    assert res.grid == (("C02", "C01", "C01"), ("C03", "C02", "C01"))

def test_uniform_image_collapses_to_one_code():
    res = build_pattern([(12, 34, 56)] * 12, 3, 4, 6)
    assert len(res.palette) == 6
    assert res.num_colors == 1
    assert dict(res.color_map) == {"C01": "#0C2238"}
    assert dict(res.color_counts) == {"C01": 12}

def test_one_color_is_the_mean():
    pixels = np.array([(0, 0, 0), (100, 50, 3), (200, 100, 0), (1, 1, 0)], dtype=np.uint8)
    res = build_pattern(pixels, 1, 4, 1)
    # (301/4, 151/4, 3/4) -> (75.25, 37.75, 0.75)
    assert dict(res.color_map) == {"C01": rgb_to_hex((75, 38, 1))}
    assert res.grid == (("C01",) * 4,)

def test_pattern_invariants_on_random_image():
    rng = np.random.default_rng(2024)
    img = rng.integers(0, 256, size=(12, 15, 3), dtype=np.uint8)
    res = build_pattern(img, 12, 15, 8)
    assert sum(res.color_counts.values()) == 12 * 15
    assert res.num_colors <= 8
    assert res.num_colors == len(res.color_map) == len(res.color_counts)
    assert len(res.grid) == 12 and all(len(row) == 15 for row in res.grid)
    for row in res.grid:
        for code in row:
            assert code in res.color_map and code in res.color_counts
    counts = [res.color_counts[c] for c in res.codes()]
    assert counts == sorted(counts, reverse=True)

def test_pipeline_is_deterministic():
    rng = np.random.default_rng(5)
    pixels = rng.integers(0, 256, size=(80, 3), dtype=np.uint8)
    a = build_pattern(pixels, 8, 10, 10)
    b = build_pattern(pixels.copy(), 8, 10, 10)
    assert a.to_dict() == b.to_dict()

def test_empty_input_is_not_an_error():
    res = build_pattern([], 0, 0, 5)
    assert res.grid == ()
    assert res.num_colors == 0 and dict(res.color_map) == {} and dict(res.color_counts) == {}
    assert build_pattern(np.empty((0, 3), dtype=np.uint8), 3, 0, 5).grid == ((), (), ())

@pytest.mark.parametrize("pixels,rows,cols,max_colors", [
    (SCENARIO, 2, 2, 0),
    (SCENARIO, 2, 3, 2),
    (SCENARIO, -2, -2, 2),
    ([(0, 0, 0), (256, 0, 0)], 1, 2, 2),
    ([(0, 0, 0), (-1, 0, 0)], 1, 2, 2),
    ([(0.5, 0, 0), (1, 0, 0)], 1, 2, 2),
    ([(0, 0), (1, 0)], 1, 2, 2),
    ([], 1, 1, 2),
    ([], 0, 0, 0),
])
def test_invalid_arguments_rejected(pixels, rows, cols, max_colors):
    with pytest.raises(InvalidArgumentError):
        build_pattern(pixels, rows, cols, max_colors)

def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        build_pattern(SCENARIO, 2, 2, -1)

def test_integral_floats_are_accepted():
    res = build_pattern(np.array(SCENARIO, dtype=np.float64), 2, 2, 2)
    assert res.grid == (("C01", "C02"), ("C01", "C02"))

def test_result_is_read_only():
    res = build_pattern(SCENARIO, 2, 2, 2)
    with pytest.raises(TypeError):
        res.color_map["C01"] = "#FFFFFF"
    with pytest.raises(AttributeError):
        res.num_colors = 3

def test_dict_round_trip():
    res = build_pattern(SCENARIO, 2, 2, 2)
    data = res.to_dict()
    assert data == {
        "grid": [["C01", "C02"], ["C01", "C02"]],
        "colorMap": {"C01": "#000000", "C02": "#FF8080"},
        "colorCounts": {"C01": 2, "C02": 2},
        "numColors": 2,
    }
    data["numColors"] = 99
    back = PatternResult.from_dict(data)
    assert back == res
    assert back.num_colors == 2

def test_code_helpers():
    assert [format_code(i) for i in (0, 8, 98, 99)] == ["C01", "C09", "C99", "C100"]
    assert sorted(["C100", "C02", "C10"], key=code_sort_key) == ["C02", "C10", "C100"]
    assert rgb_to_hex((255, 10, 171)) == "#FF0AAB"
    assert hex_to_rgb("#FF0AAB") == (255, 10, 171)

def test_image_shape_must_match_grid():
    img = np.arange(18, dtype=np.uint8).reshape(3, 2, 3)
    with pytest.raises(InvalidArgumentError):
        build_pattern(img, 2, 3, 2)
    res = build_pattern(img.reshape(2, 3, 3), 2, 3, 2)
    assert (res.rows, res.cols) == (2, 3)

def test_grid_follows_classified_colors():
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(6 * 5, 3))
    res = build_pattern(pixels, 6, 5, 4)
    colors = classify_to_colors(pixels, res.palette)
    cells = [code for row in res.grid for code in row]
    assert [res.rgb_of(code) for code in cells] == [tuple(int(c) for c in px) for px in colors]
