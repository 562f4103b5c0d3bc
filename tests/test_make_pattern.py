import pytest
from scripts.make_pattern import build_parser, pick_dimensions

def test_colors_out_of_range_rejected():
    parser = build_parser()
    for bad in ("500", "1", "0", "-3", "many"):
        with pytest.raises(SystemExit):
            parser.parse_args(["img.png", "--colors", bad])

def test_colors_in_range_accepted():
    args = build_parser().parse_args(["img.png", "--colors", "12"])
    assert args.colors == 12
    assert build_parser().parse_args(["img.png"]).colors is None

def test_missing_dimension_follows_aspect():
    parser = build_parser()
    assert pick_dimensions(parser.parse_args(["img.png", "--rows", "40"]), 2.0) == (40, 80)
    assert pick_dimensions(parser.parse_args(["img.png", "--cols", "90"]), 2.0) == (45, 90)
    assert pick_dimensions(parser.parse_args(["img.png", "--rows", "30", "--cols", "70"]), 2.0) == (30, 70)
