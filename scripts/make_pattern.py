import argparse
import json
import logging
from pathlib import Path
from needlepoint.config import (
    OUTPUTS_DIR, DEFAULT_ROWS, DEFAULT_CELL_SIZE, MIN_COLORS, MAX_COLORS
)
from needlepoint.io_utils import load_image, save_image_rgb
from needlepoint.preprocessing.presets import PRESETS, get_preset, find_best_preset, estimate_color_complexity
from needlepoint.preprocessing.resize import recalculate_dimensions, resize_to_grid, to_pixel_buffer
from needlepoint.pattern.assemble import build_pattern
from needlepoint.export.csv_export import grid_csv, legend_csv, export_filename, write_csv
from needlepoint.rendering.grid import render_preview, render_pattern
from needlepoint.metrics.similarity import quantization_report
from needlepoint.storage.history import ProjectHistory, make_project

def pick_dimensions(args, aspect: float):
    """rows/cols from the flags; a missing one follows the image aspect ratio."""
    if args.rows and args.cols:
        return args.rows, args.cols
    if args.rows:
        return recalculate_dimensions(args.rows, 0, aspect, driver="rows")
    if args.cols:
        return recalculate_dimensions(0, args.cols, aspect, driver="cols")
    preset = get_preset(args.preset) if args.preset else find_best_preset(aspect)
    print(f"  ↳ preset {preset.name} ({preset.height}x{preset.width})")
    if args.no_aspect:
        return preset.height, preset.width
    return recalculate_dimensions(preset.height, preset.width, aspect, driver="rows")

def colors_arg(value: str) -> int:
    n = int(value)
    if not MIN_COLORS <= n <= MAX_COLORS:
        raise argparse.ArgumentTypeError(f"must be between {MIN_COLORS} and {MAX_COLORS}, got {n}")
    return n

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Turn an image into a needlepoint stitch pattern.")
    parser.add_argument("image", type=str, help="Source image")
    parser.add_argument("--out", type=str, default=str(OUTPUTS_DIR / "patterns"), help="Output folder")
    parser.add_argument("--rows", type=int, default=None, help=f"Grid height in stitches (e.g. {DEFAULT_ROWS})")
    parser.add_argument("--cols", type=int, default=None, help="Grid width in stitches")
    parser.add_argument("--preset", type=str, default=None, choices=[p.name for p in PRESETS],
                        help="Size preset, used when neither --rows nor --cols is set")
    parser.add_argument("--no-aspect", action="store_true",
                        help="Use preset dimensions as is instead of following the image aspect ratio")
    parser.add_argument("--colors", type=colors_arg, default=None,
                        help=f"Maximum palette size ({MIN_COLORS}-{MAX_COLORS}); estimated from the image if omitted")
    parser.add_argument("--cell-size", type=int, default=DEFAULT_CELL_SIZE)
    parser.add_argument("--no-codes", action="store_true", help="Do not print codes in the chart cells")
    parser.add_argument("--no-grid", action="store_true", help="Do not draw cell outlines")
    parser.add_argument("--save-history", action="store_true", help="Record the result in the project history")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser

def main():
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    img_path = Path(args.image)
    img = load_image(img_path)
    h, w = img.shape[:2]
    rows, cols = pick_dimensions(args, w / h)

    colors = args.colors
    if colors is None:
        colors = estimate_color_complexity(img)
        print(f"  ↳ suggested {colors} colors from image complexity")

    resized = resize_to_grid(img, rows, cols)
    pixels, rows, cols = to_pixel_buffer(resized)
    result = build_pattern(pixels, rows, cols, colors)
    print(f"✓ {img_path.name} -> {rows} rows × {cols} columns • {result.num_colors} colors")

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    write_csv(out_dir / export_filename("grid", result, "csv"), grid_csv(result))
    write_csv(out_dir / export_filename("legend", result, "csv"), legend_csv(result))

    preview = render_preview(result)
    save_image_rgb(out_dir / export_filename("preview", result, "png"), preview)
    chart = render_pattern(
        result,
        cell_size=args.cell_size,
        show_codes=not args.no_codes,
        show_grid_lines=not args.no_grid,
    )
    save_image_rgb(out_dir / export_filename("grid", result, "png", suffix=f"_{args.cell_size}px"), chart)
    print(f"  ↳ wrote CSV and PNG files to {out_dir}")

    print(json.dumps(quantization_report(resized, preview)))

    if args.save_history:
        project = make_project(img_path.stem, result, img, preview)
        if ProjectHistory().add(project):
            print(f"  ↳ saved to history as {project['id']}")
        else:
            print("  ↳ warning: could not save to history (storage full)")


if __name__ == "__main__":
    main()
