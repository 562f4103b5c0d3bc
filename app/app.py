# app/app.py
import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

import logging
import time
import numpy as np
import gradio as gr

from needlepoint.config import (
    OUTPUTS_DIR, DEFAULT_ROWS, DEFAULT_COLS, MIN_DIMENSION, MAX_DIMENSION,
    DEFAULT_MAX_COLORS, MIN_COLORS, MAX_COLORS,
    DEFAULT_CELL_SIZE, MIN_CELL_SIZE, MAX_CELL_SIZE,
)
from needlepoint.errors import InvalidArgumentError
from needlepoint.io_utils import save_image_rgb
from needlepoint.preprocessing.presets import PRESETS, get_preset, find_best_preset, estimate_color_complexity
from needlepoint.preprocessing.resize import flatten_alpha, recalculate_dimensions, resize_to_grid, to_pixel_buffer
from needlepoint.pattern.assemble import PatternResult, build_pattern
from needlepoint.export.csv_export import grid_csv, legend_csv, export_filename, write_csv
from needlepoint.rendering.grid import render_preview, render_pattern, draw_grid_overlay
from needlepoint.metrics.similarity import quantization_report
from needlepoint.storage.history import ProjectHistory, make_project, load_result, from_data_url

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

CUSTOM = "Custom"
history = ProjectHistory()

# --------- helpers ----------
def legend_rows(result: PatternResult) -> list:
    return [[code, result.color_map[code], result.color_counts[code]] for code in result.codes()]

def pattern_info(result: PatternResult) -> str:
    return f"**{result.rows} rows × {result.cols} columns • {result.num_colors} colors**"

def write_exports(result: PatternResult, cell_size: int, show_codes: bool, show_grid: bool):
    out_dir = Path(OUTPUTS_DIR) / "patterns"
    chart = render_pattern(result, cell_size=int(cell_size), show_codes=show_codes, show_grid_lines=show_grid)
    files = [
        write_csv(out_dir / export_filename("grid", result, "csv"), grid_csv(result)),
        write_csv(out_dir / export_filename("legend", result, "csv"), legend_csv(result)),
        save_image_rgb(out_dir / export_filename("preview", result, "png"), render_preview(result)),
        save_image_rgb(out_dir / export_filename("grid", result, "png", suffix=f"_{int(cell_size)}px"), chart),
    ]
    return chart, [str(f) for f in files]

def history_choices() -> list:
    out = []
    for p in history.list():
        day = time.strftime("%Y-%m-%d", time.localtime(p.get("timestamp", 0) / 1000))
        out.append((f"{p.get('name', 'Untitled')} ({day})", p.get("id")))
    return out

# --------- core handlers ----------
def on_image_change(image: np.ndarray):
    """Pick a preset and a palette size suggestion for a freshly uploaded image."""
    if image is None:
        return gr.update(), gr.update(), gr.update(), gr.update()
    image = flatten_alpha(image)
    h, w = image.shape[:2]
    preset = find_best_preset(w / h)
    rows, cols = recalculate_dimensions(preset.height, preset.width, w / h, driver="rows")
    return preset.name, rows, cols, estimate_color_complexity(image)

def on_preset_change(image: np.ndarray, preset_name: str, link_aspect: bool):
    if preset_name == CUSTOM:
        return gr.update(), gr.update()
    preset = get_preset(preset_name)
    if image is None or not link_aspect:
        return preset.height, preset.width
    h, w = image.shape[:2]
    return recalculate_dimensions(preset.height, preset.width, w / h, driver="rows")

def on_rows_change(image: np.ndarray, rows: int, cols: int, link_aspect: bool):
    if image is None or not link_aspect or not rows:
        return gr.update()
    h, w = image.shape[:2]
    return recalculate_dimensions(int(rows), int(cols or 0), w / h, driver="rows")[1]

def on_cols_change(image: np.ndarray, rows: int, cols: int, link_aspect: bool):
    if image is None or not link_aspect or not cols:
        return gr.update()
    h, w = image.shape[:2]
    return recalculate_dimensions(int(rows or 0), int(cols), w / h, driver="cols")[0]

def run_pattern(
    image: np.ndarray,
    name: str,
    rows: int,
    cols: int,
    max_colors: int,
    cell_size: int,
    show_codes: bool,
    show_grid: bool,
):
    if image is None:
        raise gr.Error("Upload an image first.")
    if not rows or not cols:
        raise gr.Error("Set both height and width.")
    image = flatten_alpha(image)
    t0 = time.perf_counter()
    try:
        resized = resize_to_grid(image, int(rows), int(cols))
        pixels, r, c = to_pixel_buffer(resized)
        result = build_pattern(pixels, r, c, int(max_colors))
    except InvalidArgumentError as e:
        raise gr.Error(str(e))
    runtime_ms = (time.perf_counter() - t0) * 1000.0

    preview = render_preview(result)
    chart, files = write_exports(result, cell_size, show_codes, show_grid)

    metrics = {
        "rows": result.rows,
        "cols": result.cols,
        "max_colors": int(max_colors),
        "palette_entries": len(result.palette),
        "num_colors": result.num_colors,
        **quantization_report(resized, preview),
        "runtime_ms": round(runtime_ms, 2),
    }

    project = make_project(name or "Untitled", result, image, preview)
    if not history.add(project):
        gr.Warning("Could not save to history (storage full)")

    overlay = draw_grid_overlay(image, result.rows, result.cols)
    return (
        pattern_info(result), chart, preview, overlay, legend_rows(result), metrics, files,
        gr.update(choices=history_choices(), value=project["id"]),
    )

def load_history(project_id: str, cell_size: int, show_codes: bool, show_grid: bool):
    project = history.get(project_id) if project_id else None
    if project is None:
        raise gr.Error("Pick a saved project.")
    result = load_result(project)
    chart = render_pattern(result, cell_size=int(cell_size), show_codes=show_codes, show_grid_lines=show_grid)
    return pattern_info(result), chart, from_data_url(project["quantizedImage"]), legend_rows(result)

def delete_history(project_id: str):
    if project_id:
        history.delete(project_id)
    return gr.update(choices=history_choices(), value=None)

def clear_history():
    history.clear()
    return gr.update(choices=[], value=None)

# --------- UI ----------
with gr.Blocks(title="Needlepoint Pattern Maker") as demo:
    gr.Markdown("## Needlepoint Pattern Maker\nReduce a picture to a small palette and get a stitch chart with color codes.")

    with gr.Tabs():
        with gr.Tab("Pattern"):
            with gr.Row():
                with gr.Column(scale=1, min_width=320):
                    gr.Markdown("### Inputs")
                    in_img = gr.Image(type="numpy", label="Upload image")
                    name = gr.Textbox(value="Untitled", label="Project name")
                    preset = gr.Dropdown(
                        choices=[p.name for p in PRESETS] + [CUSTOM], value=CUSTOM, label="Size preset",
                        info="Presets are width × height in stitches",
                    )
                    link_aspect = gr.Checkbox(value=True, label="Link dimensions (keep image aspect ratio)")
                    with gr.Row():
                        rows = gr.Number(value=DEFAULT_ROWS, precision=0, minimum=MIN_DIMENSION,
                                         maximum=MAX_DIMENSION, label="Height (rows)")
                        cols = gr.Number(value=DEFAULT_COLS, precision=0, minimum=MIN_DIMENSION,
                                         maximum=MAX_DIMENSION, label="Width (columns)")
                    max_colors = gr.Slider(MIN_COLORS, MAX_COLORS, value=DEFAULT_MAX_COLORS, step=1, label="Max colors",
                                           info="Suggested from the image; the result can use fewer")
                    gr.Markdown("### Chart")
                    cell_size = gr.Slider(MIN_CELL_SIZE, MAX_CELL_SIZE, value=DEFAULT_CELL_SIZE, step=2,
                                          label="Cell size (px)")
                    with gr.Row():
                        show_codes = gr.Checkbox(value=True, label="Show codes")
                        show_grid = gr.Checkbox(value=True, label="Show grid lines")
                    run_btn = gr.Button("Convert to Pattern", variant="primary")
                with gr.Column(scale=2):
                    gr.Markdown("### Outputs")
                    info = gr.Markdown()
                    chart_img = gr.Image(type="numpy", label="Stitch chart")
                    with gr.Row():
                        preview_img = gr.Image(type="numpy", label="Quantized preview")
                        overlay_img = gr.Image(type="numpy", label="Grid over source")
                    legend = gr.Dataframe(headers=["code", "hex", "pixel_count"], label="Legend", interactive=False)
                    with gr.Accordion("Metrics and downloads", open=False):
                        metrics_json = gr.JSON(label="Metrics (MSE, SSIM, runtime)")
                        files = gr.Files(label="Grid CSV, legend CSV, preview PNG, chart PNG")

        with gr.Tab("History"):
            with gr.Row():
                with gr.Column(scale=1, min_width=320):
                    project_pick = gr.Dropdown(choices=history_choices(), label="Saved projects")
                    with gr.Row():
                        load_btn = gr.Button("Load", variant="primary")
                        delete_btn = gr.Button("Delete")
                        clear_btn = gr.Button("Delete all")
                with gr.Column(scale=2):
                    h_info = gr.Markdown()
                    h_chart = gr.Image(type="numpy", label="Stitch chart")
                    h_preview = gr.Image(type="numpy", label="Quantized preview")
                    h_legend = gr.Dataframe(headers=["code", "hex", "pixel_count"], label="Legend", interactive=False)

    in_img.upload(fn=on_image_change, inputs=[in_img], outputs=[preset, rows, cols, max_colors])
    preset.input(fn=on_preset_change, inputs=[in_img, preset, link_aspect], outputs=[rows, cols])
    rows.input(fn=on_rows_change, inputs=[in_img, rows, cols, link_aspect], outputs=[cols])
    cols.input(fn=on_cols_change, inputs=[in_img, rows, cols, link_aspect], outputs=[rows])

    run_btn.click(
        fn=run_pattern,
        inputs=[in_img, name, rows, cols, max_colors, cell_size, show_codes, show_grid],
        outputs=[info, chart_img, preview_img, overlay_img, legend, metrics_json, files, project_pick],
    )

    load_btn.click(
        fn=load_history,
        inputs=[project_pick, cell_size, show_codes, show_grid],
        outputs=[h_info, h_chart, h_preview, h_legend],
    )
    delete_btn.click(fn=delete_history, inputs=[project_pick], outputs=[project_pick])
    clear_btn.click(fn=clear_history, inputs=[], outputs=[project_pick])

if __name__ == "__main__":
    demo.launch(server_name="0.0.0.0", server_port=7860, debug=True)
