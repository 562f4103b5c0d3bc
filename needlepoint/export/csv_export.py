from __future__ import annotations
import csv
import io
from pathlib import Path
from typing import Union

from ..pattern.assemble import PatternResult

def grid_csv(result: PatternResult) -> str:
    """
    One CSV row per grid row:
        row,c01,c02,...
        r01,C01,C03,...
    """
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(["row"] + [f"c{i + 1:02d}" for i in range(result.cols)])
    for idx, row in enumerate(result.grid):
        w.writerow([f"r{idx + 1:02d}"] + list(row))
    return buf.getvalue()

def legend_csv(result: PatternResult) -> str:
    """code,hex,pixel_count for every color, in code order."""
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(["code", "hex", "pixel_count"])
    for code in result.codes():
        w.writerow([code, result.color_map[code], result.color_counts[code]])
    return buf.getvalue()

def export_filename(kind: str, result: PatternResult, ext: str, suffix: str = "") -> str:
    return f"needlepoint_{kind}_{result.rows}x{result.cols}_{result.num_colors}colors{suffix}.{ext}"

def write_csv(path: Union[str, Path], content: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")
    return path
