from pathlib import Path

# Project roots
ROOT = Path(__file__).resolve().parents[1]
OUTPUTS_DIR = ROOT / "data" / "outputs"
HISTORY_FILE = ROOT / "data" / "history" / "projects.json"

# Grid defaults (stitches). Height is rows, width is cols.
DEFAULT_ROWS = 72
DEFAULT_COLS = 60
MIN_DIMENSION = 10
MAX_DIMENSION = 200

# Quantization defaults
DEFAULT_MAX_COLORS = 20
MIN_COLORS = 2
MAX_COLORS = 40

# Background used when flattening transparent images
BACKGROUND_RGB = (255, 255, 255)

# Size presets for common needlepoint projects, (name, width, height)
SIZE_PRESETS = [
    ("Coaster", 50, 50),
    ("Ornament", 40, 50),
    ("Pillow", 120, 120),
    ("Wall Art", 100, 125),
]

# Color complexity sampling
COMPLEXITY_SAMPLE_SIZE = 50
COMPLEXITY_BUCKET = 8

# Pattern rendering
DEFAULT_CELL_SIZE = 20
MIN_CELL_SIZE = 8
MAX_CELL_SIZE = 40

# History of prior results
MAX_HISTORY_PROJECTS = 20
THUMBNAIL_SIZE = 80
THUMBNAIL_JPEG_QUALITY = 60
PREVIEW_JPEG_QUALITY = 80

# JPEG/PNG default save params
DEFAULT_JPEG_QUALITY = 92

# Ensure dirs exist at import time (safe/no-op if present)
for _d in [OUTPUTS_DIR, HISTORY_FILE.parent]:
    _d.mkdir(parents=True, exist_ok=True)
