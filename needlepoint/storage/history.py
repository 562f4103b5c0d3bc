"""Persistence of prior pattern results.

Projects are kept newest-first in a single JSON file. Each record carries the
pattern itself (grid, colorMap, colorCounts) plus small JPEG data URLs of the
source thumbnail and the quantized preview so a history list can show them.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
from PIL import Image

from needlepoint.config import (
    HISTORY_FILE,
    MAX_HISTORY_PROJECTS,
    PREVIEW_JPEG_QUALITY,
    THUMBNAIL_JPEG_QUALITY,
    THUMBNAIL_SIZE,
)
from needlepoint.pattern.assemble import PatternResult

logger = logging.getLogger(__name__)

Project = Dict[str, Any]


def to_data_url(img_rgb: np.ndarray, quality: int) -> str:
    """Encode an RGB array as a base64 JPEG data URL."""
    buf = io.BytesIO()
    Image.fromarray(img_rgb.astype(np.uint8)).save(buf, format="JPEG", quality=quality)
    return "data:image/jpeg;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def from_data_url(data_url: str) -> np.ndarray:
    """Decode a data URL written by to_data_url() back to an RGB array."""
    _, payload = data_url.split(",", 1)
    with Image.open(io.BytesIO(base64.b64decode(payload))) as img:
        return np.array(img.convert("RGB"))


def make_thumbnail(img_rgb: np.ndarray, size: int = THUMBNAIL_SIZE) -> np.ndarray:
    """Shrink so the longer side is `size`, keeping the aspect ratio."""
    h, w = img_rgb.shape[:2]
    aspect = w / h
    if aspect > 1:
        tw, th = size, max(1, round(size / aspect))
    else:
        th, tw = size, max(1, round(size * aspect))
    pil = Image.fromarray(img_rgb.astype(np.uint8))
    return np.array(pil.resize((tw, th), Image.Resampling.LANCZOS))


def make_project(
    name: str,
    result: PatternResult,
    source_rgb: np.ndarray,
    preview_rgb: np.ndarray,
    timestamp_ms: Optional[int] = None,
) -> Project:
    """Build a history record for a freshly generated pattern."""
    ts = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    project: Project = {
        "id": str(ts),
        "name": name or "Untitled",
        "timestamp": ts,
        "thumbnail": to_data_url(make_thumbnail(source_rgb), THUMBNAIL_JPEG_QUALITY),
        "quantizedImage": to_data_url(preview_rgb, PREVIEW_JPEG_QUALITY),
    }
    payload = result.to_dict()
    project["grid"] = payload["grid"]
    project["colorMap"] = payload["colorMap"]
    project["colorCounts"] = payload["colorCounts"]
    return project


def load_result(project: Project) -> PatternResult:
    """Rebuild the pattern stored in a history record."""
    return PatternResult.from_dict(project)


class ProjectHistory:
    """Handles loading and saving of prior results."""

    def __init__(self, path: Union[str, Path] = HISTORY_FILE, limit: int = MAX_HISTORY_PROJECTS):
        """Initialize the store.

        Args:
            path: JSON file holding the project list
            limit: Maximum number of projects kept (oldest dropped first)
        """
        self.path = Path(path)
        self.limit = limit

    def list(self) -> List[Project]:
        """Return stored projects, newest first. Unreadable files count as empty."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read project history %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring malformed project history in %s", self.path)
            return []
        return data

    def _save(self, projects: List[Project]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(projects, f)
            tmp.replace(self.path)
            return True
        except OSError as e:
            logger.error("Failed to save projects: %s", e)
            return False

    def add(self, project: Project) -> bool:
        """
        Prepend a project. When saving fails (e.g. disk full) the oldest
        projects are dropped one by one until it fits.

        Returns:
            True if the project was persisted
        """
        projects = [project] + [p for p in self.list() if p.get("id") != project.get("id")]
        del projects[self.limit:]

        saved = self._save(projects)
        while not saved and len(projects) > 1:
            dropped = projects.pop()
            logger.info("History full, dropping oldest project %s", dropped.get("id"))
            saved = self._save(projects)

        if not saved:
            logger.error("Could not save project %s - storage full", project.get("id"))
        return saved

    def get(self, project_id: str) -> Optional[Project]:
        for p in self.list():
            if p.get("id") == project_id:
                return p
        return None

    def delete(self, project_id: str) -> bool:
        projects = self.list()
        kept = [p for p in projects if p.get("id") != project_id]
        if len(kept) == len(projects):
            return False
        return self._save(kept)

    def clear(self) -> bool:
        return self._save([])
