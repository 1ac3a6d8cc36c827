"""
Heuristic Detector - Model-free fallback using motion, skin tone and edges

Used when the ML models cannot be loaded or fail on a frame. It is far less
accurate than the models but keeps the same result shapes.
"""

import math
import numpy as np
import logging
from typing import Any, Dict, List, Optional

from .base import BackendKind, DetectionBackend
from ..types import FaceBox, FaceResult, ObjectResult
from ..utils.frame_quality import is_motion_detected

logger = logging.getLogger(__name__)

CENTER_BOX = FaceBox(xmin=0.25, ymin=0.25, xmax=0.75, ymax=0.75)
PHONE_BOX = FaceBox(xmin=0.3, ymin=0.3, xmax=0.7, ymax=0.7)
DEVICE_BOX = FaceBox(xmin=0.2, ymin=0.2, xmax=0.4, ymax=0.6)


class HeuristicBackend(DetectionBackend):
    """
    Pixel-level fallback detector.

    Faces: motion since the previous frame AND either a mid-brightness
    centre region or skin-coloured grid cells. Two or more well-separated
    skin regions are reported as separate faces.

    Objects: strong edge density is reported as a "suspected device",
    dark/metallic/screen-like cells as a "phone".
    """

    kind = BackendKind.HEURISTIC

    SKIN_GRID = 3
    PHONE_GRID = 8
    MERGE_DISTANCE = 100
    SEPARATION_DISTANCE = 150

    def __init__(self, gaze_threshold: float = 0.4):
        self.gaze_threshold = gaze_threshold
        self._previous_frame: Optional[np.ndarray] = None

    # ============== Faces ==============

    def detect_faces(self, frame: np.ndarray) -> FaceResult:
        if frame is None or frame.size == 0:
            return FaceResult()

        has_motion, _ = is_motion_detected(self._previous_frame, frame)
        self._previous_frame = frame.copy()

        center_content = self._center_has_content(frame)
        regions = self._face_regions(frame)

        has_face = has_motion and (center_content or len(regions) > 0)

        logger.debug(
            f"Heuristic faces: motion={has_motion} center={center_content} "
            f"regions={len(regions)} has_face={has_face}"
        )

        if not has_face:
            return FaceResult()

        return FaceResult.from_faces(regions or [CENTER_BOX])

    def _center_has_content(self, frame: np.ndarray) -> bool:
        height, width = frame.shape[:2]
        size = int(min(width, height) * 0.3)
        if size == 0:
            return False

        top = max(0, height // 2 - size // 2)
        left = max(0, width // 2 - size // 2)
        region = frame[top:top + size, left:left + size]

        brightness = float(region.mean())
        return 50 < brightness < 200

    def _skin_regions(self, frame: np.ndarray) -> List[Dict[str, Any]]:
        height, width = frame.shape[:2]
        cell_w = width / self.SKIN_GRID
        cell_h = height / self.SKIN_GRID

        regions = []
        for row in range(self.SKIN_GRID):
            for col in range(self.SKIN_GRID):
                x0, y0 = int(col * cell_w), int(row * cell_h)
                x1, y1 = int(min(x0 + cell_w, width)), int(min(y0 + cell_h, height))

                cell = frame[y0:y1:3, x0:x1:3].astype(np.int16)
                if cell.size == 0:
                    continue

                skin_percent = float(_skin_mask(cell).mean() * 100)

                # Only the middle row/column can hold a seated candidate
                if skin_percent > 15 and (row == 1 or col == 1):
                    regions.append({
                        "x": x0, "y": y0, "w": x1 - x0, "h": y1 - y0,
                        "skin": skin_percent
                    })

        return regions

    def _face_regions(self, frame: np.ndarray) -> List[FaceBox]:
        height, width = frame.shape[:2]
        merged = _merge_nearby(self._skin_regions(frame), self.MERGE_DISTANCE)

        if len(merged) > 1 and _well_separated(merged, self.SEPARATION_DISTANCE):
            return [
                FaceBox(
                    xmin=r["x"] / width,
                    ymin=r["y"] / height,
                    xmax=(r["x"] + r["w"]) / width,
                    ymax=(r["y"] + r["h"]) / height
                )
                for r in merged
            ]

        if merged:
            return [CENTER_BOX]

        return []

    # ============== Objects ==============

    def detect_objects(self, frame: np.ndarray) -> List[ObjectResult]:
        if frame is None or frame.size == 0:
            return []

        objects: List[ObjectResult] = []

        edge_percent = self._edge_percent(frame)
        if edge_percent > 10:
            objects.append(ObjectResult(object="suspected device", confidence=0.6, box=DEVICE_BOX))

        phone_score = self._phone_score(frame)
        if phone_score > 0.15:
            objects.append(ObjectResult(
                object="phone",
                confidence=min(phone_score * 2, 0.8),
                box=PHONE_BOX
            ))

        return objects

    @staticmethod
    def _edge_percent(frame: np.ndarray, threshold: int = 50) -> float:
        height, width = frame.shape[:2]
        if height < 3 or width < 3:
            return 0.0

        gray = frame.astype(np.float32).mean(axis=2) if frame.ndim == 3 else frame.astype(np.float32)
        center = gray[1:-1, 1:-1]
        horizontal = np.abs(center - gray[1:-1, 2:])
        vertical = np.abs(center - gray[2:, 1:-1])

        edges = np.count_nonzero((horizontal > threshold) | (vertical > threshold))
        return edges / float((width - 2) * (height - 2)) * 100

    def _phone_score(self, frame: np.ndarray) -> float:
        height, width = frame.shape[:2]
        cell_w = width / self.PHONE_GRID
        cell_h = height / self.PHONE_GRID

        dark_cells = metallic_cells = screen_cells = 0

        for row in range(self.PHONE_GRID):
            for col in range(self.PHONE_GRID):
                x0, y0 = int(col * cell_w), int(row * cell_h)
                x1, y1 = int(x0 + cell_w), int(y0 + cell_h)

                cell = frame[y0:y1:2, x0:x1:2].astype(np.int16)
                if cell.size == 0:
                    continue

                b, g, r = cell[..., 0], cell[..., 1], cell[..., 2]
                brightness = (r + g + b) / 3
                saturation = cell.max(axis=2) - cell.min(axis=2)

                dark = (brightness < 80).mean()
                metallic = ((saturation < 30) & (brightness > 100) & (brightness < 180)).mean()
                screen = (((b > r) & (b > g)) | ((r > 200) & (g > 200) & (b > 200))).mean()

                dark_cells += dark > 0.6
                metallic_cells += metallic > 0.3
                screen_cells += screen > 0.4

        total = self.PHONE_GRID * self.PHONE_GRID
        return (dark_cells * 0.4 + metallic_cells * 0.3 + screen_cells * 0.3) / total

    def reset(self):
        self._previous_frame = None


def _skin_mask(cell: np.ndarray) -> np.ndarray:
    """RGB skin-tone rule on an int16 BGR patch."""
    b, g, r = cell[..., 0], cell[..., 1], cell[..., 2]
    spread = cell.max(axis=2) - cell.min(axis=2)
    return (
        (r > 95) & (g > 40) & (b > 20)
        & (spread > 15)
        & (np.abs(r - g) > 15)
        & (r > g) & (r > b)
        & (r < 255) & (g < 255) & (b < 255)
    )


def _distance(a: Dict[str, Any], b: Dict[str, Any]) -> float:
    return math.hypot(a["x"] - b["x"], a["y"] - b["y"])


def _merge_nearby(regions: List[Dict[str, Any]], max_distance: float) -> List[Dict[str, Any]]:
    if len(regions) <= 1:
        return regions

    merged = []
    used = set()

    for i, region in enumerate(regions):
        if i in used:
            continue

        current = dict(region)
        used.add(i)

        for j in range(i + 1, len(regions)):
            if j in used:
                continue
            if _distance(region, regions[j]) < max_distance:
                other = regions[j]
                x0 = min(current["x"], other["x"])
                y0 = min(current["y"], other["y"])
                x1 = max(current["x"] + current["w"], other["x"] + other["w"])
                y1 = max(current["y"] + current["h"], other["y"] + other["h"])
                current = {
                    "x": x0, "y": y0, "w": x1 - x0, "h": y1 - y0,
                    "skin": max(current["skin"], other["skin"])
                }
                used.add(j)

        merged.append(current)

    return merged


def _well_separated(regions: List[Dict[str, Any]], min_distance: float) -> bool:
    if len(regions) <= 1:
        return False

    for i in range(len(regions)):
        for j in range(i + 1, len(regions)):
            if _distance(regions[i], regions[j]) < min_distance:
                return False

    return True
