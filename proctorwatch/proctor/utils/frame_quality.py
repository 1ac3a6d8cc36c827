"""
Frame Checks - Validates frames before they reach the detectors
"""

import cv2
import numpy as np
import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def frame_dimensions(frame: Optional[np.ndarray]) -> Tuple[int, int]:
    """
    Return (width, height) of a decoded frame, (0, 0) if there is none.
    """
    if frame is None or not hasattr(frame, "shape") or frame.ndim < 2:
        return (0, 0)
    height, width = frame.shape[:2]
    return (int(width), int(height))


def is_frame_ready(frame: Optional[np.ndarray]) -> bool:
    """
    A frame is ready once the source has decoded real dimensions.

    Sources hand back None (or an empty array) while the stream is warming up.
    """
    width, height = frame_dimensions(frame)
    return width > 0 and height > 0 and frame.size > 0


def is_motion_detected(
    prev_frame: Optional[np.ndarray],
    curr_frame: np.ndarray,
    threshold: float = 30.0,
    min_change_percent: float = 0.5
) -> Tuple[bool, float]:
    """
    Detect if significant motion occurred between frames.

    Args:
        prev_frame: Previous BGR frame (None on the first call)
        curr_frame: Current BGR frame
        threshold: Per-pixel mean channel difference counted as change
        min_change_percent: Percentage of changed pixels counted as motion

    Returns:
        Tuple of (motion_detected, change_percent). The first frame of a
        stream always counts as motion.
    """
    if prev_frame is None:
        return (True, 100.0)

    if prev_frame.shape != curr_frame.shape:
        return (True, 100.0)

    diff = cv2.absdiff(prev_frame, curr_frame)
    if diff.ndim == 3:
        diff = diff.mean(axis=2)

    changed = np.count_nonzero(diff > threshold)
    change_percent = changed / float(diff.shape[0] * diff.shape[1]) * 100

    return (change_percent > min_change_percent, change_percent)
