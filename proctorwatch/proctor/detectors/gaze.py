"""
Gaze Analysis - Estimates whether the candidate is looking away

A geometric stand-in for gaze tracking: a face whose box centre drifts far
from the frame centre is treated as turned away from the screen.
"""

import math
from typing import Optional

from ..types import FaceBox, GazeResult

SCREEN_CENTER = (0.5, 0.5)


def analyze_looking_direction(face: Optional[FaceBox], threshold: float = 0.3) -> GazeResult:
    """
    Analyze looking direction from a normalised face box.

    Args:
        face: First detected face, or None
        threshold: Distance from frame centre beyond which the candidate is away

    Returns:
        GazeResult; confidence grows with the distance and saturates at 1.0
    """
    if face is None:
        return GazeResult(is_looking_away=True, confidence=0.8)

    cx, cy = face.center
    distance = math.hypot(cx - SCREEN_CENTER[0], cy - SCREEN_CENTER[1])

    return GazeResult(
        is_looking_away=distance > threshold,
        confidence=min(distance * 2, 1.0)
    )
