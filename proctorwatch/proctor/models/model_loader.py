"""
Model Loader - Lazy loading of ML models
"""

import os
import logging
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

# Default model paths (relative to this file's directory)
MODELS_DIR = os.path.join(os.path.dirname(__file__), "weights")

DEFAULT_YOLO_WEIGHTS = "yolov8n.pt"


@lru_cache(maxsize=2)
def get_yolo_model(model_path: Optional[str] = None):
    """
    Get YOLO model for suspicious object detection.

    The stock COCO weights already carry the classes we care about
    (cell phone, book, laptop, ...). A local copy in MODELS_DIR is preferred
    over letting ultralytics download one.

    Returns:
        YOLO model instance
    """
    from ultralytics import YOLO

    possible_paths = [
        model_path,
        os.path.join(MODELS_DIR, DEFAULT_YOLO_WEIGHTS),
    ]

    for path in possible_paths:
        if path and os.path.exists(path):
            logger.info(f"Loading YOLO model from: {path}")
            return YOLO(path)

    if model_path:
        raise FileNotFoundError(f"YOLO weights not found: {model_path}")

    logger.warning(f"No local YOLO weights in {MODELS_DIR}, using {DEFAULT_YOLO_WEIGHTS}")
    return YOLO(DEFAULT_YOLO_WEIGHTS)


def get_mediapipe_face_detection(min_confidence: float = 0.5):
    """
    Build a MediaPipe short-range face detection graph.

    Not cached: a solution graph must not be driven from two threads at
    once, so every FaceDetector owns its own instance.

    The detector's own floor is kept low; the proctoring confidence
    threshold is applied afterwards so low-score faces can still be logged.

    Returns:
        mediapipe FaceDetection instance
    """
    import mediapipe as mp

    detector = mp.solutions.face_detection.FaceDetection(
        model_selection=0,
        min_detection_confidence=min_confidence
    )

    logger.info("MediaPipe FaceDetection initialized")

    return detector


def check_models() -> dict:
    """
    Check which models are available.

    Returns:
        Dict with model status
    """
    status = {
        "yolo_weights": os.path.exists(os.path.join(MODELS_DIR, DEFAULT_YOLO_WEIGHTS)),
        "ultralytics": False,
        "mediapipe": False,
    }

    try:
        import ultralytics  # noqa: F401
        status["ultralytics"] = True
    except ImportError:
        pass

    try:
        import mediapipe  # noqa: F401
        status["mediapipe"] = True
    except ImportError:
        pass

    return status
