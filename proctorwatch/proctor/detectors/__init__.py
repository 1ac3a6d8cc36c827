"""Detector modules for proctoring"""

from .base import BackendKind, DetectionBackend
from .face_detector import FaceDetector
from .object_detector import SuspiciousObjectDetector
from .heuristic import HeuristicBackend
from .gaze import analyze_looking_direction
from .adapter import DetectionAdapter, PrimaryBackend

__all__ = [
    "BackendKind",
    "DetectionBackend",
    "FaceDetector",
    "SuspiciousObjectDetector",
    "HeuristicBackend",
    "analyze_looking_direction",
    "DetectionAdapter",
    "PrimaryBackend",
]
