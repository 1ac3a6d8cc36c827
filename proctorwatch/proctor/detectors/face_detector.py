"""
Face Detector - Detects faces using MediaPipe face detection
"""

import cv2
import numpy as np
import logging
from typing import List, Optional

from ..types import FaceBox, FaceResult

logger = logging.getLogger(__name__)


class FaceDetector:
    """
    Detects faces in video frames using MediaPipe's short-range model.

    Provides:
    - Face count (for multi-person detection)
    - Face presence (for absence detection)
    - Normalised face boxes (for gaze analysis)

    Faces scoring at or below `confidence` are dropped before counting.
    """

    def __init__(self, confidence: float = 0.7):
        """
        Initialize face detector.

        Args:
            confidence: Minimum face probability counted as a face.
        """
        self.confidence = confidence
        self.model = None

    def load(self):
        """
        Load the MediaPipe model. Raises if mediapipe is unavailable.
        """
        if self.model is not None:
            return

        from ..models import get_mediapipe_face_detection
        self.model = get_mediapipe_face_detection()

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def detect(self, frame: np.ndarray) -> FaceResult:
        """
        Detect faces in a frame.

        Args:
            frame: BGR image from OpenCV

        Returns:
            FaceResult with boxes normalised to the frame
        """
        if frame is None or frame.size == 0:
            return FaceResult()

        if self.model is None:
            raise RuntimeError("Face model not loaded")

        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.model.process(rgb)

        faces: List[FaceBox] = []
        for detection in results.detections or []:
            probability = float(detection.score[0]) if detection.score else None
            if probability is not None and probability <= self.confidence:
                logger.debug(f"Dropping low-confidence face: {probability:.2f}")
                continue

            box = self._to_face_box(detection.location_data.relative_bounding_box, probability)
            faces.append(box)

        return FaceResult.from_faces(faces)

    @staticmethod
    def _to_face_box(bbox, probability: Optional[float]) -> FaceBox:
        xmin = min(max(bbox.xmin, 0.0), 1.0)
        ymin = min(max(bbox.ymin, 0.0), 1.0)
        xmax = min(max(bbox.xmin + bbox.width, 0.0), 1.0)
        ymax = min(max(bbox.ymin + bbox.height, 0.0), 1.0)
        return FaceBox(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax, probability=probability)

    def close(self):
        """Release the MediaPipe graph owned by this detector"""
        if self.model is not None:
            self.model.close()
            self.model = None
