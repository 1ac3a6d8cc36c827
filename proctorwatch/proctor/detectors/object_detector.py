"""
Suspicious Object Detector - Detects prohibited items using YOLO
"""

import threading
import numpy as np
import logging
from typing import Iterable, List, Optional

from ..types import FaceBox, ObjectResult

logger = logging.getLogger(__name__)

# YOLO models are cached and shared across sessions; predict() is not thread-safe
_predict_lock = threading.Lock()


class SuspiciousObjectDetector:
    """
    Detects suspicious objects in frames using a COCO-trained YOLO model.

    Only classes on the allow-list are reported. A class matches when either
    name contains the other ("cell phone" matches "phone" and vice versa).
    """

    DEFAULT_OBJECTS = (
        "cell phone", "book", "laptop", "mouse", "keyboard",
        "remote", "scissors", "teddy bear", "hair drier", "toothbrush",
    )

    def __init__(
        self,
        model_path: Optional[str] = None,
        confidence: float = 0.4,
        suspicious_objects: Optional[Iterable[str]] = None
    ):
        """
        Initialize object detector.

        Args:
            model_path: Path to YOLO weights. If None, uses default from model_loader.
            confidence: Minimum confidence; detections at or below it are dropped.
            suspicious_objects: Allow-list of class names.
        """
        self.confidence = confidence
        self.suspicious_objects = [o.lower() for o in (suspicious_objects or self.DEFAULT_OBJECTS)]
        self.model = None
        self._model_path = model_path

    def load(self):
        """Load YOLO weights. Raises if ultralytics or the weights are unavailable."""
        if self.model is not None:
            return

        from ..models import get_yolo_model
        self.model = get_yolo_model(self._model_path)
        logger.info("YOLO model loaded successfully")

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def is_suspicious(self, name: str) -> bool:
        name = name.lower()
        return any(name in obj or obj in name for obj in self.suspicious_objects)

    def detect(self, frame: np.ndarray) -> List[ObjectResult]:
        """
        Detect suspicious objects in a frame.

        Args:
            frame: BGR image from OpenCV

        Returns:
            List of ObjectResult with the model's class name and confidence
        """
        if frame is None or frame.size == 0:
            return []

        if self.model is None:
            raise RuntimeError("Object model not loaded")

        with _predict_lock:
            results = self.model.predict(frame, conf=self.confidence, verbose=False)

        detections: List[ObjectResult] = []
        for result in results:
            if result.boxes is None:
                continue

            for box in result.boxes:
                cls_id = int(box.cls[0])
                conf = float(box.conf[0])
                name = self.model.names.get(cls_id, f"class_{cls_id}")

                if conf <= self.confidence or not self.is_suspicious(name):
                    continue

                xmin, ymin, xmax, ymax = [float(v) for v in box.xyxyn[0].tolist()]
                detections.append(ObjectResult(
                    object=name,
                    confidence=conf,
                    box=FaceBox(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax)
                ))

        if detections:
            logger.debug(f"Suspicious objects: {[(d.object, round(d.confidence, 2)) for d in detections]}")

        return detections
