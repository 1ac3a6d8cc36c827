"""
Detection Adapter - Uniform face/object detection over swappable back-ends

Selection happens once, in initialize():
- both models load      -> primary back-end for faces and objects
- one model loads       -> primary for that capability, heuristic for the other
- no model loads        -> heuristic back-end for both
- nothing can be built  -> InitializationError

After that, a primary back-end failure on a single frame falls back to the
heuristic back-end for that frame only.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import numpy as np

from .base import BackendKind, DetectionBackend
from .face_detector import FaceDetector
from .gaze import analyze_looking_direction
from .heuristic import HeuristicBackend
from .object_detector import SuspiciousObjectDetector
from ..errors import FrameProcessingError, InitializationError
from ..types import FaceBox, FaceResult, GazeResult, ObjectResult
from ...config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class PrimaryBackend(DetectionBackend):
    """MediaPipe faces + YOLO objects"""

    kind = BackendKind.PRIMARY

    def __init__(
        self,
        face_detector: FaceDetector,
        object_detector: SuspiciousObjectDetector,
        gaze_threshold: float = 0.3
    ):
        self.face_detector = face_detector
        self.object_detector = object_detector
        self.gaze_threshold = gaze_threshold

    def detect_faces(self, frame: np.ndarray) -> FaceResult:
        return self.face_detector.detect(frame)

    def detect_objects(self, frame: np.ndarray) -> List[ObjectResult]:
        return self.object_detector.detect(frame)

    def close(self):
        self.face_detector.close()


class DetectionAdapter:
    """
    Wraps the perception back-ends behind detect_faces / detect_objects /
    analyze_looking_direction.

    Model inference is blocking, so calls run in a worker thread and are
    awaited from the event loop.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        primary: Optional[PrimaryBackend] = None,
        fallback_factory=None
    ):
        """
        Args:
            settings: Thresholds and model paths (defaults to module settings)
            primary: Pre-built primary back-end (built from settings if None)
            fallback_factory: Callable building the heuristic back-end
                (a HeuristicBackend using GAZE_THRESHOLD_HEURISTIC if None)
        """
        self.settings = settings or default_settings
        self.primary = primary or PrimaryBackend(
            FaceDetector(confidence=self.settings.FACE_CONFIDENCE),
            SuspiciousObjectDetector(
                model_path=self.settings.YOLO_MODEL_PATH,
                confidence=self.settings.OBJECT_CONFIDENCE,
                suspicious_objects=self.settings.SUSPICIOUS_OBJECTS
            ),
            gaze_threshold=self.settings.GAZE_THRESHOLD
        )
        self._fallback_factory = fallback_factory or (
            lambda: HeuristicBackend(gaze_threshold=self.settings.GAZE_THRESHOLD_HEURISTIC)
        )
        self.fallback: Optional[DetectionBackend] = None

        self.face_backend: Optional[DetectionBackend] = None
        self.object_backend: Optional[DetectionBackend] = None
        self.is_initialized = False

    # ============== Initialisation ==============

    async def initialize(self):
        """
        Load models and select a back-end per capability.

        Raises:
            InitializationError: if no back-end at all can be used
        """
        if self.is_initialized:
            return

        face_ok = await asyncio.to_thread(self._try_load, "face", self.primary.face_detector)
        object_ok = await asyncio.to_thread(self._try_load, "object", self.primary.object_detector)

        try:
            self.fallback = self._fallback_factory()
        except Exception as e:
            if not (face_ok and object_ok):
                raise InitializationError(f"Detection system initialization failed: {e}") from e
            logger.warning(f"Heuristic fallback unavailable: {e}")

        self.face_backend = self.primary if face_ok else self.fallback
        self.object_backend = self.primary if object_ok else self.fallback

        if not face_ok and not object_ok:
            logger.warning("All models failed to load, using heuristic detection")
        else:
            logger.info(f"{int(face_ok) + int(object_ok)}/2 detection models loaded")

        self.is_initialized = True

    @staticmethod
    def _try_load(name: str, detector) -> bool:
        try:
            detector.load()
            return True
        except Exception as e:
            logger.warning(f"{name} model failed to load: {e}")
            return False

    def _require_initialized(self):
        if not self.is_initialized:
            raise FrameProcessingError("Detector not initialized")

    # ============== Detection ==============

    async def detect_faces(self, frame: np.ndarray) -> FaceResult:
        self._require_initialized()
        return await asyncio.to_thread(self._detect, "detect_faces", self.face_backend, frame)

    async def detect_objects(self, frame: np.ndarray) -> List[ObjectResult]:
        self._require_initialized()
        return await asyncio.to_thread(self._detect, "detect_objects", self.object_backend, frame)

    def _detect(self, method: str, backend: DetectionBackend, frame: np.ndarray):
        try:
            return getattr(backend, method)(frame)
        except Exception as e:
            if backend is self.fallback or self.fallback is None:
                raise FrameProcessingError(f"{method} failed: {e}") from e
            logger.warning(f"{method} failed on primary backend, using heuristic: {e}")

        try:
            return getattr(self.fallback, method)(frame)
        except Exception as e:
            raise FrameProcessingError(f"{method} failed: {e}") from e

    def analyze_looking_direction(self, face: Optional[FaceBox]) -> GazeResult:
        """Looking-away check with the threshold of whichever back-end found the face"""
        if self.face_backend is None:
            return analyze_looking_direction(face, self.settings.GAZE_THRESHOLD)
        return analyze_looking_direction(face, self.face_backend.gaze_threshold)

    # ============== Status ==============

    def status(self) -> Dict[str, Any]:
        return {
            "is_initialized": self.is_initialized,
            "face_backend": self.face_backend.kind.value if self.face_backend else None,
            "object_backend": self.object_backend.kind.value if self.object_backend else None,
            "using_fallback": (
                self.face_backend is not None
                and self.face_backend is self.fallback
                and self.object_backend is self.fallback
            ),
        }

    def close(self):
        self.primary.close()
