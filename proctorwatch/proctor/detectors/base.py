"""
Detection Backend - Common interface for the perception back-ends
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

import numpy as np

from ..types import FaceResult, ObjectResult


class BackendKind(str, Enum):
    PRIMARY = "primary"
    HEURISTIC = "heuristic"


class DetectionBackend(ABC):
    """
    A perception back-end producing faces and suspicious objects for a still frame.

    The adapter picks one variant per capability at initialisation. Both
    variants return the same shapes, so nothing downstream can tell them apart.
    """

    kind: BackendKind

    # Max distance of the face centre from the frame centre before the
    # candidate counts as looking away
    gaze_threshold: float = 0.3

    @abstractmethod
    def detect_faces(self, frame: np.ndarray) -> FaceResult:
        """Detect faces in a BGR frame"""

    @abstractmethod
    def detect_objects(self, frame: np.ndarray) -> List[ObjectResult]:
        """Detect suspicious objects in a BGR frame"""

    def close(self):
        """Release model resources"""
