"""
Test doubles shared by the proctoring tests
"""

from proctorwatch.proctor.detectors.gaze import analyze_looking_direction
from proctorwatch.proctor.types import FaceBox, FaceResult


CENTERED_FACE = FaceBox(xmin=0.35, ymin=0.3, xmax=0.65, ymax=0.7, probability=0.95)
CORNER_FACE = FaceBox(xmin=0.0, ymin=0.0, xmax=0.2, ymax=0.2, probability=0.9)

ONE_FACE = FaceResult.from_faces([CENTERED_FACE])
TWO_FACES = FaceResult.from_faces([CENTERED_FACE, CORNER_FACE])
AWAY_FACE = FaceResult.from_faces([CORNER_FACE])
NO_FACE = FaceResult()


class _Handle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualClock:
    """
    Deterministic stand-in for the event loop clock.

    advance() moves time forward and runs every due callback in order.
    """

    def __init__(self, start: float = 1000.0):
        self.now = start
        self._handles = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback):
        handle = _Handle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    def advance(self, seconds: float):
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback()
        self.now = target

    @property
    def scheduled(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)


class FakeAdapter:
    """Scripted detection adapter; returns whatever the test sets."""

    def __init__(self):
        self.is_initialized = False
        self.init_error = None
        self.error = None
        self.face_result = ONE_FACE
        self.objects = []
        self.calls = 0
        self.closed = False

    async def initialize(self):
        if self.init_error is not None:
            raise self.init_error
        self.is_initialized = True

    async def detect_faces(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.face_result

    async def detect_objects(self, frame):
        return list(self.objects)

    def analyze_looking_direction(self, face):
        return analyze_looking_direction(face, 0.3)

    def status(self):
        return {"is_initialized": self.is_initialized, "face_backend": "fake", "object_backend": "fake"}

    def close(self):
        self.closed = True

