"""
Violation Engine - Turns per-frame detections into violation events

Rules, applied independently to every processed frame:

1. Face absence   - no face for FACE_ABSENCE_DELAY seconds -> FACE_NOT_VISIBLE (high)
2. Multiple faces - more than one face in a frame           -> MULTIPLE_FACES (critical)
3. Looking away   - first face off-centre for LOOKING_AWAY_DELAY seconds
                                                            -> LOOKING_AWAY (medium)
4. Objects        - phone / book / laptop or tablet labels  -> PHONE / BOOK / DEVICE

Every emission goes through add_violation(), which enforces the per-type
cooldown. Object labels carry a second, per-label cooldown checked first.
"""

import logging
from typing import Callable, List, Optional, Sequence

from .cooldowns import CooldownLedger
from .rules import (
    FACE_NOT_VISIBLE_DESCRIPTION,
    LOOKING_AWAY_DESCRIPTION,
    MULTIPLE_FACES_DESCRIPTION,
    classify_object_label,
    describe_object,
    normalize_label,
)
from .timers import DebounceTimers
from ..detectors.gaze import analyze_looking_direction
from ..types import (
    FaceBox,
    FaceResult,
    GazeResult,
    ObjectResult,
    Severity,
    ViolationEvent,
    ViolationType,
)
from ..utils.logging import log_violation_suppressed
from ...config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ViolationEngine:
    """
    Stateful violation inference for one session.

    Owns the debounce timers and both cooldown ledgers. Emitted events are
    handed to `on_emit`, which is where the session appends and rescores.
    """

    def __init__(
        self,
        clock,
        settings: Optional[Settings] = None,
        on_emit: Optional[Callable[[ViolationEvent], None]] = None,
        gaze_analyzer: Callable[[Optional[FaceBox]], GazeResult] = analyze_looking_direction,
        session_id: str = "-"
    ):
        """
        Args:
            clock: time()/call_later() provider (LoopClock in production)
            settings: Delays and cooldown windows
            on_emit: Called synchronously with every emitted event
            gaze_analyzer: Maps the first face box to a GazeResult
            session_id: Used for log lines only
        """
        self.settings = settings or default_settings
        self.clock = clock
        self.on_emit = on_emit
        self.gaze_analyzer = gaze_analyzer
        self.session_id = session_id

        self.timers = DebounceTimers(clock)
        self.violation_cooldowns = CooldownLedger(
            clock,
            windows={ViolationType(k): v for k, v in self.settings.VIOLATION_COOLDOWNS.items()},
            default=self.settings.DEFAULT_VIOLATION_COOLDOWN
        )
        self.object_cooldowns = CooldownLedger(clock, default=self.settings.OBJECT_COOLDOWN)

    # ============== Emission ==============

    def add_violation(
        self,
        violation_type: ViolationType,
        description: str,
        severity: Severity = Severity.MEDIUM,
        duration: Optional[float] = None
    ) -> Optional[ViolationEvent]:
        """
        Emit a violation unless its type is cooling down.

        Returns:
            The new event, or None if it was suppressed
        """
        if self.violation_cooldowns.in_cooldown(violation_type):
            log_violation_suppressed(
                self.session_id,
                violation_type.value,
                self.violation_cooldowns.remaining(violation_type)
            )
            return None

        event = ViolationEvent(
            type=violation_type,
            description=description,
            severity=severity,
            duration=duration
        )
        self.violation_cooldowns.record(violation_type)

        if self.on_emit is not None:
            self.on_emit(event)

        return event

    def _debounce(self, violation_type: ViolationType, delay: float, description: str, severity: Severity):
        self.timers.start(
            violation_type,
            delay,
            lambda: self.add_violation(violation_type, description, severity, duration=delay)
        )

    # ============== Rules ==============

    def process(self, faces: FaceResult, objects: Sequence[ObjectResult]) -> List[ViolationEvent]:
        """
        Apply all rules to one frame's detections.

        Returns:
            Events emitted immediately by this frame. Debounced violations
            are emitted later, from their timers.
        """
        emitted: List[ViolationEvent] = []

        self._check_face_absence(faces)

        event = self._check_multiple_faces(faces)
        if event is not None:
            emitted.append(event)

        self._check_looking_away(faces)

        emitted.extend(self._check_objects(objects))

        return emitted

    def _check_face_absence(self, faces: FaceResult):
        if not faces.has_face:
            delay = self.settings.FACE_ABSENCE_DELAY
            self._debounce(
                ViolationType.FACE_NOT_VISIBLE,
                delay,
                FACE_NOT_VISIBLE_DESCRIPTION.format(delay=delay),
                Severity.HIGH
            )
        else:
            self.timers.cancel(ViolationType.FACE_NOT_VISIBLE)

    def _check_multiple_faces(self, faces: FaceResult) -> Optional[ViolationEvent]:
        if faces.has_face and faces.count > 1 and faces.multiple_faces:
            logger.debug(f"Multiple faces detected: {faces.count}")
            return self.add_violation(
                ViolationType.MULTIPLE_FACES,
                MULTIPLE_FACES_DESCRIPTION.format(count=faces.count),
                Severity.CRITICAL
            )
        return None

    def _check_looking_away(self, faces: FaceResult):
        if not (faces.has_face and faces.faces):
            # No face data, nothing to judge direction from
            self.timers.cancel(ViolationType.LOOKING_AWAY)
            return

        gaze = self.gaze_analyzer(faces.faces[0])
        logger.debug(f"Looking direction: away={gaze.is_looking_away} confidence={gaze.confidence:.2f}")

        if gaze.is_looking_away:
            delay = self.settings.LOOKING_AWAY_DELAY
            self._debounce(
                ViolationType.LOOKING_AWAY,
                delay,
                LOOKING_AWAY_DESCRIPTION.format(delay=delay),
                Severity.MEDIUM
            )
        else:
            self.timers.cancel(ViolationType.LOOKING_AWAY)

    def _check_objects(self, objects: Sequence[ObjectResult]) -> List[ViolationEvent]:
        emitted = []

        for obj in objects:
            key = normalize_label(obj.object)

            if self.object_cooldowns.in_cooldown(key):
                logger.debug(f"Object {key} still in cooldown period")
                continue

            classified = classify_object_label(key)
            if classified is None:
                continue

            violation_type, severity = classified
            event = self.add_violation(violation_type, describe_object(violation_type, obj), severity)

            # The label cools down even when the type cooldown swallowed the event
            self.object_cooldowns.record(key)

            if event is not None:
                emitted.append(event)

        return emitted

    # ============== Lifecycle ==============

    def reset(self):
        """Cancel all pending timers and forget every cooldown."""
        self.timers.cancel_all()
        self.violation_cooldowns.clear()
        self.object_cooldowns.clear()
