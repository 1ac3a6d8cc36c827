"""
Proctor Session - Manages a single proctoring session
"""

import math
import time
import uuid
import logging
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .detectors import DetectionAdapter
from .inference import LoopClock, ViolationEngine
from .scoring import IntegrityScorer
from .types import MonitoringStatus, SessionData, Severity, ViolationEvent, ViolationType, utcnow
from .utils.frame_quality import is_frame_ready
from .utils.logging import log_session_end, log_session_start, log_violation_emitted
from ..config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class SessionListener:
    """
    Observer interface for session changes.

    Override what you need. on_violation and on_update run synchronously on
    the event loop right after the mutation, with a fresh snapshot. on_close
    runs once when the session is closed; no hook fires after it.
    """

    def on_violation(self, event: ViolationEvent, snapshot: Dict[str, Any]):
        pass

    def on_update(self, snapshot: Dict[str, Any]):
        pass

    def on_close(self):
        pass


class ProctorSession:
    """
    Manages a single proctoring session.

    Owns the SessionData / MonitoringStatus aggregates, wires detections
    into the violation engine and keeps the integrity score in step with
    the violation list.
    """

    def __init__(
        self,
        candidate_name: str = "Anonymous Candidate",
        adapter: Optional[DetectionAdapter] = None,
        clock=None,
        settings: Optional[Settings] = None,
        session_id: Optional[str] = None
    ):
        """
        Initialize a new proctoring session.

        Args:
            candidate_name: Name shown in reports
            adapter: Detection adapter (a model-backed one is built if None)
            clock: time()/call_later() provider, LoopClock by default
            settings: Overrides for module settings
            session_id: Optional custom session ID (auto-generated if not provided)
        """
        self.settings = settings or default_settings
        self.clock = clock or LoopClock()
        self.adapter = adapter or DetectionAdapter(self.settings)
        self.scorer = IntegrityScorer(self.settings.SEVERITY_DEDUCTIONS)

        self.data = SessionData(
            candidate_name=candidate_name,
            session_id=session_id or new_session_id()
        )
        self.status = MonitoringStatus()

        self.engine = ViolationEngine(
            self.clock,
            settings=self.settings,
            on_emit=self._record_violation,
            gaze_analyzer=self.adapter.analyze_looking_direction,
            session_id=self.id
        )

        self._listeners: List[SessionListener] = []
        self._started_at = self.clock.time()
        self._processing = False

        self.frames_processed = 0
        self.frames_skipped = 0
        self.frame_errors = 0

    @property
    def id(self) -> str:
        return self.data.session_id

    @property
    def is_ready(self) -> bool:
        return self.adapter.is_initialized

    @property
    def is_recording(self) -> bool:
        return self.status.is_recording

    @property
    def is_processing(self) -> bool:
        return self._processing

    # ============== Lifecycle ==============

    async def initialize(self):
        """
        Bring up the detection adapter.

        Raises:
            InitializationError: if no detection back-end is usable
        """
        await self.adapter.initialize()
        logger.info(f"Detector ready for session {self.id}: {self.adapter.status()}")
        self._notify_update()

    def start(self):
        """
        Start (or resume) monitoring.

        Violations already in the timeline are kept.
        """
        self.status.is_recording = True
        self.data.start_time = utcnow()
        self._started_at = self.clock.time()

        log_session_start(self.id, self.data.candidate_name)
        self._notify_update()

    def stop(self):
        """
        Stop monitoring, finalise duration and drop all timer/cooldown state.
        """
        self.status.is_recording = False
        self.data.end_time = utcnow()
        self.data.total_duration = int(math.floor(self.clock.time() - self._started_at))

        self.engine.reset()
        self.status.current_violation = None
        self.status.violation_start_time = None

        log_session_end(
            self.id,
            self.data.integrity_score,
            len(self.data.violations),
            self.data.total_duration
        )
        self._notify_update()

    def close(self):
        """Stop if needed and release detector resources"""
        if self.status.is_recording:
            self.stop()
        self.engine.reset()
        self.adapter.close()

        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener.on_close()
            except Exception as e:
                logger.error(f"Session listener failed on close: {e}")

    # ============== Frames ==============

    async def process_frame(self, frame: Optional[np.ndarray]) -> bool:
        """
        Run detection on one frame and feed the violation engine.

        Never raises: frames that arrive while not ready, not recording, or
        while another frame is in flight are skipped, and detector errors
        are logged and skip the frame.

        Returns:
            True if the frame was analysed
        """
        if not self.is_ready or not self.status.is_recording:
            return False

        if not is_frame_ready(frame):
            return False

        if self._processing:
            self.frames_skipped += 1
            logger.debug(f"Session {self.id}: frame skipped, detection still running")
            return False

        self._processing = True
        try:
            faces = await self.adapter.detect_faces(frame)
            objects = await self.adapter.detect_objects(frame)
        except Exception as e:
            self.frame_errors += 1
            logger.error(f"Frame processing error in session {self.id}: {e}")
            return False
        finally:
            self._processing = False

        # Monitoring may have stopped while detection was running
        if not self.status.is_recording:
            return False

        self.status.face_detected = faces.has_face
        self.status.objects_detected = [obj.object for obj in objects]

        self.engine.process(faces, objects)
        self.frames_processed += 1

        self._notify_update()
        return True

    # ============== Violations ==============

    def add_violation(
        self,
        violation_type: ViolationType,
        description: str,
        severity: Severity = Severity.MEDIUM
    ) -> Optional[ViolationEvent]:
        """Report a violation from outside the frame pipeline (cooldowns still apply)."""
        return self.engine.add_violation(violation_type, description, severity)

    def _record_violation(self, event: ViolationEvent):
        self.data.violations.append(event)
        self.data.integrity_score = self.scorer.compute(self.data.violations)

        self.status.current_violation = event.type
        self.status.violation_start_time = event.timestamp

        log_violation_emitted(self.id, event.type.value, event.severity.value, self.data.integrity_score)

        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener.on_violation(event, snapshot)
            except Exception as e:
                logger.error(f"Session listener failed on violation: {e}")

    # ============== Observers ==============

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that unsubscribes it again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_update(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener.on_update(snapshot)
            except Exception as e:
                logger.error(f"Session listener failed on update: {e}")

    # ============== Read access ==============

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session": self.data.to_dict(),
            "status": self.status.to_dict()
        }

    def summary(self) -> Dict[str, Any]:
        """
        Session summary for reporting.

        Returns:
            Dict with score, grade, per-type counts and frame statistics
        """
        violations = self.data.violations
        counts = Counter(v.type.value for v in violations)
        duration = self.data.total_duration
        if self.status.is_recording:
            duration = int(math.floor(self.clock.time() - self._started_at))

        return {
            "session_id": self.id,
            "candidate_name": self.data.candidate_name,
            "integrity_score": self.data.integrity_score,
            "grade": self.scorer.get_grade(self.data.integrity_score),
            "total_violations": len(violations),
            "violation_counts": dict(counts),
            "breakdown": self.scorer.compute_breakdown(violations)["penalties"],
            "duration_seconds": duration,
            "frames_processed": self.frames_processed,
            "frames_skipped": self.frames_skipped,
            "frame_errors": self.frame_errors,
            "detector": self.adapter.status()
        }
