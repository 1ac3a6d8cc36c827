"""
Tests for ProctorSession
"""

import asyncio

import numpy as np
import pytest

from proctorwatch.config import Settings
from proctorwatch.proctor import InitializationError, ProctorSession, SessionListener
from proctorwatch.proctor.inference import LoopClock
from proctorwatch.proctor.types import ObjectResult, Severity, ViolationType

from fakes import AWAY_FACE, NO_FACE, TWO_FACES


class _Listener(SessionListener):
    def __init__(self):
        self.violations = []
        self.updates = []
        self.closed = 0

    def on_violation(self, event, snapshot):
        self.violations.append((event, snapshot))

    def on_update(self, snapshot):
        self.updates.append(snapshot)

    def on_close(self):
        self.closed += 1


async def _ready(session):
    await session.initialize()
    session.start()
    return session


class TestSessionLifecycle:
    """Initialization, start and stop"""

    def test_initial_state(self, session):
        assert session.id.startswith("session_")
        assert session.data.candidate_name == "Test Candidate"
        assert session.data.integrity_score == 100
        assert session.data.violations == []
        assert not session.is_ready
        assert not session.is_recording

    def test_custom_session_id(self, adapter, clock, settings):
        session = ProctorSession(adapter=adapter, clock=clock, settings=settings, session_id="exam-42")
        assert session.id == "exam-42"
        assert session.data.candidate_name == "Anonymous Candidate"

    @pytest.mark.asyncio
    async def test_initialize_marks_ready(self, session):
        await session.initialize()
        assert session.is_ready

    @pytest.mark.asyncio
    async def test_initialize_failure_propagates(self, session, adapter):
        adapter.init_error = InitializationError("no backend")
        with pytest.raises(InitializationError):
            await session.initialize()
        assert not session.is_ready

    @pytest.mark.asyncio
    async def test_duration_is_floored(self, session, clock):
        await _ready(session)
        clock.advance(12.7)
        session.stop()

        assert session.data.total_duration == 12
        assert session.data.end_time is not None
        assert not session.is_recording

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_looking_away(self, session, adapter, clock, frame):
        await _ready(session)
        adapter.face_result = AWAY_FACE

        assert await session.process_frame(frame)
        clock.advance(2)
        session.stop()
        clock.advance(10)

        assert session.data.violations == []
        assert session.data.integrity_score == 100
        assert len(session.engine.timers) == 0

    @pytest.mark.asyncio
    async def test_restart_preserves_timeline(self, session, adapter, clock, frame):
        await _ready(session)
        adapter.face_result = TWO_FACES
        await session.process_frame(frame)
        session.stop()

        session.start()

        assert len(session.data.violations) == 1
        assert session.data.integrity_score == 80

    @pytest.mark.asyncio
    async def test_stop_clears_cooldowns(self, session, adapter, clock, frame):
        await _ready(session)
        adapter.face_result = TWO_FACES
        await session.process_frame(frame)

        session.stop()
        session.start()
        clock.advance(1)
        await session.process_frame(frame)

        assert [v.type for v in session.data.violations] == [ViolationType.MULTIPLE_FACES] * 2
        # Same type twice only counts once
        assert session.data.integrity_score == 80

    @pytest.mark.asyncio
    async def test_close_releases_adapter(self, session, adapter):
        await _ready(session)
        session.close()

        assert adapter.closed
        assert not session.is_recording


class TestSessionOnEventLoop:
    """Debounce timers scheduled on the real asyncio loop"""

    @pytest.fixture
    def fast_session(self, adapter):
        fast = Settings(LOOKING_AWAY_DELAY=0.05, FACE_ABSENCE_DELAY=0.05)
        return ProctorSession(adapter=adapter, clock=LoopClock(), settings=fast)

    @pytest.mark.asyncio
    async def test_looking_away_fires_after_delay(self, fast_session, adapter, frame):
        await _ready(fast_session)
        adapter.face_result = AWAY_FACE

        await fast_session.process_frame(frame)
        assert fast_session.data.violations == []

        await asyncio.sleep(0.2)

        assert [v.type for v in fast_session.data.violations] == [ViolationType.LOOKING_AWAY]
        assert fast_session.data.integrity_score == 95

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_timer(self, fast_session, adapter, frame):
        await _ready(fast_session)
        adapter.face_result = NO_FACE

        await fast_session.process_frame(frame)
        fast_session.stop()
        await asyncio.sleep(0.2)

        assert fast_session.data.violations == []
        assert fast_session.data.integrity_score == 100


class TestFrameProcessing:
    """process_frame behaviour"""

    @pytest.mark.asyncio
    async def test_ignored_when_not_recording(self, session, adapter, frame):
        await session.initialize()
        assert await session.process_frame(frame) is False
        assert adapter.calls == 0

    @pytest.mark.asyncio
    async def test_ignored_when_not_ready(self, session, adapter, frame):
        session.start()
        assert await session.process_frame(frame) is False
        assert adapter.calls == 0

    @pytest.mark.asyncio
    async def test_invalid_frames_ignored(self, session, adapter):
        await _ready(session)
        assert await session.process_frame(None) is False
        assert await session.process_frame(np.zeros((0, 0, 3), dtype=np.uint8)) is False
        assert adapter.calls == 0

    @pytest.mark.asyncio
    async def test_updates_status(self, session, adapter, frame):
        await _ready(session)
        adapter.objects = [ObjectResult(object="mouse", confidence=0.7)]

        assert await session.process_frame(frame)

        assert session.status.face_detected is True
        assert session.status.objects_detected == ["mouse"]
        assert session.frames_processed == 1

    @pytest.mark.asyncio
    async def test_detector_error_skips_frame(self, session, adapter, frame):
        await _ready(session)
        adapter.error = RuntimeError("model crashed")

        assert await session.process_frame(frame) is False
        assert session.frame_errors == 1
        assert session.frames_processed == 0
        assert session.data.violations == []

        adapter.error = None
        assert await session.process_frame(frame)

    @pytest.mark.asyncio
    async def test_frame_while_busy_is_skipped(self, session, adapter, frame):
        await _ready(session)
        gate = asyncio.Event()
        original = adapter.detect_faces

        async def slow_detect_faces(f):
            await gate.wait()
            return await original(f)

        adapter.detect_faces = slow_detect_faces

        first = asyncio.ensure_future(session.process_frame(frame))
        await asyncio.sleep(0)
        assert session.is_processing

        assert await session.process_frame(frame) is False
        assert session.frames_skipped == 1

        gate.set()
        assert await first is True
        assert not session.is_processing

    @pytest.mark.asyncio
    async def test_results_dropped_if_stopped_mid_detection(self, session, adapter, frame):
        await _ready(session)
        gate = asyncio.Event()
        adapter.face_result = TWO_FACES
        original = adapter.detect_faces

        async def slow_detect_faces(f):
            await gate.wait()
            return await original(f)

        adapter.detect_faces = slow_detect_faces

        pending = asyncio.ensure_future(session.process_frame(frame))
        await asyncio.sleep(0)
        session.stop()
        gate.set()

        assert await pending is False
        assert session.data.violations == []


class TestViolationsAndScore:
    """Violations recorded by the session"""

    @pytest.mark.asyncio
    async def test_face_absence_scores_ninety(self, session, adapter, clock, frame):
        await _ready(session)
        adapter.face_result = NO_FACE

        for _ in range(7):
            await session.process_frame(frame)
            clock.advance(1.5)

        assert [v.type for v in session.data.violations] == [ViolationType.FACE_NOT_VISIBLE]
        assert session.data.integrity_score == 90
        assert session.status.current_violation == ViolationType.FACE_NOT_VISIBLE
        assert session.status.face_detected is False

    @pytest.mark.asyncio
    async def test_phone_detected(self, session, adapter, frame):
        await _ready(session)
        adapter.objects = [ObjectResult(object="cell phone", confidence=0.55)]

        await session.process_frame(frame)

        violation = session.data.violations[0]
        assert violation.type == ViolationType.PHONE_DETECTED
        assert violation.severity == Severity.CRITICAL
        assert session.data.integrity_score == 80

    @pytest.mark.asyncio
    async def test_external_violation_respects_cooldown(self, session):
        await _ready(session)

        first = session.add_violation(ViolationType.LOOKING_AWAY, "tab switch", Severity.LOW)
        second = session.add_violation(ViolationType.LOOKING_AWAY, "tab switch", Severity.LOW)

        assert first is not None
        assert second is None
        assert session.data.integrity_score == 98

    @pytest.mark.asyncio
    async def test_score_matches_violation_list(self, session, adapter, clock, frame):
        await _ready(session)
        adapter.face_result = TWO_FACES
        adapter.objects = [ObjectResult(object="book", confidence=0.8)]
        await session.process_frame(frame)

        adapter.objects = []
        adapter.face_result = AWAY_FACE
        await session.process_frame(frame)
        clock.advance(5)

        assert session.data.integrity_score == session.scorer.compute(session.data.violations) == 65

    @pytest.mark.asyncio
    async def test_summary(self, session, adapter, clock, frame):
        await _ready(session)
        adapter.face_result = TWO_FACES
        await session.process_frame(frame)
        clock.advance(30)
        session.stop()

        summary = session.summary()

        assert summary["integrity_score"] == 80
        assert summary["grade"] == "B"
        assert summary["total_violations"] == 1
        assert summary["violation_counts"] == {"multiple_faces": 1}
        assert summary["duration_seconds"] == 30
        assert summary["frames_processed"] == 1


class TestListeners:
    """Observer notifications"""

    @pytest.mark.asyncio
    async def test_listener_receives_violation_and_updates(self, session, adapter, frame):
        listener = _Listener()
        session.subscribe(listener)

        await _ready(session)
        adapter.face_result = TWO_FACES
        await session.process_frame(frame)

        assert len(listener.violations) == 1
        event, snapshot = listener.violations[0]
        assert event.type == ViolationType.MULTIPLE_FACES
        assert snapshot["session"]["integrity_score"] == 80
        assert len(snapshot["session"]["violations"]) == 1
        assert listener.updates[-1]["status"]["is_recording"] is True

    @pytest.mark.asyncio
    async def test_unsubscribe(self, session, adapter, frame):
        listener = _Listener()
        unsubscribe = session.subscribe(listener)
        unsubscribe()
        unsubscribe()

        await _ready(session)
        adapter.face_result = TWO_FACES
        await session.process_frame(frame)

        assert listener.violations == []
        assert listener.updates == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_session(self, session, adapter, frame):
        class Broken(SessionListener):
            def on_violation(self, event, snapshot):
                raise ValueError("boom")

            def on_update(self, snapshot):
                raise ValueError("boom")

        good = _Listener()
        session.subscribe(Broken())
        session.subscribe(good)

        await _ready(session)
        adapter.face_result = TWO_FACES
        assert await session.process_frame(frame)

        assert len(session.data.violations) == 1
        assert len(good.violations) == 1


class TestSessionLogging:
    """Structured [PROCTOR] log lines"""

    @pytest.mark.asyncio
    async def test_violation_logged_as_warning(self, session, adapter, frame, caplog):
        caplog.set_level("DEBUG", logger="proctorwatch")
        await _ready(session)
        adapter.face_result = TWO_FACES

        await session.process_frame(frame)
        await session.process_frame(frame)

        messages = [r.getMessage() for r in caplog.records]
        assert any(
            f"[PROCTOR] session={session.id} event=violation type=multiple_faces" in m
            for m in messages
        )
        assert any("event=suppressed key=multiple_faces" in m for m in messages)
        assert any("event=session_start candidate=Test Candidate" in m for m in messages)


class TestSessionClose:
    """close() tells listeners the session is gone"""

    @pytest.mark.asyncio
    async def test_listeners_get_on_close_once(self, session):
        listener = _Listener()
        session.subscribe(listener)
        await _ready(session)

        session.close()
        session.close()

        assert listener.closed == 1

        session.add_violation(ViolationType.PHONE_DETECTED, "after close", Severity.CRITICAL)
        assert listener.violations == []

    @pytest.mark.asyncio
    async def test_failing_on_close_does_not_stop_others(self, session):
        class Broken(SessionListener):
            def on_close(self):
                raise ValueError("boom")

        good = _Listener()
        session.subscribe(Broken())
        session.subscribe(good)

        session.close()

        assert good.closed == 1
