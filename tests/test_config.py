"""
Tests for settings loading
"""

from proctorwatch.config import Settings
from proctorwatch.proctor.inference import ViolationEngine
from proctorwatch.proctor.types import ViolationType

from fakes import NO_FACE


class TestSettings:
    """Defaults and PROCTOR_ environment overrides"""

    def test_defaults(self):
        settings = Settings()
        assert settings.FACE_ABSENCE_DELAY == 10.0
        assert settings.LOOKING_AWAY_DELAY == 5.0
        assert settings.VIOLATION_COOLDOWNS["multiple_faces"] == 15.0
        assert settings.OBJECT_COOLDOWN == 30.0
        assert settings.SEVERITY_DEDUCTIONS == {"low": 2, "medium": 5, "high": 10, "critical": 20}

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PROCTOR_FACE_ABSENCE_DELAY", "8")
        monkeypatch.setenv("PROCTOR_VIOLATION_COOLDOWNS", '{"face_not_visible": 5}')

        settings = Settings()

        assert settings.FACE_ABSENCE_DELAY == 8.0
        assert settings.VIOLATION_COOLDOWNS == {"face_not_visible": 5.0}

    def test_engine_uses_overrides(self, monkeypatch, clock):
        monkeypatch.setenv("PROCTOR_FACE_ABSENCE_DELAY", "3")
        events = []
        engine = ViolationEngine(clock, settings=Settings(), on_emit=events.append)

        engine.process(NO_FACE, [])
        clock.advance(3)

        assert [e.type for e in events] == [ViolationType.FACE_NOT_VISIBLE]
        assert events[0].description == "Candidate's face is not visible for more than 3 seconds"
        # Types missing from the override map fall back to the default window
        assert engine.violation_cooldowns.window(ViolationType.LOOKING_AWAY) == 10.0
