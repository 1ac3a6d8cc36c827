"""
Proctoring Types - Violation records and session aggregates
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ViolationType(str, Enum):
    FACE_NOT_VISIBLE = "face_not_visible"
    LOOKING_AWAY = "looking_away"
    MULTIPLE_FACES = "multiple_faces"
    PHONE_DETECTED = "phone_detected"
    BOOK_DETECTED = "book_detected"
    DEVICE_DETECTED = "device_detected"
    CANDIDATE_ABSENT = "candidate_absent"


_SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}


class Severity(str, Enum):
    """
    Violation severity, totally ordered: low < medium < high < critical.

    Comparisons use the rank, not the string value.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self.value]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def max_of(cls, *severities: "Severity") -> "Severity":
        return max(severities, key=lambda s: s.rank)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_violation_id() -> str:
    return f"violation_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ViolationEvent:
    """
    One emitted violation. Created once, never mutated.
    """

    type: ViolationType
    description: str
    severity: Severity
    id: str = field(default_factory=new_violation_id)
    timestamp: datetime = field(default_factory=utcnow)
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
            "severity": self.severity.value,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class FaceBox:
    """Face bounding box in coordinates normalised to the frame (0-1)."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float
    probability: Optional[float] = None

    @property
    def center(self):
        return (
            self.xmin + (self.xmax - self.xmin) / 2,
            self.ymin + (self.ymax - self.ymin) / 2,
        )


@dataclass(frozen=True)
class FaceResult:
    has_face: bool = False
    count: int = 0
    multiple_faces: bool = False
    faces: List[FaceBox] = field(default_factory=list)

    @classmethod
    def from_faces(cls, faces: List[FaceBox]) -> "FaceResult":
        return cls(
            has_face=len(faces) > 0,
            count=len(faces),
            multiple_faces=len(faces) > 1,
            faces=list(faces),
        )


@dataclass(frozen=True)
class ObjectResult:
    object: str
    confidence: float
    box: Optional[FaceBox] = None


@dataclass(frozen=True)
class GazeResult:
    is_looking_away: bool
    confidence: float


@dataclass
class MonitoringStatus:
    """Live monitoring state, one instance per session."""

    is_recording: bool = False
    face_detected: bool = False
    objects_detected: List[str] = field(default_factory=list)
    current_violation: Optional[ViolationType] = None
    violation_start_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_recording": self.is_recording,
            "face_detected": self.face_detected,
            "objects_detected": list(self.objects_detected),
            "current_violation": self.current_violation.value if self.current_violation else None,
            "violation_start_time": (
                self.violation_start_time.isoformat() if self.violation_start_time else None
            ),
        }


@dataclass
class SessionData:
    """
    Aggregate for one monitoring session.

    `violations` is append-only and kept in emission order.
    """

    candidate_name: str
    session_id: str
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    violations: List[ViolationEvent] = field(default_factory=list)
    total_duration: int = 0
    integrity_score: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_name": self.candidate_name,
            "session_id": self.session_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "violations": [v.to_dict() for v in self.violations],
            "total_duration": self.total_duration,
            "integrity_score": self.integrity_score,
        }
