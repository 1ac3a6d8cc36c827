"""
Proctoring Configuration Settings

All timing values are in seconds. Every value can be overridden through
environment variables prefixed with PROCTOR_ (e.g. PROCTOR_FACE_ABSENCE_DELAY=8).
"""
from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    """Configuration for the proctoring service."""

    # API Settings
    APP_NAME: str = "Proctorwatch Service"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Debounce delays (how long a condition must hold before it is a violation)
    FACE_ABSENCE_DELAY: float = 10.0
    LOOKING_AWAY_DELAY: float = 5.0

    # Per-type violation cooldowns
    VIOLATION_COOLDOWNS: Dict[str, float] = {
        "multiple_faces": 15.0,
        "face_not_visible": 20.0,
        "looking_away": 10.0,
        "phone_detected": 30.0,
        "device_detected": 30.0,
        "book_detected": 30.0,
    }
    DEFAULT_VIOLATION_COOLDOWN: float = 10.0

    # Per-label object cooldown
    OBJECT_COOLDOWN: float = 30.0

    # Score deductions per severity (applied once per violation type)
    SEVERITY_DEDUCTIONS: Dict[str, int] = {
        "low": 2,
        "medium": 5,
        "high": 10,
        "critical": 20,
    }

    # Detection thresholds
    FACE_CONFIDENCE: float = 0.7
    OBJECT_CONFIDENCE: float = 0.4
    GAZE_THRESHOLD: float = 0.3
    GAZE_THRESHOLD_HEURISTIC: float = 0.4
    SUSPICIOUS_OBJECTS: List[str] = [
        "cell phone", "book", "laptop", "mouse", "keyboard",
        "remote", "scissors", "teddy bear", "hair drier", "toothbrush",
    ]

    # Frame sampling
    SAMPLE_INTERVAL: float = 1.5
    CAMERA_INDEX: int = 0

    # Model paths (None = use model_loader defaults)
    YOLO_MODEL_PATH: Optional[str] = None

    class Config:
        env_file = ".env"
        env_prefix = "PROCTOR_"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
